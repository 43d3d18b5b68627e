from __future__ import annotations

from decimal import Decimal

import pytest

from app.exceptions import ValidationError
from app.services.aliquotas import (
    AliquotasRegime,
    RegimeTributario,
    aliquotas_do_regime,
    percentual_para_pontos_base,
    pontos_base_para_percentual,
)


@pytest.mark.parametrize(
    "percentual, esperado",
    [
        (Decimal("11"), 1100),
        (Decimal("4.65"), 465),
        (1.5, 150),
        ("0", 0),
        (100, 10000),
        (None, None),
    ],
)
def test_percentual_para_pontos_base(percentual, esperado):
    assert percentual_para_pontos_base(percentual) == esperado


@pytest.mark.parametrize(
    "percentual", [Decimal("-0.01"), Decimal("100.01"), "abc", Decimal("4.655"), 0.001]
)
def test_percentual_invalido(percentual):
    with pytest.raises(ValidationError):
        percentual_para_pontos_base(percentual)


def test_pontos_base_para_percentual():
    assert pontos_base_para_percentual(465) == Decimal("4.65")
    assert pontos_base_para_percentual(None) is None


def test_aliquotas_regime_rejeita_fora_do_intervalo():
    with pytest.raises(ValidationError):
        AliquotasRegime(inss=10001)
    with pytest.raises(ValidationError):
        AliquotasRegime(cs=-1)


def test_aliquotas_regime_ida_e_volta_em_percentual():
    aliquotas = AliquotasRegime.from_percentuais({"issqn": "5", "inss": None, "cs": "4.65", "irrf": "1.5"})
    assert aliquotas == AliquotasRegime(issqn=500, inss=None, cs=465, irrf=150)
    assert aliquotas.to_percentuais()["cs"] == Decimal("4.65")


def test_regime_parse_em_qualquer_caixa():
    assert RegimeTributario.parse("mei") is RegimeTributario.MEI
    assert RegimeTributario.parse(" Sn ") is RegimeTributario.SN
    with pytest.raises(ValidationError):
        RegimeTributario.parse("lucro real")


def test_aliquotas_do_regime_ausente_vem_vazio():
    assert aliquotas_do_regime({}, "N") == AliquotasRegime()
    assert aliquotas_do_regime({"n": {"issqn": 200}}, RegimeTributario.N).issqn == 200
