"""
Tabela de alíquotas de retenção por regime tributário.

As alíquotas são guardadas em pontos-base (inteiros, 1 pb = 0,01%), o que
evita misturar float e string na base. Na API elas entram e saem como
percentual com no máximo duas casas (ex.: 4.65 -> 465 pb).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from app.exceptions import ValidationError

PONTOS_BASE_POR_CENTO = 100
PONTOS_BASE_MAXIMO = 100 * PONTOS_BASE_POR_CENTO

TRIBUTOS = ("issqn", "inss", "cs", "irrf")


class RegimeTributario(str, Enum):
    """Regimes aceitos para fornecedores."""

    SN = "SN"  # Simples Nacional
    N = "N"  # Normal
    MEI = "MEI"

    @property
    def chave(self) -> str:
        """Chave usada no dicionário de alíquotas do serviço."""
        return self.value.lower()

    @classmethod
    def parse(cls, valor: str) -> "RegimeTributario":
        """Aceita o regime em qualquer caixa ("sn", "Sn", "SN")."""
        try:
            return cls((valor or "").strip().upper())
        except ValueError:
            raise ValidationError(f"Regime tributário inválido: {valor!r}") from None


def percentual_para_pontos_base(percentual: Union[Decimal, float, int, str, None]) -> Optional[int]:
    """
    Converte percentual (0 a 100, no máximo duas casas decimais) em
    pontos-base. None continua None (tributo não se aplica).
    """

    if percentual is None:
        return None
    try:
        valor = Decimal(str(percentual))
    except InvalidOperation:
        raise ValidationError(f"Alíquota inválida: {percentual!r}") from None

    if not valor.is_finite() or valor < 0 or valor > 100:
        raise ValidationError(f"Alíquota fora do intervalo 0-100: {percentual!r}")

    pontos = valor * PONTOS_BASE_POR_CENTO
    if pontos != pontos.to_integral_value():
        raise ValidationError(f"Alíquota com mais de duas casas decimais: {percentual!r}")
    return int(pontos)


def pontos_base_para_percentual(pontos: Optional[int]) -> Optional[Decimal]:
    if pontos is None:
        return None
    return (Decimal(pontos) / PONTOS_BASE_POR_CENTO).quantize(Decimal("0.01"))


@dataclass(frozen=True)
class AliquotasRegime:
    """Alíquotas (em pontos-base) de um serviço para um regime."""

    issqn: Optional[int] = None
    inss: Optional[int] = None
    cs: Optional[int] = None
    irrf: Optional[int] = None

    def __post_init__(self) -> None:
        for tributo in TRIBUTOS:
            valor = getattr(self, tributo)
            if valor is None:
                continue
            if isinstance(valor, bool) or not isinstance(valor, int):
                raise ValidationError(f"Alíquota de {tributo} deve ser inteira em pontos-base")
            if valor < 0 or valor > PONTOS_BASE_MAXIMO:
                raise ValidationError(f"Alíquota de {tributo} fora do intervalo: {valor}")

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "AliquotasRegime":
        data = data or {}
        return cls(**{tributo: data.get(tributo) for tributo in TRIBUTOS})

    @classmethod
    def from_percentuais(cls, data: Optional[Mapping[str, Any]]) -> "AliquotasRegime":
        data = data or {}
        return cls(**{tributo: percentual_para_pontos_base(data.get(tributo)) for tributo in TRIBUTOS})

    def to_dict(self) -> Dict[str, Optional[int]]:
        return asdict(self)

    def to_percentuais(self) -> Dict[str, Optional[Decimal]]:
        return {tributo: pontos_base_para_percentual(getattr(self, tributo)) for tributo in TRIBUTOS}


def aliquotas_do_regime(
    aliquotas: Mapping[str, Mapping[str, Any]], regime: Union[str, RegimeTributario]
) -> AliquotasRegime:
    """Busca o conjunto de alíquotas do regime no dicionário do serviço."""

    if not isinstance(regime, RegimeTributario):
        regime = RegimeTributario.parse(regime)
    return AliquotasRegime.from_dict((aliquotas or {}).get(regime.chave))
