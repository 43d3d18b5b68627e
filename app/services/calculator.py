"""
Cálculo das retenções e do valor líquido a receber de uma nota de serviço.

Fluxo principal:
1) Escolher as alíquotas do serviço pelo regime tributário do fornecedor.
2) INSS sobre (valor - dedução de material); a dedução só reduz essa base.
3) CS e IRRF sobre o valor bruto, retidos apenas quando o valor do tributo
   chega a R$ 10,00 (1000 centavos). Abaixo disso a retenção é dispensada
   por inteiro.
4) ISSQN sobre o valor bruto, sem piso.
5) Líquido = bruto - soma das retenções.

As contas são feitas em Decimal; cada retenção é arredondada para o centavo
(meio para cima) e o líquido é o bruto menos a soma das retenções já
arredondadas, de modo que o detalhamento gravado na nota sempre fecha.
O módulo não acessa o banco: quem chama busca fornecedor e serviço antes.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from app.exceptions import ValidationError
from app.services.aliquotas import PONTOS_BASE_MAXIMO, AliquotasRegime, aliquotas_do_regime

# Piso de retenção de CS e IRRF: R$ 10,00.
PISO_RETENCAO_CENTAVOS = 1000


@dataclass(frozen=True)
class AliquotasSubstitutas:
    """Alíquotas avulsas (pontos-base) que valem só para um cálculo."""

    inss: Optional[int] = None
    cs: Optional[int] = None
    issqn: Optional[int] = None


@dataclass(frozen=True)
class RetencoesNota:
    """Resultado do cálculo, tudo em centavos."""

    inss: int = 0
    cs: int = 0
    irrf: int = 0
    issqn: int = 0
    valor_liquido: int = 0

    @property
    def total(self) -> int:
        return self.inss + self.cs + self.irrf + self.issqn


def _aplicar_aliquota(base_centavos: int, pontos_base: int) -> Decimal:
    return Decimal(base_centavos) * Decimal(pontos_base) / Decimal(PONTOS_BASE_MAXIMO)


def _arredondar(valor: Decimal) -> int:
    return int(valor.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _aplicar_substituicoes(
    aliquotas: AliquotasRegime, substituicoes: Optional[AliquotasSubstitutas]
) -> AliquotasRegime:
    if substituicoes is None:
        return aliquotas
    alteracoes = {
        tributo: valor
        for tributo, valor in (
            ("inss", substituicoes.inss),
            ("cs", substituicoes.cs),
            ("issqn", substituicoes.issqn),
        )
        if valor is not None
    }
    return replace(aliquotas, **alteracoes)


def calcular_retencoes(
    fornecedor: Any,
    servico: Any,
    valor_centavos: int,
    deducao_material_centavos: int = 0,
    substituicoes: Optional[AliquotasSubstitutas] = None,
) -> RetencoesNota:
    """
    Calcula as retenções de INSS, CS, IRRF e ISSQN de uma nota.

    - `fornecedor`: qualquer objeto com `regime_tributario` (ex.: Fornecedor).
    - `servico`: qualquer objeto com `aliquotas` no formato do modelo Servico.
    - `valor_centavos`: valor bruto da nota.
    - `deducao_material_centavos`: material aplicado, abatido só da base do INSS.
    - `substituicoes`: alíquotas avulsas que substituem as do serviço.
    """

    deducao_material_centavos = deducao_material_centavos or 0
    if valor_centavos is None or valor_centavos < 0:
        raise ValidationError("Valor da nota deve ser maior ou igual a zero")
    if deducao_material_centavos < 0:
        raise ValidationError("Dedução de material deve ser maior ou igual a zero")
    if deducao_material_centavos > valor_centavos:
        raise ValidationError("Dedução de material não pode superar o valor da nota")

    aliquotas = aliquotas_do_regime(servico.aliquotas, fornecedor.regime_tributario)
    aliquotas = _aplicar_substituicoes(aliquotas, substituicoes)

    inss = Decimal(0)
    if aliquotas.inss is not None:
        inss = _aplicar_aliquota(valor_centavos - deducao_material_centavos, aliquotas.inss)

    cs = Decimal(0)
    if aliquotas.cs is not None:
        cs = _aplicar_aliquota(valor_centavos, aliquotas.cs)
        if cs < PISO_RETENCAO_CENTAVOS:
            cs = Decimal(0)

    irrf = Decimal(0)
    if aliquotas.irrf is not None:
        irrf = _aplicar_aliquota(valor_centavos, aliquotas.irrf)
        if irrf < PISO_RETENCAO_CENTAVOS:
            irrf = Decimal(0)

    issqn = Decimal(0)
    if aliquotas.issqn is not None:
        issqn = _aplicar_aliquota(valor_centavos, aliquotas.issqn)

    retencoes = RetencoesNota(
        inss=_arredondar(inss),
        cs=_arredondar(cs),
        irrf=_arredondar(irrf),
        issqn=_arredondar(issqn),
    )
    return replace(retencoes, valor_liquido=valor_centavos - retencoes.total)


def calcular_valor_liquido(
    fornecedor: Any,
    servico: Any,
    valor_centavos: int,
    deducao_material_centavos: int = 0,
    substituicoes: Optional[AliquotasSubstitutas] = None,
) -> int:
    """Atalho que devolve só o valor líquido em centavos."""

    return calcular_retencoes(
        fornecedor, servico, valor_centavos, deducao_material_centavos, substituicoes
    ).valor_liquido
