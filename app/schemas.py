"""
Schemas (Pydantic) de entrada e saída da API.

As alíquotas trafegam como percentual (ex.: 4.65) e são convertidas para
pontos-base antes de chegar aos cadastros.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.services.aliquotas import AliquotasRegime, RegimeTributario


# Alíquotas -------------------------------------------------------------------


class AliquotasPercentuais(BaseModel):
    """Alíquotas de um regime em percentual (0 a 100); None = não se aplica."""

    issqn: Optional[Decimal] = Field(default=None, ge=0, le=100, decimal_places=2)
    inss: Optional[Decimal] = Field(default=None, ge=0, le=100, decimal_places=2)
    cs: Optional[Decimal] = Field(default=None, ge=0, le=100, decimal_places=2)
    irrf: Optional[Decimal] = Field(default=None, ge=0, le=100, decimal_places=2)

    def para_pontos_base(self) -> AliquotasRegime:
        return AliquotasRegime.from_percentuais(self.model_dump())


def _percentuais_numericos(dados: Optional[Dict[str, Any]]) -> Dict[str, Optional[float]]:
    # Na saída JSON o percentual vai como número, não como string de Decimal.
    return {
        tributo: float(valor) if valor is not None else None
        for tributo, valor in AliquotasRegime.from_dict(dados).to_percentuais().items()
    }


class AliquotasServico(BaseModel):
    sn: AliquotasPercentuais
    n: AliquotasPercentuais
    mei: AliquotasPercentuais

    def para_pontos_base(self) -> Dict[str, AliquotasRegime]:
        return {regime.chave: getattr(self, regime.chave).para_pontos_base() for regime in RegimeTributario}


class AliquotasServicoParcial(BaseModel):
    """Na atualização só os regimes enviados são trocados."""

    sn: Optional[AliquotasPercentuais] = None
    n: Optional[AliquotasPercentuais] = None
    mei: Optional[AliquotasPercentuais] = None

    def para_pontos_base(self) -> Dict[str, AliquotasRegime]:
        enviados = self.model_dump(exclude_unset=True)
        return {
            chave: getattr(self, chave).para_pontos_base()
            for chave in enviados
            if getattr(self, chave) is not None
        }


# Fornecedores ----------------------------------------------------------------


class FornecedorCreate(BaseModel):
    cnpj: str = Field(min_length=14, max_length=18)
    nome: str = Field(min_length=1, max_length=255)
    cidade: str = Field(min_length=1, max_length=120)
    regime_tributario: str = Field(min_length=1, max_length=3)
    observacao: Optional[str] = None


class FornecedorUpdate(BaseModel):
    cnpj: str
    nome: Optional[str] = Field(default=None, min_length=1, max_length=255)
    cidade: Optional[str] = Field(default=None, min_length=1, max_length=120)
    regime_tributario: Optional[str] = Field(default=None, min_length=1, max_length=3)
    observacao: Optional[str] = None


class FornecedorOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    cnpj: str
    nome: str
    cidade: str
    regime_tributario: str
    observacao: Optional[str] = None


class FornecedorChave(BaseModel):
    cnpj: str


# Serviços --------------------------------------------------------------------


class ServicoCreate(BaseModel):
    codigo: str = Field(min_length=1, max_length=60)
    descricao: str = Field(min_length=1, max_length=255)
    conta_debito: str = Field(min_length=1, max_length=30)
    aliquotas: AliquotasServico
    observacao: Optional[str] = None


class ServicoUpdate(BaseModel):
    codigo: str
    descricao: Optional[str] = Field(default=None, min_length=1, max_length=255)
    conta_debito: Optional[str] = Field(default=None, min_length=1, max_length=30)
    aliquotas: Optional[AliquotasServicoParcial] = None
    observacao: Optional[str] = None


class ServicoOut(BaseModel):
    codigo: str
    descricao: str
    conta_debito: str
    aliquotas: Dict[str, Dict[str, Optional[float]]]
    observacao: Optional[str] = None

    @classmethod
    def from_model(cls, servico: Any) -> "ServicoOut":
        return cls(
            codigo=servico.codigo,
            descricao=servico.descricao,
            conta_debito=servico.conta_debito,
            aliquotas={
                regime.chave: _percentuais_numericos((servico.aliquotas or {}).get(regime.chave))
                for regime in RegimeTributario
            },
            observacao=servico.observacao,
        )


class ServicoChave(BaseModel):
    codigo: str


# Notas fiscais ---------------------------------------------------------------


class NotaFiscalCreate(BaseModel):
    fornecedor_cnpj: str
    servico_codigo: str
    data_entrada: Optional[date] = None
    data_emissao: date
    data_vencimento: date
    numero_nota: str = Field(min_length=1, max_length=60)
    valor_centavos: int = Field(ge=0)
    deducao_material_centavos: int = Field(default=0, ge=0)


class NotaFiscalUpdate(BaseModel):
    id: int
    fornecedor_cnpj: Optional[str] = None
    servico_codigo: Optional[str] = None
    data_entrada: Optional[date] = None
    data_emissao: Optional[date] = None
    data_vencimento: Optional[date] = None
    numero_nota: Optional[str] = Field(default=None, min_length=1, max_length=60)
    valor_centavos: Optional[int] = Field(default=None, ge=0)
    deducao_material_centavos: Optional[int] = Field(default=None, ge=0)


class NotaFiscalOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    fornecedor_cnpj: str
    servico_codigo: str
    data_entrada: date
    data_emissao: date
    data_vencimento: date
    numero_nota: str
    valor_centavos: int
    deducao_material_centavos: int
    inss_centavos: int
    cs_centavos: int
    irrf_centavos: int
    issqn_centavos: int
    valor_liquido_centavos: int


class IdChave(BaseModel):
    id: int


# Usuários --------------------------------------------------------------------


class UsuarioCreate(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    senha: str = Field(min_length=6, max_length=72)
    ativo: bool = True


class UsuarioUpdate(BaseModel):
    id: int
    email: Optional[str] = Field(default=None, min_length=3, max_length=255)
    senha: Optional[str] = Field(default=None, min_length=6, max_length=72)
    ativo: Optional[bool] = None


class UsuarioOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    ativo: bool
    criado_em: datetime
    atualizado_em: datetime


class Login(BaseModel):
    email: str
    senha: str


# Auditoria -------------------------------------------------------------------


class LogAuditoriaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    usuario_id: Optional[int] = None
    acao: str
    tabela: str
    registro_id: str
    dados_anteriores: Optional[Dict[str, Any]] = None
    dados_novos: Optional[Dict[str, Any]] = None
    endereco_ip: Optional[str] = None
    user_agent: Optional[str] = None
    criado_em: datetime
