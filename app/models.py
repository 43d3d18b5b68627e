"""
Modelos (tabelas) do banco de dados do back office de notas de serviço.
Cada classe representa uma tabela usando o SQLAlchemy ORM.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .database import Base


def _agora() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Fornecedor(Base):
    """
    Prestador de serviço, identificado pelo CNPJ.
    O regime tributário (SN, N ou MEI) decide quais alíquotas do serviço valem.
    """

    __tablename__ = "fornecedores"

    cnpj: str = Column(String(14), primary_key=True, index=True)
    nome: str = Column(String(255), unique=True, nullable=False)
    cidade: str = Column(String(120), nullable=False)
    regime_tributario: str = Column(String(3), nullable=False)
    observacao: Optional[str] = Column(Text, nullable=True)

    notas_fiscais: List["NotaFiscal"] = relationship("NotaFiscal", back_populates="fornecedor")


class Servico(Base):
    """
    Serviço contratado e suas alíquotas de retenção.

    `aliquotas` guarda um dicionário por regime ("sn", "n", "mei"), cada um com
    issqn, inss, cs e irrf em pontos-base (1100 = 11,00%) ou None.
    """

    __tablename__ = "servicos"

    codigo: str = Column(String(60), primary_key=True, index=True)
    descricao: str = Column(String(255), nullable=False)
    conta_debito: str = Column(String(30), nullable=False)
    aliquotas: Dict[str, Dict[str, Any]] = Column(JSON, nullable=False)
    observacao: Optional[str] = Column(Text, nullable=True)

    notas_fiscais: List["NotaFiscal"] = relationship("NotaFiscal", back_populates="servico")


class NotaFiscal(Base):
    """
    Nota fiscal de serviço recebida. As retenções e o valor líquido são
    calculados na criação e ficam gravados junto com a nota.
    """

    __tablename__ = "notas_fiscais"

    id: int = Column(Integer, primary_key=True, index=True, autoincrement=True)
    fornecedor_cnpj: str = Column(
        String(14), ForeignKey("fornecedores.cnpj"), nullable=False, index=True
    )
    servico_codigo: str = Column(
        String(60), ForeignKey("servicos.codigo"), nullable=False, index=True
    )
    data_entrada: date = Column(Date, nullable=False, default=date.today)
    data_emissao: date = Column(Date, nullable=False)
    data_vencimento: date = Column(Date, nullable=False)
    numero_nota: str = Column(String(60), nullable=False)
    valor_centavos: int = Column(Integer, nullable=False)
    deducao_material_centavos: int = Column(Integer, nullable=False, default=0)

    # Resultado do cálculo de retenções (todos em centavos).
    inss_centavos: int = Column(Integer, nullable=False, default=0)
    cs_centavos: int = Column(Integer, nullable=False, default=0)
    irrf_centavos: int = Column(Integer, nullable=False, default=0)
    issqn_centavos: int = Column(Integer, nullable=False, default=0)
    valor_liquido_centavos: int = Column(Integer, nullable=False)

    fornecedor: "Fornecedor" = relationship("Fornecedor", back_populates="notas_fiscais")
    servico: "Servico" = relationship("Servico", back_populates="notas_fiscais")


class Usuario(Base):
    """Credenciais de acesso ao back office. A senha fica só como hash bcrypt."""

    __tablename__ = "usuarios"

    id: int = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email: str = Column(String(255), unique=True, nullable=False, index=True)
    senha_hash: str = Column(String(255), nullable=False)
    ativo: bool = Column(Boolean, default=True, nullable=False)
    criado_em: datetime = Column(DateTime, nullable=False, default=_agora)
    atualizado_em: datetime = Column(DateTime, nullable=False, default=_agora, onupdate=_agora)


class LogAuditoria(Base):
    """
    Registro de auditoria das alterações feitas pela API.
    Só recebe inserts; nunca é alterado nem removido pela aplicação.
    """

    __tablename__ = "logs_auditoria"

    id: int = Column(Integer, primary_key=True, index=True, autoincrement=True)
    usuario_id: Optional[int] = Column(Integer, nullable=True, index=True)
    acao: str = Column(String(20), nullable=False)
    tabela: str = Column(String(60), nullable=False)
    registro_id: str = Column(String(60), nullable=False)
    dados_anteriores: Optional[Dict[str, Any]] = Column(JSON, nullable=True)
    dados_novos: Optional[Dict[str, Any]] = Column(JSON, nullable=True)
    endereco_ip: Optional[str] = Column(String(64), nullable=True)
    user_agent: Optional[str] = Column(String(255), nullable=True)
    criado_em: datetime = Column(DateTime, nullable=False, default=_agora, index=True)
