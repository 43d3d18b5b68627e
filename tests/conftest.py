from __future__ import annotations

from datetime import date
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import Settings
from app.database import create_all_tables, criar_engine, get_db
from app.main import create_app
from app.services.aliquotas import AliquotasRegime
from app.services.fornecedores import RegistroFornecedores
from app.services.servicos import RegistroServicos
from app.services.usuarios import RegistroUsuarios

CNPJ_SN = "12345678000199"
CNPJ_N = "98765432000110"
EMAIL_ADMIN = "admin@teste.com.br"
SENHA_ADMIN = "senha-forte-123"


def _fornecedor_fake(regime: str = "SN") -> SimpleNamespace:
    return SimpleNamespace(regime_tributario=regime)


def _servico_fake(**por_regime: AliquotasRegime) -> SimpleNamespace:
    aliquotas = {chave: AliquotasRegime().to_dict() for chave in ("sn", "n", "mei")}
    for chave, valor in por_regime.items():
        aliquotas[chave] = valor.to_dict()
    return SimpleNamespace(aliquotas=aliquotas)


# --- Objetos simples para o calculador (sem banco) ---


@pytest.fixture
def fornecedor_fake():
    return _fornecedor_fake


@pytest.fixture
def servico_fake():
    return _servico_fake


# --- Banco ---


@pytest.fixture
def engine():
    engine = criar_engine("sqlite://", poolclass=StaticPool)
    create_all_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


# --- Dados ---


@pytest.fixture
def fornecedor_dict() -> dict:
    return {
        "cnpj": CNPJ_SN,
        "nome": "Acme Serviços Ltda",
        "cidade": "Campinas",
        "regime_tributario": "SN",
        "observacao": None,
    }


@pytest.fixture
def servico_dict() -> dict:
    """Serviço no formato dos cadastros (pontos-base)."""
    return {
        "codigo": "103M-Consultoria",
        "descricao": "Processamento de dados e congêneres.",
        "conta_debito": "3",
        "aliquotas": {
            "sn": AliquotasRegime(issqn=100, inss=1100),
            "n": AliquotasRegime(issqn=500, inss=1100, cs=465, irrf=150),
            "mei": AliquotasRegime(),
        },
    }


@pytest.fixture
def servico_payload() -> dict:
    """Mesmo serviço no formato da API (percentuais)."""
    return {
        "codigo": "103M-Consultoria",
        "descricao": "Processamento de dados e congêneres.",
        "conta_debito": "3",
        "aliquotas": {
            "sn": {"issqn": 1.0, "inss": 11.0, "cs": None, "irrf": None},
            "n": {"issqn": 5.0, "inss": 11.0, "cs": 4.65, "irrf": 1.5},
            "mei": {"issqn": None, "inss": None, "cs": None, "irrf": None},
        },
    }


@pytest.fixture
def nota_dict() -> dict:
    return {
        "fornecedor_cnpj": CNPJ_SN,
        "servico_codigo": "103M-Consultoria",
        "data_emissao": date(2025, 10, 15),
        "data_vencimento": date(2025, 11, 15),
        "numero_nota": "INV-TEST-001",
        "valor_centavos": 20000,
        "deducao_material_centavos": 10000,
    }


@pytest.fixture
def fornecedor(db, fornecedor_dict):
    return RegistroFornecedores(db).criar(fornecedor_dict)


@pytest.fixture
def servico(db, servico_dict):
    return RegistroServicos(db).criar(servico_dict)


@pytest.fixture
def usuario(db):
    return RegistroUsuarios(db).criar({"email": EMAIL_ADMIN, "senha": SENHA_ADMIN})


# --- API ---


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url="sqlite://",
        session_secret="segredo-de-teste",
        rate_limit_requests=1000,
        rate_limit_window_seconds=60,
        reports_dir=str(tmp_path / "relatorios"),
    )


@pytest.fixture
def app(settings, session_factory):
    app = create_app(settings)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def client_logado(client, usuario) -> TestClient:
    resp = client.post("/api/auth/login", json={"email": EMAIL_ADMIN, "senha": SENHA_ADMIN})
    assert resp.status_code == 200
    return client
