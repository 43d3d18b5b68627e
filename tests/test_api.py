from __future__ import annotations

import io
from pathlib import Path

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from app.security import LimitadorJanelaDeslizante

CNPJ_SN = "12345678000199"

FORNECEDOR_PAYLOAD = {
    "cnpj": "12.345.678/0001-99",
    "nome": "Acme Serviços Ltda",
    "cidade": "Campinas",
    "regime_tributario": "sn",
}

NOTA_PAYLOAD = {
    "fornecedor_cnpj": CNPJ_SN,
    "servico_codigo": "103M-Consultoria",
    "data_emissao": "2025-10-15",
    "data_vencimento": "2025-11-15",
    "numero_nota": "INV-TEST-001",
    "valor_centavos": 20000,
    "deducao_material_centavos": 10000,
}


def _delete(client: TestClient, url: str, corpo: dict):
    return client.request("DELETE", url, json=corpo)


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


# --- Sessão ---


@pytest.mark.parametrize(
    "url",
    ["/api/suppliers", "/api/services", "/api/invoices", "/api/users", "/api/audit-logs"],
)
def test_rotas_exigem_sessao(client, url):
    resp = client.get(url)
    assert resp.status_code == 401
    assert resp.json() == {"error": "Não autorizado"}


def test_sem_sessao_nao_chega_ao_cadastro(client, monkeypatch):
    chamadas = []

    class RegistroEspiao:
        def __init__(self, *args, **kwargs):
            chamadas.append(args)

    monkeypatch.setattr("app.routers.fornecedores.RegistroFornecedores", RegistroEspiao)
    resp = client.post("/api/suppliers", json=FORNECEDOR_PAYLOAD)
    assert resp.status_code == 401
    assert chamadas == []


def test_login_com_senha_errada(client, usuario):
    resp = client.post("/api/auth/login", json={"email": "admin@teste.com.br", "senha": "errada"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Credenciais inválidas"}
    assert client.get("/api/suppliers").status_code == 401


def test_login_devolve_usuario_sem_senha(client, usuario):
    resp = client.post(
        "/api/auth/login", json={"email": "ADMIN@teste.com.br", "senha": "senha-forte-123"}
    )
    assert resp.status_code == 200
    corpo = resp.json()
    assert corpo["success"] is True
    assert corpo["usuario"]["email"] == "admin@teste.com.br"
    assert "senha_hash" not in corpo["usuario"]


def test_logout_encerra_sessao(client_logado):
    assert client_logado.get("/api/suppliers").status_code == 200
    assert client_logado.post("/api/auth/logout").json() == {"success": True}
    assert client_logado.get("/api/suppliers").status_code == 401


# --- Limite de requisições ---


def test_limite_de_requisicoes(app, client):
    app.state.limitador = LimitadorJanelaDeslizante(limite=3, janela_segundos=60)
    for _ in range(3):
        assert client.get("/api/suppliers").status_code == 401
    resp = client.get("/api/suppliers")
    assert resp.status_code == 429
    assert "error" in resp.json()


def test_limite_vale_para_o_login(app, client, usuario):
    app.state.limitador = LimitadorJanelaDeslizante(limite=1, janela_segundos=60)
    credenciais = {"email": "admin@teste.com.br", "senha": "senha-forte-123"}
    assert client.post("/api/auth/login", json=credenciais).status_code == 200
    assert client.post("/api/auth/login", json=credenciais).status_code == 429


# --- Fornecedores ---


def test_crud_de_fornecedor(client_logado):
    resp = client_logado.post("/api/suppliers", json=FORNECEDOR_PAYLOAD)
    assert resp.status_code == 201
    criado = resp.json()
    assert criado["cnpj"] == CNPJ_SN
    assert criado["nome"] == "ACME SERVIÇOS LTDA"
    assert criado["regime_tributario"] == "SN"

    assert client_logado.get(f"/api/suppliers/{CNPJ_SN}").json() == criado
    assert [f["cnpj"] for f in client_logado.get("/api/suppliers").json()] == [CNPJ_SN]

    resp = client_logado.patch("/api/suppliers", json={"cnpj": CNPJ_SN, "cidade": "Itu"})
    assert resp.status_code == 200
    assert resp.json()["cidade"] == "Itu"
    assert resp.json()["nome"] == "ACME SERVIÇOS LTDA"

    resp = _delete(client_logado, "/api/suppliers", {"cnpj": CNPJ_SN})
    assert resp.json() == {"success": True}

    resp = client_logado.get(f"/api/suppliers/{CNPJ_SN}")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Fornecedor não encontrado"}


def test_fornecedor_duplicado(client_logado):
    client_logado.post("/api/suppliers", json=FORNECEDOR_PAYLOAD)
    resp = client_logado.post("/api/suppliers", json=FORNECEDOR_PAYLOAD)
    assert resp.status_code == 400
    assert "error" in resp.json()


def test_fornecedor_payload_invalido(client_logado):
    resp = client_logado.post("/api/suppliers", json={"cnpj": CNPJ_SN})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Dados inválidos"}


def test_fornecedor_regime_invalido(client_logado):
    payload = dict(FORNECEDOR_PAYLOAD, regime_tributario="LP")
    assert client_logado.post("/api/suppliers", json=payload).status_code == 400


def test_remover_fornecedor_inexistente(client_logado):
    resp = _delete(client_logado, "/api/suppliers", {"cnpj": CNPJ_SN})
    assert resp.status_code == 404


# --- Serviços ---


def test_servico_trafega_percentuais(client_logado, servico_payload):
    resp = client_logado.post("/api/services", json=servico_payload)
    assert resp.status_code == 201
    aliquotas = resp.json()["aliquotas"]
    assert aliquotas["n"] == {"issqn": 5.0, "inss": 11.0, "cs": 4.65, "irrf": 1.5}
    assert aliquotas["mei"] == {"issqn": None, "inss": None, "cs": None, "irrf": None}

    resp = client_logado.patch(
        "/api/services",
        json={"codigo": "103M-Consultoria", "aliquotas": {"mei": {"issqn": 2}}},
    )
    assert resp.status_code == 200
    aliquotas = resp.json()["aliquotas"]
    assert aliquotas["mei"]["issqn"] == 2.0
    assert aliquotas["n"]["cs"] == 4.65


def test_servico_aliquota_fora_da_faixa(client_logado, servico_payload):
    servico_payload["aliquotas"]["sn"]["inss"] = 101
    assert client_logado.post("/api/services", json=servico_payload).status_code == 400


# --- Notas fiscais ---


def test_criar_nota_calcula_liquido(client_logado, fornecedor, servico):
    resp = client_logado.post("/api/invoices", json=NOTA_PAYLOAD)
    assert resp.status_code == 201
    nota = resp.json()
    assert nota["inss_centavos"] == 1100
    assert nota["issqn_centavos"] == 200
    assert nota["valor_liquido_centavos"] == 18700

    resp = client_logado.get("/api/invoices", params={"data_vencimento": "2025-11-15"})
    assert [n["id"] for n in resp.json()] == [nota["id"]]
    assert client_logado.get("/api/invoices", params={"data_emissao": "2000-01-01"}).json() == []


def test_atualizar_nota_recalcula(client_logado, fornecedor, servico):
    nota = client_logado.post("/api/invoices", json=NOTA_PAYLOAD).json()
    resp = client_logado.patch(
        "/api/invoices",
        json={"id": nota["id"], "valor_centavos": 10000, "deducao_material_centavos": 0},
    )
    assert resp.status_code == 200
    assert resp.json()["valor_liquido_centavos"] == 8800


def test_nota_com_fornecedor_inexistente(client_logado, servico):
    resp = client_logado.post("/api/invoices", json=NOTA_PAYLOAD)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Fornecedor não encontrado"}
    assert client_logado.get("/api/invoices").json() == []


def test_nota_com_servico_inexistente(client_logado, fornecedor):
    resp = client_logado.post("/api/invoices", json=NOTA_PAYLOAD)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Serviço não encontrado"}


def test_nota_com_deducao_maior_que_valor(client_logado, fornecedor, servico):
    payload = dict(NOTA_PAYLOAD, deducao_material_centavos=30000)
    assert client_logado.post("/api/invoices", json=payload).status_code == 400


def test_remover_nota(client_logado, fornecedor, servico):
    nota = client_logado.post("/api/invoices", json=NOTA_PAYLOAD).json()
    assert _delete(client_logado, "/api/invoices", {"id": nota["id"]}).json() == {"success": True}
    assert client_logado.get(f"/api/invoices/{nota['id']}").status_code == 404


def test_relatorio_csv(client_logado, settings, fornecedor, servico):
    client_logado.post("/api/invoices", json=NOTA_PAYLOAD)
    resp = client_logado.get("/api/invoices/report", params={"formato": "csv"})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")

    df = pd.read_csv(io.StringIO(resp.text))
    assert len(df) == 1
    assert df.loc[0, "valor_liquido"] == pytest.approx(187.0)
    assert df.loc[0, "fornecedor_nome"] == "ACME SERVIÇOS LTDA"

    # O arquivo gerado para a resposta não fica na pasta.
    assert list(Path(settings.reports_dir).glob("*.csv")) == []


def test_relatorio_formato_invalido(client_logado):
    resp = client_logado.get("/api/invoices/report", params={"formato": "pdf"})
    assert resp.status_code == 400


# --- Usuários e auditoria ---


def test_usuarios_nunca_devolvem_senha(client_logado):
    resp = client_logado.post(
        "/api/users", json={"email": "novo@teste.com.br", "senha": "senha123"}
    )
    assert resp.status_code == 201
    assert "senha" not in resp.json()
    assert "senha_hash" not in resp.json()
    for usuario in client_logado.get("/api/users").json():
        assert "senha_hash" not in usuario


def test_alteracoes_pela_api_vao_para_auditoria(client_logado, usuario):
    client_logado.post("/api/suppliers", json=FORNECEDOR_PAYLOAD, headers={"User-Agent": "pytest"})

    logs = client_logado.get("/api/audit-logs").json()
    assert len(logs) == 1
    assert logs[0]["acao"] == "create"
    assert logs[0]["tabela"] == "fornecedores"
    assert logs[0]["registro_id"] == CNPJ_SN
    assert logs[0]["usuario_id"] == usuario.id
    assert logs[0]["user_agent"] == "pytest"

    assert client_logado.get("/api/audit-logs", params={"data": "2000-01-01"}).json() == []


# --- Erros inesperados ---


def test_erro_inesperado_vira_500(app, usuario, monkeypatch):
    def falhar(self):
        raise RuntimeError("banco fora do ar")

    monkeypatch.setattr("app.services.fornecedores.RegistroFornecedores.listar", falhar)
    cliente = TestClient(app, raise_server_exceptions=False)
    cliente.post("/api/auth/login", json={"email": "admin@teste.com.br", "senha": "senha-forte-123"})
    resp = cliente.get("/api/suppliers")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Erro interno"}


# --- Erros do roteamento ---


def test_rota_inexistente_responde_no_formato_de_erro(client_logado):
    resp = client_logado.get("/api/inexistente")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Not Found"}


def test_metodo_nao_permitido_responde_no_formato_de_erro(client_logado):
    resp = client_logado.put("/api/suppliers", json={})
    assert resp.status_code == 405
    assert resp.json() == {"error": "Method Not Allowed"}


def test_cabecalho_com_requisicoes_restantes(app, client_logado):
    app.state.limitador = LimitadorJanelaDeslizante(limite=5, janela_segundos=60)
    assert client_logado.get("/api/suppliers").headers["x-ratelimit-remaining"] == "4"
    assert client_logado.get("/api/suppliers").headers["x-ratelimit-remaining"] == "3"


def test_servico_aliquota_com_mais_de_duas_casas(client_logado, servico_payload):
    servico_payload["aliquotas"]["n"]["cs"] = 4.655
    resp = client_logado.post("/api/services", json=servico_payload)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Dados inválidos"}
