"""
Carga de dados de demonstração: um fornecedor, um serviço, um usuário e uma
nota calculada. Para rodar:

    python -m app.seed

"""

from __future__ import annotations

from datetime import date

from sqlalchemy.orm import Session

from app.config import carregar_configuracoes
from app.database import SessionLocal, configurar_engine, create_all_tables
from app.services.aliquotas import AliquotasRegime
from app.services.fornecedores import RegistroFornecedores
from app.services.notas_fiscais import RegistroNotasFiscais
from app.services.servicos import RegistroServicos
from app.services.usuarios import RegistroUsuarios

FORNECEDOR_DEMO = {
    "cnpj": "07835120001710",
    "nome": "Aguajato Transportes",
    "cidade": "Campinas",
    "regime_tributario": "N",
    "observacao": "Fornecedor de teste",
}

SERVICO_DEMO = {
    "codigo": "103M-Consultoria",
    "descricao": "Processamento de dados e congêneres.",
    "conta_debito": "3",
    "aliquotas": {
        "sn": AliquotasRegime(issqn=100),
        "n": AliquotasRegime(issqn=500, inss=1100, cs=465, irrf=150),
        "mei": AliquotasRegime(),
    },
}

USUARIO_DEMO = {"email": "admin@backoffice.local", "senha": "troque123"}


def carregar_dados_demo(db: Session) -> None:
    """Cria os registros de demonstração que ainda não existirem."""

    fornecedores = RegistroFornecedores(db)
    if fornecedores.buscar(FORNECEDOR_DEMO["cnpj"]) is None:
        fornecedores.criar(FORNECEDOR_DEMO)

    servicos = RegistroServicos(db)
    if servicos.buscar(SERVICO_DEMO["codigo"]) is None:
        servicos.criar(SERVICO_DEMO)

    usuarios = RegistroUsuarios(db)
    if usuarios.buscar_por_email(USUARIO_DEMO["email"]) is None:
        usuarios.criar(USUARIO_DEMO)

    notas = RegistroNotasFiscais(db)
    if not notas.listar():
        nota = notas.criar(
            {
                "fornecedor_cnpj": FORNECEDOR_DEMO["cnpj"],
                "servico_codigo": SERVICO_DEMO["codigo"],
                "data_emissao": date(2025, 10, 15),
                "data_vencimento": date(2025, 10, 15),
                "numero_nota": "INV-TEST-001",
                "valor_centavos": 20000,
                "deducao_material_centavos": 10000,
            }
        )
        print(f"Nota {nota.numero_nota}: líquido {nota.valor_liquido_centavos} centavos")


def main() -> None:
    settings = carregar_configuracoes()
    configurar_engine(settings.database_url)
    create_all_tables()

    db = SessionLocal()
    try:
        carregar_dados_demo(db)
        print("Dados de demonstração carregados.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
