import pytest
from pydantic import ValidationError

from painel_atendimentos.application.dto.theme_rule_schema import (
    ThemeRuleCreateSchema,
    ThemeRuleUpdateSchema,
)
from painel_atendimentos.domain.exceptions import RegraInvalidaError, RegraNaoEncontradaError
from painel_atendimentos.infrastructure.repositories.theme_rule_repository import ThemeRuleRepository


@pytest.fixture
def repo(db):
    return ThemeRuleRepository(db)


def test_criar_e_listar_em_ordem_de_criacao(repo):
    repo.criar(ThemeRuleCreateSchema(name="Suporte", keywords=["erro"]))
    repo.criar(ThemeRuleCreateSchema(name="Financeiro", keywords=["boleto", "fatura"]))

    regras = repo.listar()

    assert [r.name for r in regras] == ["Suporte", "Financeiro"]
    assert regras[1].keywords == ("boleto", "fatura")
    assert regras[0].created_at is not None


def test_schema_limpa_nome_e_keywords():
    dados = ThemeRuleCreateSchema(name="  Financeiro ", keywords=["boleto", " ", "", " fatura "])
    assert dados.name == "Financeiro"
    assert dados.keywords == ["boleto", "fatura"]


@pytest.mark.parametrize("payload", [
    {"name": "   ", "keywords": ["boleto"]},
    {"name": "Financeiro", "keywords": []},
    {"name": "Financeiro", "keywords": [" ", ""]},
])
def test_schema_rejeita_entrada_invalida(payload):
    with pytest.raises(ValidationError):
        ThemeRuleCreateSchema(**payload)


def test_nome_duplicado(repo):
    repo.criar(ThemeRuleCreateSchema(name="Financeiro", keywords=["boleto"]))
    with pytest.raises(RegraInvalidaError) as exc:
        repo.criar(ThemeRuleCreateSchema(name="Financeiro", keywords=["fatura"]))
    assert exc.value.field == "name"
    assert len(repo.listar()) == 1


def test_atualizar_parcial(repo):
    regra = repo.criar(ThemeRuleCreateSchema(name="Financeiro", keywords=["boleto"]))

    atualizada = repo.atualizar(regra.id, ThemeRuleUpdateSchema(keywords=["fatura"]))

    assert atualizada.name == "Financeiro"
    assert atualizada.keywords == ("fatura",)
    assert atualizada.created_at == regra.created_at


def test_atualizar_para_nome_existente(repo):
    repo.criar(ThemeRuleCreateSchema(name="Financeiro", keywords=["boleto"]))
    suporte = repo.criar(ThemeRuleCreateSchema(name="Suporte", keywords=["erro"]))

    with pytest.raises(RegraInvalidaError):
        repo.atualizar(suporte.id, ThemeRuleUpdateSchema(name="Financeiro"))
    # renomear para o próprio nome é permitido
    assert repo.atualizar(suporte.id, ThemeRuleUpdateSchema(name="Suporte")).name == "Suporte"


def test_regra_inexistente(repo):
    with pytest.raises(RegraNaoEncontradaError):
        repo.obter(99)
    with pytest.raises(RegraNaoEncontradaError):
        repo.atualizar(99, ThemeRuleUpdateSchema(name="X"))
    with pytest.raises(RegraNaoEncontradaError):
        repo.remover(99)


def test_remover(repo):
    regra = repo.criar(ThemeRuleCreateSchema(name="Financeiro", keywords=["boleto"]))
    repo.remover(regra.id)
    assert repo.listar() == []
