from datetime import date, datetime, timedelta

import pytest

from painel_atendimentos.application.services.ingestion_service import normalizar_linha, normalizar_lote
from painel_atendimentos.application.services.session_service import DashboardSession, SessionRegistry
from painel_atendimentos.domain.entities.regra_tema import RegraTema
from painel_atendimentos.domain.exceptions import (
    RegistroNaoEncontradoError,
    ServicoExternoIndisponivelError,
    SessaoNaoEncontradaError,
)


def _registro(id, dia, canal="Chat", resumo=""):
    inicio = datetime(2024, 1, dia, 10, 0)
    return normalizar_linha(
        {
            "id": id,
            "canal": canal,
            "tipoCanal": "Web",
            "resumoConversa": resumo,
            "dataHoraInicio": inicio,
            "dataHoraFim": inicio + timedelta(minutes=10),
        },
        [],
    )


@pytest.fixture
def sessao():
    sessao = DashboardSession("s1")
    sessao.carregar([
        _registro("1", 1, resumo="segunda via de boleto"),
        _registro("2", 2, canal="Phone", resumo="erro no app"),
        _registro("3", 3, resumo=""),
    ])
    return sessao


# ==========================================
# REGISTROS
# ==========================================

def test_carregar_substitui_conjunto(sessao):
    sessao.carregar([_registro("9", 9)])
    assert [r.id for r in sessao.registros] == ["9"]


def test_limpar(sessao):
    sessao.limpar()
    assert sessao.registros == []
    assert sessao.resumo()["estatisticas"]["total"] == 0


def test_atualizar_tema_manual(sessao):
    atualizado = sessao.atualizar_tema("2", "Suporte")
    assert atualizado.tema == "Suporte"
    assert sessao.registros[1].tema == "Suporte"


def test_atualizar_tema_de_registro_inexistente(sessao):
    with pytest.raises(RegistroNaoEncontradoError):
        sessao.atualizar_tema("999", "Suporte")


def test_reclassificar_conta_alterados(sessao):
    regras = [RegraTema(id=1, name="Financeiro", keywords=("boleto",))]
    assert sessao.reclassificar(regras) == 1
    assert [r.tema for r in sessao.registros] == ["Financeiro", "Outros", "Outros"]
    assert sessao.reclassificar(regras) == 0


# ==========================================
# FILTROS
# ==========================================

def test_atualizar_filtros_mescla_parcial(sessao):
    sessao.atualizar_filtros(channels=frozenset({"Chat - Web"}))
    sessao.atualizar_filtros(start_date=date(2024, 1, 2))

    assert sessao.filtros.channels == frozenset({"Chat - Web"})
    assert sessao.filtros.start_date == date(2024, 1, 2)
    assert [r.id for r in sessao.registros_filtrados()] == ["3"]


def test_resetar_filtros(sessao):
    sessao.atualizar_filtros(only_no_interaction=True)
    assert sessao.registros_filtrados() == []

    sessao.resetar_filtros()
    assert len(sessao.registros_filtrados()) == 3


def test_filtrados_refletem_mudanca_de_tema(sessao):
    sessao.atualizar_filtros(themes=frozenset({"Suporte"}))
    assert sessao.registros_filtrados() == []

    sessao.atualizar_tema("2", "Suporte")
    assert [r.id for r in sessao.registros_filtrados()] == ["2"]


def test_resumo_usa_conjunto_filtrado(sessao):
    sessao.atualizar_filtros(channels=frozenset({"Phone - Web"}))
    resumo = sessao.resumo()
    assert resumo["estatisticas"]["total"] == 1
    assert resumo["por_canal"] == [{"nome": "Phone - Web", "total": 1}]


# ==========================================
# CLASSIFICAÇÃO EXTERNA
# ==========================================

def test_classificar_pendentes(sessao, fake_classificador_factory):
    classificador = fake_classificador_factory({"boleto": "Financeiro", "erro": "Suporte"})

    assert sessao.classificar_pendentes(classificador, ["Financeiro", "Suporte"]) == 2
    assert [r.tema for r in sessao.registros] == ["Financeiro", "Suporte", "Outros"]
    # registro sem resumo não é enviado
    assert classificador.chamadas == ["segunda via de boleto", "erro no app"]


def test_classificar_pendentes_respeita_limite(sessao, fake_classificador_factory):
    classificador = fake_classificador_factory({"boleto": "Financeiro", "erro": "Suporte"})
    assert sessao.classificar_pendentes(classificador, [], limite=1) == 1
    assert classificador.chamadas == ["segunda via de boleto"]


def test_falha_do_servico_mantem_o_que_ja_foi_classificado(sessao, fake_classificador_factory):
    classificador = fake_classificador_factory({"boleto": "Financeiro", "erro": "Suporte"}, falhar_apos=1)

    with pytest.raises(ServicoExternoIndisponivelError):
        sessao.classificar_pendentes(classificador, [])

    assert sessao.registros[0].tema == "Financeiro"
    assert sessao.registros[1].tema == "Outros"


# ==========================================
# REGISTRO DE SESSÕES
# ==========================================

def test_registry_cria_e_obtem():
    registry = SessionRegistry()
    sessao = registry.criar()
    assert registry.obter(sessao.session_id) is sessao
    assert registry.obter_ou_criar(sessao.session_id) is sessao
    assert registry.obter_ou_criar("nova").session_id == "nova"


def test_registry_sessoes_isoladas():
    registry = SessionRegistry()
    a, b = registry.criar("a"), registry.criar("b")
    a.carregar([_registro("1", 1)])
    assert b.registros == []


def test_registry_sessao_inexistente():
    registry = SessionRegistry()
    with pytest.raises(SessaoNaoEncontradaError):
        registry.obter("x")
    with pytest.raises(SessaoNaoEncontradaError):
        registry.remover("x")


def test_tema_manual_com_ids_repetidos_na_origem():
    linha = {"id": "7", "dataHoraInicio": "2024-01-01T10:00:00", "dataHoraFim": "2024-01-01T10:05:00"}
    sessao = DashboardSession("s1")
    sessao.carregar(normalizar_lote([linha, dict(linha)], []).registros)

    sessao.atualizar_tema("7", "Manual")

    assert [r.tema for r in sessao.registros] == ["Manual"]


class RelogioFalso:
    def __init__(self):
        self.agora = 0.0

    def __call__(self) -> float:
        return self.agora


def test_registry_expira_sessoes_ociosas():
    relogio = RelogioFalso()
    registry = SessionRegistry(ttl_segundos=60, relogio=relogio)
    registry.criar("antiga")

    relogio.agora = 61
    with pytest.raises(SessaoNaoEncontradaError):
        registry.obter("antiga")
    assert len(registry) == 0


def test_registry_acesso_renova_a_sessao():
    relogio = RelogioFalso()
    registry = SessionRegistry(ttl_segundos=60, relogio=relogio)
    registry.criar("ativa")

    relogio.agora = 50
    registry.obter("ativa")
    relogio.agora = 100
    assert registry.obter("ativa").session_id == "ativa"


def test_registry_criar_poda_expiradas():
    relogio = RelogioFalso()
    registry = SessionRegistry(ttl_segundos=60, relogio=relogio)
    for i in range(5):
        registry.criar(f"anonima-{i}")

    relogio.agora = 120
    registry.criar("nova")

    assert len(registry) == 1


def test_registry_limite_descarta_a_menos_usada():
    registry = SessionRegistry(max_sessoes=2, relogio=RelogioFalso())
    registry.criar("a")
    registry.criar("b")
    registry.obter("a")

    registry.criar("c")

    assert len(registry) == 2
    assert registry.obter("a")
    with pytest.raises(SessaoNaoEncontradaError):
        registry.obter("b")
