from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from painel_atendimentos.application.services import aggregation_service as agg
from painel_atendimentos.application.services.ingestion_service import normalizar_linha
from painel_atendimentos.domain.entities.regra_tema import RegraTema

REGRAS = [
    RegraTema(id=1, name="Financeiro", keywords=("boleto",)),
    RegraTema(id=2, name="Suporte", keywords=("erro",)),
]


def _registro(id, inicio, minutos, canal, tipo, casa, resumo):
    return normalizar_linha(
        {
            "id": id,
            "canal": canal,
            "tipoCanal": tipo,
            "casa": casa,
            "resumoConversa": resumo,
            "dataHoraInicio": inicio,
            "dataHoraFim": inicio + timedelta(minutes=minutos),
        },
        REGRAS,
    )


@pytest.fixture
def registros():
    return [
        _registro("1", datetime(2024, 1, 2, 10, 0), 10, "Chat", "Web", "Casa A", "boleto"),
        _registro("2", datetime(2024, 1, 1, 9, 0), 20, "Phone", "Voz", "Falta de Interação", "erro"),
        _registro("3", datetime(2024, 1, 2, 10, 30), 30, "Chat", "Web", "Casa A", "boleto vencido"),
        _registro("4", datetime(2024, 1, 3, 14, 0), 40, "Phone", "Voz", "Casa B", "outro assunto"),
    ]


def test_por_data_em_ordem_crescente(registros):
    assert agg.agrupar_por_data(registros) == [
        {"data": "2024-01-01", "total": 1},
        {"data": "2024-01-02", "total": 2},
        {"data": "2024-01-03", "total": 1},
    ]


def test_por_canal_empate_mantem_ordem_de_aparicao(registros):
    assert agg.agrupar_por_canal(registros) == [
        {"nome": "Chat - Web", "total": 2},
        {"nome": "Phone - Voz", "total": 2},
    ]


def test_soma_por_canal_igual_ao_total(registros):
    por_canal = agg.agrupar_por_canal(registros)
    assert sum(item["total"] for item in por_canal) == agg.estatisticas(registros)["total"]


def test_por_tema_ordena_e_limita(registros):
    assert agg.agrupar_por_tema(registros) == [
        {"nome": "Financeiro", "total": 2},
        {"nome": "Suporte", "total": 1},
        {"nome": "Outros", "total": 1},
    ]
    assert agg.agrupar_por_tema(registros, top_n=1) == [{"nome": "Financeiro", "total": 2}]


def test_registro_sem_tema_agrupa_em_outros(registros):
    registros = [replace(r, tema=None) for r in registros]
    assert agg.agrupar_por_tema(registros) == [{"nome": "Outros", "total": 4}]


def test_por_casa(registros):
    assert agg.agrupar_por_casa(registros)[0] == {"nome": "Casa A", "total": 2}


def test_estatisticas(registros):
    stats = agg.estatisticas(registros)
    assert stats["total"] == 4
    assert stats["duracao_media"] == pytest.approx(25.0)
    assert stats["sem_interacao"] == 1
    assert stats["percentual_sem_interacao"] == 25.0


def test_conjunto_vazio():
    assert agg.estatisticas([]) == {
        "total": 0,
        "duracao_media": 0.0,
        "sem_interacao": 0,
        "percentual_sem_interacao": 0.0,
    }
    assert agg.agrupar_por_data([]) == []
    assert agg.agrupar_por_canal([]) == []
    assert agg.agrupar_por_tema([], top_n=5) == []
    assert agg.mapa_calor([]) == []


def test_mapa_calor_domingo_e_zero(registros):
    # 2024-01-01 é segunda-feira
    assert agg.mapa_calor(registros) == [
        {"dia": 1, "hora": 9, "total": 1},
        {"dia": 2, "hora": 10, "total": 2},
        {"dia": 3, "hora": 14, "total": 1},
    ]
    domingo = _registro("5", datetime(2024, 1, 7, 8, 0), 5, "Chat", "Web", "Casa A", "")
    assert agg.mapa_calor([domingo]) == [{"dia": 0, "hora": 8, "total": 1}]


def test_resumo_geral(registros):
    resumo = agg.resumo_geral(registros, top_temas=2)
    assert resumo["estatisticas"]["total"] == 4
    assert resumo["total_canais"] == 2
    assert len(resumo["por_tema"]) == 2
    assert resumo["por_data"] == agg.agrupar_por_data(registros)
    assert resumo["mapa_calor"] == agg.mapa_calor(registros)
