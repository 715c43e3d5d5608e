"""
Agregações do dashboard sobre o conjunto de atendimentos já filtrado.

Todas as funções são puras. Empates na ordenação preservam a ordem em que o
grupo apareceu pela primeira vez (groupby sem ordenação + sort estável), de
modo que a soma das contagens por canal é sempre igual ao total.
"""

from typing import Any, Dict, List, Optional, Sequence
import pandas as pd
from painel_atendimentos.application.services.theme_classifier import TEMA_PADRAO
from painel_atendimentos.domain.entities.atendimento import Atendimento

TOP_TEMAS_PADRAO = 5

COLUNAS = [
    "data",
    "canal_normalizado",
    "tema",
    "casa",
    "duracao_minutos",
    "flag_falta_interacao",
    "dia",
    "hora",
]


def _frame(registros: Sequence[Atendimento]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "data": r.data,
                "canal_normalizado": r.canal_normalizado,
                "tema": r.tema or TEMA_PADRAO,
                "casa": r.casa,
                "duracao_minutos": r.duracao_minutos,
                "flag_falta_interacao": bool(r.flag_falta_interacao),
                # 0 = domingo ... 6 = sábado
                "dia": (r.data_hora_inicio.weekday() + 1) % 7,
                "hora": r.hora,
            }
            for r in registros
        ],
        columns=COLUNAS,
    )


def _contagem_desc(df: pd.DataFrame, coluna: str, top_n: Optional[int] = None) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    contagem = df.groupby(coluna, sort=False).size().sort_values(ascending=False, kind="stable")
    if top_n is not None:
        contagem = contagem.head(top_n)
    return [{"nome": str(nome), "total": int(total)} for nome, total in contagem.items()]


def _por_data(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    contagem = df.groupby("data", sort=True).size()
    return [{"data": str(data), "total": int(total)} for data, total in contagem.items()]


def _estatisticas(df: pd.DataFrame) -> Dict[str, Any]:
    total = len(df)
    if total == 0:
        return {
            "total": 0,
            "duracao_media": 0.0,
            "sem_interacao": 0,
            "percentual_sem_interacao": 0.0,
        }

    sem_interacao = int(df["flag_falta_interacao"].sum())
    return {
        "total": total,
        "duracao_media": float(df["duracao_minutos"].mean()),
        "sem_interacao": sem_interacao,
        "percentual_sem_interacao": round((sem_interacao / total) * 100, 1),
    }


def _mapa_calor(df: pd.DataFrame) -> List[Dict[str, int]]:
    if df.empty:
        return []
    contagem = df.groupby(["dia", "hora"], sort=True).size()
    return [
        {"dia": int(dia), "hora": int(hora), "total": int(total)}
        for (dia, hora), total in contagem.items()
    ]


# =====================================================
# API PÚBLICA
# =====================================================

def agrupar_por_data(registros: Sequence[Atendimento]) -> List[Dict[str, Any]]:
    """Série temporal: quantidade por dia, em ordem crescente de data."""
    return _por_data(_frame(registros))


def agrupar_por_canal(registros: Sequence[Atendimento]) -> List[Dict[str, Any]]:
    return _contagem_desc(_frame(registros), "canal_normalizado")


def agrupar_por_tema(registros: Sequence[Atendimento], top_n: Optional[int] = None) -> List[Dict[str, Any]]:
    """Registros sem tema contam como "Outros"."""
    return _contagem_desc(_frame(registros), "tema", top_n)


def agrupar_por_casa(registros: Sequence[Atendimento], top_n: Optional[int] = None) -> List[Dict[str, Any]]:
    return _contagem_desc(_frame(registros), "casa", top_n)


def estatisticas(registros: Sequence[Atendimento]) -> Dict[str, Any]:
    """Total, duração média (0 sem registros) e volume sem interação."""
    return _estatisticas(_frame(registros))


def mapa_calor(registros: Sequence[Atendimento]) -> List[Dict[str, int]]:
    """Volume por dia da semana (0 = domingo) x hora; só células com volume."""
    return _mapa_calor(_frame(registros))


def resumo_geral(registros: Sequence[Atendimento], top_temas: int = TOP_TEMAS_PADRAO) -> Dict[str, Any]:
    """Todas as agregações da visão geral, montando o DataFrame uma única vez."""
    df = _frame(registros)
    por_canal = _contagem_desc(df, "canal_normalizado")
    return {
        "estatisticas": _estatisticas(df),
        "total_canais": len(por_canal),
        "por_data": _por_data(df),
        "por_canal": por_canal,
        "por_tema": _contagem_desc(df, "tema", top_temas),
        "por_casa": _contagem_desc(df, "casa"),
        "mapa_calor": _mapa_calor(df),
    }
