import strawberry
from typing import List, Optional
from datetime import datetime


# ==========================================
# CONTAGENS
# ==========================================

@strawberry.type
class ItemContagemType:
    nome: Optional[str]
    total: int


@strawberry.type
class TimelineItemType:
    data: str   # YYYY-MM-DD
    total: int


@strawberry.type
class TotaisType:
    """Protocolos distintos no período e nas janelas corrente (dia, semana ISO, mês)."""
    total: int
    hoje: int
    semana: int
    mes: int


# ==========================================
# ESTATÍSTICAS CONSOLIDADAS
# ==========================================

@strawberry.type
class EstatisticasType:
    totais: TotaisType
    duracao_media: float        # minutos
    por_canal: List[ItemContagemType]
    por_casa: List[ItemContagemType]     # top 10
    por_resumo: List[ItemContagemType]   # top 10
    timeline: List[TimelineItemType]


# ==========================================
# REGISTROS
# ==========================================

@strawberry.type
class AtendimentoType:
    id: int
    contato: Optional[str]
    identificador: Optional[str]
    protocolo: Optional[str]
    canal: Optional[str]
    data_hora_inicio: Optional[datetime]
    data_hora_fim: Optional[datetime]
    tipo_canal: Optional[str]
    resumo_conversa: Optional[str]
    casa: str


@strawberry.type
class RegraTemaType:
    id: int
    name: str
    keywords: List[str]
    created_at: Optional[datetime]
