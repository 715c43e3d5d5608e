import strawberry
from strawberry.types import Info
from typing import Dict, List, Optional
from datetime import date
from fastapi import Depends
from sqlalchemy.orm import Session
from painel_atendimentos.infrastructure.database.config import get_db
from painel_atendimentos.infrastructure.repositories.theme_rule_repository import ThemeRuleRepository
from painel_atendimentos.application.services.dashboard_service import DashboardService
from painel_atendimentos.domain.exceptions import ProtocoloNaoEncontradoError
from .schema import (
    AtendimentoType,
    EstatisticasType,
    ItemContagemType,
    RegraTemaType,
    TimelineItemType,
    TotaisType,
)


async def get_context(db: Session = Depends(get_db)) -> Dict:
    """Contexto do GraphQL: a sessão do banco vem da mesma dependency das rotas REST."""
    return {"db": db}


def _atendimento(r: Dict) -> AtendimentoType:
    return AtendimentoType(
        id=r["id"],
        contato=r["contato"],
        identificador=r["identificador"],
        protocolo=r["protocolo"],
        canal=r["canal"],
        data_hora_inicio=r["dataHoraInicio"],
        data_hora_fim=r["dataHoraFim"],
        tipo_canal=r["tipoCanal"],
        resumo_conversa=r["resumoConversa"],
        casa=r["casa"],
    )


def _itens(itens: List[Dict]) -> List[ItemContagemType]:
    return [ItemContagemType(nome=i["nome"], total=i["total"]) for i in itens]


@strawberry.type
class Query:

    @strawberry.field
    def estatisticas(
        self,
        info: Info,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
        casas: Optional[List[str]] = None,
    ) -> EstatisticasType:
        """
        Métricas do painel em uma única query.
        Filtros opcionais: data_inicio + data_fim (ambos), casas.
        """
        service = DashboardService(info.context["db"])
        m = service.get_estatisticas(data_inicio, data_fim, casas)

        return EstatisticasType(
            totais=TotaisType(**m["totais"]),
            duracao_media=m["duracaoMedia"],
            por_canal=_itens(m["porCanal"]),
            por_casa=_itens(m["porCasa"]),
            por_resumo=_itens(m["porResumo"]),
            timeline=[TimelineItemType(data=t["data"], total=t["total"]) for t in m["timeline"]],
        )

    @strawberry.field
    def casas(self, info: Info) -> List[str]:
        return DashboardService(info.context["db"]).get_casas()

    @strawberry.field
    def recentes(
        self,
        info: Info,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
        casas: Optional[List[str]] = None,
    ) -> List[AtendimentoType]:
        """Último registro de cada protocolo, do mais recente ao mais antigo."""
        service = DashboardService(info.context["db"])
        return [_atendimento(r) for r in service.get_recentes(data_inicio, data_fim, casas)]

    @strawberry.field
    def protocolo(self, info: Info, protocolo: str) -> Optional[AtendimentoType]:
        """Registro mais recente do protocolo, ou null se não existir."""
        try:
            encontrados = DashboardService(info.context["db"]).buscar_protocolo(protocolo)
        except ProtocoloNaoEncontradoError:
            return None
        return _atendimento(encontrados[0])

    @strawberry.field
    def regras_tema(self, info: Info) -> List[RegraTemaType]:
        """Regras de tema em ordem de prioridade."""
        return [
            RegraTemaType(id=r.id, name=r.name, keywords=list(r.keywords), created_at=r.created_at)
            for r in ThemeRuleRepository(info.context["db"]).listar()
        ]
