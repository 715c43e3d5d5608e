from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from painel_atendimentos.infrastructure.database.config import get_db
from painel_atendimentos.application.services.dashboard_service import DashboardService
from painel_atendimentos.presentation.error_handlers import falha_banco

router = APIRouter(prefix="/api", tags=["Estatísticas"])

# Parâmetros aceitos em todas as rotas:
#   ?startDate=YYYY-MM-DD&endDate=YYYY-MM-DD  (período só vale com os dois)
#   ?casa=A&casa=B                             ("Todas" é ignorado)


@router.get("/stats")
def estatisticas(
    data_inicio: Optional[date] = Query(None, alias="startDate"),
    data_fim: Optional[date] = Query(None, alias="endDate"),
    casa: Optional[List[str]] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        return DashboardService(db).get_estatisticas(data_inicio, data_fim, casa)
    except SQLAlchemyError as e:
        raise falha_banco("estatísticas do dashboard", e)


@router.get("/casas")
def casas(db: Session = Depends(get_db)):
    try:
        return DashboardService(db).get_casas()
    except SQLAlchemyError as e:
        raise falha_banco("casas", e)


@router.get("/recentes")
def recentes(
    data_inicio: Optional[date] = Query(None, alias="startDate"),
    data_fim: Optional[date] = Query(None, alias="endDate"),
    casa: Optional[List[str]] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        return DashboardService(db).get_recentes(data_inicio, data_fim, casa)
    except SQLAlchemyError as e:
        raise falha_banco("atendimentos recentes", e)


@router.get("/protocolo/{protocolo}")
def buscar_protocolo(protocolo: str, db: Session = Depends(get_db)):
    """404 quando o protocolo não existe (handler de ProtocoloNaoEncontradoError)."""
    try:
        return DashboardService(db).buscar_protocolo(protocolo)
    except SQLAlchemyError as e:
        raise falha_banco("protocolo", e)
