"""
Estado de sessão do dashboard: registros importados, filtros e agregações
calculadas em memória sobre o conjunto filtrado.
"""

import logging
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from painel_atendimentos.infrastructure.database.config import get_db
from painel_atendimentos.infrastructure.external.classificador_externo import (
    ClassificadorExterno,
    get_classificador,
)
from painel_atendimentos.infrastructure.repositories.theme_rule_repository import ThemeRuleRepository
from painel_atendimentos.application.services.dashboard_service import DashboardService
from painel_atendimentos.application.services.ingestion_service import normalizar_lote
from painel_atendimentos.application.services.session_service import SessionRegistry, get_sessions
from painel_atendimentos.application.services.aggregation_service import TOP_TEMAS_PADRAO
from painel_atendimentos.presentation.error_handlers import falha_banco
from painel_atendimentos.application.dto.filtros_schema import FiltrosPatchSchema, FiltrosSchema
from painel_atendimentos.application.dto.ingestion_schema import (
    AtendimentoSchema,
    TemaManualSchema,
    serializar_registros,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["Sessões"])


@router.post("", status_code=201)
def criar_sessao(sessoes: SessionRegistry = Depends(get_sessions)):
    sessao = sessoes.criar()
    return {"session_id": sessao.session_id}


@router.delete("/{session_id}", status_code=204)
def remover_sessao(session_id: str, sessoes: SessionRegistry = Depends(get_sessions)):
    sessoes.remover(session_id)


# ==========================================
# FILTROS
# ==========================================

@router.get("/{session_id}/filtros", response_model=FiltrosSchema)
def obter_filtros(session_id: str, sessoes: SessionRegistry = Depends(get_sessions)):
    return FiltrosSchema.from_entity(sessoes.obter(session_id).filtros)


@router.patch("/{session_id}/filtros", response_model=FiltrosSchema)
def atualizar_filtros(
    session_id: str,
    dados: FiltrosPatchSchema,
    sessoes: SessionRegistry = Depends(get_sessions),
):
    """Mescla parcial: só os campos enviados mudam."""
    sessao = sessoes.obter(session_id)
    return FiltrosSchema.from_entity(sessao.atualizar_filtros(**dados.para_parciais()))


@router.post("/{session_id}/filtros/reset", response_model=FiltrosSchema)
def resetar_filtros(session_id: str, sessoes: SessionRegistry = Depends(get_sessions)):
    return FiltrosSchema.from_entity(sessoes.obter(session_id).resetar_filtros())


# ==========================================
# REGISTROS
# ==========================================

@router.get("/{session_id}/registros")
def listar_registros(session_id: str, sessoes: SessionRegistry = Depends(get_sessions)):
    """Atendimentos da sessão que passam nos filtros atuais."""
    return serializar_registros(sessoes.obter(session_id).registros_filtrados())


@router.delete("/{session_id}/registros", status_code=204)
def limpar_registros(session_id: str, sessoes: SessionRegistry = Depends(get_sessions)):
    sessoes.obter(session_id).limpar()


@router.patch("/{session_id}/registros/{registro_id}/tema")
def atualizar_tema(
    session_id: str,
    registro_id: str,
    dados: TemaManualSchema,
    sessoes: SessionRegistry = Depends(get_sessions),
):
    registro = sessoes.obter(session_id).atualizar_tema(registro_id, dados.tema)
    return AtendimentoSchema.from_entity(registro).model_dump(by_alias=True, mode="json")


@router.post("/{session_id}/carregar-banco")
def carregar_do_banco(
    session_id: str,
    data_inicio: Optional[date] = Query(None, alias="startDate"),
    data_fim: Optional[date] = Query(None, alias="endDate"),
    casa: Optional[List[str]] = Query(None),
    db: Session = Depends(get_db),
    sessoes: SessionRegistry = Depends(get_sessions),
):
    """
    Carrega na sessão o último registro de cada protocolo da tabela de atendimentos.
    Consulta sem nenhuma linha válida não apaga os dados que já estavam na sessão.
    """
    try:
        linhas = DashboardService(db).get_recentes(data_inicio, data_fim, casa)
        regras = ThemeRuleRepository(db).listar()
    except SQLAlchemyError as e:
        raise falha_banco("atendimentos para a sessão", e)

    resultado = normalizar_lote(linhas, regras)

    sessao = sessoes.obter_ou_criar(session_id)
    if resultado.aceitos > 0:
        sessao.carregar(resultado.registros)
    else:
        logger.warning("Carga do banco sem linhas válidas; sessão %s mantida", sessao.session_id)
    return {
        "session_id": sessao.session_id,
        "success_count": resultado.aceitos,
        "rejected_count": resultado.rejeitados,
    }


# ==========================================
# TEMAS
# ==========================================

@router.post("/{session_id}/reclassificar")
def reclassificar(
    session_id: str,
    db: Session = Depends(get_db),
    sessoes: SessionRegistry = Depends(get_sessions),
):
    """Reaplica as regras de tema atuais sobre todos os registros da sessão."""
    alterados = sessoes.obter(session_id).reclassificar(ThemeRuleRepository(db).listar())
    return {"alterados": alterados}


@router.post("/{session_id}/classificar-ia")
def classificar_com_ia(
    session_id: str,
    limite: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    sessoes: SessionRegistry = Depends(get_sessions),
    classificador: ClassificadorExterno = Depends(get_classificador),
):
    """
    Classifica no serviço externo os registros ainda sem tema.
    Se o serviço cair no meio do lote, responde 503; o que já foi
    classificado permanece na sessão.
    """
    sessao = sessoes.obter(session_id)
    temas = [r.name for r in ThemeRuleRepository(db).listar()]
    processados = sessao.classificar_pendentes(classificador, temas, limite=limite)
    logger.info("Sessão %s: %d registros classificados externamente", session_id, processados)
    return {"classificados": processados}


# ==========================================
# AGREGAÇÕES
# ==========================================

@router.get("/{session_id}/resumo")
def resumo(
    session_id: str,
    top_temas: int = Query(TOP_TEMAS_PADRAO, ge=1, le=50),
    sessoes: SessionRegistry = Depends(get_sessions),
):
    """Estatísticas e séries do conjunto filtrado, prontas para os gráficos."""
    return sessoes.obter(session_id).resumo(top_temas=top_temas)
