import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Header
from sqlalchemy.orm import Session
from painel_atendimentos.infrastructure.database.config import get_db
from painel_atendimentos.infrastructure.ingestion.leitor_planilha import EXTENSOES_PERMITIDAS, ler_planilha
from painel_atendimentos.infrastructure.repositories.theme_rule_repository import ThemeRuleRepository
from painel_atendimentos.application.services.ingestion_service import normalizar_lote
from painel_atendimentos.application.services.session_service import SessionRegistry, get_sessions
from painel_atendimentos.application.dto.ingestion_schema import (
    DetalhesImportacaoSchema,
    ResultadoImportacaoSchema,
)
from painel_atendimentos.domain.exceptions import PlanilhaInvalidaError
from painel_atendimentos.shared.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ingestion", tags=["Ingestão"])

# ==========================================
# LIMITES DE SEGURANÇA
# ==========================================

MAX_FILE_SIZE_BYTES = settings.max_upload_mb * 1024 * 1024


def _status_importacao(aceitos: int, rejeitados: int) -> str:
    if aceitos > 0 and rejeitados == 0:
        return "success"
    if aceitos > 0:
        return "warning"
    return "error"


def _mensagem_importacao(aceitos: int, rejeitados: int) -> str:
    if aceitos == 0:
        return (
            "Não foi possível importar nenhum registro. "
            "Verifique se as colunas id, dataHoraInicio e dataHoraFim estão preenchidas."
        )
    partes = [f"{aceitos} registros importados com sucesso"]
    if rejeitados:
        partes.append(f"{rejeitados} linhas descartadas")
    return ". ".join(partes) + "."


# ==========================================
# ENDPOINT: UPLOAD DE PLANILHA
# ==========================================

@router.post("/upload-csv", response_model=ResultadoImportacaoSchema)
async def upload_csv(
    file: UploadFile = File(...),
    x_session_id: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    sessoes: SessionRegistry = Depends(get_sessions),
):
    if not file.filename or not file.filename.lower().endswith(EXTENSOES_PERMITIDAS):
        raise HTTPException(
            status_code=400,
            detail="Formato de arquivo não permitido. Por favor, envie um arquivo .csv ou .xlsx."
        )

    # ── 1. Ler e validar tamanho ──
    raw_content = await file.read()

    if len(raw_content) == 0:
        raise HTTPException(
            status_code=400,
            detail="O arquivo enviado está vazio. Por favor, selecione um arquivo com dados."
        )

    if len(raw_content) > MAX_FILE_SIZE_BYTES:
        tamanho_mb = len(raw_content) / 1024 / 1024
        limite_mb = MAX_FILE_SIZE_BYTES / 1024 / 1024
        raise HTTPException(
            status_code=400,
            detail=f"O arquivo tem {tamanho_mb:.1f} MB e excede o limite de {limite_mb:.0f} MB. Divida em partes menores."
        )

    # ── 2. Ler linhas ──
    try:
        rows = ler_planilha(file.filename, raw_content)
    except PlanilhaInvalidaError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not rows:
        raise HTTPException(
            status_code=400,
            detail="O arquivo não contém registros de dados. Verifique a planilha e tente novamente."
        )

    # ── 3. Normalizar com as regras de tema vigentes ──
    regras = ThemeRuleRepository(db).listar()
    resultado = normalizar_lote(rows, regras)

    # ── 4. Carregar na sessão ──
    # Importação sem nenhuma linha válida não apaga os dados que já estavam na sessão
    sessao = sessoes.obter_ou_criar(x_session_id)
    if resultado.aceitos > 0:
        sessao.carregar(resultado.registros)
    else:
        logger.warning("Importação de %s sem linhas válidas; sessão %s mantida", file.filename, sessao.session_id)

    formato = "XLSX" if file.filename.lower().endswith(".xlsx") else "CSV"
    return ResultadoImportacaoSchema(
        status=_status_importacao(resultado.aceitos, resultado.rejeitados),
        message=_mensagem_importacao(resultado.aceitos, resultado.rejeitados),
        session_id=sessao.session_id,
        detalhes=DetalhesImportacaoSchema(
            formato_detectado=formato,
            total_linhas_arquivo=resultado.total_linhas,
            success_count=resultado.aceitos,
            rejected_count=resultado.rejeitados,
            errors=resultado.erros,
        ),
    )
