"""
Tradução dos erros de domínio para respostas HTTP.

Formato das respostas de erro: {"message": str} e, para validação,
{"message": str, "field": str | None}.
"""

import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from painel_atendimentos.domain.exceptions import (
    ProtocoloNaoEncontradoError,
    RegistroNaoEncontradoError,
    RegraInvalidaError,
    RegraNaoEncontradaError,
    ServicoExternoIndisponivelError,
    SessaoNaoEncontradaError,
)
from painel_atendimentos.shared.utils.sanitizacao import sanitizar_erro

logger = logging.getLogger(__name__)


def falha_banco(contexto: str, erro: SQLAlchemyError) -> HTTPException:
    # log interno completo, mensagem limpa pro usuário
    logger.error("Erro ao buscar %s", contexto, exc_info=erro)
    return HTTPException(status_code=500, detail=sanitizar_erro(erro))


async def _validacao_request(request: Request, exc: RequestValidationError):
    erros = exc.errors()
    primeiro = erros[0] if erros else {}
    loc = [str(p) for p in primeiro.get("loc", ()) if p not in ("body", "query", "path")]
    mensagem = str(primeiro.get("msg", "Dados inválidos."))
    # "Value error, O nome da regra não pode ser vazio." → só a mensagem do validador
    mensagem = mensagem.removeprefix("Value error, ")
    return JSONResponse(
        status_code=400,
        content={"message": mensagem, "field": loc[-1] if loc else None},
    )


async def _regra_invalida(request: Request, exc: RegraInvalidaError):
    return JSONResponse(status_code=400, content={"message": exc.message, "field": exc.field})


async def _nao_encontrado(request: Request, exc: Exception):
    return JSONResponse(status_code=404, content={"message": str(exc)})


async def _servico_indisponivel(request: Request, exc: ServicoExternoIndisponivelError):
    logger.warning("Serviço externo indisponível em %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"message": str(exc), "retryable": True},
    )


def registrar_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, _validacao_request)
    app.add_exception_handler(RegraInvalidaError, _regra_invalida)
    for erro in (
        RegraNaoEncontradaError,
        SessaoNaoEncontradaError,
        RegistroNaoEncontradoError,
        ProtocoloNaoEncontradoError,
    ):
        app.add_exception_handler(erro, _nao_encontrado)
    app.add_exception_handler(ServicoExternoIndisponivelError, _servico_indisponivel)
