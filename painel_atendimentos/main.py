import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from strawberry.fastapi import GraphQLRouter
from fastapi.middleware.cors import CORSMiddleware
import strawberry

from painel_atendimentos.presentation.graphql.queries import Query, get_context
from painel_atendimentos.presentation.controllers import (
    ingestion_controller,
    session_controller,
    stats_controller,
    theme_rules_controller,
)
from painel_atendimentos.presentation.error_handlers import registrar_handlers
from painel_atendimentos.infrastructure.database.config import criar_tabelas
from painel_atendimentos.shared.settings import settings
from painel_atendimentos.shared.utils.logging_config import configurar_logging

configurar_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    criar_tabelas()
    logger.info("Painel de Atendimentos iniciado")
    yield


# Criação do Schema GraphQL
schema = strawberry.Schema(query=Query)
graphql_app = GraphQLRouter(schema, context_getter=get_context)

app = FastAPI(
    title="Painel de Atendimentos API",
    description="API de análise de atendimentos: importação, temas, filtros e indicadores",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

registrar_handlers(app)

# Rotas REST: ingestão, regras de tema e estado de sessão
app.include_router(ingestion_controller.router)
app.include_router(theme_rules_controller.router)
app.include_router(session_controller.router)

# Rotas REST de leitura no banco (mesmos dados do GraphQL)
app.include_router(stats_controller.router)

# Rota GraphQL para Leitura
app.include_router(graphql_app, prefix="/graphql")

@app.get("/")
def read_root():
    return {
        "status": "Painel de Atendimentos API Running",
        "version": "1.0.0",
        "endpoints": {
            "graphql": "/graphql",
            "ingestion": "/ingestion/upload-csv",
            "theme_rules": "/api/theme-rules",
            "sessions": "/sessions",
            "stats": "/api/stats",
            "docs": "/docs"
        }
    }

@app.get("/health")
def health_check():
    """Endpoint de health check para monitoramento"""
    return {"status": "healthy"}
