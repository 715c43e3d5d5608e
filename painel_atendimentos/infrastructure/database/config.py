import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import NullPool
from painel_atendimentos.shared.settings import settings

logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url

if DATABASE_URL.startswith("sqlite"):
    logger.warning(
        "DATABASE_URL não configurada para Postgres; usando %s. "
        "Copie o .env.example para .env e ajuste as credenciais.",
        DATABASE_URL,
    )


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


# Criação do engine SQLAlchemy
engine = create_engine(
    DATABASE_URL,
    poolclass=NullPool,
    pool_pre_ping=True,
    connect_args=_connect_args(DATABASE_URL),
)

# Criação da SessionLocal
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

# Base para os modelos
Base = declarative_base()

def get_db():
    """
    Dependency para FastAPI que fornece uma sessão do banco de dados.
    Garante que a conexão seja fechada após o uso.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def criar_tabelas():
    """Cria as tabelas que ainda não existem (a tabela legada de atendimentos é preservada)."""
    from painel_atendimentos.infrastructure.database import models  # noqa: F401  registra os modelos
    Base.metadata.create_all(bind=engine)
