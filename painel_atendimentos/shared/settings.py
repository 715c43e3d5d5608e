import os
from dataclasses import dataclass, field
from typing import List, Optional
from dotenv import load_dotenv

# Carrega variáveis de ambiente do arquivo .env
load_dotenv()


def _env(nome: str, padrao: Optional[str] = None):
    return lambda: os.getenv(nome) or padrao


def _env_int(nome: str, padrao: int):
    return lambda: int(os.getenv(nome) or padrao)


def _lista_env(nome: str, padrao: str):
    return lambda: [item.strip() for item in os.getenv(nome, padrao).split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    # Banco: em produção aponta para o Postgres; localmente cai num SQLite
    database_url: str = field(default_factory=_env("DATABASE_URL", "sqlite:///./painel_atendimentos.db"))
    # Tabela legada com os atendimentos finalizados
    db_table: str = field(default_factory=_env("DB_TABLE", "base_senai"))

    cors_origins: List[str] = field(default_factory=_lista_env(
        "CORS_ORIGINS",
        "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173,http://127.0.0.1:3000",
    ))

    log_level: str = field(default_factory=_env("LOG_LEVEL", "INFO"))

    # Serviço externo de classificação (opcional)
    classifier_url: Optional[str] = field(default_factory=_env("CLASSIFIER_URL"))
    classifier_api_key: Optional[str] = field(default_factory=_env("CLASSIFIER_API_KEY"))
    classifier_timeout_s: int = field(default_factory=_env_int("CLASSIFIER_TIMEOUT_S", 20))

    max_upload_mb: int = field(default_factory=_env_int("MAX_UPLOAD_MB", 50))

    # Sessões em memória: expiram por inatividade e têm teto de quantidade
    session_ttl_min: int = field(default_factory=_env_int("SESSION_TTL_MIN", 120))
    max_sessions: int = field(default_factory=_env_int("MAX_SESSIONS", 100))


settings = Settings()
