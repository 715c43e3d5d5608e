import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from painel_atendimentos.application.services.session_service import SessionRegistry, get_sessions
from painel_atendimentos.infrastructure.database import models  # noqa: F401
from painel_atendimentos.infrastructure.database.config import Base, get_db


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sessoes():
    return SessionRegistry()


@pytest.fixture
def app(session_factory, sessoes):
    from painel_atendimentos.main import app

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_sessions] = lambda: sessoes
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


class FakeClassificador:
    """Classificador externo em memória: devolve o tema mapeado por trecho do texto."""

    def __init__(self, respostas: dict[str, str], falhar_apos: int | None = None):
        self.respostas = respostas
        self.falhar_apos = falhar_apos
        self.chamadas: list[str] = []

    def classificar(self, texto: str, temas=None):
        from painel_atendimentos.domain.exceptions import ServicoExternoIndisponivelError
        from painel_atendimentos.infrastructure.external.classificador_externo import ResultadoClassificacao

        if self.falhar_apos is not None and len(self.chamadas) >= self.falhar_apos:
            raise ServicoExternoIndisponivelError("Serviço de classificação indisponível.")
        self.chamadas.append(texto)
        for trecho, tema in self.respostas.items():
            if trecho in texto:
                return ResultadoClassificacao(theme=tema, confidence=0.9)
        return ResultadoClassificacao(theme="")


@pytest.fixture
def fake_classificador_factory():
    return FakeClassificador
