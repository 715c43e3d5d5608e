from sqlalchemy import Column, Integer, String, DateTime, Text, JSON
from datetime import datetime
from painel_atendimentos.infrastructure.database.config import Base
from painel_atendimentos.shared.settings import settings

# ==========================================
# REGRAS DE TEMA
# ==========================================

class ThemeRuleModel(Base):
    """
    Regras de classificação por palavra-chave.
    A ordem de prioridade é a ordem de criação (id crescente).
    """
    __tablename__ = "theme_rules"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    keywords = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


# ==========================================
# FATO: ATENDIMENTOS FINALIZADOS
# ==========================================

class FatoAtendimento(Base):
    """
    Tabela legada de atendimentos (uma linha por interação; o mesmo protocolo
    pode aparecer várias vezes). Os nomes de coluna seguem a exportação
    original, com espaços.
    """
    __tablename__ = settings.db_table

    id = Column(Integer, primary_key=True, index=True)
    contato = Column(String, nullable=True)
    identificador = Column(String, nullable=True)
    protocolo = Column(String(100), nullable=True, index=True)
    canal = Column(String, nullable=True)

    data_hora_inicio = Column("data e hora de inicio", DateTime, nullable=True)
    data_hora_fim = Column("data e hora de fim", DateTime, nullable=True, index=True)

    tipo_canal = Column("tipo de canal", String, nullable=True)
    resumo_conversa = Column("resumo da conversa", Text, nullable=True)
    casa = Column(String, nullable=True)
