"""
Erros de domínio do painel.

A camada de apresentação traduz cada um para o status HTTP correspondente;
nenhum deles carrega detalhes de SQL ou stack trace.
"""

from typing import Optional


class LinhaRejeitadaError(Exception):
    """Linha bruta sem campos obrigatórios ou com data inválida."""

    def __init__(self, motivo: str):
        super().__init__(motivo)
        self.motivo = motivo


class RegraNaoEncontradaError(Exception):
    def __init__(self, regra_id: int):
        super().__init__(f"Regra de tema {regra_id} não encontrada.")
        self.regra_id = regra_id


class RegraInvalidaError(Exception):
    """Entrada de regra rejeitada antes de qualquer escrita no banco."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class ServicoExternoIndisponivelError(Exception):
    """Serviço externo fora do ar ou com falha. O chamador decide se tenta de novo."""

    retryable = True


class SessaoNaoEncontradaError(Exception):
    def __init__(self, session_id: str):
        super().__init__(f"Sessão '{session_id}' não encontrada.")
        self.session_id = session_id


class RegistroNaoEncontradoError(Exception):
    def __init__(self, registro_id: str):
        super().__init__(f"Atendimento '{registro_id}' não encontrado na sessão.")
        self.registro_id = registro_id


class ProtocoloNaoEncontradoError(Exception):
    def __init__(self, protocolo: str):
        super().__init__("Protocolo não encontrado")
        self.protocolo = protocolo


class PlanilhaInvalidaError(Exception):
    """Arquivo enviado não pôde ser lido como CSV/XLSX."""
