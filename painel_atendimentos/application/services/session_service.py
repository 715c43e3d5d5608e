"""
Estado de sessão do dashboard.

Cada sessão é dona exclusiva do seu conjunto de atendimentos e do seu estado
de filtros. Nada aqui é persistido: o ciclo de vida é carregar / substituir /
limpar, e os filtros são mesclados parcialmente ou resetados.
"""

import logging
import time
import uuid
from collections import OrderedDict
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from painel_atendimentos.application.services import aggregation_service
from painel_atendimentos.application.services.filter_engine import aplicar_filtros
from painel_atendimentos.application.services.theme_classifier import is_sem_tema, reclassificar
from painel_atendimentos.domain.entities.atendimento import Atendimento
from painel_atendimentos.domain.entities.filtros import EstadoFiltros
from painel_atendimentos.domain.entities.regra_tema import RegraTema
from painel_atendimentos.domain.exceptions import RegistroNaoEncontradoError, SessaoNaoEncontradaError
from painel_atendimentos.shared.settings import settings

logger = logging.getLogger(__name__)

LIMITE_CLASSIFICACAO_EXTERNA = 10


class DashboardSession:

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.filtros = EstadoFiltros()
        self._registros: List[Atendimento] = []
        # incrementa a cada troca do conjunto de registros (chave do cache)
        self._versao = 0
        self._cache_filtrados: Optional[Tuple[int, EstadoFiltros, List[Atendimento]]] = None

    # =====================================================
    # CICLO DE VIDA DOS REGISTROS
    # =====================================================

    @property
    def registros(self) -> List[Atendimento]:
        return list(self._registros)

    def carregar(self, registros: Sequence[Atendimento]) -> None:
        """Substitui todo o conjunto de registros da sessão."""
        self._registros = list(registros)
        self._versao += 1

    def limpar(self) -> None:
        self._registros = []
        self._versao += 1

    def atualizar_tema(self, registro_id: str, tema: str) -> Atendimento:
        """Sobrescreve manualmente o tema de um atendimento."""
        for i, registro in enumerate(self._registros):
            if registro.id == registro_id:
                atualizado = replace(registro, tema=tema)
                self._registros[i] = atualizado
                self._versao += 1
                return atualizado
        raise RegistroNaoEncontradoError(registro_id)

    def reclassificar(self, regras: Sequence[RegraTema]) -> int:
        """Reaplica as regras atuais. Retorna quantos registros mudaram de tema."""
        novos = reclassificar(self._registros, regras)
        alterados = sum(1 for antigo, novo in zip(self._registros, novos) if antigo.tema != novo.tema)
        self._registros = novos
        self._versao += 1
        return alterados

    def classificar_pendentes(
        self,
        classificador,
        temas: Sequence[str],
        limite: int = LIMITE_CLASSIFICACAO_EXTERNA,
    ) -> int:
        """
        Envia ao classificador externo os registros sem tema (ou "Outros") que
        tenham resumo. Falhas do serviço sobem para o chamador; o que já foi
        classificado antes da falha permanece.
        """
        pendentes = [r for r in self._registros if is_sem_tema(r) and r.resumo_conversa][:limite]
        processados = 0
        for registro in pendentes:
            resultado = classificador.classificar(registro.resumo_conversa, list(temas))
            if resultado.theme:
                self.atualizar_tema(registro.id, resultado.theme)
                processados += 1
        return processados

    # =====================================================
    # FILTROS
    # =====================================================

    def atualizar_filtros(self, **parciais: Any) -> EstadoFiltros:
        self.filtros = replace(self.filtros, **parciais)
        return self.filtros

    def resetar_filtros(self) -> EstadoFiltros:
        self.filtros = EstadoFiltros()
        return self.filtros

    def registros_filtrados(self) -> List[Atendimento]:
        if self._cache_filtrados is not None:
            versao, filtros, resultado = self._cache_filtrados
            if versao == self._versao and filtros == self.filtros:
                return list(resultado)

        resultado = aplicar_filtros(self._registros, self.filtros)
        self._cache_filtrados = (self._versao, self.filtros, resultado)
        return list(resultado)

    def resumo(self, top_temas: int = aggregation_service.TOP_TEMAS_PADRAO) -> Dict[str, Any]:
        return aggregation_service.resumo_geral(self.registros_filtrados(), top_temas=top_temas)


class SessionRegistry:
    """
    Sessões vivas do processo, indexadas por id.

    Cada acesso renova a sessão. Sessões ociosas há mais de `ttl_segundos`
    expiram e, acima de `max_sessoes`, a menos usada recentemente sai primeiro.
    """

    def __init__(
        self,
        max_sessoes: int = 100,
        ttl_segundos: float = 2 * 60 * 60,
        relogio: Callable[[], float] = time.monotonic,
    ):
        self.max_sessoes = max_sessoes
        self.ttl_segundos = ttl_segundos
        self._relogio = relogio
        # session_id → (sessão, último acesso), do acesso mais antigo ao mais recente
        self._sessoes: "OrderedDict[str, Tuple[DashboardSession, float]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessoes)

    def _expirada(self, ultimo_acesso: float, agora: float) -> bool:
        return agora - ultimo_acesso > self.ttl_segundos

    def _tocar(self, session_id: str, sessao: DashboardSession) -> DashboardSession:
        self._sessoes[session_id] = (sessao, self._relogio())
        self._sessoes.move_to_end(session_id)
        return sessao

    def _podar(self) -> None:
        agora = self._relogio()
        expiradas = [sid for sid, (_, acesso) in self._sessoes.items() if self._expirada(acesso, agora)]
        for sid in expiradas:
            del self._sessoes[sid]
        # abre espaço para a sessão que vai entrar
        while self._sessoes and len(self._sessoes) >= self.max_sessoes:
            sid, _ = self._sessoes.popitem(last=False)
            expiradas.append(sid)
        if expiradas:
            logger.info("%d sessões descartadas (expiradas ou acima do limite)", len(expiradas))

    def criar(self, session_id: Optional[str] = None) -> DashboardSession:
        self._podar()
        session_id = session_id or uuid.uuid4().hex
        sessao = DashboardSession(session_id)
        self._tocar(session_id, sessao)
        logger.info("Sessão %s criada", session_id)
        return sessao

    def _buscar(self, session_id: Optional[str]) -> Optional[DashboardSession]:
        if not session_id or session_id not in self._sessoes:
            return None
        sessao, acesso = self._sessoes[session_id]
        if self._expirada(acesso, self._relogio()):
            del self._sessoes[session_id]
            logger.info("Sessão %s expirada", session_id)
            return None
        return self._tocar(session_id, sessao)

    def obter(self, session_id: str) -> DashboardSession:
        sessao = self._buscar(session_id)
        if sessao is None:
            raise SessaoNaoEncontradaError(session_id)
        return sessao

    def obter_ou_criar(self, session_id: Optional[str] = None) -> DashboardSession:
        return self._buscar(session_id) or self.criar(session_id)

    def remover(self, session_id: str) -> None:
        if self._sessoes.pop(session_id, None) is None:
            raise SessaoNaoEncontradaError(session_id)


sessions = SessionRegistry(
    max_sessoes=settings.max_sessions,
    ttl_segundos=settings.session_ttl_min * 60,
)


def get_sessions() -> SessionRegistry:
    """Dependency para FastAPI: registro de sessões do processo."""
    return sessions
