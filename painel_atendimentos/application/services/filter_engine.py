from datetime import date, datetime
from typing import Iterable, List
from painel_atendimentos.application.services.theme_classifier import TEMA_PADRAO
from painel_atendimentos.domain.entities.atendimento import Atendimento
from painel_atendimentos.domain.entities.filtros import EstadoFiltros


def _depois_de(registro: Atendimento, limite: date) -> bool:
    if isinstance(limite, datetime):
        return registro.data_hora_inicio >= limite.replace(tzinfo=None)
    return registro.data_hora_inicio.date() >= limite


def _antes_de(registro: Atendimento, limite: date) -> bool:
    if isinstance(limite, datetime):
        return registro.data_hora_inicio <= limite.replace(tzinfo=None)
    return registro.data_hora_inicio.date() <= limite


def aceita(registro: Atendimento, filtros: EstadoFiltros) -> bool:
    """True se o registro passa em todas as dimensões ativas do filtro."""
    if filtros.start_date is not None and not _depois_de(registro, filtros.start_date):
        return False
    if filtros.end_date is not None and not _antes_de(registro, filtros.end_date):
        return False

    if filtros.channels and registro.canal_normalizado not in filtros.channels:
        return False
    if filtros.houses and registro.casa not in filtros.houses:
        return False
    if filtros.themes and (registro.tema or TEMA_PADRAO) not in filtros.themes:
        return False

    if filtros.only_no_interaction and not registro.flag_falta_interacao:
        return False

    return True


def aplicar_filtros(registros: Iterable[Atendimento], filtros: EstadoFiltros) -> List[Atendimento]:
    """Subsequência (na ordem original) dos registros aceitos pelo filtro."""
    return [r for r in registros if aceita(r, filtros)]
