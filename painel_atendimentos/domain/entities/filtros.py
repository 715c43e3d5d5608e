from dataclasses import dataclass, field
from datetime import date
from typing import FrozenSet, Optional

@dataclass(frozen=True)
class EstadoFiltros:
    """
    Estado de filtros de uma sessão do dashboard.

    - start_date / end_date: limites inclusivos. Um `date` compara com o dia
      do início do atendimento; um `datetime` compara com o horário de início.
    - channels / houses / themes: conjunto vazio = sem restrição.
    """
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    channels: FrozenSet[str] = field(default_factory=frozenset)
    houses: FrozenSet[str] = field(default_factory=frozenset)
    themes: FrozenSet[str] = field(default_factory=frozenset)
    only_no_interaction: bool = False
