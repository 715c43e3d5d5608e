from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

@dataclass(frozen=True)
class RegraTema:
    """Regra de classificação: palavras-chave (em ordem) → nome do tema."""
    id: Optional[int]
    name: str
    keywords: Tuple[str, ...]
    created_at: Optional[datetime] = None
