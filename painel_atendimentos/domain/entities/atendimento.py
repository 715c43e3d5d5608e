from dataclasses import dataclass
from datetime import datetime
from typing import Optional

@dataclass(frozen=True)
class Atendimento:
    """
    Registro canônico de um atendimento (ServiceCall).
    Imutável após a normalização; a troca de tema gera um novo valor.
    """
    id: str
    contato: str
    identificador: str
    protocolo: str
    canal: str
    tipo_canal: str
    resumo_conversa: str
    casa: str

    data_hora_inicio: datetime
    data_hora_fim: datetime

    # Campos calculados na normalização
    duracao_minutos: float
    data: str            # YYYY-MM-DD
    hora: int            # 0-23
    dia_da_semana: str   # Monday, Tuesday...
    mes: str             # YYYY-MM
    semana: int          # semana ISO
    canal_normalizado: str
    flag_falta_interacao: bool
    tema: Optional[str] = None
