"""
Conversão de datas vindas de CSV/XLSX ou do banco.

Formatos aceitos:
  - objetos datetime (resultado de query ou célula de planilha)
  - ISO-8601: "2024-01-01T10:00:00", "2024-01-01 10:00:00", com ou sem "Z"/offset
  - Padrão brasileiro das exportações: "01/01/2024 10:00:00"

`parse_data_hora_com_fuso` preserva o offset quando ele vem na origem (é o
que a duração usa). `parse_data_hora` descarta o fuso: vale o horário de
parede escrito na origem.
"""

from datetime import datetime, timezone
from typing import Any, Optional

FORMATOS_BR = ("%d/%m/%Y %H:%M:%S", "%d/%m/%Y %H:%M")


def parse_data_hora_com_fuso(valor: Any) -> Optional[datetime]:
    """Retorna o datetime como veio (com ou sem fuso) ou None se não for uma data válida."""
    if isinstance(valor, datetime):
        return valor
    if valor is None:
        return None

    texto = str(valor).strip()
    if not texto:
        return None

    if texto.endswith(("Z", "z")):
        texto = texto[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(texto)
    except ValueError:
        pass

    for formato in FORMATOS_BR:
        try:
            return datetime.strptime(texto, formato)
        except ValueError:
            continue
    return None


def parse_data_hora(valor: Any) -> Optional[datetime]:
    """Retorna o datetime (sem fuso) ou None se o valor não for uma data válida."""
    resultado = parse_data_hora_com_fuso(valor)
    return resultado.replace(tzinfo=None) if resultado is not None else None


def sem_fuso(valor: datetime) -> datetime:
    return valor.replace(tzinfo=None)


def diferenca_segundos(inicio: datetime, fim: datetime) -> float:
    """
    fim - início em segundos. Com offset nos dois lados, a conta é feita em
    UTC; se só um lado tiver fuso, os dois são tratados como horário de parede.
    """
    if inicio.tzinfo is not None and fim.tzinfo is not None:
        return (fim.astimezone(timezone.utc) - inicio.astimezone(timezone.utc)).total_seconds()
    return (sem_fuso(fim) - sem_fuso(inicio)).total_seconds()
