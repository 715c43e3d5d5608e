"""
Classificação de temas por palavras-chave.

Regras são avaliadas na ordem recebida (ordem de criação no banco) e, dentro
de cada regra, na ordem das palavras-chave. A primeira ocorrência encerra a
busca: não há pontuação nem desempate entre regras.
"""

from dataclasses import replace
from typing import Iterable, List, Sequence
from painel_atendimentos.domain.entities.atendimento import Atendimento
from painel_atendimentos.domain.entities.regra_tema import RegraTema

TEMA_PADRAO = "Outros"


def classificar_tema(texto: str, regras: Sequence[RegraTema]) -> str:
    texto_normalizado = (texto or "").lower()
    if not texto_normalizado:
        return TEMA_PADRAO

    for regra in regras:
        for keyword in regra.keywords:
            keyword = keyword.lower()
            if keyword and keyword in texto_normalizado:
                return regra.name

    return TEMA_PADRAO


def reclassificar(registros: Iterable[Atendimento], regras: Sequence[RegraTema]) -> List[Atendimento]:
    """Recalcula o tema de cada registro com o conjunto de regras atual."""
    return [
        replace(r, tema=classificar_tema(r.resumo_conversa, regras))
        for r in registros
    ]


def is_sem_tema(registro: Atendimento) -> bool:
    return not registro.tema or registro.tema == TEMA_PADRAO
