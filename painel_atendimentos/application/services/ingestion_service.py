"""
Normalização de linhas brutas (CSV/XLSX ou tabela do banco) em Atendimentos.

Regras:
- Campos obrigatórios: id, dataHoraInicio e dataHoraFim. Faltando algum,
  ou com data inválida, a linha é rejeitada (logada e contada), nunca
  preenchida com nulos.
- duracao_minutos = fim - início arredondado ao minuto mais próximo, calculado
  em UTC quando as duas datas trazem offset; valores negativos viram 0 para
  não derrubar a importação inteira. Os campos de exibição (data, hora...)
  usam o horário de parede do início, sem fuso.
- id é único no lote: a primeira ocorrência fica, as repetidas são
  rejeitadas.
- canal_normalizado = "<canal> - <tipoCanal>", mesmo com um dos lados vazio.
- casa vazia vira "Unknown". Atenção: a agregação do banco
  (DashboardService) usa "Falta de Interação" para o mesmo caso. São duas
  políticas independentes e cada camada documenta a sua.
- flag_falta_interacao vem do texto da casa ("falta de interação"), não da
  casa estar vazia.
- Colunas da tabela legada ("data e hora de inicio", "tipo de canal", ...)
  são aceitas como apelidos das chaves camelCase.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Sequence
from painel_atendimentos.application.services.theme_classifier import classificar_tema
from painel_atendimentos.domain.entities.atendimento import Atendimento
from painel_atendimentos.domain.entities.regra_tema import RegraTema
from painel_atendimentos.domain.exceptions import LinhaRejeitadaError
from painel_atendimentos.shared.utils.datas import diferenca_segundos, parse_data_hora_com_fuso, sem_fuso

logger = logging.getLogger(__name__)

CASA_PADRAO = "Unknown"
MARCADOR_FALTA_INTERACAO = "falta de interação"
MAX_ERROS_RETORNADOS = 10

DIAS_DA_SEMANA = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

# chave canônica → nomes aceitos na linha bruta (primeiro preenchido vence)
APELIDOS_COLUNAS: Dict[str, tuple] = {
    "id": ("id",),
    "contato": ("contato",),
    "identificador": ("identificador",),
    "protocolo": ("protocolo",),
    "canal": ("canal",),
    "dataHoraInicio": ("dataHoraInicio", "data e hora de inicio"),
    "dataHoraFim": ("dataHoraFim", "data e hora de fim"),
    "tipoCanal": ("tipoCanal", "tipo de canal"),
    "resumoConversa": ("resumoConversa", "resumo da conversa"),
    "casa": ("casa",),
}


@dataclass
class ResultadoLote:
    registros: List[Atendimento] = field(default_factory=list)
    total_linhas: int = 0
    rejeitados: int = 0
    erros: List[str] = field(default_factory=list)

    @property
    def aceitos(self) -> int:
        return len(self.registros)


def _campo(row: Mapping[str, Any], chave: str) -> Any:
    for nome in APELIDOS_COLUNAS[chave]:
        valor = row.get(nome)
        if valor is not None and str(valor).strip() != "":
            return valor
    return None


def _texto(row: Mapping[str, Any], chave: str) -> str:
    valor = _campo(row, chave)
    return str(valor) if valor is not None else ""


def calcular_duracao_minutos(inicio: datetime, fim: datetime) -> float:
    """Minutos inteiros (meio minuto arredonda para cima), nunca negativo."""
    minutos = diferenca_segundos(inicio, fim) / 60
    return float(max(0, math.floor(minutos + 0.5)))


def normalizar_linha(row: Mapping[str, Any], regras: Sequence[RegraTema]) -> Atendimento:
    """
    Converte uma linha bruta em Atendimento.
    Levanta LinhaRejeitadaError quando a linha não pode ser aproveitada.
    """
    id_bruto = _campo(row, "id")
    inicio_bruto = _campo(row, "dataHoraInicio")
    fim_bruto = _campo(row, "dataHoraFim")

    if id_bruto is None or inicio_bruto is None or fim_bruto is None:
        raise LinhaRejeitadaError("campos obrigatórios ausentes (id, dataHoraInicio, dataHoraFim)")

    inicio_com_fuso = parse_data_hora_com_fuso(inicio_bruto)
    fim_com_fuso = parse_data_hora_com_fuso(fim_bruto)
    if inicio_com_fuso is None or fim_com_fuso is None:
        raise LinhaRejeitadaError(f"data inválida (início='{inicio_bruto}', fim='{fim_bruto}')")

    duracao = calcular_duracao_minutos(inicio_com_fuso, fim_com_fuso)
    inicio = sem_fuso(inicio_com_fuso)
    fim = sem_fuso(fim_com_fuso)

    canal = _texto(row, "canal")
    tipo_canal = _texto(row, "tipoCanal")
    resumo = _texto(row, "resumoConversa")
    casa = _texto(row, "casa") or CASA_PADRAO

    return Atendimento(
        id=str(id_bruto).strip(),
        contato=_texto(row, "contato"),
        identificador=_texto(row, "identificador"),
        protocolo=_texto(row, "protocolo"),
        canal=canal,
        tipo_canal=tipo_canal,
        resumo_conversa=resumo,
        casa=casa,
        data_hora_inicio=inicio,
        data_hora_fim=fim,
        duracao_minutos=duracao,
        data=inicio.strftime("%Y-%m-%d"),
        hora=inicio.hour,
        dia_da_semana=DIAS_DA_SEMANA[inicio.weekday()],
        mes=inicio.strftime("%Y-%m"),
        semana=inicio.isocalendar()[1],
        canal_normalizado=f"{canal} - {tipo_canal}",
        flag_falta_interacao=MARCADOR_FALTA_INTERACAO in casa.lower(),
        tema=classificar_tema(resumo, regras),
    )


def normalizar_lote(
    rows: Iterable[Mapping[str, Any]],
    regras: Sequence[RegraTema],
) -> ResultadoLote:
    """
    Normaliza uma sequência de linhas. Uma linha rejeitada (inclusive id
    repetido) não interrompe o lote: ela é logada, contada e descartada.
    """
    resultado = ResultadoLote()
    ids_vistos = set()

    for i, row in enumerate(rows, start=1):
        resultado.total_linhas += 1
        try:
            registro = normalizar_linha(row, regras)
            if registro.id in ids_vistos:
                raise LinhaRejeitadaError(f"id duplicado ('{registro.id}')")
            ids_vistos.add(registro.id)
            resultado.registros.append(registro)
        except LinhaRejeitadaError as e:
            resultado.rejeitados += 1
            logger.warning("Linha %d descartada: %s", i, e.motivo)
            if len(resultado.erros) < MAX_ERROS_RETORNADOS:
                resultado.erros.append(f"Linha {i}: {e.motivo}")

    logger.info(
        "Lote normalizado: %d linhas, %d aceitas, %d rejeitadas",
        resultado.total_linhas, resultado.aceitos, resultado.rejeitados,
    )
    return resultado

