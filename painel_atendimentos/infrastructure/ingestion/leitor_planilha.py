"""
Leitura de planilhas enviadas (CSV ou XLSX) em linhas brutas.

Cada linha vira um dict {cabeçalho: valor} com espaços removidos; linhas
totalmente vazias são ignoradas. Nenhuma validação de conteúdo é feita aqui:
isso é papel do normalizador.
"""

import csv
import io
import logging
from typing import Dict, List
import chardet
import openpyxl
from painel_atendimentos.domain.exceptions import PlanilhaInvalidaError

logger = logging.getLogger(__name__)

EXTENSOES_PERMITIDAS = (".csv", ".xlsx")


def detect_encoding(raw: bytes) -> str:
    sample = raw[3:] if raw.startswith(b"\xef\xbb\xbf") else raw
    try:
        sample.decode("utf-8")
        return "utf-8"
    except UnicodeDecodeError:
        pass
    result = chardet.detect(raw)
    enc = (result.get("encoding") or "utf-8").lower().replace("-", "_")
    return "utf-8" if "ascii" in enc else enc

def detect_separator(text: str) -> str:
    first_line = text.split("\n")[0]
    candidates = {",": first_line.count(","), ";": first_line.count(";")}
    max_count = max(candidates.values())
    return max(candidates, key=lambda k: candidates[k]) if max_count > 0 else ";"


def _celula(valor) -> object:
    # datas do Excel chegam como datetime e seguem assim até o normalizador
    if valor is None:
        return ""
    if isinstance(valor, str):
        return valor.strip()
    return valor


def ler_csv(raw_content: bytes) -> List[Dict[str, object]]:
    encoding = detect_encoding(raw_content)
    try:
        decoded_content = raw_content.decode(encoding)
    except (UnicodeDecodeError, LookupError):
        decoded_content = raw_content.decode("iso-8859-1", errors="replace")
    if decoded_content.startswith("\ufeff"):
        decoded_content = decoded_content[1:]

    separator = detect_separator(decoded_content)
    reader = csv.DictReader(io.StringIO(decoded_content), delimiter=separator)

    rows = []
    for row in reader:
        linha = {
            (k or "").strip(): (v.strip() if isinstance(v, str) else "")
            for k, v in row.items()
            if k is not None
        }
        if all(v == "" for v in linha.values()):
            continue
        rows.append(linha)
    return rows


def ler_xlsx(raw_content: bytes) -> List[Dict[str, object]]:
    try:
        wb = openpyxl.load_workbook(io.BytesIO(raw_content), data_only=True, read_only=True)
    except Exception as e:
        raise PlanilhaInvalidaError("Planilha Excel inválida ou corrompida.") from e

    try:
        sheet = wb.active
        if sheet is None:
            raise PlanilhaInvalidaError("Planilha Excel vazia ou inválida.")

        linhas = sheet.iter_rows(values_only=True)
        raw_headers = next(linhas, None)
        if raw_headers is None:
            return []
        headers = [str(h).strip() if h is not None else "" for h in raw_headers]

        rows = []
        for row_values in linhas:
            if all(v is None for v in row_values):
                continue
            rows.append({
                headers[i]: _celula(row_values[i]) if i < len(row_values) else ""
                for i in range(len(headers))
                if headers[i]
            })
        return rows
    finally:
        wb.close()


def ler_planilha(filename: str, raw_content: bytes) -> List[Dict[str, object]]:
    """Lê o arquivo conforme a extensão. Levanta PlanilhaInvalidaError para formatos não suportados."""
    nome = (filename or "").lower()
    if nome.endswith(".xlsx"):
        rows = ler_xlsx(raw_content)
    elif nome.endswith(".csv"):
        rows = ler_csv(raw_content)
    else:
        raise PlanilhaInvalidaError(
            "Formato de arquivo não permitido. Por favor, envie um arquivo .csv ou .xlsx."
        )

    logger.info("Planilha %s lida: %d linhas", filename, len(rows))
    return rows
