import io
from datetime import datetime

import openpyxl
import pytest

from painel_atendimentos.domain.exceptions import PlanilhaInvalidaError
from painel_atendimentos.infrastructure.ingestion.leitor_planilha import (
    detect_separator,
    ler_planilha,
)
from painel_atendimentos.shared.utils.datas import parse_data_hora


# ==========================================
# DATAS
# ==========================================

@pytest.mark.parametrize("valor, esperado", [
    ("2024-01-01T10:00:00", datetime(2024, 1, 1, 10, 0)),
    ("2024-01-01 10:00:00", datetime(2024, 1, 1, 10, 0)),
    ("2024-01-01T10:00:00Z", datetime(2024, 1, 1, 10, 0)),
    ("2024-01-01T10:00:00-03:00", datetime(2024, 1, 1, 10, 0)),
    ("01/01/2024 10:00:00", datetime(2024, 1, 1, 10, 0)),
    ("01/01/2024 10:00", datetime(2024, 1, 1, 10, 0)),
    (datetime(2024, 1, 1, 10, 0), datetime(2024, 1, 1, 10, 0)),
])
def test_parse_data_hora(valor, esperado):
    assert parse_data_hora(valor) == esperado


@pytest.mark.parametrize("valor", [None, "", "   ", "amanhã", "32/13/2024 10:00:00"])
def test_parse_data_hora_invalida(valor):
    assert parse_data_hora(valor) is None


# ==========================================
# CSV
# ==========================================

def test_detect_separator():
    assert detect_separator("a;b;c\n1;2;3") == ";"
    assert detect_separator("a,b,c\n1,2,3") == ","
    assert detect_separator("coluna_unica\n1") == ";"


def test_ler_csv_com_ponto_e_virgula_e_bom():
    conteudo = "\ufeffid;dataHoraInicio;dataHoraFim;casa\n1;2024-01-01T10:00:00;2024-01-01T10:15:00; Casa A \n;;;\n"
    rows = ler_planilha("base.csv", conteudo.encode("utf-8"))

    assert rows == [{
        "id": "1",
        "dataHoraInicio": "2024-01-01T10:00:00",
        "dataHoraFim": "2024-01-01T10:15:00",
        "casa": "Casa A",
    }]


def test_ler_csv_latin1():
    conteudo = "id,casa\n1,Falta de Interação\n2,Atenção ao cliente\n"
    rows = ler_planilha("base.CSV", conteudo.encode("latin-1"))

    assert len(rows) == 2
    assert rows[0]["id"] == "1"
    assert rows[0]["casa"].startswith("Falta de Intera")


# ==========================================
# XLSX
# ==========================================

def test_ler_xlsx_preserva_datas():
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.append(["id", "dataHoraInicio", "dataHoraFim", "casa"])
    ws.append([1, datetime(2024, 1, 1, 10, 0), datetime(2024, 1, 1, 10, 15), None])
    ws.append([None, None, None, None])
    buffer = io.BytesIO()
    wb.save(buffer)

    rows = ler_planilha("base.xlsx", buffer.getvalue())

    assert len(rows) == 1
    assert rows[0]["id"] == 1
    assert rows[0]["dataHoraInicio"] == datetime(2024, 1, 1, 10, 0)
    assert rows[0]["casa"] == ""


def test_xlsx_corrompido():
    with pytest.raises(PlanilhaInvalidaError):
        ler_planilha("base.xlsx", b"isto nao e um xlsx")


def test_extensao_nao_suportada():
    with pytest.raises(PlanilhaInvalidaError):
        ler_planilha("base.txt", b"id\n1")
