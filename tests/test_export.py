from __future__ import annotations

import io
from datetime import date

import pandas as pd
import pytest

from fiscal_ledger.errors import CompanyNotFoundError
from fiscal_ledger.export import build_company_report, build_consolidated_report
from fiscal_ledger.models import CompanyRecord, MonthTotals

TODAY = date(2024, 5, 17)


def _dataset():
    return {
        "11.222.333/0001-44": CompanyRecord(
            "ACME Comércio",
            {
                "Fevereiro 2024": MonthTotals(900.0, 1000.0),
                "Janeiro 2024": MonthTotals(100.0, 1000.0),
            },
        ),
        "99.888.777/0001-66": CompanyRecord(
            "Uma Empresa Com Um Nome Muito Comprido SA", {"Março 2023": MonthTotals(0.0, 50.0)}
        ),
    }


def _read(data: bytes) -> dict[str, pd.DataFrame]:
    return pd.read_excel(io.BytesIO(data), sheet_name=None, dtype=str, keep_default_na=False)


def test_company_report_sheets_and_filename():
    partners = [{"name": "Ana", "ownership_pct": 60.0}, {"name": "Bruno", "ownership_pct": 40.0}]

    filename, data = build_company_report(_dataset(), "11.222.333/0001-44", partners, today=TODAY)

    assert filename == "relatorio_ACME_Com_rcio_2024-05-17.xlsx"
    sheets = _read(data)
    assert list(sheets) == ["Dados Fiscais", "Faturamento por Sócio", "Resumo"]

    fiscal = sheets["Dados Fiscais"]
    assert fiscal["Mês/Ano"].tolist() == ["Janeiro 2024", "Fevereiro 2024", "TOTAL"]
    assert fiscal["Status"].tolist() == ["OK", "Atenção", ""]
    assert fiscal["Faturamento"].tolist()[-1] == "R$ 2.000,00"
    assert fiscal["Percentual C/V"].tolist()[-1] == "50.0%"

    shares = sheets["Faturamento por Sócio"]
    assert shares["Faturamento por Sócio"].tolist() == ["R$ 1.200,00", "R$ 800,00"]

    summary = dict(zip(sheets["Resumo"]["Campo"], sheets["Resumo"]["Valor"], strict=True))
    assert summary["Número de Sócios"] == "2"
    assert summary["Data do Relatório"] == "17/05/2024"


def test_company_report_without_partners_skips_share_sheet():
    _, data = build_company_report(_dataset(), "11.222.333/0001-44", today=TODAY)
    assert list(_read(data)) == ["Dados Fiscais", "Resumo"]


def test_company_report_unknown_company():
    with pytest.raises(CompanyNotFoundError):
        build_company_report(_dataset(), "nope")


def test_consolidated_report():
    filename, data = build_consolidated_report(_dataset(), today=TODAY)

    assert filename == "relatorio_consolidado_2024-05-17.xlsx"
    sheets = _read(data)
    names = list(sheets)
    assert names[0] == "Consolidado"
    assert names[1] == "ACME Comércio"
    # Excel caps sheet names at 31 characters
    assert names[2] == "Uma Empresa Com Um Nome Muito C"
    assert sheets["Consolidado"]["Faturamento Total"].tolist() == ["R$ 2.000,00", "R$ 50,00"]
    assert "TOTAL" not in sheets["ACME Comércio"]["Mês/Ano"].tolist()
