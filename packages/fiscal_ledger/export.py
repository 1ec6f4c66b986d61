"""Spreadsheet (XLSX) reports built with pandas and openpyxl.

Two reports are produced, both returned as ``(filename, bytes)`` so callers
decide where to write them:

- a company report: monthly fiscal data with a TOTAL row, the revenue share
  per partner (only when partners exist) and a summary sheet;
- a consolidated report: one line per company plus one detail sheet per
  company.

Monetary and percentage cells are written pre-formatted (``R$ 1.234,56``,
``12.3%``) to match what operators see on screen.
"""

from __future__ import annotations

import io
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any

import pandas as pd

from .calculations import company_totals, monthly_rows, partner_revenue_shares
from .errors import CompanyNotFoundError
from .models import CompanyRecord, ParsedDataset
from .normalizers import format_brl, format_percentage, sanitize_filename_part

SHEET_NAME_MAX = 31  # Excel limit
_MONTHLY_COLUMNS = ["Mês/Ano", "Faturamento", "Compras", "Percentual C/V", "Status"]


def _monthly_frame(record: CompanyRecord, *, with_total: bool) -> pd.DataFrame:
    rows: list[dict[str, str]] = [
        {
            "Mês/Ano": r.period,
            "Faturamento": format_brl(r.revenue),
            "Compras": format_brl(r.purchases),
            "Percentual C/V": format_percentage(r.purchase_ratio_pct),
            "Status": r.status,
        }
        for r in monthly_rows(record)
    ]
    if with_total:
        totals = company_totals(record)
        rows.append(
            {
                "Mês/Ano": "TOTAL",
                "Faturamento": format_brl(totals.total_revenue),
                "Compras": format_brl(totals.total_purchases),
                "Percentual C/V": format_percentage(totals.purchase_ratio_pct),
                "Status": "",
            }
        )
    return pd.DataFrame(rows, columns=_MONTHLY_COLUMNS)


def _unique_sheet_name(name: str, used: set[str]) -> str:
    base = (name.strip() or "Empresa")[:SHEET_NAME_MAX]
    # Characters Excel rejects in sheet names
    for ch in "[]:*?/\\":
        base = base.replace(ch, "_")
    candidate = base
    n = 2
    while candidate.lower() in used:
        suffix = f" ({n})"
        candidate = base[: SHEET_NAME_MAX - len(suffix)] + suffix
        n += 1
    used.add(candidate.lower())
    return candidate


def _to_xlsx(sheets: Sequence[tuple[str, pd.DataFrame]]) -> bytes:
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        for sheet, df in sheets:
            df.to_excel(writer, index=False, sheet_name=sheet)
    return buf.getvalue()


def build_company_report(
    dataset: ParsedDataset,
    cnpj: str,
    partners: Sequence[Mapping[str, Any]] = (),
    *,
    today: date | None = None,
) -> tuple[str, bytes]:
    """Build the per-company workbook.

    ``partners`` items need ``name`` and ``ownership_pct`` (as returned by
    :func:`fiscal_ledger.persistence.list_partners`).
    """

    record = dataset.get(cnpj)
    if record is None:
        raise CompanyNotFoundError(cnpj)
    today = today or date.today()
    totals = company_totals(record)

    sheets: list[tuple[str, pd.DataFrame]] = [
        ("Dados Fiscais", _monthly_frame(record, with_total=True))
    ]

    if partners:
        shares = partner_revenue_shares(totals.total_revenue, partners)
        sheets.append(
            (
                "Faturamento por Sócio",
                pd.DataFrame(
                    [
                        {
                            "Nome do Sócio": s.name,
                            "Participação (%)": f"{s.ownership_pct:.2f}%",
                            "Faturamento Total": format_brl(s.total_revenue),
                            "Faturamento por Sócio": format_brl(s.revenue_share),
                        }
                        for s in shares
                    ]
                ),
            )
        )

    summary = [
        ("CNPJ", cnpj),
        ("Empresa", record.display_name),
        ("Faturamento Total", format_brl(totals.total_revenue)),
        ("Compras Total", format_brl(totals.total_purchases)),
        ("Percentual C/V", format_percentage(totals.purchase_ratio_pct)),
        ("Número de Sócios", str(len(partners))),
        ("Data do Relatório", today.strftime("%d/%m/%Y")),
    ]
    sheets.append(("Resumo", pd.DataFrame(summary, columns=["Campo", "Valor"])))

    filename = f"relatorio_{sanitize_filename_part(record.display_name)}_{today.isoformat()}.xlsx"
    return filename, _to_xlsx(sheets)


def build_consolidated_report(
    dataset: ParsedDataset, *, today: date | None = None
) -> tuple[str, bytes]:
    """Build the all-companies workbook."""

    today = today or date.today()
    consolidated: list[dict[str, str]] = []
    for cnpj, record in dataset.items():
        totals = company_totals(record)
        consolidated.append(
            {
                "CNPJ": cnpj,
                "Empresa": record.display_name,
                "Faturamento Total": format_brl(totals.total_revenue),
                "Compras Total": format_brl(totals.total_purchases),
                "Percentual C/V": format_percentage(totals.purchase_ratio_pct),
            }
        )

    used = {"consolidado"}
    sheets: list[tuple[str, pd.DataFrame]] = [
        (
            "Consolidado",
            pd.DataFrame(
                consolidated,
                columns=["CNPJ", "Empresa", "Faturamento Total", "Compras Total", "Percentual C/V"],
            ),
        )
    ]
    for record in dataset.values():
        sheets.append(
            (
                _unique_sheet_name(record.display_name, used),
                _monthly_frame(record, with_total=False),
            )
        )

    return f"relatorio_consolidado_{today.isoformat()}.xlsx", _to_xlsx(sheets)


__all__ = ["build_company_report", "build_consolidated_report", "SHEET_NAME_MAX"]
