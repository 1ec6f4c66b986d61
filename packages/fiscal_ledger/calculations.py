"""Derived metrics over parsed/stored fiscal data.

Pure functions used by the CLI summaries and the spreadsheet export:
per-company totals, chronologically sorted monthly rows with an attention
flag, dashboard-style filtering/sorting, partner revenue shares and the
per-CPF global revenue roll-up.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Literal, TypeAlias

from .models import (
    CompanyRecord,
    CompanyTotals,
    GlobalRevenue,
    MonthlyRow,
    ParsedDataset,
    PartnerShare,
    PeriodKey,
)

ATTENTION_RATIO = 0.8
GLOBAL_REVENUE_MIN_PCT = 10.0

STATUS_OK = "OK"
STATUS_ATTENTION = "Atenção"

SortField: TypeAlias = Literal["name", "cnpj", "revenue"]


def _ratio_pct(purchases: float, revenue: float) -> float:
    return (purchases / revenue) * 100 if revenue > 0 else 0.0


def period_sort_key(period: str) -> tuple[int, int]:
    """Chronological key: numeric year, then canonical month index.

    Months outside the canonical twelve get index -1 and therefore sort
    before January of the same year. Keys without a 4-digit year sort as
    year 0.
    """

    try:
        key = PeriodKey.parse(period)
    except ValueError:
        return (0, -1)
    return (int(key.year), key.month_index)


def sort_periods(periods: Iterable[str]) -> list[str]:
    return sorted(periods, key=period_sort_key)


def company_totals(record: CompanyRecord) -> CompanyTotals:
    total_revenue = 0.0
    total_purchases = 0.0
    for totals in record.periods.values():
        total_revenue += totals.revenue
        total_purchases += totals.purchases
    return CompanyTotals(
        total_revenue=total_revenue,
        total_purchases=total_purchases,
        purchase_ratio_pct=_ratio_pct(total_purchases, total_revenue),
    )


def monthly_rows(record: CompanyRecord) -> list[MonthlyRow]:
    """Return one row per period in chronological order."""

    rows: list[MonthlyRow] = []
    for period in sort_periods(record.periods):
        t = record.periods[period]
        status = STATUS_ATTENTION if t.purchases > ATTENTION_RATIO * t.revenue else STATUS_OK
        rows.append(
            MonthlyRow(
                period=period,
                purchases=t.purchases,
                revenue=t.revenue,
                purchase_ratio_pct=_ratio_pct(t.purchases, t.revenue),
                status=status,
            )
        )
    return rows


def filter_companies(
    dataset: ParsedDataset,
    *,
    search: str | None = None,
    year: int | None = None,
    min_revenue: float | None = None,
    max_revenue: float | None = None,
    sort_by: SortField = "name",
    descending: bool = False,
) -> list[tuple[str, CompanyRecord]]:
    """Filter and order companies the way the dashboard filter panel does.

    ``search`` matches the company name (case-insensitive) or CNPJ substring.
    ``year`` keeps only periods of that year; companies left without periods
    are dropped. Revenue bounds apply to the total over the kept periods.
    """

    needle = (search or "").strip().lower()
    selected: list[tuple[str, CompanyRecord, float]] = []
    for cnpj, record in dataset.items():
        if needle and needle not in record.display_name.lower() and needle not in cnpj:
            continue

        view = record
        if year is not None:
            view = CompanyRecord(
                display_name=record.display_name,
                periods={
                    p: t for p, t in record.periods.items() if period_sort_key(p)[0] == year
                },
            )
            if not view.periods:
                continue

        revenue = company_totals(view).total_revenue
        if min_revenue is not None and revenue < min_revenue:
            continue
        if max_revenue is not None and revenue > max_revenue:
            continue
        selected.append((cnpj, view, revenue))

    if sort_by == "cnpj":
        selected.sort(key=lambda item: item[0], reverse=descending)
    elif sort_by == "revenue":
        selected.sort(key=lambda item: item[2], reverse=descending)
    else:
        selected.sort(key=lambda item: item[1].display_name.lower(), reverse=descending)
    return [(cnpj, record) for cnpj, record, _ in selected]


def partner_revenue_shares(
    total_revenue: float, partners: Sequence[Mapping[str, Any]]
) -> list[PartnerShare]:
    """Split a company's total revenue across partners by ownership percentage."""

    return [
        PartnerShare(
            name=str(p["name"]),
            ownership_pct=float(p["ownership_pct"]),
            total_revenue=total_revenue,
            revenue_share=total_revenue * float(p["ownership_pct"]) / 100,
        )
        for p in partners
    ]


def total_ownership_pct(partners: Iterable[Mapping[str, Any]]) -> float:
    return sum(float(p["ownership_pct"]) for p in partners)


def global_revenue_by_cpf(rows: Iterable[Mapping[str, Any]]) -> list[GlobalRevenue]:
    """Group partner stakes by CPF and sum each company's full revenue.

    Each row needs ``cpf``, ``name``, ``ownership_pct``, ``company_name`` and
    ``company_revenue``. Rows under :data:`GLOBAL_REVENUE_MIN_PCT` are
    ignored. Output preserves first-seen CPF order.
    """

    grouped: dict[str, GlobalRevenue] = {}
    for row in rows:
        pct = float(row["ownership_pct"])
        if pct < GLOBAL_REVENUE_MIN_PCT:
            continue
        cpf = str(row["cpf"])
        entry = grouped.get(cpf)
        if entry is None:
            entry = GlobalRevenue(cpf=cpf, name=str(row["name"]))
            grouped[cpf] = entry
        company_revenue = float(row["company_revenue"] or 0)
        entry.total_revenue += company_revenue
        entry.companies.append((str(row["company_name"]), pct, company_revenue))
    return list(grouped.values())


__all__ = [
    "ATTENTION_RATIO",
    "GLOBAL_REVENUE_MIN_PCT",
    "STATUS_OK",
    "STATUS_ATTENTION",
    "period_sort_key",
    "sort_periods",
    "company_totals",
    "monthly_rows",
    "filter_companies",
    "partner_revenue_shares",
    "total_ownership_pct",
    "global_revenue_by_cpf",
]
