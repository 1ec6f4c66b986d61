# ruff: noqa: I001
"""Persistence integration for fiscal_ledger.

Functions here read and write the shared database owned by ``libs/db``. They
rely on SQLAlchemy ORM models defined in ``db.models.fiscal`` and take an
active session (see ``db.client.session_scope``); committing is the caller's
responsibility.

Scope:
- Upsert companies (by CNPJ) and their per-period totals.
- Rebuild the accumulated dataset from stored rows.
- Manual edits of fiscal entries, partners and external revenues.
- Query rows for the per-CPF global revenue roll-up.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Literal, TypeAlias

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from db.models.fiscal import Company, ExternalRevenue, FiscalData, Partner
from .calculations import GLOBAL_REVENUE_MIN_PCT, period_sort_key
from .errors import CompanyNotFoundError, DuplicatePeriodError
from .logging_setup import get_logger
from .models import (
    CompanyRecord,
    ExternalRevenueInput,
    FiscalEntryInput,
    MonthTotals,
    ParsedDataset,
    PartnerInput,
)

logger = get_logger("fiscal_ledger.persistence")

TotalsField: TypeAlias = Literal["purchases", "revenue"]


def _to_decimal_2(raw: Any) -> Decimal:
    try:
        d = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return Decimal("0.00")
    return d.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _insert_for(session: Session, model: Any):
    """Return a dialect-specific INSERT supporting ``on_conflict_do_update``."""

    dialect = session.get_bind().dialect.name
    if dialect == "sqlite":
        return sqlite_insert(model)
    return pg_insert(model)


def _company_id(session: Session, cnpj: str) -> int:
    company_id = session.scalar(select(Company.id).where(Company.cnpj == cnpj))
    if company_id is None:
        raise CompanyNotFoundError(cnpj)
    return company_id


# ---------------------------------------------------------------------------
# Companies and fiscal data
# ---------------------------------------------------------------------------


def save_dataset(session: Session, dataset: ParsedDataset) -> None:
    """Upsert every company and period of ``dataset``.

    Company names are overwritten (last writer wins). Stored period totals
    are replaced by the dataset's values: callers merge new parse results
    into the stored dataset first (see :func:`load_dataset`).
    """

    now = func.now()

    for cnpj, record in dataset.items():
        stmt = _insert_for(session, Company).values(cnpj=cnpj, name=record.display_name)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Company.cnpj],
            set_={"name": stmt.excluded.name, "updated_at": now},
        )
        session.execute(stmt)
        company_id = _company_id(session, cnpj)

        payloads = [
            {
                "company_id": company_id,
                "period": period,
                "purchases": _to_decimal_2(totals.purchases),
                "revenue": _to_decimal_2(totals.revenue),
            }
            for period, totals in record.periods.items()
        ]
        if not payloads:
            continue
        fstmt = _insert_for(session, FiscalData).values(payloads)
        fstmt = fstmt.on_conflict_do_update(
            index_elements=[FiscalData.company_id, FiscalData.period],
            set_={
                "purchases": fstmt.excluded.purchases,
                "revenue": fstmt.excluded.revenue,
                "updated_at": now,
            },
        )
        session.execute(fstmt)

    logger.info("Saved %d company(ies)", len(dataset))


def load_dataset(session: Session) -> ParsedDataset:
    """Rebuild the accumulated dataset from ``companies`` and ``fiscal_data``."""

    dataset: ParsedDataset = {}
    for company in session.scalars(select(Company).order_by(Company.id)):
        dataset[company.cnpj] = CompanyRecord(display_name=company.name)

    rows = session.execute(
        select(Company.cnpj, FiscalData.period, FiscalData.purchases, FiscalData.revenue).join(
            FiscalData, FiscalData.company_id == Company.id
        )
    )
    for cnpj, period, purchases, revenue in rows:
        dataset[cnpj].periods[period] = MonthTotals(
            purchases=float(purchases), revenue=float(revenue)
        )
    return dataset


def list_companies(session: Session) -> list[dict[str, Any]]:
    return [
        {"id": c.id, "cnpj": c.cnpj, "name": c.name}
        for c in session.scalars(select(Company).order_by(Company.name))
    ]


def list_fiscal_entries(session: Session, cnpj: str) -> list[dict[str, Any]]:
    """Return a company's stored periods, most recent first."""

    company_id = _company_id(session, cnpj)
    rows = session.scalars(select(FiscalData).where(FiscalData.company_id == company_id)).all()
    entries = [
        {"period": r.period, "purchases": float(r.purchases), "revenue": float(r.revenue)}
        for r in rows
    ]
    entries.sort(key=lambda e: period_sort_key(e["period"]), reverse=True)
    return entries


def add_fiscal_entry(session: Session, cnpj: str, entry: FiscalEntryInput) -> None:
    """Insert a manual period; raises :class:`DuplicatePeriodError` if it exists."""

    company_id = _company_id(session, cnpj)
    exists = session.scalar(
        select(FiscalData.id).where(
            (FiscalData.company_id == company_id) & (FiscalData.period == entry.period)
        )
    )
    if exists is not None:
        raise DuplicatePeriodError(cnpj, entry.period)
    session.add(
        FiscalData(
            company_id=company_id,
            period=entry.period,
            purchases=_to_decimal_2(entry.purchases),
            revenue=_to_decimal_2(entry.revenue),
        )
    )
    session.flush()


def update_fiscal_entry(
    session: Session, cnpj: str, period: str, field: TotalsField, value: float
) -> bool:
    """Overwrite one field of a stored period. Returns ``False`` when no row matched."""

    if field not in ("purchases", "revenue"):
        raise ValueError(f"unknown field: {field!r}")
    if value < 0:
        raise ValueError("amounts must be non-negative")
    company_id = _company_id(session, cnpj)
    result = session.execute(
        update(FiscalData)
        .where((FiscalData.company_id == company_id) & (FiscalData.period == period))
        .values({field: _to_decimal_2(value), "updated_at": func.now()})
    )
    return bool(result.rowcount)


def delete_fiscal_entry(session: Session, cnpj: str, period: str) -> bool:
    company_id = _company_id(session, cnpj)
    result = session.execute(
        delete(FiscalData).where(
            (FiscalData.company_id == company_id) & (FiscalData.period == period)
        )
    )
    return bool(result.rowcount)


# ---------------------------------------------------------------------------
# Partners
# ---------------------------------------------------------------------------


def _partner_dict(p: Partner) -> dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "cpf": p.cpf,
        "ownership_pct": float(p.ownership_pct),
        "role": p.role,
        "active": p.active,
    }


def list_partners(session: Session, cnpj: str, *, active_only: bool = True) -> list[dict[str, Any]]:
    company_id = _company_id(session, cnpj)
    stmt = select(Partner).where(Partner.company_id == company_id)
    if active_only:
        stmt = stmt.where(Partner.active.is_(True))
    return [_partner_dict(p) for p in session.scalars(stmt.order_by(Partner.id))]


def save_partner(session: Session, cnpj: str, partner: PartnerInput) -> int:
    """Insert a new partner, or update the one identified by ``partner.id``."""

    company_id = _company_id(session, cnpj)
    values: Mapping[str, Any] = {
        "company_id": company_id,
        "name": partner.name,
        "cpf": partner.cpf,
        "ownership_pct": _to_decimal_2(partner.ownership_pct),
        "role": partner.role,
        "active": partner.active,
    }
    if partner.id is not None:
        result = session.execute(update(Partner).where(Partner.id == partner.id).values(values))
        if not result.rowcount:
            raise LookupError(f"partner not found: {partner.id}")
        return partner.id

    row = Partner(**values)
    session.add(row)
    session.flush()
    return row.id


def deactivate_partner(session: Session, partner_id: int) -> bool:
    """Soft-delete a partner (``active=False``)."""

    result = session.execute(update(Partner).where(Partner.id == partner_id).values(active=False))
    return bool(result.rowcount)


# ---------------------------------------------------------------------------
# External revenues
# ---------------------------------------------------------------------------


def list_external_revenues(session: Session) -> list[dict[str, Any]]:
    """Return every external revenue, most recent period first."""

    rows = [
        {
            "id": r.id,
            "cpf": r.cpf,
            "period": r.period,
            "amount": float(r.amount),
            "description": r.description,
        }
        for r in session.scalars(select(ExternalRevenue).order_by(ExternalRevenue.id))
    ]
    rows.sort(key=lambda r: period_sort_key(r["period"]), reverse=True)
    return rows


def save_external_revenue(session: Session, item: ExternalRevenueInput) -> int:
    values = {
        "cpf": item.cpf,
        "period": item.period,
        "amount": _to_decimal_2(item.amount),
        "description": item.description,
    }
    if item.id is not None:
        result = session.execute(
            update(ExternalRevenue).where(ExternalRevenue.id == item.id).values(values)
        )
        if not result.rowcount:
            raise LookupError(f"external revenue not found: {item.id}")
        return item.id

    row = ExternalRevenue(**values)
    session.add(row)
    session.flush()
    return row.id


def delete_external_revenue(session: Session, revenue_id: int) -> bool:
    result = session.execute(delete(ExternalRevenue).where(ExternalRevenue.id == revenue_id))
    return bool(result.rowcount)


# ---------------------------------------------------------------------------
# Global revenue
# ---------------------------------------------------------------------------


def global_revenue_rows(session: Session) -> list[dict[str, Any]]:
    """Return one row per active partner stake of at least 10%.

    Each row carries the full stored revenue of the partner's company, ready
    for :func:`fiscal_ledger.calculations.global_revenue_by_cpf`.
    """

    company_revenue = (
        select(FiscalData.company_id, func.sum(FiscalData.revenue).label("revenue"))
        .group_by(FiscalData.company_id)
        .subquery()
    )
    stmt = (
        select(
            Partner.cpf,
            Partner.name,
            Partner.ownership_pct,
            Company.name.label("company_name"),
            company_revenue.c.revenue,
        )
        .join(Company, Company.id == Partner.company_id)
        .outerjoin(company_revenue, company_revenue.c.company_id == Company.id)
        .where(Partner.active.is_(True))
        .where(Partner.ownership_pct >= GLOBAL_REVENUE_MIN_PCT)
        .order_by(Partner.id)
    )
    return [
        {
            "cpf": cpf,
            "name": name,
            "ownership_pct": float(pct),
            "company_name": company_name,
            "company_revenue": float(revenue or 0),
        }
        for cpf, name, pct, company_name, revenue in session.execute(stmt)
    ]


__all__ = [
    "save_dataset",
    "load_dataset",
    "list_companies",
    "list_fiscal_entries",
    "add_fiscal_entry",
    "update_fiscal_entry",
    "delete_fiscal_entry",
    "list_partners",
    "save_partner",
    "deactivate_partner",
    "list_external_revenues",
    "save_external_revenue",
    "delete_external_revenue",
    "global_revenue_rows",
]
