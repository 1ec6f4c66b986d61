"""Data models and type aliases for ``fiscal_ledger``.

The parse pipeline produces a :data:`ParsedDataset`: a mapping from company
identifier (CNPJ, as printed in the declaration) to a :class:`CompanyRecord`
whose ``periods`` map a period key (``"<Month> <Year>"``) to mutable
:class:`MonthTotals`. Plain dicts/dataclasses keep the structure cheap to
merge and easy to hand to persistence and export code.

Validated input models (partners, external revenues, manual fiscal entries)
use pydantic, mirroring how typed DTOs are validated elsewhere in the
workspace.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import NamedTuple, TypeAlias

from pydantic import BaseModel, ConfigDict, field_validator

from .cfop import MONTHS_ORDER

# ---------------------------------------------------------------------------
# Parse results
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class MonthTotals:
    """Purchase and revenue totals for one company in one period.

    Created empty when a (company, period) pair is first seen and mutated by
    accumulation as matching line items are found.
    """

    purchases: float = 0.0
    revenue: float = 0.0

    def add(self, other: MonthTotals) -> None:
        self.purchases += other.purchases
        self.revenue += other.revenue

    def copy(self) -> MonthTotals:
        return MonthTotals(purchases=self.purchases, revenue=self.revenue)


@dataclass(slots=True)
class CompanyRecord:
    """A company's display name and its per-period totals."""

    display_name: str
    periods: dict[str, MonthTotals] = field(default_factory=dict)

    def totals_for(self, period: str) -> MonthTotals:
        """Return the totals for ``period``, creating an empty entry on first use."""

        totals = self.periods.get(period)
        if totals is None:
            totals = MonthTotals()
            self.periods[period] = totals
        return totals

    def copy(self) -> CompanyRecord:
        return CompanyRecord(
            display_name=self.display_name,
            periods={k: v.copy() for k, v in self.periods.items()},
        )


ParsedDataset: TypeAlias = dict[str, CompanyRecord]
"""Company identifier (CNPJ) → :class:`CompanyRecord`."""


class PeriodKey(NamedTuple):
    """A ``(month, year)`` pair identifying a reporting period.

    ``month`` is expected to be one of :data:`~fiscal_ledger.cfop.MONTHS_ORDER`
    but is not enforced; unknown names sort before January (index -1).
    """

    month: str
    year: str

    def __str__(self) -> str:
        return f"{self.month} {self.year}"

    @property
    def month_index(self) -> int:
        try:
            return MONTHS_ORDER.index(self.month)
        except ValueError:
            return -1

    @classmethod
    def parse(cls, value: str) -> PeriodKey:
        """Parse ``"<Month> <YYYY>"``; raises ``ValueError`` on other shapes."""

        m = _PERIOD_RE.match(value.strip()) if value else None
        if not m:
            raise ValueError(f"invalid period key: {value!r} (expected '<Month> <YYYY>')")
        return cls(month=m.group(1), year=m.group(2))


_PERIOD_RE = re.compile(r"^(\S+)\s+([0-9]{4})$")


@dataclass(frozen=True, slots=True)
class DeclarationFields:
    """Header fields extracted from one declaration block."""

    company_id: str
    company_name: str
    period: PeriodKey


# ---------------------------------------------------------------------------
# Derived metrics
# ---------------------------------------------------------------------------


class CompanyTotals(NamedTuple):
    total_revenue: float
    total_purchases: float
    purchase_ratio_pct: float


@dataclass(frozen=True, slots=True)
class MonthlyRow:
    """One row of a company's chronological monthly summary.

    ``status`` is ``"Atenção"`` when purchases exceed 80% of revenue,
    otherwise ``"OK"``.
    """

    period: str
    purchases: float
    revenue: float
    purchase_ratio_pct: float
    status: str


@dataclass(frozen=True, slots=True)
class PartnerShare:
    name: str
    ownership_pct: float
    total_revenue: float
    revenue_share: float


@dataclass(slots=True)
class GlobalRevenue:
    """Revenue of every company a partner (by CPF) holds a relevant stake in."""

    cpf: str
    name: str
    total_revenue: float = 0.0
    companies: list[tuple[str, float, float]] = field(default_factory=list)
    """``(company_name, ownership_pct, company_revenue)`` entries."""


# ---------------------------------------------------------------------------
# Validated inputs for manual edits
# ---------------------------------------------------------------------------


def _digits_only(value: str) -> str:
    return re.sub(r"\D", "", value or "")


def _check_cpf(value: str) -> str:
    digits = _digits_only(value)
    if len(digits) != 11:
        raise ValueError("cpf must contain exactly 11 digits")
    return digits


def _check_period(value: str) -> str:
    return str(PeriodKey.parse(value))


class PartnerInput(BaseModel):
    """A partner (sócio) as submitted by an operator."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    id: int | None = None
    name: str
    cpf: str
    ownership_pct: float
    role: str | None = None
    active: bool = True

    @field_validator("name")
    @classmethod
    def _name_non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("name must be non-empty")
        return v

    @field_validator("cpf")
    @classmethod
    def _cpf_eleven_digits(cls, v: str) -> str:
        return _check_cpf(v)

    @field_validator("ownership_pct")
    @classmethod
    def _pct_in_range(cls, v: float) -> float:
        if 0.0 <= v <= 100.0:
            return float(v)
        raise ValueError("ownership_pct must be within [0,100]")


class ExternalRevenueInput(BaseModel):
    """Revenue earned by a CPF outside the tracked companies."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    id: int | None = None
    cpf: str
    period: str
    amount: float
    description: str | None = None

    @field_validator("cpf")
    @classmethod
    def _cpf_eleven_digits(cls, v: str) -> str:
        return _check_cpf(v)

    @field_validator("period")
    @classmethod
    def _period_shape(cls, v: str) -> str:
        return _check_period(v)

    @field_validator("amount")
    @classmethod
    def _amount_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("amount must be non-negative")
        return float(v)


class FiscalEntryInput(BaseModel):
    """A manually entered period of totals for a company."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    period: str
    purchases: float = 0.0
    revenue: float = 0.0

    @field_validator("period")
    @classmethod
    def _period_shape(cls, v: str) -> str:
        return _check_period(v)

    @field_validator("purchases", "revenue")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("amounts must be non-negative")
        return float(v)


__all__ = [
    "MonthTotals",
    "CompanyRecord",
    "ParsedDataset",
    "PeriodKey",
    "DeclarationFields",
    "CompanyTotals",
    "MonthlyRow",
    "PartnerShare",
    "GlobalRevenue",
    "PartnerInput",
    "ExternalRevenueInput",
    "FiscalEntryInput",
]
