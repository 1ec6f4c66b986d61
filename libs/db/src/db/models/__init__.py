"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the fiscal domain models used by ``fiscal_ledger``.
"""

from .fiscal import Base, Company, ExternalRevenue, FiscalData, Partner

__all__ = [
    "Base",
    "Company",
    "FiscalData",
    "Partner",
    "ExternalRevenue",
]
