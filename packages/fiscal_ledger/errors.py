"""Exception types raised by ``fiscal_ledger``.

Per-block and per-line parse anomalies are never raised; they degrade to "no
contribution". Only batch-level failures and invalid manual edits surface as
exceptions.
"""

from __future__ import annotations


class FiscalLedgerError(Exception):
    """Base class for package errors."""


class DeclarationReadError(FiscalLedgerError):
    """A declaration file in a batch could not be read or decoded.

    Fatal to the whole batch: no partial dataset is returned.
    """

    def __init__(self, filename: str, cause: BaseException | None = None) -> None:
        self.filename = filename
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Erro ao ler arquivo: {filename}{detail}")


class NoValidDataError(FiscalLedgerError):
    """A batch was read successfully but yielded no recognized companies."""

    def __init__(self, n_files: int) -> None:
        self.n_files = n_files
        super().__init__(
            f"no valid data found: {n_files} file(s) contain no recognizable declarations"
        )


class DuplicatePeriodError(FiscalLedgerError):
    """A manual fiscal entry was added for a period that already exists."""

    def __init__(self, cnpj: str, period: str) -> None:
        self.cnpj = cnpj
        self.period = period
        super().__init__(f"an entry for {period!r} already exists for company {cnpj}")


class CompanyNotFoundError(FiscalLedgerError):
    def __init__(self, cnpj: str) -> None:
        self.cnpj = cnpj
        super().__init__(f"company not found: {cnpj}")


__all__ = [
    "FiscalLedgerError",
    "DeclarationReadError",
    "NoValidDataError",
    "DuplicatePeriodError",
    "CompanyNotFoundError",
]
