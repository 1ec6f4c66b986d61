"""Public interface for the ``fiscal_ledger`` package.

This module exposes the package's API functions and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

from .aggregate import fold_datasets, merge_datasets, merge_into
from .api import IngestResult, ingest_and_persist, ingest_declarations, ingest_uploads
from .calculations import company_totals, filter_companies, monthly_rows, period_sort_key
from .errors import (
    CompanyNotFoundError,
    DeclarationReadError,
    DuplicatePeriodError,
    FiscalLedgerError,
    NoValidDataError,
)
from .ingest.adapters.declaration_txt import (
    classify_lines,
    extract_fields,
    iter_blocks,
    parse_declaration_text,
)
from .ingest.utils import parse_declaration_files, parse_declaration_uploads
from .models import (
    CompanyRecord,
    CompanyTotals,
    DeclarationFields,
    ExternalRevenueInput,
    FiscalEntryInput,
    MonthlyRow,
    MonthTotals,
    ParsedDataset,
    PartnerInput,
    PeriodKey,
)
from .normalizers import parse_br_amount

__all__ = [
    # API
    "ingest_declarations",
    "ingest_uploads",
    "ingest_and_persist",
    "IngestResult",
    "parse_declaration_files",
    "parse_declaration_uploads",
    "parse_declaration_text",
    "iter_blocks",
    "extract_fields",
    "classify_lines",
    "parse_br_amount",
    "merge_datasets",
    "merge_into",
    "fold_datasets",
    "company_totals",
    "monthly_rows",
    "filter_companies",
    "period_sort_key",
    # Models / types
    "MonthTotals",
    "CompanyRecord",
    "ParsedDataset",
    "PeriodKey",
    "DeclarationFields",
    "CompanyTotals",
    "MonthlyRow",
    "PartnerInput",
    "ExternalRevenueInput",
    "FiscalEntryInput",
    # Errors
    "FiscalLedgerError",
    "DeclarationReadError",
    "NoValidDataError",
    "DuplicatePeriodError",
    "CompanyNotFoundError",
]
