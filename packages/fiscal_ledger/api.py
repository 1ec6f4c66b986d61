"""Public API and orchestration for the ``fiscal_ledger`` package.

Parsing lives in ``fiscal_ledger.ingest``; merging in
``fiscal_ledger.aggregate``. This module ties them to the caller's
long-lived dataset and, optionally, to the database.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from os import PathLike

from .aggregate import merge_datasets
from .errors import NoValidDataError
from .ingest.utils import parse_declaration_files, parse_declaration_uploads
from .logging_setup import get_logger
from .models import ParsedDataset

# DB and persistence imports are local within functions to keep import-time
# costs low for consumers that only parse.

logger = get_logger("fiscal_ledger.api")


@dataclass(frozen=True, slots=True)
class IngestResult:
    """Outcome of one upload batch.

    ``parsed`` holds only what this batch contributed; ``merged`` is the
    caller's dataset with ``parsed`` folded in.
    """

    parsed: ParsedDataset
    merged: ParsedDataset
    n_files: int


def ingest_declarations(
    paths: Sequence[str | PathLike[str]],
    *,
    existing: ParsedDataset | None = None,
) -> IngestResult:
    """Parse a batch of declaration files and merge it into ``existing``.

    Raises
    ------
    DeclarationReadError
        When any file cannot be read or decoded (nothing is merged).
    NoValidDataError
        When the batch yields no recognized company.
    """

    parsed = parse_declaration_files(paths)
    if not parsed:
        raise NoValidDataError(len(paths))
    merged = merge_datasets(existing or {}, parsed)
    return IngestResult(parsed=parsed, merged=merged, n_files=len(paths))


def ingest_uploads(
    uploads: dict[str, bytes], *, existing: ParsedDataset | None = None
) -> IngestResult:
    """Same as :func:`ingest_declarations` for in-memory uploads keyed by file name."""

    parsed = parse_declaration_uploads(uploads)
    if not parsed:
        raise NoValidDataError(len(uploads))
    merged = merge_datasets(existing or {}, parsed)
    return IngestResult(parsed=parsed, merged=merged, n_files=len(uploads))


def ingest_and_persist(
    paths: Sequence[str | PathLike[str]],
    *,
    database_url: str | None = None,
) -> IngestResult:
    """Parse a batch, merge it into the stored dataset and save the result.

    Parsing happens before any database work, so read failures never open a
    transaction.
    """

    from db.client import session_scope

    from .persistence import load_dataset, save_dataset

    parsed = parse_declaration_files(paths)
    if not parsed:
        raise NoValidDataError(len(paths))

    with session_scope(database_url=database_url) as session:
        stored = load_dataset(session)
        merged = merge_datasets(stored, parsed)
        # Only companies touched by this batch need writing.
        save_dataset(session, {cnpj: merged[cnpj] for cnpj in parsed})

    logger.info("Persisted %d company(ies) from %d file(s)", len(parsed), len(paths))
    return IngestResult(parsed=parsed, merged=merged, n_files=len(paths))


__all__ = [
    "IngestResult",
    "ingest_declarations",
    "ingest_uploads",
    "ingest_and_persist",
]
