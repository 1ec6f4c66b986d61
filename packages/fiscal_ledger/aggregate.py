"""Merging of parsed datasets.

A merge is always additive: for each (company, period) present on both
sides, purchases and revenue are summed field by field; new companies and
periods are copied in. Re-merging the same data therefore doubles it. There
is no deduplication by source file.

The company display name follows the incoming side (last writer wins).
"""

from __future__ import annotations

from collections.abc import Iterable

from .models import ParsedDataset


def merge_into(base: ParsedDataset, incoming: ParsedDataset) -> ParsedDataset:
    """Fold ``incoming`` into ``base`` in place and return ``base``.

    ``incoming`` is never aliased: records and totals are copied so later
    mutation of ``base`` cannot leak back.
    """

    for company_id, record in incoming.items():
        existing = base.get(company_id)
        if existing is None:
            base[company_id] = record.copy()
            continue

        existing.display_name = record.display_name
        for period, totals in record.periods.items():
            current = existing.periods.get(period)
            if current is None:
                existing.periods[period] = totals.copy()
            else:
                current.add(totals)
    return base


def merge_datasets(base: ParsedDataset, incoming: ParsedDataset) -> ParsedDataset:
    """Return a new dataset with ``incoming`` merged over ``base``; inputs are untouched."""

    out: ParsedDataset = {k: v.copy() for k, v in base.items()}
    return merge_into(out, incoming)


def fold_datasets(partials: Iterable[ParsedDataset]) -> ParsedDataset:
    """Merge independent partial results (one per file) into a single dataset."""

    out: ParsedDataset = {}
    for partial in partials:
        merge_into(out, partial)
    return out


__all__ = ["merge_into", "merge_datasets", "fold_datasets"]
