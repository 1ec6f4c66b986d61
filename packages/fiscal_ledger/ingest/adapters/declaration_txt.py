"""Adapter for government fiscal-declaration text files.

A declaration file is a plain-text report holding one block per company and
reporting period. Each block starts at the literal header
``"Mês ou período/ano:"`` and carries:

- a ``CNPJ`` label followed by the company identifier,
- an ``Empresa`` label followed by the company name (rest of the line),
- a ``<Month>/<YYYY>`` token,
- ``ENTRADAS`` (inbound) and ``SAÍDAS`` (outbound) sections whose lines start
  with a CFOP code (``d.ddd``) followed by an amount in pt-BR format.

Parsing is lenient by contract. A block missing any header field is skipped,
unknown CFOPs and codes seen in the wrong section are ignored, and malformed
amounts count as zero. None of these raise; the only visible effect is
missing data.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from typing import Final, Literal, TypeAlias

from ...cfop import PURCHASE_CFOPS, REVENUE_CFOPS
from ...logging_setup import get_logger
from ...models import CompanyRecord, DeclarationFields, MonthTotals, ParsedDataset, PeriodKey
from ...normalizers import parse_br_amount, title_case

logger = get_logger("fiscal_ledger.ingest.declaration_txt")

BLOCK_MARKER: Final = "Mês ou período/ano:"

_BLOCK_SPLIT: Final = re.compile(r"(?=" + re.escape(BLOCK_MARKER) + r")")
RE_CNPJ: Final = re.compile(r"CNPJ[:\s]+([0-9./-]+)")
RE_COMPANY: Final = re.compile(r"Empresa[:\s]+([^\r\n]+)")
RE_PERIOD: Final = re.compile(r"\s*([A-Za-zçÇ]+)\s*/\s*([0-9]{4})")
RE_CFOP_LINE: Final = re.compile(r"^\s*([0-9]\.[0-9]{3})\s+([0-9.,]+)")

Section: TypeAlias = Literal["inbound", "outbound"]


def iter_blocks(text: str) -> Iterator[str]:
    """Yield declaration blocks, splitting right before every block marker.

    Text preceding the first marker is yielded as its own block (it normally
    fails field extraction downstream). Whitespace-only blocks are skipped.
    """

    for block in _BLOCK_SPLIT.split(text):
        if block.strip():
            yield block


def extract_fields(block: str) -> DeclarationFields | None:
    """Extract company id, company name and period; ``None`` when any is missing."""

    cnpj_m = RE_CNPJ.search(block)
    if not cnpj_m:
        return None
    company_m = RE_COMPANY.search(block)
    if not company_m:
        return None
    period_m = RE_PERIOD.search(block)
    if not period_m:
        return None

    return DeclarationFields(
        company_id=cnpj_m.group(1).strip(),
        company_name=company_m.group(1).strip(),
        period=PeriodKey(month=title_case(period_m.group(1).strip()), year=period_m.group(2)),
    )


def classify_lines(block: str, totals: MonthTotals) -> MonthTotals:
    """Accumulate CFOP-coded amounts of ``block`` into ``totals``.

    The current section starts undefined and only changes on another section
    marker line; marker lines themselves are never classified.
    """

    section: Section | None = None
    for line in block.split("\n"):
        stripped = line.strip()

        if "ENTRADAS" in stripped:
            section = "inbound"
            continue
        if "SAÍDAS" in stripped:
            section = "outbound"
            continue

        m = RE_CFOP_LINE.match(stripped)
        if not m:
            continue
        cfop, amount_raw = m.group(1), m.group(2)
        amount = parse_br_amount(amount_raw)

        if section == "inbound" and cfop in PURCHASE_CFOPS:
            totals.purchases += amount
        elif section == "outbound" and cfop in REVENUE_CFOPS:
            totals.revenue += amount

    return totals


def parse_declaration_text(text: str) -> ParsedDataset:
    """Parse the decoded text of one declaration file into a dataset.

    Blocks for the same company and period accumulate into the same totals.
    The company display name is taken from the last block seen.
    """

    dataset: ParsedDataset = {}
    skipped = 0
    for block in iter_blocks(text):
        fields = extract_fields(block)
        if fields is None:
            skipped += 1
            continue

        record = dataset.get(fields.company_id)
        if record is None:
            record = CompanyRecord(display_name=fields.company_name)
            dataset[fields.company_id] = record
        else:
            # Last block wins the name (see DESIGN.md, "Display name").
            record.display_name = fields.company_name

        classify_lines(block, record.totals_for(str(fields.period)))

    if skipped:
        logger.debug("Skipped %d block(s) without CNPJ/Empresa/period", skipped)
    return dataset


__all__ = [
    "BLOCK_MARKER",
    "iter_blocks",
    "extract_fields",
    "classify_lines",
    "parse_declaration_text",
]
