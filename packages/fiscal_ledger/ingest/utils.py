"""Ingest utilities shared by CLI commands and the public API.

Batch entry points that read declaration files, decode them as ISO-8859-1,
parse each into an independent partial dataset and fold the partials into
one result. Reading is all-or-nothing: the first file that cannot be read or
decoded aborts the batch with :class:`~fiscal_ledger.errors.DeclarationReadError`
and no partial dataset is returned.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from os import PathLike
from pathlib import Path
from typing import Final

from ..aggregate import fold_datasets
from ..errors import DeclarationReadError
from ..logging_setup import get_logger
from ..models import ParsedDataset
from .adapters.declaration_txt import parse_declaration_text

logger = get_logger("fiscal_ledger.ingest")

SOURCE_ENCODING: Final = "iso-8859-1"


def decode_declaration(name: str, data: bytes) -> str:
    """Decode raw file bytes, raising :class:`DeclarationReadError` on failure."""

    try:
        return data.decode(SOURCE_ENCODING)
    except UnicodeDecodeError as e:
        raise DeclarationReadError(name, e) from e


def parse_declaration_uploads(uploads: Mapping[str, bytes]) -> ParsedDataset:
    """Parse already-read uploads keyed by file name."""

    texts = [(name, decode_declaration(name, data)) for name, data in uploads.items()]
    return _parse_texts(texts)


def parse_declaration_files(paths: Iterable[str | PathLike[str]]) -> ParsedDataset:
    """Read and parse declaration files from disk.

    Every file is read before any parsing starts, so a read failure on any
    file leaves no observable partial result.
    """

    texts: list[tuple[str, str]] = []
    for raw in paths:
        p = Path(raw)
        try:
            data = p.read_bytes()
        except OSError as e:
            raise DeclarationReadError(p.name, e) from e
        texts.append((p.name, decode_declaration(p.name, data)))
    return _parse_texts(texts)


def _parse_texts(texts: list[tuple[str, str]]) -> ParsedDataset:
    partials: list[ParsedDataset] = []
    for name, text in texts:
        partial = parse_declaration_text(text)
        logger.debug("Parsed %s: %d company(ies)", name, len(partial))
        partials.append(partial)

    dataset = fold_datasets(partials)
    logger.info("Parsed %d file(s): %d company(ies) found", len(texts), len(dataset))
    return dataset


__all__ = [
    "SOURCE_ENCODING",
    "decode_declaration",
    "parse_declaration_uploads",
    "parse_declaration_files",
]
