"""Locale helpers for Brazilian fiscal text: amounts, labels and display formats.

Declarations print amounts as ``1.234,56`` (dot thousands separator, comma
decimal separator). Parsing is deliberately lenient: anything that does not
start with a number normalizes to ``0.0`` instead of raising, since malformed
numeric tokens must never abort a parse.
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

# Leading numeric prefix of an already dot-decimal string (lenient float read).
_NUMERIC_PREFIX = re.compile(r"\s*[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def parse_br_amount(raw: str | None) -> float:
    """Convert a pt-BR formatted amount to ``float``.

    Every ``.`` is dropped and the first ``,`` becomes the decimal point. The
    longest numeric prefix of the result is read, exponent included; when
    there is none the value is ``0.0``.

    Examples::

        parse_br_amount("1.234,56")  -> 1234.56
        parse_br_amount("0,00")      -> 0.0
        parse_br_amount("1e5")       -> 100000.0
        parse_br_amount("abc")       -> 0.0
    """

    if not raw:
        return 0.0
    s = str(raw).replace(".", "").replace(",", ".", 1)
    m = _NUMERIC_PREFIX.match(s)
    if not m:
        return 0.0
    try:
        return float(m.group())
    except ValueError:
        return 0.0


def title_case(token: str) -> str:
    """Upper-case the first character and lower-case the rest (``"MARÇO"`` → ``"Março"``)."""

    return token[:1].upper() + token[1:].lower()


def digits_only(value: str | None) -> str:
    return re.sub(r"\D", "", value or "")


# ---------------------------------------------------------------------------
# Display formatting
# ---------------------------------------------------------------------------


def format_brl(value: float) -> str:
    """Format ``value`` as Brazilian currency, e.g. ``"R$ 1.234,56"``."""

    s = f"{abs(value):,.2f}"
    # Swap separators: 1,234.56 -> 1.234,56
    s = s.replace(",", "X").replace(".", ",").replace("X", ".")
    sign = "-" if value < 0 and s.strip("0,.") else ""
    return f"{sign}R$ {s}"


def format_percentage(value: float) -> str:
    """Format a percentage with one decimal place, e.g. ``"12.3%"``."""

    return f"{value:.1f}%"


def format_cpf(cpf: str) -> str:
    """Format an 11-digit CPF as ``000.000.000-00``; other inputs are returned as-is."""

    digits = digits_only(cpf)
    if len(digits) != 11:
        return cpf
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"


def sanitize_filename_part(value: str) -> str:
    """Replace every non-alphanumeric ASCII character with ``_``."""

    return re.sub(r"[^a-zA-Z0-9]", "_", value)


__all__ = [
    "parse_br_amount",
    "title_case",
    "digits_only",
    "format_brl",
    "format_percentage",
    "format_cpf",
    "sanitize_filename_part",
]
