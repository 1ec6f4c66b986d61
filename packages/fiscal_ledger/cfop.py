"""Fixed tax-code (CFOP) taxonomy and calendar labels.

Only the codes below contribute to totals. Purchase codes count while the
parser is inside an ``ENTRADAS`` section; revenue codes count inside a
``SAÍDAS`` section. Every other code is ignored.
"""

from __future__ import annotations

from typing import Final

PURCHASE_CFOPS: Final = frozenset({"1.102", "1.403", "1.404", "2.102", "2.403", "2.404"})
REVENUE_CFOPS: Final = frozenset({"5.102", "5.405"})

MONTHS_ORDER: Final = (
    "Janeiro",
    "Fevereiro",
    "Março",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
)

__all__ = ["PURCHASE_CFOPS", "REVENUE_CFOPS", "MONTHS_ORDER"]
