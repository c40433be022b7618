"""Invoice total calculation.

Amounts are kept as raw ``quantity * rate`` products; rounding to two decimals
is a presentation concern (see :func:`format_money`). Nothing here raises on
bad numbers: a NaN quantity or rate simply flows through into the total, and
callers are expected to validate input before getting this far.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, TypeVar

_Item = TypeVar("_Item")


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: float
    tax: float
    discount: float
    total: float


def line_amount(quantity: float, rate: float) -> float:
    return float(quantity) * float(rate)


def _sum_amounts(amounts: Sequence[float]) -> float:
    # fsum is exact, so the subtotal does not depend on item order. It raises
    # on inf - inf though, and NaN/inf have to propagate rather than raise.
    if all(math.isfinite(amount) for amount in amounts):
        return math.fsum(amounts)
    subtotal = 0.0
    for amount in amounts:
        subtotal += amount
    return subtotal


def compute_invoice_totals(
    items: Iterable[Any],
    tax: Optional[float] = None,
    discount: Optional[float] = None,
) -> InvoiceTotals:
    """Derive subtotal and total from line items plus scalar tax and discount.

    ``items`` can be any objects exposing ``quantity`` and ``rate``. The
    stored ``amount`` on an item is ignored and recomputed, so a stale amount
    can never leak into the totals.
    """

    amounts = [line_amount(item.quantity, item.rate) for item in items]
    subtotal = _sum_amounts(amounts)
    tax_value = float(tax) if tax is not None else 0.0
    discount_value = float(discount) if discount is not None else 0.0
    return InvoiceTotals(
        subtotal=subtotal,
        tax=tax_value,
        discount=discount_value,
        total=subtotal + tax_value - discount_value,
    )


def apply_line_amounts(items: Iterable[_Item]) -> List[_Item]:
    """Return copies of pydantic line items with ``amount`` recomputed."""

    return [
        item.model_copy(update={"amount": line_amount(item.quantity, item.rate)})
        for item in items
    ]


def format_money(value: float) -> str:
    return f"{value:.2f}"
