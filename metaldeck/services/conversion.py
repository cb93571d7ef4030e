"""conversion.py

Cash ↔ metal conversion for the trade form.

The form keeps a single source value – whichever side the user typed
last – in an ``AmountEntry``. The other side is *derived* from it on
demand, so editing cash never writes back into the metal field and the
two can't drift apart or trigger each other.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

Side = Literal["cash", "metal"]

CASH_DIGITS = 2
METAL_DIGITS = 3


def parse_amount(value) -> float | None:
    """Read a user-entered amount.

    Accepts numbers and numeric strings (surrounding blanks and thousands
    separators are ignored). Returns ``None`` for blank, non-numeric,
    non-finite or non-positive input.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def cash_to_metal(cash, unit_price: float) -> float | None:
    """Metal quantity *cash* buys at *unit_price*, rounded to 3 digits."""
    amount, price = parse_amount(cash), parse_amount(unit_price)
    if amount is None or price is None:
        return None
    quantity = round(amount / price, METAL_DIGITS)
    return quantity or None


def metal_to_cash(quantity, unit_price: float) -> float | None:
    """Cash value of *quantity* at *unit_price*, rounded to 2 digits."""
    amount, price = parse_amount(quantity), parse_amount(unit_price)
    if amount is None or price is None:
        return None
    cash = round(amount * price, CASH_DIGITS)
    return cash or None


@dataclass(frozen=True)
class AmountEntry:
    """The side of the trade form the user edited last, and what they typed."""

    side: Side
    raw: str | float | None = None

    def __post_init__(self) -> None:
        if self.side not in ("cash", "metal"):
            raise ValueError(f"side must be 'cash' or 'metal', got {self.side!r}")

    @classmethod
    def cash(cls, raw) -> AmountEntry:
        return cls("cash", raw)

    @classmethod
    def metal(cls, raw) -> AmountEntry:
        return cls("metal", raw)

    def resolve(self, unit_price: float) -> tuple[float | None, float | None]:
        """Return ``(cash, metal)`` with the other side derived at *unit_price*.

        Either element is ``None`` when it can't be resolved to a
        positive amount.
        """
        if parse_amount(unit_price) is None:
            return None, None
        entered = parse_amount(self.raw)
        if self.side == "cash":
            return entered, cash_to_metal(entered, unit_price)
        return metal_to_cash(entered, unit_price), entered
