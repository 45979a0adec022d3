"""
Money helpers — all amounts are integer minor units (cents).
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from booksync.errors import ValidationError

CENT = Decimal("0.01")


def to_cents(value: str | int | float | Decimal | None) -> int:
    """Convert a dollar amount to integer cents, rounding half-up.

    ``None`` and the empty string are treated as zero.
    """
    if value is None or value == "":
        return 0
    try:
        # str() first so floats like 0.1 don't carry binary noise into Decimal
        amount = Decimal(str(value).strip().replace(",", "").replace("$", ""))
    except InvalidOperation as e:
        raise ValidationError(f"Not a valid amount: {value!r}", field="amount") from e
    if not amount.is_finite():
        raise ValidationError(f"Not a valid amount: {value!r}", field="amount")
    return int((amount / CENT).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    """Integer cents to a two-place Decimal."""
    return (Decimal(cents) * CENT).quantize(CENT)


def format_cents(cents: int, symbol: str = "$") -> str:
    """Format cents for display: ``103000`` -> ``$1,030.00``."""
    sign = "-" if cents < 0 else ""
    return f"{sign}{symbol}{from_cents(abs(cents)):,.2f}"


def percentage(part: int, total: int) -> float:
    """``part`` as a percentage of ``total``, two decimals; 0 for a zero total."""
    if total == 0:
        return 0.0
    return float((Decimal(part) / Decimal(total) * 100).quantize(CENT, rounding=ROUND_HALF_UP))
