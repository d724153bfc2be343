"""Price conversion shared by listing publication and checkout."""

from decimal import Decimal, ROUND_HALF_UP

MINIMUM_PRICE_CENTS = 100  # $1.00


def to_cents(amount: Decimal) -> int:
    """Convert a dollar amount to whole cents, rounding half up."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
