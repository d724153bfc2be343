"""
Marketplace fee split.

All amounts are integer cents. Each fee component is rounded half-up on its
own; the seller receives whatever is left, so the parts always add back up to
the charged price.
"""

from decimal import Decimal, ROUND_HALF_UP

from pydantic import BaseModel, Field

from modules.marketplace.exceptions import PriceTooLowError
from modules.marketplace.pricing import MINIMUM_PRICE_CENTS

PROCESSING_PERCENTAGE = Decimal("0.029")   # Card processing
PROCESSING_FIXED_CENTS = 30
CONNECT_PERCENTAGE = Decimal("0.0025")     # Payout routing to the seller's account
CONNECT_FIXED_CENTS = 25
PLATFORM_PERCENTAGE = Decimal("0.15")


class FeeBreakdown(BaseModel):
    """How a listing or bundle price is divided."""

    price_cents: int = Field(..., ge=MINIMUM_PRICE_CENTS)
    processing_fee: int
    connect_fee: int
    platform_fee: int
    application_fee: int = Field(..., description="Connect fee plus platform fee")
    seller_revenue: int

    @property
    def platform_revenue(self) -> int:
        return self.platform_fee


def _round_cents(amount: Decimal) -> int:
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_fees(price_cents: int) -> FeeBreakdown:
    """
    Split a price into processing, connect and platform fees plus seller revenue.

    Raises:
        PriceTooLowError: If the price is under the marketplace minimum
    """
    if price_cents < MINIMUM_PRICE_CENTS:
        raise PriceTooLowError(price_cents)

    price = Decimal(price_cents)
    processing_fee = _round_cents(price * PROCESSING_PERCENTAGE + PROCESSING_FIXED_CENTS)
    connect_fee = _round_cents(price * CONNECT_PERCENTAGE + CONNECT_FIXED_CENTS)
    platform_fee = _round_cents(price * PLATFORM_PERCENTAGE)

    return FeeBreakdown(
        price_cents=price_cents,
        processing_fee=processing_fee,
        connect_fee=connect_fee,
        platform_fee=platform_fee,
        application_fee=connect_fee + platform_fee,
        seller_revenue=price_cents - processing_fee - connect_fee - platform_fee,
    )
