"""
Billing module data models.

Subscription plans, checkout results with their payment routing, the
subscription state we mirror from the payment processor, and webhook
outcomes.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

from modules.users.models import SubscriptionTier
from .fees import FeeBreakdown

logger = logging.getLogger(__name__)

# A subscription stays valid for a day past its period end while renewal settles.
SUBSCRIPTION_GRACE = timedelta(days=1)


class SubscriptionPlan(BaseModel):
    """Credits granted and tier assigned by a recurring price."""

    price_id: str
    credits: int = Field(..., ge=0)
    tier: SubscriptionTier


PLANS: dict[str, SubscriptionPlan] = {
    plan.price_id: plan
    for plan in (
        # Monthly
        SubscriptionPlan(price_id="price_1Q8GL9IlERZTJMCm1b6Nuebe", credits=150, tier=SubscriptionTier.BASIC),
        SubscriptionPlan(price_id="price_1OjApHIlERZTJMCmkGtSk4Wf", credits=300, tier=SubscriptionTier.LEGACY),
        SubscriptionPlan(price_id="price_1Q8GLiIlERZTJMCm1QFpLRh3", credits=500, tier=SubscriptionTier.STANDARD),
        SubscriptionPlan(price_id="price_1Q8GM2IlERZTJMCmgwEbI5tO", credits=1250, tier=SubscriptionTier.PREMIUM),
        # Annual
        SubscriptionPlan(price_id="price_1PTXsjIlERZTJMCmk9e50tI7", credits=1800, tier=SubscriptionTier.BASIC),
        SubscriptionPlan(price_id="price_1PTXt2IlERZTJMCmQYmhHVQV", credits=6000, tier=SubscriptionTier.STANDARD),
        SubscriptionPlan(price_id="price_1PTXtHIlERZTJMCmVgzahz20", credits=15000, tier=SubscriptionTier.PREMIUM),
    )
}


def plan_for_price(price_id: Optional[str]) -> SubscriptionPlan:
    """Look up a plan; unknown prices grant nothing and map to the free tier."""
    plan = PLANS.get(price_id or "")
    if plan is None:
        logger.warning("No plan for price %s, granting no credits", price_id)
        return SubscriptionPlan(price_id=price_id or "", credits=0, tier=SubscriptionTier.FREE)
    return plan


# -----------------------------------------------------------------------------
# Checkout
# -----------------------------------------------------------------------------


class CheckoutSessionRef(BaseModel):
    """The part of a created checkout session the caller needs."""

    id: str
    url: str


class RoutedPayment(BaseModel):
    """The seller's share is transferred automatically at payment time."""

    kind: Literal["routed"] = "routed"
    destination: str
    application_fee: int


class FallbackPayment(BaseModel):
    """Routing was refused; the platform collects everything and owes the seller."""

    kind: Literal["fallback"] = "fallback"
    reason: str
    seller_id: str
    seller_revenue: int


class DirectPayment(BaseModel):
    """The seller has no payout account, or the session is not a sale."""

    kind: Literal["direct"] = "direct"


PaymentRouting = Union[RoutedPayment, FallbackPayment, DirectPayment]


class CheckoutResult(BaseModel):
    """A created checkout session and how its payment will be routed."""

    url: str
    session_id: str
    fees: Optional[FeeBreakdown] = None
    routing: PaymentRouting = Field(default_factory=DirectPayment, discriminator="kind")


class SubscriptionCheckoutRequest(BaseModel):
    price_id: str = Field(..., min_length=1)


class CheckoutResponse(BaseModel):
    """API response for checkout endpoints."""

    url: str
    session_id: str
    routing: str = "direct"

    @classmethod
    def from_result(cls, result: CheckoutResult) -> "CheckoutResponse":
        return cls(url=result.url, session_id=result.session_id, routing=result.routing.kind)


# -----------------------------------------------------------------------------
# Subscriptions
# -----------------------------------------------------------------------------


class SubscriptionSnapshot(BaseModel):
    """Subscription state as reported by the payment processor."""

    id: str
    customer_id: Optional[str] = None
    price_id: Optional[str] = None
    status: str = "active"
    current_period_end: datetime

    @property
    def is_active(self) -> bool:
        return self.status in ("active", "trialing")


class Subscription(BaseModel):
    """A user's recurring-billing subscription as we store it."""

    user_id: str
    stripe_subscription_id: str
    stripe_customer_id: Optional[str] = None
    stripe_price_id: Optional[str] = None
    current_period_end: Optional[datetime] = None

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        if not self.stripe_price_id or self.current_period_end is None:
            return False
        now = now or datetime.now(timezone.utc)
        return self.current_period_end + SUBSCRIPTION_GRACE > now


class SubscriptionStatusResponse(BaseModel):
    active: bool


# -----------------------------------------------------------------------------
# Webhooks
# -----------------------------------------------------------------------------


class PurchaseGrant(BaseModel):
    """Entitlements created by a completed one-off checkout."""

    buyer_id: str
    listing_id: Optional[str] = None
    bundle_id: Optional[str] = None
    emote_ids: list[str]
    payment_intent_id: Optional[str] = None


class WebhookOutcome(BaseModel):
    """What the ingestor did with an event."""

    event_id: str
    event_type: str
    status: Literal["applied", "duplicate", "ignored"]

    @property
    def duplicate(self) -> bool:
        return self.status == "duplicate"
