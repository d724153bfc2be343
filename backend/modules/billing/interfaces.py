"""
Billing module interfaces.

The checkout builder and webhook ingestor depend on these protocols rather
than on Stripe or Supabase directly, so both can be exercised in-process.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from .models import (
    CheckoutSessionRef,
    FallbackPayment,
    PurchaseGrant,
    Subscription,
    SubscriptionPlan,
    SubscriptionSnapshot,
)


@runtime_checkable
class IPaymentGateway(Protocol):
    """Calls to the payment processor."""

    def create_checkout_session(self, params: dict[str, Any]) -> CheckoutSessionRef:
        """
        Create a hosted checkout session.

        Raises:
            PaymentGatewayError: If the processor rejects the request
        """
        ...

    def construct_event(self, payload: bytes, signature: str) -> dict[str, Any]:
        """
        Verify a webhook signature and parse the event.

        Raises:
            WebhookVerificationError: If the signature or payload is invalid
        """
        ...

    def retrieve_subscription(self, subscription_id: str) -> SubscriptionSnapshot:
        ...

    def list_line_item_price_ids(self, session_id: str) -> list[str]:
        ...


@runtime_checkable
class IPayoutAlerter(Protocol):
    """Told whenever a sale could not be routed to the seller automatically."""

    def payout_required(self, resource_id: str, fallback: FallbackPayment) -> None:
        ...


@runtime_checkable
class IEntitlementStore(Protocol):
    """
    Webhook-driven mutations of purchases, credits and subscriptions.

    Every mutation records `event_id` as processed in the same transaction as
    its effects. Each returns True when applied and False when the event was
    already processed, in which case nothing changes.
    """

    def record_purchase(self, event_id: str, grant: PurchaseGrant) -> bool:
        ...

    def grant_subscription(
        self,
        event_id: str,
        user_id: str,
        plan: SubscriptionPlan,
        subscription: Optional[SubscriptionSnapshot],
    ) -> bool:
        """Add plan credits, set tier and active flag, and store the subscription if any."""
        ...

    def renew_subscription(
        self,
        event_id: str,
        subscription: SubscriptionSnapshot,
        plan: SubscriptionPlan,
    ) -> bool:
        """Refresh price and period end, then add plan credits to the owning user."""
        ...

    def mark_payment_failed(self, event_id: str, subscription_id: str) -> bool:
        ...

    def cancel_subscription(self, event_id: str, subscription: SubscriptionSnapshot) -> bool:
        ...

    def update_subscription(
        self,
        event_id: str,
        subscription: SubscriptionSnapshot,
        plan: SubscriptionPlan,
    ) -> bool:
        ...

    def mark_processed(self, event_id: str, event_type: str) -> bool:
        """Record an event that has no effects of its own."""
        ...

    def get_subscription(self, user_id: str) -> Optional[Subscription]:
        ...

    def delete_subscription(self, user_id: str) -> None:
        ...
