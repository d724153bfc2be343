"""
Stripe implementation of the payment gateway.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any

import stripe

from .exceptions import PaymentGatewayError, WebhookVerificationError
from .models import CheckoutSessionRef, SubscriptionSnapshot

logger = logging.getLogger(__name__)


def _plain(obj: Any) -> dict[str, Any]:
    """Convert a Stripe object to nested plain dicts."""
    if isinstance(obj, dict):
        return json.loads(json.dumps(obj, default=str))
    return obj.to_dict()


def snapshot_from_object(data: dict[str, Any]) -> SubscriptionSnapshot:
    """
    Build a snapshot from a subscription object (webhook payload or API response).

    Newer API versions report the period end on the subscription item rather
    than on the subscription itself; both are accepted.
    """
    items = (data.get("items") or {}).get("data") or [{}]
    first_item = items[0]
    period_end = data.get("current_period_end") or first_item.get("current_period_end") or 0
    customer = data.get("customer")
    if isinstance(customer, dict):
        customer = customer.get("id")
    return SubscriptionSnapshot(
        id=data["id"],
        customer_id=customer,
        price_id=(first_item.get("price") or {}).get("id"),
        status=data.get("status") or "active",
        current_period_end=datetime.fromtimestamp(period_end, tz=timezone.utc),
    )


class StripeGateway:
    """
    Payment gateway backed by the Stripe API.

    Args:
        secret_key: Stripe secret API key
        webhook_secret: Signing secret of the webhook endpoint
    """

    def __init__(self, secret_key: str, webhook_secret: str):
        self._secret_key = secret_key
        self._webhook_secret = webhook_secret

    def create_checkout_session(self, params: dict[str, Any]) -> CheckoutSessionRef:
        try:
            session = stripe.checkout.Session.create(api_key=self._secret_key, **params)
        except stripe.StripeError as e:
            logger.error("Checkout session creation failed: %s", e)
            raise PaymentGatewayError("Could not create checkout session", stripe_error=str(e)) from e
        return CheckoutSessionRef(id=session.id, url=session.url)

    def construct_event(self, payload: bytes, signature: str) -> dict[str, Any]:
        if not self._webhook_secret:
            raise WebhookVerificationError("webhook secret not configured")
        try:
            stripe.Webhook.construct_event(payload, signature, self._webhook_secret)
        except stripe.SignatureVerificationError as e:
            logger.warning("Webhook signature invalid: %s", e)
            raise WebhookVerificationError(str(e)) from e
        except ValueError as e:
            logger.warning("Webhook payload unreadable: %s", e)
            raise WebhookVerificationError("invalid payload") from e
        return json.loads(payload)

    def retrieve_subscription(self, subscription_id: str) -> SubscriptionSnapshot:
        try:
            subscription = stripe.Subscription.retrieve(subscription_id, api_key=self._secret_key)
        except stripe.StripeError as e:
            logger.error("Subscription %s lookup failed: %s", subscription_id, e)
            raise PaymentGatewayError("Could not retrieve subscription", stripe_error=str(e)) from e
        return snapshot_from_object(_plain(subscription))

    def list_line_item_price_ids(self, session_id: str) -> list[str]:
        try:
            line_items = stripe.checkout.Session.list_line_items(
                session_id,
                api_key=self._secret_key,
            )
        except stripe.StripeError as e:
            logger.error("Line items for session %s unavailable: %s", session_id, e)
            raise PaymentGatewayError("Could not list line items", stripe_error=str(e)) from e
        return [
            item["price"]["id"]
            for item in _plain(line_items).get("data", [])
            if item.get("price")
        ]
