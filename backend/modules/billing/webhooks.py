"""
Webhook ingestor.

Verifies signed payment-processor events and applies each one to the
entitlement store at most once. Handlers are looked up in a dispatch table
keyed by event type; types without a handler are logged and acknowledged.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from modules.marketplace.interfaces import IMarketplaceRepository
from .exceptions import MissingMetadataError
from .gateway import snapshot_from_object
from .interfaces import IEntitlementStore, IPaymentGateway
from .models import PurchaseGrant, WebhookOutcome, plan_for_price

logger = logging.getLogger(__name__)

EventHandler = Callable[[str, dict[str, Any]], Awaitable[WebhookOutcome]]


def _invoice_subscription_id(invoice: dict[str, Any]) -> Optional[str]:
    """Subscription id of an invoice, in either the flat or the nested layout."""
    if invoice.get("subscription"):
        subscription = invoice["subscription"]
        return subscription["id"] if isinstance(subscription, dict) else subscription
    details = (invoice.get("parent") or {}).get("subscription_details") or {}
    return details.get("subscription")


class WebhookIngestor:
    """
    Applies payment-processor events to the entitlement store.

    Args:
        gateway: Signature verification and follow-up lookups
        store: Idempotent purchase / credit / subscription mutations
        marketplace: Listing and bundle lookups for purchase events
    """

    def __init__(
        self,
        gateway: IPaymentGateway,
        store: IEntitlementStore,
        marketplace: IMarketplaceRepository,
    ):
        self._gateway = gateway
        self._store = store
        self._marketplace = marketplace
        self._handlers: dict[str, EventHandler] = {
            "checkout.session.completed": self._on_checkout_completed,
            "invoice.payment_succeeded": self._on_invoice_paid,
            "invoice.payment_failed": self._on_invoice_failed,
            "customer.subscription.deleted": self._on_subscription_deleted,
            "customer.subscription.updated": self._on_subscription_updated,
        }

    @property
    def supported_events(self) -> list[str]:
        return list(self._handlers)

    async def ingest(self, payload: bytes, signature: str) -> WebhookOutcome:
        """
        Verify and apply a raw webhook delivery.

        Raises:
            WebhookVerificationError: If the signature doesn't match
            MissingMetadataError: If the event lacks a required id
        """
        event = self._gateway.construct_event(payload, signature)
        return await self.handle(event)

    async def handle(self, event: dict[str, Any]) -> WebhookOutcome:
        """Apply an already-verified event."""
        event_id = event.get("id") or ""
        event_type = event.get("type") or "unknown"
        if not event_id:
            raise MissingMetadataError(event_type, "event id")

        logger.info("Webhook received: %s (%s)", event_type, event_id)

        handler = self._handlers.get(event_type)
        if handler is None:
            logger.info("Unhandled event type: %s", event_type)
            return WebhookOutcome(event_id=event_id, event_type=event_type, status="ignored")

        obj = (event.get("data") or {}).get("object") or {}
        outcome = await handler(event_id, obj)
        if outcome.duplicate:
            logger.info("Duplicate webhook %s (%s) acknowledged without effects", event_id, event_type)
        return outcome

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    async def _on_checkout_completed(self, event_id: str, session: dict[str, Any]) -> WebhookOutcome:
        event_type = "checkout.session.completed"
        metadata = session.get("metadata") or {}
        user_id = metadata.get("userId")
        if not user_id:
            raise MissingMetadataError(event_type, "userId")

        if metadata.get("emoteForSaleId") or metadata.get("emotePackId"):
            return self._record_purchase(event_id, user_id, session, metadata)

        price_ids = await asyncio.to_thread(self._gateway.list_line_item_price_ids, session["id"])
        if not price_ids:
            raise MissingMetadataError(event_type, "line item price")
        plan = plan_for_price(price_ids[0])

        subscription = None
        if session.get("subscription"):
            subscription = await asyncio.to_thread(
                self._gateway.retrieve_subscription, session["subscription"]
            )

        applied = self._store.grant_subscription(event_id, user_id, plan, subscription)
        if applied:
            logger.info(
                "Granted %d credits and %s tier to user %s",
                plan.credits, plan.tier.value, user_id,
            )
        return self._outcome(event_id, event_type, applied)

    def _record_purchase(
        self,
        event_id: str,
        user_id: str,
        session: dict[str, Any],
        metadata: dict[str, Any],
    ) -> WebhookOutcome:
        event_type = "checkout.session.completed"
        payment_intent = session.get("payment_intent")
        if isinstance(payment_intent, dict):
            payment_intent = payment_intent.get("id")

        listing_id = metadata.get("emoteForSaleId")
        if listing_id:
            listing = self._marketplace.get_listing(listing_id)
            if listing is None:
                logger.error("Purchased listing %s not found (event %s)", listing_id, event_id)
                self._store.mark_processed(event_id, event_type)
                return WebhookOutcome(event_id=event_id, event_type=event_type, status="ignored")
            grant = PurchaseGrant(
                buyer_id=user_id,
                listing_id=listing.id,
                emote_ids=[listing.emote_id],
                payment_intent_id=payment_intent,
            )
        else:
            bundle_id = metadata["emotePackId"]
            bundle = self._marketplace.get_bundle(bundle_id)
            if bundle is None:
                logger.error("Purchased bundle %s not found (event %s)", bundle_id, event_id)
                self._store.mark_processed(event_id, event_type)
                return WebhookOutcome(event_id=event_id, event_type=event_type, status="ignored")
            listings = self._marketplace.get_listings(bundle.listing_ids)
            grant = PurchaseGrant(
                buyer_id=user_id,
                bundle_id=bundle.id,
                emote_ids=[l.emote_id for l in listings],
                payment_intent_id=payment_intent,
            )

        applied = self._store.record_purchase(event_id, grant)
        if applied:
            logger.info(
                "Recorded purchase of %s by user %s (%d emote(s))",
                grant.listing_id or grant.bundle_id, user_id, len(grant.emote_ids),
            )
        return self._outcome(event_id, event_type, applied)

    async def _on_invoice_paid(self, event_id: str, invoice: dict[str, Any]) -> WebhookOutcome:
        event_type = "invoice.payment_succeeded"
        subscription_id = _invoice_subscription_id(invoice)
        if not subscription_id:
            raise MissingMetadataError(event_type, "subscription id")

        subscription = await asyncio.to_thread(self._gateway.retrieve_subscription, subscription_id)
        plan = plan_for_price(subscription.price_id)
        applied = self._store.renew_subscription(event_id, subscription, plan)
        return self._outcome(event_id, event_type, applied)

    async def _on_invoice_failed(self, event_id: str, invoice: dict[str, Any]) -> WebhookOutcome:
        event_type = "invoice.payment_failed"
        subscription_id = _invoice_subscription_id(invoice)
        if not subscription_id:
            raise MissingMetadataError(event_type, "subscription id")

        applied = self._store.mark_payment_failed(event_id, subscription_id)
        if applied:
            logger.warning("Payment failed for subscription %s", subscription_id)
        return self._outcome(event_id, event_type, applied)

    async def _on_subscription_deleted(self, event_id: str, obj: dict[str, Any]) -> WebhookOutcome:
        if not obj.get("id"):
            raise MissingMetadataError("customer.subscription.deleted", "subscription id")
        subscription = snapshot_from_object(obj)
        applied = self._store.cancel_subscription(event_id, subscription)
        return self._outcome(event_id, "customer.subscription.deleted", applied)

    async def _on_subscription_updated(self, event_id: str, obj: dict[str, Any]) -> WebhookOutcome:
        if not obj.get("id"):
            raise MissingMetadataError("customer.subscription.updated", "subscription id")
        subscription = snapshot_from_object(obj)
        plan = plan_for_price(subscription.price_id)
        applied = self._store.update_subscription(event_id, subscription, plan)
        return self._outcome(event_id, "customer.subscription.updated", applied)

    @staticmethod
    def _outcome(event_id: str, event_type: str, applied: bool) -> WebhookOutcome:
        return WebhookOutcome(
            event_id=event_id,
            event_type=event_type,
            status="applied" if applied else "duplicate",
        )
