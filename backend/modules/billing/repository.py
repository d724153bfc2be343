"""
Entitlement stores.

Webhook effects and the processed-event marker are written together: the
in-memory store does so without yielding to the event loop, the Supabase
store through Postgres functions that run in a single transaction and return
false when the event id is already recorded.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from modules.marketplace.models import Purchase
from modules.marketplace.repository import InMemoryMarketplaceRepository
from modules.users.exceptions import UserNotFoundError
from modules.users.models import SubscriptionTier
from modules.users.repository import InMemoryUserRepository
from shared.repository import BaseRepository
from .models import (
    PurchaseGrant,
    Subscription,
    SubscriptionPlan,
    SubscriptionSnapshot,
)

logger = logging.getLogger(__name__)


class InMemoryEntitlementStore:
    """Entitlement store over the in-memory user and marketplace repositories."""

    def __init__(
        self,
        users: InMemoryUserRepository,
        marketplace: InMemoryMarketplaceRepository,
    ) -> None:
        self._users = users
        self._marketplace = marketplace
        self._processed: dict[str, str] = {}
        self._subscriptions: dict[str, Subscription] = {}

    @property
    def processed_events(self) -> dict[str, str]:
        return dict(self._processed)

    def record_purchase(self, event_id: str, grant: PurchaseGrant) -> bool:
        if event_id in self._processed:
            return False
        self._marketplace.add_purchase(Purchase(
            id=str(uuid.uuid4()),
            buyer_id=grant.buyer_id,
            listing_id=grant.listing_id,
            bundle_id=grant.bundle_id,
            payment_intent_id=grant.payment_intent_id,
            event_id=event_id,
            created_at=datetime.now(timezone.utc),
        ))
        self._marketplace.grant_emotes(grant.buyer_id, grant.emote_ids)
        self._processed[event_id] = "checkout.session.completed"
        return True

    def grant_subscription(
        self,
        event_id: str,
        user_id: str,
        plan: SubscriptionPlan,
        subscription: Optional[SubscriptionSnapshot],
    ) -> bool:
        if event_id in self._processed:
            return False
        if self._users.get(user_id) is None:
            raise UserNotFoundError(user_id)
        self._users.add_credits(user_id, plan.credits)
        self._users.set_subscription_state(user_id, plan.tier, True)
        if subscription is not None:
            self._subscriptions[user_id] = Subscription(
                user_id=user_id,
                stripe_subscription_id=subscription.id,
                stripe_customer_id=subscription.customer_id,
                stripe_price_id=subscription.price_id,
                current_period_end=subscription.current_period_end,
            )
        self._processed[event_id] = "checkout.session.completed"
        return True

    def renew_subscription(
        self,
        event_id: str,
        subscription: SubscriptionSnapshot,
        plan: SubscriptionPlan,
    ) -> bool:
        if event_id in self._processed:
            return False
        stored = self._by_stripe_id(subscription.id)
        if stored is not None:
            self._subscriptions[stored.user_id] = stored.model_copy(update={
                "stripe_price_id": subscription.price_id,
                "current_period_end": subscription.current_period_end,
            })
            if self._users.get(stored.user_id) is not None:
                self._users.add_credits(stored.user_id, plan.credits)
                self._users.set_subscription_state(stored.user_id, plan.tier, True)
        else:
            logger.warning("Renewal for unknown subscription %s", subscription.id)
        self._processed[event_id] = "invoice.payment_succeeded"
        return True

    def mark_payment_failed(self, event_id: str, subscription_id: str) -> bool:
        if event_id in self._processed:
            return False
        stored = self._by_stripe_id(subscription_id)
        if stored is not None and self._users.get(stored.user_id) is not None:
            self._users.set_active(stored.user_id, False)
        self._processed[event_id] = "invoice.payment_failed"
        return True

    def cancel_subscription(self, event_id: str, subscription: SubscriptionSnapshot) -> bool:
        if event_id in self._processed:
            return False
        stored = self._by_stripe_id(subscription.id)
        if stored is not None:
            self._subscriptions[stored.user_id] = stored.model_copy(
                update={"current_period_end": subscription.current_period_end}
            )
            if self._users.get(stored.user_id) is not None:
                self._users.set_subscription_state(stored.user_id, SubscriptionTier.FREE, False)
        self._processed[event_id] = "customer.subscription.deleted"
        return True

    def update_subscription(
        self,
        event_id: str,
        subscription: SubscriptionSnapshot,
        plan: SubscriptionPlan,
    ) -> bool:
        if event_id in self._processed:
            return False
        stored = self._by_stripe_id(subscription.id)
        if stored is not None:
            self._subscriptions[stored.user_id] = stored.model_copy(update={
                "stripe_price_id": subscription.price_id,
                "current_period_end": subscription.current_period_end,
            })
            active = subscription.is_active
            tier = plan.tier if active else SubscriptionTier.FREE
            if self._users.get(stored.user_id) is not None:
                self._users.set_subscription_state(stored.user_id, tier, active)
        self._processed[event_id] = "customer.subscription.updated"
        return True

    def mark_processed(self, event_id: str, event_type: str) -> bool:
        if event_id in self._processed:
            return False
        self._processed[event_id] = event_type
        return True

    def get_subscription(self, user_id: str) -> Optional[Subscription]:
        return self._subscriptions.get(user_id)

    def delete_subscription(self, user_id: str) -> None:
        self._subscriptions.pop(user_id, None)

    def _by_stripe_id(self, subscription_id: str) -> Optional[Subscription]:
        return next(
            (s for s in self._subscriptions.values() if s.stripe_subscription_id == subscription_id),
            None,
        )


class SupabaseEntitlementStore(BaseRepository[Subscription]):
    """
    Entitlement store backed by Postgres functions.

    Each apply_* function inserts into processed_events first and returns
    false on a conflicting event id, so effects run at most once per event.
    """

    def record_purchase(self, event_id: str, grant: PurchaseGrant) -> bool:
        return self._apply("apply_purchase", event_id, "checkout.session.completed", {
            "p_buyer_id": grant.buyer_id,
            "p_listing_id": grant.listing_id,
            "p_bundle_id": grant.bundle_id,
            "p_emote_ids": grant.emote_ids,
            "p_payment_intent_id": grant.payment_intent_id,
        })

    def grant_subscription(
        self,
        event_id: str,
        user_id: str,
        plan: SubscriptionPlan,
        subscription: Optional[SubscriptionSnapshot],
    ) -> bool:
        params: dict[str, Any] = {
            "p_user_id": user_id,
            "p_credits": plan.credits,
            "p_tier": plan.tier.value,
            "p_subscription_id": None,
            "p_customer_id": None,
            "p_price_id": None,
            "p_period_end": None,
        }
        if subscription is not None:
            params.update({
                "p_subscription_id": subscription.id,
                "p_customer_id": subscription.customer_id,
                "p_price_id": subscription.price_id,
                "p_period_end": subscription.current_period_end.isoformat(),
            })
        return self._apply("apply_subscription_grant", event_id, "checkout.session.completed", params)

    def renew_subscription(
        self,
        event_id: str,
        subscription: SubscriptionSnapshot,
        plan: SubscriptionPlan,
    ) -> bool:
        return self._apply("apply_subscription_renewal", event_id, "invoice.payment_succeeded", {
            "p_subscription_id": subscription.id,
            "p_price_id": subscription.price_id,
            "p_period_end": subscription.current_period_end.isoformat(),
            "p_credits": plan.credits,
            "p_tier": plan.tier.value,
        })

    def mark_payment_failed(self, event_id: str, subscription_id: str) -> bool:
        return self._apply("apply_payment_failed", event_id, "invoice.payment_failed", {
            "p_subscription_id": subscription_id,
        })

    def cancel_subscription(self, event_id: str, subscription: SubscriptionSnapshot) -> bool:
        return self._apply("apply_subscription_cancel", event_id, "customer.subscription.deleted", {
            "p_subscription_id": subscription.id,
            "p_period_end": subscription.current_period_end.isoformat(),
        })

    def update_subscription(
        self,
        event_id: str,
        subscription: SubscriptionSnapshot,
        plan: SubscriptionPlan,
    ) -> bool:
        active = subscription.is_active
        tier = plan.tier if active else SubscriptionTier.FREE
        return self._apply("apply_subscription_update", event_id, "customer.subscription.updated", {
            "p_subscription_id": subscription.id,
            "p_price_id": subscription.price_id,
            "p_period_end": subscription.current_period_end.isoformat(),
            "p_active": active,
            "p_tier": tier.value,
        })

    def mark_processed(self, event_id: str, event_type: str) -> bool:
        return self._apply("mark_event_processed", event_id, event_type, {})

    def get_subscription(self, user_id: str) -> Optional[Subscription]:
        result = self._db.table("subscriptions").select("*").eq("user_id", user_id).execute()
        if not result.data:
            return None
        return self._map_to_subscription(result.data[0])

    def delete_subscription(self, user_id: str) -> None:
        self._db.table("subscriptions").delete().eq("user_id", user_id).execute()

    # -------------------------------------------------------------------------
    # Private helpers
    # -------------------------------------------------------------------------

    def _apply(
        self,
        function: str,
        event_id: str,
        event_type: str,
        params: dict[str, Any],
    ) -> bool:
        result = self._db.rpc(function, {
            "p_event_id": event_id,
            "p_event_type": event_type,
            **params,
        }).execute()
        data = result.data
        if isinstance(data, list):
            data = data[0] if data else False
        if isinstance(data, dict):
            data = next(iter(data.values()), False)
        return bool(data)

    def _map_to_subscription(self, data: dict[str, Any]) -> Subscription:
        """Map database row to Subscription model."""
        return Subscription(
            user_id=str(data["user_id"]),
            stripe_subscription_id=data["stripe_subscription_id"],
            stripe_customer_id=data.get("stripe_customer_id"),
            stripe_price_id=data.get("stripe_price_id"),
            current_period_end=self._timestamp(data.get("current_period_end")),
        )
