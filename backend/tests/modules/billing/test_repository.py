"""Tests for the entitlement stores."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from modules.billing.models import PurchaseGrant, SubscriptionSnapshot, plan_for_price
from modules.billing.repository import InMemoryEntitlementStore, SupabaseEntitlementStore
from modules.marketplace.repository import InMemoryMarketplaceRepository
from modules.users.repository import InMemoryUserRepository

PERIOD_END = datetime(2026, 1, 1, tzinfo=timezone.utc)
SNAPSHOT = SubscriptionSnapshot(
    id="sub_1",
    customer_id="cus_1",
    price_id="price_1Q8GL9IlERZTJMCm1b6Nuebe",
    status="active",
    current_period_end=PERIOD_END,
)


class TestInMemoryEntitlementStore:

    @pytest.fixture
    def store(self):
        users = InMemoryUserRepository()
        users.create("user-1", None, None, 0)
        return InMemoryEntitlementStore(users, InMemoryMarketplaceRepository())

    def test_mark_processed_once(self, store):
        assert store.mark_processed("evt_1", "charge.refunded") is True
        assert store.mark_processed("evt_1", "charge.refunded") is False

    def test_event_ids_shared_across_mutations(self, store):
        """An id consumed by one kind of mutation blocks every other kind."""
        store.record_purchase("evt_1", PurchaseGrant(buyer_id="user-1", listing_id="l1", emote_ids=[]))
        assert store.grant_subscription("evt_1", "user-1", plan_for_price(SNAPSHOT.price_id), SNAPSHOT) is False

    def test_delete_subscription(self, store):
        store.grant_subscription("evt_1", "user-1", plan_for_price(SNAPSHOT.price_id), SNAPSHOT)
        assert store.get_subscription("user-1") is not None

        store.delete_subscription("user-1")

        assert store.get_subscription("user-1") is None


class TestSupabaseEntitlementStore:

    @pytest.fixture
    def db(self) -> MagicMock:
        db = MagicMock()
        db.rpc.return_value.execute.return_value.data = True
        return db

    @pytest.fixture
    def store(self, db) -> SupabaseEntitlementStore:
        return SupabaseEntitlementStore(db)

    def test_record_purchase_calls_function(self, store, db):
        grant = PurchaseGrant(
            buyer_id="user-1", bundle_id="b1", emote_ids=["e1", "e2"], payment_intent_id="pi_1",
        )

        assert store.record_purchase("evt_1", grant) is True

        db.rpc.assert_called_once_with("apply_purchase", {
            "p_event_id": "evt_1",
            "p_event_type": "checkout.session.completed",
            "p_buyer_id": "user-1",
            "p_listing_id": None,
            "p_bundle_id": "b1",
            "p_emote_ids": ["e1", "e2"],
            "p_payment_intent_id": "pi_1",
        })

    @pytest.mark.parametrize("data", [False, [False], [{"apply_purchase": False}], []])
    def test_duplicate_results(self, store, db, data):
        """Every PostgREST shape of a false scalar means duplicate."""
        db.rpc.return_value.execute.return_value.data = data
        grant = PurchaseGrant(buyer_id="user-1", listing_id="l1", emote_ids=["e1"])
        assert store.record_purchase("evt_1", grant) is False

    def test_grant_without_subscription(self, store, db):
        plan = plan_for_price("price_1Q8GL9IlERZTJMCm1b6Nuebe")

        store.grant_subscription("evt_1", "user-1", plan, None)

        name, params = db.rpc.call_args[0]
        assert name == "apply_subscription_grant"
        assert params["p_credits"] == 150
        assert params["p_tier"] == "BASIC"
        assert params["p_subscription_id"] is None

    def test_grant_with_subscription(self, store, db):
        store.grant_subscription("evt_1", "user-1", plan_for_price(SNAPSHOT.price_id), SNAPSHOT)

        params = db.rpc.call_args[0][1]
        assert params["p_subscription_id"] == "sub_1"
        assert params["p_customer_id"] == "cus_1"
        assert params["p_period_end"] == "2026-01-01T00:00:00+00:00"

    def test_update_inactive_drops_to_free(self, store, db):
        past_due = SNAPSHOT.model_copy(update={"status": "past_due"})

        store.update_subscription("evt_1", past_due, plan_for_price(past_due.price_id))

        name, params = db.rpc.call_args[0]
        assert name == "apply_subscription_update"
        assert params["p_active"] is False
        assert params["p_tier"] == "FREE"

    def test_payment_failed(self, store, db):
        store.mark_payment_failed("evt_1", "sub_1")
        db.rpc.assert_called_once_with("apply_payment_failed", {
            "p_event_id": "evt_1",
            "p_event_type": "invoice.payment_failed",
            "p_subscription_id": "sub_1",
        })

    def test_get_subscription_maps_row(self, store, db):
        db.table.return_value.select.return_value.eq.return_value.execute.return_value.data = [{
            "user_id": "user-1",
            "stripe_subscription_id": "sub_1",
            "stripe_price_id": "price_x",
            "current_period_end": "2026-01-01T00:00:00Z",
        }]

        subscription = store.get_subscription("user-1")

        db.table.assert_called_with("subscriptions")
        assert subscription.current_period_end == PERIOD_END

    def test_get_subscription_missing(self, store, db):
        db.table.return_value.select.return_value.eq.return_value.execute.return_value.data = []
        assert store.get_subscription("user-1") is None
