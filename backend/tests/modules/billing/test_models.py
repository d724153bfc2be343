"""Tests for billing models."""

from datetime import datetime, timedelta, timezone

from modules.billing.models import (
    PLANS,
    CheckoutResponse,
    CheckoutResult,
    FallbackPayment,
    Subscription,
    SubscriptionSnapshot,
    plan_for_price,
)
from modules.users.models import SubscriptionTier

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class TestPlans:
    def test_known_price(self):
        plan = plan_for_price("price_1Q8GLiIlERZTJMCm1QFpLRh3")
        assert plan.credits == 500
        assert plan.tier == SubscriptionTier.STANDARD

    def test_legacy_price(self):
        plan = plan_for_price("price_1OjApHIlERZTJMCmkGtSk4Wf")
        assert plan.credits == 300
        assert plan.tier == SubscriptionTier.LEGACY

    def test_unknown_price_grants_nothing(self):
        plan = plan_for_price("price_unknown")
        assert plan.credits == 0
        assert plan.tier == SubscriptionTier.FREE

    def test_missing_price(self):
        assert plan_for_price(None).credits == 0

    def test_seven_plans(self):
        assert len(PLANS) == 7


class TestSubscriptionValidity:
    def _subscription(self, period_end, price_id="price_1Q8GL9IlERZTJMCm1b6Nuebe"):
        return Subscription(
            user_id="user-1",
            stripe_subscription_id="sub_1",
            stripe_price_id=price_id,
            current_period_end=period_end,
        )

    def test_valid_within_period(self):
        assert self._subscription(NOW + timedelta(days=10)).is_valid(NOW) is True

    def test_valid_during_grace_day(self):
        """A lapsed period still counts for one day."""
        assert self._subscription(NOW - timedelta(hours=23)).is_valid(NOW) is True

    def test_invalid_after_grace_day(self):
        assert self._subscription(NOW - timedelta(days=1, seconds=1)).is_valid(NOW) is False

    def test_invalid_without_price(self):
        assert self._subscription(NOW + timedelta(days=10), price_id=None).is_valid(NOW) is False


class TestSnapshot:
    def test_active_statuses(self):
        end = NOW + timedelta(days=30)
        assert SubscriptionSnapshot(id="sub_1", status="trialing", current_period_end=end).is_active
        assert not SubscriptionSnapshot(id="sub_1", status="past_due", current_period_end=end).is_active


class TestCheckoutResponse:
    def test_reports_routing_kind(self):
        result = CheckoutResult(
            url="https://checkout/1",
            session_id="cs_1",
            routing=FallbackPayment(reason="x", seller_id="s", seller_revenue=27),
        )
        assert CheckoutResponse.from_result(result).routing == "fallback"

    def test_defaults_to_direct(self):
        result = CheckoutResult(url="https://checkout/1", session_id="cs_1")
        assert CheckoutResponse.from_result(result).routing == "direct"
