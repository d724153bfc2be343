"""
Billing module.

Handles Stripe checkout, webhook-driven entitlements and subscriptions.

Public API:
- CheckoutService: checkout sessions for listings, bundles and plans
- WebhookIngestor: verified, idempotent webhook processing
- BillingService: subscription status
- calculate_fees / FeeBreakdown: marketplace fee split
- Interfaces: IPaymentGateway, IPayoutAlerter, IEntitlementStore
- Billing exceptions: PaymentGatewayError, WebhookVerificationError, etc.
"""

from .interfaces import IEntitlementStore, IPaymentGateway, IPayoutAlerter
from .fees import FeeBreakdown, calculate_fees
from .models import (
    PLANS,
    CheckoutResult,
    DirectPayment,
    FallbackPayment,
    RoutedPayment,
    Subscription,
    SubscriptionPlan,
    WebhookOutcome,
    plan_for_price,
)
from .exceptions import (
    BillingError,
    MissingMetadataError,
    PaymentGatewayError,
    UnknownPlanError,
    WebhookVerificationError,
)
from .checkout import CheckoutService
from .service import BillingService
from .webhooks import WebhookIngestor

__all__ = [
    # Interfaces
    "IEntitlementStore",
    "IPaymentGateway",
    "IPayoutAlerter",
    # Fees
    "FeeBreakdown",
    "calculate_fees",
    # Models
    "PLANS",
    "CheckoutResult",
    "DirectPayment",
    "FallbackPayment",
    "RoutedPayment",
    "Subscription",
    "SubscriptionPlan",
    "WebhookOutcome",
    "plan_for_price",
    # Services
    "CheckoutService",
    "BillingService",
    "WebhookIngestor",
    # Exceptions
    "BillingError",
    "MissingMetadataError",
    "PaymentGatewayError",
    "UnknownPlanError",
    "WebhookVerificationError",
]
