"""
Billing module exceptions.

These exceptions are raised by the billing module and can be caught
by API error handlers to return appropriate HTTP responses.
"""

from typing import Optional

from shared.exceptions import EmoteMarketError, ExternalServiceError, ValidationError


class BillingError(EmoteMarketError):
    """Base exception for billing-related errors."""

    pass


class PaymentGatewayError(ExternalServiceError):
    """Raised when the payment processor rejects or fails a request."""

    def __init__(self, message: str, stripe_error: Optional[str] = None):
        super().__init__(
            message,
            service="stripe",
            code="PAYMENT_GATEWAY_ERROR",
            details={"stripe_error": stripe_error} if stripe_error else {},
        )


class WebhookVerificationError(BillingError):
    """Raised when Stripe webhook signature verification fails."""

    def __init__(self, reason: str = ""):
        super().__init__(
            "Webhook signature verification failed",
            code="WEBHOOK_VERIFICATION_FAILED",
            details={"reason": reason} if reason else {},
        )


class MissingMetadataError(ValidationError):
    """Raised when a webhook event lacks an id or metadata field it needs."""

    def __init__(self, event_type: str, field: str):
        super().__init__(
            f"{field} is required",
            code="MISSING_METADATA",
            details={"event_type": event_type, "field": field},
        )


class UnknownPlanError(ValidationError):
    """Raised when a subscription checkout names a price that isn't a plan."""

    def __init__(self, price_id: str):
        super().__init__(
            f"Unknown subscription plan: {price_id}",
            code="UNKNOWN_PLAN",
            details={"price_id": price_id},
        )
