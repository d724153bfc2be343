"""
Billing API endpoints.

Checkout session creation for listings, bundles and subscription plans, the
Stripe webhook receiver, and subscription status.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request

from api.middleware.auth import get_current_user
from api.dependencies import get_billing_service, get_checkout_service, get_webhook_ingestor
from shared.exceptions import (
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from shared.models import AuthenticatedUser

from .checkout import CheckoutService
from .exceptions import WebhookVerificationError
from .models import (
    CheckoutResponse,
    CheckoutResult,
    SubscriptionCheckoutRequest,
    SubscriptionStatusResponse,
)
from .service import BillingService
from .webhooks import WebhookIngestor

logger = logging.getLogger(__name__)

router = APIRouter()
stripe_router = APIRouter()


async def _checkout(operation) -> CheckoutResult:
    """Run a checkout call, translating its errors to HTTP responses."""
    try:
        return await operation
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except (ConflictError, ValidationError) as e:
        raise HTTPException(status_code=400, detail=e.message)
    except ExternalServiceError:
        raise HTTPException(status_code=502, detail="Payment provider unavailable")


@router.post("/checkout/listing/{listing_id}", response_model=CheckoutResponse)
async def checkout_listing(
    listing_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: CheckoutService = Depends(get_checkout_service),
) -> CheckoutResponse:
    """Start a Stripe checkout for one listing. Redirect the browser to `url`."""
    result = await _checkout(service.create_listing_checkout(user, listing_id))
    return CheckoutResponse.from_result(result)


@router.post("/checkout/bundle/{bundle_id}", response_model=CheckoutResponse)
async def checkout_bundle(
    bundle_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: CheckoutService = Depends(get_checkout_service),
) -> CheckoutResponse:
    result = await _checkout(service.create_bundle_checkout(user, bundle_id))
    return CheckoutResponse.from_result(result)


@router.post("/checkout/subscription", response_model=CheckoutResponse)
async def checkout_subscription(
    request: SubscriptionCheckoutRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: CheckoutService = Depends(get_checkout_service),
) -> CheckoutResponse:
    result = await _checkout(service.create_subscription_checkout(user, request.price_id))
    return CheckoutResponse.from_result(result)


@router.get("/subscription", response_model=SubscriptionStatusResponse)
async def subscription_status(
    user: AuthenticatedUser = Depends(get_current_user),
    service: BillingService = Depends(get_billing_service),
) -> SubscriptionStatusResponse:
    return SubscriptionStatusResponse(active=await service.has_active_subscription(user.id))


# -----------------------------------------------------------------------------
# Stripe-facing paths
# -----------------------------------------------------------------------------


@stripe_router.get("/purchase-emote", response_model=CheckoutResponse)
async def purchase_emote(
    emote_id: Optional[str] = Query(default=None, alias="emoteId"),
    user: AuthenticatedUser = Depends(get_current_user),
    service: CheckoutService = Depends(get_checkout_service),
) -> CheckoutResponse:
    """Start checkout for the listing identified by `emoteId`."""
    if not emote_id:
        raise HTTPException(status_code=400, detail="Emote ID is required")
    result = await _checkout(service.create_listing_checkout(user, emote_id))
    return CheckoutResponse.from_result(result)


@stripe_router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None, alias="Stripe-Signature"),
    ingestor: WebhookIngestor = Depends(get_webhook_ingestor),
) -> dict:
    """
    Receive a Stripe event.

    The raw body is verified against the signing secret before anything is
    parsed. Replayed events are acknowledged without effects. Failures after
    verification return 500 so Stripe retries the delivery.
    """
    payload = await request.body()
    if not stripe_signature:
        raise HTTPException(status_code=400, detail="Webhook Error: missing signature")

    try:
        outcome = await ingestor.ingest(payload, stripe_signature)
    except WebhookVerificationError as e:
        raise HTTPException(status_code=400, detail=f"Webhook Error: {e.details.get('reason') or e.message}")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except Exception:
        logger.exception("Error processing webhook")
        raise HTTPException(status_code=500, detail="Webhook processing error")

    return {"received": True, "status": outcome.status}
