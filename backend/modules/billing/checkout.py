"""
Checkout session builder.

Prices a listing, bundle or subscription plan, splits the fees and asks the
payment gateway for a hosted checkout session. When the seller has a payout
account the session routes their share to it; if the processor refuses the
routed session we fall back to a plain one and raise a payout alert.
"""

import asyncio
import logging
from typing import Any, Optional

from modules.marketplace.exceptions import (
    AlreadyOwnedError,
    BundleNotFoundError,
    ListingNotFoundError,
    NotForSaleError,
)
from modules.marketplace.interfaces import IMarketplaceRepository
from modules.marketplace.models import ListingStatus
from modules.marketplace.pricing import to_cents
from modules.users.interfaces import IUserRepository
from shared.models import AuthenticatedUser
from .exceptions import PaymentGatewayError, UnknownPlanError
from .fees import FeeBreakdown, calculate_fees
from .interfaces import IPaymentGateway, IPayoutAlerter
from .models import (
    PLANS,
    CheckoutResult,
    CheckoutSessionRef,
    DirectPayment,
    FallbackPayment,
    RoutedPayment,
)

logger = logging.getLogger(__name__)

CURRENCY = "usd"


def _price_cents(price_cents: Optional[int], price: Any) -> Optional[int]:
    """The amount to charge, or None when the item was never priced."""
    if price_cents:
        return price_cents
    cents = to_cents(price)
    return cents if cents > 0 else None


class CheckoutService:
    """
    Builds checkout sessions for marketplace sales and subscriptions.

    Args:
        gateway: Payment processor
        marketplace: Listing/bundle lookups and ownership checks
        users: Seller lookups for payout accounts
        alerter: Told about sales that need a manual payout
        app_url: Public site URL used for success/cancel redirects
    """

    def __init__(
        self,
        gateway: IPaymentGateway,
        marketplace: IMarketplaceRepository,
        users: IUserRepository,
        alerter: IPayoutAlerter,
        app_url: str,
    ):
        self._gateway = gateway
        self._marketplace = marketplace
        self._users = users
        self._alerter = alerter
        self._app_url = app_url.rstrip("/")

    async def create_listing_checkout(
        self,
        buyer: AuthenticatedUser,
        listing_id: str,
    ) -> CheckoutResult:
        """
        Start checkout for a single listing.

        Raises:
            ListingNotFoundError: If the listing doesn't exist
            AlreadyOwnedError: If the buyer already owns the emote
            NotForSaleError: If the listing has no price or is a draft
            PriceTooLowError: If the price is under the minimum
            PaymentGatewayError: If even the plain session fails
        """
        listing = self._marketplace.get_listing(listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)

        # Advisory only: two concurrent checkouts can both pass; the ownership
        # insert on the webhook side is idempotent.
        if self._marketplace.owns_emote(buyer.id, listing.emote_id):
            raise AlreadyOwnedError(listing_id, buyer.id)

        price_cents = _price_cents(listing.price_cents, listing.price)
        if listing.status == ListingStatus.DRAFT or price_cents is None:
            raise NotForSaleError(listing_id)

        fees = calculate_fees(price_cents)
        params = self._payment_params(
            buyer,
            fees,
            name=listing.prompt or "Custom Emote",
            description=f"{listing.style} style emote".strip(),
            image_url=listing.display_image,
            success_path=f"/emote/{listing.emote_id}",
            metadata={"emoteForSaleId": listing.id, "sellerId": listing.seller_id},
        )
        return await self._create_sale_session(listing.id, listing.seller_id, params, fees)

    async def create_bundle_checkout(
        self,
        buyer: AuthenticatedUser,
        bundle_id: str,
    ) -> CheckoutResult:
        """
        Start checkout for a bundle.

        Raises the same errors as create_listing_checkout, with
        BundleNotFoundError in place of ListingNotFoundError.
        """
        bundle = self._marketplace.get_bundle(bundle_id)
        if bundle is None:
            raise BundleNotFoundError(bundle_id)

        if self._marketplace.has_purchased_bundle(buyer.id, bundle_id):
            raise AlreadyOwnedError(bundle_id, buyer.id)

        price_cents = _price_cents(bundle.price_cents, bundle.price)
        if bundle.status == ListingStatus.DRAFT or price_cents is None or not bundle.listing_ids:
            raise NotForSaleError(bundle_id)

        fees = calculate_fees(price_cents)
        params = self._payment_params(
            buyer,
            fees,
            name=bundle.name,
            description=bundle.description or f"Pack of {len(bundle.listing_ids)} emotes",
            image_url=bundle.watermarked_url or bundle.image_url,
            success_path=f"/marketplace/packs/{bundle.id}",
            metadata={"emotePackId": bundle.id, "sellerId": bundle.seller_id},
        )
        return await self._create_sale_session(bundle.id, bundle.seller_id, params, fees)

    async def create_subscription_checkout(
        self,
        user: AuthenticatedUser,
        price_id: str,
    ) -> CheckoutResult:
        """
        Start checkout for a subscription plan.

        Raises:
            UnknownPlanError: If the price is not one of our plans
        """
        if price_id not in PLANS:
            raise UnknownPlanError(price_id)

        params: dict[str, Any] = {
            "mode": "subscription",
            "payment_method_types": ["card"],
            "billing_address_collection": "auto",
            "line_items": [{"price": price_id, "quantity": 1}],
            "success_url": f"{self._app_url}/dashboard?subscribed=true",
            "cancel_url": f"{self._app_url}/pricing?canceled=true",
            "metadata": {"userId": user.id},
        }
        if user.email:
            params["customer_email"] = user.email

        session = await self._create_session(params)
        logger.info("Created subscription checkout %s for user %s", session.id, user.id)
        return CheckoutResult(url=session.url, session_id=session.id)

    # -------------------------------------------------------------------------
    # Private helpers
    # -------------------------------------------------------------------------

    def _payment_params(
        self,
        buyer: AuthenticatedUser,
        fees: FeeBreakdown,
        name: str,
        description: str,
        image_url: Optional[str],
        success_path: str,
        metadata: dict[str, str],
    ) -> dict[str, Any]:
        product_data: dict[str, Any] = {"name": name, "description": description}
        if image_url:
            product_data["images"] = [image_url]

        params: dict[str, Any] = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "billing_address_collection": "auto",
            "line_items": [{
                "price_data": {
                    "currency": CURRENCY,
                    "product_data": product_data,
                    "unit_amount": fees.price_cents,
                },
                "quantity": 1,
            }],
            "success_url": f"{self._app_url}{success_path}?purchased=true",
            "cancel_url": f"{self._app_url}{success_path}?canceled=true",
            "metadata": {
                "userId": buyer.id,
                **metadata,
                "platformRevenue": str(fees.platform_revenue),
                "sellerRevenue": str(fees.seller_revenue),
            },
        }
        if buyer.email:
            params["customer_email"] = buyer.email
        return params

    async def _create_session(self, params: dict[str, Any]) -> CheckoutSessionRef:
        """Create a session off the event loop; the Stripe SDK is blocking."""
        return await asyncio.to_thread(self._gateway.create_checkout_session, params)

    async def _create_sale_session(
        self,
        resource_id: str,
        seller_id: str,
        params: dict[str, Any],
        fees: FeeBreakdown,
    ) -> CheckoutResult:
        seller = self._users.get(seller_id)
        destination = seller.payout_account_id if seller else None

        if not destination:
            session = await self._create_session(params)
            return CheckoutResult(
                url=session.url,
                session_id=session.id,
                fees=fees,
                routing=DirectPayment(),
            )

        routed_params = {
            **params,
            "payment_intent_data": {
                "application_fee_amount": fees.application_fee,
                "transfer_data": {"destination": destination},
            },
        }
        try:
            session = await self._create_session(routed_params)
        except PaymentGatewayError as e:
            logger.warning(
                "Routed checkout for %s refused, falling back to direct payment: %s",
                resource_id,
                e.message,
            )
            session = await self._create_session(params)
            fallback = FallbackPayment(
                reason=e.details.get("stripe_error") or e.message,
                seller_id=seller_id,
                seller_revenue=fees.seller_revenue,
            )
            self._alerter.payout_required(resource_id, fallback)
            return CheckoutResult(
                url=session.url,
                session_id=session.id,
                fees=fees,
                routing=fallback,
            )

        return CheckoutResult(
            url=session.url,
            session_id=session.id,
            fees=fees,
            routing=RoutedPayment(destination=destination, application_fee=fees.application_fee),
        )
