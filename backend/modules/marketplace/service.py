"""
Marketplace service implementation.

Listing and bundle lifecycle, marketplace search, and the read side of the
entitlement store. Purchases and ownership rows are written by the billing
webhook ingestor, never here.
"""

import logging
import math
from decimal import Decimal
from typing import Optional

from shared.pagination import PageWindow
from .exceptions import (
    BundleNotFoundError,
    EmoteNotFoundError,
    InvalidBundleItemsError,
    ListingNotFoundError,
    MarketplaceAccessDeniedError,
    PriceTooLowError,
)
from .interfaces import IMarketplaceRepository
from .models import (
    Bundle,
    BundleDetail,
    BundlePage,
    Emote,
    Listing,
    ListingPage,
    ListingStatus,
    Purchase,
)
from .pricing import MINIMUM_PRICE_CENTS, to_cents

logger = logging.getLogger(__name__)

PUBLISHED_STATES = (ListingStatus.PUBLISHED, ListingStatus.MARKETPLACE_PUBLISHED)


class MarketplaceService:
    """Marketplace operations on top of a marketplace repository."""

    def __init__(self, repository: IMarketplaceRepository):
        self._repository = repository

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    async def create_listing(self, seller_id: str, emote_id: str) -> Listing:
        """
        Wrap a generated emote in a draft listing.

        Calling it again for the same emote returns the existing listing.

        Raises:
            EmoteNotFoundError: If the emote doesn't exist
            MarketplaceAccessDeniedError: If the emote belongs to someone else
        """
        emote = self._repository.get_emote(emote_id)
        if emote is None:
            raise EmoteNotFoundError(emote_id)
        if emote.user_id != seller_id:
            raise MarketplaceAccessDeniedError(emote_id, seller_id)

        existing = self._repository.get_listing_by_emote(emote_id)
        if existing is not None:
            return existing

        listing = self._repository.create_listing(emote)
        logger.info("Created draft listing %s for emote %s", listing.id, emote_id)
        return listing

    async def publish_listing(
        self,
        seller_id: str,
        listing_id: str,
        price: Decimal,
        watermarked_url: Optional[str] = None,
        marketplace: bool = True,
    ) -> Listing:
        """
        Price a listing and make it visible.

        Raises:
            ListingNotFoundError: If the listing doesn't exist
            MarketplaceAccessDeniedError: If the caller isn't the seller
            PriceTooLowError: If the price is under the minimum
        """
        listing = await self.get_listing(listing_id)
        if listing.seller_id != seller_id:
            raise MarketplaceAccessDeniedError(listing_id, seller_id)

        price_cents = to_cents(price)
        if price_cents < MINIMUM_PRICE_CENTS:
            raise PriceTooLowError(price_cents)

        status = ListingStatus.MARKETPLACE_PUBLISHED if marketplace else ListingStatus.PUBLISHED
        changes = {"price": price, "price_cents": price_cents, "status": status}
        if watermarked_url:
            changes["watermarked_url"] = watermarked_url

        updated = self._repository.update_listing(listing_id, changes)
        logger.info("Published listing %s at %d cents (%s)", listing_id, price_cents, status.value)
        return updated

    async def get_listing(self, listing_id: str) -> Listing:
        listing = self._repository.get_listing(listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        return listing

    async def view_listing(self, listing_id: str, viewer_id: Optional[str] = None) -> Listing:
        """Listing as seen by `viewer_id`; drafts exist only for their seller."""
        listing = await self.get_listing(listing_id)
        if listing.status == ListingStatus.DRAFT and listing.seller_id != viewer_id:
            raise ListingNotFoundError(listing_id)
        return listing

    async def search_listings(
        self,
        page: int = 1,
        page_size: int = 20,
        search: str = "",
        style: str = "",
    ) -> ListingPage:
        """Marketplace search over published listings, newest first."""
        window = PageWindow(page, page_size)
        listings, total = self._repository.search_listings(
            window,
            search=search.strip(),
            style=style.strip(),
        )
        return ListingPage(
            listings=listings,
            total=total,
            page=page,
            page_size=page_size,
            has_more=window.has_more(total),
        )

    async def list_seller_listings(self, seller_id: str) -> list[Listing]:
        return self._repository.list_seller_listings(seller_id)

    # -------------------------------------------------------------------------
    # Bundles
    # -------------------------------------------------------------------------

    async def create_bundle(
        self,
        seller_id: str,
        name: str,
        description: str = "",
        image_url: Optional[str] = None,
        cover_listing_id: Optional[str] = None,
    ) -> Bundle:
        bundle = self._repository.create_bundle(
            seller_id, name, description, image_url, cover_listing_id
        )
        logger.info("Created draft bundle %s for seller %s", bundle.id, seller_id)
        return bundle

    async def publish_bundle(
        self,
        seller_id: str,
        bundle_id: str,
        price: Decimal,
        listing_ids: list[str],
        watermarked_url: Optional[str] = None,
        cover_listing_id: Optional[str] = None,
    ) -> Bundle:
        """
        Price a bundle, set its items and publish it to the marketplace.

        Every listing must belong to the seller and already be published.
        Duplicate ids are collapsed, keeping first-seen order.

        Raises:
            BundleNotFoundError: If the bundle doesn't exist
            MarketplaceAccessDeniedError: If the caller isn't the seller
            PriceTooLowError: If the price is under the minimum
            InvalidBundleItemsError: If any listing is foreign, missing or a draft
        """
        bundle = self._repository.get_bundle(bundle_id)
        if bundle is None:
            raise BundleNotFoundError(bundle_id)
        if bundle.seller_id != seller_id:
            raise MarketplaceAccessDeniedError(bundle_id, seller_id)

        price_cents = to_cents(price)
        if price_cents < MINIMUM_PRICE_CENTS:
            raise PriceTooLowError(price_cents)

        ordered_ids = list(dict.fromkeys(listing_ids))
        found = {l.id: l for l in self._repository.get_listings(ordered_ids)}
        invalid = [
            listing_id for listing_id in ordered_ids
            if listing_id not in found
            or found[listing_id].seller_id != seller_id
            or found[listing_id].status not in PUBLISHED_STATES
        ]
        if invalid:
            raise InvalidBundleItemsError(invalid)

        changes = {
            "price": price,
            "price_cents": price_cents,
            "status": ListingStatus.MARKETPLACE_PUBLISHED,
            "listing_ids": ordered_ids,
        }
        if watermarked_url:
            changes["watermarked_url"] = watermarked_url
        if cover_listing_id:
            changes["cover_listing_id"] = cover_listing_id

        updated = self._repository.update_bundle(bundle_id, changes)
        logger.info(
            "Published bundle %s with %d listing(s) at %d cents",
            bundle_id, len(ordered_ids), price_cents,
        )
        return updated

    async def get_bundle(self, bundle_id: str) -> BundleDetail:
        bundle = self._repository.get_bundle(bundle_id)
        if bundle is None:
            raise BundleNotFoundError(bundle_id)
        return BundleDetail(
            bundle=bundle,
            listings=self._repository.get_listings(bundle.listing_ids),
        )

    async def view_bundle(self, bundle_id: str, viewer_id: Optional[str] = None) -> BundleDetail:
        detail = await self.get_bundle(bundle_id)
        if detail.bundle.status == ListingStatus.DRAFT and detail.bundle.seller_id != viewer_id:
            raise BundleNotFoundError(bundle_id)
        return detail

    async def list_seller_bundles(
        self,
        seller_id: str,
        page: int = 1,
        page_size: int = 10,
    ) -> BundlePage:
        window = PageWindow(page, page_size)
        bundles, total = self._repository.list_seller_bundles(seller_id, window)
        return BundlePage(
            bundles=bundles,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size),
            has_more=window.has_more(total),
        )

    # -------------------------------------------------------------------------
    # Entitlements
    # -------------------------------------------------------------------------

    async def owns_emote(self, user_id: str, emote_id: str) -> bool:
        return self._repository.owns_emote(user_id, emote_id)

    async def owns_listing(self, user_id: str, listing_id: str) -> bool:
        listing = await self.get_listing(listing_id)
        return self._repository.owns_emote(user_id, listing.emote_id)

    async def owns_bundle(self, user_id: str, bundle_id: str) -> bool:
        if self._repository.get_bundle(bundle_id) is None:
            raise BundleNotFoundError(bundle_id)
        return self._repository.has_purchased_bundle(user_id, bundle_id)

    async def list_purchases(self, user_id: str) -> list[Purchase]:
        return self._repository.list_purchases(user_id)

    async def list_owned_emotes(self, user_id: str) -> list[Emote]:
        return self._repository.list_owned_emotes(user_id)

    async def delete_user_content(self, user_id: str) -> None:
        self._repository.delete_user_content(user_id)
        logger.info("Deleted marketplace content for user %s", user_id)
