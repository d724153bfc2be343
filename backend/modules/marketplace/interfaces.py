"""
Marketplace module interface.

The billing and generation modules depend on IMarketplaceRepository for
listing lookups, entitlement checks and emote creation.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from shared.pagination import PageWindow
from .models import Bundle, Emote, Listing, Purchase


@runtime_checkable
class IMarketplaceRepository(Protocol):
    """Persistence contract for emotes, listings, bundles and entitlements."""

    # Emotes
    def create_emote(
        self,
        user_id: str,
        prompt: str,
        style: str,
        model: str,
        image_url: str,
    ) -> Emote:
        ...

    def get_emote(self, emote_id: str) -> Optional[Emote]:
        ...

    def list_emotes(self, user_id: str) -> list[Emote]:
        ...

    # Listings
    def create_listing(self, emote: Emote) -> Listing:
        ...

    def get_listing(self, listing_id: str) -> Optional[Listing]:
        ...

    def get_listing_by_emote(self, emote_id: str) -> Optional[Listing]:
        ...

    def get_listings(self, listing_ids: list[str]) -> list[Listing]:
        """Fetch listings by id, preserving the order of `listing_ids`; missing ids are skipped."""
        ...

    def update_listing(self, listing_id: str, changes: dict[str, Any]) -> Listing:
        ...

    def search_listings(
        self,
        window: PageWindow,
        search: str = "",
        style: str = "",
    ) -> tuple[list[Listing], int]:
        """
        Search marketplace-published listings, newest first.

        The prompt matches if it contains the query as typed, in lower
        case, or in upper case.

        Returns:
            (page of listings, total matching count)
        """
        ...

    def list_seller_listings(self, seller_id: str) -> list[Listing]:
        ...

    # Bundles
    def create_bundle(
        self,
        seller_id: str,
        name: str,
        description: str,
        image_url: Optional[str],
        cover_listing_id: Optional[str],
    ) -> Bundle:
        ...

    def get_bundle(self, bundle_id: str) -> Optional[Bundle]:
        ...

    def update_bundle(self, bundle_id: str, changes: dict[str, Any]) -> Bundle:
        """Update bundle columns; a `listing_ids` key replaces the bundle items in order."""
        ...

    def list_seller_bundles(
        self,
        seller_id: str,
        window: PageWindow,
    ) -> tuple[list[Bundle], int]:
        ...

    # Entitlements
    def owns_emote(self, user_id: str, emote_id: str) -> bool:
        ...

    def has_purchased_bundle(self, user_id: str, bundle_id: str) -> bool:
        ...

    def list_purchases(self, user_id: str) -> list[Purchase]:
        ...

    def list_owned_emotes(self, user_id: str) -> list[Emote]:
        ...

    # Profile deletion
    def delete_user_content(self, user_id: str) -> None:
        """Remove every row owned by or referencing the user."""
        ...
