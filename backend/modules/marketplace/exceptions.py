"""
Marketplace module exceptions.
"""

from shared.exceptions import (
    NotFoundError,
    ValidationError,
    ConflictError,
    AuthorizationError,
)
from .pricing import MINIMUM_PRICE_CENTS


class EmoteNotFoundError(NotFoundError):
    """Raised when a generated emote is not found."""

    def __init__(self, emote_id: str):
        super().__init__(
            f"Emote not found: {emote_id}",
            code="EMOTE_NOT_FOUND",
            details={"emote_id": emote_id},
        )


class ListingNotFoundError(NotFoundError):
    """Raised when a listing is not found."""

    def __init__(self, listing_id: str):
        super().__init__(
            f"Emote not found: {listing_id}",
            code="LISTING_NOT_FOUND",
            details={"listing_id": listing_id},
        )


class BundleNotFoundError(NotFoundError):
    """Raised when a bundle is not found."""

    def __init__(self, bundle_id: str):
        super().__init__(
            f"Emote pack not found: {bundle_id}",
            code="BUNDLE_NOT_FOUND",
            details={"bundle_id": bundle_id},
        )


class MarketplaceAccessDeniedError(AuthorizationError):
    """Raised when a user tries to modify another seller's content."""

    def __init__(self, resource_id: str, user_id: str):
        super().__init__(
            f"Access denied to {resource_id}",
            code="MARKETPLACE_ACCESS_DENIED",
            details={"resource_id": resource_id, "user_id": user_id},
        )


class PriceTooLowError(ValidationError):
    """Raised when a price is below the marketplace minimum."""

    def __init__(self, price_cents: int):
        super().__init__(
            f"Price must be at least ${MINIMUM_PRICE_CENTS / 100:.2f}",
            code="PRICE_TOO_LOW",
            details={"price_cents": price_cents, "minimum_cents": MINIMUM_PRICE_CENTS},
        )


class NotForSaleError(ValidationError):
    """Raised when checking out a listing or bundle that has no price yet."""

    def __init__(self, resource_id: str):
        super().__init__(
            "Emote not available for purchase",
            code="NOT_FOR_SALE",
            details={"resource_id": resource_id},
        )


class InvalidBundleItemsError(ValidationError):
    """Raised when a bundle references listings that are missing or unpublished."""

    def __init__(self, invalid_ids: list[str]):
        super().__init__(
            "Some emotes are not valid or published",
            code="INVALID_BUNDLE_ITEMS",
            details={"listing_ids": invalid_ids},
        )


class AlreadyOwnedError(ConflictError):
    """Raised when a buyer tries to purchase something they already own."""

    def __init__(self, resource_id: str, user_id: str):
        super().__init__(
            "You already own this emote",
            code="ALREADY_OWNED",
            details={"resource_id": resource_id, "user_id": user_id},
        )
