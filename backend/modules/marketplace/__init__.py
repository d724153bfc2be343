"""
Marketplace module.

Handles listings, bundles, marketplace search and buyer entitlements.

Public API:
- MarketplaceService: listing/bundle lifecycle and entitlement reads
- IMarketplaceRepository: persistence contract
- Listing, Bundle, Emote, Purchase: data models
- Exceptions: ListingNotFoundError, PriceTooLowError, AlreadyOwnedError, etc.
"""

from .interfaces import IMarketplaceRepository
from .models import (
    Bundle,
    BundleDetail,
    Emote,
    Listing,
    ListingPage,
    ListingStatus,
    Purchase,
)
from .exceptions import (
    AlreadyOwnedError,
    BundleNotFoundError,
    EmoteNotFoundError,
    InvalidBundleItemsError,
    ListingNotFoundError,
    MarketplaceAccessDeniedError,
    NotForSaleError,
    PriceTooLowError,
)
from .pricing import MINIMUM_PRICE_CENTS, to_cents
from .service import MarketplaceService

__all__ = [
    # Interfaces
    "IMarketplaceRepository",
    # Models
    "Bundle",
    "BundleDetail",
    "Emote",
    "Listing",
    "ListingPage",
    "ListingStatus",
    "Purchase",
    # Pricing
    "MINIMUM_PRICE_CENTS",
    "to_cents",
    # Service
    "MarketplaceService",
    # Exceptions
    "AlreadyOwnedError",
    "BundleNotFoundError",
    "EmoteNotFoundError",
    "InvalidBundleItemsError",
    "ListingNotFoundError",
    "MarketplaceAccessDeniedError",
    "NotForSaleError",
    "PriceTooLowError",
]
