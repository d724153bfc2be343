"""
Marketplace module data models.

Generated emotes, their for-sale listings, bundles of listings, and the
purchase / ownership records that make up a buyer's entitlements.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class ListingStatus(str, Enum):
    """Listing and bundle publication states."""

    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"                          # Visible on the seller's page
    MARKETPLACE_PUBLISHED = "MARKETPLACE_PUBLISHED"  # Also visible in marketplace search


class Emote(BaseModel):
    """A generated image asset."""

    id: str
    user_id: str
    prompt: str = ""
    style: str = ""
    model: str = ""
    image_url: str
    created_at: Optional[datetime] = None


class Listing(BaseModel):
    """
    An emote offered for sale.

    `price` is the seller-entered dollar amount; `price_cents` is fixed at
    publish time and is what checkout charges.
    """

    id: str
    emote_id: str
    seller_id: str
    prompt: str = ""
    style: str = ""
    model: str = ""
    image_url: str
    watermarked_url: Optional[str] = None
    price: Decimal = Field(default=Decimal("0"))
    price_cents: Optional[int] = Field(None, ge=0)
    status: ListingStatus = ListingStatus.DRAFT
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def display_image(self) -> str:
        return self.watermarked_url or self.image_url


class Bundle(BaseModel):
    """An ordered pack of listings sold together at its own price."""

    id: str
    seller_id: str
    name: str
    description: str = ""
    listing_ids: list[str] = Field(default_factory=list)
    cover_listing_id: Optional[str] = None
    image_url: Optional[str] = None
    watermarked_url: Optional[str] = None
    price: Decimal = Field(default=Decimal("0"))
    price_cents: Optional[int] = Field(None, ge=0)
    status: ListingStatus = ListingStatus.DRAFT
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BundleDetail(BaseModel):
    """A bundle together with its listings, in bundle order."""

    bundle: Bundle
    listings: list[Listing]


class Purchase(BaseModel):
    """A completed purchase of exactly one listing or bundle."""

    id: str
    buyer_id: str
    listing_id: Optional[str] = None
    bundle_id: Optional[str] = None
    payment_intent_id: Optional[str] = None
    event_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _one_target(self) -> "Purchase":
        if (self.listing_id is None) == (self.bundle_id is None):
            raise ValueError("A purchase references exactly one listing or bundle")
        return self


# -----------------------------------------------------------------------------
# API request / response models
# -----------------------------------------------------------------------------


class ListingPage(BaseModel):
    """Paginated marketplace search results."""

    listings: list[Listing]
    total: int
    page: int
    page_size: int
    has_more: bool


class BundlePage(BaseModel):
    """Paginated bundles for a seller."""

    bundles: list[Bundle]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_more: bool


class CreateListingRequest(BaseModel):
    emote_id: str = Field(..., min_length=1)


class PublishListingRequest(BaseModel):
    price: Decimal = Field(..., gt=0, description="Price in dollars")
    watermarked_url: Optional[str] = None
    marketplace: bool = Field(
        default=True,
        description="Also list in marketplace search",
    )


class CreateBundleRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    image_url: Optional[str] = None
    cover_listing_id: Optional[str] = None


class PublishBundleRequest(BaseModel):
    price: Decimal = Field(..., gt=0, description="Price in dollars")
    listing_ids: list[str] = Field(..., min_length=1)
    watermarked_url: Optional[str] = None
    cover_listing_id: Optional[str] = None


class OwnershipResponse(BaseModel):
    owned: bool
