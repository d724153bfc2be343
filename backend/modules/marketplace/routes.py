"""
Marketplace API endpoints.

Public search and detail views, seller listing/bundle management and the
buyer's purchases and ownership checks.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.middleware.auth import get_current_user, get_optional_user
from api.dependencies import get_marketplace_service
from shared.exceptions import AuthorizationError, NotFoundError, ValidationError
from shared.models import AuthenticatedUser

from .models import (
    Bundle,
    BundleDetail,
    BundlePage,
    CreateBundleRequest,
    CreateListingRequest,
    Emote,
    Listing,
    ListingPage,
    OwnershipResponse,
    PublishBundleRequest,
    PublishListingRequest,
    Purchase,
)
from .service import MarketplaceService

router = APIRouter()


# -----------------------------------------------------------------------------
# Listings
# -----------------------------------------------------------------------------


@router.get("/listings", response_model=ListingPage)
async def search_listings(
    page: int = Query(default=1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(default=20, ge=1, le=100, description="Items per page"),
    search: str = Query(default="", max_length=200, description="Prompt search"),
    style: str = Query(default="", max_length=100, description="Style filter"),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> ListingPage:
    """
    Search the marketplace.

    Public. Only marketplace-published listings are returned, newest first.
    """
    return await service.search_listings(page, page_size, search, style)


@router.get("/listings/mine", response_model=list[Listing])
async def list_my_listings(
    user: AuthenticatedUser = Depends(get_current_user),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> list[Listing]:
    return await service.list_seller_listings(user.id)


@router.get("/listings/{listing_id}", response_model=Listing)
async def get_listing(
    listing_id: str,
    viewer: Optional[AuthenticatedUser] = Depends(get_optional_user),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> Listing:
    """Public detail view. Drafts are only visible to their seller."""
    try:
        return await service.view_listing(listing_id, viewer.id if viewer else None)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Emote not found")


@router.post("/listings", response_model=Listing, status_code=201)
async def create_listing(
    request: CreateListingRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> Listing:
    """Create a draft listing for one of the caller's generated emotes."""
    try:
        return await service.create_listing(user.id, request.emote_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Emote not found")
    except AuthorizationError:
        raise HTTPException(status_code=403, detail="Not your emote")


@router.post("/listings/{listing_id}/publish", response_model=Listing)
async def publish_listing(
    listing_id: str,
    request: PublishListingRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> Listing:
    try:
        return await service.publish_listing(
            user.id,
            listing_id,
            request.price,
            watermarked_url=request.watermarked_url,
            marketplace=request.marketplace,
        )
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Emote not found")
    except AuthorizationError:
        raise HTTPException(status_code=403, detail="Not your listing")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)


# -----------------------------------------------------------------------------
# Bundles
# -----------------------------------------------------------------------------


@router.get("/bundles/mine", response_model=BundlePage)
async def list_my_bundles(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=100),
    user: AuthenticatedUser = Depends(get_current_user),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> BundlePage:
    return await service.list_seller_bundles(user.id, page, page_size)


@router.get("/bundles/{bundle_id}", response_model=BundleDetail)
async def get_bundle(
    bundle_id: str,
    viewer: Optional[AuthenticatedUser] = Depends(get_optional_user),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> BundleDetail:
    """Get a bundle with its listings in bundle order. Drafts are only visible to their seller."""
    try:
        return await service.view_bundle(bundle_id, viewer.id if viewer else None)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Emote pack not found")


@router.post("/bundles", response_model=Bundle, status_code=201)
async def create_bundle(
    request: CreateBundleRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> Bundle:
    return await service.create_bundle(
        user.id,
        request.name,
        description=request.description,
        image_url=request.image_url,
        cover_listing_id=request.cover_listing_id,
    )


@router.post("/bundles/{bundle_id}/publish", response_model=Bundle)
async def publish_bundle(
    bundle_id: str,
    request: PublishBundleRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> Bundle:
    """
    Price and publish a bundle.

    Every listing in the bundle must be one of the caller's published listings.
    """
    try:
        return await service.publish_bundle(
            user.id,
            bundle_id,
            request.price,
            request.listing_ids,
            watermarked_url=request.watermarked_url,
            cover_listing_id=request.cover_listing_id,
        )
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Emote pack not found")
    except AuthorizationError:
        raise HTTPException(status_code=403, detail="Not your emote pack")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)


# -----------------------------------------------------------------------------
# Entitlements
# -----------------------------------------------------------------------------


@router.get("/purchases", response_model=list[Purchase])
async def list_my_purchases(
    user: AuthenticatedUser = Depends(get_current_user),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> list[Purchase]:
    return await service.list_purchases(user.id)


@router.get("/owned", response_model=list[Emote])
async def list_my_emotes(
    user: AuthenticatedUser = Depends(get_current_user),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> list[Emote]:
    """Emotes the caller has bought, individually or through a bundle."""
    return await service.list_owned_emotes(user.id)


@router.get("/listings/{listing_id}/ownership", response_model=OwnershipResponse)
async def check_listing_ownership(
    listing_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> OwnershipResponse:
    try:
        return OwnershipResponse(owned=await service.owns_listing(user.id, listing_id))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Emote not found")


@router.get("/bundles/{bundle_id}/ownership", response_model=OwnershipResponse)
async def check_bundle_ownership(
    bundle_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> OwnershipResponse:
    try:
        return OwnershipResponse(owned=await service.owns_bundle(user.id, bundle_id))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Emote pack not found")
