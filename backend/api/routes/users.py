"""
User-related endpoints.

Provides endpoints for user profile and account management.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from shared.models import AuthenticatedUser
from modules.billing.service import BillingService
from modules.marketplace.service import MarketplaceService
from modules.users.exceptions import UserNotFoundError, UserUpsertError
from modules.users.models import PayoutAccountRequest, UserProfileResponse
from modules.users.service import UserService
from ..dependencies import get_billing_service, get_marketplace_service, get_user_service
from ..middleware.auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/me", response_model=UserProfileResponse)
async def get_current_user_profile(
    user: AuthenticatedUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> UserProfileResponse:
    """
    Get the current user's profile.

    Creates the account on first sign-in. Requires authentication.
    """
    try:
        profile = await users.get_or_create_user(user.id, user.email, user.name)
    except UserUpsertError:
        raise HTTPException(status_code=500, detail="Could not load your account")
    return UserProfileResponse.from_user(profile)


@router.put("/me/payout-account", response_model=UserProfileResponse)
async def set_payout_account(
    request: PayoutAccountRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> UserProfileResponse:
    """Connect the payout account that receives the caller's sale revenue."""
    try:
        profile = await users.set_payout_account(user.id, request.account_id)
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    return UserProfileResponse.from_user(profile)


@router.delete("/me", status_code=204)
async def delete_current_user(
    user: AuthenticatedUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
    marketplace: MarketplaceService = Depends(get_marketplace_service),
    billing: BillingService = Depends(get_billing_service),
) -> None:
    """
    Delete the caller's profile and everything they own.

    Listings, bundles, emotes, purchases and the subscription record go
    first, then the user row.
    """
    await marketplace.delete_user_content(user.id)
    await billing.delete_subscription(user.id)
    await users.delete_profile(user.id)
