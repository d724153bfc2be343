"""
Users module data models.

The users table is keyed by the auth provider's user id and carries the
account's credit balance and subscription state.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class SubscriptionTier(str, Enum):
    """Subscription tiers. LEGACY covers the retired single plan."""

    FREE = "FREE"
    BASIC = "BASIC"
    STANDARD = "STANDARD"
    PREMIUM = "PREMIUM"
    LEGACY = "LEGACY"


class User(BaseModel):
    """A user account row."""

    id: str = Field(..., description="Auth provider user ID")
    email: Optional[str] = Field(None, description="Primary email address")
    name: Optional[str] = Field(None, description="Display name")
    credits: int = Field(default=0, ge=0, description="Generation credits")
    subscription_tier: SubscriptionTier = Field(default=SubscriptionTier.FREE)
    is_active_subscriber: bool = Field(default=False)
    payout_account_id: Optional[str] = Field(
        None,
        description="Connected payout account receiving seller revenue",
    )
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserProfileResponse(BaseModel):
    """API response for the current user's profile."""

    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    credits: int
    subscription_tier: SubscriptionTier
    is_active_subscriber: bool
    has_payout_account: bool

    @classmethod
    def from_user(cls, user: User) -> "UserProfileResponse":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            credits=user.credits,
            subscription_tier=user.subscription_tier,
            is_active_subscriber=user.is_active_subscriber,
            has_payout_account=user.payout_account_id is not None,
        )


class PayoutAccountRequest(BaseModel):
    """Request to connect a payout account."""

    account_id: str = Field(..., min_length=1, description="Connected account ID (acct_...)")
