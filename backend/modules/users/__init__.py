"""
Users module.

Handles account upsert, credit balances and profile deletion.

Public API:
- UserService: account operations
- IUserRepository: persistence contract
- User, SubscriptionTier: data models
- Exceptions: UserNotFoundError, InsufficientCreditsError, etc.
"""

from .interfaces import IUserRepository, IMarketingClient
from .models import User, SubscriptionTier, UserProfileResponse
from .exceptions import (
    UserNotFoundError,
    UserAlreadyExistsError,
    UserUpsertError,
    InsufficientCreditsError,
)
from .service import UserService

__all__ = [
    # Interfaces
    "IUserRepository",
    "IMarketingClient",
    # Models
    "User",
    "SubscriptionTier",
    "UserProfileResponse",
    # Service
    "UserService",
    # Exceptions
    "UserNotFoundError",
    "UserAlreadyExistsError",
    "UserUpsertError",
    "InsufficientCreditsError",
]
