"""
Users module interfaces.

Other modules depend on IUserRepository and IMarketingClient, not the
concrete Supabase / ActiveCampaign implementations.
"""

from typing import Protocol, Optional, runtime_checkable

from .models import User


@runtime_checkable
class IUserRepository(Protocol):
    """Persistence contract for user rows."""

    def get(self, user_id: str) -> Optional[User]:
        ...

    def create(
        self,
        user_id: str,
        email: Optional[str],
        name: Optional[str],
        credits: int,
    ) -> User:
        """
        Insert a new user.

        Raises:
            UserAlreadyExistsError: If a row with this id already exists
        """
        ...

    def update_identity(
        self,
        user_id: str,
        email: Optional[str],
        name: Optional[str],
    ) -> User:
        """
        Update name/email of an existing user.

        Raises:
            UserNotFoundError: If the row disappeared
        """
        ...

    def consume_credits(self, user_id: str, cost: int) -> Optional[int]:
        """
        Decrement credits only if the balance covers the cost.

        This is a single conditional update; concurrent callers cannot
        both spend the same credit.

        Returns:
            The new balance, or None if the user is missing or short.
        """
        ...

    def add_credits(self, user_id: str, amount: int) -> int:
        """
        Increment credits and return the new balance.

        Raises:
            UserNotFoundError: If the user doesn't exist
        """
        ...

    def set_payout_account(self, user_id: str, account_id: Optional[str]) -> User:
        ...

    def delete(self, user_id: str) -> None:
        ...


@runtime_checkable
class IMarketingClient(Protocol):
    """Contract for the marketing-automation contact sync."""

    async def subscribe_contact(self, email: str, name: Optional[str]) -> None:
        """Add a new account to the mailing list. Must not raise."""
        ...
