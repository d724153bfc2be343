"""
User service implementation.

Owns account upsert, credit accounting and profile deletion.
"""

import logging
from typing import Optional

from shared.retry import RetryPolicy, retry_async
from .exceptions import (
    InsufficientCreditsError,
    UserAlreadyExistsError,
    UserNotFoundError,
    UserUpsertError,
)
from .interfaces import IMarketingClient, IUserRepository
from .models import User

logger = logging.getLogger(__name__)

DEFAULT_UPSERT_POLICY = RetryPolicy(max_attempts=3, base_delay=0.05, max_delay=0.5)


class UserService:
    """
    Account operations on top of a user repository.

    Args:
        repository: User persistence
        marketing: Optional marketing-list sync for new accounts
        upsert_policy: Retry bounds for the find-or-create race
        starting_credits: Credits granted to a newly created account
    """

    def __init__(
        self,
        repository: IUserRepository,
        marketing: Optional[IMarketingClient] = None,
        upsert_policy: RetryPolicy = DEFAULT_UPSERT_POLICY,
        starting_credits: int = 5,
    ):
        self._repository = repository
        self._marketing = marketing
        self._upsert_policy = upsert_policy
        self._starting_credits = starting_credits

    async def get_or_create_user(
        self,
        user_id: str,
        email: Optional[str] = None,
        name: Optional[str] = None,
    ) -> User:
        """
        Find the user or create it, refreshing name/email when they changed.

        A concurrent request may create the same row between our read and
        insert (or delete it between read and update); both cases are
        retried under the upsert policy.

        Raises:
            UserUpsertError: If the bound is exhausted
        """
        created = False

        async def attempt() -> User:
            nonlocal created
            user = self._repository.get(user_id)
            if user is None:
                user = self._repository.create(user_id, email, name, self._starting_credits)
                created = True
                return user
            if (email and email != user.email) or (name and name != user.name):
                return self._repository.update_identity(
                    user_id,
                    email or user.email,
                    name or user.name,
                )
            return user

        try:
            user = await retry_async(
                attempt,
                self._upsert_policy,
                retry_on=(UserAlreadyExistsError, UserNotFoundError),
                description=f"upsert of user {user_id}",
            )
        except (UserAlreadyExistsError, UserNotFoundError) as e:
            raise UserUpsertError(user_id, self._upsert_policy.max_attempts) from e

        if created and self._marketing is not None and email and name:
            await self._marketing.subscribe_contact(email, name)

        return user

    async def get_user(self, user_id: str) -> User:
        user = self._repository.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def consume_credits(self, user_id: str, cost: int = 1) -> int:
        """
        Spend credits atomically.

        Returns:
            The remaining balance

        Raises:
            InsufficientCreditsError: If the user is missing or short
        """
        if cost < 1:
            raise ValueError("cost must be positive")
        balance = self._repository.consume_credits(user_id, cost)
        if balance is None:
            raise InsufficientCreditsError(user_id, cost)
        return balance

    async def refund_credits(self, user_id: str, amount: int = 1) -> int:
        """Give back credits spent on an operation that failed upstream."""
        balance = self._repository.add_credits(user_id, amount)
        logger.info("Refunded %d credit(s) to user %s", amount, user_id)
        return balance

    async def set_payout_account(self, user_id: str, account_id: Optional[str]) -> User:
        return self._repository.set_payout_account(user_id, account_id)

    async def delete_profile(self, user_id: str) -> None:
        """Delete the user row. Callers remove owned content first."""
        self._repository.delete(user_id)
        logger.info("Deleted profile for user %s", user_id)
