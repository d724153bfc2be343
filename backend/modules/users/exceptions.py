"""
Users module exceptions.
"""

from shared.exceptions import (
    EmoteMarketError,
    NotFoundError,
    ConflictError,
)


class UserNotFoundError(NotFoundError):
    """Raised when a user row does not exist."""

    def __init__(self, user_id: str):
        super().__init__(
            f"User not found: {user_id}",
            code="USER_NOT_FOUND",
            details={"user_id": user_id},
        )


class UserAlreadyExistsError(ConflictError):
    """Raised when inserting a user whose id is already taken."""

    def __init__(self, user_id: str):
        super().__init__(
            f"User already exists: {user_id}",
            code="USER_ALREADY_EXISTS",
            details={"user_id": user_id},
        )


class UserUpsertError(EmoteMarketError):
    """Raised when a user could not be found or created within the retry bound."""

    def __init__(self, user_id: str, attempts: int):
        super().__init__(
            f"Failed to get or create user {user_id} after {attempts} attempts",
            code="USER_UPSERT_FAILED",
            details={"user_id": user_id, "attempts": attempts},
        )


class InsufficientCreditsError(EmoteMarketError):
    """
    Raised when a user doesn't have enough credits for an operation.

    The UI should handle this by prompting the user to subscribe.
    """

    def __init__(self, user_id: str, required: int):
        super().__init__(
            "You have run out of credits.",
            code="INSUFFICIENT_CREDITS",
            details={"user_id": user_id, "required": required},
        )
