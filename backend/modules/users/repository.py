"""
User repositories.

Provides an in-memory implementation (for testing and local development)
and a Supabase-backed implementation for production. Credit changes in the
Supabase implementation go through Postgres functions so that each change
is a single statement.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from postgrest.exceptions import APIError

from shared.repository import BaseRepository
from .exceptions import UserAlreadyExistsError, UserNotFoundError
from .models import SubscriptionTier, User

UNIQUE_VIOLATION = "23505"


class InMemoryUserRepository:
    """User storage in a dict. Mutations never await, so each is atomic on the event loop."""

    def __init__(self) -> None:
        self._users: dict[str, User] = {}

    def get(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def create(
        self,
        user_id: str,
        email: Optional[str],
        name: Optional[str],
        credits: int,
    ) -> User:
        if user_id in self._users:
            raise UserAlreadyExistsError(user_id)
        now = datetime.now(timezone.utc)
        user = User(
            id=user_id,
            email=email,
            name=name,
            credits=credits,
            created_at=now,
            updated_at=now,
        )
        self._users[user_id] = user
        return user

    def update_identity(
        self,
        user_id: str,
        email: Optional[str],
        name: Optional[str],
    ) -> User:
        return self._update(user_id, email=email, name=name)

    def consume_credits(self, user_id: str, cost: int) -> Optional[int]:
        user = self._users.get(user_id)
        if user is None or user.credits < cost:
            return None
        return self._update(user_id, credits=user.credits - cost).credits

    def add_credits(self, user_id: str, amount: int) -> int:
        user = self._require(user_id)
        return self._update(user_id, credits=user.credits + amount).credits

    def set_payout_account(self, user_id: str, account_id: Optional[str]) -> User:
        return self._update(user_id, payout_account_id=account_id)

    def set_subscription_state(
        self,
        user_id: str,
        tier: SubscriptionTier,
        active: bool,
    ) -> User:
        return self._update(user_id, subscription_tier=tier, is_active_subscriber=active)

    def set_active(self, user_id: str, active: bool) -> User:
        return self._update(user_id, is_active_subscriber=active)

    def delete(self, user_id: str) -> None:
        self._users.pop(user_id, None)

    def _require(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def _update(self, user_id: str, **changes: Any) -> User:
        user = self._require(user_id)
        changes["updated_at"] = datetime.now(timezone.utc)
        updated = user.model_copy(update=changes)
        self._users[user_id] = updated
        return updated


class SupabaseUserRepository(BaseRepository[User]):
    """
    Repository for the users table.

    Note: This repository does NOT perform authorization checks.
    Routes only ever pass the authenticated user's own id.
    """

    def get(self, user_id: str) -> Optional[User]:
        result = self._db.table("users").select("*").eq("id", user_id).execute()
        if not result.data:
            return None
        return self._map_to_user(result.data[0])

    def create(
        self,
        user_id: str,
        email: Optional[str],
        name: Optional[str],
        credits: int,
    ) -> User:
        try:
            result = self._db.table("users").insert({
                "id": user_id,
                "email": email,
                "name": name,
                "credits": credits,
            }).execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise UserAlreadyExistsError(user_id) from e
            raise
        return self._map_to_user(result.data[0])

    def update_identity(
        self,
        user_id: str,
        email: Optional[str],
        name: Optional[str],
    ) -> User:
        return self._update(user_id, {"email": email, "name": name})

    def consume_credits(self, user_id: str, cost: int) -> Optional[int]:
        result = self._db.rpc("consume_credits", {
            "p_user_id": user_id,
            "p_cost": cost,
        }).execute()
        return self._scalar(result.data)

    def add_credits(self, user_id: str, amount: int) -> int:
        result = self._db.rpc("add_credits", {
            "p_user_id": user_id,
            "p_amount": amount,
        }).execute()
        balance = self._scalar(result.data)
        if balance is None:
            raise UserNotFoundError(user_id)
        return balance

    def set_payout_account(self, user_id: str, account_id: Optional[str]) -> User:
        return self._update(user_id, {"payout_account_id": account_id})

    def delete(self, user_id: str) -> None:
        self._db.table("users").delete().eq("id", user_id).execute()

    # -------------------------------------------------------------------------
    # Private helpers
    # -------------------------------------------------------------------------

    def _update(self, user_id: str, data: dict[str, Any]) -> User:
        data["updated_at"] = datetime.now(timezone.utc).isoformat()
        result = self._db.table("users").update(data).eq("id", user_id).execute()
        if not result.data:
            raise UserNotFoundError(user_id)
        return self._map_to_user(result.data[0])

    @staticmethod
    def _scalar(data: Any) -> Optional[int]:
        """Unwrap a scalar RPC result (PostgREST may return it bare or in a list)."""
        if isinstance(data, list):
            data = data[0] if data else None
        if isinstance(data, dict):
            data = next(iter(data.values()), None)
        return int(data) if data is not None else None

    def _map_to_user(self, data: dict[str, Any]) -> User:
        """Map database row to User model."""
        return User(
            id=str(data["id"]),
            email=data.get("email"),
            name=data.get("name"),
            credits=data.get("credits", 0),
            subscription_tier=SubscriptionTier(data.get("subscription_tier") or "FREE"),
            is_active_subscriber=data.get("is_active_subscriber", False),
            payout_account_id=data.get("payout_account_id"),
            created_at=self._timestamp(data.get("created_at")),
            updated_at=self._timestamp(data.get("updated_at")),
        )
