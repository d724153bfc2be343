"""
Base repository class for database access.

Provides a common abstraction layer for all repositories, encapsulating
Supabase client access and providing shared utilities for data operations.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TypeVar, Generic, Any, Optional
from supabase import Client


T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base class for all Supabase-backed repositories.

    Provides common functionality for database operations:
    - Supabase client access via self._db
    - Generic type parameter for model type hints
    - Small helpers for mapping PostgREST values

    Subclasses implement domain-specific data access methods and handle
    dict-to-Pydantic model mapping internally.

    Example:
        class ListingRepository(BaseRepository[Listing]):
            def get_by_id(self, listing_id: str) -> Optional[Listing]:
                result = self._db.table("listings").select("*").eq("id", listing_id).execute()
                if not result.data:
                    return None
                return self._map_to_listing(result.data[0])
    """

    def __init__(self, db: Client) -> None:
        """
        Initialize the repository with a Supabase client.

        Args:
            db: Supabase client instance for database operations.
        """
        self._db = db

    @staticmethod
    def _decimal(value: Any) -> Decimal:
        """Convert a numeric column (returned as str/float/int) to Decimal."""
        return Decimal(str(value if value is not None else 0))

    @staticmethod
    def _is_uuid(value: Any) -> bool:
        """Whether `value` can be compared against a UUID column without a cast error."""
        try:
            uuid.UUID(str(value))
        except ValueError:
            return False
        return True

    @staticmethod
    def _timestamp(value: Optional[str]) -> Optional[datetime]:
        """Parse a PostgREST timestamp, tolerating a trailing Z."""
        if value is None:
            return None
        if isinstance(value, datetime):
            return value
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
