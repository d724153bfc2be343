"""
Billing service.

Subscription status reads on top of the entitlement store.
"""

import logging
from datetime import datetime
from typing import Optional

from .interfaces import IEntitlementStore
from .models import Subscription

logger = logging.getLogger(__name__)


class BillingService:
    """Answers whether a user is currently subscribed."""

    def __init__(self, store: IEntitlementStore):
        self._store = store

    async def get_subscription(self, user_id: str) -> Optional[Subscription]:
        return self._store.get_subscription(user_id)

    async def has_active_subscription(
        self,
        user_id: str,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        True if the user's subscription has a price and has not lapsed.

        A subscription counts as active until one day after its period end.
        """
        subscription = self._store.get_subscription(user_id)
        if subscription is None:
            return False
        return subscription.is_valid(now)

    async def delete_subscription(self, user_id: str) -> None:
        self._store.delete_subscription(user_id)
        logger.info("Deleted subscription record for user %s", user_id)
