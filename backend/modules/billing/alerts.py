"""Payout alerts for sales that were not routed to the seller."""

import logging

from .models import FallbackPayment

logger = logging.getLogger(__name__)


class LoggingPayoutAlerter:
    """Reports manual payouts through the application log."""

    def payout_required(self, resource_id: str, fallback: FallbackPayment) -> None:
        logger.warning(
            "Manual payout required for %s: seller %s is owed %d cents (%s)",
            resource_id,
            fallback.seller_id,
            fallback.seller_revenue,
            fallback.reason,
        )
