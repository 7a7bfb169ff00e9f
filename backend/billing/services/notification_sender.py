"""Delivery seam for customer notifications."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from billing.models.customer import Customer

logger = logging.getLogger(__name__)


class NotificationSender:
    """Default sender: logs the notification instead of handing it to a provider."""

    def send(self, customer: Customer, payload: dict[str, Any]) -> None:
        logger.info(
            "Sending pending invoices notification to customer %s <%s>: %s",
            customer.id,
            customer.email or "no email",
            payload,
        )
