"""Notification Dispatcher contract.

Message composition (email, WhatsApp) lives outside this service; the core
only hands over the confirmed order and the reason.  The concrete
dispatcher is chosen with ``NOTIFICATION_DISPATCHER``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import structlog
from django.conf import settings
from django.utils.module_loading import import_string

if TYPE_CHECKING:
    from modules.orders.models import Order

logger = structlog.get_logger(__name__)


class INotificationDispatcher(ABC):
    @abstractmethod
    def send_order_confirmation(self, order: Order, reason: str) -> None:
        """Deliver the confirmation; raise on failure so it can be retried."""


class LoggingNotificationDispatcher(INotificationDispatcher):
    """Records the confirmation in the structured log only."""

    def send_order_confirmation(self, order: Order, reason: str) -> None:
        logger.info(
            "notification.order_confirmation",
            order_id=str(order.id),
            order_number=order.order_number,
            reason=reason,
            customer_email=order.customer_email,
            customer_whatsapp=order.customer_whatsapp,
        )


def get_notification_dispatcher() -> INotificationDispatcher:
    return import_string(settings.NOTIFICATION_DISPATCHER)()
