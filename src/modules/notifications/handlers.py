"""Bus subscriber that detaches confirmation delivery from the request."""

from __future__ import annotations

import structlog

from modules.orders.events import OrderConfirmed
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderConfirmedHandler(IEventHandler[OrderConfirmed]):
    """Enqueues the notification task once the confirmation has committed.

    An enqueue failure propagates to the bus, which logs it; the outbox row
    stays pending and the relay task delivers it later.
    """

    def handle(self, event: OrderConfirmed) -> None:
        from modules.notifications.tasks import deliver_order_confirmation_task

        deliver_order_confirmation_task.delay(str(event.event_id))
        logger.info(
            "notification.enqueued",
            event_id=str(event.event_id),
            order_id=str(event.aggregate_id),
        )


order_confirmed_handler = OrderConfirmedHandler()
