"""Outbox-backed delivery of order confirmations.

Each ``OrderConfirmed`` outbox row is delivered at most once: the row is
locked for the duration of the dispatch and already-published rows are
skipped, so a replayed reconciliation or a relay racing the original task
never produces a duplicate notification.
"""

from __future__ import annotations

from typing import Optional

import structlog
from django.db import transaction

from modules.core.models import OutboxEvent
from modules.notifications.dispatchers import (
    INotificationDispatcher,
    get_notification_dispatcher,
)
from modules.notifications.exceptions import NotificationDeliveryError
from modules.orders.repositories.django_repository import OrderDjangoRepository

logger = structlog.get_logger(__name__)


def deliver_order_confirmation(
    event_id: str, dispatcher: Optional[INotificationDispatcher] = None
) -> bool:
    """Send the confirmation recorded by outbox row ``event_id``.

    Returns ``True`` when the notification was sent now and ``False`` when
    there was nothing to do (unknown row, already delivered, order gone).

    Raises:
        NotificationDeliveryError: the dispatcher failed; the row is marked
            as failed and ``retry_count`` incremented.
    """
    dispatcher = dispatcher or get_notification_dispatcher()
    log = logger.bind(event_id=str(event_id))
    failure: Optional[Exception] = None

    with transaction.atomic():
        event = OutboxEvent.objects.select_for_update().filter(id=event_id).first()
        if event is None:
            log.warning("notification.event_missing")
            return False
        if event.is_published:
            log.info("notification.already_delivered")
            return False

        order = OrderDjangoRepository().get_by_id(event.aggregate_id)
        if order is None:
            event.mark_as_failed("Order not found.")
            log.warning("notification.order_missing", order_id=event.aggregate_id)
            return False

        log = log.bind(order_id=str(order.id), order_number=order.order_number)
        try:
            dispatcher.send_order_confirmation(
                order, event.payload.get("reason", "confirmed")
            )
        except Exception as exc:  # noqa: BLE001
            event.mark_as_failed(f"{type(exc).__name__}: {exc}")
            failure = exc
        else:
            event.mark_as_published()

    if failure is not None:
        log.error(
            "notification.failed",
            error=str(failure),
            retry_count=event.retry_count,
        )
        raise NotificationDeliveryError(event_id) from failure

    log.info("notification.delivered")
    return True
