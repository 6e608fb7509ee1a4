"""Celery tasks for order confirmation notifications."""

from __future__ import annotations

from datetime import timedelta

import structlog
from celery import shared_task
from django.conf import settings
from django.utils import timezone

from modules.core.models import EventStatus, OutboxEvent
from modules.notifications.delivery import deliver_order_confirmation
from modules.notifications.exceptions import NotificationDeliveryError
from modules.orders.events import OrderConfirmed

logger = structlog.get_logger(__name__)


@shared_task(bind=True, name="notifications.deliver_order_confirmation")
def deliver_order_confirmation_task(self, event_id: str) -> bool:
    """Deliver one confirmation, retrying with exponential backoff."""
    try:
        return deliver_order_confirmation(event_id)
    except NotificationDeliveryError as exc:
        countdown = settings.NOTIFICATION_RETRY_DELAY * (2**self.request.retries)
        logger.warning(
            "notification.retry_scheduled",
            event_id=event_id,
            attempt=self.request.retries + 1,
            countdown=countdown,
        )
        raise self.retry(
            exc=exc,
            countdown=countdown,
            max_retries=settings.NOTIFICATION_MAX_RETRIES,
        )


@shared_task(name="notifications.relay_pending_confirmations")
def relay_pending_confirmations(batch_size: int = 100) -> int:
    """Re-enqueue confirmations that were never delivered.

    Picks up rows whose after-commit enqueue was lost (broker outage,
    worker crash) and failed rows that still have retry budget.  Rows
    younger than ``NOTIFICATION_RETRY_DELAY`` are left to the original task.
    """
    cutoff = timezone.now() - timedelta(seconds=settings.NOTIFICATION_RETRY_DELAY)
    event_ids = list(
        OutboxEvent.objects.filter(
            event_type=OrderConfirmed.__name__,
            status__in=[EventStatus.PENDING, EventStatus.FAILED],
            retry_count__lt=settings.NOTIFICATION_MAX_RETRIES,
            created_at__lte=cutoff,
        )
        .order_by("created_at")
        .values_list("id", flat=True)[:batch_size]
    )
    for event_id in event_ids:
        deliver_order_confirmation_task.delay(str(event_id))

    logger.info("notification.relay_completed", enqueued=len(event_ids))
    return len(event_ids)
