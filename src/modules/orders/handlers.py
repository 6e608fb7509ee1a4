"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog
from django.utils import timezone

from modules.core.models import EventStatus, OutboxEvent
from shared.domain.bus import IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


class OrderAuditHandler(IEventHandler[DomainEvent]):
    """Logs committed lifecycle events and acknowledges their outbox rows.

    These events have no side effect beyond the audit log, so the outbox
    row is published as soon as the bus has seen it.
    """

    def handle(self, event: DomainEvent) -> None:
        OutboxEvent.objects.filter(
            id=event.event_id, status=EventStatus.PENDING
        ).update(status=EventStatus.PUBLISHED, processed_at=timezone.now())
        logger.info(
            "order.event_committed",
            event_name=event.event_name,
            event_id=str(event.event_id),
            order_id=str(event.aggregate_id),
        )


order_audit_handler = OrderAuditHandler()
