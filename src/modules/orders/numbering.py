"""Order identifier generator.

Order numbers are ``<prefix><zero-padded counter>`` (``HG000042``), taken
from a single counter row that is locked and incremented atomically.  The
allocation runs in its own short transaction so the row lock is never held
across the rest of order creation (including the payment gateway call).

A number is consumed even if the order that requested it is later aborted;
numbers are therefore unique and never reused, but may have gaps.
"""

from __future__ import annotations

from typing import Optional

import structlog
from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import F

from modules.orders.constants import ORDER_NUMBER_SEQUENCE
from modules.orders.exceptions import OrderNumberUnavailable
from modules.orders.models import OrderNumberSequence

logger = structlog.get_logger(__name__)


def format_order_number(
    value: int, prefix: Optional[str] = None, width: Optional[int] = None
) -> str:
    prefix = settings.ORDER_NUMBER_PREFIX if prefix is None else prefix
    width = settings.ORDER_NUMBER_WIDTH if width is None else width
    return f"{prefix}{value:0{width}d}"


class OrderNumberAllocator:
    """Hands out unique order numbers from ``OrderNumberSequence``."""

    def __init__(self, sequence_name: str = ORDER_NUMBER_SEQUENCE) -> None:
        self._sequence_name = sequence_name

    def allocate(self) -> str:
        """Reserve the next order number.

        Raises:
            OrderNumberUnavailable: the counter row could not be updated.
        """
        try:
            with transaction.atomic():
                OrderNumberSequence.objects.get_or_create(name=self._sequence_name)
                sequence = (
                    OrderNumberSequence.objects.select_for_update()
                    .get(name=self._sequence_name)
                )
                OrderNumberSequence.objects.filter(pk=sequence.pk).update(
                    value=F("value") + 1
                )
                sequence.refresh_from_db(fields=["value"])
        except DatabaseError as exc:
            logger.error(
                "order.number_allocation_failed",
                sequence=self._sequence_name,
                error=str(exc),
            )
            raise OrderNumberUnavailable("Could not allocate an order number.") from exc

        number = format_order_number(sequence.value)
        logger.info("order.number_allocated", order_number=number)
        return number
