"""Django ORM implementation of the Order repository.

All write operations run in ``transaction.atomic()`` so the Order
aggregate (Order + OrderItems + history + outbox rows) is persisted
atomically.

Concurrency control on lifecycle updates combines ``select_for_update()``
(row lock held by the calling service) with a compare-and-set on
``payment_status`` in ``conditional_update`` so that backends without row
locks still cannot interleave two reconciliations.
"""

from __future__ import annotations

from functools import partial
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import QuerySet
from django.utils import timezone

from modules.core.models import OutboxEvent
from modules.orders.exceptions import DuplicateOrderNumber, OrderConflict, OrderNotFound
from modules.orders.lifecycle import OrderState
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)

# Money and identity fields are fixed once the order exists.
IMMUTABLE_FIELDS = frozenset(
    {
        "id",
        "order_number",
        "subtotal_amount",
        "gift_wrap_fee",
        "delivery_fee",
        "total_amount",
        "payment_method",
        "created_at",
    }
)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` holds the Order field values plus ``items``: a list of
        dicts with ``product_id``, ``product_name``, ``quantity``,
        ``unit_price`` and optional ``customization``.
        """
        fields = dict(data)
        items = fields.pop("items", [])
        order = Order(**fields)

        try:
            with transaction.atomic():
                order.save(force_insert=True)
        except IntegrityError as exc:
            if Order.objects.filter(order_number=order.order_number).exists():
                raise DuplicateOrderNumber(
                    f"Order number {order.order_number} is already taken."
                ) from exc
            if order.idempotency_key and Order.objects.filter(
                idempotency_key=order.idempotency_key
            ).exists():
                raise OrderConflict(
                    f"Idempotency key {order.idempotency_key} is already in use."
                ) from exc
            raise

        for item_data in items:
            OrderItem(order=order, **item_data).save()

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(items),
        )
        return order

    # ------------------------------------------------------------------
    # Conditional update
    # ------------------------------------------------------------------

    @transaction.atomic
    def conditional_update(
        self,
        id: UUID,
        patch: Dict[str, Any],
        expected_payment_status: Optional[str] = None,
    ) -> Order:
        forbidden = IMMUTABLE_FIELDS.intersection(patch)
        if forbidden:
            raise ValueError(f"Fields cannot be changed after creation: {sorted(forbidden)}")

        queryset = Order.objects.filter(id=id)
        if expected_payment_status is not None:
            queryset = queryset.filter(payment_status=expected_payment_status)

        updated = queryset.update(**patch, updated_at=timezone.now())
        if not updated:
            if not Order.objects.filter(id=id).exists():
                raise OrderNotFound(f"Order {id} not found.")
            logger.warning(
                "order.conditional_update_conflict",
                order_id=str(id),
                expected_payment_status=expected_payment_status,
            )
            raise OrderConflict(f"Order {id} was modified concurrently.")

        logger.info("order.updated", order_id=str(id), fields=sorted(patch))
        return self.get_by_id(str(id))

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def queryset(self) -> QuerySet:
        """Base queryset with eager-loaded relations (prevents N+1)."""
        return Order.objects.prefetch_related(
            "items__product", "status_history"
        ).order_by("-created_at", "-id")

    def get_by_id(self, id: str) -> Optional[Order]:
        """Returns ``None`` for non-existent or invalid IDs."""
        try:
            return self.queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_order_number(self, order_number: str) -> Optional[Order]:
        return self.queryset().filter(order_number__iexact=order_number.strip()).first()

    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Must be called inside a transaction.  Returns ``None`` for
        non-existent or invalid IDs.
        """
        try:
            return Order.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List orders newest-first with optional ORM filters.

        Supported filter keys include ``status``, ``payment_status``,
        ``payment_method`` and ``created_at__range``.
        """
        queryset = self.queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        return self.queryset().filter(idempotency_key=key).first()

    # ------------------------------------------------------------------
    # History & events
    # ------------------------------------------------------------------

    @transaction.atomic
    def add_history(
        self,
        order_id: UUID,
        new_state: OrderState,
        old_state: Optional[OrderState] = None,
        actor: str = "system",
        notes: str = "",
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_state.status if old_state else None,
            new_status=new_state.status,
            old_payment_status=old_state.payment_status if old_state else None,
            new_payment_status=new_state.payment_status,
            actor=actor,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=history.old_status,
            new_status=history.new_status,
            old_payment_status=history.old_payment_status,
            new_payment_status=history.new_payment_status,
        )
        return history

    @transaction.atomic
    def publish_events(self, order: Order) -> int:
        events = order.domain_events
        for event in events:
            OutboxEvent.objects.create(
                id=event.event_id,
                event_type=event.event_name,
                aggregate_id=str(event.aggregate_id),
                payload=event.to_payload(),
                topic=event.topic,
            )
        order.clear_domain_events()

        if events:
            transaction.on_commit(partial(_dispatch_after_commit, events))
        logger.info(
            "order.events_recorded", order_id=str(order.id), event_count=len(events)
        )
        return len(events)


def _dispatch_after_commit(events: Sequence[DomainEvent]) -> None:
    for event in events:
        event_bus.publish(event)
