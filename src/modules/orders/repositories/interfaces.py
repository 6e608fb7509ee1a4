"""Order repository interface (the Order Store).

Extends ``IRepository[Order]`` with what the Order aggregate needs:
atomic creation with items, conditional (compare-and-set) updates of the
lifecycle fields, status history, idempotency-key look-up and durable
domain events.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.lifecycle import OrderState
    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children and
    OrderStatusHistory records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        Raises:
            DuplicateOrderNumber: ``order_number`` is already taken.
            OrderConflict: ``idempotency_key`` is already taken.
        """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with prefetched items and status history."""

    @abstractmethod
    def get_by_order_number(self, order_number: str) -> Optional[Order]:
        """Retrieve an order by its human-readable number (case-insensitive)."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order holding a row-level lock for the transaction."""

    @abstractmethod
    def conditional_update(
        self,
        id: UUID,
        patch: Dict[str, Any],
        expected_payment_status: Optional[str] = None,
    ) -> Order:
        """Apply ``patch`` only if the order still has ``expected_payment_status``.

        Raises:
            OrderNotFound: no order with ``id``.
            OrderConflict: the order's payment status changed concurrently.
        """

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List orders newest first, with items resolved."""

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        new_state: OrderState,
        old_state: Optional[OrderState] = None,
        actor: str = "system",
        notes: str = "",
    ) -> OrderStatusHistory:
        """Record a lifecycle transition in the order's audit trail."""

    @abstractmethod
    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        """Retrieve an order by its idempotency key."""

    @abstractmethod
    def publish_events(self, order: Order) -> int:
        """Persist the order's pending domain events to the outbox.

        Events are handed to the in-process bus only after the surrounding
        transaction commits.  Returns the number of events written.
        """
