"""Order service layer (Use Cases).

Orchestrates order placement and staff-driven fulfillment.  The service
defines the unit-of-work boundaries:

1. Products are resolved and priced, and a client-proposed total is checked,
   before anything is written.
2. The order number is allocated in its own short transaction.
3. For online payment the remote payment intent is created; a gateway
   failure aborts placement with nothing persisted.
4. Order, items, initial history and the ``OrderCreated`` outbox row are
   written in one transaction.

Business rules enforced:
- Unit prices and names come from the catalog, never from the client.
- Unknown or inactive products abort the whole order.
- Status transitions are validated by ``OrderState``.
- Every transition is recorded in the status history.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

import structlog
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import transaction
from django.utils import timezone

from modules.orders.constants import (
    ORDER_NUMBER_MAX_RETRIES,
    OrderStatus,
    PaymentMethod,
)
from modules.orders.dtos import UpdateStatusDTO
from modules.orders.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderCreated,
    OrderStatusChanged,
)
from modules.orders.exceptions import (
    DuplicateOrderNumber,
    InactiveProduct,
    InvalidOrderStatus,
    OrderConflict,
    OrderNotFound,
    OrderNumberUnavailable,
    ProductNotFound,
)
from modules.orders.lifecycle import OrderState
from modules.orders.numbering import OrderNumberAllocator
from modules.orders.pricing import PricedLine, PriceQuote, calculate_total, verify_client_total

if TYPE_CHECKING:
    from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.payments.gateway import IPaymentGateway
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PlacedOrder:
    """Result of ``create_order``; ``created`` is ``False`` on replay."""

    order: Order
    created: bool


class OrderService:
    """Application service for Order use-cases.

    Receives repositories and collaborators via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        payment_gateway: Optional[IPaymentGateway] = None,
        number_allocator: Optional[OrderNumberAllocator] = None,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._gateway = payment_gateway
        self._allocator = number_allocator or OrderNumberAllocator()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_order(self, dto: CreateOrderDTO) -> PlacedOrder:
        """Place a new order in ``(pending, pending)``.

        Raises:
            ProductNotFound: a product does not exist.
            InactiveProduct: a product is no longer offered.
            EmptyOrder: no line items.
            TotalMismatch: the client total disagrees with the server total.
            OrderNumberUnavailable: no order number could be allocated.
            PaymentGatewayError: the remote payment intent could not be
                created; nothing was persisted.
        """
        log = logger.bind(
            payment_method=dto.payment_method,
            item_count=len(dto.items),
        )
        log.info("order.creation_started")

        if dto.idempotency_key:
            existing = self._order_repo.get_by_idempotency_key(dto.idempotency_key)
            if existing:
                log.info(
                    "order.idempotency_hit",
                    order_id=str(existing.id),
                    key=dto.idempotency_key,
                )
                return PlacedOrder(order=existing, created=False)

        lines = self._resolve_products(dto.items)
        quote = calculate_total(
            [PricedLine(product.base_price, item.quantity) for item, product in lines],
            gift_wrap=dto.gift_wrap,
        )
        verify_client_total(quote, dto.client_total)
        log.info("order.priced", subtotal=str(quote.subtotal), total=str(quote.total))

        for attempt in range(1, ORDER_NUMBER_MAX_RETRIES + 1):
            order_number = self._allocator.allocate()
            gateway_order_id = self._create_payment_intent(dto, quote, order_number)
            try:
                order = self._persist(dto, lines, quote, order_number, gateway_order_id)
            except DuplicateOrderNumber:
                log.warning(
                    "order.number_collision",
                    order_number=order_number,
                    attempt=attempt,
                )
                if gateway_order_id:
                    log.warning(
                        "order.payment_intent_abandoned",
                        gateway_order_id=gateway_order_id,
                        receipt=order_number,
                    )
                continue
            except OrderConflict:
                replay = dto.idempotency_key and self._order_repo.get_by_idempotency_key(
                    dto.idempotency_key
                )
                if not replay:
                    raise
                log.info("order.idempotency_race", order_id=str(replay.id))
                return PlacedOrder(order=replay, created=False)

            log.info(
                "order.created",
                order_id=str(order.id),
                order_number=order.order_number,
                total=str(order.total_amount),
            )
            return PlacedOrder(order=order, created=True)

        log.error("order.number_retries_exhausted", attempts=ORDER_NUMBER_MAX_RETRIES)
        raise OrderNumberUnavailable("Could not allocate a unique order number.")

    @transaction.atomic
    def update_status(self, order_id: UUID, dto: UpdateStatusDTO) -> Order:
        """Move an order one step along the fulfillment pipeline, or cancel it.

        Acquires a row-level lock before validating the transition and
        writes with a compare-and-set on ``payment_status``.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: transition is not allowed.
        """
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(
            order_id=str(order_id),
            current_status=order.status,
            new_status=dto.new_status,
        )

        previous = order.state
        try:
            new_state = previous.advance(dto.new_status)
        except InvalidOrderStatus:
            log.warning("order.invalid_transition")
            raise

        patch: Dict[str, Any] = {"status": new_state.status}
        if dto.tracking_number:
            patch["tracking_number"] = dto.tracking_number
        if new_state.status == OrderStatus.DELIVERED:
            patch["actual_delivery"] = timezone.now()

        updated = self._order_repo.conditional_update(
            order.id, patch, expected_payment_status=previous.payment_status
        )
        self._order_repo.add_history(
            order_id=updated.id,
            new_state=new_state,
            old_state=previous,
            actor=dto.actor,
            notes=dto.notes,
        )

        updated.add_domain_event(
            OrderStatusChanged(
                aggregate_id=updated.id,
                old_status=previous.status,
                new_status=new_state.status,
            )
        )
        if new_state.enters_confirmed(previous):
            updated.add_domain_event(OrderConfirmed(aggregate_id=updated.id))
        if new_state.status == OrderStatus.CANCELLED:
            updated.add_domain_event(OrderCancelled(aggregate_id=updated.id))
        self._order_repo.publish_events(updated)

        log.info("order.status_updated")
        return updated

    def cancel_order(
        self, order_id: UUID, notes: str = "", actor: str = "staff"
    ) -> Order:
        """Cancel an order that has not been delivered yet.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: the order is already delivered or cancelled.
        """
        return self.update_status(
            order_id,
            UpdateStatusDTO(
                new_status=OrderStatus.CANCELLED,
                notes=notes or "Order cancelled",
                actor=actor,
            ),
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def track_order(self, order_number: str) -> Order:
        order = self._order_repo.get_by_order_number(order_number)
        if not order:
            raise OrderNotFound(f"Order {order_number} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """Return orders newest first, optionally filtered."""
        return self._order_repo.list(filters)

    # ------------------------------------------------------------------
    # Placement helpers
    # ------------------------------------------------------------------

    def _resolve_products(
        self, items: Sequence[CreateOrderItemDTO]
    ) -> List[Tuple[CreateOrderItemDTO, Product]]:
        products = self._product_repo.get_many([str(item.product_id) for item in items])
        lines = []
        for item in items:
            product = products.get(str(item.product_id))
            if product is None:
                logger.warning("order.unknown_product", product_id=str(item.product_id))
                raise ProductNotFound(item.product_id)
            if not product.is_active:
                logger.warning("order.inactive_product", product_id=str(product.id))
                raise InactiveProduct(product.id)
            lines.append((item, product))
        return lines

    def _create_payment_intent(
        self, dto: CreateOrderDTO, quote: PriceQuote, order_number: str
    ) -> str:
        if dto.payment_method != PaymentMethod.ONLINE_GATEWAY:
            return ""
        if self._gateway is None:
            raise ImproperlyConfigured("Online payment requires a payment gateway.")
        intent = self._gateway.create_payment_intent(
            amount_minor_units=quote.total_minor_units,
            currency=settings.PAYMENT_CURRENCY,
            receipt=order_number,
        )
        return intent.id

    @transaction.atomic
    def _persist(
        self,
        dto: CreateOrderDTO,
        lines: Sequence[Tuple[CreateOrderItemDTO, Product]],
        quote: PriceQuote,
        order_number: str,
        gateway_order_id: str,
    ) -> Order:
        customer = dto.customer
        address = customer.address
        order = self._order_repo.create(
            {
                "order_number": order_number,
                "customer_name": customer.name,
                "customer_phone": customer.phone,
                "customer_whatsapp": customer.whatsapp or "",
                "customer_email": customer.email or "",
                "address_street": address.street,
                "address_city": address.city,
                "address_state": address.state,
                "address_postal_code": address.postal_code,
                "address_country": address.country or settings.DEFAULT_ADDRESS_COUNTRY,
                "gift_wrap": dto.gift_wrap,
                "subtotal_amount": quote.subtotal,
                "gift_wrap_fee": quote.gift_wrap_fee,
                "delivery_fee": quote.delivery_fee,
                "total_amount": quote.total,
                "payment_method": dto.payment_method,
                "gateway_order_id": gateway_order_id,
                "estimated_delivery": timezone.now()
                + timedelta(days=settings.ORDER_LEAD_TIME_DAYS),
                "notes": dto.notes or "",
                "idempotency_key": dto.idempotency_key,
                "items": [
                    {
                        "product": product,
                        "product_name": product.name,
                        "quantity": item.quantity,
                        "unit_price": product.base_price,
                        "customization": item.customization.to_payload()
                        if item.customization
                        else None,
                    }
                    for item, product in lines
                ],
            }
        )
        self._order_repo.add_history(
            order_id=order.id,
            new_state=OrderState.initial(dto.payment_method),
            actor="customer",
            notes="Order placed",
        )
        order.add_domain_event(OrderCreated(aggregate_id=order.id))
        self._order_repo.publish_events(order)
        return self._order_repo.get_by_id(str(order.id)) or order
