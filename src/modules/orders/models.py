"""Order, OrderItem, OrderStatusHistory and OrderNumberSequence models.

Rules implemented here:
- ``order_number`` is unique and written once, on insert.
- ``total_amount`` and the fee breakdown are fixed at creation.
- OrderItem snapshots product name and unit price at creation time;
  ``subtotal`` is always ``quantity * unit_price`` (calculated on save).
- Orders are never deleted: cancellation is a terminal status.
- Every ``(status, payment_status)`` change is recorded in
  OrderStatusHistory.
"""

from __future__ import annotations

from typing import Any

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import (
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from modules.orders.exceptions import InvalidOrderStatus
from modules.orders.lifecycle import OrderState
from shared.domain.events import DomainEventMixin


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    The customer is embedded as a snapshot (the storefront has no customer
    accounts).  The UUIDv7 ``id`` is used for API look-ups; ``order_number``
    (``HG000042``) is what customers see and track.

    ``idempotency_key`` is nullable: only storefront requests carrying an
    ``Idempotency-Key`` header set it.
    """

    order_number = models.CharField(max_length=20, unique=True, editable=False)

    # Customer snapshot
    customer_name = models.CharField(max_length=255)
    customer_phone = models.CharField(max_length=32)
    customer_whatsapp = models.CharField(max_length=32, blank=True, default="")
    customer_email = models.EmailField(blank=True, default="")
    address_street = models.CharField(max_length=255)
    address_city = models.CharField(max_length=100)
    address_state = models.CharField(max_length=100)
    address_postal_code = models.CharField(max_length=20)
    address_country = models.CharField(max_length=100, default="India")

    # Pricing (fixed at creation)
    gift_wrap = models.BooleanField(default=False)
    subtotal_amount = models.DecimalField(max_digits=10, decimal_places=2)
    gift_wrap_fee = models.DecimalField(max_digits=10, decimal_places=2)
    delivery_fee = models.DecimalField(max_digits=10, decimal_places=2)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)

    # Lifecycle
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.ONLINE_GATEWAY,
    )

    # Payment evidence (write-once per method)
    gateway_order_id = models.CharField(max_length=64, blank=True, default="")
    gateway_payment_id = models.CharField(max_length=64, blank=True, default="")
    gateway_signature = models.CharField(max_length=128, blank=True, default="")
    manual_transaction_ref = models.CharField(max_length=255, blank=True, default="")
    manual_proof_ref = models.CharField(max_length=500, blank=True, default="")

    # Fulfillment
    estimated_delivery = models.DateTimeField()
    actual_delivery = models.DateTimeField(null=True, blank=True)
    tracking_number = models.CharField(max_length=100, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    idempotency_key = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["payment_status"], name="orders_payment_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(fields=["gateway_order_id"], name="orders_gateway_order_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=0),
                name="orders_total_non_negative",
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def state(self) -> OrderState:
        return OrderState.of(self)

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the order is delivered or cancelled."""
        return self.state.is_terminal

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether staff may move the order to *new_status*."""
        return self.state.can_transition_to(new_status)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def delete(self, using=None, keep_parents=False):
        raise InvalidOrderStatus("Orders cannot be deleted; cancel them instead.")

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status}/{self.payment_status})"


class OrderItem(BaseModel):
    """Line item with a snapshot of the product at purchase time.

    ``product_name`` and ``unit_price`` never change even if the catalog
    entry is renamed or repriced later.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    product_name = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, editable=False)
    customization = models.JSONField(null=True, blank=True, default=None)

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self.unit_price is None:
            raise ValidationError({"unit_price": "Unit price snapshot is required."})
        self.subtotal = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} (₹{self.subtotal})"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for lifecycle transitions.

    Records both axes so payment-driven and staff-driven moves are equally
    traceable.  ``actor`` is free text ("system", "gateway", a staff
    username); it is not a foreign key so history survives user removal.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status = models.CharField(max_length=20, choices=OrderStatus.choices)
    old_payment_status = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=PaymentStatus.choices,
        null=True,
        blank=True,
    )
    new_payment_status = models.CharField(max_length=20, choices=PaymentStatus.choices)
    actor = models.CharField(max_length=150, default="system")
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return (
            f"{self.order_id}: {self.old_status}/{self.old_payment_status} -> "
            f"{self.new_status}/{self.new_payment_status}"
        )


class OrderNumberSequence(models.Model):
    """Counter row backing human-readable order numbers.

    Incremented with ``SELECT ... FOR UPDATE`` + ``F()`` so concurrent
    order creations never observe the same value.
    """

    name = models.CharField(max_length=50, unique=True)
    value = models.PositiveBigIntegerField(default=0)

    class Meta:
        db_table = "order_number_sequences"

    def __str__(self) -> str:
        return f"{self.name}={self.value}"
