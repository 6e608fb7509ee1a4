"""Order domain constants.

Two correlated axes describe an order: the fulfillment ``status`` pipeline
and the ``payment_status``.  The transition tables below are the single
source of truth consumed by ``modules.orders.lifecycle``.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Order placed"
    CONFIRMED = "confirmed", "Confirmed"
    IN_PROGRESS = "in-progress", "In progress"
    COMPLETED = "completed", "Completed"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"


class PaymentMethod(models.TextChoices):
    CASH_ON_DELIVERY = "cash-on-delivery", "Cash on delivery"
    ONLINE_GATEWAY = "online-gateway", "Online (payment gateway)"
    MANUAL_TRANSFER = "manual-transfer", "Manual transfer (UPI)"


# Fulfillment pipeline: one step forward at a time, cancellation from any
# state before delivery.
FULFILLMENT_PIPELINE: tuple[str, ...] = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.IN_PROGRESS,
    OrderStatus.COMPLETED,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
)

VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED},
    OrderStatus.IN_PROGRESS: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

PAYMENT_TRANSITIONS: dict[str, set[str]] = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: set(),
    PaymentStatus.REFUNDED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

# Methods that may be confirmed by staff before any money has moved.
PAY_LATER_METHODS: set[str] = {
    PaymentMethod.CASH_ON_DELIVERY,
    PaymentMethod.MANUAL_TRANSFER,
}

ORDER_NUMBER_MAX_RETRIES = 5
ORDER_NUMBER_SEQUENCE = "orders"
