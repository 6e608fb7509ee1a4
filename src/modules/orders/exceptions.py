"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations

from decimal import Decimal

from modules.products.exceptions import InactiveProduct, ProductNotFound

__all__ = [
    "DuplicateOrderNumber",
    "EmptyOrder",
    "InactiveProduct",
    "InvalidOrderStatus",
    "InvalidPaymentStatus",
    "OrderConflict",
    "OrderNotFound",
    "OrderNumberUnavailable",
    "ProductNotFound",
    "TotalMismatch",
]


class OrderNotFound(Exception):
    """The requested order does not exist."""


class InvalidOrderStatus(Exception):
    """An illegal fulfillment status transition was attempted."""


class InvalidPaymentStatus(Exception):
    """An illegal payment status transition was attempted."""


class OrderConflict(Exception):
    """A conditional update lost the race against a concurrent writer."""


class EmptyOrder(Exception):
    """An order was submitted without any line items."""


class TotalMismatch(Exception):
    """The client-proposed total disagrees with the server-computed total."""

    def __init__(self, expected: Decimal, received: Decimal) -> None:
        self.expected = expected
        self.received = received
        super().__init__(
            f"Order total mismatch: expected {expected}, received {received}."
        )


class DuplicateOrderNumber(Exception):
    """The store rejected an order number that is already taken."""


class OrderNumberUnavailable(Exception):
    """No unique order number could be allocated; nothing was persisted."""
