"""Order lifecycle state machine.

``OrderState`` is an immutable snapshot of the two lifecycle axes plus the
payment method that conditions them.  Every operation returns a *new*
state or raises, so callers compute the full ``(status, payment_status)``
pair before writing anything and both fields change together or not at all.

Rules:
- Orders start at ``(pending, pending)``.
- Payment confirmation: ``payment pending -> paid`` and, if the order is
  still ``pending``, ``status -> confirmed``.
- Payment failure: ``payment pending -> failed`` and ``status -> cancelled``.
- Staff moves are one step forward along the fulfillment pipeline, or
  cancellation before delivery.  Online-gateway orders cannot move forward
  while payment is still pending; cash-on-delivery and manual-transfer
  orders are exempt.
- ``delivered`` and ``cancelled`` are terminal.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from modules.orders.constants import (
    PAY_LATER_METHODS,
    PAYMENT_TRANSITIONS,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
    PaymentStatus,
)
from modules.orders.exceptions import InvalidOrderStatus, InvalidPaymentStatus

if TYPE_CHECKING:
    from modules.orders.models import Order


@dataclass(frozen=True)
class OrderState:
    status: str
    payment_status: str
    payment_method: str

    @classmethod
    def initial(cls, payment_method: str) -> OrderState:
        return cls(OrderStatus.PENDING, PaymentStatus.PENDING, payment_method)

    @classmethod
    def of(cls, order: Order) -> OrderState:
        return cls(order.status, order.payment_status, order.payment_method)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    @property
    def requires_payment_first(self) -> bool:
        """Online orders must be paid before fulfillment moves forward."""
        return (
            self.payment_method not in PAY_LATER_METHODS
            and self.payment_status != PaymentStatus.PAID
        )

    def can_transition_to(self, new_status: str) -> bool:
        if new_status not in VALID_TRANSITIONS.get(self.status, set()):
            return False
        if new_status == OrderStatus.CANCELLED:
            return True
        return not self.requires_payment_first

    def can_transition_payment_to(self, new_payment_status: str) -> bool:
        return new_payment_status in PAYMENT_TRANSITIONS.get(self.payment_status, set())

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def advance(self, new_status: str) -> OrderState:
        """Staff-driven fulfillment move (including cancellation)."""
        if self.is_terminal:
            raise InvalidOrderStatus(
                f"Order is {self.status}; no further transition is allowed."
            )
        if new_status in VALID_TRANSITIONS.get(self.status, set()) and (
            new_status != OrderStatus.CANCELLED and self.requires_payment_first
        ):
            raise InvalidOrderStatus(
                f"Cannot move to {new_status} while payment is {self.payment_status}."
            )
        if not self.can_transition_to(new_status):
            raise InvalidOrderStatus(
                f"Cannot transition from {self.status} to {new_status}."
            )
        return replace(self, status=new_status)

    def confirm_payment(self) -> OrderState:
        """Successful reconciliation: paid, and confirmed if still pending."""
        if not self.can_transition_payment_to(PaymentStatus.PAID):
            raise InvalidPaymentStatus(
                f"Cannot mark payment as paid from {self.payment_status}."
            )
        if self.is_terminal:
            raise InvalidOrderStatus(
                f"Order is {self.status}; payment can no longer be accepted."
            )
        status = self.status
        if status == OrderStatus.PENDING:
            status = OrderStatus.CONFIRMED
        return replace(self, status=status, payment_status=PaymentStatus.PAID)

    def fail_payment(self) -> OrderState:
        """Rejected confirmation: payment failed and the order cancelled."""
        if not self.can_transition_payment_to(PaymentStatus.FAILED):
            raise InvalidPaymentStatus(
                f"Cannot mark payment as failed from {self.payment_status}."
            )
        if self.is_terminal:
            raise InvalidOrderStatus(f"Order is already {self.status}.")
        return replace(
            self, status=OrderStatus.CANCELLED, payment_status=PaymentStatus.FAILED
        )

    def enters_confirmed(self, previous: OrderState) -> bool:
        return (
            self.status == OrderStatus.CONFIRMED
            and previous.status != OrderStatus.CONFIRMED
        )
