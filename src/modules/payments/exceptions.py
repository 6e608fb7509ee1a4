"""Payment domain exceptions."""

from __future__ import annotations


class PaymentGatewayError(Exception):
    """The payment gateway was unreachable or refused to create an intent."""


class PaymentVerificationFailed(Exception):
    """A gateway confirmation did not carry a valid signature.

    Distinct from generic failures: the order has been driven to
    ``cancelled/failed`` (unless it was already settled) and the caller
    should show a specific "payment verification failed" message.
    """

    def __init__(self, order_id) -> None:
        self.order_id = str(order_id)
        super().__init__(f"Payment verification failed for order {self.order_id}.")


class PaymentMethodMismatch(Exception):
    """The reconciliation path does not match the order's payment method."""
