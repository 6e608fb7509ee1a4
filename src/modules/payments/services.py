"""Payment Reconciliation Service.

Matches a payment confirmation to its order and drives the lifecycle state
machine.  Two paths:

- **Gateway-signed**: the confirmation tuple is authenticated with the
  shared HMAC secret before anything is trusted.  An invalid signature is
  treated as tampering: the order is moved to ``cancelled/failed`` (kept for
  audit) and ``PaymentVerificationFailed`` is raised *after* that
  transition has been committed.
- **Manual/assisted**: trust-assuming settlement for cash-on-delivery and
  manual-transfer orders; the supplied evidence (or a placeholder) is
  stored.

Every mutation runs under a row lock (``get_for_update``) and is written
with a compare-and-set on ``payment_status``, so two concurrent
reconciliations of the same order cannot interleave.  Re-submitting a
confirmation for an already-paid order is a no-op success: no transition,
no events, evidence untouched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Tuple

import structlog
from django.conf import settings
from django.db import transaction

from modules.orders.constants import PaymentMethod, PaymentStatus
from modules.orders.events import (
    OrderCancelled,
    OrderConfirmed,
    PaymentFailed,
    PaymentReceived,
)
from modules.orders.exceptions import OrderNotFound
from modules.payments.exceptions import (
    PaymentMethodMismatch,
    PaymentVerificationFailed,
)
from modules.payments.signatures import verify_signature

if TYPE_CHECKING:
    from modules.orders.lifecycle import OrderState
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.payments.dtos import ManualPaymentDTO, VerifyPaymentDTO

logger = structlog.get_logger(__name__)


class PaymentReconciliationService:
    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    # ------------------------------------------------------------------
    # Gateway-signed path
    # ------------------------------------------------------------------

    def verify_gateway_payment(self, dto: VerifyPaymentDTO) -> Order:
        """Verify a signed gateway confirmation and reconcile the order.

        Raises:
            OrderNotFound: no order with ``dto.order_id``.
            PaymentMethodMismatch: the order is not an online-gateway order.
            PaymentVerificationFailed: the signature is invalid.
            InvalidPaymentStatus / InvalidOrderStatus: a valid confirmation
                arrived for an order that can no longer be paid.
            OrderConflict: a concurrent writer changed the payment status.
        """
        order, authentic = self._apply_gateway_confirmation(dto)
        if not authentic:
            raise PaymentVerificationFailed(dto.order_id)
        return order

    @transaction.atomic
    def _apply_gateway_confirmation(self, dto: VerifyPaymentDTO) -> Tuple[Order, bool]:
        order = self._order_repo.get_for_update(str(dto.order_id))
        if order is None:
            raise OrderNotFound(f"Order {dto.order_id} not found.")
        if order.payment_method != PaymentMethod.ONLINE_GATEWAY:
            raise PaymentMethodMismatch(
                f"Order {order.order_number} is not paid through the gateway."
            )

        log = logger.bind(
            order_id=str(order.id),
            order_number=order.order_number,
            gateway_order_id=dto.gateway_order_id,
        )
        authentic = order.gateway_order_id == dto.gateway_order_id and verify_signature(
            dto.gateway_order_id, dto.gateway_payment_id, dto.signature
        )
        if not authentic:
            log.warning("payment.signature_rejected")
            return self._reject(order), False

        previous = order.state
        if previous.is_paid:
            log.info("payment.already_reconciled")
            return self._reload(order), True

        new_state = previous.confirm_payment()
        updated = self._order_repo.conditional_update(
            order.id,
            {
                "status": new_state.status,
                "payment_status": new_state.payment_status,
                "gateway_payment_id": dto.gateway_payment_id,
                "gateway_signature": dto.signature,
            },
            expected_payment_status=previous.payment_status,
        )
        self._record(
            updated,
            previous,
            new_state,
            actor="gateway",
            notes="Payment verified by gateway signature",
        )
        log.info("payment.verified", gateway_payment_id=dto.gateway_payment_id)
        return updated, True

    def _reject(self, order: Order) -> Order:
        """Fail payment and cancel; settled orders are left untouched."""
        previous = order.state
        if previous.payment_status != PaymentStatus.PENDING or previous.is_terminal:
            logger.info(
                "payment.rejection_ignored",
                order_id=str(order.id),
                status=previous.status,
                payment_status=previous.payment_status,
            )
            return order

        new_state = previous.fail_payment()
        updated = self._order_repo.conditional_update(
            order.id,
            {"status": new_state.status, "payment_status": new_state.payment_status},
            expected_payment_status=previous.payment_status,
        )
        self._order_repo.add_history(
            order_id=updated.id,
            new_state=new_state,
            old_state=previous,
            actor="gateway",
            notes="Payment signature verification failed",
        )
        updated.add_domain_event(PaymentFailed(aggregate_id=updated.id))
        updated.add_domain_event(OrderCancelled(aggregate_id=updated.id))
        self._order_repo.publish_events(updated)
        return updated

    # ------------------------------------------------------------------
    # Manual / assisted path
    # ------------------------------------------------------------------

    @transaction.atomic
    def confirm_manual_payment(self, dto: ManualPaymentDTO) -> Order:
        """Mark an offline-settled order as paid without verification.

        Raises:
            OrderNotFound: no order with ``dto.order_id``.
            PaymentMethodMismatch: the order must be verified by signature.
            InvalidPaymentStatus / InvalidOrderStatus: the order can no
                longer be paid.
        """
        order = self._order_repo.get_for_update(str(dto.order_id))
        if order is None:
            raise OrderNotFound(f"Order {dto.order_id} not found.")
        if order.payment_method == PaymentMethod.ONLINE_GATEWAY:
            raise PaymentMethodMismatch(
                f"Order {order.order_number} must be confirmed by the payment gateway."
            )

        log = logger.bind(order_id=str(order.id), order_number=order.order_number)
        previous = order.state
        if previous.is_paid:
            log.info("payment.already_reconciled")
            return self._reload(order)

        new_state = previous.confirm_payment()
        updated = self._order_repo.conditional_update(
            order.id,
            {
                "status": new_state.status,
                "payment_status": new_state.payment_status,
                "manual_transaction_ref": dto.transaction_ref
                or settings.MANUAL_PAYMENT_PLACEHOLDER,
                "manual_proof_ref": dto.proof_ref or "",
            },
            expected_payment_status=previous.payment_status,
        )
        self._record(
            updated,
            previous,
            new_state,
            actor=dto.actor,
            notes="Manual payment confirmed",
        )
        log.info("payment.manually_confirmed", has_proof=bool(dto.proof_ref))
        return updated

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _record(
        self,
        order: Order,
        previous: OrderState,
        new_state: OrderState,
        actor: str,
        notes: str,
    ) -> None:
        self._order_repo.add_history(
            order_id=order.id,
            new_state=new_state,
            old_state=previous,
            actor=actor,
            notes=notes,
        )
        order.add_domain_event(
            PaymentReceived(aggregate_id=order.id, method=order.payment_method)
        )
        if new_state.enters_confirmed(previous):
            order.add_domain_event(OrderConfirmed(aggregate_id=order.id))
        self._order_repo.publish_events(order)

    def _reload(self, order: Order) -> Order:
        return self._order_repo.get_by_id(str(order.id)) or order
