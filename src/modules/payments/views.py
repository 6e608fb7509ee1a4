"""Payment reconciliation API views.

Both endpoints are public: the storefront posts the gateway's signed
confirmation, or the evidence of an offline transfer, right after checkout.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.exceptions import error_response
from modules.orders.exceptions import (
    InvalidOrderStatus,
    InvalidPaymentStatus,
    OrderConflict,
    OrderNotFound,
)
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import OrderSerializer
from modules.payments.dtos import ManualPaymentDTO, VerifyPaymentDTO
from modules.payments.exceptions import PaymentMethodMismatch, PaymentVerificationFailed
from modules.payments.serializers import ManualPaymentSerializer, VerifyPaymentSerializer
from modules.payments.services import PaymentReconciliationService


class _ReconciliationView(APIView):
    permission_classes = [AllowAny]
    throttle_scope = "payment_reconciliation"

    def get_service(self) -> PaymentReconciliationService:
        return PaymentReconciliationService(order_repository=OrderDjangoRepository())

    def reconcile(self, operation, dto) -> Response:
        try:
            order = operation(dto)
        except OrderNotFound:
            return error_response(
                "Order not found.", "order_not_found", status.HTTP_404_NOT_FOUND
            )
        except PaymentVerificationFailed:
            return error_response(
                "Payment verification failed.",
                "payment_verification_failed",
                status.HTTP_400_BAD_REQUEST,
            )
        except PaymentMethodMismatch as exc:
            return error_response(
                str(exc), "payment_method_mismatch", status.HTTP_400_BAD_REQUEST
            )
        except (InvalidOrderStatus, InvalidPaymentStatus) as exc:
            return error_response(str(exc), "invalid_transition", status.HTTP_409_CONFLICT)
        except OrderConflict as exc:
            return error_response(str(exc), "conflict", status.HTTP_409_CONFLICT)
        return Response(OrderSerializer(order).data)


class VerifyPaymentView(_ReconciliationView):
    def post(self, request: Request) -> Response:
        """POST /api/v1/payments/verify/"""
        serializer = VerifyPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = VerifyPaymentDTO(**serializer.validated_data)
        return self.reconcile(self.get_service().verify_gateway_payment, dto)


class ConfirmManualPaymentView(_ReconciliationView):
    def post(self, request: Request) -> Response:
        """POST /api/v1/payments/confirm/"""
        serializer = ManualPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        dto = ManualPaymentDTO(
            order_id=data["order_id"],
            transaction_ref=data.get("transaction_ref") or None,
            proof_ref=data.get("proof_ref") or None,
        )
        return self.reconcile(self.get_service().confirm_manual_payment, dto)
