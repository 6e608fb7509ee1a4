"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into appropriate
HTTP status codes; the view never swallows generic exceptions.

Storefront endpoints (create, retrieve, track) are public; listing and
fulfillment updates require a staff JWT.
"""

from __future__ import annotations

from uuid import UUID

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import AllowAny, BasePermission, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.exceptions import error_response, validation_error_response
from modules.orders.constants import OrderStatus
from modules.orders.dtos import (
    AddressDTO,
    CreateOrderDTO,
    CreateOrderItemDTO,
    CustomerDTO,
    CustomizationDTO,
    UpdateStatusDTO,
)
from modules.orders.exceptions import (
    EmptyOrder,
    InactiveProduct,
    InvalidOrderStatus,
    InvalidPaymentStatus,
    OrderConflict,
    OrderNotFound,
    ProductNotFound,
    TotalMismatch,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CancelOrderSerializer,
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    TrackOrderSerializer,
    UpdateOrderSerializer,
)
from modules.orders.services import OrderService
from modules.payments.exceptions import PaymentGatewayError
from modules.payments.gateway import get_payment_gateway
from modules.products.repositories.django_repository import ProductDjangoRepository

PUBLIC_ACTIONS = {"create", "retrieve", "track"}


def _order_not_found() -> Response:
    return error_response("Order not found.", "order_not_found", status.HTTP_404_NOT_FOUND)


def _invalid_order_id() -> Response:
    return error_response(
        "Invalid order ID format.", "invalid_order_id", status.HTTP_400_BAD_REQUEST
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.none()
    filterset_class = OrderFilter
    search_fields = ["order_number", "customer_name", "customer_phone"]
    ordering_fields = ["created_at", "total_amount", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._repository = OrderDjangoRepository()

    def get_service(self) -> OrderService:
        return OrderService(
            order_repository=self._repository,
            product_repository=ProductDjangoRepository(),
            payment_gateway=get_payment_gateway(),
        )

    def get_permissions(self) -> list[BasePermission]:
        if self.action in PUBLIC_ACTIONS:
            return [AllowAny()]
        return [IsAuthenticated()]

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttle scope per action."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve", "track"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        return self._repository.queryset()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Supports idempotency via the ``Idempotency-Key`` header.
        Returns 200 if the key was already used, 201 for new orders.
        """
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)
        data = create_serializer.validated_data

        try:
            dto = self._build_create_dto(data, request.headers.get("Idempotency-Key"))
        except PydanticValidationError as exc:
            return validation_error_response(exc)

        try:
            placed = self.get_service().create_order(dto)
        except (ProductNotFound, InactiveProduct) as exc:
            return Response(
                {
                    "detail": str(exc),
                    "code": "invalid_product",
                    "product_id": exc.product_id,
                },
                status=status.HTTP_400_BAD_REQUEST,
            )
        except TotalMismatch as exc:
            return Response(
                {
                    "detail": str(exc),
                    "code": "total_mismatch",
                    "expected_total": str(exc.expected),
                },
                status=status.HTTP_400_BAD_REQUEST,
            )
        except EmptyOrder as exc:
            return error_response(str(exc), "empty_order", status.HTTP_400_BAD_REQUEST)
        except PaymentGatewayError:
            return error_response(
                "Payment gateway unavailable. Please try again.",
                "payment_gateway_error",
                status.HTTP_502_BAD_GATEWAY,
            )

        out = OrderSerializer(placed.order)
        return Response(
            out.data,
            status=status.HTTP_201_CREATED if placed.created else status.HTTP_200_OK,
        )

    @staticmethod
    def _build_create_dto(data: dict, idempotency_key: str | None) -> CreateOrderDTO:
        customer = data["customer"]
        return CreateOrderDTO(
            customer=CustomerDTO(
                name=customer["name"],
                phone=customer["phone"],
                whatsapp=customer.get("whatsapp") or None,
                email=customer.get("email") or None,
                address=AddressDTO(**customer["address"]),
            ),
            items=[
                CreateOrderItemDTO(
                    product_id=item["product_id"],
                    quantity=item["quantity"],
                    customization=CustomizationDTO(**item["customization"])
                    if item.get("customization")
                    else None,
                )
                for item in data["items"]
            ],
            payment_method=data["payment_method"],
            gift_wrap=data["gift_wrap"],
            client_total=data.get("total_amount"),
            notes=data.get("notes", ""),
            idempotency_key=idempotency_key or None,
        )

    # ------------------------------------------------------------------
    # List / Retrieve / Track
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering (status, payment status and method, date range, total
        range) is handled by ``OrderFilter``.  Results are paginated,
        newest first by default.
        """
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self.get_service().get_order(pk or "")
        except OrderNotFound:
            return _order_not_found()
        return Response(OrderSerializer(order).data)

    @action(detail=False, methods=["get"])
    def track(self, request: Request) -> Response:
        """GET /api/v1/orders/track/?order_number=HG000042"""
        order_number = request.query_params.get("order_number", "").strip()
        if not order_number:
            return error_response(
                "Query parameter 'order_number' is required.",
                "validation_error",
                status.HTTP_400_BAD_REQUEST,
            )
        try:
            order = self.get_service().track_order(order_number)
        except OrderNotFound:
            return _order_not_found()
        return Response(TrackOrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Status Update
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Advances the fulfillment status one step.  Cancellations are
        **not** allowed via this endpoint; use ``POST /orders/{id}/cancel/``.
        """
        serializer = UpdateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if data["status"] == OrderStatus.CANCELLED:
            return error_response(
                "Use the /cancel/ endpoint for cancellations.",
                "use_cancel_endpoint",
                status.HTTP_400_BAD_REQUEST,
            )

        try:
            order_id = UUID(pk or "")
        except ValueError:
            return _invalid_order_id()

        try:
            order = self.get_service().update_status(
                order_id,
                UpdateStatusDTO(
                    new_status=data["status"],
                    tracking_number=data.get("tracking_number") or None,
                    notes=data.get("notes", ""),
                    actor=request.user.get_username(),
                ),
            )
        except OrderNotFound:
            return _order_not_found()
        except (InvalidOrderStatus, InvalidPaymentStatus) as exc:
            return error_response(str(exc), "invalid_transition", status.HTTP_409_CONFLICT)
        except OrderConflict as exc:
            return error_response(str(exc), "conflict", status.HTTP_409_CONFLICT)

        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Cancel (dedicated action)
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/"""
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order_id = UUID(pk or "")
        except ValueError:
            return _invalid_order_id()

        try:
            order = self.get_service().cancel_order(
                order_id,
                notes=serializer.validated_data["notes"],
                actor=request.user.get_username(),
            )
        except OrderNotFound:
            return _order_not_found()
        except InvalidOrderStatus as exc:
            return error_response(str(exc), "invalid_transition", status.HTTP_409_CONFLICT)
        except OrderConflict as exc:
            return error_response(str(exc), "conflict", status.HTTP_409_CONFLICT)

        return Response(OrderSerializer(order).data)
