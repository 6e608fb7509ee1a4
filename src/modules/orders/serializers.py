"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from django.conf import settings
from rest_framework import serializers

from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.pricing import to_minor_units

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class AddressSerializer(serializers.Serializer):
    street = serializers.CharField(max_length=255)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100)
    postal_code = serializers.CharField(max_length=20)
    country = serializers.CharField(max_length=100, required=False, allow_blank=True)


class CustomerSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=32)
    whatsapp = serializers.CharField(max_length=32, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    address = AddressSerializer()


class CustomizationSerializer(serializers.Serializer):
    text = serializers.CharField(required=False, allow_blank=True)
    color = serializers.CharField(max_length=50, required=False, allow_blank=True)
    size = serializers.CharField(max_length=50, required=False, allow_blank=True)
    material = serializers.CharField(max_length=100, required=False, allow_blank=True)
    special_instructions = serializers.CharField(required=False, allow_blank=True)
    uploaded_files = serializers.ListField(
        child=serializers.CharField(max_length=500),
        required=False,
        default=list,
    )


class CreateOrderItemSerializer(serializers.Serializer):
    """Validates a single item in an order creation request."""

    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    customization = CustomizationSerializer(required=False, allow_null=True)


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload."""

    customer = CustomerSerializer()
    items = CreateOrderItemSerializer(many=True, allow_empty=False)
    payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices,
        default=PaymentMethod.ONLINE_GATEWAY,
    )
    gift_wrap = serializers.BooleanField(default=False)
    total_amount = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=0,
        required=False,
        allow_null=True,
    )
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class UpdateOrderSerializer(serializers.Serializer):
    """Staff fulfillment update (``PATCH /orders/{id}/``)."""

    status = serializers.ChoiceField(choices=OrderStatus.choices)
    tracking_number = serializers.CharField(
        max_length=100, required=False, allow_blank=True
    )
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class CancelOrderSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, default="", allow_blank=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order items with the purchase-time snapshot."""

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "quantity",
            "unit_price",
            "subtotal",
            "customization",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order status history records."""

    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "old_payment_status",
            "new_payment_status",
            "actor",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with customer, items and history."""

    customer = serializers.SerializerMethodField()
    items = OrderItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)
    payment_intent = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer",
            "status",
            "payment_status",
            "payment_method",
            "gift_wrap",
            "subtotal_amount",
            "gift_wrap_fee",
            "delivery_fee",
            "total_amount",
            "payment_intent",
            "gateway_payment_id",
            "manual_transaction_ref",
            "estimated_delivery",
            "actual_delivery",
            "tracking_number",
            "notes",
            "created_at",
            "updated_at",
            "items",
            "status_history",
        ]
        read_only_fields = fields

    def get_customer(self, order: Order) -> Dict[str, Any]:
        return {
            "name": order.customer_name,
            "phone": order.customer_phone,
            "whatsapp": order.customer_whatsapp,
            "email": order.customer_email,
            "address": {
                "street": order.address_street,
                "city": order.address_city,
                "state": order.address_state,
                "postal_code": order.address_postal_code,
                "country": order.address_country,
            },
        }

    def get_payment_intent(self, order: Order) -> Optional[Dict[str, Any]]:
        """Gateway checkout parameters; ``None`` for offline methods."""
        if not order.gateway_order_id:
            return None
        return {
            "id": order.gateway_order_id,
            "amount": to_minor_units(order.total_amount),
            "currency": settings.PAYMENT_CURRENCY,
            "key_id": settings.RAZORPAY_KEY_ID,
        }


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for the staff order list."""

    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_name",
            "customer_phone",
            "address_city",
            "status",
            "payment_status",
            "payment_method",
            "total_amount",
            "created_at",
            "items",
        ]
        read_only_fields = fields


class TrackOrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = ["product_name", "quantity"]
        read_only_fields = fields


class TrackOrderSerializer(serializers.ModelSerializer):
    """Public tracking view; carries no contact details, address or order id."""

    customer_name = serializers.CharField(read_only=True)
    items = TrackOrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "order_number",
            "status",
            "payment_status",
            "customer_name",
            "items",
            "total_amount",
            "created_at",
            "estimated_delivery",
            "tracking_number",
        ]
        read_only_fields = fields
