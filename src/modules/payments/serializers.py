"""Payment reconciliation request serializers."""

from __future__ import annotations

from rest_framework import serializers


class VerifyPaymentSerializer(serializers.Serializer):
    """Signed confirmation posted by the storefront after gateway checkout."""

    order_id = serializers.UUIDField()
    gateway_order_id = serializers.CharField(max_length=64)
    gateway_payment_id = serializers.CharField(max_length=64)
    signature = serializers.CharField(max_length=128)


class ManualPaymentSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    transaction_ref = serializers.CharField(
        max_length=255, required=False, allow_blank=True, allow_null=True
    )
    proof_ref = serializers.CharField(
        max_length=500, required=False, allow_blank=True, allow_null=True
    )
