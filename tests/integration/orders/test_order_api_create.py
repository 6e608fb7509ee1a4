"""Integration tests for order placement (POST /api/v1/orders/)."""

from __future__ import annotations

from unittest.mock import patch
from uuid import uuid4

import pytest

from modules.core.models import OutboxEvent
from modules.orders.models import Order
from modules.payments.exceptions import PaymentGatewayError

pytestmark = [pytest.mark.integration, pytest.mark.usefixtures("storefront_gateway")]

URL = "/api/v1/orders/"


def payload(*products, **overrides):
    body = {
        "customer": {
            "name": "Meera Iyer",
            "phone": "9876543210",
            "whatsapp": "9876543210",
            "email": "meera@example.com",
            "address": {
                "street": "14 Lake View Road",
                "city": "Chennai",
                "state": "Tamil Nadu",
                "postal_code": "600001",
            },
        },
        "items": [{"product_id": str(p.id), "quantity": 1} for p in products],
        "payment_method": "online-gateway",
    }
    body.update(overrides)
    return body


class TestCreateOrder:
    def test_online_order_returns_checkout_parameters(self, api_client, hoop):
        response = api_client.post(URL, payload(hoop), format="json")

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["payment_status"] == "pending"
        assert data["total_amount"] == "350.00"
        assert data["order_number"].startswith("HG")
        assert data["payment_intent"] == {
            "id": f"order_{data['order_number']}",
            "amount": 35000,
            "currency": "INR",
            "key_id": "rzp_test_key",
        }
        assert data["items"][0]["product_name"] == "Custom Name Hoop"
        assert data["customer"]["address"]["country"] == "India"
        assert len(data["status_history"]) == 1

    @pytest.mark.parametrize(
        ("gift_wrap", "products", "expected"),
        [
            (False, ["hoop"], "350.00"),
            (True, ["hoop"], "400.00"),
            (False, ["hamper"], "600.00"),
        ],
    )
    def test_server_side_totals(self, api_client, request, gift_wrap, products, expected):
        items = [request.getfixturevalue(name) for name in products]
        response = api_client.post(
            URL, payload(*items, gift_wrap=gift_wrap), format="json"
        )
        assert response.status_code == 201
        assert response.json()["total_amount"] == expected

    def test_cod_order_has_no_payment_intent(self, api_client, storefront_gateway, hoop):
        response = api_client.post(
            URL, payload(hoop, payment_method="cash-on-delivery"), format="json"
        )
        assert response.status_code == 201
        assert response.json()["payment_intent"] is None
        assert storefront_gateway.calls == []

    def test_tampered_total_rejected(self, api_client, hoop):
        response = api_client.post(
            URL, payload(hoop, total_amount="9999.00"), format="json"
        )
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "total_mismatch"
        assert body["expected_total"] == "350.00"
        assert Order.objects.count() == 0

    def test_matching_client_total_accepted(self, api_client, hoop):
        response = api_client.post(URL, payload(hoop, total_amount="350.00"), format="json")
        assert response.status_code == 201

    def test_unknown_product_creates_nothing(self, api_client, hoop):
        missing = str(uuid4())
        body = payload(hoop)
        body["items"].append({"product_id": missing, "quantity": 1})

        response = api_client.post(URL, body, format="json")

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_product"
        assert response.json()["product_id"] == missing
        assert Order.objects.count() == 0
        assert OutboxEvent.objects.count() == 0

    def test_inactive_product_rejected(self, api_client, retired_product):
        response = api_client.post(URL, payload(retired_product), format="json")
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_product"

    def test_gateway_failure_returns_502(self, api_client, storefront_gateway, hoop):
        storefront_gateway.error = PaymentGatewayError("timeout")
        response = api_client.post(URL, payload(hoop), format="json")
        assert response.status_code == 502
        assert response.json()["code"] == "payment_gateway_error"
        assert Order.objects.count() == 0

    def test_empty_items_rejected(self, api_client):
        response = api_client.post(URL, payload(), format="json")
        assert response.status_code == 400
        assert Order.objects.count() == 0

    def test_zero_quantity_rejected(self, api_client, hoop):
        body = payload(hoop)
        body["items"][0]["quantity"] = 0
        response = api_client.post(URL, body, format="json")
        assert response.status_code == 400

    def test_unknown_payment_method_rejected(self, api_client, hoop):
        response = api_client.post(URL, payload(hoop, payment_method="cheque"), format="json")
        assert response.status_code == 400

    def test_customization_requires_whatsapp(self, api_client, hoop):
        body = payload(hoop)
        body["customer"]["whatsapp"] = ""
        body["items"][0]["customization"] = {"text": "Ananya", "color": "gold"}

        response = api_client.post(URL, body, format="json")

        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"
        assert "WhatsApp" in response.json()["detail"]

    def test_customization_is_snapshotted(self, api_client, hoop):
        body = payload(hoop)
        body["items"][0]["customization"] = {
            "text": "Ananya",
            "uploaded_files": ["uploads/ref.jpg"],
        }
        response = api_client.post(URL, body, format="json")
        assert response.status_code == 201
        customization = response.json()["items"][0]["customization"]
        assert customization["text"] == "Ananya"
        assert customization["uploaded_files"] == ["uploads/ref.jpg"]

    def test_idempotency_key_replays_order(self, api_client, storefront_gateway, hoop):
        first = api_client.post(
            URL, payload(hoop), format="json", HTTP_IDEMPOTENCY_KEY="checkout-1"
        )
        second = api_client.post(
            URL, payload(hoop), format="json", HTTP_IDEMPOTENCY_KEY="checkout-1"
        )
        assert first.status_code == 201
        assert second.status_code == 200
        assert second.json()["id"] == first.json()["id"]
        assert Order.objects.count() == 1
        assert len(storefront_gateway.calls) == 1

    def test_order_numbers_are_unique(self, api_client, hoop):
        numbers = {
            api_client.post(URL, payload(hoop), format="json").json()["order_number"]
            for _ in range(3)
        }
        assert len(numbers) == 3

    def test_unexpected_error_is_opaque(self, api_client, hoop):
        with patch(
            "modules.orders.views.OrderService.create_order",
            side_effect=RuntimeError("db exploded"),
        ):
            response = api_client.post(URL, payload(hoop), format="json")
        assert response.status_code == 500
        assert response.json() == {
            "detail": "Internal server error.",
            "code": "internal_error",
        }
