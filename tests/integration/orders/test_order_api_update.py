"""Integration tests for staff fulfillment updates and cancellation."""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.orders.models import OrderStatusHistory

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


class TestPartialUpdate:
    def test_requires_authentication(self, api_client, cod_order):
        response = api_client.patch(
            f"{URL}{cod_order.id}/", {"status": "confirmed"}, format="json"
        )
        assert response.status_code == 401

    def test_advances_one_step(self, staff_client, cod_order):
        response = staff_client.patch(
            f"{URL}{cod_order.id}/",
            {"status": "confirmed", "notes": "Called customer"},
            format="json",
        )
        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"
        history = OrderStatusHistory.objects.get(order=cod_order, new_status="confirmed")
        assert history.actor == "workshop"
        assert history.notes == "Called customer"

    def test_unpaid_online_order_conflicts(self, staff_client, online_order):
        response = staff_client.patch(
            f"{URL}{online_order.id}/", {"status": "confirmed"}, format="json"
        )
        assert response.status_code == 409
        assert response.json()["code"] == "invalid_transition"

    def test_skipping_steps_conflicts(self, staff_client, cod_order):
        response = staff_client.patch(
            f"{URL}{cod_order.id}/", {"status": "delivered"}, format="json"
        )
        assert response.status_code == 409

    def test_cancel_via_patch_redirected(self, staff_client, cod_order):
        response = staff_client.patch(
            f"{URL}{cod_order.id}/", {"status": "cancelled"}, format="json"
        )
        assert response.status_code == 400
        assert response.json()["code"] == "use_cancel_endpoint"

    def test_unknown_status(self, staff_client, cod_order):
        response = staff_client.patch(
            f"{URL}{cod_order.id}/", {"status": "lost"}, format="json"
        )
        assert response.status_code == 400

    def test_unknown_order(self, staff_client):
        response = staff_client.patch(
            f"{URL}{uuid4()}/", {"status": "confirmed"}, format="json"
        )
        assert response.status_code == 404

    def test_shipping_sets_tracking_number(self, staff_client, cod_order):
        for status in ("confirmed", "in-progress", "completed"):
            staff_client.patch(f"{URL}{cod_order.id}/", {"status": status}, format="json")
        response = staff_client.patch(
            f"{URL}{cod_order.id}/",
            {"status": "shipped", "tracking_number": "AWB77"},
            format="json",
        )
        assert response.status_code == 200
        assert response.json()["tracking_number"] == "AWB77"


class TestCancel:
    def test_cancel(self, staff_client, online_order):
        response = staff_client.post(
            f"{URL}{online_order.id}/cancel/", {"notes": "Out of fabric"}, format="json"
        )
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

    def test_cancel_twice_conflicts(self, staff_client, online_order):
        staff_client.post(f"{URL}{online_order.id}/cancel/", {}, format="json")
        response = staff_client.post(f"{URL}{online_order.id}/cancel/", {}, format="json")
        assert response.status_code == 409

    def test_requires_authentication(self, api_client, online_order):
        response = api_client.post(f"{URL}{online_order.id}/cancel/", {}, format="json")
        assert response.status_code == 401

    def test_invalid_id(self, staff_client):
        response = staff_client.post(f"{URL}nope/cancel/", {}, format="json")
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_order_id"
