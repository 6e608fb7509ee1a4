"""Unit tests for the Razorpay gateway client (httpx.MockTransport)."""

from __future__ import annotations

import json

import httpx
import pytest

from modules.payments.exceptions import PaymentGatewayError
from modules.payments.gateway import RazorpayGateway, get_payment_gateway

pytestmark = pytest.mark.unit


def make_gateway(handler, **kwargs):
    client = httpx.Client(
        base_url="https://gateway.test/v1", transport=httpx.MockTransport(handler)
    )
    return RazorpayGateway(
        key_id=kwargs.pop("key_id", "rzp_test_key"),
        key_secret=kwargs.pop("key_secret", "secret"),
        client=client,
        **kwargs,
    )


class TestCreatePaymentIntent:
    def test_success(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            seen["auth"] = request.headers.get("authorization", "")
            return httpx.Response(
                200,
                json={"id": "order_9A", "amount": 35000, "currency": "INR"},
            )

        intent = make_gateway(handler).create_payment_intent(35000, "INR", "HG000001")

        assert intent.id == "order_9A"
        assert intent.amount == 35000
        assert intent.receipt == "HG000001"
        assert seen["path"] == "/v1/orders"
        assert seen["body"] == {"amount": 35000, "currency": "INR", "receipt": "HG000001"}
        assert seen["auth"].startswith("Basic ")

    def test_rejected_request(self):
        gateway = make_gateway(lambda request: httpx.Response(400, json={"error": {}}))
        with pytest.raises(PaymentGatewayError, match="rejected"):
            gateway.create_payment_intent(35000, "INR", "HG000001")

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(PaymentGatewayError, match="timed out"):
            make_gateway(handler).create_payment_intent(35000, "INR", "HG000001")

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(PaymentGatewayError, match="unreachable"):
            make_gateway(handler).create_payment_intent(35000, "INR", "HG000001")

    def test_malformed_body(self):
        gateway = make_gateway(lambda request: httpx.Response(200, content=b"<html>"))
        with pytest.raises(PaymentGatewayError, match="invalid body"):
            gateway.create_payment_intent(35000, "INR", "HG000001")

    def test_missing_intent_id(self):
        gateway = make_gateway(lambda request: httpx.Response(200, json={"amount": 1}))
        with pytest.raises(PaymentGatewayError, match="no intent id"):
            gateway.create_payment_intent(35000, "INR", "HG000001")

    def test_unconfigured_gateway_never_calls_out(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"id": "x"})

        gateway = make_gateway(handler, key_id="", key_secret="")
        assert not gateway.is_configured
        with pytest.raises(PaymentGatewayError, match="not configured"):
            gateway.create_payment_intent(35000, "INR", "HG000001")
        assert calls == []


class TestGatewayFactory:
    def test_builds_configured_backend(self):
        gateway = get_payment_gateway()
        assert isinstance(gateway, RazorpayGateway)
        assert gateway.is_configured
