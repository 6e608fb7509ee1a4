import pytest

from config.settings import mask_sensitive_data

pytestmark = pytest.mark.unit


class TestSensitiveDataMasking:
    def test_email_masked(self):
        event_dict = {"event": "test", "data": "sent to meera@example.com"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "meera@example.com" not in result["data"]
        assert "***MASKED***" in result["data"]

    @pytest.mark.parametrize(
        "key", ["signature", "gateway_signature", "customer_phone", "customer_whatsapp"]
    )
    def test_sensitive_keys_masked(self, key):
        result = mask_sensitive_data(None, None, {"event": "test", key: "9876543210"})
        assert result[key] == "***MASKED***"

    def test_password_masked(self):
        event_dict = {"event": "test", "data": "password='s3cret123'"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "s3cret123" not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_token_masked(self):
        event_dict = {"event": "test", "header": "token=abc123xyz"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "abc123xyz" not in result["header"]

    def test_inline_signature_masked(self):
        event_dict = {"event": "test", "body": "signature=deadbeef01"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "deadbeef01" not in result["body"]

    def test_empty_sensitive_key_left_alone(self):
        result = mask_sensitive_data(None, None, {"event": "test", "phone": ""})
        assert result["phone"] == ""

    def test_non_sensitive_data_unchanged(self):
        event_dict = {
            "event": "order.created",
            "order_number": "HG000001",
            "timestamp": "2026-10-17T07:30:00+00:00",
        }
        result = mask_sensitive_data(None, None, dict(event_dict))
        assert result == event_dict
