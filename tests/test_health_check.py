import pytest


class TestHealthCheck:
    def test_health_check_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert "services" in data

    def test_health_check_reports_database_status(self, client):
        data = client.get("/health").json()
        assert data["services"]["database"]["status"] == "up"
        assert "response_time_ms" in data["services"]["database"]

    def test_health_check_reports_cache_status(self, client):
        data = client.get("/health").json()
        assert data["services"]["cache"]["status"] == "up"

    def test_health_check_reports_gateway_credentials(self, client):
        data = client.get("/health").json()
        assert data["services"]["payment_gateway"]["status"] == "configured"

    def test_missing_gateway_credentials_do_not_fail_health(self, client, settings):
        settings.RAZORPAY_KEY_SECRET = ""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["services"]["payment_gateway"]["status"] == "unconfigured"

    @pytest.mark.parametrize("method", ["post", "delete"])
    def test_health_check_is_public(self, client, method):
        response = getattr(client, method)("/health")
        assert response.status_code == 200
