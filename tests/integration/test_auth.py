"""Staff authentication with SimpleJWT."""

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

pytestmark = pytest.mark.integration

TOKEN_URL = "/api/v1/auth/token/"


@pytest.fixture()
def staff_user():
    return get_user_model().objects.create_user(
        username="atelier", password="s3cure-pass", is_staff=True
    )


class TestStaffToken:
    def test_obtain_token(self, api_client, staff_user):
        response = api_client.post(
            TOKEN_URL, {"username": "atelier", "password": "s3cure-pass"}, format="json"
        )
        assert response.status_code == 200
        assert "access" in response.json()
        assert "refresh" in response.json()

    def test_wrong_password(self, api_client, staff_user):
        response = api_client.post(
            TOKEN_URL, {"username": "atelier", "password": "nope"}, format="json"
        )
        assert response.status_code == 401

    def test_token_grants_order_list(self, api_client, staff_user):
        access = api_client.post(
            TOKEN_URL, {"username": "atelier", "password": "s3cure-pass"}, format="json"
        ).json()["access"]
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
        response = client.get("/api/v1/orders/")
        assert response.status_code == 200
        assert response.json()["count"] == 0

    def test_invalid_token_rejected(self):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION="Bearer not-a-token")
        assert client.get("/api/v1/orders/").status_code == 401
