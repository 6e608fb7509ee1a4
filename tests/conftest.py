from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.orders.constants import PaymentMethod
from modules.orders.dtos import AddressDTO, CreateOrderDTO, CreateOrderItemDTO, CustomerDTO
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.payments.gateway import IPaymentGateway, PaymentIntent
from modules.products.models import Product, ProductStatus
from modules.products.repositories.django_repository import ProductDjangoRepository


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def staff_client():
    """APIClient force-authenticated as a staff user."""
    client = APIClient()
    user = get_user_model().objects.create_user(
        username="workshop", password="testpass123", is_staff=True
    )
    client.force_authenticate(user=user)
    return client


class FakeGateway(IPaymentGateway):
    """In-memory gateway recording every intent it creates."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[dict] = []

    def create_payment_intent(self, amount_minor_units, currency, receipt):
        self.calls.append(
            {"amount": amount_minor_units, "currency": currency, "receipt": receipt}
        )
        if self.error is not None:
            raise self.error
        return PaymentIntent(
            id=f"order_{receipt}",
            amount=amount_minor_units,
            currency=currency,
            receipt=receipt,
        )


@pytest.fixture()
def fake_gateway():
    return FakeGateway()


@pytest.fixture()
def storefront_gateway(fake_gateway):
    """Route the order API's gateway look-up to ``fake_gateway``."""
    with patch("modules.orders.views.get_payment_gateway", return_value=fake_gateway):
        yield fake_gateway


@pytest.fixture()
def hoop():
    return Product.objects.create(
        name="Custom Name Hoop",
        base_price=Decimal("300.00"),
        status=ProductStatus.ACTIVE,
    )


@pytest.fixture()
def hamper():
    return Product.objects.create(
        name="Wedding Gift Hamper",
        base_price=Decimal("600.00"),
        status=ProductStatus.ACTIVE,
    )


@pytest.fixture()
def retired_product():
    return Product.objects.create(
        name="Retired Bookmark Set",
        base_price=Decimal("120.00"),
        status=ProductStatus.INACTIVE,
    )


@pytest.fixture()
def order_service(fake_gateway):
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        payment_gateway=fake_gateway,
    )


def _make_create_dto(products, payment_method=PaymentMethod.ONLINE_GATEWAY, **overrides):
    """Build a ``CreateOrderDTO`` buying one of each product."""
    fields = {
        "customer": CustomerDTO(
            name="Meera Iyer",
            phone="9876543210",
            whatsapp="9876543210",
            email="meera@example.com",
            address=AddressDTO(
                street="14 Lake View Road",
                city="Chennai",
                state="Tamil Nadu",
                postal_code="600001",
            ),
        ),
        "items": [
            CreateOrderItemDTO(product_id=product.id, quantity=1) for product in products
        ],
        "payment_method": payment_method,
    }
    fields.update(overrides)
    return CreateOrderDTO(**fields)


@pytest.fixture()
def order_dto():
    """Factory for ``CreateOrderDTO`` buying one of each given product."""
    return _make_create_dto


@pytest.fixture()
def online_order(order_service, hoop):
    """Pending online-gateway order for the 300 hoop (total 350)."""
    return order_service.create_order(_make_create_dto([hoop])).order


@pytest.fixture()
def cod_order(order_service, hoop):
    return order_service.create_order(
        _make_create_dto([hoop], payment_method=PaymentMethod.CASH_ON_DELIVERY)
    ).order


@pytest.fixture()
def manual_order(order_service, hoop):
    return order_service.create_order(
        _make_create_dto([hoop], payment_method=PaymentMethod.MANUAL_TRANSFER)
    ).order
