"""Unit tests for OrderDjangoRepository (the Order Store)."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from django.db import transaction
from django.utils import timezone

from modules.core.models import EventStatus, OutboxEvent
from modules.orders.constants import OrderStatus, PaymentMethod, PaymentStatus
from modules.orders.events import OrderConfirmed, OrderCreated
from modules.orders.exceptions import DuplicateOrderNumber, OrderConflict, OrderNotFound
from modules.orders.lifecycle import OrderState
from modules.orders.models import Order, OrderStatusHistory
from modules.orders.repositories.django_repository import OrderDjangoRepository
from shared.infrastructure.bus import event_bus

pytestmark = pytest.mark.unit


@pytest.fixture()
def repo():
    return OrderDjangoRepository()


def order_data(product, **overrides):
    data = {
        "order_number": "HG000100",
        "customer_name": "Asha Menon",
        "customer_phone": "9123456780",
        "address_street": "5 Beach Road",
        "address_city": "Kozhikode",
        "address_state": "Kerala",
        "address_postal_code": "673001",
        "subtotal_amount": Decimal("300.00"),
        "gift_wrap_fee": Decimal("0.00"),
        "delivery_fee": Decimal("50.00"),
        "total_amount": Decimal("350.00"),
        "payment_method": PaymentMethod.CASH_ON_DELIVERY,
        "estimated_delivery": timezone.now() + timedelta(days=7),
        "items": [
            {
                "product": product,
                "product_name": product.name,
                "quantity": 2,
                "unit_price": product.base_price,
                "customization": {"text": "Asha"},
            }
        ],
    }
    data.update(overrides)
    return data


class TestCreate:
    def test_creates_order_with_items(self, repo, hoop):
        order = repo.create(order_data(hoop))
        stored = repo.get_by_id(str(order.id))
        assert stored.order_number == "HG000100"
        assert stored.status == OrderStatus.PENDING
        assert stored.payment_status == PaymentStatus.PENDING
        item = stored.items.get()
        assert item.product_name == "Custom Name Hoop"
        assert item.subtotal == Decimal("600.00")
        assert item.customization == {"text": "Asha"}

    def test_duplicate_order_number_raises(self, repo, hoop):
        repo.create(order_data(hoop))
        with pytest.raises(DuplicateOrderNumber):
            repo.create(order_data(hoop))
        assert Order.objects.count() == 1

    def test_duplicate_idempotency_key_raises_conflict(self, repo, hoop):
        repo.create(order_data(hoop, idempotency_key="key-1"))
        with pytest.raises(OrderConflict):
            repo.create(order_data(hoop, order_number="HG000101", idempotency_key="key-1"))

    def test_item_snapshot_survives_catalog_change(self, repo, hoop):
        order = repo.create(order_data(hoop))
        hoop.name = "Renamed Hoop"
        hoop.base_price = Decimal("999.00")
        hoop.save()
        item = repo.get_by_id(str(order.id)).items.get()
        assert item.product_name == "Custom Name Hoop"
        assert item.unit_price == Decimal("300.00")


class TestReads:
    def test_get_by_id_invalid_uuid_returns_none(self, repo):
        assert repo.get_by_id("not-a-uuid") is None

    def test_get_by_id_missing_returns_none(self, repo):
        assert repo.get_by_id(str(uuid4())) is None

    def test_get_by_order_number_is_case_insensitive(self, repo, hoop):
        order = repo.create(order_data(hoop))
        assert repo.get_by_order_number(" hg000100 ").id == order.id

    def test_get_for_update_invalid_uuid_returns_none(self, repo):
        with transaction.atomic():
            assert repo.get_for_update("bogus") is None

    def test_list_newest_first(self, repo, hoop):
        first = repo.create(order_data(hoop))
        second = repo.create(order_data(hoop, order_number="HG000101"))
        Order.objects.filter(id=first.id).update(
            created_at=timezone.now() - timedelta(hours=1)
        )
        assert [o.id for o in repo.list()] == [second.id, first.id]

    def test_list_with_filters(self, repo, hoop):
        repo.create(order_data(hoop))
        repo.create(
            order_data(
                hoop,
                order_number="HG000101",
                payment_method=PaymentMethod.MANUAL_TRANSFER,
            )
        )
        result = repo.list({"payment_method": PaymentMethod.MANUAL_TRANSFER})
        assert [o.order_number for o in result] == ["HG000101"]

    def test_get_by_idempotency_key(self, repo, hoop):
        order = repo.create(order_data(hoop, idempotency_key="abc"))
        assert repo.get_by_idempotency_key("abc").id == order.id
        assert repo.get_by_idempotency_key("other") is None


class TestConditionalUpdate:
    def test_applies_patch_when_status_matches(self, repo, hoop):
        order = repo.create(order_data(hoop))
        updated = repo.conditional_update(
            order.id,
            {"payment_status": PaymentStatus.PAID, "status": OrderStatus.CONFIRMED},
            expected_payment_status=PaymentStatus.PENDING,
        )
        assert updated.payment_status == PaymentStatus.PAID
        assert updated.status == OrderStatus.CONFIRMED

    def test_conflict_when_status_changed(self, repo, hoop):
        order = repo.create(order_data(hoop))
        Order.objects.filter(id=order.id).update(payment_status=PaymentStatus.PAID)
        with pytest.raises(OrderConflict):
            repo.conditional_update(
                order.id,
                {"payment_status": PaymentStatus.FAILED},
                expected_payment_status=PaymentStatus.PENDING,
            )
        order.refresh_from_db()
        assert order.payment_status == PaymentStatus.PAID

    def test_not_found(self, repo):
        with pytest.raises(OrderNotFound):
            repo.conditional_update(uuid4(), {"notes": "x"})

    @pytest.mark.parametrize("field", ["total_amount", "order_number", "payment_method"])
    def test_immutable_fields_rejected(self, repo, hoop, field):
        order = repo.create(order_data(hoop))
        with pytest.raises(ValueError):
            repo.conditional_update(order.id, {field: "1"})

    def test_without_expected_status(self, repo, hoop):
        order = repo.create(order_data(hoop))
        updated = repo.conditional_update(order.id, {"tracking_number": "AWB123"})
        assert updated.tracking_number == "AWB123"


class TestHistoryAndEvents:
    def test_add_history_records_both_axes(self, repo, hoop):
        order = repo.create(order_data(hoop))
        previous = OrderState.initial(PaymentMethod.CASH_ON_DELIVERY)
        repo.add_history(
            order.id,
            new_state=previous.confirm_payment(),
            old_state=previous,
            actor="gateway",
            notes="paid",
        )
        history = OrderStatusHistory.objects.get(order=order)
        assert history.old_status == OrderStatus.PENDING
        assert history.new_status == OrderStatus.CONFIRMED
        assert history.old_payment_status == PaymentStatus.PENDING
        assert history.new_payment_status == PaymentStatus.PAID
        assert history.actor == "gateway"

    def test_initial_history_has_no_previous_state(self, repo, hoop):
        order = repo.create(order_data(hoop))
        history = repo.add_history(order.id, OrderState.initial(order.payment_method))
        assert history.old_status is None
        assert history.old_payment_status is None

    def test_publish_events_writes_outbox_rows(self, repo, hoop):
        order = repo.create(order_data(hoop))
        created = OrderCreated(aggregate_id=order.id)
        confirmed = OrderConfirmed(aggregate_id=order.id)
        order.add_domain_event(created)
        order.add_domain_event(confirmed)

        assert repo.publish_events(order) == 2
        assert order.domain_events == []

        row = OutboxEvent.objects.get(id=confirmed.event_id)
        assert row.event_type == "OrderConfirmed"
        assert row.aggregate_id == str(order.id)
        assert row.payload["reason"] == "confirmed"
        assert row.status == EventStatus.PENDING

    def test_events_reach_bus_only_after_commit(
        self, repo, hoop, django_capture_on_commit_callbacks
    ):
        order = repo.create(order_data(hoop))
        event = OrderCreated(aggregate_id=order.id)
        order.add_domain_event(event)

        received = []

        class Recorder:
            def handle(self, evt):
                received.append(evt)

        recorder = Recorder()
        event_bus.subscribe(OrderCreated, recorder)
        try:
            with django_capture_on_commit_callbacks(execute=False) as callbacks:
                repo.publish_events(order)
            assert received == []
            for callback in callbacks:
                callback()
            assert event in received
        finally:
            event_bus._handlers[OrderCreated].remove(recorder)

    def test_order_cannot_be_deleted(self, repo, hoop):
        from modules.orders.exceptions import InvalidOrderStatus

        order = repo.create(order_data(hoop))
        with pytest.raises(InvalidOrderStatus):
            order.delete()
