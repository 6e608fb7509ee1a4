"""Unit tests for domain event primitives and the in-memory bus."""

from __future__ import annotations

from uuid import UUID, uuid4

import pytest

from modules.orders.events import OrderConfirmed, OrderCreated, OrderStatusChanged
from modules.orders.models import Order
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


class Recorder:
    def __init__(self):
        self.events = []

    def handle(self, event):
        self.events.append(event)


class Exploding:
    def handle(self, event):
        raise RuntimeError("handler bug")


class TestDomainEvent:
    def test_event_name_and_identity(self):
        event = OrderCreated(aggregate_id=uuid4())
        assert event.event_name == "OrderCreated"
        assert isinstance(event.event_id, UUID)
        assert event.topic == "orders"

    def test_payload_is_json_safe(self):
        order_id = uuid4()
        payload = OrderStatusChanged(
            aggregate_id=order_id, old_status="confirmed", new_status="in-progress"
        ).to_payload()
        assert payload["aggregate_id"] == str(order_id)
        assert payload["new_status"] == "in-progress"
        assert isinstance(payload["occurred_on"], str)

    def test_confirmed_default_reason(self):
        assert OrderConfirmed(aggregate_id=uuid4()).reason == "confirmed"


class TestDomainEventMixin:
    def test_collect_and_clear(self):
        order = Order()
        event = OrderCreated(aggregate_id=order.id)
        order.add_domain_event(event)
        assert order.domain_events == [event]
        order.clear_domain_events()
        assert order.domain_events == []


class TestInMemoryEventBus:
    def test_publish_reaches_subscribers_of_that_type_only(self):
        bus = InMemoryEventBus()
        created, confirmed = Recorder(), Recorder()
        bus.subscribe(OrderCreated, created)
        bus.subscribe(OrderConfirmed, confirmed)

        event = OrderCreated(aggregate_id=uuid4())
        bus.publish(event)

        assert created.events == [event]
        assert confirmed.events == []

    def test_subscribe_is_idempotent(self):
        bus = InMemoryEventBus()
        recorder = Recorder()
        bus.subscribe(OrderCreated, recorder)
        bus.subscribe(OrderCreated, recorder)
        assert bus.handlers_for(OrderCreated) == [recorder]

    def test_failing_handler_is_isolated(self):
        bus = InMemoryEventBus()
        recorder = Recorder()
        bus.subscribe(OrderCreated, Exploding())
        bus.subscribe(OrderCreated, recorder)

        bus.publish(OrderCreated(aggregate_id=uuid4()))

        assert len(recorder.events) == 1
