import pytest

from modules.core.models import EventStatus, OutboxEvent

pytestmark = pytest.mark.unit


@pytest.fixture()
def event():
    return OutboxEvent.objects.create(
        event_type="OrderConfirmed",
        aggregate_id="0192f0c4-0000-7000-8000-000000000001",
        payload={"reason": "confirmed"},
        topic="orders",
    )


class TestOutboxEvent:
    def test_defaults(self, event):
        assert event.status == EventStatus.PENDING
        assert event.retry_count == 0
        assert event.processed_at is None
        assert not event.is_published

    def test_uuid7_primary_key(self, event):
        assert event.id.version == 7

    def test_mark_as_failed_counts_retries(self, event):
        event.mark_as_failed("timeout")
        event.mark_as_failed("timeout again")
        event.refresh_from_db()
        assert event.status == EventStatus.FAILED
        assert event.retry_count == 2
        assert event.error_message == "timeout again"

    def test_mark_as_published_clears_error(self, event):
        event.mark_as_failed("timeout")
        event.mark_as_published()
        event.refresh_from_db()
        assert event.is_published
        assert event.processed_at is not None
        assert event.error_message is None

    def test_str(self, event):
        assert str(event) == (
            "OrderConfirmed [PENDING] (0192f0c4-0000-7000-8000-000000000001)"
        )
