"""Integration tests for the Celery configuration."""

import pytest

pytestmark = pytest.mark.integration


class TestCeleryConfig:
    def test_celery_app_is_importable(self):
        from config.celery import app

        assert app.main == "stichkala"

    def test_celery_app_exported_from_init(self):
        from config import celery_app

        assert celery_app.main == "stichkala"

    def test_celery_serializer_is_json(self, settings):
        assert settings.CELERY_TASK_SERIALIZER == "json"
        assert settings.CELERY_RESULT_SERIALIZER == "json"
        assert settings.CELERY_ACCEPT_CONTENT == ["json"]

    def test_celery_timezone_matches_django(self, settings):
        assert settings.CELERY_TIMEZONE == settings.TIME_ZONE

    def test_relay_is_scheduled(self, settings):
        schedule = settings.CELERY_BEAT_SCHEDULE
        tasks = {entry["task"] for entry in schedule.values()}
        assert "notifications.relay_pending_confirmations" in tasks

    def test_notification_tasks_registered(self):
        import modules.notifications.tasks  # noqa: F401
        from config.celery import app

        assert "notifications.deliver_order_confirmation" in app.tasks
        assert "notifications.relay_pending_confirmations" in app.tasks
