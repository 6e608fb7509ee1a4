"""Notification exceptions."""

from __future__ import annotations


class NotificationDeliveryError(Exception):
    """The dispatcher failed; the outbox row was marked as failed."""

    def __init__(self, event_id) -> None:
        self.event_id = str(event_id)
        super().__init__(f"Order confirmation {self.event_id} could not be delivered.")
