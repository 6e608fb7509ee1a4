"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when an order is placed."""


@dataclass(frozen=True)
class OrderConfirmed(DomainEvent):
    """Raised on every transition into ``confirmed``.

    ``reason`` is forwarded to the confirmation notification.
    """

    reason: str = "confirmed"


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised when staff move an order along the fulfillment pipeline."""

    old_status: str = ""
    new_status: str = ""


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Raised when an order reaches ``cancelled``."""


@dataclass(frozen=True)
class PaymentReceived(DomainEvent):
    """Raised when a payment is reconciled against an order."""

    method: str = ""


@dataclass(frozen=True)
class PaymentFailed(DomainEvent):
    """Raised when a gateway confirmation fails signature verification."""
