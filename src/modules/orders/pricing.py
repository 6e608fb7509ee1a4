"""Pricing engine.

Pure computation: priced lines plus modifier flags in, one deterministic
non-negative total out.  The fee schedule is applied exactly once:

1. ``subtotal``      = sum(unit_price * quantity)
2. ``gift_wrap_fee`` = GIFT_WRAP_FEE when gift wrap is selected
3. ``delivery_fee``  = DELIVERY_FEE when ``subtotal + gift_wrap_fee`` is
   below FREE_DELIVERY_THRESHOLD
4. ``total``         = subtotal + gift_wrap_fee + delivery_fee

Unit prices always come from the catalog at order-creation time; a
client-proposed total is only ever *compared* with the server figure.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

from django.conf import settings

from modules.orders.exceptions import EmptyOrder, TotalMismatch

ZERO = Decimal("0.00")
CENTS = Decimal("0.01")


def to_minor_units(amount: Decimal) -> int:
    """Major currency units (rupees) to minor units (paise)."""
    return int((Decimal(amount) * 100).to_integral_value())


@dataclass(frozen=True)
class PricedLine:
    unit_price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class FeeSchedule:
    gift_wrap_fee: Decimal = Decimal("50")
    delivery_fee: Decimal = Decimal("50")
    free_delivery_threshold: Decimal = Decimal("500")

    @classmethod
    def from_settings(cls) -> FeeSchedule:
        return cls(
            gift_wrap_fee=Decimal(settings.GIFT_WRAP_FEE),
            delivery_fee=Decimal(settings.DELIVERY_FEE),
            free_delivery_threshold=Decimal(settings.FREE_DELIVERY_THRESHOLD),
        )


@dataclass(frozen=True)
class PriceQuote:
    subtotal: Decimal
    gift_wrap_fee: Decimal
    delivery_fee: Decimal
    total: Decimal

    @property
    def total_minor_units(self) -> int:
        """Total in paise, as the payment gateway expects it."""
        return to_minor_units(self.total)


def calculate_total(
    lines: Sequence[PricedLine],
    gift_wrap: bool = False,
    schedule: Optional[FeeSchedule] = None,
) -> PriceQuote:
    """Apply the fee schedule once to ``lines``.

    Raises:
        EmptyOrder: ``lines`` is empty.
        ValueError: a line has a non-positive quantity or a negative price.
    """
    if not lines:
        raise EmptyOrder("Order must have at least one item.")
    schedule = schedule or FeeSchedule.from_settings()

    for line in lines:
        if line.quantity < 1:
            raise ValueError("Quantity must be at least 1.")
        if line.unit_price < 0:
            raise ValueError("Unit price cannot be negative.")

    subtotal = sum((line.line_total for line in lines), ZERO)
    gift_wrap_fee = schedule.gift_wrap_fee if gift_wrap else ZERO
    running_total = subtotal + gift_wrap_fee
    delivery_fee = (
        schedule.delivery_fee
        if running_total < schedule.free_delivery_threshold
        else ZERO
    )
    return PriceQuote(
        subtotal=subtotal.quantize(CENTS),
        gift_wrap_fee=gift_wrap_fee.quantize(CENTS),
        delivery_fee=delivery_fee.quantize(CENTS),
        total=(running_total + delivery_fee).quantize(CENTS),
    )


def verify_client_total(
    quote: PriceQuote,
    client_total: Optional[Decimal],
    tolerance: Optional[Decimal] = None,
) -> None:
    """Reject a client-proposed total that disagrees with the server quote.

    ``None`` means the client did not propose a total.  The server total is
    always the one persisted and charged.

    Raises:
        TotalMismatch: ``|client_total - quote.total| > tolerance``.
    """
    if client_total is None:
        return
    if tolerance is None:
        tolerance = Decimal(settings.ORDER_TOTAL_TOLERANCE)
    if abs(Decimal(client_total) - quote.total) > tolerance:
        raise TotalMismatch(
            expected=quote.total,
            received=Decimal(client_total),
        )
