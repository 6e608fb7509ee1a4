"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CustomizationDTO``: optional personalisation of a line item.
- ``AddressDTO`` / ``CustomerDTO``: embedded customer snapshot.
- ``CreateOrderItemDTO``: input for a single order line item.
- ``CreateOrderDTO``: input for order creation (nested items).
- ``UpdateStatusDTO``: staff fulfillment move.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.orders.constants import OrderStatus, PaymentMethod

# ---------------------------------------------------------------------------
# Customer snapshot
# ---------------------------------------------------------------------------


class AddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    country: Optional[str] = None


class CustomerDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    whatsapp: Optional[str] = None
    email: Optional[str] = None
    address: AddressDTO


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CustomizationDTO(BaseModel):
    """Personalisation requested for a made-to-order item."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    text: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None
    material: Optional[str] = None
    special_instructions: Optional[str] = None
    uploaded_files: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not any(
            (
                self.text,
                self.color,
                self.size,
                self.material,
                self.special_instructions,
                self.uploaded_files,
            )
        )

    def to_payload(self) -> Optional[dict]:
        """JSON payload stored on the line item (``None`` when empty)."""
        if self.is_empty:
            return None
        return self.model_dump(exclude_none=True)


class CreateOrderItemDTO(BaseModel):
    """Immutable DTO for a single order item in a creation request.

    The storefront sends ``product_id`` and ``quantity``; the unit price is
    resolved by the Service Layer from the product catalog, never taken
    from the client.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int
    customization: Optional[CustomizationDTO] = None

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @property
    def is_customized(self) -> bool:
        return self.customization is not None and not self.customization.is_empty


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``items`` must contain at least one item.
    - ``payment_method`` must be a known method.
    - A WhatsApp contact is required when any item is customised.

    ``client_total`` is the total the storefront displayed; it is checked
    against the server-side computation, never used as the order total.
    """

    model_config = ConfigDict(frozen=True)

    customer: CustomerDTO
    items: List[CreateOrderItemDTO]
    payment_method: str = PaymentMethod.ONLINE_GATEWAY
    gift_wrap: bool = False
    client_total: Optional[Decimal] = None
    notes: Optional[str] = ""
    idempotency_key: Optional[str] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @field_validator("payment_method")
    @classmethod
    def payment_method_must_be_known(cls, v: str) -> str:
        if v not in PaymentMethod.values:
            raise ValueError(f"Unknown payment method: {v}.")
        return v

    @model_validator(mode="after")
    def customized_orders_need_whatsapp(self):
        if any(item.is_customized for item in self.items) and not self.customer.whatsapp:
            raise ValueError("A WhatsApp number is required for customised orders.")
        return self


class UpdateStatusDTO(BaseModel):
    """Staff request to move an order along the fulfillment pipeline."""

    model_config = ConfigDict(frozen=True)

    new_status: str
    tracking_number: Optional[str] = None
    notes: str = ""
    actor: str = "staff"

    @field_validator("new_status")
    @classmethod
    def status_must_be_known(cls, v: str) -> str:
        if v not in OrderStatus.values:
            raise ValueError(f"Unknown order status: {v}.")
        return v
