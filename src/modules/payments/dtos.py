"""Payment reconciliation DTOs (Pydantic v2, immutable)."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class VerifyPaymentDTO(BaseModel):
    """Signed confirmation returned by the gateway checkout."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    order_id: UUID
    gateway_order_id: str = Field(min_length=1, max_length=64)
    gateway_payment_id: str = Field(min_length=1, max_length=64)
    signature: str = Field(min_length=1, max_length=128)


class ManualPaymentDTO(BaseModel):
    """Free-form evidence for an offline settlement (UPI transfer, cash)."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    order_id: UUID
    transaction_ref: Optional[str] = Field(default=None, max_length=255)
    proof_ref: Optional[str] = Field(default=None, max_length=500)
    actor: str = "customer"
