"""Payment request/response schemas for API contracts."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from cableledger.models.enums import DeliveryStatus, PaymentMode


class PaymentCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    subscriber_id: int = Field(ge=1)
    bill_id: int = Field(ge=1)
    paid_amount: Decimal
    payment_mode: str = Field(min_length=2, max_length=40)
    transaction_ref: str | None = Field(default=None, max_length=120)
    notes: str | None = None
    scope_id: int | None = Field(default=None, ge=1)


class PaymentDeliveryUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    receipt_sent: bool | None = None
    whatsapp_status: str | None = None
    whatsapp_message_id: str | None = Field(default=None, max_length=120)


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    scope_id: int
    receipt_id: str
    subscriber_id: int
    bill_id: int
    paid_amount: Decimal
    remaining_balance: Decimal
    payment_mode: PaymentMode
    transaction_ref: str | None = None
    notes: str | None = None
    collected_by: int
    payment_date: datetime | None = None
    receipt_sent: bool
    whatsapp_status: DeliveryStatus
    whatsapp_message_id: str | None = None


class PaymentModeBreakdown(BaseModel):
    payment_mode: str
    count: int
    amount: Decimal


class PaymentStatsResponse(BaseModel):
    total_payments: int
    total_amount: Decimal
    average_amount: Decimal
    by_mode: list[PaymentModeBreakdown]
