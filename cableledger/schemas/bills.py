"""Bill request/response schemas for API contracts."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from cableledger.models.enums import BillStatus


class BillGenerateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    month: str | int
    year: int | str
    scope_id: int | None = Field(default=None, ge=1)


class BillResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    scope_id: int
    subscriber_id: int
    month: str
    month_number: int
    year: int
    package_amount: Decimal
    previous_balance: Decimal
    total_payable: Decimal
    paid_amount: Decimal
    remaining_balance: Decimal
    status: BillStatus
    generated_at: datetime | None = None
    generated_by: int | None = None


class GenerationItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    subscriber_id: int
    subscriber_code: str
    name: str
    bill_id: int | None = None
    total_payable: Decimal | None = None
    reason: str | None = None


class GenerationResponse(BaseModel):
    scope_id: int
    month: str
    year: int
    created: list[GenerationItemResponse]
    skipped: list[GenerationItemResponse]
    failed: list[GenerationItemResponse]


class BillStatsResponse(BaseModel):
    total_bills: int
    paid_bills: int
    partial_bills: int
    unpaid_bills: int
    total_payable: Decimal
    total_paid: Decimal
    total_pending: Decimal
