"""Subscriber request/response schemas for API contracts."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from cableledger.models.enums import ServiceType, SubscriberStatus


class SubscriberCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=255)
    phone_number: str = Field(min_length=3, max_length=32)
    package_amount: Decimal | None = None
    subscriber_code: str | None = Field(default=None, max_length=50)
    opening_balance: Decimal | None = None
    address: str | None = None
    area: str | None = Field(default=None, max_length=120)
    service_type: str | None = None
    set_top_box_id: str | None = Field(default=None, max_length=100)
    whatsapp_enabled: bool = True
    scope_id: int | None = Field(default=None, ge=1)


class SubscriberUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=255)
    phone_number: str | None = Field(default=None, min_length=3, max_length=32)
    address: str | None = None
    area: str | None = Field(default=None, max_length=120)
    service_type: str | None = None
    set_top_box_id: str | None = Field(default=None, max_length=100)
    package_amount: Decimal | None = None
    status: str | None = None
    whatsapp_enabled: bool | None = None


class SubscriberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    scope_id: int
    subscriber_code: str
    name: str
    phone_number: str
    address: str | None = None
    area: str | None = None
    service_type: ServiceType | None = None
    set_top_box_id: str | None = None
    package_amount: Decimal
    previous_balance: Decimal
    status: SubscriberStatus
    whatsapp_enabled: bool
    created_by: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SubscriberStatsResponse(BaseModel):
    total: int
    active: int
    inactive: int
