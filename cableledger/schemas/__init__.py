"""Pydantic schema package for API contracts."""

from cableledger.schemas.bills import (
    BillGenerateRequest,
    BillResponse,
    BillStatsResponse,
    GenerationItemResponse,
    GenerationResponse,
)
from cableledger.schemas.payments import (
    PaymentCreateRequest,
    PaymentDeliveryUpdateRequest,
    PaymentModeBreakdown,
    PaymentResponse,
    PaymentStatsResponse,
)
from cableledger.schemas.subscribers import (
    SubscriberCreateRequest,
    SubscriberResponse,
    SubscriberStatsResponse,
    SubscriberUpdateRequest,
)

__all__ = [
    "BillGenerateRequest",
    "BillResponse",
    "BillStatsResponse",
    "GenerationItemResponse",
    "GenerationResponse",
    "PaymentCreateRequest",
    "PaymentDeliveryUpdateRequest",
    "PaymentModeBreakdown",
    "PaymentResponse",
    "PaymentStatsResponse",
    "SubscriberCreateRequest",
    "SubscriberResponse",
    "SubscriberStatsResponse",
    "SubscriberUpdateRequest",
]
