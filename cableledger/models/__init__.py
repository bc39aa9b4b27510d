"""SQLAlchemy model package for the tenant-scoped billing ledger."""

from cableledger.models.audit_log import AuditLog
from cableledger.models.base import Base
from cableledger.models.bill import Bill
from cableledger.models.enums import (
    AuditAction,
    BillStatus,
    DeliveryStatus,
    PaymentMode,
    ServiceType,
    SubscriberStatus,
    TenantRole,
    TenantStatus,
)
from cableledger.models.payment import Payment
from cableledger.models.sequence_counter import SequenceCounter
from cableledger.models.subscriber import Subscriber
from cableledger.models.tenant import Tenant

__all__ = [
    "AuditAction",
    "AuditLog",
    "Base",
    "Bill",
    "BillStatus",
    "DeliveryStatus",
    "Payment",
    "PaymentMode",
    "SequenceCounter",
    "ServiceType",
    "Subscriber",
    "SubscriberStatus",
    "Tenant",
    "TenantRole",
    "TenantStatus",
]
