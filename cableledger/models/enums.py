"""Canonical enum values for the ledger schema."""

from __future__ import annotations

import enum


class TenantRole(str, enum.Enum):
    OWNER = "owner"
    TENANT_ADMIN = "tenant_admin"
    OPERATOR = "operator"


class TenantStatus(str, enum.Enum):
    ACTIVE = "Active"
    BLOCKED = "Blocked"


class SubscriberStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class ServiceType(str, enum.Enum):
    SDV = "SDV"
    APSFL = "APSFL"
    RAILWIRE = "RailWire"


class BillStatus(str, enum.Enum):
    UNPAID = "Unpaid"
    PARTIAL = "Partial"
    PAID = "Paid"


class PaymentMode(str, enum.Enum):
    CASH = "Cash"
    UPI = "UPI"
    BANK_TRANSFER = "Bank Transfer"
    CHEQUE = "Cheque"
    CARD = "Card"


class DeliveryStatus(str, enum.Enum):
    PENDING = "Pending"
    SENT = "Sent"
    FAILED = "Failed"
    NOT_ENABLED = "Not Enabled"


class AuditAction(str, enum.Enum):
    CREATE_SUBSCRIBER = "CREATE_SUBSCRIBER"
    UPDATE_SUBSCRIBER = "UPDATE_SUBSCRIBER"
    DELETE_SUBSCRIBER = "DELETE_SUBSCRIBER"
    GENERATE_BILL = "GENERATE_BILL"
    RECORD_PAYMENT = "RECORD_PAYMENT"
    UPDATE_PAYMENT_DELIVERY = "UPDATE_PAYMENT_DELIVERY"
    ORPHAN_SCOPE_FALLBACK = "ORPHAN_SCOPE_FALLBACK"
