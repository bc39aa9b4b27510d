from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi import HTTPException
from sqlalchemy import select

from cableledger.api.v1 import bills, health, payments, subscribers
from cableledger.auth.jwt import create_access_token
from cableledger.core.config import get_config
from cableledger.models import AuditAction, AuditLog, BillStatus, TenantRole
from cableledger.schemas.bills import BillGenerateRequest
from cableledger.schemas.payments import PaymentCreateRequest, PaymentDeliveryUpdateRequest
from cableledger.schemas.subscribers import SubscriberCreateRequest, SubscriberUpdateRequest
from tests.factories import make_tenant


def _bearer(tenant) -> str:
    cfg = get_config()
    token = create_access_token(
        tenant_id=tenant.id,
        secret=cfg.JWT_SECRET,
        permissions_version=cfg.JWT_PERMISSIONS_VERSION,
    )
    return f"Bearer {token}"


def _create_subscriber(session, tenant, name="Ravi", phone="9000000001", scope_id=None, **fields):
    payload = SubscriberCreateRequest(name=name, phone_number=phone, scope_id=scope_id, **fields)
    return subscribers.create_subscriber(payload, db=session, authorization=_bearer(tenant))


def _generate(session, tenant, month="January", year=2024, scope_id=None):
    payload = BillGenerateRequest(month=month, year=year, scope_id=scope_id)
    return bills.generate_bills(payload, db=session, authorization=_bearer(tenant))


def _list_bills(session, tenant, scope_id=None):
    return bills.list_bills(
        month=None,
        year=None,
        bill_status=None,
        subscriber_id=None,
        scope_id=scope_id,
        limit=50,
        offset=0,
        db=session,
        authorization=_bearer(tenant),
    )


def test_health_endpoint_works():
    assert health.health()["status"] == "ok"


def test_requests_without_bearer_token_are_rejected(session):
    with pytest.raises(HTTPException) as exc:
        bills.get_bill(1, scope_id=None, db=session, authorization=None)
    assert exc.value.status_code == 401

    with pytest.raises(HTTPException) as exc:
        bills.get_bill(1, scope_id=None, db=session, authorization="Bearer garbage")
    assert exc.value.status_code == 401


def test_billing_flow_through_handlers(session, tenant_a, operator_a):
    created = _create_subscriber(session, tenant_a, package_amount=Decimal("300"))
    assert created.subscriber_code == "CUST000001"

    generation = _generate(session, operator_a)
    assert len(generation.created) == 1
    bill_id = generation.created[0].bill_id

    payment = payments.record_payment(
        PaymentCreateRequest(subscriber_id=created.id, bill_id=bill_id, paid_amount=Decimal("500"), payment_mode="Cash"),
        db=session,
        authorization=_bearer(operator_a),
    )
    assert payment.remaining_balance == Decimal("-200.00")
    assert payment.collected_by == operator_a.id

    bill = bills.get_bill(bill_id, scope_id=None, db=session, authorization=_bearer(tenant_a))
    assert bill.status is BillStatus.PAID
    subscriber = subscribers.get_subscriber(created.id, scope_id=None, db=session, authorization=_bearer(tenant_a))
    assert subscriber.previous_balance == Decimal("-200.00")

    again = _generate(session, tenant_a)
    assert again.created == []
    assert [item.reason for item in again.skipped] == ["Bill already exists for this period"]

    listing = _list_bills(session, tenant_a)
    assert listing["total"] == 1

    history = payments.subscriber_payments(created.id, scope_id=None, db=session, authorization=_bearer(tenant_a))
    assert history["total"] == 1

    delivered = payments.update_payment_delivery(
        payment.id,
        PaymentDeliveryUpdateRequest(receipt_sent=True, whatsapp_status="Sent"),
        scope_id=None,
        db=session,
        authorization=_bearer(operator_a),
    )
    assert delivered.receipt_sent is True

    stats = payments.payment_stats(start=None, end=None, scope_id=None, db=session, authorization=_bearer(tenant_a))
    assert stats.total_payments == 1


def test_domain_errors_map_to_http_codes(session, tenant_a, tenant_b):
    created = _create_subscriber(session, tenant_a)
    bill_id = _generate(session, tenant_a).created[0].bill_id

    with pytest.raises(HTTPException) as exc:
        bills.get_bill(bill_id, scope_id=None, db=session, authorization=_bearer(tenant_b))
    assert exc.value.status_code == 404

    with pytest.raises(HTTPException) as exc:
        payments.record_payment(
            PaymentCreateRequest(subscriber_id=created.id, bill_id=bill_id, paid_amount=Decimal("0"), payment_mode="Cash"),
            db=session,
            authorization=_bearer(tenant_a),
        )
    assert exc.value.status_code == 400

    with pytest.raises(HTTPException) as exc:
        _create_subscriber(session, tenant_a, name="Dup", phone="9000000001")
    assert exc.value.status_code == 409

    with pytest.raises(HTTPException) as exc:
        _generate(session, tenant_a, month="Smarch")
    assert exc.value.status_code == 400

    with pytest.raises(HTTPException) as exc:
        _list_bills(session, tenant_a, scope_id=tenant_b.id)
    assert exc.value.status_code == 403


def test_operator_cannot_delete_subscribers(session, tenant_a, operator_a):
    created = _create_subscriber(session, tenant_a)

    with pytest.raises(HTTPException) as exc:
        subscribers.delete_subscriber(created.id, scope_id=None, db=session, authorization=_bearer(operator_a))
    assert exc.value.status_code == 403

    result = subscribers.delete_subscriber(created.id, scope_id=None, db=session, authorization=_bearer(tenant_a))
    assert result["status"] == "deleted"


def test_owner_reads_everything_but_writes_into_a_named_scope(session, owner, tenant_a, tenant_b):
    _create_subscriber(session, tenant_a)
    _create_subscriber(session, tenant_b)

    with pytest.raises(HTTPException) as exc:
        _generate(session, owner)
    assert exc.value.status_code == 400

    targeted = _generate(session, owner, scope_id=tenant_b.id)
    assert targeted.scope_id == tenant_b.id
    assert len(targeted.created) == 1

    assert _list_bills(session, owner)["total"] == 1
    assert _list_bills(session, owner, scope_id=tenant_a.id)["total"] == 0

    created = _create_subscriber(session, owner, name="Owner-added", phone="9000000005", scope_id=tenant_a.id)
    assert created.scope_id == tenant_a.id


def test_update_subscriber_handler_applies_partial_changes(session, tenant_a):
    created = _create_subscriber(session, tenant_a)
    updated = subscribers.update_subscriber(
        created.id,
        SubscriberUpdateRequest(area="Ward 7"),
        scope_id=None,
        db=session,
        authorization=_bearer(tenant_a),
    )
    assert updated.area == "Ward 7"
    assert updated.name == "Ravi"


def test_orphan_operator_is_audited(session):
    orphan = make_tenant(session, "Orphan Operator", TenantRole.OPERATOR)

    result = subscribers.subscriber_stats(scope_id=None, db=session, authorization=_bearer(orphan))

    assert result.total == 0
    rows = session.execute(select(AuditLog).where(AuditLog.action == AuditAction.ORPHAN_SCOPE_FALLBACK)).scalars().all()
    assert len(rows) == 1
    assert rows[0].details == {"resolved_scope_id": orphan.id}


def test_owner_payment_without_scope_is_rejected(session, owner, tenant_a):
    created = _create_subscriber(session, tenant_a)
    bill_id = _generate(session, tenant_a).created[0].bill_id

    with pytest.raises(HTTPException) as exc:
        payments.record_payment(
            PaymentCreateRequest(subscriber_id=created.id, bill_id=bill_id, paid_amount=Decimal("100"), payment_mode="Cash"),
            db=session,
            authorization=_bearer(owner),
        )
    assert exc.value.status_code == 400

    payment = payments.record_payment(
        PaymentCreateRequest(
            subscriber_id=created.id,
            bill_id=bill_id,
            paid_amount=Decimal("100"),
            payment_mode="BankTransfer",
            scope_id=tenant_a.id,
        ),
        db=session,
        authorization=_bearer(owner),
    )
    assert payment.scope_id == tenant_a.id
    assert payment.collected_by == owner.id
