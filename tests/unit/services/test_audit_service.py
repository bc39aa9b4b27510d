from __future__ import annotations

from sqlalchemy import select

from cableledger.models import AuditAction, AuditLog
from cableledger.services.audit_service import AuditService, NullAuditSink


def test_audit_service_persists_event(engine, session):
    AuditService(bind=engine).record(3, AuditAction.GENERATE_BILL, "Bill", None, {"created": 2})

    row = session.execute(select(AuditLog)).scalar_one()
    assert row.actor_id == 3
    assert row.action is AuditAction.GENERATE_BILL
    assert row.entity_type == "Bill"
    assert row.details == {"created": 2}


def test_audit_failures_never_propagate(engine, caplog):
    # Unserialisable details make the write fail.
    AuditService(bind=engine).record(1, AuditAction.RECORD_PAYMENT, "Payment", 1, {"bad": object()})

    assert any(record.getMessage() == "audit.write_failed" for record in caplog.records)


def test_null_sink_discards_events():
    assert NullAuditSink().record(None, AuditAction.CREATE_SUBSCRIBER, "Subscriber") is None
