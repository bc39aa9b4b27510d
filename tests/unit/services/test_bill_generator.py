from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from cableledger.auth.scope import ScopeFilter
from cableledger.core.exceptions import InvalidInputError, NotFoundError
from cableledger.models import AuditAction, Bill, BillStatus, Subscriber, SubscriberStatus
from cableledger.services import bill_generator as bill_generator_module
from cableledger.services.bill_generator import ALREADY_BILLED, NO_LONGER_ACTIVE, BillGenerator
from cableledger.services.payment_service import PaymentService
from tests.factories import make_subscriber


def _bill_count(session) -> int:
    return session.execute(select(func.count(Bill.id))).scalar_one()


def test_generate_creates_one_bill_per_active_subscriber(session, tenant_a, audit):
    first = make_subscriber(session, tenant_a, "CUST000001", "9000000001", package_amount="300")
    make_subscriber(session, tenant_a, "CUST000002", "9000000002", status=SubscriberStatus.INACTIVE)

    result = BillGenerator(db=session, audit=audit).generate(ScopeFilter.for_scope(tenant_a.id), "January", 2024)

    assert result.counts() == {"examined": 1, "created": 1, "skipped": 0, "failed": 0}
    bill = session.get(Bill, result.created[0].bill_id)
    assert bill.subscriber_id == first.id
    assert bill.scope_id == tenant_a.id
    assert bill.total_payable == Decimal("300.00")
    assert bill.status is BillStatus.UNPAID
    session.refresh(first)
    assert first.previous_balance == Decimal("300.00")
    assert audit.actions() == [AuditAction.GENERATE_BILL]
    assert audit.events[0]["details"]["created"] == 1


def test_generate_is_idempotent_per_period(session, tenant_a, audit):
    subscriber = make_subscriber(session, tenant_a, "CUST000001", "9000000001", package_amount="300")
    generator = BillGenerator(db=session, audit=audit)
    scope = ScopeFilter.for_scope(tenant_a.id)

    generator.generate(scope, "Jan", "2024")
    second = generator.generate(scope, "January", 2024)

    assert second.counts()["created"] == 0
    assert [item.reason for item in second.skipped] == [ALREADY_BILLED]
    assert _bill_count(session) == 1
    session.refresh(subscriber)
    assert subscriber.previous_balance == Decimal("300.00")


def test_month_carry_forward_scenario(session, tenant_a, audit):
    subscriber = make_subscriber(session, tenant_a, "CUST000001", "9000000001", package_amount="300")
    scope = ScopeFilter.for_scope(tenant_a.id)
    generator = BillGenerator(db=session, audit=audit)

    january = generator.generate(scope, "January", 2024)
    bill_id = january.created[0].bill_id
    PaymentService(db=session, audit=audit).record_payment(
        scope, tenant_a.id, subscriber.id, bill_id, "300", "Cash"
    )
    session.refresh(subscriber)
    assert subscriber.previous_balance == Decimal("0.00")

    assert generator.generate(scope, "January", 2024).counts()["skipped"] == 1
    february = generator.generate(scope, "February", 2024)

    february_bill = session.get(Bill, february.created[0].bill_id)
    assert february_bill.previous_balance == Decimal("0.00")
    assert february_bill.total_payable == Decimal("300.00")
    assert _bill_count(session) == 2


def test_generate_carries_unpaid_balance_into_next_period(session, tenant_a, audit):
    subscriber = make_subscriber(session, tenant_a, "CUST000001", "9000000001", package_amount="250")
    scope = ScopeFilter.for_scope(tenant_a.id)
    generator = BillGenerator(db=session, audit=audit)

    generator.generate(scope, "March", 2024)
    april = generator.generate(scope, "April", 2024)

    bill = session.get(Bill, april.created[0].bill_id)
    assert bill.previous_balance == Decimal("250.00")
    assert bill.total_payable == Decimal("500.00")
    session.refresh(subscriber)
    assert subscriber.previous_balance == Decimal("500.00")


def test_generate_reports_failures_without_aborting_batch(session, tenant_a, audit, monkeypatch):
    broken = make_subscriber(session, tenant_a, "CUST000001", "9000000001")
    healthy = make_subscriber(session, tenant_a, "CUST000002", "9000000002")
    real_open_bill = bill_generator_module.open_bill

    def flaky_open_bill(subscriber, period, generated_by):
        if subscriber.id == broken.id:
            raise RuntimeError("ledger row is corrupt")
        return real_open_bill(subscriber, period, generated_by)

    monkeypatch.setattr(bill_generator_module, "open_bill", flaky_open_bill)
    result = BillGenerator(db=session, audit=audit).generate(ScopeFilter.for_scope(tenant_a.id), "May", 2024)

    assert [item.subscriber_id for item in result.failed] == [broken.id]
    assert result.failed[0].reason == "ledger row is corrupt"
    assert [item.subscriber_id for item in result.created] == [healthy.id]
    session.refresh(broken)
    assert broken.previous_balance == Decimal("0.00")


def test_generate_only_touches_the_callers_scope(session, tenant_a, tenant_b, audit):
    make_subscriber(session, tenant_a, "CUST000001", "9000000001")
    other = make_subscriber(session, tenant_b, "CUST000001", "9000000001")

    result = BillGenerator(db=session, audit=audit).generate(ScopeFilter.for_scope(tenant_a.id), "June", 2024)

    assert result.counts()["examined"] == 1
    other_bills = session.execute(select(Bill).where(Bill.subscriber_id == other.id)).scalars().all()
    assert other_bills == []


@pytest.mark.parametrize(("month", "year"), [("", 2024), ("Smarch", 2024), ("January", "24"), ("January", None)])
def test_generate_rejects_bad_periods(session, tenant_a, audit, month, year):
    with pytest.raises(InvalidInputError):
        BillGenerator(db=session, audit=audit).generate(ScopeFilter.for_scope(tenant_a.id), month, year)


def test_generate_requires_concrete_scope(session, audit):
    with pytest.raises(InvalidInputError):
        BillGenerator(db=session, audit=audit).generate(ScopeFilter.everything(), "January", 2024)


def test_bill_queries_respect_scope(session, tenant_a, tenant_b, audit):
    mine = make_subscriber(session, tenant_a, "CUST000001", "9000000001", package_amount="300")
    theirs = make_subscriber(session, tenant_b, "CUST000001", "9000000002")
    generator = BillGenerator(db=session, audit=audit)
    scope_a = ScopeFilter.for_scope(tenant_a.id)
    scope_b = ScopeFilter.for_scope(tenant_b.id)
    generator.generate(scope_a, "January", 2024)
    generator.generate(scope_a, "February", 2024)
    foreign = generator.generate(scope_b, "January", 2024).created[0].bill_id

    rows, total = generator.list_bills(scope_a)
    assert total == 2
    assert [bill.month for bill in rows] == ["February", "January"]
    assert generator.list_bills(scope_a, month="jan", year=2024)[1] == 1

    with pytest.raises(NotFoundError):
        generator.get_bill(scope_a, foreign)
    with pytest.raises(NotFoundError):
        generator.bills_for_subscriber(scope_a, theirs.id)

    history = generator.bills_for_subscriber(scope_a, mine.id)
    assert [bill.month for bill in history] == ["February", "January"]

    everything, grand_total = generator.list_bills(ScopeFilter.everything())
    assert grand_total == 3
    assert {bill.scope_id for bill in everything} == {tenant_a.id, tenant_b.id}


def test_bill_stats(session, tenant_a, audit):
    first = make_subscriber(session, tenant_a, "CUST000001", "9000000001", package_amount="300")
    make_subscriber(session, tenant_a, "CUST000002", "9000000002", package_amount="200")
    scope = ScopeFilter.for_scope(tenant_a.id)
    result = BillGenerator(db=session, audit=audit).generate(scope, "July", 2024)
    first_bill = next(item.bill_id for item in result.created if item.subscriber_id == first.id)
    PaymentService(db=session, audit=audit).record_payment(scope, tenant_a.id, first.id, first_bill, "100", "UPI")

    stats = BillGenerator(db=session, audit=audit).bill_stats(scope, month="July", year=2024)

    assert stats["total_bills"] == 2
    assert stats["partial_bills"] == 1
    assert stats["unpaid_bills"] == 1
    assert stats["paid_bills"] == 0
    assert stats["total_payable"] == Decimal("500")
    assert stats["total_paid"] == Decimal("100")
    assert stats["total_pending"] == Decimal("400")


def test_list_bills_rejects_unknown_status(session, tenant_a, audit):
    with pytest.raises(InvalidInputError):
        BillGenerator(db=session, audit=audit).list_bills(ScopeFilter.for_scope(tenant_a.id), status="Overdue")


def test_subscriber_deactivated_after_listing_is_skipped(session, session_factory, tenant_a, audit):
    first = make_subscriber(session, tenant_a, "CUST000001", "9000000001", package_amount="300")
    second = make_subscriber(session, tenant_a, "CUST000002", "9000000002", package_amount="300")

    class DeactivateMidRun(BillGenerator):
        def _bill_subscriber(self, scope, subscriber_id, period, actor_id, result):
            if subscriber_id == first.id:
                with session_factory() as other:
                    other.get(Subscriber, second.id).status = SubscriberStatus.INACTIVE
                    other.commit()
            super()._bill_subscriber(scope, subscriber_id, period, actor_id, result)

    result = DeactivateMidRun(db=session, audit=audit).generate(ScopeFilter.for_scope(tenant_a.id), "August", 2024)

    assert [item.subscriber_id for item in result.created] == [first.id]
    assert [(item.subscriber_id, item.reason) for item in result.skipped] == [(second.id, NO_LONGER_ACTIVE)]
    assert session.execute(select(Bill).where(Bill.subscriber_id == second.id)).scalars().all() == []
    session.refresh(second)
    assert second.previous_balance == Decimal("0.00")
