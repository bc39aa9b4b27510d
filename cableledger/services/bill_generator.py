"""Monthly bill generation and bill queries for a tenant scope."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from cableledger.auth.scope import ScopeFilter
from cableledger.core.exceptions import DuplicateConflictError, InvalidInputError, NotFoundError
from cableledger.core.logging import LogContext, build_log_event
from cableledger.models import AuditAction, Bill, BillStatus, Subscriber, SubscriberStatus
from cableledger.services.audit_service import AuditService, AuditSink
from cableledger.services.base_service import BaseService
from cableledger.services.ledger_rules import ZERO, open_bill
from cableledger.utils.periods import BillingPeriod, parse_month, parse_period

logger = logging.getLogger(__name__)

ALREADY_BILLED = "Bill already exists for this period"
NO_LONGER_ACTIVE = "Subscriber is no longer active"


@dataclass
class GenerationItem:
    subscriber_id: int
    subscriber_code: str
    name: str
    bill_id: int | None = None
    total_payable: Decimal | None = None
    reason: str | None = None


@dataclass
class GenerationResult:
    scope_id: int
    period: BillingPeriod
    created: list[GenerationItem] = field(default_factory=list)
    skipped: list[GenerationItem] = field(default_factory=list)
    failed: list[GenerationItem] = field(default_factory=list)

    @property
    def examined(self) -> int:
        return len(self.created) + len(self.skipped) + len(self.failed)

    def counts(self) -> dict[str, int]:
        return {
            "examined": self.examined,
            "created": len(self.created),
            "skipped": len(self.skipped),
            "failed": len(self.failed),
        }


class BillGenerator(BaseService):
    """Creates one bill per active subscriber per period, idempotently."""

    def __init__(self, db: Session | None = None, audit: AuditSink | None = None) -> None:
        super().__init__(db)
        self.audit = audit or AuditService(bind=self.db.get_bind())

    def generate(
        self,
        scope: ScopeFilter,
        month: str | int | None,
        year: int | str | None,
        actor_id: int | None = None,
    ) -> GenerationResult:
        """Bill every active subscriber in `scope` for the period.

        Each subscriber is billed in its own transaction. Subscribers that
        already have a bill for the period are reported as skipped, and a
        failure for one subscriber is reported without aborting the batch.
        """
        period = parse_period(month, year)
        scope_id = scope.require_write_scope()
        context = LogContext(scope_id=scope_id, actor_id=actor_id)

        subscriber_ids = list(
            self.db.execute(
                scope.apply(select(Subscriber.id), Subscriber)
                .where(Subscriber.status == SubscriberStatus.ACTIVE)
                .order_by(Subscriber.id)
            ).scalars()
        )
        self.rollback()
        logger.info(
            "billing.generate.start",
            extra=build_log_event("billing.generate.start", context, period=str(period), subscribers=len(subscriber_ids)),
        )

        result = GenerationResult(scope_id=scope_id, period=period)
        for subscriber_id in subscriber_ids:
            self._bill_subscriber(scope, subscriber_id, period, actor_id, result)

        logger.info(
            "billing.generate.finish",
            extra=build_log_event("billing.generate.finish", context, period=str(period), **result.counts()),
        )
        self.audit.record(
            actor_id,
            AuditAction.GENERATE_BILL,
            "Bill",
            None,
            {"scope_id": scope_id, "month": period.month, "year": period.year, **result.counts()},
        )
        return result

    def _bill_subscriber(
        self,
        scope: ScopeFilter,
        subscriber_id: int,
        period: BillingPeriod,
        actor_id: int | None,
        result: GenerationResult,
    ) -> None:
        item = GenerationItem(subscriber_id=subscriber_id, subscriber_code="", name="")
        try:
            subscriber = self.db.execute(
                scope.apply(select(Subscriber).where(Subscriber.id == subscriber_id), Subscriber)
                .where(Subscriber.status == SubscriberStatus.ACTIVE)
                .with_for_update()
            ).scalar_one_or_none()
            if subscriber is None:
                # Deactivated or removed since the batch was listed.
                self.rollback()
                item.reason = NO_LONGER_ACTIVE
                result.skipped.append(item)
                return
            item.subscriber_code = subscriber.subscriber_code
            item.name = subscriber.name

            if self._has_bill(subscriber_id, period):
                self.rollback()
                item.reason = ALREADY_BILLED
                result.skipped.append(item)
                return

            bill = open_bill(subscriber, period, generated_by=actor_id)
            self.db.add(bill)
            self.commit()
            item.bill_id = bill.id
            item.total_payable = bill.total_payable
            result.created.append(item)
        except DuplicateConflictError:
            # Lost a race with a concurrent generation for the same period.
            if self._has_bill(subscriber_id, period):
                self.rollback()
                item.reason = ALREADY_BILLED
                result.skipped.append(item)
                return
            self.rollback()
            item.reason = "Integrity rule violated while creating bill"
            result.failed.append(item)
        except Exception as exc:
            self.rollback()
            logger.exception(
                "billing.generate.subscriber_failed",
                extra=build_log_event(
                    "billing.generate.subscriber_failed",
                    LogContext(scope_id=scope.scope_id, actor_id=actor_id, subscriber_id=subscriber_id),
                    period=str(period),
                ),
            )
            item.reason = str(exc) or exc.__class__.__name__
            result.failed.append(item)

    def _has_bill(self, subscriber_id: int, period: BillingPeriod) -> bool:
        query = select(Bill.id).where(
            Bill.subscriber_id == subscriber_id,
            Bill.month == period.month,
            Bill.year == period.year,
        )
        return self.db.execute(query).first() is not None

    def get_bill(self, scope: ScopeFilter, bill_id: int) -> Bill:
        bill = self.db.execute(scope.apply(select(Bill).where(Bill.id == bill_id), Bill)).scalar_one_or_none()
        if bill is None:
            raise NotFoundError(f"Bill not found: {bill_id}")
        return bill

    def list_bills(
        self,
        scope: ScopeFilter,
        month: str | None = None,
        year: int | None = None,
        status: str | BillStatus | None = None,
        subscriber_id: int | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Bill], int]:
        query = self._filtered(scope, month=month, year=year)
        if status:
            query = query.where(Bill.status == _parse_bill_status(status))
        if subscriber_id is not None:
            query = query.where(Bill.subscriber_id == subscriber_id)
        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
        rows = self.db.execute(
            query.order_by(Bill.year.desc(), Bill.month_number.desc(), Bill.id.desc()).limit(limit).offset(offset)
        ).scalars()
        return list(rows), int(total)

    def bills_for_subscriber(self, scope: ScopeFilter, subscriber_id: int) -> list[Bill]:
        """All bills of one in-scope subscriber, newest period first."""
        owned = self.db.execute(
            scope.apply(select(Subscriber.id).where(Subscriber.id == subscriber_id), Subscriber)
        ).first()
        if owned is None:
            raise NotFoundError(f"Subscriber not found: {subscriber_id}")
        query = scope.apply(select(Bill).where(Bill.subscriber_id == subscriber_id), Bill)
        return list(self.db.execute(query.order_by(Bill.year.desc(), Bill.month_number.desc())).scalars())

    def bill_stats(self, scope: ScopeFilter, month: str | None = None, year: int | None = None) -> dict:
        base = self._filtered(scope, month=month, year=year).subquery()
        by_status = {
            status: int(count)
            for status, count in self.db.execute(
                select(base.c.status, func.count()).group_by(base.c.status)
            ).all()
        }
        totals = self.db.execute(
            select(
                func.coalesce(func.sum(base.c.total_payable), 0),
                func.coalesce(func.sum(base.c.paid_amount), 0),
                func.coalesce(func.sum(base.c.remaining_balance), 0),
            )
        ).one()
        return {
            "total_bills": sum(by_status.values()),
            "paid_bills": by_status.get(BillStatus.PAID, 0),
            "partial_bills": by_status.get(BillStatus.PARTIAL, 0),
            "unpaid_bills": by_status.get(BillStatus.UNPAID, 0),
            "total_payable": Decimal(str(totals[0] or ZERO)),
            "total_paid": Decimal(str(totals[1] or ZERO)),
            "total_pending": Decimal(str(totals[2] or ZERO)),
        }

    def _filtered(self, scope: ScopeFilter, month: str | None = None, year: int | None = None):
        query = scope.apply(select(Bill), Bill)
        if month:
            query = query.where(Bill.month == parse_month(month)[0])
        if year:
            query = query.where(Bill.year == int(year))
        return query


def _parse_bill_status(value: str | BillStatus) -> BillStatus:
    try:
        return BillStatus(value)
    except ValueError as exc:
        raise InvalidInputError(f"Unknown bill status: {value!r}") from exc
