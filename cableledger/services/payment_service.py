"""Payment recording and payment queries for a tenant scope."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from cableledger.auth.scope import ScopeFilter
from cableledger.core.exceptions import InvalidAmountError, InvalidInputError, NotFoundError
from cableledger.core.logging import LogContext, build_log_event
from cableledger.models import AuditAction, Bill, DeliveryStatus, Payment, PaymentMode, Subscriber
from cableledger.services.audit_service import AuditService, AuditSink
from cableledger.services.base_service import BaseService
from cableledger.services.ledger_rules import ZERO, apply_bill_derivations, to_money
from cableledger.services.receipt_sequencer import ReceiptSequencer

logger = logging.getLogger(__name__)


def parse_payment_mode(value: str | PaymentMode | None) -> PaymentMode:
    if value is None:
        raise InvalidInputError("Payment mode is required.")
    if isinstance(value, PaymentMode):
        return value
    # "Bank Transfer", "bank_transfer" and "BankTransfer" all name the same mode.
    normalized = _squash(str(value))
    for mode in PaymentMode:
        if normalized in {_squash(mode.value), _squash(mode.name)}:
            return mode
    raise InvalidInputError(f"Unknown payment mode: {value!r}")


def _squash(text: str) -> str:
    return "".join(text.replace("_", " ").split()).lower()


class PaymentService(BaseService):
    """Applies payments to bills and keeps subscriber balances in step."""

    def __init__(
        self,
        db: Session | None = None,
        audit: AuditSink | None = None,
        sequencer: ReceiptSequencer | None = None,
    ) -> None:
        super().__init__(db)
        self.audit = audit or AuditService(bind=self.db.get_bind())
        self.sequencer = sequencer or ReceiptSequencer(db=self.db)

    def record_payment(
        self,
        scope: ScopeFilter,
        collector_id: int,
        subscriber_id: int,
        bill_id: int,
        paid_amount: object,
        payment_mode: str | PaymentMode,
        transaction_ref: str | None = None,
        notes: str | None = None,
    ) -> Payment:
        """Apply `paid_amount` to a bill as one transaction.

        The bill's paid amount is incremented in SQL, its remaining balance
        and status are re-derived, the subscriber's running balance is set
        to the bill's new remaining balance and the payment row is inserted.
        Any failure rolls all of it back. Overpayment is allowed and shows up
        as a negative (advance credit) balance.
        """
        scope_id = scope.require_write_scope()
        amount = to_money(paid_amount, field="paid_amount")
        if amount <= ZERO:
            raise InvalidAmountError("paid_amount must be greater than zero.")
        mode = parse_payment_mode(payment_mode)
        context = LogContext(scope_id=scope_id, actor_id=collector_id, subscriber_id=subscriber_id, bill_id=bill_id)

        try:
            subscriber = self.db.execute(
                scope.apply(select(Subscriber).where(Subscriber.id == subscriber_id), Subscriber).with_for_update()
            ).scalar_one_or_none()
            if subscriber is None:
                raise NotFoundError(f"Subscriber not found: {subscriber_id}")

            bill = self.db.execute(
                scope.apply(select(Bill).where(Bill.id == bill_id), Bill)
                .where(Bill.subscriber_id == subscriber.id, Bill.scope_id == subscriber.scope_id)
                .with_for_update()
            ).scalar_one_or_none()
            if bill is None:
                raise NotFoundError(f"Bill not found for subscriber {subscriber_id}: {bill_id}")

            self.db.execute(
                update(Bill)
                .where(Bill.id == bill.id)
                .values(paid_amount=Bill.paid_amount + amount)
                .execution_options(synchronize_session=False)
            )
            self.db.refresh(bill)
            apply_bill_derivations(bill)
            subscriber.previous_balance = bill.remaining_balance

            payment = Payment(
                scope_id=subscriber.scope_id,
                subscriber_id=subscriber.id,
                bill_id=bill.id,
                receipt_id=self.sequencer.next_receipt_id(),
                paid_amount=amount,
                remaining_balance=bill.remaining_balance,
                payment_mode=mode,
                transaction_ref=transaction_ref.strip() if transaction_ref else None,
                notes=notes,
                collected_by=collector_id,
                whatsapp_status=DeliveryStatus.PENDING if subscriber.whatsapp_enabled else DeliveryStatus.NOT_ENABLED,
            )
            self.db.add(payment)
        except Exception:
            self.rollback()
            logger.warning("payment.record.rejected", extra=build_log_event("payment.record.rejected", context))
            raise
        self.commit()

        logger.info(
            "payment.recorded",
            extra=build_log_event(
                "payment.recorded",
                context,
                receipt_id=payment.receipt_id,
                paid_amount=str(amount),
                remaining_balance=str(payment.remaining_balance),
            ),
        )
        self.audit.record(
            collector_id,
            AuditAction.RECORD_PAYMENT,
            "Payment",
            payment.id,
            {
                "subscriber_code": subscriber.subscriber_code,
                "bill_id": bill.id,
                "paid_amount": str(amount),
                "payment_mode": mode.value,
                "receipt_id": payment.receipt_id,
            },
        )
        return payment

    def get_payment(self, scope: ScopeFilter, payment_id: int) -> Payment:
        payment = self.db.execute(
            scope.apply(select(Payment).where(Payment.id == payment_id), Payment)
        ).scalar_one_or_none()
        if payment is None:
            raise NotFoundError(f"Payment not found: {payment_id}")
        return payment

    def list_payments(
        self,
        scope: ScopeFilter,
        subscriber_id: int | None = None,
        payment_mode: str | PaymentMode | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Payment], int]:
        query = self._filtered(scope, start=start, end=end)
        if subscriber_id is not None:
            query = query.where(Payment.subscriber_id == subscriber_id)
        if payment_mode:
            query = query.where(Payment.payment_mode == parse_payment_mode(payment_mode))
        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
        rows = self.db.execute(
            query.order_by(Payment.payment_date.desc(), Payment.id.desc()).limit(limit).offset(offset)
        ).scalars()
        return list(rows), int(total)

    def payments_for_subscriber(self, scope: ScopeFilter, subscriber_id: int) -> list[Payment]:
        owned = self.db.execute(
            scope.apply(select(Subscriber.id).where(Subscriber.id == subscriber_id), Subscriber)
        ).first()
        if owned is None:
            raise NotFoundError(f"Subscriber not found: {subscriber_id}")
        query = scope.apply(select(Payment).where(Payment.subscriber_id == subscriber_id), Payment)
        return list(self.db.execute(query.order_by(Payment.payment_date.desc(), Payment.id.desc())).scalars())

    def payment_stats(self, scope: ScopeFilter, start: datetime | None = None, end: datetime | None = None) -> dict:
        base = self._filtered(scope, start=start, end=end).subquery()
        count, total = self.db.execute(
            select(func.count(), func.coalesce(func.sum(base.c.paid_amount), 0))
        ).one()
        by_mode = [
            {"payment_mode": mode.value, "count": int(mode_count), "amount": Decimal(str(mode_amount or ZERO))}
            for mode, mode_count, mode_amount in self.db.execute(
                select(base.c.payment_mode, func.count(), func.sum(base.c.paid_amount))
                .group_by(base.c.payment_mode)
                .order_by(base.c.payment_mode)
            ).all()
        ]
        total_amount = Decimal(str(total or ZERO))
        return {
            "total_payments": int(count),
            "total_amount": total_amount,
            "average_amount": (total_amount / count).quantize(Decimal("0.01")) if count else ZERO,
            "by_mode": by_mode,
        }

    def update_delivery_status(
        self,
        scope: ScopeFilter,
        payment_id: int,
        actor_id: int | None = None,
        receipt_sent: bool | None = None,
        whatsapp_status: str | DeliveryStatus | None = None,
        whatsapp_message_id: str | None = None,
    ) -> Payment:
        """Update the non-financial delivery flags set by notification collaborators."""
        scope.require_write_scope()
        payment = self.get_payment(scope, payment_id)
        if whatsapp_status is not None:
            try:
                payment.whatsapp_status = DeliveryStatus(whatsapp_status)
            except ValueError as exc:
                self.rollback()
                raise InvalidInputError(f"Unknown delivery status: {whatsapp_status!r}") from exc
        if receipt_sent is not None:
            payment.receipt_sent = bool(receipt_sent)
        if whatsapp_message_id is not None:
            payment.whatsapp_message_id = whatsapp_message_id
        self.commit()

        self.audit.record(
            actor_id,
            AuditAction.UPDATE_PAYMENT_DELIVERY,
            "Payment",
            payment.id,
            {"receipt_id": payment.receipt_id, "whatsapp_status": payment.whatsapp_status.value},
        )
        return payment

    def _filtered(self, scope: ScopeFilter, start: datetime | None = None, end: datetime | None = None):
        query = scope.apply(select(Payment), Payment)
        if start is not None:
            query = query.where(Payment.payment_date >= start)
        if end is not None:
            query = query.where(Payment.payment_date <= end)
        return query
