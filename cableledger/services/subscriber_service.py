"""Subscriber registry scoped to a tenant."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from cableledger.auth.scope import ScopeFilter
from cableledger.core.config import get_config
from cableledger.core.exceptions import DuplicateConflictError, InvalidAmountError, InvalidInputError, NotFoundError
from cableledger.core.logging import LogContext, build_log_event
from cableledger.models import AuditAction, Bill, ServiceType, Subscriber, SubscriberStatus
from cableledger.services.audit_service import AuditService, AuditSink
from cableledger.services.base_service import BaseService
from cableledger.services.ledger_rules import ZERO, to_money
from cableledger.services.receipt_sequencer import ReceiptSequencer

logger = logging.getLogger(__name__)

# Ledger-owned fields are never settable through updates.
UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "phone_number",
        "address",
        "area",
        "service_type",
        "set_top_box_id",
        "package_amount",
        "status",
        "whatsapp_enabled",
    }
)


class SubscriberService(BaseService):
    """Create, read and maintain subscribers inside a resolved scope."""

    def __init__(self, db: Session | None = None, audit: AuditSink | None = None) -> None:
        super().__init__(db)
        self.audit = audit or AuditService(bind=self.db.get_bind())
        self.sequencer = ReceiptSequencer(db=self.db)

    def create_subscriber(
        self,
        scope: ScopeFilter,
        actor_id: int,
        name: str,
        phone_number: str,
        package_amount: object = None,
        subscriber_code: str | None = None,
        opening_balance: object = None,
        address: str | None = None,
        area: str | None = None,
        service_type: str | ServiceType | None = None,
        set_top_box_id: str | None = None,
        whatsapp_enabled: bool = True,
    ) -> Subscriber:
        scope_id = scope.require_write_scope()
        if not name or not name.strip():
            raise InvalidInputError("Subscriber name is required.")
        if not phone_number or not phone_number.strip():
            raise InvalidInputError("Phone number is required.")

        amount = to_money(
            get_config().DEFAULT_PACKAGE_AMOUNT if package_amount is None else package_amount,
            field="package_amount",
        )
        if amount < ZERO:
            raise InvalidAmountError("package_amount must be >= 0.")
        balance = ZERO if opening_balance is None else to_money(opening_balance, field="opening_balance")

        phone = phone_number.strip()
        code = subscriber_code.strip() if subscriber_code and subscriber_code.strip() else None
        self._ensure_unique(scope_id, code=code, phone_number=phone)

        service = _parse_service_type(service_type)
        subscriber = Subscriber(
            scope_id=scope_id,
            created_by=actor_id,
            subscriber_code=code or self.sequencer.next_subscriber_code(scope_id),
            name=name.strip(),
            phone_number=phone,
            address=address,
            area=area,
            service_type=service,
            set_top_box_id=set_top_box_id,
            package_amount=amount,
            previous_balance=balance,
            status=SubscriberStatus.ACTIVE,
            whatsapp_enabled=whatsapp_enabled,
        )
        self.db.add(subscriber)
        self.commit()

        logger.info(
            "subscriber.created",
            extra=build_log_event(
                "subscriber.created",
                LogContext(scope_id=scope_id, actor_id=actor_id, subscriber_id=subscriber.id),
                subscriber_code=subscriber.subscriber_code,
            ),
        )
        self.audit.record(
            actor_id,
            AuditAction.CREATE_SUBSCRIBER,
            "Subscriber",
            subscriber.id,
            {"subscriber_code": subscriber.subscriber_code, "name": subscriber.name},
        )
        return subscriber

    def get_subscriber(self, scope: ScopeFilter, subscriber_id: int) -> Subscriber:
        query = scope.apply(select(Subscriber).where(Subscriber.id == subscriber_id), Subscriber)
        subscriber = self.db.execute(query).scalar_one_or_none()
        if subscriber is None:
            raise NotFoundError(f"Subscriber not found: {subscriber_id}")
        return subscriber

    def list_subscribers(
        self,
        scope: ScopeFilter,
        status: str | SubscriberStatus | None = None,
        area: str | None = None,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Subscriber], int]:
        query = scope.apply(select(Subscriber), Subscriber)
        if status:
            query = query.where(Subscriber.status == _parse_subscriber_status(status))
        if area:
            query = query.where(Subscriber.area == area)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(
                or_(
                    Subscriber.name.ilike(pattern),
                    Subscriber.phone_number.ilike(pattern),
                    Subscriber.subscriber_code.ilike(pattern),
                )
            )
        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
        rows = self.db.execute(query.order_by(Subscriber.id.desc()).limit(limit).offset(offset)).scalars().all()
        return list(rows), int(total)

    def update_subscriber(
        self,
        scope: ScopeFilter,
        actor_id: int,
        subscriber_id: int,
        changes: dict[str, Any],
    ) -> Subscriber:
        rejected = sorted(set(changes) - UPDATABLE_FIELDS)
        if rejected:
            raise InvalidInputError(f"Fields cannot be updated: {', '.join(rejected)}")

        subscriber = self.get_subscriber(scope, subscriber_id)
        new_phone = str(changes.get("phone_number") or "").strip()
        if new_phone and new_phone != subscriber.phone_number:
            self._ensure_unique(subscriber.scope_id, phone_number=new_phone, exclude_id=subscriber.id)

        parsed: dict[str, Any] = {}
        for field, value in changes.items():
            if field == "package_amount":
                value = to_money(value, field="package_amount")
                if value < ZERO:
                    raise InvalidAmountError("package_amount must be >= 0.")
            elif field == "status":
                value = _parse_subscriber_status(value)
            elif field == "service_type":
                value = _parse_service_type(value)
            elif field in {"name", "phone_number"}:
                if not value or not str(value).strip():
                    raise InvalidInputError(f"{field} must not be empty.")
                value = str(value).strip()
            parsed[field] = value

        for field, value in parsed.items():
            setattr(subscriber, field, value)
        self.commit()

        self.audit.record(
            actor_id,
            AuditAction.UPDATE_SUBSCRIBER,
            "Subscriber",
            subscriber.id,
            {"subscriber_code": subscriber.subscriber_code, "updates": sorted(changes)},
        )
        return subscriber

    def deactivate_subscriber(self, scope: ScopeFilter, actor_id: int, subscriber_id: int) -> Subscriber:
        return self.update_subscriber(scope, actor_id, subscriber_id, {"status": SubscriberStatus.INACTIVE})

    def delete_subscriber(self, scope: ScopeFilter, actor_id: int, subscriber_id: int) -> None:
        subscriber = self.get_subscriber(scope, subscriber_id)
        bill_count = self.db.execute(
            select(func.count(Bill.id)).where(Bill.subscriber_id == subscriber.id)
        ).scalar_one()
        if bill_count:
            raise InvalidInputError("Cannot delete subscriber with existing bills. Deactivate instead.")

        code = subscriber.subscriber_code
        self.db.delete(subscriber)
        self.commit()
        self.audit.record(
            actor_id,
            AuditAction.DELETE_SUBSCRIBER,
            "Subscriber",
            subscriber_id,
            {"subscriber_code": code},
        )

    def subscriber_stats(self, scope: ScopeFilter) -> dict[str, int]:
        query = scope.apply(select(Subscriber.status, func.count(Subscriber.id)), Subscriber).group_by(
            Subscriber.status
        )
        counts = {status: int(count) for status, count in self.db.execute(query).all()}
        active = counts.get(SubscriberStatus.ACTIVE, 0)
        inactive = counts.get(SubscriberStatus.INACTIVE, 0)
        return {"total": active + inactive, "active": active, "inactive": inactive}

    def _ensure_unique(
        self,
        scope_id: int,
        code: str | None = None,
        phone_number: str | None = None,
        exclude_id: int | None = None,
    ) -> None:
        checks = []
        if code:
            checks.append(("subscriber_code", Subscriber.subscriber_code == code))
        if phone_number:
            checks.append(("phone_number", Subscriber.phone_number == phone_number))
        for field, clause in checks:
            query = select(Subscriber.id).where(Subscriber.scope_id == scope_id, clause)
            if exclude_id is not None:
                query = query.where(Subscriber.id != exclude_id)
            if self.db.execute(query).first() is not None:
                raise DuplicateConflictError(f"{field} already exists in this scope.")


def _parse_subscriber_status(value: str | SubscriberStatus) -> SubscriberStatus:
    try:
        return SubscriberStatus(value)
    except ValueError as exc:
        raise InvalidInputError(f"Unknown subscriber status: {value!r}") from exc


def _parse_service_type(value: str | ServiceType | None) -> ServiceType | None:
    if value is None:
        return None
    try:
        return ServiceType(value)
    except ValueError as exc:
        raise InvalidInputError(f"Unknown service type: {value!r}") from exc
