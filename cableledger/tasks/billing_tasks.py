"""Scheduled monthly bill generation."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from cableledger.auth.scope import ScopeFilter
from cableledger.core.config import get_config
from cableledger.database import db as db_module
from cableledger.models import Subscriber, SubscriberStatus, Tenant, TenantRole, TenantStatus
from cableledger.services.audit_service import AuditSink
from cableledger.services.bill_generator import BillGenerator
from cableledger.tasks.celery_app import celery_app
from cableledger.tasks.hooks import after_task, before_task
from cableledger.utils.periods import BillingPeriod, period_for

logger = logging.getLogger(__name__)

TASK_KEY = "billing.generate_monthly"


def billing_scope_ids(session: Session) -> list[int]:
    """Every scope that should be billed: active tenant admins plus scopes owning active subscribers."""
    admins = session.execute(
        select(Tenant.id).where(Tenant.role == TenantRole.TENANT_ADMIN, Tenant.status == TenantStatus.ACTIVE)
    ).scalars()
    owning = session.execute(
        select(Subscriber.scope_id).where(Subscriber.status == SubscriberStatus.ACTIVE).distinct()
    ).scalars()
    return sorted({int(scope_id) for scope_id in admins} | {int(scope_id) for scope_id in owning})


def current_billing_period(now: datetime | None = None) -> BillingPeriod:
    moment = now or datetime.now(ZoneInfo(get_config().BILLING_TIMEZONE))
    return period_for(moment)


def run_monthly_generation(
    session_factory: sessionmaker | None = None,
    period: BillingPeriod | None = None,
    audit: AuditSink | None = None,
) -> dict[str, Any]:
    """Generate bills for every scope, one scope at a time.

    A scope that fails is logged and reported; the pass carries on with
    the next scope.
    """
    factory = session_factory or db_module.get_session_factory()
    target = period or current_billing_period()
    context = {"trace_id": uuid.uuid4().hex}
    logger.info(TASK_KEY, extra=before_task(TASK_KEY, context))

    with factory() as session:
        scope_ids = billing_scope_ids(session)

    summary: dict[str, Any] = {
        "month": target.month,
        "year": target.year,
        "scopes": len(scope_ids),
        "created": 0,
        "skipped": 0,
        "failed": 0,
        "failed_scopes": [],
    }
    for scope_id in scope_ids:
        with factory() as session:
            try:
                result = BillGenerator(db=session, audit=audit).generate(
                    ScopeFilter.for_scope(scope_id),
                    target.month,
                    target.year,
                    actor_id=None,
                )
            except Exception as exc:
                logger.exception(
                    "billing.scheduled.scope_failed",
                    extra={"event": "billing.scheduled.scope_failed", "scope_id": scope_id},
                )
                summary["failed_scopes"].append({"scope_id": scope_id, "error": str(exc) or exc.__class__.__name__})
                continue
        counts = result.counts()
        summary["created"] += counts["created"]
        summary["skipped"] += counts["skipped"]
        summary["failed"] += counts["failed"]

    status = "failed" if summary["failed_scopes"] else "succeeded"
    logger.info(TASK_KEY, extra=after_task(TASK_KEY, context, status=status, scopes=len(scope_ids)))
    return summary


@celery_app.task(name=TASK_KEY)
def generate_monthly_bills() -> dict[str, Any]:
    return run_monthly_generation()
