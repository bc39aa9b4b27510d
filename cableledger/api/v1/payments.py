"""Payment recording and payment read endpoints for API v1."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.orm import Session

from cableledger.api.v1._authz import authorize, map_auth_error, map_domain_error
from cableledger.core.dependencies import get_db_session
from cableledger.core.exceptions import CableLedgerException
from cableledger.schemas.payments import (
    PaymentCreateRequest,
    PaymentDeliveryUpdateRequest,
    PaymentResponse,
    PaymentStatsResponse,
)
from cableledger.services.payment_service import PaymentService

router = APIRouter(tags=["payments"])


@router.post("/payments", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
def record_payment(
    payload: PaymentCreateRequest,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> PaymentResponse:
    try:
        ctx = authorize(authorization, ["payments.record"], db, target_scope_id=payload.scope_id)
    except Exception as exc:
        code, detail = map_auth_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    try:
        payment = PaymentService(db=db).record_payment(
            ctx.scope,
            collector_id=ctx.actor_id,
            subscriber_id=payload.subscriber_id,
            bill_id=payload.bill_id,
            paid_amount=payload.paid_amount,
            payment_mode=payload.payment_mode,
            transaction_ref=payload.transaction_ref,
            notes=payload.notes,
        )
    except CableLedgerException as exc:
        code, detail = map_domain_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc
    return PaymentResponse.model_validate(payment)


@router.get("/payments")
def list_payments(
    subscriber_id: int | None = Query(default=None, ge=1),
    payment_mode: str | None = Query(default=None),
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
    scope_id: int | None = Query(default=None, ge=1),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    try:
        ctx = authorize(authorization, ["payments.read"], db, target_scope_id=scope_id)
    except Exception as exc:
        code, detail = map_auth_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    try:
        rows, total = PaymentService(db=db).list_payments(
            ctx.scope,
            subscriber_id=subscriber_id,
            payment_mode=payment_mode,
            start=start,
            end=end,
            limit=limit,
            offset=offset,
        )
    except CableLedgerException as exc:
        code, detail = map_domain_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    return {
        "items": [PaymentResponse.model_validate(row).model_dump() for row in rows],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


@router.get("/payments/stats", response_model=PaymentStatsResponse)
def payment_stats(
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
    scope_id: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> PaymentStatsResponse:
    try:
        ctx = authorize(authorization, ["payments.read"], db, target_scope_id=scope_id)
    except Exception as exc:
        code, detail = map_auth_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    try:
        stats = PaymentService(db=db).payment_stats(ctx.scope, start=start, end=end)
    except CableLedgerException as exc:
        code, detail = map_domain_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc
    return PaymentStatsResponse(**stats)


@router.get("/payments/{payment_id}", response_model=PaymentResponse)
def get_payment(
    payment_id: int,
    scope_id: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> PaymentResponse:
    try:
        ctx = authorize(authorization, ["payments.read"], db, target_scope_id=scope_id)
    except Exception as exc:
        code, detail = map_auth_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    try:
        payment = PaymentService(db=db).get_payment(ctx.scope, payment_id)
    except CableLedgerException as exc:
        code, detail = map_domain_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc
    return PaymentResponse.model_validate(payment)


@router.patch("/payments/{payment_id}/delivery", response_model=PaymentResponse)
def update_payment_delivery(
    payment_id: int,
    payload: PaymentDeliveryUpdateRequest,
    scope_id: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> PaymentResponse:
    try:
        ctx = authorize(authorization, ["payments.delivery"], db, target_scope_id=scope_id)
    except Exception as exc:
        code, detail = map_auth_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    try:
        payment = PaymentService(db=db).update_delivery_status(
            ctx.scope,
            payment_id,
            actor_id=ctx.actor_id,
            receipt_sent=payload.receipt_sent,
            whatsapp_status=payload.whatsapp_status,
            whatsapp_message_id=payload.whatsapp_message_id,
        )
    except CableLedgerException as exc:
        code, detail = map_domain_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc
    return PaymentResponse.model_validate(payment)


@router.get("/subscribers/{subscriber_id}/payments")
def subscriber_payments(
    subscriber_id: int,
    scope_id: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    try:
        ctx = authorize(authorization, ["payments.read"], db, target_scope_id=scope_id)
    except Exception as exc:
        code, detail = map_auth_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    try:
        payments = PaymentService(db=db).payments_for_subscriber(ctx.scope, subscriber_id)
    except CableLedgerException as exc:
        code, detail = map_domain_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc
    return {
        "items": [PaymentResponse.model_validate(payment).model_dump() for payment in payments],
        "total": len(payments),
    }
