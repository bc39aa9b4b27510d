"""Bill generation and bill read endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from cableledger.api.v1._authz import authorize, map_auth_error, map_domain_error
from cableledger.core.dependencies import get_db_session
from cableledger.core.exceptions import CableLedgerException
from cableledger.schemas.bills import (
    BillGenerateRequest,
    BillResponse,
    BillStatsResponse,
    GenerationItemResponse,
    GenerationResponse,
)
from cableledger.services.bill_generator import BillGenerator

router = APIRouter(tags=["bills"])


@router.post("/bills/generate", response_model=GenerationResponse)
def generate_bills(
    payload: BillGenerateRequest,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> GenerationResponse:
    try:
        ctx = authorize(authorization, ["bills.generate"], db, target_scope_id=payload.scope_id)
    except Exception as exc:
        code, detail = map_auth_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    try:
        result = BillGenerator(db=db).generate(ctx.scope, payload.month, payload.year, actor_id=ctx.actor_id)
    except CableLedgerException as exc:
        code, detail = map_domain_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    return GenerationResponse(
        scope_id=result.scope_id,
        month=result.period.month,
        year=result.period.year,
        created=[GenerationItemResponse.model_validate(item) for item in result.created],
        skipped=[GenerationItemResponse.model_validate(item) for item in result.skipped],
        failed=[GenerationItemResponse.model_validate(item) for item in result.failed],
    )


@router.get("/bills")
def list_bills(
    month: str | None = Query(default=None),
    year: int | None = Query(default=None),
    bill_status: str | None = Query(default=None, alias="status"),
    subscriber_id: int | None = Query(default=None, ge=1),
    scope_id: int | None = Query(default=None, ge=1),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    try:
        ctx = authorize(authorization, ["bills.read"], db, target_scope_id=scope_id)
    except Exception as exc:
        code, detail = map_auth_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    try:
        rows, total = BillGenerator(db=db).list_bills(
            ctx.scope,
            month=month,
            year=year,
            status=bill_status,
            subscriber_id=subscriber_id,
            limit=limit,
            offset=offset,
        )
    except CableLedgerException as exc:
        code, detail = map_domain_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    return {
        "items": [BillResponse.model_validate(row).model_dump() for row in rows],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


@router.get("/bills/stats", response_model=BillStatsResponse)
def bill_stats(
    month: str | None = Query(default=None),
    year: int | None = Query(default=None),
    scope_id: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> BillStatsResponse:
    try:
        ctx = authorize(authorization, ["bills.read"], db, target_scope_id=scope_id)
    except Exception as exc:
        code, detail = map_auth_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    try:
        stats = BillGenerator(db=db).bill_stats(ctx.scope, month=month, year=year)
    except CableLedgerException as exc:
        code, detail = map_domain_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc
    return BillStatsResponse(**stats)


@router.get("/bills/{bill_id}", response_model=BillResponse)
def get_bill(
    bill_id: int,
    scope_id: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> BillResponse:
    try:
        ctx = authorize(authorization, ["bills.read"], db, target_scope_id=scope_id)
    except Exception as exc:
        code, detail = map_auth_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    try:
        bill = BillGenerator(db=db).get_bill(ctx.scope, bill_id)
    except CableLedgerException as exc:
        code, detail = map_domain_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc
    return BillResponse.model_validate(bill)


@router.get("/subscribers/{subscriber_id}/bills")
def subscriber_bills(
    subscriber_id: int,
    scope_id: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    try:
        ctx = authorize(authorization, ["bills.read"], db, target_scope_id=scope_id)
    except Exception as exc:
        code, detail = map_auth_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    try:
        bills = BillGenerator(db=db).bills_for_subscriber(ctx.scope, subscriber_id)
    except CableLedgerException as exc:
        code, detail = map_domain_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc
    return {"items": [BillResponse.model_validate(bill).model_dump() for bill in bills], "total": len(bills)}
