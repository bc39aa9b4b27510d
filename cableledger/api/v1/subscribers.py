"""Subscriber registry endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.orm import Session

from cableledger.api.v1._authz import authorize, map_auth_error, map_domain_error
from cableledger.core.dependencies import get_db_session
from cableledger.core.exceptions import CableLedgerException
from cableledger.schemas.subscribers import (
    SubscriberCreateRequest,
    SubscriberResponse,
    SubscriberStatsResponse,
    SubscriberUpdateRequest,
)
from cableledger.services.subscriber_service import SubscriberService

router = APIRouter(tags=["subscribers"])


@router.post("/subscribers", response_model=SubscriberResponse, status_code=status.HTTP_201_CREATED)
def create_subscriber(
    payload: SubscriberCreateRequest,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> SubscriberResponse:
    try:
        ctx = authorize(authorization, ["subscribers.write"], db, target_scope_id=payload.scope_id)
    except Exception as exc:
        code, detail = map_auth_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    try:
        subscriber = SubscriberService(db=db).create_subscriber(
            ctx.scope,
            actor_id=ctx.actor_id,
            **payload.model_dump(exclude={"scope_id"}),
        )
    except CableLedgerException as exc:
        code, detail = map_domain_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc
    return SubscriberResponse.model_validate(subscriber)


@router.get("/subscribers")
def list_subscribers(
    subscriber_status: str | None = Query(default=None, alias="status"),
    area: str | None = Query(default=None),
    search: str | None = Query(default=None),
    scope_id: int | None = Query(default=None, ge=1),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    try:
        ctx = authorize(authorization, ["subscribers.read"], db, target_scope_id=scope_id)
    except Exception as exc:
        code, detail = map_auth_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    try:
        rows, total = SubscriberService(db=db).list_subscribers(
            ctx.scope,
            status=subscriber_status,
            area=area,
            search=search,
            limit=limit,
            offset=offset,
        )
    except CableLedgerException as exc:
        code, detail = map_domain_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    return {
        "items": [SubscriberResponse.model_validate(row).model_dump() for row in rows],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


@router.get("/subscribers/stats", response_model=SubscriberStatsResponse)
def subscriber_stats(
    scope_id: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> SubscriberStatsResponse:
    try:
        ctx = authorize(authorization, ["subscribers.read"], db, target_scope_id=scope_id)
    except Exception as exc:
        code, detail = map_auth_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    return SubscriberStatsResponse(**SubscriberService(db=db).subscriber_stats(ctx.scope))


@router.get("/subscribers/{subscriber_id}", response_model=SubscriberResponse)
def get_subscriber(
    subscriber_id: int,
    scope_id: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> SubscriberResponse:
    try:
        ctx = authorize(authorization, ["subscribers.read"], db, target_scope_id=scope_id)
    except Exception as exc:
        code, detail = map_auth_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    try:
        subscriber = SubscriberService(db=db).get_subscriber(ctx.scope, subscriber_id)
    except CableLedgerException as exc:
        code, detail = map_domain_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc
    return SubscriberResponse.model_validate(subscriber)


@router.patch("/subscribers/{subscriber_id}", response_model=SubscriberResponse)
def update_subscriber(
    subscriber_id: int,
    payload: SubscriberUpdateRequest,
    scope_id: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> SubscriberResponse:
    try:
        ctx = authorize(authorization, ["subscribers.write"], db, target_scope_id=scope_id)
    except Exception as exc:
        code, detail = map_auth_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    try:
        subscriber = SubscriberService(db=db).update_subscriber(
            ctx.scope,
            ctx.actor_id,
            subscriber_id,
            payload.model_dump(exclude_unset=True),
        )
    except CableLedgerException as exc:
        code, detail = map_domain_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc
    return SubscriberResponse.model_validate(subscriber)


@router.delete("/subscribers/{subscriber_id}")
def delete_subscriber(
    subscriber_id: int,
    scope_id: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    try:
        ctx = authorize(authorization, ["subscribers.delete"], db, target_scope_id=scope_id)
    except Exception as exc:
        code, detail = map_auth_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    try:
        SubscriberService(db=db).delete_subscriber(ctx.scope, ctx.actor_id, subscriber_id)
    except CableLedgerException as exc:
        code, detail = map_domain_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc
    return {"status": "deleted", "subscriber_id": subscriber_id}
