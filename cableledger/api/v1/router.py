"""Root API router for v1 endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from cableledger.api.v1 import bills, health, payments, subscribers
from cableledger.core.config import get_config

api_router = APIRouter(prefix=get_config().API_PREFIX)
api_router.include_router(health.router)
api_router.include_router(subscribers.router)
api_router.include_router(bills.router)
api_router.include_router(payments.router)


def get_api_router() -> APIRouter:
    return api_router
