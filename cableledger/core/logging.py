"""Structured logging helpers for ledger operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class LogContext:
    """Normalized context fields expected in structured logs."""

    scope_id: int | None = None
    actor_id: int | None = None
    subscriber_id: int | None = None
    bill_id: int | None = None
    trace_id: str | None = None


def build_log_event(event: str, context: LogContext, **fields: Any) -> dict[str, Any]:
    """Build the `extra=` payload for a structured log line."""
    payload: dict[str, Any] = {
        "event": event,
        "scope_id": context.scope_id,
        "actor_id": context.actor_id,
        "subscriber_id": context.subscriber_id,
        "bill_id": context.bill_id,
        "trace_id": context.trace_id,
    }
    payload.update(fields)
    return payload
