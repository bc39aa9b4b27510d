"""Lifecycle hooks for queue task execution."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from cableledger.core.logging import LogContext, build_log_event


def before_task(task_key: str, context: dict[str, Any]) -> dict[str, Any]:
    """Build pre-task log payload."""
    return build_log_event(
        "task.start",
        LogContext(scope_id=context.get("scope_id"), trace_id=context.get("trace_id")),
        task_key=task_key,
        started_at=datetime.now(timezone.utc).isoformat(),
    )


def after_task(task_key: str, context: dict[str, Any], status: str, **fields: Any) -> dict[str, Any]:
    """Build post-task log payload."""
    return build_log_event(
        "task.finish",
        LogContext(scope_id=context.get("scope_id"), trace_id=context.get("trace_id")),
        task_key=task_key,
        status=status,
        finished_at=datetime.now(timezone.utc).isoformat(),
        **fields,
    )
