"""Celery application bootstrap."""

from __future__ import annotations

from celery import Celery
from celery.schedules import crontab

from cableledger.core.config import get_config

config = get_config()

celery_app = Celery(
    "cableledger",
    broker=config.CELERY_BROKER_URL,
    backend=config.CELERY_RESULT_BACKEND,
    include=["cableledger.tasks.billing_tasks"],
)
celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone=config.BILLING_TIMEZONE,
    enable_utc=True,
    task_track_started=True,
)

# Bills are generated once a month for every tenant scope.
celery_app.conf.beat_schedule = {
    "generate-monthly-bills": {
        "task": "billing.generate_monthly",
        "schedule": crontab(
            minute=config.BILLING_MINUTE,
            hour=config.BILLING_HOUR,
            day_of_month=config.BILLING_DAY,
        ),
    },
}

# Local/dev convenience: run tasks synchronously when requested.
if config.CELERY_TASK_ALWAYS_EAGER:
    celery_app.conf.task_always_eager = True
