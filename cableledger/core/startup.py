"""Startup validation and bootstrap helpers."""

from __future__ import annotations

import logging

from cableledger.core.config import PLACEHOLDER_JWT_SECRET, get_config
from cableledger.core.logging_config import configure_logging
from cableledger.database.db import get_active_database_url, verify_database_connection

logger = logging.getLogger(__name__)


def validate_startup_config() -> None:
    """Fail fast on configuration and connectivity problems."""
    config = get_config()
    database_ok = verify_database_connection()
    active_database_url = get_active_database_url()
    if not database_ok and config.DB_CONNECTIVITY_REQUIRED:
        raise RuntimeError("Database connectivity check failed.")
    if not database_ok:
        logger.warning(
            "startup.database.connectivity_optional_failed",
            extra={"event": "startup.database.connectivity_optional_failed"},
        )

    if config.is_production and active_database_url.startswith("sqlite"):
        # SQLite ignores row locks, so concurrent collectors are not serialised.
        logger.warning(
            "startup.production.sqlite_detected",
            extra={"event": "startup.production.sqlite_detected"},
        )
    if config.JWT_SECRET == PLACEHOLDER_JWT_SECRET:
        logger.warning("startup.jwt.placeholder_secret", extra={"event": "startup.jwt.placeholder_secret"})

    logger.info(
        "startup.config.validated",
        extra={
            "event": "startup.config.validated",
            "env": config.ENV,
            "database_url_scheme": active_database_url.split("://", 1)[0],
            "db_connectivity_required": config.DB_CONNECTIVITY_REQUIRED,
            "billing_schedule": f"day={config.BILLING_DAY} {config.BILLING_HOUR:02d}:{config.BILLING_MINUTE:02d}"
            f" {config.BILLING_TIMEZONE}",
        },
    )


def bootstrap() -> None:
    """Initialize logging and validate runtime configuration."""
    configure_logging()
    validate_startup_config()
