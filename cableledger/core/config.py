"""Configuration module for the CableLedger application."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from urllib.parse import urlparse

from dotenv import load_dotenv

from cableledger.core.exceptions import ConfigurationError

load_dotenv()

PLACEHOLDER_JWT_SECRET = "change_me_jwt_secret"


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}.") from exc


def _as_decimal(name: str, default: str) -> Decimal:
    raw = os.getenv(name, default)
    try:
        return Decimal(raw)
    except InvalidOperation as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}.") from exc


@dataclass(frozen=True)
class Config:
    """Runtime configuration with validation."""

    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    DB_CONNECTIVITY_REQUIRED: bool
    JWT_SECRET: str
    JWT_ACCESS_TTL_MINUTES: int
    JWT_PERMISSIONS_VERSION: int
    REDIS_URL: str
    CELERY_BROKER_URL: str
    CELERY_RESULT_BACKEND: str
    CELERY_TASK_ALWAYS_EAGER: bool
    BILLING_DAY: int
    BILLING_HOUR: int
    BILLING_MINUTE: int
    BILLING_TIMEZONE: str
    RECEIPT_PREFIX: str
    SUBSCRIBER_CODE_PREFIX: str
    DEFAULT_PACKAGE_AMOUNT: Decimal
    API_HOST: str
    API_PORT: int
    API_PREFIX: str
    LOG_LEVEL: str
    LOG_FILE: str

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"


def _build_config(env: str | None = None) -> Config:
    resolved_env = (env or os.getenv("ENV", "development")).strip().lower()
    debug = _as_bool(os.getenv("DEBUG"), default=(resolved_env != "production"))
    redis_url = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    config = Config(
        APP_NAME="CableLedger",
        APP_VERSION=os.getenv("APP_VERSION", "1.0.0"),
        ENV=resolved_env,
        DEBUG=debug if resolved_env != "production" else False,
        DATABASE_URL=os.getenv("DATABASE_URL", "sqlite:///./cableledger.db"),
        DB_CONNECTIVITY_REQUIRED=_as_bool(os.getenv("DB_CONNECTIVITY_REQUIRED"), default=True),
        JWT_SECRET=os.getenv("JWT_SECRET", PLACEHOLDER_JWT_SECRET),
        JWT_ACCESS_TTL_MINUTES=_as_int("JWT_ACCESS_TTL_MINUTES", "60"),
        JWT_PERMISSIONS_VERSION=_as_int("JWT_PERMISSIONS_VERSION", "1"),
        REDIS_URL=redis_url,
        CELERY_BROKER_URL=os.getenv("CELERY_BROKER_URL", redis_url),
        CELERY_RESULT_BACKEND=os.getenv("CELERY_RESULT_BACKEND", redis_url),
        CELERY_TASK_ALWAYS_EAGER=_as_bool(os.getenv("CELERY_TASK_ALWAYS_EAGER"), default=False),
        BILLING_DAY=_as_int("BILLING_DAY", "1"),
        BILLING_HOUR=_as_int("BILLING_HOUR", "0"),
        BILLING_MINUTE=_as_int("BILLING_MINUTE", "1"),
        BILLING_TIMEZONE=os.getenv("BILLING_TIMEZONE", "UTC"),
        RECEIPT_PREFIX=os.getenv("RECEIPT_PREFIX", "RCP"),
        SUBSCRIBER_CODE_PREFIX=os.getenv("SUBSCRIBER_CODE_PREFIX", "CUST"),
        DEFAULT_PACKAGE_AMOUNT=_as_decimal("DEFAULT_PACKAGE_AMOUNT", "250"),
        API_HOST=os.getenv("API_HOST", "0.0.0.0"),
        API_PORT=_as_int("API_PORT", "8000"),
        API_PREFIX=os.getenv("API_PREFIX", "/api/v1"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        LOG_FILE=os.getenv("LOG_FILE", "cableledger.log"),
    )
    _validate_config(config)
    return config


def _validate_database_url(database_url: str) -> None:
    parsed = urlparse(database_url)
    if parsed.scheme not in {"sqlite", "postgresql", "postgresql+psycopg", "postgresql+psycopg2"}:
        raise ConfigurationError(
            "DATABASE_URL must use sqlite:// or postgresql:// style URL."
        )
    if parsed.scheme.startswith("postgresql") and not parsed.hostname:
        raise ConfigurationError("PostgreSQL DATABASE_URL is missing hostname.")


def _validate_config(config: Config) -> None:
    _validate_database_url(config.DATABASE_URL)

    if config.JWT_ACCESS_TTL_MINUTES < 1:
        raise ConfigurationError("JWT_ACCESS_TTL_MINUTES must be >= 1.")
    # Day 29-31 would silently skip short months.
    if not 1 <= config.BILLING_DAY <= 28:
        raise ConfigurationError("BILLING_DAY must be between 1 and 28.")
    if not 0 <= config.BILLING_HOUR <= 23:
        raise ConfigurationError("BILLING_HOUR must be between 0 and 23.")
    if not 0 <= config.BILLING_MINUTE <= 59:
        raise ConfigurationError("BILLING_MINUTE must be between 0 and 59.")
    if config.DEFAULT_PACKAGE_AMOUNT < 0:
        raise ConfigurationError("DEFAULT_PACKAGE_AMOUNT must be >= 0.")
    if not config.RECEIPT_PREFIX.strip():
        raise ConfigurationError("RECEIPT_PREFIX must not be empty.")
    if config.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError("LOG_LEVEL must be one of DEBUG/INFO/WARNING/ERROR/CRITICAL.")
    if config.is_production and config.JWT_SECRET == PLACEHOLDER_JWT_SECRET:
        raise ConfigurationError("Production JWT_SECRET uses the placeholder value.")
    if config.is_production and "change_me" in config.DATABASE_URL.lower():
        raise ConfigurationError("Production DATABASE_URL uses placeholder credentials.")
    if config.is_production and not config.DB_CONNECTIVITY_REQUIRED:
        raise ConfigurationError("Production requires DB_CONNECTIVITY_REQUIRED=true.")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Get validated configuration for the requested environment."""
    return _build_config(env)
