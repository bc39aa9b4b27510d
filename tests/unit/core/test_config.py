from __future__ import annotations

from decimal import Decimal

import pytest

from cableledger.core import config as config_module
from cableledger.core.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def _fresh_config():
    config_module.get_config.cache_clear()
    yield
    config_module.get_config.cache_clear()


def test_defaults(monkeypatch):
    for name in ("BILLING_DAY", "RECEIPT_PREFIX", "DEFAULT_PACKAGE_AMOUNT", "SUBSCRIBER_CODE_PREFIX"):
        monkeypatch.delenv(name, raising=False)
    cfg = config_module.get_config("development")
    assert cfg.BILLING_DAY == 1
    assert cfg.RECEIPT_PREFIX == "RCP"
    assert cfg.SUBSCRIBER_CODE_PREFIX == "CUST"
    assert cfg.DEFAULT_PACKAGE_AMOUNT == Decimal("250")
    assert cfg.is_production is False


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("BILLING_DAY", "31"),
        ("BILLING_HOUR", "24"),
        ("BILLING_MINUTE", "-1"),
        ("BILLING_DAY", "first"),
        ("DEFAULT_PACKAGE_AMOUNT", "-10"),
        ("DEFAULT_PACKAGE_AMOUNT", "lots"),
        ("LOG_LEVEL", "chatty"),
        ("DATABASE_URL", "mysql://db/ledger"),
    ],
)
def test_invalid_values_fail_fast(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigurationError):
        config_module.get_config("development")


def test_production_refuses_placeholder_secret(monkeypatch):
    monkeypatch.delenv("DB_CONNECTIVITY_REQUIRED", raising=False)
    monkeypatch.delenv("JWT_SECRET", raising=False)
    with pytest.raises(ConfigurationError, match="JWT_SECRET"):
        config_module.get_config("production")

    monkeypatch.setenv("JWT_SECRET", "a-real-secret")
    monkeypatch.setenv("DATABASE_URL", "postgresql://ledger:pw@db:5432/ledger")
    assert config_module.get_config("production").DEBUG is False


def test_database_connectivity_is_required_by_default(monkeypatch):
    monkeypatch.delenv("DB_CONNECTIVITY_REQUIRED", raising=False)
    assert config_module.get_config("development").DB_CONNECTIVITY_REQUIRED is True


def test_production_refuses_optional_database(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "a-real-secret")
    monkeypatch.setenv("DATABASE_URL", "postgresql://ledger:pw@db:5432/ledger")
    monkeypatch.setenv("DB_CONNECTIVITY_REQUIRED", "false")
    with pytest.raises(ConfigurationError, match="DB_CONNECTIVITY_REQUIRED"):
        config_module.get_config("production")
