from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from cableledger.models import Base, TenantRole
from tests.factories import RecordingAudit, make_tenant


@pytest.fixture
def engine(tmp_path):
    # File-backed so audit writes and concurrent sessions get their own connections.
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ledger_test.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture
def audit():
    return RecordingAudit()


@pytest.fixture
def owner(session):
    return make_tenant(session, "Platform Owner", TenantRole.OWNER)


@pytest.fixture
def tenant_a(session):
    return make_tenant(session, "Tenant A", TenantRole.TENANT_ADMIN)


@pytest.fixture
def tenant_b(session):
    return make_tenant(session, "Tenant B", TenantRole.TENANT_ADMIN)


@pytest.fixture
def operator_a(session, tenant_a):
    return make_tenant(session, "Operator A", TenantRole.OPERATOR, parent=tenant_a)
