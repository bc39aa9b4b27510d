from __future__ import annotations

from sqlalchemy import UniqueConstraint

from cableledger.models import Base
import cableledger.models  # noqa: F401


def test_model_metadata_contains_ledger_tables():
    expected = {"tenants", "subscribers", "bills", "payments", "sequence_counters", "audit_logs"}
    assert expected.issubset(set(Base.metadata.tables.keys()))


def test_scope_column_is_required_on_ledger_tables():
    for table_name in ("subscribers", "bills", "payments"):
        column = Base.metadata.tables[table_name].c.scope_id
        assert column.nullable is False
        assert {fk.column.table.name for fk in column.foreign_keys} == {"tenants"}


def _unique_sets(table_name: str) -> set[tuple[str, ...]]:
    table = Base.metadata.tables[table_name]
    return {
        tuple(column.name for column in constraint.columns)
        for constraint in table.constraints
        if isinstance(constraint, UniqueConstraint)
    }


def test_uniqueness_is_scoped_not_global():
    assert ("scope_id", "subscriber_code") in _unique_sets("subscribers")
    assert ("scope_id", "phone_number") in _unique_sets("subscribers")
    assert ("subscriber_id", "month", "year") in _unique_sets("bills")


def test_receipt_ids_are_globally_unique():
    assert ("receipt_id",) in _unique_sets("payments")
