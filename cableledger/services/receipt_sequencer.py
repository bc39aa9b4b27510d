"""Receipt and subscriber-code sequencing backed by atomic counter rows."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from cableledger.core.config import get_config
from cableledger.core.exceptions import ConfigurationError
from cableledger.models import SequenceCounter
from cableledger.services.base_service import BaseService

_INSERT_BUILDERS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def receipt_counter_key(stem: str) -> str:
    return f"receipt:{stem}"


def subscriber_counter_key(scope_id: int) -> str:
    return f"subscriber:scope:{int(scope_id)}"


def receipt_stem(prefix: str, at: datetime) -> str:
    return f"{prefix}{at:%y}{at:%m}"


def format_receipt_id(prefix: str, at: datetime, sequence: int) -> str:
    """RCP + YY + MM + 6-digit sequence, e.g. RCP2401000007."""
    return f"{receipt_stem(prefix, at)}{sequence:06d}"


class ReceiptSequencer(BaseService):
    """Draws values from per-key counters inside the caller's transaction.

    Never commits: the drawn value becomes durable only if the caller's
    unit of work commits, and a rollback returns it to the counter.
    """

    def __init__(self, db: Session | None = None, receipt_prefix: str | None = None,
                 subscriber_code_prefix: str | None = None) -> None:
        super().__init__(db)
        cfg = get_config()
        self.receipt_prefix = receipt_prefix or cfg.RECEIPT_PREFIX
        self.subscriber_code_prefix = subscriber_code_prefix or cfg.SUBSCRIBER_CODE_PREFIX

    def next_value(self, key: str) -> int:
        """Atomically advance the counter for `key` and return the new value."""
        self._ensure_counter(key)
        self.db.execute(
            update(SequenceCounter)
            .where(SequenceCounter.key == key)
            .values(value=SequenceCounter.value + 1)
            .execution_options(synchronize_session=False)
        )
        # The UPDATE holds the row (or database) write lock until the caller commits.
        return int(self.db.execute(select(SequenceCounter.value).where(SequenceCounter.key == key)).scalar_one())

    def next_receipt_id(self, at: datetime | None = None) -> str:
        """Draw the next receipt id from the shared counter for its prefix and month."""
        at = at or datetime.now(timezone.utc)
        sequence = self.next_value(receipt_counter_key(receipt_stem(self.receipt_prefix, at)))
        return format_receipt_id(self.receipt_prefix, at, sequence)

    def next_subscriber_code(self, scope_id: int) -> str:
        sequence = self.next_value(subscriber_counter_key(scope_id))
        return f"{self.subscriber_code_prefix}{sequence:06d}"

    def _ensure_counter(self, key: str) -> None:
        dialect = self.db.get_bind().dialect.name
        builder = _INSERT_BUILDERS.get(dialect)
        if builder is None:
            raise ConfigurationError(f"Sequence counters are not supported on {dialect!r}.")
        self.db.execute(
            builder(SequenceCounter)
            .values(key=key, value=0)
            .on_conflict_do_nothing(index_elements=["key"])
        )
