"""Shared service base: one session per unit of work, storage errors translated."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from cableledger.core.exceptions import DatabaseError, DuplicateConflictError
from cableledger.database import db as db_module


class BaseService:
    """Base class for services that operate on a SQLAlchemy session."""

    def __init__(self, db: Session | None = None) -> None:
        self.db = db or db_module.get_session_factory()()

    def commit(self) -> None:
        """Commit current transaction, translating storage errors after rollback."""
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise DuplicateConflictError(_constraint_message(exc)) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise DatabaseError(str(exc)) from exc

    def rollback(self) -> None:
        self.db.rollback()


def _constraint_message(exc: IntegrityError) -> str:
    detail = str(getattr(exc, "orig", exc))
    return f"Uniqueness or integrity rule violated: {detail}"
