"""Bring the ledger schema up to the latest Alembic revision.

Run as `python -m cableledger.database.init_db`. A failed upgrade is logged with
the revision the database was left at and re-raised; ledger files are never
moved aside or recreated automatically.
"""

from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config as AlembicConfig
from alembic.runtime.migration import MigrationContext

from cableledger.core.startup import bootstrap
from cableledger.database import db as db_module

logger = logging.getLogger(__name__)
PROJECT_ROOT = Path(__file__).resolve().parents[2]


def build_alembic_config(database_url: str) -> AlembicConfig:
    cfg = AlembicConfig(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg


def current_revision() -> str | None:
    """Return the revision stamped on the active database, if any."""
    with db_module.get_engine().connect() as conn:
        return MigrationContext.configure(conn).get_current_revision()


def init_db() -> str | None:
    bootstrap()
    active_url = db_module.get_active_database_url()
    scheme = active_url.split("://", 1)[0]
    starting_revision = current_revision()
    try:
        command.upgrade(build_alembic_config(active_url), "head")
    except Exception:
        logger.exception(
            "database.schema.upgrade_failed",
            extra={
                "event": "database.schema.upgrade_failed",
                "database_url_scheme": scheme,
                "from_revision": starting_revision,
                "at_revision": current_revision(),
            },
        )
        raise

    revision = current_revision()
    logger.info(
        "database.schema.upgraded",
        extra={
            "event": "database.schema.upgraded",
            "database_url_scheme": scheme,
            "from_revision": starting_revision,
            "to_revision": revision,
        },
    )
    return revision


if __name__ == "__main__":
    init_db()
