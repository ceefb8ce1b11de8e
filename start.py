"""Bring the configured database up to the current schema.

A database without the ``users`` table gets every table created from the
models and Alembic stamped at head; anything else is migrated with
``alembic upgrade head``.
"""

import logging
import subprocess
import sys

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from studyplan.core.config import get_settings
from studyplan.db.base import Base
from studyplan.db.session import engine
from studyplan.models import (  # noqa: F401
    Assessment, Availability, Course, PlanSummary, StudyBlock, User,
)

logger = logging.getLogger("studyplan.start")


def _alembic(*args: str) -> None:
    subprocess.check_call([sys.executable, "-m", "alembic", *args])


def prepare_database(bind: Engine = engine) -> str:
    """Create or migrate the schema; returns ``"created"`` or ``"migrated"``."""
    tables = inspect(bind).get_table_names()

    if "users" not in tables:
        logger.info(f"No planning tables on {bind.url.get_backend_name()}, creating schema")
        Base.metadata.create_all(bind=bind)
        _alembic("stamp", "head")
        logger.info("Schema created and stamped at head")
        return "created"

    logger.info(f"Found {len(tables)} tables, running migrations")
    _alembic("upgrade", "head")
    logger.info("Migrations complete")
    return "migrated"


def main() -> None:
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    prepare_database()


if __name__ == "__main__":
    main()
