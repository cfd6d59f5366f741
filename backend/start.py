"""Startup script for production deployment.

On a fresh database (no tables), creates all tables from models and stamps
Alembic to head. On an existing database, runs Alembic migrations normally.
"""

import logging
import subprocess
import sys

from sqlalchemy import inspect

from app.core.config import get_settings
from app.core.logging_config import configure_logging
from app.db.base import Base
from app.db.session import engine
from app import models  # noqa: F401

logger = logging.getLogger("start")


def main():
    configure_logging(get_settings())
    inspector = inspect(engine)
    tables = inspector.get_table_names()

    if "tasks" not in tables:
        logger.info("Fresh database detected, creating all tables")
        Base.metadata.create_all(bind=engine)
        logger.info("Tables created, stamping Alembic to head")
        subprocess.check_call([sys.executable, "-m", "alembic", "stamp", "head"])
    else:
        logger.info("Existing database, running migrations")
        subprocess.check_call([sys.executable, "-m", "alembic", "upgrade", "head"])
    logger.info("Database ready")


if __name__ == "__main__":
    main()
