"""Database migration utilities using Alembic."""
from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext

from .config import settings
from .db import make_engine

logger = logging.getLogger(__name__)

BACKEND_DIR = Path(__file__).resolve().parent.parent.parent


def get_alembic_config(db_url: str | None = None) -> Config:
    alembic_ini_path = BACKEND_DIR / "alembic.ini"
    if not alembic_ini_path.exists():
        raise FileNotFoundError(f"alembic.ini not found at {alembic_ini_path}")

    cfg = Config(str(alembic_ini_path))
    cfg.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    cfg.set_main_option("sqlalchemy.url", db_url or settings.DB_URL)
    # keep the app's logging setup when migrating on startup
    cfg.attributes["configure_logger"] = False
    return cfg


def run_migrations(db_url: str | None = None) -> None:
    """Upgrade the database to the latest revision."""
    try:
        logger.info("Running database migrations...")
        command.upgrade(get_alembic_config(db_url), "head")
        logger.info("Database migrations completed successfully")
    except Exception as e:
        logger.error(f"Error running migrations: {e}")
        raise


def stamp_database(revision: str = "head", db_url: str | None = None) -> None:
    """
    Mark an existing database as being at ``revision`` without running SQL,
    e.g. for a schema created earlier by ``create_all``.
    """
    try:
        logger.info(f"Stamping database with revision: {revision}")
        command.stamp(get_alembic_config(db_url), revision)
        logger.info(f"Database stamped successfully with revision: {revision}")
    except Exception as e:
        logger.error(f"Error stamping database: {e}")
        raise


def get_current_revision(db_url: str | None = None) -> str | None:
    engine = make_engine(db_url or settings.DB_URL)
    try:
        with engine.connect() as connection:
            return MigrationContext.configure(connection).get_current_revision()
    finally:
        engine.dispose()
