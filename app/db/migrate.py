"""
Schema management at startup.

RUN_MIGRATIONS=1 runs Alembic to head; otherwise tables are created straight
from the models (local SQLite, tests).
"""
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from app.core import config as app_config

logger = logging.getLogger(__name__)

# Shared by every API instance; only one may migrate at a time
ADVISORY_LOCK_ID = 48151623

ALEMBIC_INI = Path(__file__).resolve().parents[2] / "alembic.ini"


def alembic_config(database_url: str) -> Config:
    cfg = Config(str(ALEMBIC_INI))
    cfg.set_main_option("script_location", str(ALEMBIC_INI.parent / "alembic"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    cfg.attributes["configure_logger"] = False
    return cfg


@contextmanager
def migration_lock(engine: Engine):
    """Hold a PostgreSQL session advisory lock; no-op on other dialects."""
    if engine.dialect.name != "postgresql":
        yield
        return

    with engine.connect() as conn:
        conn.execute(text("SELECT pg_advisory_lock(:lock_id)"), {"lock_id": ADVISORY_LOCK_ID})
        conn.commit()
        logger.info(f"Migration lock acquired: lock_id={ADVISORY_LOCK_ID}")
        try:
            yield
        finally:
            conn.execute(text("SELECT pg_advisory_unlock(:lock_id)"), {"lock_id": ADVISORY_LOCK_ID})
            conn.commit()


def run_migrations(database_url: Optional[str] = None) -> None:
    """
    Upgrade the schema to the head revision.

    Raises:
        ValueError: no database configured
    """
    database_url = database_url or app_config.DATABASE_URL
    if not database_url:
        raise ValueError("DATABASE_URL is not set")

    engine = create_engine(database_url, pool_pre_ping=True)
    try:
        with migration_lock(engine):
            logger.info("Running alembic upgrade head")
            command.upgrade(alembic_config(database_url), "head")
    except Exception:
        logger.exception("Migration failed")
        raise
    finally:
        engine.dispose()

    logger.info("Migrations complete")


def prepare_database() -> None:
    """Startup hook: migrate or create tables depending on RUN_MIGRATIONS."""
    if app_config.RUN_MIGRATIONS:
        run_migrations()
        return

    from app.db.init_db import init_db
    init_db()
    logger.info("Tables created from models (RUN_MIGRATIONS not set)")
