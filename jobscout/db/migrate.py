"""
Alembic migration runner used at startup when RUN_MIGRATIONS=1.
"""
import logging
from contextlib import contextmanager
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from jobscout.core import config as app_config

logger = logging.getLogger(__name__)

ALEMBIC_INI = Path(__file__).resolve().parents[2] / "alembic.ini"

# Shared by every replica so only one of them migrates at a time
ADVISORY_LOCK_ID = 987654321


@contextmanager
def _migration_lock(engine: Engine):
    """Hold a Postgres advisory lock; other backends migrate unlocked."""
    if engine.dialect.name != "postgresql":
        yield
        return

    with engine.connect() as conn:
        conn.execute(text("SELECT pg_advisory_lock(:lock_id)"), {"lock_id": ADVISORY_LOCK_ID})
        conn.commit()
        logger.info("Migration lock acquired")
        try:
            yield
        finally:
            conn.execute(text("SELECT pg_advisory_unlock(:lock_id)"), {"lock_id": ADVISORY_LOCK_ID})
            conn.commit()
            logger.info("Migration lock released")


def run_migrations() -> None:
    """Upgrade the configured database to the head revision."""
    if not app_config.DATABASE_URL:
        raise ValueError("DATABASE_URL is not set")

    alembic_cfg = Config(str(ALEMBIC_INI))
    alembic_cfg.set_main_option("sqlalchemy.url", app_config.DATABASE_URL)

    engine = create_engine(app_config.DATABASE_URL, pool_pre_ping=True)
    try:
        with _migration_lock(engine):
            logger.info("Running alembic upgrade head")
            command.upgrade(alembic_cfg, "head")
        logger.info("Migrations complete")
    except Exception:
        logger.exception("Migration failed")
        raise
    finally:
        engine.dispose()
