import logging

from jobscout.db.base import Base

logger = logging.getLogger(__name__)


def init_db(bind=None):
    """Create all tables that do not exist yet."""
    from jobscout.db import models  # noqa: F401 - registers models on Base.metadata
    from jobscout.db.session import engine

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables ensured")
