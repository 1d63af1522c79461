import logging

from app.core.config import settings
from app.core.database import Database, ProbeContext, status_check
from app.core.db import db
from app.core.logging import configure_logging

logger = logging.getLogger(__name__)


def init(database: Database) -> None:
    """Block until *database* answers, or DB_PRE_START_TIMEOUT runs out."""
    ctx = ProbeContext(timeout=settings.DB_PRE_START_TIMEOUT)
    try:
        status_check(ctx, database)
    except Exception as e:
        logger.error("Database not ready: %s", e)
        raise


def main() -> None:
    configure_logging()
    logger.info("Initializing service", extra={"db_name": db.name})
    init(db)
    logger.info("Service finished initializing")


if __name__ == "__main__":
    main()
