import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine
from tenacity import retry, stop_after_attempt, wait_fixed

from database.models import Base

logger = logging.getLogger(__name__)


@retry(stop=stop_after_attempt(5), wait=wait_fixed(2), reraise=True)
def init_db(target: Optional[Engine] = None) -> None:
    """Create all tables, retrying while the database container comes up."""
    if target is None:
        from database.database import engine as target

    logger.info("Initializing database...")
    try:
        with target.connect() as connection:
            connection.execute(text("SELECT 1"))
        Base.metadata.create_all(bind=target)
        logger.info("Tables created or verified.")
    except Exception as e:
        logger.error(f"Error initializing DB: {e}")
        raise
