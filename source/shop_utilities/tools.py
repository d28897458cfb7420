"""Module with utilities."""

import time
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.exc import OperationalError

from shop_utilities.models import Base
from shop_utilities.summaries import SummaryBase
from shop_utilities.logger import Logger

logger = Logger.get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(db_url: str, echo: bool = False) -> Engine:
    """Create an engine, enforcing foreign keys on SQLite."""
    engine = create_engine(db_url, echo=echo)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def wait_for_database(engine: Engine, max_retries: int, delay: int) -> bool:
    """Wait for the database to be available."""
    for i in range(max_retries):
        try:
            with engine.connect():
                logger.info("Successfully connected to the database")
                return True
        except OperationalError:
            logger.info(
                f"Waiting for the database to be available... ({i+1}/{max_retries})"
            )
            time.sleep(delay)
    logger.error("Failed to connect to the database after multiple attempts")
    return False


def create_schema(engine: Engine) -> None:
    """Create the five core tables with their constraints and indexes."""
    Base.metadata.create_all(engine, checkfirst=True)
    logger.info("Database tables created successfully")


def create_summary_schema(engine: Engine) -> None:
    """Create the denormalized and precomputed summary tables."""
    SummaryBase.metadata.create_all(engine, checkfirst=True)
    logger.info("Summary tables created successfully")
