"""
=============================================================================
Database Initialization for Saved Result Datasets
=============================================================================

Creates the SQLite database and tables if they don't exist.

Usage:
    from init_db import init_database
    session = init_database('result_datasets.db')
=============================================================================
"""

import logging
import os

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from config import DEFAULT_DB_PATH
from models import Base

logger = logging.getLogger(__name__)


def _engine_url(db_path: str) -> str:
    if db_path == ':memory:':
        return 'sqlite://'
    return f'sqlite:///{db_path}'


def init_database(db_path: str = DEFAULT_DB_PATH) -> Session:
    """
    Initialize database and create tables if they don't exist.

    Args:
        db_path: Path to SQLite database file (":memory:" for a throwaway one)

    Returns:
        SQLAlchemy session object
    """
    engine = create_engine(_engine_url(db_path), echo=False)
    Base.metadata.create_all(engine)

    location = db_path if db_path == ':memory:' else os.path.abspath(db_path)
    logger.info(f"Database initialized: {location}")
    logger.debug(f"Tables: {', '.join(Base.metadata.tables)}")

    SessionFactory = sessionmaker(bind=engine)
    return SessionFactory()


def get_database_session(db_path: str = DEFAULT_DB_PATH) -> Session:
    """
    Get database session (without recreating tables).

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session object
    """
    engine = create_engine(_engine_url(db_path), echo=False)
    SessionFactory = sessionmaker(bind=engine)
    return SessionFactory()


if __name__ == '__main__':
    import sys

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

    db_path = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_DB_PATH

    print("=" * 70)
    print("Database Initialization")
    print("=" * 70)
    print()

    session = init_database(db_path)
    session.close()

    print()
    print("✓ Database ready for use")
    print()
