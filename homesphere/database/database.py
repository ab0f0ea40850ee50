import os
from contextlib import contextmanager
from typing import Optional

from loguru import logger
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .base import Base  # Use shared Base definition

EXPECTED_TABLES = {
    'households', 'users', 'rooms', 'devices',
    'usage_events', 'usage_intervals', 'scenes', 'scene_bindings'
}


def make_engine(database_url: str) -> Engine:
    """Create an engine; SQLite files get their directory, in-memory SQLite a shared pool"""
    url = make_url(database_url)
    if url.get_backend_name() != 'sqlite':
        return create_engine(database_url, pool_pre_ping=True)

    if url.database and url.database != ':memory:':
        directory = os.path.dirname(os.path.abspath(url.database))
        os.makedirs(directory, exist_ok=True, mode=0o755)
        logger.info(f"Database directory ensured: {directory}")
        return create_engine(database_url, connect_args={"check_same_thread": False})

    return create_engine(
        database_url,
        connect_args={"check_same_thread": False},  # SQLite specific
        poolclass=StaticPool
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


def init_db(engine: Engine):
    """Initialize database tables"""
    logger.info("init_db: Initializing database tables...")
    try:
        from homesphere.database import records  # noqa: F401  registers the mapped classes
        Base.metadata.create_all(bind=engine)
        logger.info("init_db: Database tables created")
    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        raise


def check_schema(engine: Engine) -> bool:
    """Compare the tables present in the database with the mapped ones"""
    inspector = inspect(engine)
    existing_tables = set(inspector.get_table_names())
    missing_tables = EXPECTED_TABLES - existing_tables

    if missing_tables:
        logger.error(f"Schema check failed. Missing tables: {missing_tables}")
        return False
    logger.info("All expected tables are present.")
    return True


@contextmanager
def db_session(session_factory: sessionmaker):
    """Proper context manager for database sessions"""
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception as e:
        logger.error(f"Database error: {e}")
        session.rollback()
        raise
    finally:
        session.close()


def shutdown_db(engine: Optional[Engine]):
    """Shutdown database connection"""
    if engine is None:
        return
    try:
        # Close the engine connection pool
        engine.dispose()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error(f"Error closing database connections: {str(e)}")
