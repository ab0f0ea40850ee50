from .base import Base
from .database import check_schema, db_session, init_db, make_engine, make_session_factory, shutdown_db

__all__ = ['Base', 'check_schema', 'db_session', 'init_db', 'make_engine', 'make_session_factory', 'shutdown_db']
