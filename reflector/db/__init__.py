"""Database layer for reflector."""

from reflector.db.connection import SessionFactory, close_db, get_engine, get_session, init_db

__all__ = [
    "SessionFactory",
    "close_db",
    "get_engine",
    "get_session",
    "init_db",
]
