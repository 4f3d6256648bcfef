"""Database infrastructure helpers (engine, sessions, transactions)."""

from .base import Base
from .session import AsyncSessionFactory, dispose_engine, get_engine, get_session, get_session_factory, init_db
from .transaction import atomic

__all__ = [
    "Base",
    "AsyncSessionFactory",
    "atomic",
    "dispose_engine",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_db",
]
