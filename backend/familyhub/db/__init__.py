"""Database utilities for the household backend."""

from .base import Base, TimestampMixin
from .session import Database, get_database, get_session_dependency

__all__ = [
    "Base",
    "Database",
    "TimestampMixin",
    "get_database",
    "get_session_dependency",
]
