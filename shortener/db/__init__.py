"""
Database module with abstraction layer.

This module provides:
- DatabaseAdapter interface: Abstract base class for database implementations
- SQLiteAdapter: SQLite-specific implementation (default)
- Session management: Database session creation and management
"""

from shortener.db.interface import DatabaseAdapter
from shortener.db.session import get_session, async_session_maker, engine, make_session_maker

__all__ = [
    "DatabaseAdapter",
    "get_session",
    "async_session_maker",
    "engine",
    "make_session_maker",
]
