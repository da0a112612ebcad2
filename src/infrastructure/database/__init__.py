"""Persistence context bound into request handlers.

Handlers that need the database declare ``db: DatabaseSession``; everything
else in Relay runs without a database connection.
"""

from src.infrastructure.database.dependencies import DatabaseSession, get_db
from src.infrastructure.database.session import (
    PersistenceContext,
    check_database_connection,
    close_database,
    get_async_session,
)

__all__ = [
    "DatabaseSession",
    "PersistenceContext",
    "check_database_connection",
    "close_database",
    "get_async_session",
    "get_db",
]
