"""SQLite database layer: connection management and repository implementations."""

from shared.db.connection import Database
from shared.db.game_repository import SqliteGameRepository, SqliteTurnRepository
from shared.db.user_repository import SqlitePrivateUserDataRepository, SqliteUserRepository

__all__ = [
    "Database",
    "SqliteGameRepository",
    "SqlitePrivateUserDataRepository",
    "SqliteTurnRepository",
    "SqliteUserRepository",
]
