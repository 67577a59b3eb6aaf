"""SQLite-backed user and private user data repositories."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from typing import TYPE_CHECKING

import structlog

from shared.dal.exceptions import ConcurrentUpdateError
from shared.dal.models import PrivateUserData, User
from shared.dal.user_repository import PrivateUserDataRepository, UserRepository

if TYPE_CHECKING:
    from shared.dal.models import Game
    from shared.db.connection import Database

logger = structlog.get_logger()


class SqliteUserRepository(UserRepository):
    """SQLite implementation of UserRepository.

    Relies on database uniqueness constraints and maps IntegrityError
    to domain ValueError.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def create_user(self, user: User) -> None:
        """Insert a user. Raises ValueError on duplicate steam_id or api_key_hash."""
        async with self._lock:
            try:
                self._db.connection.execute(
                    "INSERT INTO users (steam_id, api_key_hash, data) VALUES (?, ?, ?)",
                    (user.steam_id, user.api_key_hash, user.model_dump_json()),
                )
                self._db.connection.commit()
            except sqlite3.IntegrityError as exc:
                self._db.connection.rollback()
                error_msg = str(exc).lower()
                if "api_key_hash" in error_msg:
                    raise ValueError("API key hash already in use") from exc
                raise ValueError(f"User '{user.steam_id}' already exists") from exc

    async def get_user(self, steam_id: str) -> User | None:
        row = self._db.connection.execute(
            "SELECT data FROM users WHERE steam_id = ?",
            (steam_id,),
        ).fetchone()
        if row is None:
            return None
        return User.model_validate(json.loads(row[0]))

    async def save_user(self, user: User) -> None:
        """Overwrite an existing user record. Raises ValueError if the user is unknown."""
        async with self._lock:
            cursor = self._db.connection.execute(
                "UPDATE users SET api_key_hash = ?, data = ? WHERE steam_id = ?",
                (user.api_key_hash, user.model_dump_json(), user.steam_id),
            )
            self._db.connection.commit()
            if cursor.rowcount == 0:
                raise ValueError(f"User '{user.steam_id}' does not exist")

    async def get_by_api_key_hash(self, api_key_hash: str) -> User | None:
        row = self._db.connection.execute(
            "SELECT data FROM users WHERE api_key_hash = ?",
            (api_key_hash,),
        ).fetchone()
        if row is None:
            return None
        return User.model_validate(json.loads(row[0]))

    async def get_users_for_game(self, game: Game) -> list[User]:
        """Batch-load roster users and return them sorted by roster position."""
        steam_ids = [p.steam_id for p in game.players if p.steam_id]
        if not steam_ids:
            return []

        placeholders = ", ".join("?" for _ in steam_ids)
        rows = self._db.connection.execute(
            f"SELECT data FROM users WHERE steam_id IN ({placeholders})",  # noqa: S608
            steam_ids,
        ).fetchall()
        by_id = {u.steam_id: u for u in (User.model_validate(json.loads(row[0])) for row in rows)}

        missing = [sid for sid in steam_ids if sid not in by_id]
        if missing:
            logger.warning("roster references unknown users", game_id=game.game_id, steam_ids=missing)
        return [by_id[sid] for sid in steam_ids if sid in by_id]


class SqlitePrivateUserDataRepository(PrivateUserDataRepository):
    """SQLite implementation of PrivateUserDataRepository."""

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def get(self, steam_id: str) -> PrivateUserData:
        """Return stored data, or a fresh version-0 record if none exists yet."""
        row = self._db.connection.execute(
            "SELECT data FROM private_user_data WHERE steam_id = ?",
            (steam_id,),
        ).fetchone()
        if row is None:
            return PrivateUserData(steam_id=steam_id)
        return PrivateUserData.model_validate(json.loads(row[0]))

    async def save_versioned(self, data: PrivateUserData) -> PrivateUserData:
        """Insert (version 0) or compare-and-swap update; returns the stored record."""
        stored = data.model_copy(update={"version": data.version + 1})
        async with self._lock:
            conn = self._db.connection
            if data.version == 0:
                cursor = conn.execute(
                    "INSERT OR IGNORE INTO private_user_data (steam_id, version, data) VALUES (?, ?, ?)",
                    (stored.steam_id, stored.version, stored.model_dump_json()),
                )
            else:
                cursor = conn.execute(
                    "UPDATE private_user_data SET version = ?, data = ? WHERE steam_id = ? AND version = ?",
                    (stored.version, stored.model_dump_json(), stored.steam_id, data.version),
                )
            conn.commit()
            if cursor.rowcount == 0:
                raise ConcurrentUpdateError(
                    record="private_user_data",
                    key=data.steam_id,
                    expected_version=data.version,
                )
        return stored
