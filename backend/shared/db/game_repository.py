"""SQLite-backed game and turn repositories."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from typing import TYPE_CHECKING

import structlog

from shared.dal.exceptions import ConcurrentUpdateError
from shared.dal.game_repository import GameRepository, TurnRepository
from shared.dal.models import Game, GameTurn

if TYPE_CHECKING:
    from shared.db.connection import Database

logger = structlog.get_logger()


class SqliteGameRepository(GameRepository):
    """SQLite implementation of GameRepository.

    Stores full game snapshots as JSON with indexed columns for queries.
    Writes are conditional on the stored version so that a submission never
    overwrites a game another submission already advanced.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def create_game(self, game: Game) -> None:
        """Insert a game record. Raises ValueError on duplicate game_id."""
        async with self._lock:
            try:
                self._db.connection.execute(
                    "INSERT INTO games (id, version, current_player_steam_id, completed, data) VALUES (?, ?, ?, ?, ?)",
                    (
                        game.game_id,
                        game.version,
                        game.current_player_steam_id,
                        int(game.completed),
                        game.model_dump_json(),
                    ),
                )
                self._db.connection.commit()
            except sqlite3.IntegrityError as exc:
                self._db.connection.rollback()
                raise ValueError(f"Game with id '{game.game_id}' already exists") from exc

    async def get_game(self, game_id: str) -> Game | None:
        """Retrieve a single game by its id."""
        row = self._db.connection.execute(
            "SELECT data FROM games WHERE id = ?",
            (game_id,),
        ).fetchone()
        if row is None:
            return None
        return Game.model_validate(json.loads(row[0]))

    async def save_game(self, game: Game, expected_version: int) -> Game:
        """Compare-and-swap the game record on its version column."""
        stored = game.model_copy(update={"version": expected_version + 1})
        async with self._lock:
            cursor = self._db.connection.execute(
                "UPDATE games SET version = ?, current_player_steam_id = ?, completed = ?, data = ? "
                "WHERE id = ? AND version = ?",
                (
                    stored.version,
                    stored.current_player_steam_id,
                    int(stored.completed),
                    stored.model_dump_json(),
                    game.game_id,
                    expected_version,
                ),
            )
            self._db.connection.commit()
            if cursor.rowcount == 0:
                logger.warning("game save rejected, version moved on", game_id=game.game_id, version=expected_version)
                raise ConcurrentUpdateError(record="game", key=game.game_id, expected_version=expected_version)
        return stored


class SqliteTurnRepository(TurnRepository):
    """SQLite implementation of TurnRepository. Duplicate turns are rejected."""

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def create_turn(self, turn: GameTurn) -> None:
        """Insert a turn record. Raises ValueError if (game_id, turn) already exists."""
        async with self._lock:
            try:
                self._db.connection.execute(
                    "INSERT INTO game_turns (game_id, turn, data) VALUES (?, ?, ?)",
                    (turn.game_id, turn.turn, turn.model_dump_json()),
                )
                self._db.connection.commit()
            except sqlite3.IntegrityError as exc:
                self._db.connection.rollback()
                raise ValueError(f"Turn {turn.turn} of game '{turn.game_id}' already exists") from exc

    async def get_turn(self, game_id: str, turn: int) -> GameTurn | None:
        row = self._db.connection.execute(
            "SELECT data FROM game_turns WHERE game_id = ? AND turn = ?",
            (game_id, turn),
        ).fetchone()
        if row is None:
            return None
        return GameTurn.model_validate(json.loads(row[0]))
