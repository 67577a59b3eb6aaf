"""Persistence models for the data access layer."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class GameType(StrEnum):
    """Supported game rule sets."""

    CIV5 = "CIV5"
    CIV6 = "CIV6"
    BEYOND_EARTH = "BE"


class GamePlayer(BaseModel, frozen=True):
    """One roster slot. Index in Game.players is the turn order position."""

    steam_id: str | None = None  # None for unfilled / AI slots
    civ_type: str | None = None  # leader key, or the random sentinel
    has_surrendered: bool = False
    surrender_date: datetime | None = None


class Game(BaseModel, frozen=True):
    """A play-by-turn game session persisted to storage."""

    game_id: str
    created_by_steam_id: str
    display_name: str = ""
    game_type: GameType = GameType.CIV6

    # configuration
    game_speed: str | None = None
    map_file: str | None = None
    map_size: str | None = None
    dlc: tuple[str, ...] = ()
    slots: int
    humans: int
    turn_timer_minutes: int | None = None
    webhook_url: str | None = None

    # progress
    players: tuple[GamePlayer, ...] = ()
    current_player_steam_id: str | None = None
    round: int = Field(default=1, ge=0)
    game_turn_range_key: int = Field(default=1, ge=1)  # turn sequence counter
    in_progress: bool = False
    completed: bool = False
    finalized: bool = False
    reset_game_state_on_next_upload: bool = False
    last_turn_end_date: datetime | None = None

    version: int = 0  # bumped on every successful save (optimistic concurrency)


class GameTurn(BaseModel, frozen=True):
    """Immutable record of one turn boundary, keyed by (game_id, turn)."""

    game_id: str
    turn: int
    round: int
    player_steam_id: str | None = None
    start_date: datetime | None = None


class User(BaseModel, frozen=True):
    """Public user profile and turn statistics."""

    steam_id: str
    display_name: str
    api_key_hash: str | None = None  # SHA-256 hash of the user's API key
    active_game_ids: tuple[str, ...] = ()
    inactive_game_ids: tuple[str, ...] = ()
    turns_played: int = 0
    last_turn_end_date: datetime | None = None


class PrivateUserData(BaseModel, frozen=True):
    """Per-user data never returned to other players."""

    steam_id: str
    last_turn_ip_address: str | None = None
    version: int = 0
