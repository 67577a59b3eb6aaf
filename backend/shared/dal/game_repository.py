"""Abstract interface for game and turn persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shared.dal.models import Game, GameTurn


class GameRepository(ABC):
    """Abstract interface for game persistence."""

    @abstractmethod
    async def create_game(self, game: Game) -> None: ...

    @abstractmethod
    async def get_game(self, game_id: str) -> Game | None: ...

    @abstractmethod
    async def save_game(self, game: Game, expected_version: int) -> Game:
        """Persist the game only if the stored version still equals expected_version.

        Returns the stored snapshot (with its version bumped).
        Raises ConcurrentUpdateError when another write got there first.
        """
        ...


class TurnRepository(ABC):
    """Abstract interface for turn records. Turns are write-once."""

    @abstractmethod
    async def create_turn(self, turn: GameTurn) -> None: ...

    @abstractmethod
    async def get_turn(self, game_id: str, turn: int) -> GameTurn | None: ...
