"""
Pydantic models for data that crosses the save parser boundary.

A ParsedSave lives for one validation cycle: the parser produces it, the
validator and progression engine read it, and nothing persists it.
"""

from pydantic import BaseModel

from game.logic.enums import ActorType


class CivData(BaseModel, frozen=True):
    """One civilization slot as recorded in a save file."""

    leader_name: str
    actor_type: ActorType
    is_current_turn: bool = False


class ParsedSave(BaseModel, frozen=True):
    """Decoded contents of an uploaded save file."""

    civ_data: tuple[CivData, ...]
    parsed_dlcs: tuple[str, ...] = ()
    game_turn: int
    game_speed: str | None = None
    map_file: str | None = None
    map_size: str | None = None

    def current_turn_index(self) -> int | None:
        """Index of the first slot flagged as taking its turn, or None."""
        for index, civ in enumerate(self.civ_data):
            if civ.is_current_turn:
                return index
        return None
