"""Pending side effects of an accepted turn submission.

The submission service decides everything first, then builds the ordered
command list with plan_turn_commit() and executes it. A rejected submission
never reaches planning, so no command exists for it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from shared.dal.models import Game, GamePlayer, GameTurn


@dataclass(frozen=True)
class SaveGame:
    game: Game
    expected_version: int


@dataclass(frozen=True)
class CreateTurn:
    turn: GameTurn


@dataclass(frozen=True)
class RecordTurnPlayed:
    steam_id: str
    ended_at: datetime


@dataclass(frozen=True)
class DefeatPlayers:
    players: tuple[GamePlayer, ...]


@dataclass(frozen=True)
class NotifyGameFinalized:
    pass


@dataclass(frozen=True)
class RecordLastTurnOrigin:
    steam_id: str
    ip_address: str | None


TurnCommand = SaveGame | CreateTurn | RecordTurnPlayed | DefeatPlayers | NotifyGameFinalized | RecordLastTurnOrigin


def plan_turn_commit(
    *,
    game: Game,
    expected_version: int,
    next_turn: GameTurn,
    steam_id: str,
    source_ip: str | None,
    ended_at: datetime,
    newly_defeated: tuple[GamePlayer, ...],
    first_finalized: bool,
) -> list[TurnCommand]:
    """Order the writes for an accepted submission.

    The game save goes first: if it loses a concurrent-update race, nothing
    else has been written yet.
    """
    commands: list[TurnCommand] = [
        SaveGame(game=game, expected_version=expected_version),
        CreateTurn(turn=next_turn),
        RecordTurnPlayed(steam_id=steam_id, ended_at=ended_at),
    ]
    if newly_defeated:
        commands.append(DefeatPlayers(players=newly_defeated))
    if first_finalized:
        commands.append(NotifyGameFinalized())
    commands.append(RecordLastTurnOrigin(steam_id=steam_id, ip_address=source_ip))
    return commands
