"""
Turn progression: whose turn is next and which round the save must report.

advance_turn() is pure. It runs after validation on the validated Game
snapshot and either raises a TurnRejectedError or returns the Game with the
new current player, round and completion state applied.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from game.logic.enums import RoundPolicy
from game.logic.exceptions import (
    IncorrectPlayerTurnError,
    NoNextPlayerError,
    RoundMismatchError,
    UndetectedCurrentPlayerError,
)
from game.logic.roster import (
    calculate_is_completed,
    consume_reset_flag,
    get_current_player_index,
    get_next_player_index,
    possibly_update_admin,
)
from shared.dal.models import Game

if TYPE_CHECKING:
    from game.logic.metadata import CivGameDefinition
    from game.logic.types import ParsedSave
    from shared.dal.models import GameTurn

CompletionPredicate = Callable[[Game], bool]


@dataclass(frozen=True)
class ProgressionResult:
    game: Game
    first_finalized: bool = False  # completed by this submission for the first time


def advance_turn(
    game: Game,
    prior_turn: GameTurn,
    parsed: ParsedSave,
    civ_game: CivGameDefinition,
    is_completed: CompletionPredicate = calculate_is_completed,
) -> ProgressionResult:
    """
    Compute the next current player and round for an accepted save.

    On the first turn, or when the game was flagged for a state reset, the
    save is trusted for both round and next player. Otherwise the next human
    in roster order takes over and the round advances when the roster wraps.

    Args:
        game: Validated game state (players already reconciled)
        prior_turn: Turn record for the turn being finished
        parsed: Decoded save uploaded by the submitter
        civ_game: Catalog entry for the game's type
        is_completed: Predicate deciding whether the game is over

    Returns:
        ProgressionResult with the advanced game

    Raises:
        TurnRejectedError: If the save disagrees with the expected next turn

    """
    expected_round = prior_turn.round
    reset_requested, game = consume_reset_flag(game)

    if prior_turn.turn == 1 or reset_requested:
        # Starting (or re-syncing) a game: take the round and active player
        # from the save so games can begin in later eras or be migrated.
        expected_round = parsed.game_turn
        next_index = parsed.current_turn_index()
        if next_index is None:
            raise UndetectedCurrentPlayerError
    else:
        next_index = get_next_player_index(game)
        if next_index is None:
            raise NoNextPlayerError
        current_index = get_current_player_index(game)
        wrapped = current_index is not None and next_index <= current_index
        if wrapped and not _round_may_repeat(civ_game, parsed, prior_turn):
            expected_round += 1

    if next_index >= len(parsed.civ_data) or not parsed.civ_data[next_index].is_current_turn:
        raise IncorrectPlayerTurnError(expected_slot=next_index)

    if expected_round != parsed.game_turn:
        raise RoundMismatchError(actual=parsed.game_turn, expected=expected_round)

    game = game.model_copy(
        update={
            "current_player_steam_id": game.players[next_index].steam_id,
            "round": expected_round,
        },
    )
    completed = is_completed(game)
    first_finalized = completed and not game.finalized
    game = game.model_copy(update={"completed": completed, "finalized": completed})
    return ProgressionResult(game=possibly_update_admin(game), first_finalized=first_finalized)


def _round_may_repeat(civ_game: CivGameDefinition, parsed: ParsedSave, prior_turn: GameTurn) -> bool:
    return civ_game.round_policy == RoundPolicy.ALLOW_REPEAT and parsed.game_turn == prior_turn.round
