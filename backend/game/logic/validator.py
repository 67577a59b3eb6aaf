"""
Turn validation: is an uploaded save a legal next turn for this game?

validate_submission() is pure. It reads the pre-submission Game and a
ParsedSave, raises a TurnRejectedError subclass on the first check that
fails, and otherwise returns a new Game snapshot with civ assignments and
defeats applied. Whose turn it becomes is decided afterwards by
game.logic.progression.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from game.logic.enums import ActorType
from game.logic.exceptions import (
    CivCountMismatchError,
    CivTypeMismatchError,
    DlcMismatchError,
    GameSpeedMismatchError,
    MapFileMismatchError,
    MapSizeMismatchError,
    NotYourTurnError,
    UnexpectedHumanError,
)
from game.logic.metadata import CAESAR_DLC_ID, GREAT_LEADERS_DLC_ID, RANDOM_CIV_KEY
from game.logic.roster import player_is_human
from shared.dal.models import Game, GamePlayer

if TYPE_CHECKING:
    from datetime import datetime

    from game.logic.metadata import CivGameDefinition
    from game.logic.types import ParsedSave

logger = structlog.get_logger()


@dataclass(frozen=True)
class ValidationResult:
    game: Game
    newly_defeated: tuple[GamePlayer, ...] = ()


def check_turn_ownership(game: Game, steam_id: str) -> None:
    """Raise NotYourTurnError unless steam_id is the current player."""
    if game.current_player_steam_id != steam_id:
        raise NotYourTurnError(steam_id=steam_id, current_steam_id=game.current_player_steam_id)


def validate_submission(
    game: Game,
    parsed: ParsedSave,
    steam_id: str,
    civ_game: CivGameDefinition,
    *,
    now: datetime,
) -> ValidationResult:
    """
    Check a parsed save against the game's configuration and roster.

    Args:
        game: Game state before this submission
        parsed: Decoded save uploaded by the submitter
        steam_id: Identity of the submitter
        civ_game: Catalog entry for the game's type
        now: Timestamp recorded on newly surrendered players

    Returns:
        ValidationResult with the updated game and any newly defeated players

    Raises:
        TurnRejectedError: Subclass describing the first failed check

    """
    check_turn_ownership(game, steam_id)
    game = apply_dlc_migration(game, parsed)
    _check_dlc_parity(game, parsed, civ_game)
    _check_civ_count(game, parsed)
    _check_game_speed(game, parsed)
    _check_map_file(game, parsed, civ_game)
    _check_map_size(game, parsed)
    return _reconcile_players(game, parsed, now)


def apply_dlc_migration(game: Game, parsed: ParsedSave) -> Game:
    """Enable Caesar on running Great Leaders games whose saves started reporting it."""
    if (
        game.game_turn_range_key > 1
        and GREAT_LEADERS_DLC_ID in game.dlc
        and CAESAR_DLC_ID not in game.dlc
        and CAESAR_DLC_ID in parsed.parsed_dlcs
    ):
        logger.info("enabling caesar dlc on great leaders game", game_id=game.game_id)
        return game.model_copy(update={"dlc": (*game.dlc, CAESAR_DLC_ID)})
    return game


def _check_dlc_parity(game: Game, parsed: ParsedSave, civ_game: CivGameDefinition) -> None:
    not_in_save = [dlc for dlc in game.dlc if dlc not in parsed.parsed_dlcs]
    not_in_game = [dlc for dlc in parsed.parsed_dlcs if dlc not in game.dlc]
    if not_in_save or not_in_game:
        raise DlcMismatchError(
            actual=parsed.parsed_dlcs,
            expected=game.dlc,
            not_in_save=[civ_game.dlc_display_name(dlc) for dlc in not_in_save],
            not_in_game=[civ_game.dlc_display_name(dlc) for dlc in not_in_game],
        )


def _check_civ_count(game: Game, parsed: ParsedSave) -> None:
    if len(parsed.civ_data) != game.slots:
        raise CivCountMismatchError(actual=len(parsed.civ_data), expected=game.slots)


def _check_game_speed(game: Game, parsed: ParsedSave) -> None:
    if game.game_speed and game.game_speed != parsed.game_speed:
        raise GameSpeedMismatchError(actual=str(parsed.game_speed), expected=game.game_speed)


def _check_map_file(game: Game, parsed: ParsedSave, civ_game: CivGameDefinition) -> None:
    if not game.map_file:
        return
    save_map = parsed.map_file or ""
    map_definition = civ_game.find_map(game.map_file)

    if map_definition is not None and map_definition.regex:
        if not re.search(map_definition.regex, save_map):
            raise MapFileMismatchError(actual=save_map, expected=game.map_file, pattern=map_definition.regex)
    elif game.map_file.lower() not in save_map.lower():
        raise MapFileMismatchError(actual=save_map, expected=game.map_file)


def _check_map_size(game: Game, parsed: ParsedSave) -> None:
    if game.map_size and game.map_size != parsed.map_size:
        raise MapSizeMismatchError(actual=str(parsed.map_size), expected=game.map_size)


def _reconcile_players(game: Game, parsed: ParsedSave, now: datetime) -> ValidationResult:
    """Match save slots to roster slots, adopting civs and recording defeats.

    AI-where-human-expected and human-where-AI-expected are tolerated on
    existing slots: skipped turns legitimately leave them inconsistent.
    """
    players = list(game.players)
    newly_defeated: list[GamePlayer] = []

    for index, civ in enumerate(parsed.civ_data):
        if index >= len(players):
            if civ.actor_type == ActorType.HUMAN:
                raise UnexpectedHumanError(slot=index)
            players.append(GamePlayer(civ_type=civ.leader_name))
            continue

        player = players[index]
        if not player.civ_type or player.civ_type == RANDOM_CIV_KEY:
            player = player.model_copy(update={"civ_type": civ.leader_name})
        elif player.civ_type != civ.leader_name:
            raise CivTypeMismatchError(slot=index, actual=civ.leader_name, expected=player.civ_type)

        if player_is_human(player) and civ.actor_type == ActorType.DEAD:
            player = player.model_copy(update={"has_surrendered": True, "surrender_date": now})
            newly_defeated.append(player)
            logger.info("player defeated", steam_id=player.steam_id, slot=index)

        players[index] = player

    return ValidationResult(
        game=game.model_copy(update={"players": tuple(players)}),
        newly_defeated=tuple(newly_defeated),
    )
