"""
Turn submission orchestration.

TurnSubmissionService runs one finish-submit cycle: load the game and the
turn being finished, store and decode the uploaded save, validate it,
advance the turn, and only then commit the resulting side effects in order.
Rejections propagate as TurnRejectedError before the game is written.

Blob storage and save decoding are blocking, so they run in worker threads.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from game.logic.commands import (
    CreateTurn,
    DefeatPlayers,
    NotifyGameFinalized,
    RecordLastTurnOrigin,
    RecordTurnPlayed,
    SaveGame,
    plan_turn_commit,
)
from game.logic.exceptions import (
    GameNotFoundError,
    MissingTurnRecordError,
    SaveParseError,
    TurnRejectedError,
)
from game.logic.metadata import get_civ_game
from game.logic.parser import decompress_save
from game.logic.progression import advance_turn
from game.logic.roster import calculate_is_completed
from game.logic.validator import check_turn_ownership, validate_submission
from shared.dal.models import GameTurn
from shared.logging import bound_log_context
from shared.storage import COMPRESSED_SUFFIX, create_save_key

if TYPE_CHECKING:
    from collections.abc import Callable

    from game.logic.commands import TurnCommand
    from game.logic.defeat import DefeatHandler
    from game.logic.notifier import Notifier
    from game.logic.parser import SaveFileParser
    from game.logic.progression import CompletionPredicate
    from game.logic.types import ParsedSave
    from shared.dal.game_repository import GameRepository, TurnRepository
    from shared.dal.models import Game, User
    from shared.dal.user_repository import PrivateUserDataRepository, UserRepository
    from shared.storage import BlobStore

logger = structlog.get_logger()

DOWNLOAD_FILENAME_STEM = "Play This One!"


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class PendingSave:
    """Blob holding the save the current player must download and play."""

    key: str
    filename: str


class TurnSubmissionService:
    """Validates uploaded turns and advances games.

    All collaborators are injected; the service holds no per-game state.
    """

    def __init__(
        self,
        *,
        game_repository: GameRepository,
        turn_repository: TurnRepository,
        user_repository: UserRepository,
        private_user_data_repository: PrivateUserDataRepository,
        blob_store: BlobStore,
        save_parser: SaveFileParser,
        notifier: Notifier,
        defeat_handler: DefeatHandler,
        is_completed: CompletionPredicate = calculate_is_completed,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._games = game_repository
        self._turns = turn_repository
        self._users = user_repository
        self._private_user_data = private_user_data_repository
        self._blob_store = blob_store
        self._save_parser = save_parser
        self._notifier = notifier
        self._defeat_handler = defeat_handler
        self._is_completed = is_completed
        self._clock = clock

    async def _load_game(self, game_id: str) -> Game:
        game = await self._games.get_game(game_id)
        if game is None:
            raise GameNotFoundError(game_id)
        return game

    async def finish_submit(
        self,
        game_id: str,
        steam_id: str,
        data: bytes,
        source_ip: str | None = None,
    ) -> Game:
        """
        Store the uploaded save as the game's next turn, validate it and advance the game.

        The upload is kept under the next turn's key even when it is rejected;
        the next upload for the same turn replaces it.

        Args:
            game_id: Game being played
            steam_id: Authenticated submitter
            data: Uploaded save, raw or zlib/gzip compressed
            source_ip: Network origin of the request, stored as private user data

        Returns:
            The stored game after the turn was committed

        Raises:
            GameNotFoundError: If the game does not exist
            TurnRejectedError: If the upload is not a legal next turn
            SaveParseError: If the upload is empty or cannot be decoded
            MissingRecordError: If the turn record being finished is missing
            ConcurrentUpdateError: If the game changed while this turn was processed

        """
        game = await self._load_game(game_id)
        with bound_log_context(game_id=game_id, steam_id=steam_id, turn=game.game_turn_range_key):
            check_turn_ownership(game, steam_id)

            prior_turn = await self._turns.get_turn(game_id, game.game_turn_range_key)
            if prior_turn is None:
                raise MissingTurnRecordError(game_id=game_id, turn=game.game_turn_range_key)
            next_turn_number = game.game_turn_range_key + 1

            if not data:
                raise SaveParseError("Uploaded save file is empty")
            await asyncio.to_thread(self._blob_store.put, create_save_key(game_id, next_turn_number), data)

            users = await self._users.get_users_for_game(game)
            parsed = await asyncio.to_thread(self._decode_upload, data, game)
            civ_game = get_civ_game(game.game_type)
            now = self._clock()

            try:
                validation = validate_submission(game, parsed, steam_id, civ_game, now=now)
                progression = advance_turn(validation.game, prior_turn, parsed, civ_game, self._is_completed)
            except TurnRejectedError as e:
                logger.info("turn rejected", kind=e.kind, actual=e.actual, expected=e.expected)
                raise

            advanced = progression.game.model_copy(
                update={"game_turn_range_key": next_turn_number, "last_turn_end_date": now},
            )
            commands = plan_turn_commit(
                game=advanced,
                expected_version=game.version,
                next_turn=GameTurn(
                    game_id=game_id,
                    turn=next_turn_number,
                    round=advanced.round,
                    player_steam_id=advanced.current_player_steam_id,
                    start_date=now,
                ),
                steam_id=steam_id,
                source_ip=source_ip,
                ended_at=now,
                newly_defeated=validation.newly_defeated,
                first_finalized=progression.first_finalized,
            )
            saved = await self._commit(commands, users)
            logger.info(
                "turn accepted",
                next_player=saved.current_player_steam_id,
                round=saved.round,
                completed=saved.completed,
            )
            return saved

    def _decode_upload(self, data: bytes, game: Game) -> ParsedSave:
        return self._save_parser.parse(decompress_save(data), game)

    async def _commit(self, commands: list[TurnCommand], users: list[User]) -> Game:
        """
        Execute planned commands in order. Returns the stored game.

        A failed game save propagates and nothing else is written. Once the
        game is saved the turn is accepted, so a failing follow-up command is
        logged and the remaining commands still run.
        """
        save, *follow_ups = commands
        if not isinstance(save, SaveGame):
            raise TypeError(f"first turn command must be SaveGame, got {type(save).__name__}")
        game = await self._games.save_game(save.game, save.expected_version)

        for command in follow_ups:
            try:
                users = await self._apply_follow_up(command, game, users)
            except Exception:
                logger.exception("turn follow-up failed", command=type(command).__name__)
        return game

    async def _apply_follow_up(self, command: TurnCommand, game: Game, users: list[User]) -> list[User]:
        """Run one post-save command. Returns the roster users, updated if the command changed them."""
        if isinstance(command, CreateTurn):
            await self._turns.create_turn(command.turn)
        elif isinstance(command, RecordTurnPlayed):
            return await self._record_turn_played(command, users)
        elif isinstance(command, DefeatPlayers):
            await self._defeat_handler.defeat_players(game, users, command.players)
        elif isinstance(command, NotifyGameFinalized):
            logger.info("game finalized")
            await self._notifier.game_finalized(game)
        elif isinstance(command, RecordLastTurnOrigin):
            private_data = await self._private_user_data.get(command.steam_id)
            await self._private_user_data.save_versioned(
                private_data.model_copy(update={"last_turn_ip_address": command.ip_address}),
            )
        return users

    async def _record_turn_played(self, command: RecordTurnPlayed, users: list[User]) -> list[User]:
        """Bump the submitter's turn stats; returns the roster users with the update applied."""
        updated_users = list(users)
        for index, user in enumerate(updated_users):
            if user.steam_id == command.steam_id:
                updated = user.model_copy(
                    update={"turns_played": user.turns_played + 1, "last_turn_end_date": command.ended_at},
                )
                await self._users.save_user(updated)
                updated_users[index] = updated
                return updated_users
        logger.warning("submitting player has no user record")
        return updated_users

    async def get_turn_download(self, game_id: str, steam_id: str, *, compressed: bool = False) -> PendingSave:
        """
        Locate the save the current player must download.

        With compressed=True the gzip variant is returned when it exists.

        Raises:
            GameNotFoundError: If the game does not exist
            NotYourTurnError: If steam_id is not the current player

        """
        game = await self._load_game(game_id)
        check_turn_ownership(game, steam_id)

        key = create_save_key(game_id, game.game_turn_range_key)
        if compressed and await asyncio.to_thread(self._blob_store.exists, key + COMPRESSED_SUFFIX):
            key += COMPRESSED_SUFFIX

        civ_game = get_civ_game(game.game_type)
        return PendingSave(key=key, filename=f"{DOWNLOAD_FILENAME_STEM}.{civ_game.save_extension}")
