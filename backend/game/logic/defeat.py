"""Handling of players knocked out of a game."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol

import structlog

if TYPE_CHECKING:
    from shared.dal.models import Game, GamePlayer, User
    from shared.dal.user_repository import UserRepository

logger = structlog.get_logger()


class DefeatHandler(Protocol):
    async def defeat_players(
        self,
        game: Game,
        users: Sequence[User],
        newly_defeated: Sequence[GamePlayer],
    ) -> None: ...


class UserDefeatHandler:
    """Moves the game from each defeated user's active list to their inactive list."""

    def __init__(self, user_repository: UserRepository) -> None:
        self._user_repository = user_repository

    async def defeat_players(
        self,
        game: Game,
        users: Sequence[User],
        newly_defeated: Sequence[GamePlayer],
    ) -> None:
        users_by_id = {user.steam_id: user for user in users}
        for player in newly_defeated:
            user = users_by_id.get(player.steam_id) if player.steam_id else None
            if user is None:
                logger.warning("defeated player has no user record", steam_id=player.steam_id)
                continue
            updated = user.model_copy(
                update={
                    "active_game_ids": tuple(gid for gid in user.active_game_ids if gid != game.game_id),
                    "inactive_game_ids": (
                        user.inactive_game_ids
                        if game.game_id in user.inactive_game_ids
                        else (*user.inactive_game_ids, game.game_id)
                    ),
                },
            )
            await self._user_repository.save_user(updated)
            logger.info("moved game to inactive for defeated player", steam_id=user.steam_id)
