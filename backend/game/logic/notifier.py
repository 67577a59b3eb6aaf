"""Outbound notifications for finalized games."""

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING, Protocol

import httpx
import structlog

if TYPE_CHECKING:
    from shared.dal.models import Game

logger = structlog.get_logger()


class Notifier(Protocol):
    async def game_finalized(self, game: Game) -> None:
        """Announce that a game has finished. Called at most once per game."""
        ...


class WebhookNotifier:
    """POSTs a JSON finalize event to the configured webhook and the game's own webhook.

    The submission is already committed when this runs, so delivery failures
    are logged and swallowed.
    """

    def __init__(self, webhook_url: str | None = None, timeout: float = 10.0) -> None:
        self._webhook_url = webhook_url
        self._timeout = timeout

    def _targets(self, game: Game) -> list[str]:
        targets = [url for url in (self._webhook_url, game.webhook_url) if url]
        return list(dict.fromkeys(targets))

    async def game_finalized(self, game: Game) -> None:
        targets = self._targets(game)
        if not targets:
            logger.info("game finalized, no webhook configured", game_id=game.game_id)
            return

        payload = {
            "event": "game_finalized",
            "game_id": game.game_id,
            "display_name": game.display_name,
            "round": game.round,
        }
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            for url in targets:
                try:
                    response = await client.post(url, json=payload)
                except httpx.RequestError as e:
                    logger.warning("finalize webhook failed", game_id=game.game_id, url=url, error=str(e))
                    continue
                if response.status_code >= HTTPStatus.BAD_REQUEST:
                    logger.warning(
                        "finalize webhook rejected",
                        game_id=game.game_id,
                        url=url,
                        status_code=response.status_code,
                    )
                else:
                    logger.info("finalize webhook delivered", game_id=game.game_id, url=url)
