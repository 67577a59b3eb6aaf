"""Save file parser protocol and upload decompression."""

from __future__ import annotations

import zlib
from typing import TYPE_CHECKING, Protocol

import structlog

if TYPE_CHECKING:
    from game.logic.types import ParsedSave
    from shared.dal.models import Game

logger = structlog.get_logger()

# Accept both zlib and gzip framing.
_AUTO_DETECT_WBITS = zlib.MAX_WBITS | 32


class SaveFileParser(Protocol):
    """Decodes a game's binary save format.

    Implementations raise SaveParseError when the bytes are not a readable
    save for the game's type.
    """

    def parse(self, data: bytes, game: Game) -> ParsedSave: ...


def decompress_save(data: bytes) -> bytes:
    """Inflate a compressed upload, or return the bytes unchanged if it is a raw save."""
    try:
        return zlib.decompress(data, _AUTO_DETECT_WBITS)
    except zlib.error as e:
        logger.info("save upload not compressed, using raw bytes", reason=str(e))
        return data
