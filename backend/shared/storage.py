"""Blob storage for uploaded save files.

Save files are addressed by a key derived from (game_id, turn). Keys may
contain a single directory level ("<game_id>/<turn>.CivXSave"). Files are
written with owner-only permissions (0o600) inside owner-only directories
(0o700).
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path
from typing import Protocol

import structlog

logger = structlog.get_logger()

_SAVE_DIR_MODE = 0o700
_SAVE_FILE_MODE = 0o600

SAVE_FILE_SUFFIX = ".CivXSave"
COMPRESSED_SUFFIX = ".gz"


def create_save_key(game_id: str, turn: int) -> str:
    """Return the blob key of the save uploaded to start the given turn."""
    return f"{game_id}/{turn:06d}{SAVE_FILE_SUFFIX}"


class BlobStore(Protocol):
    """Protocol for save file blob storage."""

    def fetch(self, key: str) -> bytes | None: ...

    def exists(self, key: str) -> bool: ...

    def put(self, key: str, data: bytes) -> None: ...


class LocalBlobStore:
    """Stores save blobs on the local filesystem under a root directory."""

    def __init__(self, root_dir: str) -> None:
        self._root = Path(root_dir).resolve()

    def _resolve(self, key: str) -> Path:
        target = (self._root / key).resolve()
        if not target.is_relative_to(self._root) or target == self._root:
            raise ValueError(f"Path traversal rejected: '{key}' resolves outside save directory")
        return target

    def fetch(self, key: str) -> bytes | None:
        """Return blob bytes, or None if no blob exists under key."""
        target = self._resolve(key)
        try:
            return target.read_bytes()
        except FileNotFoundError:
            return None

    def exists(self, key: str) -> bool:
        return self._resolve(key).is_file()

    def put(self, key: str, data: bytes) -> None:
        """Write a blob atomically via temp-file-then-rename."""
        target = self._resolve(key)
        for directory in (self._root, target.parent):
            directory.mkdir(mode=_SAVE_DIR_MODE, parents=True, exist_ok=True)
            directory.chmod(_SAVE_DIR_MODE)

        fd, tmp_path = tempfile.mkstemp(dir=str(target.parent), suffix=".tmp", prefix=".save_")
        fd_owned = True
        try:
            with os.fdopen(fd, "wb") as f:
                fd_owned = False  # os.fdopen took ownership; it will close fd
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, _SAVE_FILE_MODE)  # noqa: PTH101
            Path(tmp_path).replace(target)
        except BaseException:
            if fd_owned:
                with contextlib.suppress(OSError):
                    os.close(fd)
            with contextlib.suppress(OSError):
                Path(tmp_path).unlink()
            raise
        logger.info("stored save blob", key=key, size=len(data))
