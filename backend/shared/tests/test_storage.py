"""Tests for save blob storage."""

import os
import stat
from unittest.mock import patch

import pytest

from shared.storage import LocalBlobStore, create_save_key


class TestCreateSaveKey:
    def test_zero_pads_turn_number(self):
        assert create_save_key("game-1", 7) == "game-1/000007.CivXSave"

    def test_keys_differ_per_turn(self):
        assert create_save_key("g", 1) != create_save_key("g", 2)


class TestLocalBlobStore:
    def test_put_then_fetch(self, tmp_path):
        store = LocalBlobStore(str(tmp_path / "saves"))

        store.put("g1/000002.CivXSave", b"\x00\x01save")

        assert store.fetch("g1/000002.CivXSave") == b"\x00\x01save"

    def test_fetch_missing_returns_none(self, tmp_path):
        store = LocalBlobStore(str(tmp_path))

        assert store.fetch("g1/000002.CivXSave") is None

    def test_exists(self, tmp_path):
        store = LocalBlobStore(str(tmp_path))
        store.put("g1/000002.CivXSave", b"data")

        assert store.exists("g1/000002.CivXSave")
        assert not store.exists("g1/000002.CivXSave.gz")

    def test_overwrites_existing_blob(self, tmp_path):
        store = LocalBlobStore(str(tmp_path))

        store.put("g1/a", b"original")
        store.put("g1/a", b"updated")

        assert store.fetch("g1/a") == b"updated"

    @pytest.mark.parametrize("key", ["../escape", "g1/../../etc/passwd", ""])
    def test_rejects_path_traversal(self, tmp_path, key):
        store = LocalBlobStore(str(tmp_path / "saves"))

        with pytest.raises(ValueError, match="Path traversal rejected"):
            store.put(key, b"malicious")

        assert not (tmp_path / "saves").exists()

    def test_fetch_rejects_path_traversal(self, tmp_path):
        store = LocalBlobStore(str(tmp_path / "saves"))

        with pytest.raises(ValueError, match="Path traversal rejected"):
            store.fetch("../secret")


class TestLocalBlobStoreErrorHandling:
    def test_cleans_up_temp_on_fsync_failure(self, tmp_path):
        store = LocalBlobStore(str(tmp_path))

        with (
            patch("os.fsync", side_effect=OSError("fsync failure")),
            pytest.raises(OSError, match="fsync failure"),
        ):
            store.put("g1/000002.CivXSave", b"content")

        assert not (tmp_path / "g1" / "000002.CivXSave").exists()
        assert list((tmp_path / "g1").glob(".save_*.tmp")) == []

    def test_closes_fd_on_fdopen_failure(self, tmp_path):
        store = LocalBlobStore(str(tmp_path))

        with (
            patch("os.fdopen", side_effect=OSError("fdopen failure")) as mock_fdopen,
            patch("os.close", wraps=os.close) as mock_close,
            pytest.raises(OSError, match="fdopen failure"),
        ):
            store.put("g1/000002.CivXSave", b"content")

        mock_close.assert_called_once_with(mock_fdopen.call_args[0][0])


class TestLocalBlobStorePermissions:
    def test_directories_are_owner_only(self, tmp_path):
        root = tmp_path / "saves"
        store = LocalBlobStore(str(root))

        store.put("g1/000002.CivXSave", b"content")

        assert stat.S_IMODE(root.stat().st_mode) == 0o700
        assert stat.S_IMODE((root / "g1").stat().st_mode) == 0o700

    def test_file_is_owner_only(self, tmp_path):
        store = LocalBlobStore(str(tmp_path))

        store.put("g1/000002.CivXSave", b"content")

        assert stat.S_IMODE((tmp_path / "g1" / "000002.CivXSave").stat().st_mode) == 0o600
