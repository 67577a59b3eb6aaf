import pytest
from pydantic import ValidationError

from game.server.settings import TurnServerSettings


class TestTurnServerSettings:
    def test_download_secret_from_env(self, monkeypatch):
        monkeypatch.setenv("TURN_SERVER_DOWNLOAD_SECRET", "from-env")
        assert TurnServerSettings().download_secret == "from-env"

    def test_download_secret_required(self, monkeypatch):
        monkeypatch.delenv("TURN_SERVER_DOWNLOAD_SECRET", raising=False)
        with pytest.raises(ValidationError, match="download_secret"):
            TurnServerSettings()

    def test_empty_download_secret_rejected(self):
        with pytest.raises(ValidationError, match="download_secret"):
            TurnServerSettings(download_secret="")

    @pytest.mark.parametrize("ttl", [0, 3601])
    def test_download_ttl_bounds(self, ttl):
        with pytest.raises(ValidationError, match="download_ttl_seconds"):
            TurnServerSettings(download_secret="s", download_ttl_seconds=ttl)

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("TURN_SERVER_DATABASE_PATH", raising=False)
        settings = TurnServerSettings(download_secret="s")
        assert settings.database_path == "backend/data/turns.db"
        assert settings.download_ttl_seconds == 60
        assert settings.finalize_webhook_url is None

    def test_database_path_empty_rejected(self):
        with pytest.raises(ValidationError, match="database_path"):
            TurnServerSettings(download_secret="s", database_path="")

    def test_webhook_timeout_must_be_positive(self):
        with pytest.raises(ValidationError, match="webhook_timeout_seconds"):
            TurnServerSettings(download_secret="s", webhook_timeout_seconds=0)

    def test_webhook_url_from_env(self, monkeypatch):
        monkeypatch.setenv("TURN_SERVER_FINALIZE_WEBHOOK_URL", "https://hooks.example/finalized")
        settings = TurnServerSettings(download_secret="s")
        assert settings.finalize_webhook_url == "https://hooks.example/finalized"

    def test_listen_address_defaults(self, monkeypatch):
        monkeypatch.delenv("TURN_SERVER_HOST", raising=False)
        monkeypatch.delenv("TURN_SERVER_PORT", raising=False)
        settings = TurnServerSettings(download_secret="s")
        assert settings.host == "127.0.0.1"
        assert settings.port == 8720

    def test_port_out_of_range_rejected(self):
        with pytest.raises(ValidationError, match="port"):
            TurnServerSettings(download_secret="s", port=70000)
