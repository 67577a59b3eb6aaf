"""Turn server configuration via environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings

from shared.download_token import DEFAULT_DOWNLOAD_TTL_SECONDS, MAX_DOWNLOAD_TTL_SECONDS


class TurnServerSettings(BaseSettings):
    model_config = {"env_prefix": "TURN_SERVER_"}

    database_path: str = Field(default="backend/data/turns.db", min_length=1)
    save_dir: str = Field(default="backend/data/saves", min_length=1)
    log_dir: str | None = "backend/logs/turns"

    # "module:Class" path of the SaveFileParser implementation for the hosted game types.
    save_parser: str | None = None

    host: str = "127.0.0.1"
    port: int = Field(default=8720, ge=1, le=65535)

    # Base URL clients use to reach this server, prepended to download links.
    public_base_url: str = "http://localhost:8720"
    download_secret: str = Field(min_length=1)
    download_ttl_seconds: int = Field(default=DEFAULT_DOWNLOAD_TTL_SECONDS, ge=1, le=MAX_DOWNLOAD_TTL_SECONDS)

    finalize_webhook_url: str | None = None
    webhook_timeout_seconds: float = Field(default=10.0, gt=0)
