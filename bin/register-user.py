"""Register a player account and print its API key.

Usage: uv run python bin/register-user.py <steam_id> <display_name>

The API key is printed once and only its hash is stored. Save it securely.
"""

import asyncio
import secrets
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from game.server.auth import hash_api_key
from game.server.settings import TurnServerSettings
from shared.dal.models import User
from shared.db import Database, SqliteUserRepository


async def main() -> None:
    if len(sys.argv) != 3:
        print(f"Usage: {sys.argv[0]} <steam_id> <display_name>")
        sys.exit(1)

    steam_id, display_name = sys.argv[1], sys.argv[2]
    # Only database_path is needed; supply a placeholder download secret so
    # the script works without TURN_SERVER_DOWNLOAD_SECRET being set.
    settings = TurnServerSettings(download_secret="unused")

    db = Database(settings.database_path)
    db.connect()

    try:
        user_repo = SqliteUserRepository(db)
        raw_api_key = secrets.token_urlsafe(32)

        try:
            await user_repo.create_user(
                User(steam_id=steam_id, display_name=display_name, api_key_hash=hash_api_key(raw_api_key)),
            )
        except ValueError as e:
            print(f"Error: {e}")
            sys.exit(1)

        print(f"User registered: {display_name} (steam id: {steam_id})")
        print(f"API key: {raw_api_key}")
        print("Save this key securely - it cannot be retrieved again.")
    finally:
        db.close()


if __name__ == "__main__":
    asyncio.run(main())
