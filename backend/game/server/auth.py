"""API key authentication for the turn server."""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING

from starlette.authentication import AuthCredentials, AuthenticationBackend, BaseUser

if TYPE_CHECKING:
    from starlette.requests import HTTPConnection

    from shared.dal.user_repository import UserRepository

API_KEY_HEADER = "x-api-key"


def hash_api_key(api_key: str) -> str:
    """API keys are stored as SHA-256 hex digests, never in the clear."""
    return hashlib.sha256(api_key.encode()).hexdigest()


class AuthenticatedUser(BaseUser):
    """Authenticated player for Starlette's request.user."""

    def __init__(self, steam_id: str, display_name: str) -> None:
        self._steam_id = steam_id
        self._display_name = display_name

    @property
    def is_authenticated(self) -> bool:  # pragma: no cover
        return True

    @property
    def display_name(self) -> str:  # pragma: no cover
        return self._display_name

    @property
    def identity(self) -> str:  # pragma: no cover
        return self._steam_id

    @property
    def steam_id(self) -> str:
        return self._steam_id


class ApiKeyBackend(AuthenticationBackend):
    """Authenticate requests via the X-API-Key header."""

    def __init__(self, user_repository: UserRepository) -> None:
        self._user_repository = user_repository

    async def authenticate(self, conn: HTTPConnection) -> tuple[AuthCredentials, AuthenticatedUser] | None:
        api_key = conn.headers.get(API_KEY_HEADER)
        if not api_key:
            return None
        user = await self._user_repository.get_by_api_key_hash(hash_api_key(api_key))
        if user is None:
            return None
        return AuthCredentials(["authenticated"]), AuthenticatedUser(user.steam_id, user.display_name)
