"""Abstract interfaces for user and private user data persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shared.dal.models import Game, PrivateUserData, User


class UserRepository(ABC):
    """Abstract interface for user persistence.

    Implementations can use SQLite, PostgreSQL, etc.
    """

    @abstractmethod
    async def create_user(self, user: User) -> None: ...

    @abstractmethod
    async def get_user(self, steam_id: str) -> User | None: ...

    @abstractmethod
    async def save_user(self, user: User) -> None: ...

    @abstractmethod
    async def get_by_api_key_hash(self, api_key_hash: str) -> User | None: ...

    @abstractmethod
    async def get_users_for_game(self, game: Game) -> list[User]:
        """Return users for the claimed roster slots, in roster order.

        Unclaimed slots and unknown users are skipped.
        """
        ...


class PrivateUserDataRepository(ABC):
    """Abstract interface for private user data with versioned writes."""

    @abstractmethod
    async def get(self, steam_id: str) -> PrivateUserData: ...

    @abstractmethod
    async def save_versioned(self, data: PrivateUserData) -> PrivateUserData: ...
