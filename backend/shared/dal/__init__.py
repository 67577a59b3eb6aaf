"""Data access layer: repository interfaces and shared persistence models."""

from shared.dal.exceptions import ConcurrentUpdateError
from shared.dal.game_repository import GameRepository, TurnRepository
from shared.dal.models import Game, GamePlayer, GameTurn, GameType, PrivateUserData, User
from shared.dal.user_repository import PrivateUserDataRepository, UserRepository

__all__ = [
    "ConcurrentUpdateError",
    "Game",
    "GamePlayer",
    "GameRepository",
    "GameTurn",
    "GameType",
    "PrivateUserData",
    "PrivateUserDataRepository",
    "TurnRepository",
    "User",
    "UserRepository",
]
