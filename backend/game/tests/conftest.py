from dataclasses import dataclass

import pytest

from game.logic.submission import TurnSubmissionService
from game.tests.helpers.builders import NOW
from game.tests.helpers.fakes import (
    InMemoryBlobStore,
    InMemoryGameRepository,
    InMemoryPrivateUserDataRepository,
    InMemoryTurnRepository,
    InMemoryUserRepository,
    RecordingDefeatHandler,
    RecordingNotifier,
    StaticSaveParser,
)


@dataclass
class ServiceHarness:
    """TurnSubmissionService wired to in-memory collaborators."""

    service: TurnSubmissionService
    games: InMemoryGameRepository
    turns: InMemoryTurnRepository
    users: InMemoryUserRepository
    private_user_data: InMemoryPrivateUserDataRepository
    blobs: InMemoryBlobStore
    parser: StaticSaveParser
    notifier: RecordingNotifier
    defeat_handler: RecordingDefeatHandler


@pytest.fixture
def harness() -> ServiceHarness:
    games = InMemoryGameRepository()
    turns = InMemoryTurnRepository()
    users = InMemoryUserRepository()
    private_user_data = InMemoryPrivateUserDataRepository()
    blobs = InMemoryBlobStore()
    parser = StaticSaveParser()
    notifier = RecordingNotifier()
    defeat_handler = RecordingDefeatHandler()
    service = TurnSubmissionService(
        game_repository=games,
        turn_repository=turns,
        user_repository=users,
        private_user_data_repository=private_user_data,
        blob_store=blobs,
        save_parser=parser,
        notifier=notifier,
        defeat_handler=defeat_handler,
        clock=lambda: NOW,
    )
    return ServiceHarness(
        service=service,
        games=games,
        turns=turns,
        users=users,
        private_user_data=private_user_data,
        blobs=blobs,
        parser=parser,
        notifier=notifier,
        defeat_handler=defeat_handler,
    )
