"""
Integration tests for the turn server HTTP API.

Requests go through the full Starlette stack (authentication middleware,
exception handlers, SQLite repositories and the on-disk blob store). Only
the save parser is replaced, since decoding real save files is a separate concern.
"""

import asyncio
import gzip
from http import HTTPStatus

import pytest
from starlette.testclient import TestClient

from game.logic.exceptions import SaveParseError
from game.server.app import GENERIC_ERROR_MESSAGE, create_app
from game.server.auth import API_KEY_HEADER, hash_api_key
from game.server.settings import TurnServerSettings
from game.tests.helpers.builders import make_game, make_save, make_turn, make_user
from game.tests.helpers.fakes import StaticSaveParser
from shared.db import SqliteGameRepository, SqliteTurnRepository, SqliteUserRepository
from shared.storage import create_save_key

PUBLIC_BASE_URL = "https://turns.example"
P1_KEY = "p1-api-key"
P2_KEY = "p2-api-key"
UPLOAD = b"CIV6\x00uploaded-save"
CURRENT_SAVE = b"CIV6\x00current-save"


async def _seed(app) -> None:
    db = app.state.db
    game = make_game()
    await SqliteGameRepository(db).create_game(game)
    await SqliteTurnRepository(db).create_turn(make_turn(turn=game.game_turn_range_key, round=game.round))
    users = SqliteUserRepository(db)
    await users.create_user(make_user("p1", api_key_hash=hash_api_key(P1_KEY), active_game_ids=("g1",)))
    await users.create_user(make_user("p2", api_key_hash=hash_api_key(P2_KEY), active_game_ids=("g1",)))


@pytest.fixture
def parser():
    return StaticSaveParser(parsed=make_save())


@pytest.fixture
def app(tmp_path, parser):
    settings = TurnServerSettings(
        database_path=str(tmp_path / "turns.db"),
        save_dir=str(tmp_path / "saves"),
        log_dir=None,
        public_base_url=PUBLIC_BASE_URL,
        download_secret="integration-secret",
    )
    app = create_app(settings=settings, save_parser=parser)
    asyncio.run(_seed(app))
    app.state.blob_store.put(create_save_key("g1", 5), CURRENT_SAVE)
    yield app
    app.state.db.close()


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


def _finish(client, key=P1_KEY, game_id="g1", content=UPLOAD):
    headers = {API_KEY_HEADER: key} if key else {}
    return client.post(f"/game/{game_id}/turn/finishSubmit", headers=headers, content=content)


class TestHealth:
    def test_health_needs_no_auth(self, client):
        response = client.get("/health")
        assert response.status_code == HTTPStatus.OK
        assert response.json() == {"status": "ok"}


class TestFinishSubmit:
    def test_requires_api_key(self, client):
        response = _finish(client, key=None)
        assert response.status_code == HTTPStatus.UNAUTHORIZED
        assert "error" in response.json()

    def test_unknown_api_key(self, client):
        assert _finish(client, key="not-a-key").status_code == HTTPStatus.UNAUTHORIZED

    def test_accepted_turn_advances_game(self, client, parser):
        response = _finish(client)

        assert response.status_code == HTTPStatus.OK
        body = response.json()
        assert body["current_player_steam_id"] == "p2"
        assert body["round"] == 3
        assert body["game_turn_range_key"] == 6
        assert parser.calls == [UPLOAD]

    def test_accepted_turn_is_persisted(self, client, app, tmp_path):
        _finish(client)

        async def load():
            game = await SqliteGameRepository(app.state.db).get_game("g1")
            turn = await SqliteTurnRepository(app.state.db).get_turn("g1", 6)
            user = await SqliteUserRepository(app.state.db).get_user("p1")
            return game, turn, user

        game, turn, user = asyncio.run(load())
        assert game.version == 1
        assert turn.player_steam_id == "p2"
        assert user.turns_played == 1
        assert (tmp_path / "saves" / create_save_key("g1", 6)).read_bytes() == UPLOAD

    def test_not_your_turn(self, client):
        response = _finish(client, key=P2_KEY)

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert response.json() == {"error": "It's not your turn!", "kind": "not_your_turn"}

    def test_rejected_turn_reports_kind(self, client, parser):
        parser.parsed = make_save(round=7)

        response = _finish(client)

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert response.json()["kind"] == "round_mismatch"

    def test_unknown_game(self, client):
        response = _finish(client, game_id="missing")
        assert response.status_code == HTTPStatus.NOT_FOUND
        assert "missing" in response.json()["error"]

    def test_unreadable_save(self, client, parser):
        parser.error = SaveParseError("not a Civ save")

        response = _finish(client)

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert response.json() == {"error": "not a Civ save", "kind": "invalid_save"}

    def test_empty_upload_is_invalid_save(self, client, parser):
        response = _finish(client, content=b"")

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert response.json()["kind"] == "invalid_save"
        assert parser.calls == []

    def test_compressed_upload_is_inflated(self, client, parser):
        response = _finish(client, content=gzip.compress(UPLOAD))

        assert response.status_code == HTTPStatus.OK
        assert parser.calls == [UPLOAD]

    def test_unexpected_error_is_generic(self, client, parser):
        parser.error = RuntimeError("parser exploded")

        response = _finish(client)

        assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.json() == {"error": GENERIC_ERROR_MESSAGE}

    def test_second_submission_of_same_turn_is_rejected(self, client):
        assert _finish(client).status_code == HTTPStatus.OK
        assert _finish(client).status_code == HTTPStatus.BAD_REQUEST


class TestGetTurn:
    def test_download_link_serves_current_save(self, client):
        response = client.get("/game/g1/turn", headers={API_KEY_HEADER: P1_KEY})
        assert response.status_code == HTTPStatus.OK
        url = response.json()["downloadUrl"]
        assert url.startswith(f"{PUBLIC_BASE_URL}/saves/")

        download = client.get(url.removeprefix(PUBLIC_BASE_URL))

        assert download.status_code == HTTPStatus.OK
        assert download.content == CURRENT_SAVE
        assert download.headers["content-disposition"] == 'attachment; filename="Play This One!.Civ6Save"'

    def test_only_current_player_gets_link(self, client):
        response = client.get("/game/g1/turn", headers={API_KEY_HEADER: P2_KEY})
        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert response.json()["kind"] == "not_your_turn"

    def test_requires_api_key(self, client):
        assert client.get("/game/g1/turn").status_code == HTTPStatus.UNAUTHORIZED

    def test_tampered_token_is_forbidden(self, client):
        response = client.get("/saves/not-a-token")
        assert response.status_code == HTTPStatus.FORBIDDEN
        assert response.json() == {"error": "Invalid or expired download link"}

    def test_link_to_missing_save(self, client, tmp_path):
        url = client.get("/game/g1/turn", headers={API_KEY_HEADER: P1_KEY}).json()["downloadUrl"]
        (tmp_path / "saves" / create_save_key("g1", 5)).unlink()

        assert client.get(url.removeprefix(PUBLIC_BASE_URL)).status_code == HTTPStatus.NOT_FOUND

    def test_next_player_downloads_submitted_upload(self, client):
        assert _finish(client).status_code == HTTPStatus.OK

        url = client.get("/game/g1/turn", headers={API_KEY_HEADER: P2_KEY}).json()["downloadUrl"]
        download = client.get(url.removeprefix(PUBLIC_BASE_URL))

        assert download.status_code == HTTPStatus.OK
        assert download.content == UPLOAD
