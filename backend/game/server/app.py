from __future__ import annotations

import asyncio
import contextlib
import pkgutil
from http import HTTPStatus
from typing import TYPE_CHECKING, cast

import structlog
import uvicorn
from starlette.applications import Starlette
from starlette.authentication import requires
from starlette.exceptions import HTTPException
from starlette.middleware.authentication import AuthenticationMiddleware
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from game.logic.defeat import UserDefeatHandler
from game.logic.exceptions import GameNotFoundError, SaveParseError, TurnRejectedError
from game.logic.notifier import WebhookNotifier
from game.logic.submission import TurnSubmissionService
from game.server.auth import ApiKeyBackend
from game.server.settings import TurnServerSettings
from shared.dal.exceptions import ConcurrentUpdateError
from shared.db import (
    Database,
    SqliteGameRepository,
    SqlitePrivateUserDataRepository,
    SqliteTurnRepository,
    SqliteUserRepository,
)
from shared.download_token import create_download_token, verify_download_token
from shared.logging import setup_logging
from shared.storage import LocalBlobStore

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request

    from game.logic.parser import SaveFileParser

GENERIC_ERROR_MESSAGE = "There was an error processing your request."
INVALID_SAVE_KIND = "invalid_save"


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


@requires("authenticated", status_code=HTTPStatus.UNAUTHORIZED)
async def finish_submit(request: Request) -> JSONResponse:
    service: TurnSubmissionService = request.app.state.turn_service
    game_id = request.path_params["game_id"]
    source_ip = request.client.host if request.client else None

    data = await request.body()

    game = await service.finish_submit(game_id, request.user.steam_id, data, source_ip)
    return JSONResponse(game.model_dump(mode="json"))


@requires("authenticated", status_code=HTTPStatus.UNAUTHORIZED)
async def get_turn(request: Request) -> JSONResponse:
    service: TurnSubmissionService = request.app.state.turn_service
    settings: TurnServerSettings = request.app.state.settings
    compressed = bool(request.query_params.get("compressed"))

    pending = await service.get_turn_download(
        request.path_params["game_id"],
        request.user.steam_id,
        compressed=compressed,
    )
    token = create_download_token(
        pending.key,
        pending.filename,
        settings.download_secret,
        ttl_seconds=settings.download_ttl_seconds,
    )
    return JSONResponse({"downloadUrl": f"{settings.public_base_url.rstrip('/')}/saves/{token}"})


async def download_save(request: Request) -> Response:
    settings: TurnServerSettings = request.app.state.settings
    ticket = verify_download_token(request.path_params["token"], settings.download_secret)
    if ticket is None:
        return JSONResponse({"error": "Invalid or expired download link"}, status_code=HTTPStatus.FORBIDDEN)

    data = await asyncio.to_thread(request.app.state.blob_store.fetch, ticket.key)
    if data is None:
        logger.warning("download link points at missing save", key=ticket.key)
        return JSONResponse({"error": "Save file not found"}, status_code=HTTPStatus.NOT_FOUND)
    return Response(
        content=data,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{ticket.filename}"'},
    )


async def _turn_rejected_handler(_request: Request, exc: Exception) -> JSONResponse:
    rejection = cast("TurnRejectedError", exc)
    return JSONResponse(
        {"error": rejection.message, "kind": rejection.kind.value},
        status_code=HTTPStatus.BAD_REQUEST,
    )


async def _save_parse_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.info("uploaded save could not be parsed", error=str(exc))
    return JSONResponse({"error": str(exc), "kind": INVALID_SAVE_KIND}, status_code=HTTPStatus.BAD_REQUEST)


async def _game_not_found_handler(_request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse({"error": str(exc)}, status_code=HTTPStatus.NOT_FOUND)


async def _concurrent_update_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.warning("turn submission lost a concurrent update", error=str(exc))
    return JSONResponse(
        {"error": "The game was updated by another request, please try again."},
        status_code=HTTPStatus.CONFLICT,
    )


async def _http_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    http_exc = cast("HTTPException", exc)
    return JSONResponse({"error": http_exc.detail}, status_code=http_exc.status_code, headers=http_exc.headers)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error processing request", path=request.url.path, error=str(exc))
    return JSONResponse({"error": GENERIC_ERROR_MESSAGE}, status_code=HTTPStatus.INTERNAL_SERVER_ERROR)


def _load_save_parser(dotted_path: str | None) -> SaveFileParser:
    """Instantiate the SaveFileParser class named by a 'module:Class' path."""
    if not dotted_path:
        raise ValueError("TURN_SERVER_SAVE_PARSER must name a SaveFileParser implementation")
    parser_cls = pkgutil.resolve_name(dotted_path)
    return parser_cls()


def create_app(
    settings: TurnServerSettings | None = None,
    save_parser: SaveFileParser | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = TurnServerSettings()  # ty: ignore[missing-argument]
    if save_parser is None:  # pragma: no cover
        save_parser = _load_save_parser(settings.save_parser)

    db = Database(settings.database_path)
    db.connect()
    user_repository = SqliteUserRepository(db)
    blob_store = LocalBlobStore(settings.save_dir)
    turn_service = TurnSubmissionService(
        game_repository=SqliteGameRepository(db),
        turn_repository=SqliteTurnRepository(db),
        user_repository=user_repository,
        private_user_data_repository=SqlitePrivateUserDataRepository(db),
        blob_store=blob_store,
        save_parser=save_parser,
        notifier=WebhookNotifier(settings.finalize_webhook_url, timeout=settings.webhook_timeout_seconds),
        defeat_handler=UserDefeatHandler(user_repository),
    )

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/game/{game_id}/turn/finishSubmit", finish_submit, methods=["POST"]),
        Route("/game/{game_id}/turn", get_turn, methods=["GET"]),
        Route("/saves/{token}", download_save, methods=["GET"], name="download_save"),
    ]

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:  # pragma: no cover
        yield
        db.close()

    app = Starlette(
        routes=routes,
        lifespan=lifespan,
        exception_handlers={
            TurnRejectedError: _turn_rejected_handler,
            SaveParseError: _save_parse_error_handler,
            GameNotFoundError: _game_not_found_handler,
            ConcurrentUpdateError: _concurrent_update_handler,
            HTTPException: _http_exception_handler,
            Exception: _unhandled_error_handler,
        },
    )
    app.add_middleware(AuthenticationMiddleware, backend=ApiKeyBackend(user_repository))  # type: ignore[arg-type]

    app.state.db = db
    app.state.settings = settings
    app.state.blob_store = blob_store
    app.state.turn_service = turn_service

    logger.info("turn server ready")
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (e.g., uvicorn --factory)."""
    _settings = TurnServerSettings()  # ty: ignore[missing-argument]
    setup_logging(log_dir=_settings.log_dir)
    return create_app(settings=_settings)


def run() -> None:
    """Console entry point: serve get_app() with uvicorn."""
    settings = TurnServerSettings()  # ty: ignore[missing-argument]
    uvicorn.run("game.server.app:get_app", factory=True, host=settings.host, port=settings.port)
