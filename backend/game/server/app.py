from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from game.logic.exceptions import DataUnavailableError, IdentityUnresolvedError
from game.ranking.client import RankingClient
from game.server.settings import GameServerSettings
from game.session.identity import parse_user_id_from_hash, resolve_notice
from game.session.manager import SessionManager
from roster.repository import RosterRepository
from shared.build_info import BUILD
from shared.logging import setup_logging

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request

    from game.session.player_session import PlayerSession


class ActionResponse(BaseModel):
    """Envelope for POST routes: what the action did plus the resulting session snapshot."""

    accepted: bool
    detail: dict | None = None
    session: dict


def _model_response(model: BaseModel, status_code: int = 200) -> Response:
    # Roster cells may hold NaN; pydantic serializes it as null where json.dumps would refuse.
    return Response(model.model_dump_json(), status_code=status_code, media_type="application/json")


def _action(session: PlayerSession, *, accepted: bool, detail: dict | None = None, status_code: int = 200) -> Response:
    payload = ActionResponse(accepted=accepted, detail=detail, session=session.view().model_dump(mode="json"))
    return _model_response(payload, status_code)


def _resolve_session(request: Request) -> PlayerSession | JSONResponse:
    """Look up the caller's session, or build the error response explaining why there is none."""
    session_manager: SessionManager = request.app.state.session_manager
    repository: RosterRepository = request.app.state.repository
    user_id = request.path_params["user_id"].strip()
    structlog.contextvars.bind_contextvars(user_id=user_id)
    try:
        return session_manager.get_or_create(user_id)
    except DataUnavailableError:
        notice = resolve_notice(user_id, roster_ready=repository.ready, roster_empty=True, user=None)
        return JSONResponse({"error": "Roster unavailable", "notice": notice.value}, status_code=503)
    except IdentityUnresolvedError:
        notice = resolve_notice(
            user_id,
            roster_ready=repository.ready,
            roster_empty=not repository.records,
            user=None,
        )
        return JSONResponse({"error": "Unknown player", "notice": notice.value}, status_code=404)


async def health(request: Request) -> JSONResponse:
    repository: RosterRepository = request.app.state.repository
    session_manager: SessionManager = request.app.state.session_manager
    return JSONResponse(
        {
            "status": "ok",
            "version": BUILD.version,
            "commit": BUILD.commit,
            "uptime_seconds": BUILD.uptime_seconds(),
            "roster_ready": repository.ready,
            "roster_size": len(repository.records),
            "roster_source": repository.source,
            "sessions": session_manager.session_count,
        },
    )


async def get_player(request: Request) -> Response:
    session = _resolve_session(request)
    if isinstance(session, JSONResponse):
        return session
    return _model_response(session.view())


async def start_game(request: Request) -> Response:
    session = _resolve_session(request)
    if isinstance(session, JSONResponse):
        return session
    round_no = await session.start()
    return _action(
        session,
        accepted=round_no is not None or session.all_complete,
        detail={"round": round_no, "all_complete": session.all_complete},
    )


async def enter_round(request: Request) -> Response:
    session = _resolve_session(request)
    if isinstance(session, JSONResponse):
        return session
    round_no: int = request.path_params["round_no"]
    if not await session.enter_round(round_no):
        logger.info("round entry refused", round_no=round_no)
        return JSONResponse({"error": "Round is locked", "round": round_no}, status_code=409)
    return _action(session, accepted=True, detail={"round": round_no})


async def activate_row(request: Request) -> Response:
    session = _resolve_session(request)
    if isinstance(session, JSONResponse):
        return session
    outcome = await session.activate(request.path_params["index"])
    detail = outcome.model_dump(mode="json") if outcome is not None else None
    return _action(session, accepted=outcome is not None, detail=detail)


async def show_results(request: Request) -> Response:
    session = _resolve_session(request)
    if isinstance(session, JSONResponse):
        return session
    if not session.show_results():
        return JSONResponse({"error": "Results are not available yet"}, status_code=409)
    return _action(session, accepted=True)


async def switch_identity(request: Request) -> Response:
    """Re-key the caller's session to the id carried in a URL fragment such as ``#id=s002``."""
    session = _resolve_session(request)
    if isinstance(session, JSONResponse):
        return session
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse({"error": "Invalid JSON"}, status_code=400)
    fragment = body.get("hash") if isinstance(body, dict) else None
    if not isinstance(fragment, str):
        return JSONResponse({"error": "Missing field: hash"}, status_code=400)

    new_user_id = parse_user_id_from_hash(fragment)
    session_manager: SessionManager = request.app.state.session_manager
    repository: RosterRepository = request.app.state.repository
    try:
        session = session_manager.switch_identity(session.user_id, new_user_id)
    except IdentityUnresolvedError:
        notice = resolve_notice(new_user_id, roster_ready=repository.ready, roster_empty=False, user=None)
        return JSONResponse({"error": "Unknown player", "notice": notice.value}, status_code=404)
    structlog.contextvars.bind_contextvars(user_id=session.user_id)
    return _action(session, accepted=True, detail={"user_id": session.user_id})


def create_app(
    settings: GameServerSettings | None = None,
    repository: RosterRepository | None = None,
    client: RankingClient | None = None,
    session_manager: SessionManager | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = GameServerSettings()

    if repository is None:
        repository = RosterRepository(settings.roster_sources)

    if client is None:
        client = RankingClient(
            settings.ranking_base_url,
            ranking_path=settings.ranking_path,
            result_path=settings.result_path,
            timeout=settings.request_timeout,
        )

    if session_manager is None:
        session_manager = SessionManager(repository, client, settings=settings.game_settings())

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/players/{user_id}", get_player, methods=["GET"]),
        Route("/players/{user_id}/start", start_game, methods=["POST"]),
        Route("/players/{user_id}/rounds/{round_no:int}", enter_round, methods=["POST"]),
        Route("/players/{user_id}/rows/{index:int}", activate_row, methods=["POST"]),
        Route("/players/{user_id}/results", show_results, methods=["POST"]),
        Route("/players/{user_id}/identity", switch_identity, methods=["POST"]),
    ]

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        await repository.load()
        session_manager.start_session_reaper()
        logger.info("game server ready", roster_size=len(repository.records))
        yield
        session_manager.close_all()

    app = Starlette(routes=routes, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.repository = repository
    app.state.session_manager = session_manager
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (e.g., uvicorn --factory)."""
    _settings = GameServerSettings()
    setup_logging(_settings.log_dir)
    return create_app(settings=_settings)
