"""Entry point for the FastAPI surface over the catalog engine."""

from __future__ import annotations

import json
import logging
import secrets
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .authoring import AuthoringService, AuthoringValidationError, draft_from_payload
from .categories import CATEGORY_FILTERS, grid_heading
from .config import Settings, get_settings
from .database import Database
from .engine import CatalogEngine
from .models import AppSettings, ContentItem
from .remote import SqlRemoteStore
from .storage import JsonFileStorage
from .taxonomy import default_season, group_by_season

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ADMIN_TOKEN_HEADER = "X-Admin-Token"

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    app_settings: Settings = fastapi_app.state.settings
    exit_stack = AsyncExitStack()

    engine = getattr(fastapi_app.state, "engine", None)
    if engine is None:
        database = Database(app_settings.database_url)
        await database.create_all()
        exit_stack.push_async_callback(database.dispose)
        remote = SqlRemoteStore(
            database.session_factory, poll_seconds=app_settings.store_poll_seconds
        )
        exit_stack.push_async_callback(remote.aclose)
        storage = JsonFileStorage(app_settings.favorites_path)
        engine = CatalogEngine.from_settings(app_settings, remote, storage)
        fastapi_app.state.engine = engine
    if getattr(fastapi_app.state, "authoring", None) is None:
        fastapi_app.state.authoring = AuthoringService(
            engine.remote, app_settings.default_app_settings()
        )

    await engine.start()
    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await engine.shutdown()
        await exit_stack.aclose()


def create_app(
    settings: Settings | None = None,
    *,
    engine: CatalogEngine | None = None,
    authoring: AuthoringService | None = None,
) -> FastAPI:
    app_settings = settings or get_settings()
    fastapi_app = FastAPI(
        title=app_settings.app_name,
        description="Live catalog browsing and authoring API",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    fastapi_app.state.settings = app_settings
    fastapi_app.state.engine = engine
    fastapi_app.state.authoring = authoring

    register_routes(fastapi_app)
    return fastapi_app


def get_engine(app: FastAPI) -> CatalogEngine:
    engine = getattr(app.state, "engine", None)
    if not isinstance(engine, CatalogEngine):
        raise RuntimeError("Catalog engine not initialised")
    return engine


def get_authoring(app: FastAPI) -> AuthoringService:
    service = getattr(app.state, "authoring", None)
    if not isinstance(service, AuthoringService):
        raise RuntimeError("Authoring service not initialised")
    return service


def _item_payload(engine: CatalogEngine, item: ContentItem) -> dict[str, Any]:
    payload = item.to_payload()
    payload["isFavorite"] = engine.is_favorite(item.id)
    return payload


def _item_detail(engine: CatalogEngine, item: ContentItem) -> dict[str, Any]:
    seasons = group_by_season(item.episodes)
    payload = _item_payload(engine, item)
    payload["link"] = engine.deep_link(item.access_code) if item.access_code else None
    payload["seasons"] = list(seasons)
    payload["defaultSeason"] = default_season(seasons)
    payload["episodesBySeason"] = {
        str(season): [
            {**episode.to_document(), "link": engine.deep_link(episode.access_code)}
            for episode in episodes
        ]
        for season, episodes in seasons.items()
    }
    return payload


async def _json_body(request: Request) -> dict[str, Any]:
    try:
        payload = await request.json()
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=400, detail="Invalid JSON body") from exc
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid payload")
    return payload


def _validation_detail(exc: AuthoringValidationError) -> dict[str, Any]:
    return {
        "error": "validation_failed",
        "description": str(exc),
        "missing": exc.missing,
    }


def _errors(exc: ValidationError) -> list[dict[str, Any]]:
    return json.loads(exc.json(include_url=False))


def register_routes(fastapi_app: FastAPI) -> None:
    def _require_admin(request: Request) -> None:
        app_settings: Settings = fastapi_app.state.settings
        expected = app_settings.admin_token
        if not expected:
            raise HTTPException(
                status_code=503,
                detail={
                    "error": "admin_token_missing",
                    "description": "ADMIN_TOKEN must be configured to enable authoring.",
                },
            )
        supplied = request.headers.get(ADMIN_TOKEN_HEADER) or ""
        if not secrets.compare_digest(supplied.encode(), expected.encode()):
            raise HTTPException(status_code=401, detail="Invalid admin credentials")

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/api/home")
    async def home(category: str | None = None) -> JSONResponse:
        engine = get_engine(fastapi_app)
        try:
            view = engine.view(category)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        payload = view.to_payload(engine.favorite_ids)
        payload["heading"] = grid_heading(view.active_category)
        payload["categories"] = list(CATEGORY_FILTERS)
        payload["offline"] = engine.store.using_seed
        return JSONResponse(payload)

    @fastapi_app.get("/api/items/{item_id}")
    async def item_detail(item_id: str) -> JSONResponse:
        engine = get_engine(fastapi_app)
        item = engine.get_item(item_id)
        if item is None:
            raise HTTPException(status_code=404, detail=f"Content {item_id} not found")
        return JSONResponse(_item_detail(engine, item))

    @fastapi_app.get("/api/surprise")
    async def surprise() -> JSONResponse:
        engine = get_engine(fastapi_app)
        item = engine.surprise_me()
        if item is None:
            raise HTTPException(status_code=404, detail="Catalog is empty")
        return JSONResponse(_item_payload(engine, item))

    @fastapi_app.get("/api/favorites")
    async def favorites() -> JSONResponse:
        engine = get_engine(fastapi_app)
        view = engine.view()
        return JSONResponse(
            {
                "ids": sorted(engine.favorite_ids),
                "items": [_item_payload(engine, item) for item in view.favorites],
            }
        )

    @fastapi_app.post("/api/favorites/{item_id}/toggle")
    async def toggle_favorite(item_id: str) -> JSONResponse:
        engine = get_engine(fastapi_app)
        added = engine.toggle_favorite(item_id)
        return JSONResponse(
            {"id": item_id, "isFavorite": added, "ids": sorted(engine.favorite_ids)}
        )

    @fastapi_app.get("/api/settings")
    async def app_settings_endpoint() -> JSONResponse:
        engine = get_engine(fastapi_app)
        return JSONResponse(engine.settings.to_document())

    @fastapi_app.get("/api/admin/content")
    async def admin_library(request: Request, search: str = "") -> JSONResponse:
        _require_admin(request)
        service = get_authoring(fastapi_app)
        items = await service.library(search)
        return JSONResponse({"items": [item.to_payload() for item in items]})

    @fastapi_app.post("/api/admin/content", status_code=201)
    async def admin_create(request: Request) -> JSONResponse:
        _require_admin(request)
        service = get_authoring(fastapi_app)
        payload = await _json_body(request)
        try:
            draft = draft_from_payload(payload)
            item_id = await service.publish(draft)
        except AuthoringValidationError as exc:
            raise HTTPException(status_code=422, detail=_validation_detail(exc)) from exc
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=_errors(exc)) from exc
        return JSONResponse({"id": item_id}, status_code=201)

    @fastapi_app.put("/api/admin/content/{item_id}")
    async def admin_update(item_id: str, request: Request) -> JSONResponse:
        _require_admin(request)
        service = get_authoring(fastapi_app)
        payload = await _json_body(request)
        try:
            draft = draft_from_payload(payload)
            await service.publish(draft, item_id=item_id)
        except AuthoringValidationError as exc:
            raise HTTPException(status_code=422, detail=_validation_detail(exc)) from exc
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=_errors(exc)) from exc
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return JSONResponse({"id": item_id})

    @fastapi_app.delete("/api/admin/content/{item_id}", status_code=204)
    async def admin_delete(item_id: str, request: Request) -> Response:
        _require_admin(request)
        service = get_authoring(fastapi_app)
        try:
            await service.delete(item_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return Response(status_code=204)

    @fastapi_app.post("/api/admin/seed")
    async def admin_seed(request: Request) -> JSONResponse:
        _require_admin(request)
        service = get_authoring(fastapi_app)
        identifiers = await service.seed_demo_data()
        return JSONResponse({"created": len(identifiers), "ids": identifiers})

    @fastapi_app.get("/api/admin/settings")
    async def admin_get_settings(request: Request) -> JSONResponse:
        _require_admin(request)
        service = get_authoring(fastapi_app)
        current = await service.load_settings()
        return JSONResponse(current.to_document())

    @fastapi_app.put("/api/admin/settings")
    async def admin_save_settings(request: Request) -> JSONResponse:
        _require_admin(request)
        service = get_authoring(fastapi_app)
        payload = await _json_body(request)
        try:
            new_settings = AppSettings.model_validate(payload)
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=_errors(exc)) from exc
        await service.save_settings(new_settings)
        return JSONResponse(new_settings.to_document())


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "cineflix.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )
