"""Entry point for the FastAPI-powered anime catalog backend."""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError

from .config import settings
from .database import Database
from .models import MediaKind, ProgressReport, Title, WatchHistoryEntry
from .services.catalog import CatalogService, MissingTitle
from .stores import DocumentCatalogStore, DocumentHistoryStore, DocumentStore
from .uploads import MEDIA_DIRECTORIES, UploadError, UploadStorage
from .utils import parse_int
from .web import render_player

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    database = Database(settings.database_url)
    await database.create_all()

    documents = DocumentStore(database.session_factory)
    catalog_service = CatalogService(
        settings,
        DocumentCatalogStore(documents),
        DocumentHistoryStore(documents),
    )
    upload_storage = UploadStorage.from_settings(settings)
    upload_storage.ensure_directories()
    logger.info("Upload directory: %s", upload_storage.root)

    fastapi_app.state.catalog_service = catalog_service
    fastapi_app.state.upload_storage = upload_storage
    fastapi_app.state.database = database

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await database.dispose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Media uploads and catalog API for the Senpai Anime site",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["*"],
    )

    fastapi_app.mount(
        settings.upload_url_prefix,
        StaticFiles(directory=settings.upload_dir, check_dir=False),
        name="uploads",
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_catalog_service(app: FastAPI) -> CatalogService:
    service = getattr(app.state, "catalog_service", None)
    if not isinstance(service, CatalogService):
        raise RuntimeError("Catalog service not initialised")
    return service


def get_upload_storage(app: FastAPI) -> UploadStorage:
    storage = getattr(app.state, "upload_storage", None)
    if not isinstance(storage, UploadStorage):
        raise RuntimeError("Upload storage not initialised")
    return storage


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        {"success": False, "message": message}, status_code=status_code
    )


def _validation_detail(exc: ValidationError) -> list[dict[str, Any]]:
    return [dict(error) for error in exc.errors(include_url=False, include_context=False)]


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=400, detail="Invalid JSON payload") from exc


def register_routes(fastapi_app: FastAPI) -> None:
    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.post("/api/upload/{media_type}")
    async def upload_file(
        media_type: str, file: UploadFile | None = File(default=None)
    ) -> JSONResponse:
        if media_type not in MEDIA_DIRECTORIES:
            return _failure(400, f"Unsupported upload type: {media_type}")
        if file is None:
            return _failure(400, f"No {media_type} file uploaded")
        storage = get_upload_storage(fastapi_app)
        kind: MediaKind = "video" if media_type == "video" else "image"
        try:
            result = await storage.store(file, kind)
        except UploadError as exc:
            logger.warning("Rejected %s upload %s: %s", media_type, file.filename, exc.message)
            return _failure(exc.status_code, exc.message)
        return JSONResponse(result.to_payload(kind))

    @fastapi_app.get("/api/files")
    async def list_files() -> JSONResponse:
        storage = get_upload_storage(fastapi_app)
        try:
            listing = storage.list_files()
        except OSError as exc:
            logger.error("Error listing uploaded files: %s", exc)
            return _failure(500, str(exc))
        return JSONResponse(
            {
                "success": True,
                "files": {
                    group: [entry.model_dump() for entry in entries]
                    for group, entries in listing.items()
                },
            }
        )

    @fastapi_app.get("/api/titles")
    async def list_titles() -> list[dict[str, Any]]:
        service = get_catalog_service(fastapi_app)
        return [title.to_payload() for title in await service.list_titles()]

    @fastapi_app.put("/api/titles")
    async def replace_titles(request: Request) -> dict[str, Any]:
        service = get_catalog_service(fastapi_app)
        payload = await _json_body(request)
        if not isinstance(payload, list):
            raise HTTPException(status_code=400, detail="Expected a list of titles")
        try:
            titles = [Title.model_validate(entry) for entry in payload]
            await service.replace_titles(titles)
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=_validation_detail(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"success": True, "count": len(titles)}

    @fastapi_app.get("/api/titles/{title_id}")
    async def get_title(title_id: str) -> dict[str, Any]:
        service = get_catalog_service(fastapi_app)
        try:
            title = await service.get_title(title_id)
        except MissingTitle as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return title.to_payload()

    @fastapi_app.get("/api/titles/{title_id}/watch")
    async def watch_page(title_id: str, episode: str | None = None) -> dict[str, Any]:
        service = get_catalog_service(fastapi_app)
        try:
            page = await service.watch_page(title_id, episode)
        except MissingTitle as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return page.to_payload()

    @fastapi_app.get("/api/titles/{title_id}/player", response_class=HTMLResponse)
    async def player(title_id: str, episode: str | None = None) -> HTMLResponse:
        service = get_catalog_service(fastapi_app)
        try:
            page = await service.watch_page(title_id, episode)
        except MissingTitle as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return HTMLResponse(
            render_player(
                page.video,
                title_id=page.title.id,
                episode=page.episode,
                throttle_seconds=settings.progress_throttle_seconds,
            )
        )

    @fastapi_app.post("/api/titles/{title_id}/sessions")
    async def start_session(title_id: str, request: Request) -> dict[str, Any]:
        service = get_catalog_service(fastapi_app)
        payload = await _json_body(request) if await request.body() else {}
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Invalid payload")
        episode = parse_int(payload.get("episode"))
        if episode is None:
            episode = 1
        try:
            title = await service.start_session(title_id, episode)
        except MissingTitle as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return {"titleId": title.id, "episode": episode, "views": title.views}

    @fastapi_app.get("/api/history")
    async def get_history() -> list[dict[str, Any]]:
        service = get_catalog_service(fastapi_app)
        return [entry.to_payload() for entry in await service.get_history()]

    @fastapi_app.post("/api/history")
    async def record_watch(request: Request) -> list[dict[str, Any]]:
        service = get_catalog_service(fastapi_app)
        payload = await _json_body(request)
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Invalid payload")
        try:
            entry = WatchHistoryEntry.model_validate(payload)
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=_validation_detail(exc)) from exc
        ledger = await service.record_watch(entry.title_id, entry.episode, entry.progress)
        return [item.to_payload() for item in ledger]

    @fastapi_app.post("/api/history/progress")
    async def report_progress(request: Request) -> dict[str, bool]:
        service = get_catalog_service(fastapi_app)
        payload = await _json_body(request)
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Invalid payload")
        try:
            report = ProgressReport.model_validate(payload)
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=_validation_detail(exc)) from exc
        return {"recorded": await service.report_progress(report)}


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )
