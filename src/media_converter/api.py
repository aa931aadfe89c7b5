from __future__ import annotations

import threading
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Callable, List

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from .config import load_config
from .core import ConversionEngine
from .errors import ConversionError
from .handles import LocalHandleProvider
from .models import Selection
from .selection import drop_entries, select_files, select_folder

_STATUS_CODES: dict[str, int] = {
    "CAPABILITY_UNSUPPORTED": 400,
    "PERMISSION_DENIED": 403,
    "DISCOVERY_FAILED": 422,
    "BATCH_RUNNING": 409,
}


class FolderRequest(BaseModel):
    path: str


class PathsRequest(BaseModel):
    paths: List[str]


def create_app(
    config_path: Path | None = None,
    *,
    require_enabled: bool = True,
    engine: ConversionEngine | None = None,
) -> FastAPI:
    config = engine.config if engine is not None else load_config(config_path)
    if require_enabled and not config.runtime.enable_local_api:
        raise RuntimeError("Local API is disabled. Enable it via config.runtime.enable_local_api")
    engine = engine or ConversionEngine(config)
    provider = LocalHandleProvider()

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        engine.close()

    app = FastAPI(title="Local Media Converter", version="0.1.0", lifespan=lifespan)
    app.state.config = config
    app.state.engine = engine

    def _load(loader: Callable[[], Selection]) -> dict[str, Any]:
        try:
            state = engine.scan(loader)
        except ConversionError as exc:
            raise HTTPException(status_code=_STATUS_CODES.get(exc.code, 400), detail=exc.code) from exc
        except FileNotFoundError as exc:
            raise HTTPException(status_code=404, detail="NOT_FOUND") from exc
        return state.as_dict()

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/scan")
    def scan(request: FolderRequest) -> dict[str, Any]:
        return _load(lambda: select_folder(provider, request.path))

    @app.post("/files")
    def files(request: PathsRequest) -> dict[str, Any]:
        return _load(lambda: select_files(provider, request.paths))

    @app.post("/drop")
    def drop(request: PathsRequest) -> dict[str, Any]:
        return _load(lambda: drop_entries(provider, request.paths))

    @app.post("/convert", status_code=202)
    def convert() -> dict[str, Any]:
        state = engine.state
        if state.is_running:
            raise HTTPException(status_code=409, detail="BATCH_RUNNING")
        if state.total_tasks == 0:
            raise HTTPException(status_code=409, detail="NOTHING_LOADED")
        threading.Thread(target=engine.process_items, name="media-converter-batch", daemon=True).start()
        return state.as_dict()

    @app.get("/status")
    def status() -> dict[str, Any]:
        return engine.state.as_dict()

    return app


__all__ = ["create_app"]
