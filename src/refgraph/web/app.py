"""FastAPI application serving queries over the loaded datafiles."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, RedirectResponse, Response
from pydantic import BaseModel

from refgraph import __version__
from refgraph.config import AppConfig
from refgraph.errors import QueryError
from refgraph.index.store import RecordStore
from refgraph.ingestion.loader import make_loader
from refgraph.query import QueryExecutor
from refgraph.schema import Catalogue, load_catalogue

LOGGER = logging.getLogger(__name__)

# Reachable while no data is loaded.
UNGATED_PATHS = frozenset({"/", "/reload"})


class QueryPayload(BaseModel):
    query: Dict[str, Any]


def create_app(
    config: AppConfig | None = None,
    *,
    store: RecordStore | None = None,
    catalogue: Catalogue | None = None,
) -> FastAPI:
    config = config or AppConfig.from_env()
    if store is None:
        store = RecordStore(make_loader(config.resolve_data_path(Path.cwd())))
    if catalogue is None:
        catalogue = load_catalogue(config.schema_file)

    app = FastAPI(title="refgraph", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.store = store
    app.state.catalogue = catalogue
    app.state.executor = QueryExecutor(store, catalogue)

    @app.middleware("http")
    async def readiness_gate(request: Request, call_next):
        if request.url.path not in UNGATED_PATHS and not app.state.store.ready:
            return PlainTextResponse("No loaded data.", status_code=503)
        return await call_next(request)

    @app.on_event("startup")
    async def startup_event() -> None:
        logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
        await asyncio.to_thread(app.state.store.load)

    @app.get("/")
    async def root() -> RedirectResponse:
        return RedirectResponse(url="/query")

    @app.get("/reload")
    async def reload() -> Response:
        loaded = await asyncio.to_thread(app.state.store.load)
        if not loaded:
            raise HTTPException(status_code=500, detail="Failed to load datafiles")
        return Response()

    @app.get("/sha256")
    async def sha256() -> PlainTextResponse:
        return PlainTextResponse(app.state.store.sha256)

    @app.get("/healthz")
    async def healthz() -> Response:
        return Response()

    @app.get("/query")
    async def describe() -> Dict[str, Any]:
        return app.state.catalogue.describe()

    @app.post("/query")
    async def run_query(payload: QueryPayload) -> Dict[str, Any]:
        try:
            data = app.state.executor.execute(payload.query)
        except QueryError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"data": data}

    return app
