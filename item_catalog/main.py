# item_catalog/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .catalog import catalog_router
from .catalog.stats import FileChangeWatcher, StatsCache
from .config import Settings, get_settings
from .errors import StoreUnavailableError
from .storage import RecordStore

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    store = RecordStore(settings.data_path)
    stats_cache = StatsCache(store.read_all, ttl=settings.stats_ttl_seconds)
    store.subscribe(stats_cache.invalidate)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        watcher = None
        if settings.watch_enabled:
            watcher = FileChangeWatcher(
                settings.data_path,
                stats_cache.invalidate,
                interval=settings.watch_interval_seconds,
            )
            watcher.start()
        app.state.watcher = watcher
        try:
            yield
        finally:
            if watcher is not None:
                watcher.stop()

    app = FastAPI(
        title="Item Catalog",
        description=(
            "Catalogue d'articles servi depuis un fichier JSON : "
            "liste paginée avec recherche, détail, création et statistiques."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.stats_cache = stats_cache

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
        logger.error("Store unavailable while serving %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})

    # Route de base : vérifie que le service répond
    @app.get("/")
    def health_check():
        return {"status": "ok", "message": "Item catalog live"}

    app.include_router(catalog_router)
    return app


app = create_app()
