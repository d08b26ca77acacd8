from contextlib import asynccontextmanager
from datetime import timedelta
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.features.favicons.routes.favicons import router as favicons_router
from app.features.favicons.services.discovery import IconProber
from app.features.favicons.services.favicon_service import FaviconService
from app.features.favicons.services.repository import FaviconRepository
from app.features.favicons.services.resolver import Resolver
from app.features.health.routes.health import router as health_router
from app.platform.config import Settings, get_settings
from app.platform.db.session import build_engine, build_sessionmaker, init_models
from app.platform.exceptions import add_exception_handlers
from app.platform.http_client import build_http_client
from app.platform.logger import get_logger

logger = get_logger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


def build_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = build_engine(settings)
        # No store, no service: let startup fail loudly.
        await init_models(engine)

        client = build_http_client(settings)
        ttl = timedelta(seconds=settings.CACHE_TTL) if settings.CACHE_EXPIRES else None
        repository = FaviconRepository(build_sessionmaker(engine), ttl=ttl)

        app.state.repository = repository
        app.state.http_client = client
        app.state.favicon_service = FaviconService(
            repository=repository,
            resolver=Resolver(client, settings),
            prober=IconProber(client, settings.MAX_HTML_BYTES, settings.REQUEST_TIMEOUT),
        )
        logger.info(f"{settings.APP_NAME} started (cache ttl: {ttl or 'none'})")

        try:
            yield
        finally:
            await client.aclose()
            await engine.dispose()
            logger.info(f"{settings.APP_NAME} stopped")

    return lifespan


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Discovers, normalizes and caches website favicons",
        version="1.0.0",
        debug=settings.DEBUG,
        lifespan=build_lifespan(settings),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    add_exception_handlers(app)

    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    app.include_router(health_router)
    app.include_router(favicons_router)

    return app


app = create_app()
