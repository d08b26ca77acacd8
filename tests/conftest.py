"""
Test configuration and fixtures for the favicon service.

The database URL is pointed at a throwaway SQLite file before the app is
imported, and outbound HTTP goes through httpx.MockTransport so no test
touches the network.
"""

import io
import os
import tempfile
from typing import Callable, Generator

from dotenv import load_dotenv

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from PIL import Image

load_dotenv()

_test_dir = tempfile.mkdtemp(prefix="favicon-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_test_dir, 'test.db')}"
os.environ["LOG_DIR"] = os.path.join(_test_dir, "logs")
os.environ["CELERY_BROKER_URL"] = "memory://"

from app.platform.config import Settings  # noqa: E402
from app.platform.db.session import build_engine, build_sessionmaker, init_models  # noqa: E402
from app.platform.http_client import build_http_client  # noqa: E402


@pytest.fixture(scope="session")
def test_app():
    """Create FastAPI test application."""
    from app.main import app

    return app


@pytest.fixture(scope="function")
def client(test_app) -> Generator[TestClient, None, None]:
    """
    A TestClient that runs the app lifespan, so app.state holds a real
    repository backed by the temporary database.
    """
    with TestClient(test_app) as test_client:
        yield test_client
    test_app.dependency_overrides.clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        RESOLVE_TIMEOUT=1.0,
        REQUEST_TIMEOUT=0.5,
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
    )


@pytest.fixture
def mock_http(settings) -> Callable[[Callable], httpx.AsyncClient]:
    """Build an AsyncClient whose requests are answered by ``handler``."""

    def factory(handler) -> httpx.AsyncClient:
        return build_http_client(settings, transport=httpx.MockTransport(handler))

    return factory


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    db_settings = Settings(DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'cache.db'}")
    engine = build_engine(db_settings)
    await init_models(engine)
    yield build_sessionmaker(engine)
    await engine.dispose()


def make_image(size: int, fmt: str = "PNG", noisy: bool = False) -> bytes:
    """Encode a size x size image; noisy pixels keep it from compressing well."""
    if noisy:
        img = Image.frombytes("RGB", (size, size), os.urandom(size * size * 3))
    else:
        img = Image.new("RGB", (size, size), (200, 30, 30))
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def image_factory() -> Callable[..., bytes]:
    return make_image


@pytest.fixture
def small_png() -> bytes:
    return make_image(16)
