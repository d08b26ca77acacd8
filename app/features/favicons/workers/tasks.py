"""
Celery tasks for favicon cache maintenance, scheduled via Celery Beat.
"""
import asyncio
from datetime import timedelta

from celery import shared_task

from app.features.favicons.services.repository import FaviconRepository
from app.platform.config import get_settings
from app.platform.db.session import build_engine, build_sessionmaker
from app.platform.logger import get_logger

logger = get_logger(__name__)


async def _cleanup_expired() -> int:
    settings = get_settings()
    engine = build_engine(settings)
    try:
        repository = FaviconRepository(
            build_sessionmaker(engine), ttl=timedelta(seconds=settings.CACHE_TTL)
        )
        return await repository.cleanup_expired()
    finally:
        await engine.dispose()


@shared_task(name="app.features.favicons.workers.tasks.cleanup_expired_favicons")
def cleanup_expired_favicons() -> int:
    """Delete cached favicons past their expiry. A no-op when the cache never expires."""
    if not get_settings().CACHE_EXPIRES:
        return 0

    removed = asyncio.run(_cleanup_expired())
    logger.info(f"Removed {removed} expired favicons")
    return removed
