from functools import lru_cache
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.features.favicons.dependencies.favicon import get_favicon_service, get_repository
from app.features.favicons.services.favicon_service import FaviconService
from app.features.favicons.services.repository import FaviconRepository
from app.platform.config import Settings, get_settings
from app.platform.logger import get_logger
from app.platform.utils.url_validator import ensure_scheme, extract_domain

logger = get_logger(__name__)

router = APIRouter()

DEFAULT_FAVICON_PATH = Path(__file__).resolve().parents[3] / "static" / "favicon.ico"


@lru_cache
def default_favicon() -> bytes:
    return DEFAULT_FAVICON_PATH.read_bytes()


def header_safe_host(domain: str) -> str:
    """ASCII form of the host for use in response headers (IDNA, else percent-encoded)."""
    try:
        return domain.encode("idna").decode("ascii")
    except UnicodeError:
        return quote(domain, safe=".-")


def favicon_etag(domain: str) -> str:
    return f'"fav-{header_safe_host(domain)}"'


def etag_matches(if_none_match: Optional[str], etag: str) -> bool:
    return if_none_match in (etag, f"W/{etag}")


@router.get("/", tags=["favicons"])
async def get_favicon(
    request: Request,
    url: Optional[str] = None,
    repository: FaviconRepository = Depends(get_repository),
    service: FaviconService = Depends(get_favicon_service),
    settings: Settings = Depends(get_settings),
):
    if not url or not url.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing 'url' query parameter. Usage: /?url=<url>",
        )

    domain = extract_domain(ensure_scheme(url))

    try:
        cached = await repository.get(domain)
    except SQLAlchemyError as e:
        logger.error(f"Cache lookup failed for {domain}: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database connection failed"
        )

    if cached is not None:
        etag = favicon_etag(domain)
        if etag_matches(request.headers.get("If-None-Match"), etag):
            return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers={"ETag": etag})

        logger.info(f"Cache hit for {domain}")
        return Response(
            content=cached.data,
            media_type=cached.content_type,
            headers={
                "Cache-Control": f"public, max-age={settings.CACHE_TTL}, immutable",
                "ETag": etag,
                "X-Cache": "HIT",
                "X-Favicon-Source": "cached",
            },
        )

    result = await service.resolve(domain)
    if result is not None:
        return Response(
            content=result.data,
            media_type=result.content_type,
            headers={
                "Cache-Control": f"public, max-age={settings.CACHE_TTL}",
                "X-Cache": "MISS",
                "X-Favicon-Source": "fetched",
            },
        )

    return Response(
        content=default_favicon(),
        media_type="image/x-icon",
        headers={
            "Cache-Control": f"public, max-age={settings.CACHE_TTL}",
            "X-Cache": "DEFAULT",
            "X-Favicon-Source": "default",
        },
    )


@router.get("/domains", tags=["favicons"])
async def list_domains(
    repository: FaviconRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
):
    try:
        await repository.ping()
        summaries = await repository.list()
    except SQLAlchemyError as e:
        logger.error(f"Listing cached domains failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database connection failed"
        )

    return JSONResponse(
        content=jsonable_encoder(summaries),
        headers={"Cache-Control": f"public, max-age={settings.LIST_CACHE_TTL}, must-revalidate"},
    )
