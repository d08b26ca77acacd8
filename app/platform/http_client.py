import httpx

from app.platform.config import Settings


def build_http_client(settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """
    Shared outbound client. One connection pool for every probe of every request,
    created at startup and closed at shutdown.
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.REQUEST_TIMEOUT),
        limits=httpx.Limits(
            max_connections=settings.MAX_CONNECTIONS,
            max_keepalive_connections=settings.MAX_KEEPALIVE_CONNECTIONS,
            keepalive_expiry=settings.KEEPALIVE_EXPIRY,
        ),
        headers={"User-Agent": settings.USER_AGENT},
        follow_redirects=True,
        transport=transport,
    )
