"""
Extra icon candidates advertised by the site itself.

Two sub-probes, each bounded end to end by its own request timeout:
the web-app manifest (``/manifest.json``) and the root page's ``<link>`` tags.
Any failure means "nothing found", never an error.
"""
import asyncio
import logging
from typing import Awaitable, List

import httpx
from pydantic import ValidationError

from app.features.favicons.schemas.favicon import IconDiscovery, Manifest
from app.platform.utils.url_validator import is_absolute_url, normalize_icon_url

logger = logging.getLogger(__name__)

MAX_HTML_READ_SIZE = 512 * 1024
REQUEST_TIMEOUT = 1.0

EXCLUDED_RELS = ("preload", "modulepreload", "dns-prefetch", "preconnect", "prefetch")


def extract_attribute(tag: str, name: str) -> str:
    prefix = f"{name}="
    idx = tag.find(prefix)
    if idx == -1:
        return ""

    start = idx + len(prefix)
    if start >= len(tag):
        return ""

    quote = tag[start]
    if quote not in ("'", '"'):
        return ""

    start += 1
    end = tag.find(quote, start)
    if end == -1:
        return ""

    return tag[start:end]


def is_icon_link(tag: str) -> bool:
    rel = extract_attribute(tag, "rel").strip().lower()
    if "icon" not in rel:
        return False
    return not any(excluded in rel for excluded in EXCLUDED_RELS)


def parse_icon_links(html: str, base_url: str) -> List[str]:
    """Scan for ``<link ...>`` tags up to the next ``>``; nested ``>`` in values is not handled."""
    icons = []
    offset = 0

    while True:
        start = html.find("<link", offset)
        if start == -1:
            break

        end = html.find(">", start)
        if end == -1:
            break

        tag = html[start:end + 1]
        if is_icon_link(tag):
            href = extract_attribute(tag, "href")
            if href:
                icons.append(normalize_icon_url(base_url, href))

        offset = end + 1

    return icons


class IconProber:
    def __init__(
        self,
        client: httpx.AsyncClient,
        max_html_bytes: int = MAX_HTML_READ_SIZE,
        request_timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self.client = client
        self.max_html_bytes = max_html_bytes
        self.request_timeout = request_timeout

    async def manifest_icons(self, base_url: str) -> IconDiscovery:
        return await self._bounded("manifest", self._manifest_icons(base_url), base_url)

    async def markup_icons(self, base_url: str) -> IconDiscovery:
        return await self._bounded("markup", self._markup_icons(base_url), base_url)

    async def _bounded(self, source: str, probe: Awaitable[IconDiscovery], base_url: str) -> IconDiscovery:
        try:
            return await asyncio.wait_for(probe, self.request_timeout)
        except asyncio.TimeoutError:
            logger.debug(f"{source.capitalize()} probe timed out for {base_url}")
            return IconDiscovery(source)

    async def _manifest_icons(self, base_url: str) -> IconDiscovery:
        try:
            resp = await self.client.get(f"{base_url}/manifest.json")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug(f"Manifest probe failed for {base_url}: {e!r}")
            return IconDiscovery("manifest")

        if resp.status_code != 200:
            return IconDiscovery("manifest")

        try:
            manifest = Manifest.model_validate_json(resp.content)
        except ValidationError:
            logger.debug(f"Unparseable manifest at {base_url}")
            return IconDiscovery("manifest")

        urls = []
        for icon in manifest.icons:
            if not icon.src:
                continue
            if is_absolute_url(icon.src):
                urls.append(icon.src)
            else:
                urls.append(normalize_icon_url(base_url, icon.src))

        return IconDiscovery("manifest", urls)

    async def _markup_icons(self, base_url: str) -> IconDiscovery:
        try:
            async with self.client.stream("GET", f"{base_url}/") as resp:
                if resp.status_code != 200:
                    return IconDiscovery("markup")

                body = bytearray()
                async for chunk in resp.aiter_bytes():
                    body.extend(chunk)
                    if len(body) >= self.max_html_bytes:
                        break
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug(f"Markup probe failed for {base_url}: {e!r}")
            return IconDiscovery("markup")

        html = bytes(body[:self.max_html_bytes]).decode("utf-8", errors="replace")
        return IconDiscovery("markup", parse_icon_links(html, base_url))
