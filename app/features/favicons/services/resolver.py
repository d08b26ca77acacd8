"""
Concurrent first-success-wins favicon probing.

Every candidate URL becomes its own task inside one ResolutionScope. Tasks
race to publish onto a bounded queue; the first result taken off the queue
cancels the scope and every task still running. Priority tiers only decide
the order tasks are started in, so a fast low-priority candidate can win
over a slow high-priority one.
"""
import asyncio
import logging
from typing import Awaitable, Iterable, Optional, Set

import httpx

from app.features.favicons.schemas.favicon import IconDiscovery, ProbeResult
from app.features.favicons.services.candidates import CandidateGroups, append_group
from app.features.favicons.services.image import normalize_image
from app.platform.config import Settings

logger = logging.getLogger(__name__)

RESULT_QUEUE_SIZE = 10

VALID_IMAGE_TYPES = frozenset({
    "image/x-icon",
    "image/vnd.microsoft.icon",
    "image/icon",
    "image/ico",
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/gif",
    "image/svg+xml",
    "image/webp",
})


def is_valid_image_type(content_type: str) -> bool:
    if not content_type:
        return False
    return content_type.split(";", 1)[0].strip().lower() in VALID_IMAGE_TYPES


def infer_content_type(url: str, content_type: str) -> str:
    if content_type:
        return content_type
    if url.endswith(".png"):
        return "image/png"
    return "image/x-icon"


class ResolutionScope:
    """Cancellation authority and completion queue shared by one resolution's tasks."""

    def __init__(self, maxsize: int = RESULT_QUEUE_SIZE) -> None:
        self.results: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._tasks: Set[asyncio.Task] = set()
        self._idle = asyncio.Event()
        self._idle.set()
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def spawn(self, coro: Awaitable) -> None:
        if self._cancelled:
            coro.close()
            return
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        self._idle.clear()
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not self._tasks:
            self._idle.set()

    async def publish(self, result: ProbeResult) -> bool:
        # A cancelled scope drops late results silently.
        if self._cancelled:
            return False
        await self.results.put(result)
        return True

    def cancel(self) -> None:
        self._cancelled = True
        for task in list(self._tasks):
            task.cancel()

    async def first_result(self) -> Optional[ProbeResult]:
        """Next published result, or None once every task has finished without one."""
        getter = asyncio.ensure_future(self.results.get())
        idle = asyncio.ensure_future(self._idle.wait())
        try:
            await asyncio.wait({getter, idle}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for fut in (getter, idle):
                if not fut.done():
                    fut.cancel()

        if getter.done() and not getter.cancelled():
            return getter.result()
        if not self.results.empty():
            return self.results.get_nowait()
        return None


class Resolver:
    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self.client = client
        self.resolve_timeout = settings.RESOLVE_TIMEOUT
        self.request_timeout = settings.REQUEST_TIMEOUT
        self.max_image_bytes = settings.MAX_IMAGE_BYTES
        self.icon_size = settings.TARGET_ICON_SIZE
        self.jpeg_quality = settings.JPEG_QUALITY
        self.max_image_pixels = settings.MAX_IMAGE_PIXELS

    async def resolve(
        self,
        groups: CandidateGroups,
        timeout: Optional[float] = None,
        discoveries: Iterable[Awaitable[IconDiscovery]] = (),
    ) -> Optional[ProbeResult]:
        """
        Probe every candidate concurrently and return the first valid icon.

        ``discoveries`` run inside the same scope; URLs they find are appended
        to ``groups`` as new tiers and probed as soon as they arrive. Returns
        None when nothing succeeds before the deadline.
        """
        timeout = self.resolve_timeout if timeout is None else timeout
        scope = ResolutionScope()

        for group in groups:
            for url in group:
                scope.spawn(self._probe(scope, url))
        for discovery in discoveries:
            scope.spawn(self._discover(scope, groups, discovery))

        try:
            result = await asyncio.wait_for(scope.first_result(), timeout)
        except asyncio.TimeoutError:
            logger.debug(f"No favicon candidate answered within {timeout}s")
            result = None
        finally:
            scope.cancel()

        return result

    async def _discover(
        self, scope: ResolutionScope, groups: CandidateGroups, discovery: Awaitable[IconDiscovery]
    ) -> None:
        found = await discovery
        if not append_group(groups, found.urls):
            return
        for url in found.urls:
            scope.spawn(self._probe(scope, url))

    async def _probe(self, scope: ResolutionScope, url: str) -> None:
        result = await self.fetch_favicon(url)
        if not result.ok:
            logger.debug(f"Probe {url} failed: {result.error}")
            return
        await scope.publish(result)

    async def fetch_favicon(self, url: str) -> ProbeResult:
        try:
            return await asyncio.wait_for(self._fetch(url), self.request_timeout)
        except asyncio.TimeoutError:
            return ProbeResult(url, error="timeout")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return ProbeResult(url, error=repr(e))

    async def _fetch(self, url: str) -> ProbeResult:
        async with self.client.stream("GET", url, headers={"Accept": "image/*"}) as resp:
            if resp.status_code != 200:
                return ProbeResult(url, error=f"HTTP {resp.status_code}")

            content_type = resp.headers.get("Content-Type", "")
            if not is_valid_image_type(content_type):
                return ProbeResult(url, error=f"invalid content type: {content_type}")

            data = bytearray()
            async for chunk in resp.aiter_bytes():
                data.extend(chunk)
                if len(data) > self.max_image_bytes:
                    return ProbeResult(url, error=f"body exceeds {self.max_image_bytes} bytes")

        normalized = await asyncio.to_thread(
            normalize_image,
            bytes(data),
            content_type,
            self.icon_size,
            self.jpeg_quality,
            self.max_image_pixels,
        )
        return ProbeResult(url, normalized.data, infer_content_type(url, content_type))
