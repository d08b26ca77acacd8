from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from app.features.favicons.schemas.favicon import ProbeResult
from app.features.favicons.services.candidates import favicon_url_groups
from app.features.favicons.services.discovery import IconProber
from app.features.favicons.services.repository import FaviconRepository
from app.features.favicons.services.resolver import Resolver
from app.platform.logger import get_logger

logger = get_logger(__name__)


class FaviconService:
    def __init__(self, repository: FaviconRepository, resolver: Resolver, prober: IconProber) -> None:
        self.repository = repository
        self.resolver = resolver
        self.prober = prober

    async def resolve(self, domain: str) -> Optional[ProbeResult]:
        """
        Resolve a cache miss: probe every candidate for ``domain`` and persist the winner.

        A failed save is logged; the fetched icon is still returned.
        """
        base_url = f"https://{domain}"
        groups = favicon_url_groups(base_url, domain)

        result = await self.resolver.resolve(
            groups,
            discoveries=(
                self.prober.manifest_icons(base_url),
                self.prober.markup_icons(base_url),
            ),
        )
        if result is None:
            logger.info(f"No favicon found for {domain}")
            return None

        logger.info(f"Fetched favicon for {domain} from {result.url}")
        try:
            await self.repository.save(domain, result.data, result.content_type)
        except SQLAlchemyError as e:
            logger.warning(f"Failed to cache favicon for {domain}: {e}")

        return result
