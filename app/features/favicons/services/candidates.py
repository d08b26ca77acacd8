import asyncio
from typing import List

from app.features.favicons.services.discovery import IconProber

CandidateGroups = List[List[str]]

APPLE_ICON_SIZES = (180, 152, 120)


def favicon_url_groups(base_url: str, domain: str) -> CandidateGroups:
    """Static candidate tiers: well-known root paths, then Apple icons unsized and sized."""
    return [
        [
            f"{base_url}/favicon.ico",
            f"{base_url}/favicon.png",
            f"{base_url}/favicon.svg",
            f"{base_url}/{domain}.ico",
            f"{base_url}/{domain}.png",
        ],
        [
            f"{base_url}/apple-touch-icon.png",
            f"{base_url}/apple-touch-icon-precomposed.png",
        ],
        [f"{base_url}/apple-touch-icon-{size}x{size}.png" for size in APPLE_ICON_SIZES],
    ]


def append_group(groups: CandidateGroups, urls: List[str]) -> bool:
    if not urls:
        return False
    groups.append(list(urls))
    return True


async def candidate_groups(prober: IconProber, base_url: str, domain: str) -> CandidateGroups:
    """All tiers in generation order, manifest icons before markup icons."""
    groups = favicon_url_groups(base_url, domain)
    manifest, markup = await asyncio.gather(
        prober.manifest_icons(base_url),
        prober.markup_icons(base_url),
    )
    append_group(groups, manifest.urls)
    append_group(groups, markup.urls)
    return groups
