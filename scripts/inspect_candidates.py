"""Print the candidate tiers the resolver would probe for an address."""
import argparse
import asyncio

from app.features.favicons.services.candidates import candidate_groups
from app.features.favicons.services.discovery import IconProber
from app.platform.config import get_settings
from app.platform.http_client import build_http_client
from app.platform.utils.url_validator import ensure_scheme, extract_domain


async def inspect(address: str):
    settings = get_settings()
    domain = extract_domain(ensure_scheme(address))

    async with build_http_client(settings) as client:
        prober = IconProber(client, settings.MAX_HTML_BYTES, settings.REQUEST_TIMEOUT)
        groups = await candidate_groups(prober, f"https://{domain}", domain)

    print(f"{domain}: {sum(len(g) for g in groups)} candidates in {len(groups)} tiers")
    for tier, urls in enumerate(groups, start=1):
        for url in urls:
            print(f"  [{tier}] {url}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("address")
    asyncio.run(inspect(parser.parse_args().address))
