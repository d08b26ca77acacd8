import asyncio

import httpx
import pytest

from app.features.favicons.services.discovery import (
    IconProber,
    extract_attribute,
    is_icon_link,
    parse_icon_links,
)

BASE = "https://example.com"


class TestIsIconLink:
    @pytest.mark.parametrize(
        "tag",
        [
            '<link rel="icon" href="/a.png">',
            "<link rel='icon' href='/a.png'>",
            '<link rel="shortcut icon" href="/a.ico">',
            "<link rel='Shortcut Icon' href='/a.ico'>",
            '<link rel=" ICON " href="/a.png">',
            '<link rel="apple-touch-icon" href="/apple.png">',
        ],
    )
    def test_icon_rels_qualify(self, tag):
        assert is_icon_link(tag) is True

    @pytest.mark.parametrize(
        "tag",
        [
            '<link rel="preload" href="/icon.png" as="image">',
            '<link rel="preload icon" href="/icon.png">',
            '<link rel="modulepreload" href="/icon.js">',
            '<link rel="dns-prefetch" href="//icons.example.com">',
            '<link rel="stylesheet" href="/icons.css">',
            '<link href="/icon.png">',
            "<link rel=icon href=/icon.png>",
        ],
    )
    def test_other_rels_rejected(self, tag):
        assert is_icon_link(tag) is False


def test_extract_attribute_handles_both_quote_styles():
    assert extract_attribute('<link href="/a.png">', "href") == "/a.png"
    assert extract_attribute("<link href='/b.png'>", "href") == "/b.png"
    assert extract_attribute('<link href="/unterminated>', "href") == ""
    assert extract_attribute("<link>", "href") == ""


def test_parse_icon_links_extracts_and_normalizes():
    html = """
    <html><head>
      <link rel="preload" href="/hero.png" as="image">
      <link rel="stylesheet" href="/site.css">
      <link rel="icon" type="image/png" href="/favicon-32.png">
      <LINK rel="icon" href="/ignored-uppercase-tag.png">
      <link rel='SHORTCUT ICON' href='./legacy.ico'>
      <link rel="apple-touch-icon" href="https://cdn.example.net/apple.png">
    </head></html>
    """

    assert parse_icon_links(html, BASE) == [
        "https://example.com/favicon-32.png",
        "https://example.com/legacy.ico",
        "https://cdn.example.net/apple.png",
    ]


def test_parse_icon_links_stops_on_unterminated_tag():
    assert parse_icon_links('<link rel="icon" href="/a.png"', BASE) == []


class TestIconProber:
    @pytest.mark.asyncio
    async def test_manifest_icons(self, mock_http):
        manifest = {
            "name": "Example",
            "icons": [
                {"src": "/icons/192.png", "sizes": "192x192", "type": "image/png"},
                {"src": "icons/512.png", "sizes": "512x512"},
                {"src": "https://cdn.example.net/icon.png"},
                {"sizes": "48x48"},
            ],
        }

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/manifest.json"
            return httpx.Response(200, json=manifest)

        async with mock_http(handler) as client:
            found = await IconProber(client).manifest_icons(BASE)

        assert found.found
        assert found.source == "manifest"
        assert found.urls == [
            "https://example.com/icons/192.png",
            "https://example.com/icons/512.png",
            "https://cdn.example.net/icon.png",
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(404),
            httpx.Response(200, text="{not json"),
            httpx.Response(200, json=["not", "an", "object"]),
        ],
    )
    async def test_manifest_failures_yield_nothing(self, mock_http, response):
        async with mock_http(lambda request: response) as client:
            found = await IconProber(client).manifest_icons(BASE)

        assert not found.found
        assert found.urls == []

    @pytest.mark.asyncio
    async def test_manifest_transport_error_yields_nothing(self, mock_http):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with mock_http(handler) as client:
            found = await IconProber(client).manifest_icons(BASE)

        assert not found.found

    @pytest.mark.asyncio
    async def test_markup_icons(self, mock_http):
        html = '<html><head><link rel="icon" href="/favicon.svg"></head></html>'

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/"
            return httpx.Response(200, text=html)

        async with mock_http(handler) as client:
            found = await IconProber(client).markup_icons(BASE)

        assert found.source == "markup"
        assert found.urls == ["https://example.com/favicon.svg"]

    @pytest.mark.asyncio
    async def test_markup_read_is_capped(self, mock_http):
        html = "x" * 2048 + '<link rel="icon" href="/late.png">'

        async with mock_http(lambda request: httpx.Response(200, text=html)) as client:
            found = await IconProber(client, max_html_bytes=1024).markup_icons(BASE)

        assert not found.found

    @pytest.mark.asyncio
    async def test_markup_non_200_yields_nothing(self, mock_http):
        html = '<link rel="icon" href="/favicon.png">'

        async with mock_http(lambda request: httpx.Response(500, text=html)) as client:
            found = await IconProber(client).markup_icons(BASE)

        assert not found.found

    @pytest.mark.asyncio
    async def test_slow_sources_are_cut_off(self, mock_http):
        async def trickle():
            yield b'<html><head><link rel="icon" href="/never.png">'
            for _ in range(20):
                await asyncio.sleep(0.1)
                yield b" "

        async def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/manifest.json":
                await asyncio.sleep(2.0)
                return httpx.Response(200, json={"icons": [{"src": "/late.png"}]})
            return httpx.Response(200, content=trickle())

        async with mock_http(handler) as client:
            prober = IconProber(client, request_timeout=0.2)
            loop = asyncio.get_running_loop()
            started = loop.time()
            manifest, markup = await asyncio.gather(
                prober.manifest_icons(BASE), prober.markup_icons(BASE)
            )
            elapsed = loop.time() - started

        assert not manifest.found
        assert not markup.found
        assert elapsed < 1.0
