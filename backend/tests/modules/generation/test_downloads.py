"""Tests for remote image downloads."""

import httpx
import pytest

from modules.generation.downloads import HttpImageFetcher, extension_for
from modules.generation.exceptions import ImageDownloadError, InvalidImageUrlError


def image_host(request: httpx.Request) -> httpx.Response:
    routes = {
        "/cat.png": httpx.Response(200, content=b"png", headers={"content-type": "image/png"}),
        "/cat.webp": httpx.Response(
            200, content=b"webp", headers={"content-type": "image/webp; charset=binary"}
        ),
        "/page.html": httpx.Response(200, content=b"<html>", headers={"content-type": "text/html"}),
        "/huge.png": httpx.Response(200, content=b"x" * 64, headers={"content-type": "image/png"}),
        "/moved.png": httpx.Response(302, headers={"location": "https://img.example.com/cat.png"}),
    }
    return routes.get(request.url.path, httpx.Response(404))


@pytest.fixture
def fetcher() -> HttpImageFetcher:
    return HttpImageFetcher(transport=httpx.MockTransport(image_host), max_bytes=32)


class TestHttpImageFetcher:

    @pytest.mark.asyncio
    async def test_fetches_image(self, fetcher):
        assert await fetcher.fetch("https://img.example.com/cat.png") == (b"png", "image/png")

    @pytest.mark.asyncio
    async def test_strips_content_type_parameters(self, fetcher):
        _, content_type = await fetcher.fetch("https://img.example.com/cat.webp")
        assert content_type == "image/webp"

    @pytest.mark.asyncio
    async def test_follows_redirects(self, fetcher):
        assert await fetcher.fetch("https://img.example.com/moved.png") == (b"png", "image/png")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["http://img.example.com/cat.png", "ftp://x/cat.png", "cat.png"])
    async def test_only_https(self, fetcher, url):
        with pytest.raises(InvalidImageUrlError):
            await fetcher.fetch(url)

    @pytest.mark.asyncio
    async def test_rejects_non_images(self, fetcher):
        with pytest.raises(InvalidImageUrlError) as exc_info:
            await fetcher.fetch("https://img.example.com/page.html")

        assert "text/html" in exc_info.value.details["reason"]

    @pytest.mark.asyncio
    async def test_rejects_oversized(self, fetcher):
        with pytest.raises(InvalidImageUrlError):
            await fetcher.fetch("https://img.example.com/huge.png")

    @pytest.mark.asyncio
    async def test_http_error(self, fetcher):
        with pytest.raises(ImageDownloadError) as exc_info:
            await fetcher.fetch("https://img.example.com/missing.png")

        assert exc_info.value.details["url"] == "https://img.example.com/missing.png"


class TestExtensionFor:

    def test_known_types(self):
        assert extension_for("image/jpeg") == "jpg"
        assert extension_for("image/gif") == "gif"

    def test_unknown_defaults_to_png(self):
        assert extension_for("application/octet-stream") == "png"
