"""
Shared fixtures.

The YAML config is pointed at a file that does not exist before any
application module is imported, so tests only see explicit settings.
"""

import io
import os
from pathlib import Path

os.environ["ALT_TEXT_CONFIG_FILE"] = str(Path(__file__).parent / "missing-config.yaml")

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from PIL import Image  # noqa: E402

from alt_text.api.main import create_app  # noqa: E402
from alt_text.core.config import Settings  # noqa: E402
from alt_text.repositories import InMemoryDocumentStore  # noqa: E402
from alt_text.services.fetcher import ImageFetcher  # noqa: E402
from alt_text.services.providers.base import VisionProvider  # noqa: E402

API_TOKEN = "test-token"


def make_image_bytes(width=32, height=24, fmt="PNG", color=(200, 30, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format=fmt)
    return buffer.getvalue()


class RateLimited(Exception):
    """Mimics an SDK error carrying an HTTP 429."""
    status_code = 429


class StubProvider(VisionProvider):
    """Vision provider returning queued responses (or raising queued errors)."""

    name = "stub"
    default_model = "stub-vision"

    def __init__(self, responses=None, default="  A red square on a plain background  ", **kwargs):
        super().__init__(**kwargs)
        self.responses = list(responses or [])
        self.default = default
        self.calls = []

    def _complete(self, image, prompt):
        self.calls.append((image, prompt))
        if self.responses:
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response
        return self.default


@pytest.fixture
def png_bytes():
    return make_image_bytes()


@pytest.fixture
def stub_provider():
    return StubProvider(api_key="stub-key", sleep=lambda seconds: None)


@pytest.fixture
def image_server(png_bytes):
    """
    MockTransport serving PNGs under /media/; anything with "missing" in
    the path is a 404.
    """
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if "missing" in request.url.path:
            return httpx.Response(404, text="Not Found")
        return httpx.Response(200, content=png_bytes, headers={"content-type": "image/png"})

    transport = httpx.MockTransport(handler)
    transport.requests = requests
    return transport


@pytest.fixture
def fetcher(image_server):
    return ImageFetcher(http_client=httpx.AsyncClient(transport=image_server))


@pytest.fixture
def media_records():
    return [
        {"id": "1", "filename": "beachSunset.jpg", "url": "/media/beachSunset.jpg", "alt": ""},
        {"id": "2", "filename": "Company-Logo.svg", "url": "/media/Company-Logo.svg", "alt": None},
        {"id": "3", "filename": "team-photo.png", "url": "/media/team-photo.png"},
        {"id": "4", "filename": "described.png", "url": "/media/described.png", "alt": "Described"},
        {"id": "5", "filename": "report.pdf", "url": "/media/report.pdf", "alt": ""},
    ]


@pytest.fixture
def document_store(media_records):
    return InMemoryDocumentStore({"media": media_records})


@pytest.fixture
def app_settings():
    return Settings(
        api_tokens=[API_TOKEN],
        collections=["media"],
        log_json=False,
        log_level="WARNING",
    )


@pytest.fixture
def app(app_settings, document_store, stub_provider, fetcher):
    return create_app(
        app_settings=app_settings,
        document_store=document_store,
        provider=stub_provider,
        fetcher=fetcher,
    )


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {API_TOKEN}"}
