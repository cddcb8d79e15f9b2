"""Shared fixtures for the post generator tests"""

import base64
from io import BytesIO
from unittest.mock import patch

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image


def make_png(size=(40, 20), color=(200, 30, 30)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, "PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def png_data_url(png_bytes):
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def client():
    """Test client over a fresh app, so every test gets its own post store."""
    from app.main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def mock_upstream():
    """Route image API calls to a handler; returns the list of captured requests."""
    real_client = httpx.AsyncClient
    calls = []

    def install(handler):
        def recording(request):
            calls.append(request)
            return handler(request)

        def factory(*args, **kwargs):
            return real_client(*args, transport=httpx.MockTransport(recording), **kwargs)

        patch("app.services.image_generator.httpx.AsyncClient", side_effect=factory).start()
        return calls

    yield install
    patch.stopall()
