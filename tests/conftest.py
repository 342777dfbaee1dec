"""Shared pytest fixtures and configuration."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from renderflow.config import Settings
from renderflow.history import VersionGraph
from renderflow.utils.logging import clear_correlation_context, configure_logging


@pytest.fixture(autouse=True)
def reset_logging_context() -> Iterator[None]:
    """Reset correlation context and root handlers between tests."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    clear_correlation_context()
    yield
    clear_correlation_context()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def test_settings() -> Settings:
    """Create a Settings instance with test-safe defaults."""
    return Settings(
        GATEWAY_API_KEY="test-gateway-key",
        GATEWAY_BASE_URL="https://gateway.test/v1",
        GATEWAY_RPM=1000,
        LOG_LEVEL="DEBUG",
        LOG_FORMAT="console",
        _env_file=None,  # type: ignore[call-arg]
    )


@pytest.fixture
def configure_test_logging() -> Iterator[None]:
    """Configure logging for tests with console output."""
    configure_logging(level="DEBUG", log_format="console")
    yield


def make_png(width: int, height: int, color: tuple[int, int, int] = (200, 120, 40)) -> bytes:
    """Encode a solid-color RGB PNG."""
    buffer = BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_factory() -> Callable[..., bytes]:
    """Factory for solid-color PNG bytes."""
    return make_png


@pytest.fixture
def png_1000() -> bytes:
    """A 1000x1000 PNG."""
    return make_png(1000, 1000)


@pytest.fixture
def png_file(tmp_path: Path) -> Path:
    """A 400x200 PNG on disk with a distinct left and right half."""
    image = Image.new("RGB", (400, 200), (255, 0, 0))
    image.paste((0, 0, 255), (200, 0, 400, 200))
    path = tmp_path / "render.png"
    image.save(path)
    return path


@pytest.fixture
def graph() -> VersionGraph:
    """A graph with a root render."""
    g = VersionGraph("project-1")
    g.create_root("https://cdn.test/r0.png", "Scandinavian living room")
    return g


@pytest.fixture
def mock_chat_completion() -> dict:
    """Chat completion body carrying one generated image."""
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "google/gemini-2.5-flash-image-preview",
        "choices": [
            {
                "index": 0,
                "finish_reason": "stop",
                "message": {
                    "role": "assistant",
                    "content": "Here is the edited render.",
                    "images": [
                        {
                            "type": "image_url",
                            "image_url": {"url": "https://cdn.test/generated.png"},
                        }
                    ],
                },
            }
        ],
    }
