"""Pytest configuration and shared fixtures."""

import io
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image
from playwright.async_api import Locator, Page

from snapgate.baseline.store import BaselineStore
from snapgate.gate import ScreenshotGate
from snapgate.models.config import GateConfig, ScreenshotCheck, ViewportConfig


# ============================================================================
# Image Helpers
# ============================================================================


def make_image(
    width: int = 4,
    height: int = 4,
    color: tuple = (255, 255, 255, 255),
    changed: dict | None = None,
) -> Image.Image:
    """Create a solid RGBA image, optionally overriding individual pixels."""
    img = Image.new("RGBA", (width, height), color)
    for xy, value in (changed or {}).items():
        img.putpixel(xy, value)
    return img


def to_png(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def image_factory():
    """Fixture that provides the make_image helper."""
    return make_image


@pytest.fixture
def png_factory():
    """Fixture that builds PNG bytes with the same arguments as make_image."""
    def _png(*args, **kwargs) -> bytes:
        return to_png(make_image(*args, **kwargs))
    return _png


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def gate_config(tmp_path: Path) -> GateConfig:
    """Create a test gate configuration rooted in a temp dir."""
    return GateConfig(
        base_url="https://example.com",
        baselines_dir=str(tmp_path / "baselines"),
        artifacts_dir=str(tmp_path / "results"),
        max_diff_pixel_ratio=0.0,
        viewport=ViewportConfig(width=1280, height=720, name="desktop"),
        stable_timeout_ms=200,
        checks=[
            ScreenshotCheck(test_id="homepage", name="homepage.png", full_page=True, max_diff_pixel_ratio=0.1),
        ],
    )


@pytest.fixture
def store(tmp_path: Path) -> BaselineStore:
    return BaselineStore(tmp_path / "baselines")


@pytest.fixture
def gate(store: BaselineStore, gate_config: GateConfig, tmp_path: Path) -> ScreenshotGate:
    return ScreenshotGate(store, gate_config, artifacts_dir=tmp_path / "results")


# ============================================================================
# Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_page() -> AsyncMock:
    """Create a mock Playwright page."""
    page = AsyncMock(spec=Page)
    page.url = "https://example.com"
    page.screenshot = AsyncMock()
    page.goto = AsyncMock()
    page.evaluate = AsyncMock()
    page.wait_for_load_state = AsyncMock()
    page.locator = MagicMock()
    return page


@pytest.fixture
def mock_locator(mock_page: AsyncMock) -> AsyncMock:
    """Create a mock Playwright locator bound to mock_page."""
    locator = AsyncMock(spec=Locator)
    locator.page = mock_page
    locator.wait_for = AsyncMock()
    locator.screenshot = AsyncMock()
    return locator
