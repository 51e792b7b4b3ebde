"""Playwright capture helpers — screenshot a page or element and assert it against the gate."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional, Union

from playwright.async_api import Locator, Page

from snapgate.comparator.errors import ThresholdExceeded
from snapgate.gate import ScreenshotGate
from snapgate.models.comparison import ComparisonResult

logger = logging.getLogger(__name__)

Target = Union[Page, Locator]

VISIBLE_TIMEOUT_MS = 5000
STABLE_POLL_INTERVAL_S = 0.1


def _page_of(target: Target) -> Page:
    return target.page if isinstance(target, Locator) else target


async def capture(
    target: Target,
    *,
    full_page: bool = False,
    mask: Optional[list[str]] = None,
    animations: str = "disabled",
    timeout_ms: int = VISIBLE_TIMEOUT_MS,
) -> bytes:
    """Take a single PNG screenshot of a page or a located element."""
    page = _page_of(target)
    mask_locators = [page.locator(sel) for sel in mask or []]
    options = {
        "type": "png",
        "animations": animations,
        "caret": "hide",
        "mask": mask_locators,
        "timeout": timeout_ms,
    }
    if isinstance(target, Locator):
        await target.wait_for(state="visible", timeout=timeout_ms)
        return await target.screenshot(**options)
    return await target.screenshot(full_page=full_page, **options)


async def capture_stable(
    target: Target,
    *,
    full_page: bool = False,
    mask: Optional[list[str]] = None,
    animations: str = "disabled",
    stable_timeout_ms: int = 5000,
) -> bytes:
    """Capture until two consecutive screenshots are identical.

    If the page keeps changing past ``stable_timeout_ms`` the last capture is
    returned and the comparison decides.
    """
    deadline = time.monotonic() + stable_timeout_ms / 1000
    previous = await capture(target, full_page=full_page, mask=mask, animations=animations)
    attempts = 1
    while True:
        current = await capture(target, full_page=full_page, mask=mask, animations=animations)
        attempts += 1
        if current == previous:
            logger.debug("Screenshot stable after %d captures", attempts)
            return current
        if time.monotonic() >= deadline:
            logger.warning("Screenshot not stable after %d captures (%dms), using last",
                           attempts, stable_timeout_ms)
            return current
        previous = current
        await asyncio.sleep(STABLE_POLL_INTERVAL_S)


async def expect_screenshot(
    target: Target,
    name: str,
    gate: ScreenshotGate,
    test_id: str,
    *,
    full_page: bool = False,
    mask: Optional[list[str]] = None,
    max_diff_pixel_ratio: Optional[float] = None,
) -> ComparisonResult:
    """Assert that a page or element matches its stored baseline.

    Raises ThresholdExceeded when too many pixels differ. Hard comparison
    errors (BaselineMissing, DimensionMismatch, InvalidImage) propagate.
    """
    data = await capture_stable(
        target,
        full_page=full_page,
        mask=mask,
        animations=gate.config.animations,
        stable_timeout_ms=gate.config.stable_timeout_ms,
    )
    result = gate.check(data, test_id, name, max_diff_pixel_ratio=max_diff_pixel_ratio)
    if not result.passed:
        raise ThresholdExceeded(name, result)
    return result
