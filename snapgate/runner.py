"""Suite runner — runs the screenshot checks declared in a config using Playwright."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from urllib.parse import urlparse

from playwright.async_api import Browser, Error as PlaywrightError, Page, async_playwright

from snapgate.browser.capture import expect_screenshot
from snapgate.comparator.errors import ComparisonError, ThresholdExceeded
from snapgate.gate import ScreenshotGate
from snapgate.models.comparison import CheckResult, RunResult
from snapgate.models.config import GateConfig, ScreenshotCheck

logger = logging.getLogger(__name__)


def join_url(base_url: str, path: str) -> str:
    """Append a check path to the base URL, keeping any path prefix the base carries."""
    if not base_url or urlparse(path).scheme:
        return path
    return base_url.rstrip("/") + "/" + path.lstrip("/")


class SuiteRunner:
    """Runs each declared check in its own browser context, one after another."""

    def __init__(self, config: GateConfig, gate: ScreenshotGate | None = None):
        self.config = config
        self.gate = gate or ScreenshotGate.from_config(config)
        self.run_id = f"run_{uuid.uuid4().hex[:8]}"

    def run(self) -> RunResult:
        return asyncio.run(self.run_async())

    async def run_async(self) -> RunResult:
        started_at = time.strftime("%Y-%m-%dT%H:%M:%SZ")
        start_time = time.time()
        total = len(self.config.checks)
        logger.info("Starting %s: %d screenshot checks against %s",
                    self.run_id, total, self.config.base_url)

        results: list[CheckResult] = []
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=True)
            try:
                for index, check in enumerate(self.config.checks):
                    logger.info("Running check [%d/%d]: %s (%s)",
                                index + 1, total, check.test_id, check.name)
                    results.append(await self._run_in_context(browser, check))
            finally:
                await browser.close()

        run_result = RunResult(
            run_id=self.run_id,
            started_at=started_at,
            completed_at=time.strftime("%Y-%m-%dT%H:%M:%SZ"),
            base_url=self.config.base_url,
            total=total,
            passed=sum(1 for r in results if r.result == "pass"),
            failed=sum(1 for r in results if r.result == "fail"),
            errors=sum(1 for r in results if r.result == "error"),
            duration_seconds=round(time.time() - start_time, 2),
            check_results=results,
        )
        logger.info("Run %s complete: %d passed, %d failed, %d errors",
                    self.run_id, run_result.passed, run_result.failed, run_result.errors)
        return run_result

    async def _run_in_context(self, browser: Browser, check: ScreenshotCheck) -> CheckResult:
        viewport = self.config.viewport
        context = await browser.new_context(viewport={"width": viewport.width, "height": viewport.height})
        try:
            page = await context.new_page()
            return await self.run_check(page, check)
        finally:
            await context.close()

    async def run_check(self, page: Page, check: ScreenshotCheck) -> CheckResult:
        """Navigate, prepare the DOM, capture and gate a single check."""
        start = time.time()
        result = CheckResult(test_id=check.test_id, name=check.name, result="pass")
        try:
            url = join_url(self.config.base_url, check.path)
            await page.goto(url, timeout=self.config.navigation_timeout_ms)
            try:
                await page.wait_for_load_state("networkidle", timeout=3000)
            except PlaywrightError:
                logger.debug("Network did not idle for %s, continuing", url)

            for script in check.scripts:
                await page.evaluate(script)

            target = page.locator(check.selector) if check.selector else page
            comparison = await expect_screenshot(
                target,
                check.name,
                self.gate,
                check.test_id,
                full_page=check.full_page,
                mask=check.mask,
                max_diff_pixel_ratio=check.max_diff_pixel_ratio,
            )
            result.ratio = comparison.ratio
            result.baseline_created = comparison.baseline_created
            result.message = comparison.describe()
        except ThresholdExceeded as e:
            result.result = "fail"
            result.ratio = e.result.ratio
            result.message = e.result.describe()
            result.actual_path = e.result.actual_path
            result.expected_path = e.result.expected_path
            result.diff_path = e.result.diff_path
        except (ComparisonError, PlaywrightError) as e:
            logger.error("Check %s/%s errored: %s", check.test_id, check.name, e)
            result.result = "error"
            result.message = str(e)

        result.duration_seconds = round(time.time() - start, 2)
        logger.info("[%s] %s/%s: %s", result.result.upper(), check.test_id, check.name, result.message)
        return result
