from __future__ import annotations
import asyncio
import logging
import random
from typing import Any

from playwright.async_api import Browser, Error as PlaywrightError, Playwright, Response, async_playwright

from careersync.core.config import settings
from careersync.crawlers.base import ScrapeStageError

logger = logging.getLogger(__name__)

VIEWPORT = {"width": 1280, "height": 800}
LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox", "--disable-dev-shm-usage"]
SKIP_URL_SIGNALS = ("analytics", "tracking", "consent", "segment")
INTERCEPT_SETTLE_MS = 2000
RENDER_SETTLE_MS = 3000


async def navigation_delay() -> None:
    """Randomized pause before every browser navigation."""
    await asyncio.sleep(random.uniform(settings.browser_delay_min_s, settings.browser_delay_max_s))


class BrowserCapability:
    """Headless-browser stages of the fallback scraper.

    ``available()`` gates the browser stages; the two fetch methods raise
    ``ScrapeStageError`` when the page cannot be loaded.
    """

    def available(self) -> bool:
        raise NotImplementedError

    async def intercept_json(self, url: str) -> list[Any]:
        """JSON bodies of the responses the page triggered while loading."""
        raise NotImplementedError

    async def render_html(self, url: str) -> str:
        """Markup of the page after client-side rendering settled."""
        raise NotImplementedError


class NullBrowser(BrowserCapability):
    def available(self) -> bool:
        return False

    async def intercept_json(self, url: str) -> list[Any]:
        raise ScrapeStageError("no browser capability configured")

    async def render_html(self, url: str) -> str:
        raise ScrapeStageError("no browser capability configured")


class PlaywrightBrowser(BrowserCapability):
    """Chromium through Playwright, launched locally or reached over ``playwright_ws_endpoint``."""

    def __init__(self, enabled: bool | None = None, ws_endpoint: str | None = None):
        self.enabled = settings.enable_playwright if enabled is None else enabled
        self.ws_endpoint = settings.playwright_ws_endpoint if ws_endpoint is None else ws_endpoint
        self.timeout_ms = settings.browser_timeout_s * 1000

    def available(self) -> bool:
        return self.enabled

    async def _launch(self, playwright: Playwright) -> Browser:
        if self.ws_endpoint:
            logger.debug("connecting to remote browser at %s", self.ws_endpoint)
            return await playwright.chromium.connect(self.ws_endpoint)
        return await playwright.chromium.launch(headless=True, args=LAUNCH_ARGS)

    async def intercept_json(self, url: str) -> list[Any]:
        payloads: list[Any] = []

        async def on_response(response: Response) -> None:
            if "json" not in response.headers.get("content-type", ""):
                return
            if any(signal in response.url for signal in SKIP_URL_SIGNALS):
                return
            try:
                payloads.append(await response.json())
            except (PlaywrightError, ValueError) as exc:
                logger.debug("unreadable JSON response from %s: %s", response.url, exc)

        await navigation_delay()
        try:
            async with async_playwright() as playwright:
                browser = await self._launch(playwright)
                try:
                    context = await browser.new_context(user_agent=settings.user_agent, viewport=VIEWPORT)
                    page = await context.new_page()
                    page.on("response", on_response)
                    await page.goto(url, wait_until="networkidle", timeout=self.timeout_ms)
                    # lazy-loaded listings often arrive after network idle
                    await page.wait_for_timeout(INTERCEPT_SETTLE_MS)
                    await context.close()
                finally:
                    await browser.close()
        except PlaywrightError as exc:
            raise ScrapeStageError(f"network interception failed: {exc}") from exc
        logger.debug("intercepted %d JSON responses from %s", len(payloads), url)
        return payloads

    async def render_html(self, url: str) -> str:
        await navigation_delay()
        try:
            async with async_playwright() as playwright:
                browser = await self._launch(playwright)
                try:
                    context = await browser.new_context(user_agent=settings.user_agent, viewport=VIEWPORT)
                    page = await context.new_page()
                    await page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)
                    await page.wait_for_timeout(RENDER_SETTLE_MS)
                    html = await page.content()
                    await context.close()
                finally:
                    await browser.close()
        except PlaywrightError as exc:
            raise ScrapeStageError(f"rendering failed: {exc}") from exc
        return html


def default_browser() -> BrowserCapability:
    return PlaywrightBrowser() if settings.enable_playwright else NullBrowser()
