from __future__ import annotations

import logging
import random
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright
from playwright.async_api import Error as PWError
from playwright.async_api import TimeoutError as PWTimeoutError
from playwright.async_api import async_playwright
from selectolax.parser import HTMLParser

from .config import CrawlConfig
from .errors import LaunchFailure, NavigationFailure


logger = logging.getLogger(__name__)


class Tab:
    """One browser tab, owned by exactly one task at a time."""

    def __init__(self, page: Page, timeout_ms: int):
        self.page = page
        self.timeout_ms = timeout_ms

    async def render(self, url: str) -> HTMLParser:
        try:
            response = await self.page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)
        except PWTimeoutError as e:
            raise NavigationFailure(url, f"timeout after {self.timeout_ms}ms") from e
        except PWError as e:
            raise NavigationFailure(url, str(e).splitlines()[0] if str(e) else type(e).__name__) from e
        if response is None:
            raise NavigationFailure(url, "no response")
        return await self.snapshot()

    async def snapshot(self) -> HTMLParser:
        return HTMLParser(await self.page.content())

    async def wait_for(self, selector: str, timeout_ms: int) -> bool:
        try:
            await self.page.wait_for_selector(selector, timeout=timeout_ms)
            return True
        except PWTimeoutError:
            return False

    async def settle(self, range_ms: tuple[float, float]) -> None:
        lo, hi = range_ms
        if hi <= 0:
            return
        await self.page.wait_for_timeout(random.uniform(lo, hi))


class PlaywrightRenderer:
    """Headless Chromium with a single shared context (cookies/session)."""

    def __init__(self, cfg: CrawlConfig):
        self.cfg = cfg
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None

    async def __aenter__(self) -> "PlaywrightRenderer":
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.cfg.headless,
                args=["--no-sandbox"],
            )
            self._context = await self._browser.new_context(
                user_agent=self.cfg.user_agent,
                locale="en-US",
                extra_http_headers={"accept-language": "en-US,en;q=0.9"},
            )
        except Exception as e:
            await self._shutdown()
            raise LaunchFailure(f"could not start Chromium: {e}") from e
        logger.info("browser launched headless=%s", self.cfg.headless)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self._shutdown()

    async def _shutdown(self) -> None:
        try:
            if self._context is not None:
                await self._context.close()
        except Exception as e:
            logger.debug("context close failed: %s", e)
        self._context = None
        try:
            if self._browser is not None:
                await self._browser.close()
        except Exception as e:
            logger.debug("browser close failed: %s", e)
        self._browser = None
        try:
            if self._playwright is not None:
                await self._playwright.stop()
        except Exception as e:
            logger.debug("playwright stop failed: %s", e)
        self._playwright = None

    @asynccontextmanager
    async def tab(self) -> AsyncIterator[Tab]:
        if self._context is None:
            raise LaunchFailure("renderer is not started")
        page = await self._context.new_page()
        page.set_default_timeout(self.cfg.navigation_timeout_ms)
        try:
            yield Tab(page, self.cfg.navigation_timeout_ms)
        finally:
            try:
                await page.close()
            except Exception as e:
                logger.debug("tab close failed: %s", e)
