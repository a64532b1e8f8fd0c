"""Playwright implementation of the page driver."""

import logging
from typing import List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page

from .base import PageDriver, UrlPattern

logger = logging.getLogger(__name__)


class PlaywrightPageDriver(PageDriver):
    """Drives a single Playwright page."""

    def __init__(self, page: Page):
        self.page = page

    def _locator(self, selector: str, index: int = 0) -> Locator:
        return self.page.locator(selector).nth(index)

    async def navigate(self, url: str, timeout_ms: int) -> None:
        logger.info(f"Navigating to {url}")
        await self.page.goto(url, wait_until="load", timeout=timeout_ms)

    async def wait_for_visible(self, selector: str, timeout_ms: int) -> None:
        await self.page.wait_for_selector(selector, state="visible", timeout=timeout_ms)

    async def is_visible(self, selector: str) -> bool:
        try:
            return await self.page.locator(selector).first.is_visible()
        except PlaywrightError as e:
            logger.debug(f"Visibility probe for {selector} failed: {e}")
            return False

    async def count(self, selector: str) -> int:
        try:
            return await self.page.locator(selector).count()
        except PlaywrightError as e:
            logger.debug(f"Count for {selector} failed: {e}")
            return 0

    async def fill(self, selector: str, value: str, index: int = 0) -> None:
        await self._locator(selector, index).fill(value)

    async def type_text(self, selector: str, text: str, index: int = 0) -> None:
        await self._locator(selector, index).press_sequentially(text)

    async def press_key(self, selector: str, key: str, index: int = 0) -> None:
        await self._locator(selector, index).press(key)

    async def click(self, selector: str, timeout_ms: int) -> None:
        await self.page.locator(selector).first.click(timeout=timeout_ms)

    async def js_click(self, selector: str) -> None:
        await self.page.locator(selector).first.evaluate("(node) => node.click()")

    async def scroll_to_top(self) -> None:
        await self.page.evaluate("() => window.scrollTo(0, 0)")

    def current_url(self) -> str:
        return self.page.url

    async def wait_for_url(self, pattern: UrlPattern, timeout_ms: int) -> None:
        await self.page.wait_for_url(pattern, timeout=timeout_ms)

    async def wait_for_navigation(self, timeout_ms: int) -> None:
        await self.page.wait_for_event(
            "framenavigated",
            predicate=lambda frame: frame == self.page.main_frame,
            timeout=timeout_ms,
        )
        await self.page.wait_for_load_state("load", timeout=timeout_ms)

    def list_open_pages(self) -> List[PageDriver]:
        return [PlaywrightPageDriver(page) for page in self.page.context.pages]

    async def wait_for_new_page(self, timeout_ms: int) -> PageDriver:
        new_page = await self.page.context.wait_for_event("page", timeout=timeout_ms)
        return PlaywrightPageDriver(new_page)

    def is_same_page(self, other: Optional[PageDriver]) -> bool:
        return isinstance(other, PlaywrightPageDriver) and other.page is self.page
