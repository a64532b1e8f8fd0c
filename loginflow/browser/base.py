"""Session handle and abstract session provisioner interface."""

import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

from playwright.async_api import Browser, Playwright

from loginflow.driver import PageDriver, PlaywrightPageDriver
from loginflow.models import SessionAcquisitionMode, SessionOptions

logger = logging.getLogger(__name__)


class BrowserSession(ABC):
    """A live browser plus the page a login attempt drives.

    ``close`` releases the browser at most once, however many times it is called.
    """

    def __init__(self, session_id: str, mode: SessionAcquisitionMode):
        self.session_id = session_id
        self.mode = mode
        self.close_count = 0

    @property
    def closed(self) -> bool:
        return self.close_count > 0

    @abstractmethod
    def primary_page(self) -> Optional[PageDriver]:
        """Return the active page, or None when no context or page exists."""
        pass

    @abstractmethod
    async def _release(self) -> None:
        pass

    async def close(self) -> None:
        if self.closed:
            return
        self.close_count += 1
        logger.info(f"Closing browser session {self.session_id}")
        await self._release()


class PlaywrightBrowserSession(BrowserSession):
    """Session backed by a Playwright browser connection."""

    def __init__(
        self,
        session_id: str,
        mode: SessionAcquisitionMode,
        playwright: Playwright,
        browser: Browser,
        on_release: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        super().__init__(session_id, mode)
        self.playwright = playwright
        self.browser = browser
        self._on_release = on_release

    def primary_page(self) -> Optional[PageDriver]:
        contexts = self.browser.contexts
        if not contexts:
            logger.error("Failed to get browser context")
            return None
        pages = contexts[0].pages
        if not pages:
            logger.error("Failed to get browser page")
            return None
        return PlaywrightPageDriver(pages[0])

    async def _release(self) -> None:
        try:
            await self.browser.close()
        finally:
            try:
                if self._on_release is not None:
                    await self._on_release()
            finally:
                await self.playwright.stop()


class SessionProvisioner(ABC):
    """Abstract browser session provisioner."""

    @abstractmethod
    async def connect(self, session_id: str) -> BrowserSession:
        """Attach to an existing browser session.

        Raises:
            ProvisionError: if the session cannot be reached.
        """
        pass

    @abstractmethod
    async def create(self, options: SessionOptions) -> BrowserSession:
        """Create a new browser session.

        Raises:
            ProvisionError: on capacity or authentication problems.
        """
        pass

    async def acquire(
        self, mode: SessionAcquisitionMode, session_id: str, options: SessionOptions
    ) -> BrowserSession:
        if mode == SessionAcquisitionMode.REUSE:
            logger.info(f"Connecting to existing session: {session_id}")
            return await self.connect(session_id)
        logger.info(f"Creating new browser session (stealth={options.extra_stealth})")
        return await self.create(options)
