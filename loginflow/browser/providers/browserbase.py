"""Browserbase session provisioner with managed sessions."""

import asyncio
import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from browserbase import APIError, Browserbase
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from loginflow.browser.base import BrowserSession, PlaywrightBrowserSession, SessionProvisioner
from loginflow.config import settings
from loginflow.exceptions import ConfigurationError, ProvisionError
from loginflow.models import SessionAcquisitionMode, SessionOptions

logger = logging.getLogger(__name__)

BROWSERBASE_CONNECT_URL = "wss://connect.browserbase.com"


class BrowserbaseProvisioner(SessionProvisioner):
    """Provisions sessions on Browserbase and attaches Playwright over CDP."""

    def __init__(self, client: Optional[Browserbase] = None):
        if client is None:
            if not settings.browserbase_api_key:
                raise ConfigurationError(
                    "BROWSERBASE_API_KEY is required for Browserbase provider"
                )
            client = Browserbase(api_key=settings.browserbase_api_key)
        self.client = client

    def build_session_config(self, options: SessionOptions) -> Dict[str, Any]:
        """Map requested session options onto a Browserbase session config."""
        session_config: Dict[str, Any] = {
            "project_id": settings.browserbase_project_id,
            "browser_settings": {
                "solve_captchas": options.captcha_solver,
            },
        }

        # Advanced Stealth Mode is plan-gated, so it is opt-in per deployment
        if options.extra_stealth and settings.browserbase_advanced_stealth:
            session_config["browser_settings"]["advanced_stealth"] = True

        if options.proxy:
            session_config["proxies"] = True  # Browserbase picks the proxy

        return session_config

    async def _run(self, call):
        return await asyncio.get_event_loop().run_in_executor(None, call)

    async def create(self, options: SessionOptions) -> BrowserSession:
        session_config = self.build_session_config(options)
        logger.info("Creating Browserbase session...")
        try:
            session = await self._run(lambda: self.client.sessions.create(**session_config))
        except APIError as e:
            raise ProvisionError(f"Browserbase session creation failed: {e}") from e

        logger.info("Browserbase session created: %s", session.id)

        async def release() -> None:
            await self._run(
                lambda: self.client.sessions.update(
                    session.id,
                    project_id=settings.browserbase_project_id,
                    status="REQUEST_RELEASE",
                )
            )
            logger.info("Browserbase session %s released", session.id)

        return await self._attach(
            session.id, session.connect_url, SessionAcquisitionMode.CREATE, release
        )

    async def connect(self, session_id: str) -> BrowserSession:
        try:
            session = await self._run(lambda: self.client.sessions.retrieve(session_id))
        except APIError as e:
            raise ProvisionError(f"Browserbase session {session_id} not available: {e}") from e

        if getattr(session, "status", "RUNNING") != "RUNNING":
            raise ProvisionError(
                f"Browserbase session {session_id} is not running (status: {session.status})"
            )

        connect_url = f"{BROWSERBASE_CONNECT_URL}?" + urlencode(
            {"apiKey": settings.browserbase_api_key, "sessionId": session_id}
        )
        return await self._attach(session_id, connect_url, SessionAcquisitionMode.REUSE)

    async def _attach(self, session_id, connect_url, mode, release=None) -> BrowserSession:
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.connect_over_cdp(connect_url)
        except PlaywrightError as e:
            await playwright.stop()
            raise ProvisionError(f"Could not connect to Browserbase session {session_id}: {e}") from e

        logger.info("Connected to Browserbase session %s", session_id)
        return PlaywrightBrowserSession(session_id, mode, playwright, browser, on_release=release)
