"""Local Chromium session provisioner."""

import logging
import uuid
from typing import Any, Dict, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from loginflow.browser.base import BrowserSession, PlaywrightBrowserSession, SessionProvisioner
from loginflow.config import settings
from loginflow.exceptions import ProvisionError
from loginflow.models import SessionAcquisitionMode, SessionOptions

logger = logging.getLogger(__name__)

BROWSER_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--no-sandbox",
    "--disable-infobars",
    "--start-maximized",
    "--disable-gpu",
    "--no-first-run",
]

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)

STEALTH_INIT_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', {get: () => undefined});
window.chrome = {runtime: {}, loadTimes: function() {}, csi: function() {}, app: {}};
Object.defineProperty(navigator, 'platform', {get: () => 'Linux x86_64'});
Object.defineProperty(navigator, 'languages', {get: () => ['en-US', 'en']});
"""


class LocalBrowserProvisioner(SessionProvisioner):
    """Launches Chromium locally, or attaches to a CDP endpoint."""

    def __init__(self, headless: Optional[bool] = None):
        self.headless = settings.headless if headless is None else headless

    async def create(self, options: SessionOptions) -> BrowserSession:
        launch_kwargs: Dict[str, Any] = {"headless": self.headless, "args": BROWSER_ARGS}
        if options.proxy:
            if settings.local_proxy_server:
                launch_kwargs["proxy"] = {"server": settings.local_proxy_server}
            else:
                logger.warning("Proxy requested but LOCAL_PROXY_SERVER is not set")
        if options.captcha_solver:
            logger.warning("CAPTCHA solving is not available for local browsers")

        playwright = await async_playwright().start()
        try:
            logger.info("Launching local Chromium browser")
            browser = await playwright.chromium.launch(**launch_kwargs)
            context = await browser.new_context(
                viewport={"width": 1280, "height": 720},
                user_agent=USER_AGENT,
                java_script_enabled=True,
                accept_downloads=False,
                extra_http_headers={"Accept-Language": "en-US,en;q=0.9"},
            )
            if options.extra_stealth:
                await context.add_init_script(STEALTH_INIT_SCRIPT)
            await context.new_page()
        except PlaywrightError as e:
            await playwright.stop()
            raise ProvisionError(f"Local browser launch failed: {e}") from e

        session_id = f"local-{uuid.uuid4().hex[:12]}"
        logger.info(f"Local browser session created: {session_id}")
        return PlaywrightBrowserSession(session_id, SessionAcquisitionMode.CREATE, playwright, browser)

    async def connect(self, session_id: str) -> BrowserSession:
        """Attach to a running browser; the session id is its CDP endpoint."""
        endpoint = session_id or settings.browser_ws_endpoint
        if not endpoint:
            raise ProvisionError("No CDP endpoint to connect to")

        playwright = await async_playwright().start()
        try:
            logger.info(f"Connecting to remote browser: {endpoint}")
            browser = await playwright.chromium.connect_over_cdp(endpoint)
        except PlaywrightError as e:
            await playwright.stop()
            raise ProvisionError(f"Could not connect to {endpoint}: {e}") from e

        return PlaywrightBrowserSession(session_id, SessionAcquisitionMode.REUSE, playwright, browser)
