"""Timing helpers shared by the login steps.

Every wait here is bounded. Visibility probes fan out concurrently and are
resolved by declared priority, never by which probe answered first.
"""

import asyncio
import logging
from typing import Awaitable, Optional, Sequence

from playwright.async_api import Error as PlaywrightError

from loginflow.constants import VISIBILITY_POLL_INTERVAL_MS
from loginflow.driver import PageDriver

logger = logging.getLogger(__name__)


def effective_timeout(timeout_ms: int, floor_ms: int) -> int:
    """Never wait less than ``floor_ms``."""
    return max(timeout_ms, floor_ms)


async def probe_visible(driver: PageDriver, selectors: Sequence[str]) -> Optional[str]:
    """Return the highest-priority selector that is visible right now."""
    if not selectors:
        return None
    results = await asyncio.gather(*(driver.is_visible(selector) for selector in selectors))
    for selector, visible in zip(selectors, results):
        if visible:
            return selector
    return None


async def wait_first_visible(
    driver: PageDriver,
    selectors: Sequence[str],
    timeout_ms: int,
    poll_interval_ms: int = VISIBILITY_POLL_INTERVAL_MS,
) -> Optional[str]:
    """Re-probe ``selectors`` until one is visible or ``timeout_ms`` elapses."""
    if not selectors:
        return None
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_ms / 1000
    while True:
        selector = await probe_visible(driver, selectors)
        if selector is not None:
            return selector
        remaining = deadline - loop.time()
        if remaining <= 0:
            return None
        await asyncio.sleep(min(poll_interval_ms / 1000, remaining))


async def race_with_navigation(driver: PageDriver, action: Awaitable, timeout_ms: int) -> bool:
    """Run ``action`` while waiting for the navigation it may trigger.

    Both are awaited. A navigation timeout is not an error (inline validation
    keeps the page where it is); a failing action is. Returns whether a
    navigation was observed.
    """

    async def navigation() -> bool:
        try:
            await driver.wait_for_navigation(timeout_ms)
            return True
        except PlaywrightError as e:
            logger.info(f"No navigation after submit: {e}")
            return False

    waiter = asyncio.ensure_future(navigation())
    # Let the waiter subscribe before the action fires
    await asyncio.sleep(0)
    try:
        await action
    except BaseException:
        waiter.cancel()
        raise
    return await waiter
