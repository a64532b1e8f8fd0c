"""One-time-code detection and submission."""

import asyncio
import logging
from typing import List, Optional

from playwright.async_api import Error as PlaywrightError
from pydantic import BaseModel

from loginflow.constants import VISIBILITY_POLL_INTERVAL_MS
from loginflow.driver import PageDriver
from loginflow.exceptions import InteractionError
from loginflow.models import OtpLayout, StepResult
from loginflow.sites import SiteConfig
from loginflow.flow.steps import AttemptContext, LoginStep, SubmitKind, Tactic, verify_authenticated
from loginflow.flow.timing import probe_visible, race_with_navigation

logger = logging.getLogger(__name__)

OTP_INPUTS_NOT_FOUND = "OTP inputs not found"


class OtpInputs(BaseModel):
    """Where the code goes: one combined field, or ``count`` digit boxes."""

    layout: OtpLayout
    selector: str
    count: int = 1


async def locate_otp_inputs(driver: PageDriver, site: SiteConfig) -> Optional[OtpInputs]:
    single = await probe_visible(driver, site.otp_single_selectors)
    if single is not None:
        return OtpInputs(layout=OtpLayout.SINGLE, selector=single)

    try:
        count = await driver.count(site.otp_digit_selector)
    except PlaywrightError:
        count = 0
    if count >= site.otp_min_digits:
        return OtpInputs(layout=OtpLayout.MULTI, selector=site.otp_digit_selector, count=count)
    return None


async def wait_for_otp_inputs(ctx: AttemptContext) -> Optional[OtpInputs]:
    """Poll for the code inputs; the challenge page can take a moment to render."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + ctx.timeout_ms / 1000
    while True:
        inputs = await locate_otp_inputs(ctx.page, ctx.site)
        if inputs is not None:
            return inputs
        remaining = deadline - loop.time()
        if remaining <= 0:
            return None
        await asyncio.sleep(min(VISIBILITY_POLL_INTERVAL_MS / 1000, remaining))


async def click_fallback_submit(ctx: AttemptContext) -> bool:
    """Click the first visible generic submit/verify/continue control, once."""
    selector = await probe_visible(ctx.page, ctx.site.otp_fallback_submit_selectors)
    if selector is None:
        logger.info("No fallback submit control visible")
        return False

    ctx.ledger.record_fallback_click()
    try:
        await race_with_navigation(
            ctx.page,
            ctx.page.click(selector, ctx.timeout_ms),
            ctx.site.navigation_wait_timeout_ms,
        )
    except PlaywrightError as e:
        logger.warning(f"Fallback submit click on {selector} failed: {e}")
    return True


async def submit_otp(ctx: AttemptContext, code: str, inputs: Optional[OtpInputs] = None) -> bool:
    """Enter ``code`` and submit it once.

    Returns True when the post-submit check failed and the fallback submit
    control was clicked.
    """
    if inputs is None:
        inputs = await locate_otp_inputs(ctx.page, ctx.site)
    if inputs is None:
        raise InteractionError(OTP_INPUTS_NOT_FOUND)

    page = ctx.page
    wait_ms = ctx.site.navigation_wait_timeout_ms
    if inputs.layout == OtpLayout.SINGLE:
        await page.fill(inputs.selector, "")
        await page.fill(inputs.selector, code)
        ctx.ledger.record_submit(SubmitKind.OTP)
        await race_with_navigation(page, page.press_key(inputs.selector, "Enter"), wait_ms)
    else:
        total = min(inputs.count, len(code))
        for index in range(total):
            await page.fill(inputs.selector, "", index=index)
            await page.type_text(inputs.selector, code[index], index=index)
        ctx.ledger.record_submit(SubmitKind.OTP)
        await race_with_navigation(
            page, page.press_key(inputs.selector, "Enter", index=total - 1), wait_ms
        )

    verification = await verify_authenticated(ctx, ctx.site.otp_verify_timeout_floor_ms)
    if verification.matched:
        return False
    return await click_fallback_submit(ctx)


class SecondFactorStep(LoginStep):
    """Detect the code challenge and submit the one-time code."""

    name = "second-factor"

    def applies(self, ctx: AttemptContext) -> bool:
        return ctx.credentials.has_second_factor

    def tactics(self, ctx: AttemptContext) -> List[Tactic]:
        return [("locate-and-submit", self._locate_and_submit)]

    async def _locate_and_submit(self, ctx: AttemptContext) -> StepResult:
        inputs = await wait_for_otp_inputs(ctx)
        if inputs is None:
            return StepResult.failed(OTP_INPUTS_NOT_FOUND)
        logger.info(f"OTP input layout: {inputs.layout.value}")

        code = ctx.credentials.current_otp()
        fallback_used = await submit_otp(ctx, code, inputs)
        if fallback_used:
            return StepResult.ok("OTP submitted, fallback submit clicked")
        return StepResult.ok(f"OTP submitted ({inputs.layout.value} field)")
