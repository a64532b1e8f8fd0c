"""Login steps and their fallback tactics.

A step tries its tactics in a fixed priority order and the first that succeeds
wins. When every tactic fails, a required step aborts the attempt with an
InteractionError and an optional step is skipped.
"""

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Tuple

from playwright.async_api import Error as PlaywrightError

from loginflow.config import LoginConfig
from loginflow.driver import PageDriver
from loginflow.exceptions import InteractionError, SubmitLimitExceeded, VerificationTimeout
from loginflow.models import ResolvedCredentials, StepResult, VerificationResult
from loginflow.observability import LoggingStepObserver, StepObserver
from loginflow.sites import SiteConfig
from loginflow.flow.timing import (
    effective_timeout,
    probe_visible,
    wait_first_visible,
)

logger = logging.getLogger(__name__)


class SubmitKind(str, Enum):
    PRIMARY = "primary"
    OTP = "otp"


class SubmitLedger:
    """Counts submit actions so none is ever issued twice in one attempt."""

    def __init__(self):
        self.primary_submits = 0
        self.otp_submits = 0
        self.fallback_clicks = 0

    @property
    def primary_submitted(self) -> bool:
        return self.primary_submits > 0

    @property
    def total_submits(self) -> int:
        """Every submit action taken so far, fallback clicks included."""
        return self.primary_submits + self.otp_submits + self.fallback_clicks

    def record_submit(self, kind: SubmitKind) -> None:
        if kind == SubmitKind.PRIMARY:
            if self.primary_submits:
                raise SubmitLimitExceeded("Credentials were already submitted once; not submitting again")
            self.primary_submits += 1
        else:
            if self.otp_submits:
                raise SubmitLimitExceeded("OTP was already submitted once; not submitting again")
            self.otp_submits += 1

    def record_fallback_click(self) -> None:
        if self.fallback_clicks:
            raise SubmitLimitExceeded("Fallback submit control was already clicked once")
        self.fallback_clicks += 1


class AttemptContext:
    """Mutable state of one login attempt, owned by its controller."""

    def __init__(
        self,
        page: PageDriver,
        site: SiteConfig,
        config: LoginConfig,
        credentials: ResolvedCredentials,
        observer: Optional[StepObserver] = None,
    ):
        self.entry_page = page
        self.page = page  # the page the form lives on; may move to a new tab
        self.site = site
        self.config = config
        self.credentials = credentials
        self.observer = observer or LoggingStepObserver()
        self.ledger = SubmitLedger()

    @property
    def timeout_ms(self) -> int:
        return self.config.timeout_ms


Tactic = Tuple[str, Callable[[AttemptContext], Awaitable[StepResult]]]


class LoginStep(ABC):
    """One unit of the login sequence."""

    name: str = "step"
    required: bool = True

    def applies(self, ctx: AttemptContext) -> bool:
        return True

    @abstractmethod
    def tactics(self, ctx: AttemptContext) -> List[Tactic]:
        """Candidate tactics, highest priority first."""
        pass

    def on_exhausted(self, ctx: AttemptContext, failures: List[StepResult]) -> None:
        """Raise the error that aborts the attempt when a required step fails."""
        raise InteractionError("; ".join(f.detail for f in failures) or f"{self.name} failed")

    async def run(self, ctx: AttemptContext) -> StepResult:
        if not self.applies(ctx):
            return StepResult.skipped(f"{self.name} not applicable")

        ctx.observer.step_started(self.name)
        failures: List[StepResult] = []
        for label, tactic in self.tactics(ctx):
            try:
                result = await tactic(ctx)
            except SubmitLimitExceeded:
                raise
            except (PlaywrightError, InteractionError) as e:
                result = StepResult.failed(str(e).splitlines()[0] if str(e) else repr(e))
            if result.succeeded:
                ctx.observer.step_finished(self.name, result)
                return result
            logger.debug(f"[{self.name}] tactic {label} did not succeed: {result.detail}")
            failures.append(result)

        detail = "; ".join(f.detail for f in failures) or "no tactic available"
        if self.required:
            ctx.observer.step_finished(self.name, StepResult.failed(detail))
            self.on_exhausted(ctx, failures)
        result = StepResult.skipped(detail)
        ctx.observer.step_finished(self.name, result)
        return result


async def wait_for_authenticated_url(ctx: AttemptContext, floor_ms: int) -> str:
    """Wait for the authenticated-area URL; raise VerificationTimeout if it never shows."""
    timeout_ms = effective_timeout(ctx.timeout_ms, floor_ms)
    try:
        await ctx.page.wait_for_url(ctx.site.success_url_regex, timeout_ms)
    except PlaywrightError as e:
        raise VerificationTimeout(ctx.page.current_url()) from e
    return ctx.page.current_url()


async def verify_authenticated(ctx: AttemptContext, floor_ms: int) -> VerificationResult:
    """Wait for the authenticated-area URL, then re-check the current URL once."""
    try:
        url = await wait_for_authenticated_url(ctx, floor_ms)
        return VerificationResult(matched=True, url=url)
    except VerificationTimeout as e:
        logger.info(f"Timeout waiting for {ctx.site.name} authenticated URL. Current: {e.url}")
    current_url = ctx.page.current_url()
    return VerificationResult(matched=ctx.site.matches_success_url(current_url), url=current_url)


class NavigateStep(LoginStep):
    """Load the site's entry URL."""

    name = "navigate"

    def __init__(self):
        self.navigation_error: Optional[Exception] = None

    def tactics(self, ctx: AttemptContext) -> List[Tactic]:
        return [
            ("direct", self._direct),
            ("marker-visible", self._marker_visible),
            ("already-authenticated", self._already_authenticated),
        ]

    async def _direct(self, ctx: AttemptContext) -> StepResult:
        try:
            await ctx.page.navigate(ctx.site.entry_url, ctx.timeout_ms)
        except PlaywrightError as e:
            self.navigation_error = e
            return StepResult.failed(f"Navigation to {ctx.site.entry_url} failed")
        return StepResult.ok(f"Loaded {ctx.site.entry_url}")

    async def _marker_visible(self, ctx: AttemptContext) -> StepResult:
        marker = await probe_visible(ctx.page, ctx.site.navigation_markers)
        if marker is None:
            return StepResult.failed("Page load failed and no login marker detected")
        return StepResult.ok(f"Load timeout but {marker} visible, proceeding")

    async def _already_authenticated(self, ctx: AttemptContext) -> StepResult:
        if ctx.config.reuses_session and ctx.site.matches_success_url(ctx.page.current_url()):
            return StepResult.ok("Existing session already on the authenticated area")
        return StepResult.failed("Existing session is not authenticated")

    def on_exhausted(self, ctx: AttemptContext, failures: List[StepResult]) -> None:
        if self.navigation_error is not None:
            raise self.navigation_error
        super().on_exhausted(ctx, failures)


class AlreadyAuthenticatedCheck(LoginStep):
    """Detect a session that is already logged in."""

    name = "check-authenticated"
    required = False

    def tactics(self, ctx: AttemptContext) -> List[Tactic]:
        return [("url-pattern", self._url_pattern)]

    async def _url_pattern(self, ctx: AttemptContext) -> StepResult:
        if ctx.site.precheck_authenticated:
            verification = await verify_authenticated(ctx, ctx.site.precheck_timeout_floor_ms)
        else:
            url = ctx.page.current_url()
            verification = VerificationResult(matched=ctx.site.matches_success_url(url), url=url)
        if verification.matched:
            return StepResult.ok(f"Already on {verification.url}")
        return StepResult.failed("Not logged in, proceeding to login")


class DismissInterstitialStep(LoginStep):
    """Close a cookie banner or similar overlay if one shows up."""

    name = "dismiss-interstitial"
    required = False

    def applies(self, ctx: AttemptContext) -> bool:
        return ctx.site.interstitial is not None

    def tactics(self, ctx: AttemptContext) -> List[Tactic]:
        return [("accept", self._accept)]

    async def _accept(self, ctx: AttemptContext) -> StepResult:
        interstitial = ctx.site.interstitial
        banner = await wait_first_visible(ctx.page, [interstitial.container], interstitial.timeout_ms)
        if banner is None:
            return StepResult.failed("No cookie banner present")
        accept = await probe_visible(ctx.page, interstitial.accept_selectors)
        if accept is None:
            return StepResult.failed("Banner visible but no accept control found")
        await ctx.page.click(accept, ctx.timeout_ms)
        return StepResult.ok("Cookie banner dismissed")


class OpenLoginSurfaceStep(LoginStep):
    """Move from the entry page to the page that holds the login form."""

    name = "open-login-surface"

    def applies(self, ctx: AttemptContext) -> bool:
        return ctx.site.login_surface is not None

    def tactics(self, ctx: AttemptContext) -> List[Tactic]:
        return [
            ("trigger", self._trigger),
            ("scan-open-pages", self._scan_open_pages),
            ("deep-link", self._deep_link),
        ]

    async def _click_with_fallback(self, ctx: AttemptContext, selector: str) -> None:
        await ctx.page.scroll_to_top()
        try:
            await ctx.page.click(selector, ctx.timeout_ms)
        except PlaywrightError as e:
            logger.info(f"Standard click failed for {selector}, trying JS fallback: {e}")
            await ctx.page.js_click(selector)

    def _other_page(self, ctx: AttemptContext) -> Optional[PageDriver]:
        for page in ctx.entry_page.list_open_pages():
            if not ctx.entry_page.is_same_page(page):
                return page
        return None

    async def _trigger(self, ctx: AttemptContext) -> StepResult:
        surface = ctx.site.login_surface
        trigger = await wait_first_visible(ctx.page, surface.trigger_selectors, ctx.timeout_ms)
        if trigger is None:
            return StepResult.failed("Login trigger not found")
        await self._click_with_fallback(ctx, trigger)

        if surface.modal_selectors and await probe_visible(ctx.page, surface.modal_selectors) is None:
            return StepResult.failed("Login modal not detected")

        existing = self._other_page(ctx)
        if existing is not None:
            ctx.page = existing
            return StepResult.ok(f"Found existing auth page in new tab: {existing.current_url()}")

        if not surface.new_page_trigger_selectors:
            return StepResult.ok("Login form opened in place")

        new_page_trigger = await probe_visible(ctx.page, surface.new_page_trigger_selectors)
        if new_page_trigger is None:
            return StepResult.failed("New-tab login option not visible")

        opened = ctx.page.wait_for_new_page(ctx.timeout_ms)
        clicked = ctx.page.click(new_page_trigger, ctx.timeout_ms)
        new_page, _ = await asyncio.gather(opened, clicked)
        ctx.page = new_page
        return StepResult.ok(f"New auth tab opened: {new_page.current_url()}")

    async def _scan_open_pages(self, ctx: AttemptContext) -> StepResult:
        pattern = ctx.site.login_surface.auth_page_url_pattern
        if not pattern:
            return StepResult.failed("No auth page pattern to scan for")
        regex = re.compile(pattern)
        for page in ctx.entry_page.list_open_pages():
            if ctx.entry_page.is_same_page(page):
                continue
            if regex.search(page.current_url()):
                ctx.page = page
                return StepResult.ok(f"Found auth page: {page.current_url()}")
        return StepResult.failed("No open page matches the auth provider")

    async def _deep_link(self, ctx: AttemptContext) -> StepResult:
        url = ctx.site.login_surface.deep_link_url
        if not url:
            return StepResult.failed("No deep link configured")
        ctx.page = ctx.entry_page
        try:
            await ctx.entry_page.navigate(url, ctx.timeout_ms)
        except PlaywrightError as e:
            # The login form may still render; the username step decides
            logger.warning(f"Navigation to {url} failed, continuing on current page: {e}")
            return StepResult.ok(f"Continuing on best-guess page: {ctx.page.current_url()}")
        return StepResult.ok(f"Navigated directly to {url}")

    async def run(self, ctx: AttemptContext) -> StepResult:
        result = await super().run(ctx)
        auth_url_pattern = ctx.site.login_surface.auth_url_pattern if self.applies(ctx) else None
        if result.succeeded and auth_url_pattern:
            try:
                await ctx.page.wait_for_url(re.compile(auth_url_pattern), ctx.timeout_ms)
                logger.info("Auth provider login page detected")
            except PlaywrightError:
                logger.info("Auth provider URL not detected, proceeding with login selectors")
            logger.info(f"Auth page URL: {ctx.page.current_url()}")
        return result


class EnterOrganizationStep(LoginStep):
    """Fill the organization / tenant prompt some providers show first."""

    name = "enter-organization"
    required = False

    def applies(self, ctx: AttemptContext) -> bool:
        return bool(ctx.site.organization_selectors and ctx.credentials.organization)

    def tactics(self, ctx: AttemptContext) -> List[Tactic]:
        return [("fill-and-enter", self._fill)]

    async def _fill(self, ctx: AttemptContext) -> StepResult:
        field = await wait_first_visible(
            ctx.page, ctx.site.organization_selectors, ctx.site.optional_field_timeout_ms
        )
        if field is None:
            return StepResult.failed("Organization step not required")
        await ctx.page.fill(field, ctx.credentials.organization)
        await ctx.page.press_key(field, "Enter")
        return StepResult.ok(f"Organization submitted: {ctx.credentials.organization}")


class EnterUsernameStep(LoginStep):
    name = "enter-username"

    def tactics(self, ctx: AttemptContext) -> List[Tactic]:
        return [("fill-and-key", self._fill)]

    async def _fill(self, ctx: AttemptContext) -> StepResult:
        field = await wait_first_visible(ctx.page, ctx.site.username_selectors, ctx.timeout_ms)
        if field is None:
            return StepResult.failed("Username field not found")
        await ctx.page.fill(field, ctx.credentials.username)
        await ctx.page.press_key(field, ctx.site.username_submit_key)
        return StepResult.ok(f"Username entered: {ctx.credentials.username}")


class EnterPasswordStep(LoginStep):
    """Fill the password and submit it. This is the one primary submit."""

    name = "enter-password"

    def tactics(self, ctx: AttemptContext) -> List[Tactic]:
        return [("fill-and-enter", self._fill_and_submit)]

    async def _fill_and_submit(self, ctx: AttemptContext) -> StepResult:
        field = await wait_first_visible(ctx.page, ctx.site.password_selectors, ctx.timeout_ms)
        if field is None:
            return StepResult.failed("Password field not found")
        await ctx.page.fill(field, ctx.credentials.password)
        ctx.ledger.record_submit(SubmitKind.PRIMARY)
        await ctx.page.press_key(field, "Enter")
        return StepResult.ok("Password submitted")


class VerifySuccessStep:
    """Terminal check: did the attempt land in the authenticated area?"""

    name = "verify-success"

    async def run(self, ctx: AttemptContext) -> VerificationResult:
        ctx.observer.step_started(self.name)
        verification = await verify_authenticated(ctx, ctx.site.verify_timeout_floor_ms)
        if not verification.matched and ctx.site.rejection_markers and ctx.ledger.total_submits == 1:
            marker = await probe_visible(ctx.page, ctx.site.rejection_markers)
            if marker is not None:
                logger.info(f"Credentials rejection marker visible: {marker}")
                verification = verification.model_copy(update={"rejection_detected": True})

        if verification.matched:
            ctx.observer.step_finished(self.name, StepResult.ok(f"Authenticated URL confirmed: {verification.url}"))
        else:
            ctx.observer.step_finished(self.name, StepResult.failed(f"Authenticated URL not reached: {verification.url}"))
        return verification
