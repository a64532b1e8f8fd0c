"""Orchestrates one login attempt end to end."""

import logging
from typing import Callable, List, Optional

from loginflow.browser import BrowserSession, SessionProvisioner
from loginflow.config import LoginConfig, load_login_config
from loginflow.credentials import CredentialProvider, extract_credentials
from loginflow.exceptions import LoginAutomationError
from loginflow.models import (
    LoginOutcome,
    LoginResult,
    ResolvedCredentials,
    SessionAcquisitionMode,
    SessionOptions,
)
from loginflow.observability import LoggingStepObserver, StepObserver
from loginflow.sites import SiteConfig
from loginflow.flow.classifier import OutcomeClassifier
from loginflow.flow.otp import SecondFactorStep
from loginflow.flow.steps import (
    AlreadyAuthenticatedCheck,
    AttemptContext,
    DismissInterstitialStep,
    EnterOrganizationStep,
    EnterPasswordStep,
    EnterUsernameStep,
    LoginStep,
    NavigateStep,
    OpenLoginSurfaceStep,
    VerifySuccessStep,
)

logger = logging.getLogger(__name__)


class LoginFlowController:
    """Runs a site's login sequence and always returns a LoginOutcome.

    Collaborators are injected so a controller can be reused across attempts;
    each ``run_login`` call owns its own browser session and attempt state.
    """

    def __init__(
        self,
        credential_provider: CredentialProvider,
        provisioner: SessionProvisioner,
        observer: Optional[StepObserver] = None,
        config_loader: Callable[[], LoginConfig] = load_login_config,
        classifier: Optional[OutcomeClassifier] = None,
    ):
        self.credential_provider = credential_provider
        self.provisioner = provisioner
        self.observer = observer or LoggingStepObserver()
        self.config_loader = config_loader
        self.classifier = classifier or OutcomeClassifier()

    async def run_login(self, identity_ref: Optional[str], site: SiteConfig) -> LoginOutcome:
        """Attempt one login to ``site`` with the identity's stored credentials."""
        logger.info(f"Starting {site.name} login automation")
        try:
            outcome = await self._attempt(identity_ref, site)
        except Exception as e:
            logger.exception(f"{site.name} login automation failed: {e}")
            outcome = LoginOutcome.attempt_failed(str(e) or f"{site.name} login automation failed")
        try:
            self.observer.attempt_finished(outcome)
        except Exception as e:
            logger.error(f"Step observer failed on attempt result: {e}")
        return outcome

    async def run_login_result(self, identity_ref: Optional[str], site: SiteConfig) -> LoginResult:
        outcome = await self.run_login(identity_ref, site)
        return outcome.to_result()

    async def _resolve_credentials(self, identity: str, site: SiteConfig) -> ResolvedCredentials:
        logger.info(f"Fetching credentials for identity: {identity}")
        bundle = await self.credential_provider.fetch_credentials(identity)
        credentials = extract_credentials(bundle, require_organization=site.requires_organization)
        logger.info(f"Fetched credentials for identity: {bundle.display_name or identity}")
        return credentials

    async def _attempt(self, identity_ref: Optional[str], site: SiteConfig) -> LoginOutcome:
        try:
            config = self.config_loader()
            identity = config.require_identity(identity_ref)
            site = site.with_overrides(config.entry_url, config.success_url_pattern)
            credentials = await self._resolve_credentials(identity, site)
        except LoginAutomationError as e:
            logger.error(f"Login setup failed: {e}")
            return LoginOutcome.attempt_failed(str(e))

        if config.reuses_session:
            mode = SessionAcquisitionMode.REUSE
        else:
            mode = SessionAcquisitionMode.CREATE
        options = SessionOptions.for_risk(credentials.has_second_factor)
        try:
            session = await self.provisioner.acquire(mode, config.session_id, options)
        except LoginAutomationError as e:
            logger.error(f"Browser session unavailable: {e}")
            return LoginOutcome.attempt_failed(f"Browser session unavailable: {e}")

        page = session.primary_page()
        if page is None:
            return LoginOutcome.attempt_failed("Failed to get browser page")
        logger.info("Browser ready")

        ctx = AttemptContext(page, site, config, credentials, self.observer)
        try:
            return await self._drive(ctx, identity)
        except Exception as e:
            logger.error(f"{site.name} login automation failed: {e}")
            return LoginOutcome.attempt_failed(str(e) or f"{site.name} login automation failed")
        finally:
            await self._release(session)

    def credential_steps(self) -> List[LoginStep]:
        return [
            DismissInterstitialStep(),
            OpenLoginSurfaceStep(),
            EnterOrganizationStep(),
            EnterUsernameStep(),
            EnterPasswordStep(),
        ]

    async def _drive(self, ctx: AttemptContext, identity: str) -> LoginOutcome:
        await NavigateStep().run(ctx)

        precheck = await AlreadyAuthenticatedCheck().run(ctx)
        if precheck.succeeded:
            return self.classifier.already_authenticated(ctx.site, ctx.page.current_url())

        for step in self.credential_steps():
            await step.run(ctx)

        if ctx.credentials.has_second_factor:
            # The stored code may have rotated while the password was being entered
            ctx.credentials = await self._resolve_credentials(identity, ctx.site)
            await SecondFactorStep().run(ctx)

        verification = await VerifySuccessStep().run(ctx)
        return self.classifier.classify(verification, ctx.ledger, ctx.credentials, ctx.site)

    async def _release(self, session: BrowserSession) -> None:
        try:
            await session.close()
        except Exception as e:
            logger.error(f"Failed to close browser session {session.session_id}: {e}")
