"""Agent-driven login validation.

Instead of a selector table, an agent running inside an existing browser
session is asked to log in once and answer with a one-word verdict.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from loginflow.browser import SessionProvisioner
from loginflow.config import LoginConfig, load_login_config
from loginflow.credentials import CredentialProvider
from loginflow.exceptions import ConfigurationError, LoginAutomationError
from loginflow.models import LoginOutcome, SessionAcquisitionMode, SessionOptions, StepResult
from loginflow.observability import LoggingStepObserver, StepObserver
from loginflow.sites import SiteConfig
from loginflow.flow.classifier import classify_agent_verdict

logger = logging.getLogger(__name__)

AGENTIC_VALIDATION_PROMPT = """Use a 3-way result so "invalid credentials" is separated from "could not attempt".

Attempt to log in using the provided credentials. You are allowed to perform AT MOST ONE submit action (one click on "Log in", "Sign in", or "Submit", or one Enter-key submit on a login form). Do not submit twice.

After navigation settles (wait for network and DOM to become stable), classify the outcome and respond with EXACTLY ONE of the following strings:

- "true" - Login succeeded: you can confirm authenticated state (e.g., redirected away from login, user avatar or name visible, logout button present, or access to a known authenticated-only page or element).
- "false" - Login attempt was executed but credentials were rejected: you see an authentication error (e.g., "invalid password", "incorrect email", "wrong credentials"), or you remain on the login page with a clear credentials-related error.
- "attempt_failed" - You could not complete a login attempt: required fields or submit control not found, submit disabled, CAPTCHA/2FA/SSO blocks progress, page crashes, unexpected modal blocks interaction, timeout, or any other automation or UX issue prevented the single submit action.

Rules:
- Only return one of: "true", "false", "attempt_failed" (lowercase, no extra text).
- If you did not actually perform a submit action, you MUST return "attempt_failed".
- If you performed a submit action and there is no clear success signal AND no clear credentials error, return "attempt_failed".
"""


class AgentTaskRunner(ABC):
    """Runs a natural-language task inside an existing browser session."""

    @abstractmethod
    async def run_task(
        self, prompt: str, session_id: str, url: str, identity_ref: Optional[str] = None
    ) -> str:
        """Run ``prompt`` starting at ``url`` and return the agent's final answer."""
        pass


class AgenticLoginFlow:
    """Login validation delegated to an agent, classified into the same three outcomes."""

    def __init__(
        self,
        credential_provider: CredentialProvider,
        provisioner: SessionProvisioner,
        agent_runner: AgentTaskRunner,
        observer: Optional[StepObserver] = None,
        config_loader: Callable[[], LoginConfig] = load_login_config,
    ):
        self.credential_provider = credential_provider
        self.provisioner = provisioner
        self.agent_runner = agent_runner
        self.observer = observer or LoggingStepObserver()
        self.config_loader = config_loader

    async def run_login(
        self, identity_ref: Optional[str] = None, site: Optional[SiteConfig] = None
    ) -> LoginOutcome:
        try:
            outcome = await self._attempt(identity_ref, site)
        except Exception as e:
            logger.exception(f"Error in agent-based login: {e}")
            outcome = LoginOutcome.attempt_failed(str(e) or "Agent-based login failed")
        try:
            self.observer.attempt_finished(outcome)
        except Exception as e:
            logger.error(f"Step observer failed on attempt result: {e}")
        return outcome

    async def _attempt(self, identity_ref: Optional[str], site: Optional[SiteConfig]) -> LoginOutcome:
        try:
            config = self.config_loader()
            if not config.session_id:
                raise ConfigurationError(
                    "Missing required input LOGIN_SESSION_ID. The agent runs inside an existing session."
                )
            identity = config.require_identity(identity_ref)
            bundle = await self.credential_provider.fetch_credentials(identity)
        except LoginAutomationError as e:
            logger.error(f"Agent-based login setup failed: {e}")
            return LoginOutcome.attempt_failed(str(e))

        if site is not None:
            url = site.with_overrides(entry_url=config.entry_url).entry_url
        elif config.entry_url:
            url = config.entry_url
        elif bundle.source:
            url = f"https://{bundle.source}"
        else:
            return LoginOutcome.attempt_failed("No login URL: identity has no source domain")

        session = await self.provisioner.acquire(
            SessionAcquisitionMode.REUSE, config.session_id, SessionOptions()
        )
        try:
            self.observer.step_started("agent-task")
            verdict = await self.agent_runner.run_task(
                AGENTIC_VALIDATION_PROMPT, config.session_id, url, identity
            )
            outcome = classify_agent_verdict(verdict)
            self.observer.step_finished("agent-task", StepResult.ok(f"Agent verdict: {verdict}"))
        finally:
            try:
                await session.close()
            except Exception as e:
                logger.error(f"Failed to close browser session {session.session_id}: {e}")
        return outcome
