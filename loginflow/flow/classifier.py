"""Map the terminal page state to a login outcome."""

import logging
from typing import Optional

from loginflow.models import LoginOutcome, ResolvedCredentials, VerificationResult
from loginflow.sites import SiteConfig
from loginflow.flow.steps import SubmitLedger

logger = logging.getLogger(__name__)

AGENT_VERDICT_SUCCESS = "true"
AGENT_VERDICT_REJECTED = "false"
AGENT_VERDICT_ATTEMPT_FAILED = "attempt_failed"


class OutcomeClassifier:
    """Decides between success, rejected credentials and a failed attempt."""

    def classify(
        self,
        verification: VerificationResult,
        ledger: SubmitLedger,
        credentials: ResolvedCredentials,
        site: SiteConfig,
        rejection_detected: Optional[bool] = None,
    ) -> LoginOutcome:
        if rejection_detected is None:
            rejection_detected = verification.rejection_detected

        if not ledger.primary_submitted:
            return LoginOutcome.attempt_failed(
                f"Credentials were never submitted to {site.name}. Current URL: {verification.url}"
            )

        if verification.matched:
            return LoginOutcome.success(f"Logged in to {site.name} as {credentials.username}.")

        if rejection_detected and ledger.total_submits == 1:
            return LoginOutcome.credentials_rejected(
                f"{site.name} rejected the credentials for {credentials.username}. "
                f"Current URL: {verification.url}"
            )

        return LoginOutcome.attempt_failed(
            f"Login flow completed but {site.name} URL not confirmed. Current URL: {verification.url}"
        )

    def already_authenticated(self, site: SiteConfig, url: str) -> LoginOutcome:
        return LoginOutcome.success(f"Already authenticated on {site.name}. Landed on {url}.")

    def classify_agent_verdict(self, verdict: Optional[str]) -> LoginOutcome:
        return classify_agent_verdict(verdict)


def classify_agent_verdict(verdict: Optional[str]) -> LoginOutcome:
    """Map an agent's one-word verdict to an outcome.

    Anything other than the three documented answers counts as a failed attempt.
    """
    answer = (verdict or "").strip().strip('"').strip("'").lower()
    if answer == AGENT_VERDICT_SUCCESS:
        return LoginOutcome.success("Agent confirmed an authenticated session")
    if answer == AGENT_VERDICT_REJECTED:
        return LoginOutcome.credentials_rejected("Agent reported the credentials were rejected")
    if answer == AGENT_VERDICT_ATTEMPT_FAILED:
        return LoginOutcome.attempt_failed("Agent could not complete a login attempt")

    logger.warning(f"Unrecognised agent verdict: {verdict!r}")
    return LoginOutcome.attempt_failed(f"Unrecognised agent verdict: {verdict!r}")
