"""Login flow: steps, second factor, outcome classification and orchestration."""

from .agentic import AGENTIC_VALIDATION_PROMPT, AgenticLoginFlow, AgentTaskRunner
from .classifier import OutcomeClassifier, classify_agent_verdict
from .controller import LoginFlowController
from .otp import OtpInputs, SecondFactorStep, locate_otp_inputs, submit_otp
from .steps import (
    AlreadyAuthenticatedCheck,
    AttemptContext,
    DismissInterstitialStep,
    EnterOrganizationStep,
    EnterPasswordStep,
    EnterUsernameStep,
    LoginStep,
    NavigateStep,
    OpenLoginSurfaceStep,
    SubmitKind,
    SubmitLedger,
    VerifySuccessStep,
)

__all__ = [
    "AGENTIC_VALIDATION_PROMPT",
    "AgentTaskRunner",
    "AgenticLoginFlow",
    "AlreadyAuthenticatedCheck",
    "AttemptContext",
    "DismissInterstitialStep",
    "EnterOrganizationStep",
    "EnterPasswordStep",
    "EnterUsernameStep",
    "LoginFlowController",
    "LoginStep",
    "NavigateStep",
    "OpenLoginSurfaceStep",
    "OtpInputs",
    "OutcomeClassifier",
    "SecondFactorStep",
    "SubmitKind",
    "SubmitLedger",
    "VerifySuccessStep",
    "classify_agent_verdict",
    "locate_otp_inputs",
    "submit_otp",
]
