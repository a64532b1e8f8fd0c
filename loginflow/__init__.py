"""Browser-driven login automation with a tri-state outcome."""

from .exceptions import (
    ConfigurationError,
    CredentialExtractionError,
    InteractionError,
    LoginAutomationError,
    MissingCredentialsError,
    ProvisionError,
)
from .flow import AgenticLoginFlow, LoginFlowController
from .models import LoginOutcome, LoginResult, LoginStatus
from .sites import SiteConfig, SiteRegistry

__version__ = "0.1.0"

__all__ = [
    "AgenticLoginFlow",
    "ConfigurationError",
    "CredentialExtractionError",
    "InteractionError",
    "LoginAutomationError",
    "LoginFlowController",
    "LoginOutcome",
    "LoginResult",
    "LoginStatus",
    "MissingCredentialsError",
    "ProvisionError",
    "SiteConfig",
    "SiteRegistry",
]
