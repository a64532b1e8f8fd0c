"""Exceptions raised by the login automation and its collaborators."""

from typing import Iterable, List


class LoginAutomationError(Exception):
    """Base class for every error the login automation raises."""


class ConfigurationError(LoginAutomationError):
    """Missing or invalid required input. Raised before any browser work."""


class CredentialProviderError(LoginAutomationError):
    """The credential provider could not return a bundle."""


class CredentialNotFoundError(CredentialProviderError):
    """No credential bundle exists for the identity reference."""


class CredentialUnauthorizedError(CredentialProviderError):
    """The caller is not allowed to read the identity's credentials."""


class CredentialExtractionError(LoginAutomationError):
    """A bundle was fetched but required fields are absent."""

    def __init__(self, missing_fields: Iterable[str]):
        self.missing_fields: List[str] = list(missing_fields)
        super().__init__(
            f"Missing required credentials: {', '.join(self.missing_fields)}"
        )


MissingCredentialsError = CredentialExtractionError


class InvalidAuthenticatorError(CredentialExtractionError):
    """The authenticator record holds neither a one-time code nor a usable TOTP secret."""

    def __init__(self, reason: str):
        self.missing_fields = ["otp"]
        LoginAutomationError.__init__(
            self, f"Authenticator record holds no usable one-time code or TOTP secret: {reason}"
        )


class ProvisionError(LoginAutomationError):
    """A browser session could not be created or connected."""


class InteractionError(LoginAutomationError):
    """A required control never became usable, even after every fallback."""


class SubmitLimitExceeded(InteractionError):
    """A second submit of the same kind was requested within one attempt."""


class VerificationTimeout(LoginAutomationError):
    """The authenticated-area URL pattern never matched."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Authenticated URL not reached. Current URL: {url}")
