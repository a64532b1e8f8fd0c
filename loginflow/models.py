"""Data models for the login automation."""

import re
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

import pyotp
from pydantic import BaseModel, ConfigDict, Field

from loginflow.exceptions import InvalidAuthenticatorError


class CredentialType(str, Enum):
    """Kinds of credential record an identity can hold."""

    USERNAME_PASSWORD = "username_password"
    AUTHENTICATOR = "authenticator"
    CUSTOM = "custom"


class UsernamePasswordCredential(BaseModel):
    type: Literal[CredentialType.USERNAME_PASSWORD] = CredentialType.USERNAME_PASSWORD
    username: str = ""
    password: str = ""


class AuthenticatorCredential(BaseModel):
    """One-time code, or the TOTP secret it is generated from."""

    type: Literal[CredentialType.AUTHENTICATOR] = CredentialType.AUTHENTICATOR
    otp: Optional[str] = None
    secret: Optional[str] = None


class CustomField(BaseModel):
    name: str
    value: str = ""


class CustomCredential(BaseModel):
    type: Literal[CredentialType.CUSTOM] = CredentialType.CUSTOM
    fields: List[CustomField] = Field(default_factory=list)


CredentialRecord = Annotated[
    Union[UsernamePasswordCredential, AuthenticatorCredential, CustomCredential],
    Field(discriminator="type"),
]


class CredentialBundle(BaseModel):
    """Everything stored for one identity."""

    display_name: str = ""
    source: Optional[str] = None  # domain the identity belongs to
    records: List[CredentialRecord] = Field(default_factory=list)


_OTP_CODE = re.compile(r"^\d{4,10}$")


def _totp_now(secret: str) -> str:
    try:
        return pyotp.TOTP(secret).now()
    except ValueError as e:
        # binascii.Error for anything that is not base32
        raise InvalidAuthenticatorError(str(e) or type(e).__name__) from e


class ResolvedCredentials(BaseModel):
    """The fields a login flow needs, extracted from a bundle."""

    model_config = ConfigDict(frozen=True)

    username: str
    password: str
    otp_code: Optional[str] = None
    otp_secret: Optional[str] = None
    organization: Optional[str] = None

    @property
    def has_second_factor(self) -> bool:
        return bool(self.otp_code or self.otp_secret)

    def current_otp(self) -> Optional[str]:
        """Return the one-time code, generating it from the TOTP secret if needed."""
        if self.otp_code:
            if _OTP_CODE.match(self.otp_code):
                return self.otp_code
            # Authenticator records sometimes carry the secret in the code slot
            return _totp_now(self.otp_code)
        if self.otp_secret:
            return _totp_now(self.otp_secret)
        return None


class SessionAcquisitionMode(str, Enum):
    """How the browser session for an attempt is obtained."""

    REUSE = "reuse"
    CREATE = "create"


class SessionOptions(BaseModel):
    """Options requested when a new browser session is created."""

    model_config = ConfigDict(frozen=True)

    proxy: bool = False
    captcha_solver: bool = False
    extra_stealth: bool = False

    @classmethod
    def for_risk(cls, has_second_factor: bool) -> "SessionOptions":
        # Without a second factor the site is more likely to put up bot friction
        elevated = not has_second_factor
        return cls(proxy=elevated, captcha_solver=elevated, extra_stealth=elevated)


class OtpLayout(str, Enum):
    """How a page lays out its one-time-code input."""

    SINGLE = "single"
    MULTI = "multi"


class StepResult(BaseModel):
    """Outcome of a single step or tactic."""

    attempted: bool
    succeeded: bool
    detail: str = ""

    @classmethod
    def ok(cls, detail: str = "") -> "StepResult":
        return cls(attempted=True, succeeded=True, detail=detail)

    @classmethod
    def failed(cls, detail: str) -> "StepResult":
        return cls(attempted=True, succeeded=False, detail=detail)

    @classmethod
    def skipped(cls, detail: str) -> "StepResult":
        return cls(attempted=False, succeeded=False, detail=detail)


class VerificationResult(BaseModel):
    """Terminal page state observed by the success check."""

    matched: bool
    url: str
    rejection_detected: bool = False


class LoginStatus(str, Enum):
    """Tri-state result of one login attempt."""

    SUCCESS = "success"
    CREDENTIALS_REJECTED = "credentials_rejected"
    ATTEMPT_FAILED = "attempt_failed"


class LoginOutcome(BaseModel):
    """The single, immutable outcome of one login attempt."""

    model_config = ConfigDict(frozen=True)

    status: LoginStatus
    message: str

    @classmethod
    def success(cls, message: str) -> "LoginOutcome":
        return cls(status=LoginStatus.SUCCESS, message=message)

    @classmethod
    def credentials_rejected(cls, message: str) -> "LoginOutcome":
        return cls(status=LoginStatus.CREDENTIALS_REJECTED, message=message)

    @classmethod
    def attempt_failed(cls, message: str) -> "LoginOutcome":
        return cls(status=LoginStatus.ATTEMPT_FAILED, message=message)

    @property
    def succeeded(self) -> bool:
        return self.status == LoginStatus.SUCCESS

    def to_result(self) -> "LoginResult":
        return LoginResult(success=self.succeeded, message=self.message, status=self.status)


class LoginResult(BaseModel):
    """Login result returned to callers."""

    success: bool
    message: str
    status: LoginStatus
