"""Configuration for the login automation."""

import os
import re
import logging
from typing import Dict, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

from .constants import DEFAULT_TIMEOUT_MS
from .exceptions import ConfigurationError

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


class Settings:
    """Process-wide settings for browser provisioning and credential storage."""

    # Browser settings
    headless: bool = os.environ.get("HEADLESS", "true").lower() == "true"
    browser_ws_endpoint: str = os.environ.get("BROWSER_WS_ENDPOINT", "")
    browser_provider: str = os.environ.get("BROWSER_PROVIDER", "browserbase")
    local_proxy_server: str = os.environ.get("LOCAL_PROXY_SERVER", "")

    # Browserbase settings
    browserbase_api_key: str = os.environ.get("BROWSERBASE_API_KEY", "")
    browserbase_project_id: str = os.environ.get("BROWSERBASE_PROJECT_ID", "")
    browserbase_advanced_stealth: bool = (
        os.environ.get("BROWSERBASE_ADVANCED_STEALTH", "false").lower() == "true"
    )

    # Credential store configuration
    credential_store: str = os.environ.get("CREDENTIAL_STORE", "memory")
    dynamodb_table_name: str = os.environ.get("DYNAMODB_TABLE_NAME", "login-identities")
    dynamodb_region: str = os.environ.get("DYNAMODB_REGION", "us-east-1")
    aws_access_key_id: str = os.environ.get("AWS_ACCESS_KEY_ID", "")
    aws_secret_access_key: str = os.environ.get("AWS_SECRET_ACCESS_KEY", "")

    # Logging
    log_level: str = os.environ.get("LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()


class LoginConfig(BaseModel):
    """Per-attempt configuration resolved from the execution environment."""

    session_id: str = ""
    identity_id: str = ""
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    entry_url: Optional[str] = None
    success_url_pattern: Optional[str] = None

    @field_validator("session_id", "identity_id", mode="before")
    @classmethod
    def _blank_to_empty(cls, value):
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("timeout_ms", mode="before")
    @classmethod
    def _default_timeout(cls, value):
        if value is None or value == "":
            return DEFAULT_TIMEOUT_MS
        return value

    @field_validator("timeout_ms")
    @classmethod
    def _positive_timeout(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("LOGIN_TIMEOUT_MS must be a positive number of milliseconds")
        return value

    @field_validator("entry_url", "success_url_pattern", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if value is None or not str(value).strip():
            return None
        return str(value).strip()

    @field_validator("success_url_pattern")
    @classmethod
    def _compiles(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            try:
                re.compile(value)
            except re.error as e:
                raise ValueError(f"LOGIN_SUCCESS_URL_PATTERN is not a valid regex: {e}")
        return value

    @property
    def reuses_session(self) -> bool:
        return bool(self.session_id)

    def require_identity(self, identity_ref: Optional[str] = None) -> str:
        """Return the identity reference to use, preferring the caller's."""
        identity = (identity_ref or "").strip() or self.identity_id
        if not identity:
            raise ConfigurationError(
                "Missing required input LOGIN_IDENTITY_ID. "
                "Please set LOGIN_IDENTITY_ID environment variable."
            )
        return identity


def load_login_config(environ: Optional[Mapping[str, str]] = None) -> LoginConfig:
    """Build a LoginConfig from environment-style inputs.

    Raises:
        ConfigurationError: if any input fails validation.
    """
    env = os.environ if environ is None else environ
    raw: Dict[str, Optional[str]] = {
        "session_id": env.get("LOGIN_SESSION_ID"),
        "identity_id": env.get("LOGIN_IDENTITY_ID"),
        "timeout_ms": env.get("LOGIN_TIMEOUT_MS"),
        "entry_url": env.get("LOGIN_ENTRY_URL"),
        "success_url_pattern": env.get("LOGIN_SUCCESS_URL_PATTERN"),
    }
    try:
        config = LoginConfig(**raw)
    except ValidationError as e:
        problems = "; ".join(error["msg"] for error in e.errors())
        raise ConfigurationError(f"Invalid login configuration: {problems}") from e

    logger.debug(
        f"Login config resolved: session={'reuse' if config.reuses_session else 'create'}, "
        f"identity={'set' if config.identity_id else 'NOT SET'}, timeout_ms={config.timeout_ms}"
    )
    return config
