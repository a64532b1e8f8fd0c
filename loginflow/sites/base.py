"""Declarative per-site login configuration."""

import re
from typing import List, Optional, Pattern

from pydantic import BaseModel, ConfigDict, Field

from loginflow.constants import (
    GENERIC_SUBMIT_SELECTORS,
    INTERSTITIAL_TIMEOUT_MS,
    NAVIGATION_WAIT_TIMEOUT_MS,
    OPTIONAL_FIELD_TIMEOUT_MS,
    OTP_DIGIT_SELECTOR,
    OTP_MIN_DIGIT_FIELDS,
    OTP_SINGLE_SELECTORS,
    OTP_VERIFY_TIMEOUT_FLOOR_MS,
    PRECHECK_TIMEOUT_FLOOR_MS,
    VERIFY_TIMEOUT_FLOOR_MS,
)


class InterstitialConfig(BaseModel):
    """A cookie banner or modal that may cover the page."""

    container: str
    accept_selectors: List[str]
    timeout_ms: int = INTERSTITIAL_TIMEOUT_MS


class LoginSurfaceConfig(BaseModel):
    """How to get from the entry page to the page holding the login form."""

    trigger_selectors: List[str] = Field(default_factory=list)
    modal_selectors: List[str] = Field(default_factory=list)
    new_page_trigger_selectors: List[str] = Field(default_factory=list)
    auth_page_url_pattern: Optional[str] = None  # matched against open tabs
    deep_link_url: Optional[str] = None
    auth_url_pattern: Optional[str] = None  # optional wait once the page is chosen


class SiteConfig(BaseModel):
    """Ordered tactic tables for every step of one site's login flow.

    Selector lists are in priority order: when several candidates are visible
    the earliest one wins.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    entry_url: str
    success_url_pattern: str
    precheck_authenticated: bool = False
    navigation_markers: List[str] = Field(default_factory=list)

    interstitial: Optional[InterstitialConfig] = None
    login_surface: Optional[LoginSurfaceConfig] = None

    organization_selectors: List[str] = Field(default_factory=list)
    username_selectors: List[str]
    username_submit_key: str = "Tab"
    password_selectors: List[str]

    otp_single_selectors: List[str] = Field(default_factory=lambda: list(OTP_SINGLE_SELECTORS))
    otp_digit_selector: str = OTP_DIGIT_SELECTOR
    otp_min_digits: int = OTP_MIN_DIGIT_FIELDS
    otp_fallback_submit_selectors: List[str] = Field(
        default_factory=lambda: list(GENERIC_SUBMIT_SELECTORS)
    )

    # Content that positively identifies rejected credentials
    rejection_markers: List[str] = Field(default_factory=list)

    requires_organization: bool = False

    verify_timeout_floor_ms: int = VERIFY_TIMEOUT_FLOOR_MS
    otp_verify_timeout_floor_ms: int = OTP_VERIFY_TIMEOUT_FLOOR_MS
    precheck_timeout_floor_ms: int = PRECHECK_TIMEOUT_FLOOR_MS
    optional_field_timeout_ms: int = OPTIONAL_FIELD_TIMEOUT_MS
    navigation_wait_timeout_ms: int = NAVIGATION_WAIT_TIMEOUT_MS

    @property
    def success_url_regex(self) -> Pattern[str]:
        return re.compile(self.success_url_pattern)

    def matches_success_url(self, url: str) -> bool:
        return bool(self.success_url_regex.search(url))

    def with_overrides(
        self, entry_url: Optional[str] = None, success_url_pattern: Optional[str] = None
    ) -> "SiteConfig":
        update = {}
        if entry_url:
            update["entry_url"] = entry_url
        if success_url_pattern:
            update["success_url_pattern"] = success_url_pattern
        return self.model_copy(update=update) if update else self
