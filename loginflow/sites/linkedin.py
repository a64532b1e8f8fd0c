"""LinkedIn: username/password with an optional authenticator code."""

from loginflow.constants import COMMON_REJECTION_MARKERS
from loginflow.sites.base import SiteConfig

LINKEDIN_LOGIN_URL = "https://www.linkedin.com/uas/login"

LINKEDIN = SiteConfig(
    id="linkedin",
    name="LinkedIn",
    entry_url=LINKEDIN_LOGIN_URL,
    success_url_pattern=r"linkedin\.com/feed/",
    precheck_authenticated=True,
    verify_timeout_floor_ms=10000,
    navigation_markers=[
        'input#username[name="session_key"]',
    ],
    username_selectors=[
        'input#username[name="session_key"][type="email"]',
        'input[name="session_key"]',
        'input[autocomplete="username"]',
    ],
    username_submit_key="Tab",
    password_selectors=[
        'input#password[name="session_password"][type="password"]',
        'input[name="session_password"]',
        'input[type="password"]',
    ],
    rejection_markers=[
        "#error-for-password",
        "#error-for-username",
        *COMMON_REJECTION_MARKERS,
    ],
)
