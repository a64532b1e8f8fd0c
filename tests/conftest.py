"""Shared fixtures: an example site, a scripted login page and fake collaborators."""

from __future__ import annotations

import pytest

from loginflow.config import LoginConfig
from loginflow.credentials import InMemoryCredentialProvider
from loginflow.flow import AttemptContext, LoginFlowController
from loginflow.models import ResolvedCredentials
from loginflow.observability import RecordingStepObserver
from loginflow.sites import SiteConfig

from tests.fakes import FakePage, FakeSessionProvisioner

IDENTITY = "identity-1"
ENTRY_URL = "https://app.example.com/login"
HOME_URL = "https://app.example.com/home"
CHALLENGE_URL = "https://app.example.com/checkpoint"

EXAMPLE_SITE = SiteConfig(
    id="example",
    name="Example",
    entry_url=ENTRY_URL,
    success_url_pattern=r"app\.example\.com/home",
    navigation_markers=["#login-form"],
    username_selectors=["#username", "input[name='email']"],
    password_selectors=["#password"],
    rejection_markers=["#login-error"],
)

LOGIN_FORM = ["#login-form", "#username", "#password"]


def password_bundle(username: str = "u", password: str = "p") -> dict:
    return {
        "display_name": "Test identity",
        "records": [{"type": "username_password", "username": username, "password": password}],
    }


def otp_bundle(otp: str = "123456", username: str = "u", password: str = "p") -> dict:
    bundle = password_bundle(username, password)
    bundle["records"].append({"type": "authenticator", "otp": otp})
    return bundle


def make_config(**overrides) -> LoginConfig:
    values = {"identity_id": IDENTITY, "timeout_ms": 50}
    values.update(overrides)
    return LoginConfig(**values)


def login_page(after_password=None) -> FakePage:
    """Entry page showing the login form; Enter on the password runs ``after_password``."""
    page = FakePage()
    page.on_navigate[ENTRY_URL] = lambda p: p.show(*LOGIN_FORM)
    page.on_press[("#password", "Enter")] = after_password or (lambda p: p.go(HOME_URL))
    return page


def make_context(page: FakePage, site: SiteConfig = EXAMPLE_SITE, **credentials) -> AttemptContext:
    values = {"username": "u", "password": "p"}
    values.update(credentials)
    return AttemptContext(
        page, site, make_config(), ResolvedCredentials(**values), RecordingStepObserver()
    )


@pytest.fixture()
def observer() -> RecordingStepObserver:
    return RecordingStepObserver()


@pytest.fixture()
def provider() -> InMemoryCredentialProvider:
    return InMemoryCredentialProvider({IDENTITY: password_bundle()})


@pytest.fixture()
def page() -> FakePage:
    return login_page()


@pytest.fixture()
def provisioner(page: FakePage) -> FakeSessionProvisioner:
    return FakeSessionProvisioner(page)


@pytest.fixture()
def controller(
    provider: InMemoryCredentialProvider,
    provisioner: FakeSessionProvisioner,
    observer: RecordingStepObserver,
) -> LoginFlowController:
    return LoginFlowController(provider, provisioner, observer, config_loader=make_config)
