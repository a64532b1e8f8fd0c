"""Step tactics, fallback order and the submit ledger."""

from __future__ import annotations

from typing import List

import pytest
from playwright.async_api import Error as PlaywrightError

from loginflow.credentials import InMemoryCredentialProvider
from loginflow.exceptions import InteractionError, SubmitLimitExceeded
from loginflow.flow import (
    EnterOrganizationStep,
    EnterUsernameStep,
    LoginFlowController,
    LoginStep,
    OpenLoginSurfaceStep,
    SubmitKind,
    SubmitLedger,
)
from loginflow.flow.steps import AttemptContext, DismissInterstitialStep, NavigateStep
from loginflow.models import LoginStatus, StepResult
from loginflow.sites import COMPLY_ADVANTAGE_MESH
from loginflow.sites.comply_advantage import COMPLY_ADVANTAGE_HOME_URL, MESH_URL

from tests.conftest import ENTRY_URL, EXAMPLE_SITE, IDENTITY, make_config, make_context
from tests.fakes import FakePage, FakeSessionProvisioner

AUTH0_URL = "https://login.complyadvantage.eu.auth0.com/u/login"
MESH_HOME = "https://mesh.complyadvantage.com/cases"
ACCEPT_COOKIES = "#notice button[title='Accept all']"


# -- submit ledger -------------------------------------------------------------


def test_ledger_allows_one_submit_of_each_kind() -> None:
    ledger = SubmitLedger()

    ledger.record_submit(SubmitKind.PRIMARY)
    ledger.record_submit(SubmitKind.OTP)
    ledger.record_fallback_click()

    assert ledger.primary_submitted
    assert (ledger.primary_submits, ledger.otp_submits, ledger.fallback_clicks) == (1, 1, 1)
    assert ledger.total_submits == 3


@pytest.mark.parametrize("kind", [SubmitKind.PRIMARY, SubmitKind.OTP])
def test_ledger_refuses_second_submit(kind: SubmitKind) -> None:
    ledger = SubmitLedger()
    ledger.record_submit(kind)

    with pytest.raises(SubmitLimitExceeded):
        ledger.record_submit(kind)


def test_ledger_refuses_second_fallback_click() -> None:
    ledger = SubmitLedger()
    ledger.record_fallback_click()

    with pytest.raises(SubmitLimitExceeded):
        ledger.record_fallback_click()


# -- step runner -----------------------------------------------------------------


class ScriptedStep(LoginStep):
    name = "scripted"

    def __init__(self, outcomes: List, required: bool = True):
        self.outcomes = outcomes
        self.required = required
        self.calls: List[str] = []

    def tactics(self, ctx: AttemptContext):
        return [(f"t{i}", self._tactic(i, outcome)) for i, outcome in enumerate(self.outcomes)]

    def _tactic(self, index: int, outcome):
        async def run(ctx: AttemptContext) -> StepResult:
            self.calls.append(f"t{index}")
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        return run


@pytest.mark.asyncio
async def test_first_successful_tactic_wins() -> None:
    step = ScriptedStep([StepResult.failed("no"), StepResult.ok("yes"), StepResult.ok("later")])

    result = await step.run(make_context(FakePage()))

    assert result.detail == "yes"
    assert step.calls == ["t0", "t1"]


@pytest.mark.asyncio
async def test_tactic_errors_fall_through_to_next_tactic() -> None:
    step = ScriptedStep([PlaywrightError("detached"), StepResult.ok("recovered")])

    result = await step.run(make_context(FakePage()))

    assert result.succeeded


@pytest.mark.asyncio
async def test_exhausted_required_step_raises_with_details() -> None:
    step = ScriptedStep([StepResult.failed("first"), InteractionError("second")])

    with pytest.raises(InteractionError, match="first; second"):
        await step.run(make_context(FakePage()))


@pytest.mark.asyncio
async def test_exhausted_optional_step_is_skipped() -> None:
    step = ScriptedStep([StepResult.failed("absent")], required=False)

    result = await step.run(make_context(FakePage()))

    assert not result.attempted
    assert result.detail == "absent"


@pytest.mark.asyncio
async def test_submit_limit_is_never_swallowed() -> None:
    step = ScriptedStep([SubmitLimitExceeded("twice"), StepResult.ok("unreachable")], required=False)

    with pytest.raises(SubmitLimitExceeded):
        await step.run(make_context(FakePage()))
    assert step.calls == ["t0"]


@pytest.mark.asyncio
async def test_unexpected_errors_propagate() -> None:
    step = ScriptedStep([RuntimeError("crash")])

    with pytest.raises(RuntimeError):
        await step.run(make_context(FakePage()))


# -- individual steps -------------------------------------------------------------


@pytest.mark.asyncio
async def test_username_uses_first_visible_selector_by_priority() -> None:
    page = FakePage(visible=["#username", "input[name='email']"])
    page.visibility_delays["#username"] = 0.01

    for _ in range(3):
        page.fills.clear()
        await EnterUsernameStep().run(make_context(page))
        assert page.fills == [("#username", "u", 0)]


@pytest.mark.asyncio
async def test_username_falls_back_to_lower_priority_selector() -> None:
    page = FakePage(visible=["input[name='email']"])

    await EnterUsernameStep().run(make_context(page))

    assert page.fills == [("input[name='email']", "u", 0)]
    assert page.presses == [("input[name='email']", "Tab", 0)]


@pytest.mark.asyncio
async def test_reused_session_already_on_home_survives_navigation_error() -> None:
    page = FakePage(url="https://app.example.com/home")
    page.navigate_error = PlaywrightError("net::ERR_ABORTED")
    ctx = AttemptContext(
        page, EXAMPLE_SITE, make_config(session_id="s-1"), make_context(page).credentials
    )

    result = await NavigateStep().run(ctx)

    assert result.succeeded
    assert page.navigations == [ENTRY_URL]


@pytest.mark.asyncio
async def test_organization_skipped_when_not_prompted() -> None:
    site = COMPLY_ADVANTAGE_MESH.model_copy(update={"optional_field_timeout_ms": 20})
    page = FakePage(url=AUTH0_URL, visible=["#username"])

    result = await EnterOrganizationStep().run(make_context(page, site, organization="acme"))

    assert not result.attempted
    assert page.fills == []


@pytest.mark.asyncio
async def test_organization_not_applicable_without_value() -> None:
    page = FakePage(url=AUTH0_URL, visible=["#organizationName"])

    result = await EnterOrganizationStep().run(make_context(page, COMPLY_ADVANTAGE_MESH))

    assert result.detail == "enter-organization not applicable"
    assert page.fills == []


@pytest.mark.asyncio
async def test_interstitial_dismissed_when_present() -> None:
    page = FakePage(visible=["#notice", ACCEPT_COOKIES])

    result = await DismissInterstitialStep().run(make_context(page, COMPLY_ADVANTAGE_MESH))

    assert result.succeeded
    assert page.clicks == [ACCEPT_COOKIES]


def mesh_entry_page() -> FakePage:
    page = FakePage()
    page.on_navigate[COMPLY_ADVANTAGE_HOME_URL] = lambda p: p.show("#login-nav-button")
    page.on_click["#login-nav-button"] = lambda p: p.show("#mesh-li-modal-button")
    return page


def auth_page(url: str = AUTH0_URL) -> FakePage:
    page = FakePage(url=url, visible=["#organizationName", "#username", "#password"])
    page.on_press[("#password", "Enter")] = lambda p: p.go(MESH_HOME)
    return page


@pytest.mark.asyncio
async def test_login_surface_opens_new_tab() -> None:
    entry = mesh_entry_page()
    entry.show("#login-nav-button")
    tab = auth_page()
    entry.on_click["#mesh-li-modal-button"] = lambda p: setattr(p, "next_page", tab)
    ctx = make_context(entry, COMPLY_ADVANTAGE_MESH)

    await OpenLoginSurfaceStep().run(ctx)

    assert ctx.page is tab
    assert entry.clicks == ["#login-nav-button", "#mesh-li-modal-button"]
    assert entry.scrolls == 1


@pytest.mark.asyncio
async def test_login_surface_js_click_fallback() -> None:
    entry = mesh_entry_page()
    entry.show("#login-nav-button")
    entry.click_errors["#login-nav-button"] = PlaywrightError("element is not visible")
    existing = auth_page()
    entry.open_page(existing)
    ctx = make_context(entry, COMPLY_ADVANTAGE_MESH)

    await OpenLoginSurfaceStep().run(ctx)

    assert entry.js_clicks == ["#login-nav-button"]
    assert ctx.page is existing


@pytest.mark.asyncio
async def test_login_surface_deep_link_when_trigger_missing() -> None:
    entry = FakePage(url=COMPLY_ADVANTAGE_HOME_URL)
    entry.on_navigate[MESH_URL] = lambda p: p.go(AUTH0_URL)
    ctx = make_context(entry, COMPLY_ADVANTAGE_MESH)

    result = await OpenLoginSurfaceStep().run(ctx)

    assert result.detail == f"Navigated directly to {MESH_URL}"
    assert entry.navigations == [MESH_URL]
    assert ctx.page is entry


@pytest.mark.asyncio
async def test_login_surface_deep_link_error_continues_on_entry_page() -> None:
    entry = FakePage(url=COMPLY_ADVANTAGE_HOME_URL, visible=["#username", "#password"])
    entry.navigate_error = PlaywrightError("Timeout 50ms exceeded")
    ctx = make_context(entry, COMPLY_ADVANTAGE_MESH)

    result = await OpenLoginSurfaceStep().run(ctx)
    username = await EnterUsernameStep().run(ctx)

    assert result.succeeded
    assert "best-guess page" in result.detail
    assert ctx.page is entry
    assert username.succeeded
    assert ("#username", "u", 0) in entry.fills


@pytest.mark.asyncio
async def test_login_surface_deep_link_error_without_form_fails_at_username() -> None:
    entry = FakePage(url=COMPLY_ADVANTAGE_HOME_URL)
    entry.navigate_error = PlaywrightError("Timeout 50ms exceeded")
    ctx = make_context(entry, COMPLY_ADVANTAGE_MESH)

    await OpenLoginSurfaceStep().run(ctx)

    with pytest.raises(InteractionError, match="Username field not found"):
        await EnterUsernameStep().run(ctx)


@pytest.mark.asyncio
async def test_login_surface_scans_open_pages_before_deep_link() -> None:
    entry = FakePage(url=COMPLY_ADVANTAGE_HOME_URL)
    unrelated = FakePage(url="https://example.org/")
    entry.open_page(unrelated)
    ctx = make_context(entry, COMPLY_ADVANTAGE_MESH)
    tab = auth_page()
    entry.open_page(tab)

    step = OpenLoginSurfaceStep()
    result = await step._scan_open_pages(ctx)

    assert result.succeeded
    assert ctx.page is tab
    assert entry.navigations == []


# -- multi-surface flow end to end --------------------------------------------------


def mesh_bundle(organization: str = "acme") -> dict:
    records = [{"type": "username_password", "username": "analyst@acme.com", "password": "pw"}]
    if organization:
        records.append(
            {"type": "custom", "fields": [{"name": "Organization Name", "value": organization}]}
        )
    return {"display_name": "Mesh analyst", "records": records}


@pytest.mark.asyncio
async def test_mesh_login_through_cookie_banner_modal_and_new_tab() -> None:
    entry = mesh_entry_page()
    entry.on_navigate[COMPLY_ADVANTAGE_HOME_URL] = lambda p: p.show(
        "#notice", ACCEPT_COOKIES, "#login-nav-button"
    )
    entry.on_click[ACCEPT_COOKIES] = lambda p: p.hide("#notice", ACCEPT_COOKIES)
    tab = auth_page()
    entry.on_click["#mesh-li-modal-button"] = lambda p: setattr(p, "next_page", tab)

    provider = InMemoryCredentialProvider({IDENTITY: mesh_bundle()})
    provisioner = FakeSessionProvisioner(entry)
    controller = LoginFlowController(provider, provisioner, config_loader=make_config)

    outcome = await controller.run_login(IDENTITY, COMPLY_ADVANTAGE_MESH)

    assert outcome.status == LoginStatus.SUCCESS
    assert outcome.message == "Logged in to ComplyAdvantage Mesh as analyst@acme.com."
    assert tab.fills == [
        ("#organizationName", "acme", 0),
        ("#username", "analyst@acme.com", 0),
        ("#password", "pw", 0),
    ]
    assert tab.presses == [
        ("#organizationName", "Enter", 0),
        ("#username", "Enter", 0),
        ("#password", "Enter", 0),
    ]
    assert entry.fills == []
    assert provisioner.session.close_count == 1


@pytest.mark.asyncio
async def test_mesh_login_requires_organization() -> None:
    provider = InMemoryCredentialProvider({IDENTITY: mesh_bundle(organization="")})
    provisioner = FakeSessionProvisioner(mesh_entry_page())
    controller = LoginFlowController(provider, provisioner, config_loader=make_config)

    outcome = await controller.run_login(IDENTITY, COMPLY_ADVANTAGE_MESH)

    assert outcome.status == LoginStatus.ATTEMPT_FAILED
    assert outcome.message == "Missing required credentials: organization"
    assert provisioner.sessions == []


@pytest.mark.asyncio
async def test_mesh_url_not_confirmed() -> None:
    entry = mesh_entry_page()
    entry.on_navigate[MESH_URL] = lambda p: (
        p.go(AUTH0_URL),
        p.show("#organizationName", "#username", "#password"),
    )
    provider = InMemoryCredentialProvider({IDENTITY: mesh_bundle()})
    provisioner = FakeSessionProvisioner(entry)
    site = COMPLY_ADVANTAGE_MESH.model_copy(update={"interstitial": None})
    controller = LoginFlowController(provider, provisioner, config_loader=make_config)

    outcome = await controller.run_login(IDENTITY, site)

    assert outcome.status == LoginStatus.ATTEMPT_FAILED
    assert outcome.message == (
        f"Login flow completed but ComplyAdvantage Mesh URL not confirmed. Current URL: {AUTH0_URL}"
    )
