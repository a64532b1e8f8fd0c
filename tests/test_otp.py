"""Second-factor routing, digit entry and the single fallback click."""

from __future__ import annotations

import pytest

from loginflow.constants import OTP_DIGIT_SELECTOR
from loginflow.credentials import InMemoryCredentialProvider
from loginflow.exceptions import InteractionError
from loginflow.flow import LoginFlowController, locate_otp_inputs, submit_otp
from loginflow.models import LoginStatus, OtpLayout

from tests.conftest import (
    CHALLENGE_URL,
    EXAMPLE_SITE,
    HOME_URL,
    IDENTITY,
    login_page,
    make_config,
    make_context,
    otp_bundle,
)
from tests.fakes import FakePage, FakeSessionProvisioner

CODE_FIELD = 'input[name="code"]'
PIN_FIELD = 'input[name="pin"][maxlength="6"]'
SUBMIT_BUTTON = 'button[type="submit"]'


def challenge_page(**kwargs) -> FakePage:
    return FakePage(url=CHALLENGE_URL, **kwargs)


# -- locate_otp_inputs ---------------------------------------------------------


@pytest.mark.asyncio
async def test_single_field_found() -> None:
    page = challenge_page(visible=[CODE_FIELD])

    inputs = await locate_otp_inputs(page, EXAMPLE_SITE)

    assert inputs.layout == OtpLayout.SINGLE
    assert inputs.selector == CODE_FIELD


@pytest.mark.asyncio
async def test_single_field_priority_over_digit_boxes() -> None:
    page = challenge_page(visible=[CODE_FIELD, PIN_FIELD], counts={OTP_DIGIT_SELECTOR: 6})
    # The lower-priority field answers first; declared order still wins
    page.visibility_delays[PIN_FIELD] = 0.01

    inputs = await locate_otp_inputs(page, EXAMPLE_SITE)

    assert inputs.layout == OtpLayout.SINGLE
    assert inputs.selector == PIN_FIELD


@pytest.mark.asyncio
async def test_six_digit_boxes_found() -> None:
    page = challenge_page(counts={OTP_DIGIT_SELECTOR: 6})

    inputs = await locate_otp_inputs(page, EXAMPLE_SITE)

    assert inputs.layout == OtpLayout.MULTI
    assert inputs.count == 6


@pytest.mark.asyncio
async def test_too_few_digit_boxes_not_found() -> None:
    page = challenge_page(counts={OTP_DIGIT_SELECTOR: 4})

    assert await locate_otp_inputs(page, EXAMPLE_SITE) is None


# -- submit_otp ----------------------------------------------------------------


@pytest.mark.asyncio
async def test_single_field_cleared_filled_and_submitted_once() -> None:
    page = challenge_page(visible=[CODE_FIELD])
    page.on_press[(CODE_FIELD, "Enter")] = lambda p: p.go(HOME_URL)
    ctx = make_context(page, otp_code="654321")

    fallback_used = await submit_otp(ctx, "654321")

    assert fallback_used is False
    assert page.fills == [(CODE_FIELD, "", 0), (CODE_FIELD, "654321", 0)]
    assert page.presses == [(CODE_FIELD, "Enter", 0)]
    assert ctx.ledger.otp_submits == 1
    assert page.clicks == []


@pytest.mark.asyncio
async def test_digit_boxes_filled_left_to_right_and_submitted_on_last() -> None:
    page = challenge_page(counts={OTP_DIGIT_SELECTOR: 6})
    page.on_press[(OTP_DIGIT_SELECTOR, "Enter")] = lambda p: p.go(HOME_URL)
    ctx = make_context(page, otp_code="123456")

    await submit_otp(ctx, "123456")

    assert page.typed == [(OTP_DIGIT_SELECTOR, digit, i) for i, digit in enumerate("123456")]
    assert page.fills == [(OTP_DIGIT_SELECTOR, "", i) for i in range(6)]
    assert page.presses == [(OTP_DIGIT_SELECTOR, "Enter", 5)]


@pytest.mark.asyncio
async def test_digit_entry_stops_at_shorter_code() -> None:
    page = challenge_page(counts={OTP_DIGIT_SELECTOR: 8})
    page.on_press[(OTP_DIGIT_SELECTOR, "Enter")] = lambda p: p.go(HOME_URL)
    ctx = make_context(page, otp_code="123456")

    await submit_otp(ctx, "123456")

    assert len(page.typed) == 6
    assert page.presses == [(OTP_DIGIT_SELECTOR, "Enter", 5)]


@pytest.mark.asyncio
async def test_fallback_click_targets_a_different_control_once() -> None:
    page = challenge_page(visible=[CODE_FIELD, SUBMIT_BUTTON])
    page.on_click[SUBMIT_BUTTON] = lambda p: p.go(HOME_URL)
    ctx = make_context(page, otp_code="123456")

    fallback_used = await submit_otp(ctx, "123456")

    assert fallback_used is True
    assert page.clicks == [SUBMIT_BUTTON]
    assert page.presses == [(CODE_FIELD, "Enter", 0)]
    assert ctx.ledger.otp_submits == 1
    assert ctx.ledger.fallback_clicks == 1


@pytest.mark.asyncio
async def test_no_fallback_click_without_visible_control() -> None:
    page = challenge_page(visible=[CODE_FIELD])
    ctx = make_context(page, otp_code="123456")

    assert await submit_otp(ctx, "123456") is False
    assert ctx.ledger.fallback_clicks == 0


@pytest.mark.asyncio
async def test_missing_inputs_raise() -> None:
    ctx = make_context(challenge_page(), otp_code="123456")

    with pytest.raises(InteractionError, match="OTP inputs not found"):
        await submit_otp(ctx, "123456")
    assert ctx.ledger.otp_submits == 0


# -- through the controller ------------------------------------------------------


def otp_login_page(**challenge) -> FakePage:
    def show_challenge(p: FakePage) -> None:
        p.go(CHALLENGE_URL)
        p.show(*challenge.get("visible", []))
        p.counts.update(challenge.get("counts", {}))

    return login_page(after_password=show_challenge)


@pytest.mark.asyncio
async def test_controller_submits_fresh_code() -> None:
    page = otp_login_page(visible=[CODE_FIELD])
    page.on_press[(CODE_FIELD, "Enter")] = lambda p: p.go(HOME_URL)
    provider = InMemoryCredentialProvider({IDENTITY: otp_bundle("111111")})
    provisioner = FakeSessionProvisioner(page)
    controller = LoginFlowController(provider, provisioner, config_loader=make_config)

    original_fetch = provider.fetch_credentials

    async def rotating_fetch(identity_ref: str):
        bundle = await original_fetch(identity_ref)
        if provider.fetch_count > 1:
            provider.store(identity_ref, otp_bundle("222222"))
            bundle = await original_fetch(identity_ref)
        return bundle

    provider.fetch_credentials = rotating_fetch

    outcome = await controller.run_login(IDENTITY, EXAMPLE_SITE)

    assert outcome.status == LoginStatus.SUCCESS
    assert (CODE_FIELD, "222222", 0) in page.fills
    assert (CODE_FIELD, "111111", 0) not in page.fills


@pytest.mark.asyncio
async def test_controller_at_most_one_submit_each_even_with_fallback() -> None:
    page = otp_login_page(visible=[CODE_FIELD, SUBMIT_BUTTON])
    provider = InMemoryCredentialProvider({IDENTITY: otp_bundle()})
    provisioner = FakeSessionProvisioner(page)
    controller = LoginFlowController(provider, provisioner, config_loader=make_config)

    outcome = await controller.run_login(IDENTITY, EXAMPLE_SITE)

    assert outcome.status == LoginStatus.ATTEMPT_FAILED
    assert page.presses.count(("#password", "Enter", 0)) == 1
    assert page.presses.count((CODE_FIELD, "Enter", 0)) == 1
    assert page.clicks == [SUBMIT_BUTTON]
    assert provisioner.session.close_count == 1


@pytest.mark.asyncio
async def test_controller_error_after_otp_and_fallback_is_not_rejection() -> None:
    page = otp_login_page(visible=[CODE_FIELD, SUBMIT_BUTTON])
    page.on_press[(CODE_FIELD, "Enter")] = lambda p: p.show("#login-error")
    provider = InMemoryCredentialProvider({IDENTITY: otp_bundle()})
    controller = LoginFlowController(provider, FakeSessionProvisioner(page), config_loader=make_config)

    outcome = await controller.run_login(IDENTITY, EXAMPLE_SITE)

    assert page.presses == [("#username", "Tab", 0), ("#password", "Enter", 0), (CODE_FIELD, "Enter", 0)]
    assert page.clicks == [SUBMIT_BUTTON]
    assert outcome.status == LoginStatus.ATTEMPT_FAILED
    assert outcome.message.startswith("Login flow completed but Example URL not confirmed")


@pytest.mark.asyncio
async def test_controller_malformed_authenticator_value_fails_attempt() -> None:
    page = otp_login_page(visible=[CODE_FIELD])
    provider = InMemoryCredentialProvider({IDENTITY: otp_bundle("123 456 789 01")})
    provisioner = FakeSessionProvisioner(page)
    controller = LoginFlowController(provider, provisioner, config_loader=make_config)

    outcome = await controller.run_login(IDENTITY, EXAMPLE_SITE)

    assert outcome.status == LoginStatus.ATTEMPT_FAILED
    assert "Authenticator record" in outcome.message
    assert not any(selector == CODE_FIELD for selector, _, _ in page.fills)
    assert provisioner.session.close_count == 1


@pytest.mark.asyncio
async def test_controller_multi_digit_success() -> None:
    page = otp_login_page(counts={OTP_DIGIT_SELECTOR: 6})
    page.on_press[(OTP_DIGIT_SELECTOR, "Enter")] = lambda p: p.go(HOME_URL)
    provider = InMemoryCredentialProvider({IDENTITY: otp_bundle("987654")})
    controller = LoginFlowController(provider, FakeSessionProvisioner(page), config_loader=make_config)

    outcome = await controller.run_login(IDENTITY, EXAMPLE_SITE)

    assert outcome.succeeded
    assert "".join(text for _, text, _ in page.typed) == "987654"
