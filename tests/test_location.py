import asyncio

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

import quickscout.selectors as selectors
from quickscout.errors import ElementTimeout, SessionClosed
from quickscout.extractors.schemas import Platform
from quickscout.location import LocationState, StepResult, run_location_steps
from quickscout.storefronts import blinkit, swiggy, zepto

from fakes import FakePage


def _recording_steps(results, calls):
    def make(name, result):
        async def step(page, location):
            calls.append(name)
            if isinstance(result, Exception):
                raise result
            return result

        return name, step

    return [make(f"step{index}", result) for index, result in enumerate(results)]


def test_all_steps_succeeding_sets_location_once() -> None:
    states = {Platform.BLINKIT: LocationState.UNSET}
    calls = []
    steps = _recording_steps([StepResult.success(), StepResult.success()], calls)

    first = asyncio.run(run_location_steps(states, Platform.BLINKIT, steps, None, "Mumbai"))
    second = asyncio.run(run_location_steps(states, Platform.BLINKIT, steps, None, "Mumbai"))

    assert first is True and second is True
    assert states[Platform.BLINKIT] is LocationState.SET
    assert calls == ["step0", "step1"]


def test_failed_step_stops_and_marks_failed() -> None:
    states = {}
    calls = []
    steps = _recording_steps(
        [StepResult.success(), StepResult.failure("no suggestions"), StepResult.success()],
        calls,
    )

    ok = asyncio.run(run_location_steps(states, Platform.ZEPTO, steps, None, "Pune"))

    assert ok is False
    assert states[Platform.ZEPTO] is LocationState.FAILED
    assert calls == ["step0", "step1"]


def test_step_exception_becomes_failure_and_is_retryable() -> None:
    states = {}
    calls = []
    failing = _recording_steps([PlaywrightTimeoutError("Timeout 5000ms exceeded")], calls)
    passing = _recording_steps([StepResult.success()], calls)

    assert asyncio.run(run_location_steps(states, Platform.SWIGGY, failing, None, "Delhi")) is False
    assert states[Platform.SWIGGY] is LocationState.FAILED
    assert asyncio.run(run_location_steps(states, Platform.SWIGGY, passing, None, "Delhi")) is True
    assert states[Platform.SWIGGY] is LocationState.SET


def test_already_bound_short_circuits_remaining_steps() -> None:
    states = {}
    calls = []
    steps = _recording_steps([StepResult.already_bound(), StepResult.failure("unreached")], calls)

    assert asyncio.run(run_location_steps(states, Platform.BLINKIT, steps, None, "Mumbai")) is True
    assert calls == ["step0"]
    assert states[Platform.BLINKIT] is LocationState.SET


def test_session_closed_propagates() -> None:
    states = {}
    steps = _recording_steps([SessionClosed(session_id="s1")], [])

    with pytest.raises(SessionClosed):
        asyncio.run(run_location_steps(states, Platform.BLINKIT, steps, None, "Mumbai"))


def _run_storefront(storefront, page, location="Mumbai"):
    states = {storefront.platform: LocationState.UNSET}
    ok = asyncio.run(
        run_location_steps(states, storefront.platform, storefront.location_steps(), page, location)
    )
    return ok, states[storefront.platform]


def test_blinkit_location_flow_types_and_picks_suggestion() -> None:
    page = FakePage(
        visible={
            selectors.BLINKIT_LOCATION_PROMPT,
            selectors.BLINKIT_LOCATION_INPUT,
            selectors.BLINKIT_LOCATION_SUGGESTION,
        },
    )

    ok, state = _run_storefront(blinkit.STOREFRONT, page)

    assert ok is True and state is LocationState.SET
    assert page.visited == ["https://blinkit.com/"]
    assert page.typed[selectors.BLINKIT_LOCATION_INPUT] == "Mumbai"
    assert page.clicks[-1] == selectors.BLINKIT_LOCATION_SUGGESTION


def test_zepto_location_flow_opens_header_first() -> None:
    page = FakePage(
        visible={selectors.ZEPTO_LOCATION_OPENER},
        reveals={
            selectors.ZEPTO_LOCATION_OPENER: (
                selectors.ZEPTO_LOCATION_INPUT,
                selectors.ZEPTO_LOCATION_SUGGESTION,
            ),
        },
    )

    ok, state = _run_storefront(zepto.STOREFRONT, page, "Bangalore")

    assert ok is True and state is LocationState.SET
    assert page.clicks[0] == selectors.ZEPTO_LOCATION_OPENER
    assert page.typed[selectors.ZEPTO_LOCATION_INPUT] == "Bangalore"


def test_swiggy_already_bound_skips_typing() -> None:
    page = FakePage(
        url="https://www.swiggy.com/instamart",
        visible={selectors.SWIGGY_LOCATION_BOUND},
    )

    ok, state = _run_storefront(swiggy.STOREFRONT, page)

    assert ok is True and state is LocationState.SET
    assert page.visited == []
    assert page.typed == {}


def test_missing_suggestions_leave_storefront_failed() -> None:
    page = FakePage(visible={selectors.BLINKIT_LOCATION_INPUT})

    ok, state = _run_storefront(blinkit.STOREFRONT, page)

    assert ok is False and state is LocationState.FAILED


def test_navigation_timeout_fails_location_step() -> None:
    page = FakePage(goto_error=PlaywrightTimeoutError("Timeout 30000ms exceeded"))

    ok, state = _run_storefront(zepto.STOREFRONT, page)

    assert ok is False and state is LocationState.FAILED


def test_location_steps_include_confirm_only_when_configured() -> None:
    blinkit_steps = [name for name, _ in blinkit.STOREFRONT.location_steps()]
    swiggy_steps = [name for name, _ in swiggy.STOREFRONT.location_steps()]

    assert blinkit_steps == ["navigate", "detect", "input", "suggestion"]
    assert swiggy_steps[-1] == "confirm"


def test_missing_suggestion_is_reported_as_element_timeout() -> None:
    page = FakePage(visible={selectors.BLINKIT_LOCATION_INPUT})
    steps = dict(blinkit.STOREFRONT.location_steps())

    with pytest.raises(ElementTimeout) as excinfo:
        asyncio.run(steps["suggestion"](page, "Mumbai"))

    assert "location suggestion" in str(excinfo.value)
    assert excinfo.value.platform == "blinkit"
