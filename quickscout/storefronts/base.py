"""Storefront descriptions plus the shared location and search procedures."""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any
from urllib.parse import quote, urlparse

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_random_exponential

from quickscout.errors import NavigationTimeout
from quickscout.extractors.dom_utils import (
    body_contains,
    first_visible,
    human_wait,
    is_present,
    require_visible,
    settle,
)
from quickscout.extractors.product_extractor import ExtractionStrategy, extract
from quickscout.extractors.schemas import Platform, ProductRecord
from quickscout.location import LocationStep, StepResult
from quickscout.logging_config import get_logger
from quickscout.playwright_env import navigation_timeout_ms, typing_delay_ms, ui_wait_timeout_ms

LOGGER = get_logger(__name__)

# Short probe used before falling back to the location opener.
INPUT_PROBE_MS = 1500


@dataclass(frozen=True)
class LocationSelectors:
    """Selectors that drive one storefront's location-selection UI."""

    bound: str
    prompt: str
    prompt_text: tuple[str, ...]
    opener: str
    input: str
    suggestion: str
    confirm: str = ""


@dataclass(frozen=True)
class Storefront:
    """Static description of one quick-commerce storefront."""

    platform: Platform
    home_url: str
    search_url_template: str
    location: LocationSelectors
    strategies: tuple[ExtractionStrategy, ...]
    # Open the location header before looking for the address input.
    open_first: bool = False

    @property
    def key(self) -> str:
        return self.platform.value

    @property
    def host(self) -> str:
        netloc = urlparse(self.home_url).netloc
        return netloc[4:] if netloc.startswith("www.") else netloc

    def search_url(self, query: str) -> str:
        return self.search_url_template.format(query=quote(query.strip()))

    def on_origin(self, url: str | None) -> bool:
        return bool(url) and self.host in urlparse(url).netloc

    def location_steps(self) -> list[tuple[str, LocationStep]]:
        steps: list[tuple[str, LocationStep]] = [
            ("navigate", partial(navigate_home, self)),
            ("detect", partial(detect_prompt, self)),
            ("input", partial(enter_location, self)),
            ("suggestion", partial(pick_suggestion, self)),
        ]
        if self.location.confirm:
            steps.append(("confirm", partial(confirm_location, self)))
        return steps


async def navigate_home(storefront: Storefront, page: Any, location: str) -> StepResult:
    if storefront.on_origin(page.url):
        return StepResult.success("already on origin")
    try:
        await page.goto(
            storefront.home_url,
            wait_until="domcontentloaded",
            timeout=navigation_timeout_ms(),
        )
    except PlaywrightTimeoutError:
        return StepResult.failure(f"timed out loading {storefront.home_url}")
    await human_wait(900, 1500)
    return StepResult.success(storefront.home_url)


async def detect_prompt(storefront: Storefront, page: Any, location: str) -> StepResult:
    selectors = storefront.location
    prompt_showing = await is_present(page, selectors.prompt) or await body_contains(
        page, selectors.prompt_text
    )
    if not prompt_showing and await is_present(page, selectors.bound):
        return StepResult.already_bound()
    return StepResult.success("prompt showing" if prompt_showing else "no prompt detected")


async def enter_location(storefront: Storefront, page: Any, location: str) -> StepResult:
    selectors = storefront.location
    wait_ms = ui_wait_timeout_ms()

    field = None
    if not storefront.open_first:
        field = await first_visible(page, selectors.input, INPUT_PROBE_MS)
    if field is None:
        opener = await first_visible(page, selectors.opener, wait_ms)
        if opener is not None:
            await opener.click()
            await human_wait(400, 900)
        field = await require_visible(
            page, selectors.input, wait_ms, what="location input", platform=storefront.key
        )

    await field.click()
    await field.fill("")
    await field.press_sequentially(location, delay=typing_delay_ms())
    return StepResult.success(f"typed {len(location)} characters")


async def pick_suggestion(storefront: Storefront, page: Any, location: str) -> StepResult:
    suggestion = await require_visible(
        page,
        storefront.location.suggestion,
        ui_wait_timeout_ms(),
        what="location suggestion",
        platform=storefront.key,
    )
    await suggestion.click()
    await settle()
    return StepResult.success("first suggestion selected")


async def confirm_location(storefront: Storefront, page: Any, location: str) -> StepResult:
    button = await first_visible(page, storefront.location.confirm, ui_wait_timeout_ms())
    if button is None:
        return StepResult.success("confirmation not requested")
    await button.click()
    await settle()
    return StepResult.success("confirmed")


@retry(
    stop=stop_after_attempt(2),
    wait=wait_random_exponential(multiplier=0.5, max=4),
    retry=retry_if_exception_type(NavigationTimeout),
    reraise=True,
)
async def open_search_page(page: Any, storefront: Storefront, query: str) -> str:
    url = storefront.search_url(query)
    try:
        await page.goto(url, wait_until="domcontentloaded", timeout=navigation_timeout_ms())
    except PlaywrightTimeoutError as exc:
        raise NavigationTimeout(platform=storefront.key, url=url) from exc
    return url


async def _wait_for_cards(page: Any, storefront: Storefront) -> bool:
    combined = ", ".join(strategy.card_selector for strategy in storefront.strategies)
    if not combined:
        return False
    try:
        await page.wait_for_selector(combined, timeout=ui_wait_timeout_ms())
        return True
    except PlaywrightTimeoutError:
        return False


async def search_storefront(page: Any, storefront: Storefront, query: str) -> list[ProductRecord]:
    """Load the storefront's search results for *query* and extract product records."""

    url = await open_search_page(page, storefront, query)
    try:
        await page.wait_for_load_state("networkidle", timeout=ui_wait_timeout_ms())
    except PlaywrightError:
        LOGGER.debug("Network did not go idle", extra={"platform": storefront.key})
    if not await _wait_for_cards(page, storefront):
        LOGGER.info(
            "No known product card rendered for %s; heuristics will run",
            url,
            extra={"platform": storefront.key},
        )
    await settle()
    return await extract(page, storefront.platform, storefront.strategies)
