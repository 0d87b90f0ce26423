"""Helper utilities for safely interacting with storefront DOM content."""

from __future__ import annotations

import asyncio
import random
from typing import Any

from playwright.async_api import Error as PlaywrightError

from quickscout.errors import ElementTimeout
from quickscout.playwright_env import apply_wait_policy, settle_delay_bounds


async def human_wait(
    min_ms: int = 350,
    max_ms: int = 900,
    *,
    obey_policy: bool = True,
) -> None:
    """Sleep for a random, human-like interval between the provided bounds."""

    if min_ms < 0:
        min_ms = 0
    if max_ms < min_ms:
        max_ms = min_ms

    if obey_policy:
        min_ms, max_ms = apply_wait_policy(min_ms, max_ms)

    delay = random.uniform(min_ms / 1000, max_ms / 1000)
    await asyncio.sleep(delay)


async def settle() -> None:
    """Fixed short pause so client-side rendering can complete."""

    min_ms, max_ms = settle_delay_bounds()
    await human_wait(min_ms, max_ms)


async def first_visible(root: Any, selector: str | None, timeout: int) -> Any | None:
    """Return the first match of *selector* once visible, or None after *timeout* ms."""

    if not selector:
        return None
    try:
        locator = root.locator(selector).first
        await locator.wait_for(state="visible", timeout=timeout)
    except PlaywrightError:
        return None
    return locator


async def require_visible(
    root: Any,
    selector: str,
    timeout: int,
    *,
    what: str,
    platform: str | None = None,
) -> Any:
    """Like first_visible, but raise ElementTimeout naming *what* was missing."""

    locator = await first_visible(root, selector, timeout)
    if locator is None:
        raise ElementTimeout(f"{what} not visible after {timeout}ms", platform=platform)
    return locator


async def is_present(root: Any, selector: str | None) -> bool:
    """Return True when *selector* currently matches at least one visible node."""

    if not selector:
        return False
    try:
        return await root.locator(selector).first.is_visible()
    except PlaywrightError:
        return False


async def body_contains(page: Any, phrases: tuple[str, ...]) -> bool:
    """Return True when the rendered body text contains any of *phrases*."""

    if not phrases:
        return False
    try:
        text = await page.evaluate("() => document.body ? document.body.innerText : ''")
    except PlaywrightError:
        return False
    text = text or ""
    return any(phrase in text for phrase in phrases)
