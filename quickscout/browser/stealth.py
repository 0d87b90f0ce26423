"""Stealth page factory: isolated, fingerprint-hardened storefront tabs."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any

from playwright.async_api import Error as PlaywrightError

from quickscout.errors import ResourceExhausted
from quickscout.logging_config import get_logger
from quickscout.playwright_env import build_stealth, context_kwargs

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class DesktopIdentity:
    """A user agent together with the navigator fields that must agree with it."""

    user_agent: str
    platform: str
    vendor: str


IDENTITIES: tuple[DesktopIdentity, ...] = (
    DesktopIdentity(
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/129.0.0.0 Safari/537.36",
        "Win32",
        "Google Inc.",
    ),
    DesktopIdentity(
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/128.0.0.0 Safari/537.36 Edg/128.0.0.0",
        "Win32",
        "Google Inc.",
    ),
    DesktopIdentity(
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/129.0.0.0 Safari/537.36",
        "MacIntel",
        "Google Inc.",
    ),
    DesktopIdentity(
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/128.0.0.0 Safari/537.36",
        "Linux x86_64",
        "Google Inc.",
    ),
)

WEBDRIVER_SCRIPT = """
(() => {
    Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
})();
"""

PERMISSIONS_SCRIPT = """
(() => {
    const originalQuery = window.navigator.permissions.query.bind(window.navigator.permissions);
    window.navigator.permissions.query = (parameters) => (
        parameters && parameters.name === 'notifications'
            ? Promise.resolve({ state: Notification.permission })
            : originalQuery(parameters)
    );
})();
"""


def pick_identity(rng: random.Random | None = None) -> DesktopIdentity:
    return (rng or random).choice(IDENTITIES)


async def create_stealth_page(browser: Any, identity: DesktopIdentity | None = None) -> Any:
    """Open a page in its own browser context with automation markers hidden.

    The context carries its own cookies and storage so each storefront keeps an
    independent delivery location.  Raises ``ResourceExhausted`` when the browser
    cannot allocate the context or page.
    """

    identity = identity or pick_identity()
    context = None
    try:
        context = await browser.new_context(**context_kwargs(identity.user_agent))
        await context.add_init_script(WEBDRIVER_SCRIPT)
        await context.add_init_script(PERMISSIONS_SCRIPT)
        stealth = build_stealth(identity.user_agent, identity.platform, identity.vendor)
        if stealth is not None:
            await stealth.apply_stealth_async(context)
        page = await context.new_page()
    except PlaywrightError as exc:
        if context is not None:
            try:
                await context.close()
            except PlaywrightError:
                LOGGER.debug("Context cleanup failed after allocation error")
        raise ResourceExhausted(f"Unable to open stealth page: {exc}") from exc

    LOGGER.debug("Opened stealth page | platform=%s", identity.platform)
    return page
