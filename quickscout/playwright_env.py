"""Centralised helpers for Playwright launch, stealth and timing configuration."""

from __future__ import annotations

import os
import shlex
from typing import Any
from urllib.parse import urlparse

from playwright_stealth import Stealth

_FALSE_VALUES = {"0", "false", "no", "off"}

DEFAULT_VIEWPORT = {"width": 1920, "height": 1080}


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in _FALSE_VALUES


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def headless_enabled() -> bool:
    """Return True if Playwright should run in headless mode."""

    return _as_bool(os.getenv("QUICKSCOUT_HEADLESS"), True)


def stealth_enabled() -> bool:
    """Return True when playwright-stealth evasions should be applied."""

    return _as_bool(os.getenv("QUICKSCOUT_STEALTH"), True)


def demo_enabled() -> bool:
    return _as_bool(os.getenv("QUICKSCOUT_DEMO"), False)


def browser_locale() -> str:
    return os.getenv("QUICKSCOUT_LOCALE") or "en-IN"


def browser_timezone() -> str:
    return os.getenv("QUICKSCOUT_TIMEZONE") or "Asia/Kolkata"


def build_stealth(user_agent: str, platform: str, vendor: str) -> Stealth | None:
    """Return a Stealth instance overridden with one consistent client identity."""

    if not stealth_enabled():
        return None

    locale = browser_locale()
    languages = (locale, locale.split("-")[0]) if "-" in locale else (locale, "en")
    return Stealth(
        navigator_languages_override=languages,
        navigator_platform_override=platform,
        navigator_user_agent_override=user_agent,
        navigator_vendor_override=vendor,
    )


def _proxy_config() -> dict[str, str] | None:
    raw = os.getenv("QUICKSCOUT_PROXY")
    if not raw:
        return None
    parsed = urlparse(raw)
    if not parsed.scheme:
        return {"server": f"http://{raw}"}
    return {"server": raw}


def slow_mo_ms() -> int | None:
    value = _env_int("QUICKSCOUT_SLOW_MO_MS", 0)
    return value if value > 0 else None


def launch_kwargs() -> dict[str, Any]:
    """Return kwargs passed to chromium.launch for one session browser."""

    args = [
        "--disable-blink-features=AutomationControlled",
        "--disable-dev-shm-usage",
        "--disable-accelerated-2d-canvas",
        "--disable-gpu",
        "--disable-infobars",
        "--no-first-run",
        "--no-default-browser-check",
        f"--window-size={DEFAULT_VIEWPORT['width']},{DEFAULT_VIEWPORT['height']}",
    ]
    # Containers rarely grant the user namespaces Chromium's sandbox needs.
    if _as_bool(os.getenv("QUICKSCOUT_NO_SANDBOX"), True):
        args.extend(["--no-sandbox", "--disable-setuid-sandbox", "--no-zygote"])
    extra_args = os.getenv("QUICKSCOUT_CHROMIUM_ARGS")
    if extra_args:
        args.extend(shlex.split(extra_args))

    kwargs: dict[str, Any] = {
        "headless": headless_enabled(),
        "args": args,
    }

    channel = os.getenv("QUICKSCOUT_BROWSER_CHANNEL")
    if channel:
        kwargs["channel"] = channel

    proxy = _proxy_config()
    if proxy:
        kwargs["proxy"] = proxy

    slow_mo = slow_mo_ms()
    if slow_mo:
        kwargs["slow_mo"] = slow_mo

    return kwargs


def context_kwargs(user_agent: str) -> dict[str, Any]:
    """Return kwargs passed to browser.new_context for one storefront page."""

    return {
        "user_agent": user_agent,
        "viewport": dict(DEFAULT_VIEWPORT),
        "locale": browser_locale(),
        "timezone_id": browser_timezone(),
        "ignore_https_errors": _as_bool(os.getenv("QUICKSCOUT_IGNORE_HTTPS_ERRORS"), True),
    }


def apply_wait_policy(min_ms: int, max_ms: int) -> tuple[int, int]:
    """Apply the global multiplier to human_wait() bounds."""

    multiplier = max(_env_float("QUICKSCOUT_WAIT_MULTIPLIER", 1.0), 0.0)

    scaled_min = int(min_ms * multiplier)
    scaled_max = int(max_ms * multiplier)
    if scaled_max < scaled_min:
        scaled_max = scaled_min
    return scaled_min, scaled_max


def navigation_timeout_ms() -> int:
    return max(_env_int("QUICKSCOUT_NAV_TIMEOUT_MS", 30000), 1)


def ui_wait_timeout_ms() -> int:
    return max(_env_int("QUICKSCOUT_UI_WAIT_MS", 5000), 1)


def settle_delay_bounds() -> tuple[int, int]:
    """Fixed settle delay that lets client-side rendering finish."""

    min_ms = _env_int("QUICKSCOUT_SETTLE_MIN_MS", 2000)
    max_ms = _env_int("QUICKSCOUT_SETTLE_MAX_MS", 3000)
    if min_ms < 0:
        min_ms = 0
    if max_ms < min_ms:
        max_ms = min_ms
    return min_ms, max_ms


def typing_delay_ms() -> int:
    return max(_env_int("QUICKSCOUT_TYPING_DELAY_MS", 100), 0)


def storefront_timeout_s() -> float:
    """Upper bound for one storefront's whole search task."""

    return max(_env_float("QUICKSCOUT_STOREFRONT_TIMEOUT_S", 90.0), 1.0)
