"""Command-line interface entry point for QuickScout."""

from __future__ import annotations

import argparse
import asyncio
from copy import deepcopy
from datetime import datetime, timezone
import json
import os
from pathlib import Path
from urllib.parse import urlparse
from typing import Any, Iterable

import requests
import yaml
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from dotenv import load_dotenv

from quickscout.aggregator import DEFAULT_CATEGORY_KEYWORDS, Aggregator, SearchResult
from quickscout.demo import demo_sources
from quickscout.errors import ResourceExhausted
from quickscout.extractors.schemas import Platform
from quickscout.health import HealthMonitor
from quickscout.logging_config import get_logger
from quickscout.playwright_env import demo_enabled
from quickscout.service import ScoutService
from quickscout.storefronts.catalog import resolve_storefronts


LOGGER = get_logger(__name__)


class ConfigurationError(RuntimeError):
    """Raised when the run cannot start with the given configuration."""


DEFAULT_CONFIG_PATH = Path("quickscout/config.yml")

DEFAULT_CONFIG: dict[str, Any] = {
    "location": "",
    "query": "hot wheels",
    "category_keywords": list(DEFAULT_CATEGORY_KEYWORDS),
    "platforms": [platform.value for platform in Platform],
    "schedule": {"minutes": 5},
    "diff": {"report_new_on_cold_start": False},
    "healthcheck_url": "",
    "health_log": "logs/health.log",
}


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the application."""

    parser = argparse.ArgumentParser(
        description="Search quick-commerce storefronts and report newly available products."
    )
    parser.add_argument("--location", type=str, help="Delivery location, e.g. a city or PIN code.")
    parser.add_argument("--query", type=str, help="Search query (default from configuration).")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single search instead of polling on a schedule.",
    )
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Use built-in sample products instead of live storefronts.",
    )
    parser.add_argument(
        "--platforms",
        type=str,
        help="Comma-separated storefront keys to search (blinkit, zepto, swiggy).",
    )
    parser.add_argument(
        "--session-id",
        default="cli",
        help="Session identifier used for the browser session (default: cli).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"YAML configuration file (default: {DEFAULT_CONFIG_PATH}).",
    )

    args = parser.parse_args(list(argv) if argv is not None else None)

    platforms_arg = args.platforms or ""
    try:
        args.platforms = [
            Platform.parse(key) for key in platforms_arg.split(",") if key.strip()
        ]
    except ValueError as exc:
        parser.error(str(exc))

    args.demo = args.demo or demo_enabled()
    return args


def _deep_merge(default: Any, override: Any) -> Any:
    if not isinstance(default, dict) or not isinstance(override, dict):
        return deepcopy(override)

    merged: dict[str, Any] = deepcopy(default)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


def _validate_category_keywords(config: dict[str, Any]) -> None:
    raw_value = config.get("category_keywords")
    if isinstance(raw_value, (list, tuple, set)):
        cleaned = [str(item).strip() for item in raw_value if str(item).strip()]
        if not cleaned:
            LOGGER.info("category_keywords is empty; category filtering disabled")
        config["category_keywords"] = cleaned
        return
    if raw_value is None:
        LOGGER.warning("category_keywords missing in configuration; using defaults")
    else:
        LOGGER.warning("category_keywords must be a sequence of strings; using defaults")
    config["category_keywords"] = list(DEFAULT_CATEGORY_KEYWORDS)


def _load_config(path: Path) -> dict[str, Any]:
    if path.exists():
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    else:
        LOGGER.warning("Configuration file %s not found; using defaults", path)
        data = {}

    merged = _deep_merge(DEFAULT_CONFIG, data) if data else deepcopy(DEFAULT_CONFIG)
    _validate_category_keywords(merged)
    return merged


def _resolve_platforms(args: argparse.Namespace, config: dict[str, Any]) -> list[Platform]:
    if args.platforms:
        return list(args.platforms)
    try:
        return [storefront.platform for storefront in resolve_storefronts(config.get("platforms"))]
    except ValueError as exc:
        raise ConfigurationError(f"Invalid platforms in configuration: {exc}") from exc


def _schedule_minutes(config: dict[str, Any]) -> float:
    try:
        minutes = float((config.get("schedule") or {}).get("minutes", 5))
    except (TypeError, ValueError):
        LOGGER.warning("schedule.minutes is not a number; using 5")
        return 5.0
    return minutes if minutes > 0 else 5.0


def _ping_healthcheck(config: dict[str, Any]) -> None:
    url = (config or {}).get("healthcheck_url")
    if not url:
        LOGGER.debug("healthcheck: disabled")
        return
    host = urlparse(str(url)).netloc or urlparse(str(url)).path
    verify_env = os.getenv("HEALTHCHECK_VERIFY")
    verify = True if verify_env is None else verify_env.strip().lower() not in {"0", "false", "no"}
    try:
        response = requests.get(url, timeout=5, verify=verify)
    except requests.RequestException as exc:
        LOGGER.warning("Healthcheck ping failed for host=%s: %s", host, exc)
        return
    if response.status_code >= 400:
        LOGGER.warning(
            "Healthcheck returned status %s for host=%s",
            response.status_code,
            host,
        )
    else:
        LOGGER.info("healthcheck ok | host=%s status=%s", host, response.status_code)


def cycle_payload(result: SearchResult, location: str, query: str) -> dict[str, Any]:
    payload = result.to_payload()
    return {
        "timestamp": payload["timestamp"],
        "location": location,
        "query": query,
        "results": payload["results"],
        "new": payload["new"],
        "errors": payload["errors"],
    }


class ScoutRunner:
    """One configured search target, run live or against the demo catalogue."""

    def __init__(
        self,
        *,
        session_id: str,
        location: str,
        query: str,
        platforms: list[Platform],
        aggregator: Aggregator,
        service: ScoutService | None = None,
    ) -> None:
        self.session_id = session_id
        self.location = location
        self.query = query
        self.platforms = platforms
        self.aggregator = aggregator
        self.service = service

    async def search(self) -> SearchResult:
        if self.service is None:
            key = (self.location, self.query.lower())
            return await self.aggregator.search(key, demo_sources(self.platforms, self.location))

        bound = await self.service.set_location(self.session_id, self.location)
        missing = [platform.label for platform, ok in bound.items() if not ok]
        if missing:
            LOGGER.warning(
                "Location not set on %s; results there may be for a default area",
                ", ".join(missing),
                extra={"session": self.session_id},
            )
        return await self.service.search(self.session_id, self.query)

    async def run_cycle(self, config: dict[str, Any]) -> dict[str, Any]:
        result = await self.search()
        payload = cycle_payload(result, self.location, self.query)
        print(json.dumps(payload, ensure_ascii=False, indent=2), flush=True)
        for record in result.new_items():
            LOGGER.info(
                "Newly available: %s at ₹%d",
                record.name,
                record.price,
                extra={"platform": record.platform.value},
            )
        _ping_healthcheck(config)
        return payload

    async def close(self) -> None:
        if self.service is not None:
            await self.service.shutdown()


def build_runner(args: argparse.Namespace, config: dict[str, Any]) -> ScoutRunner:
    location = (args.location or str(config.get("location") or "")).strip()
    if not location:
        raise ConfigurationError("A location is required (--location or 'location' in config).")
    query = (args.query or str(config.get("query") or "")).strip()
    if not query:
        raise ConfigurationError("A search query is required (--query or 'query' in config).")

    platforms = _resolve_platforms(args, config)
    run_id = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    monitor = HealthMonitor(run_id=run_id, log_path=Path(config.get("health_log") or "logs/health.log"))
    aggregator = Aggregator(
        config.get("category_keywords"),
        report_new_on_cold_start=bool((config.get("diff") or {}).get("report_new_on_cold_start")),
        monitor=monitor,
    )
    service = None
    if not args.demo:
        service = ScoutService(
            aggregator=aggregator,
            storefronts=resolve_storefronts(platforms),
            monitor=monitor,
        )
    LOGGER.info(
        "Scout configured | location=%s | query=%s | platforms=%s | demo=%s",
        location,
        query,
        ",".join(platform.value for platform in platforms),
        args.demo,
    )
    return ScoutRunner(
        session_id=args.session_id,
        location=location,
        query=query,
        platforms=platforms,
        aggregator=aggregator,
        service=service,
    )


async def _async_main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)

    load_dotenv()

    config = _load_config(args.config)
    runner = build_runner(args, config)

    if args.once:
        try:
            await runner.run_cycle(config)
        finally:
            await runner.close()
        return

    interval_minutes = _schedule_minutes(config)
    scheduler = AsyncIOScheduler()

    async def scheduled_cycle() -> None:
        try:
            await runner.run_cycle(config)
        except ResourceExhausted:
            LOGGER.exception("Browser resources exhausted; skipping this cycle")
        except Exception:
            LOGGER.exception("Scheduled search cycle failed")

    scheduler.add_job(
        scheduled_cycle,
        "interval",
        minutes=interval_minutes,
        next_run_time=datetime.now(timezone.utc),
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    LOGGER.info("Scheduler started with interval=%s minutes", interval_minutes)

    try:
        await asyncio.Event().wait()
    except (KeyboardInterrupt, SystemExit):
        LOGGER.info("Shutdown signal received; stopping scheduler")
    finally:
        scheduler.shutdown(wait=False)
        await runner.close()


def main() -> None:
    try:
        asyncio.run(_async_main())
    except ConfigurationError as exc:
        LOGGER.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc
    except ResourceExhausted as exc:
        LOGGER.error("Could not start a browser: %s", exc)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:  # pragma: no cover - interactive safety
        LOGGER.info("Interrupted by user")


if __name__ == "__main__":
    main()
