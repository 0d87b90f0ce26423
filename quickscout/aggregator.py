"""Cross-storefront aggregation and "newly available" diffing."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Hashable, Iterable, Mapping

from pydantic import ValidationError

from quickscout.errors import SessionClosed
from quickscout.extractors.product_extractor import dedupe_records
from quickscout.extractors.schemas import Platform, ProductRecord, derive_record_id, parse_price
from quickscout.logging_config import get_logger
from quickscout.normalizers import clean_keywords, matches_keywords
from quickscout.playwright_env import storefront_timeout_s

LOGGER = get_logger(__name__)

DEFAULT_CATEGORY_KEYWORDS = ("hotwheels", "hot wheels", "hotwheels car", "mattel")

Source = Callable[[], Awaitable[Iterable[Any]]]


@dataclass(frozen=True)
class AggregateResult:
    """Per-platform records observed by one search run."""

    per_platform: dict[Platform, list[ProductRecord]]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def available_ids(self, platform: Platform) -> set[str]:
        return {record.id for record in self.per_platform.get(platform, ()) if record.available}


@dataclass(frozen=True)
class SearchResult:
    """What a caller receives from one aggregate search."""

    results: AggregateResult
    newly_available: dict[Platform, list[ProductRecord]]
    errors: dict[Platform, str]
    cold_start: bool = False

    @property
    def per_platform(self) -> dict[Platform, list[ProductRecord]]:
        return self.results.per_platform

    @property
    def timestamp(self) -> datetime:
        return self.results.timestamp

    def new_items(self) -> list[ProductRecord]:
        return [record for records in self.newly_available.values() for record in records]

    def to_payload(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "results": {
                platform.value: [record.to_payload() for record in records]
                for platform, records in self.per_platform.items()
            },
            "new": {
                platform.value: [record.to_payload() for record in records]
                for platform, records in self.newly_available.items()
            },
            "errors": {platform.value: message for platform, message in self.errors.items()},
        }


class BaselineStore:
    """Last aggregate result per tracked key, held for the process lifetime."""

    def __init__(self) -> None:
        self._results: dict[Hashable, AggregateResult] = {}
        self._locks: dict[Hashable, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._results)

    def get(self, key: Hashable) -> AggregateResult | None:
        return self._results.get(key)

    def lock(self, key: Hashable) -> asyncio.Lock:
        return self._locks.setdefault(key, asyncio.Lock())

    def replace(self, key: Hashable, result: AggregateResult) -> None:
        self._results[key] = result

    def reset(self) -> None:
        self._results.clear()
        self._locks.clear()


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return None


def normalize_record(raw: ProductRecord | Mapping[str, Any], platform: Platform) -> ProductRecord | None:
    """Coerce *raw* into a record tagged with *platform*, or None when unusable.

    Accepts records from the extractor as well as loose mappings using the
    field names storefront payloads commonly carry.
    """

    if isinstance(raw, ProductRecord):
        if raw.platform is platform:
            return raw
        return raw.model_copy(update={"platform": platform})

    name = _first(raw, "name", "title", "product_name")
    price_value = _first(raw, "price", "selling_price", "final_price", "mrp")
    if not name and price_value is None:
        return None

    price = price_value if isinstance(price_value, int) else parse_price(str(price_value or ""))
    images = raw.get("images") or []
    image = _first(raw, "image", "image_url", "thumbnail") or (images[0] if images else "")
    available = raw.get("available") is not False and raw.get("in_stock") is not False
    original = _first(raw, "original_price", "originalPrice")
    source_id = _first(raw, "id", "product_id", "sku_id")
    name_text = str(name or "")
    # Nameless listings hash their description so the id survives across runs.
    identity_text = name_text or str(raw.get("description") or "")
    record_id = derive_record_id(
        platform, identity_text, max(price, 0), str(source_id) if source_id else None
    )

    try:
        return ProductRecord(
            id=record_id,
            name=name_text,
            price=max(price, 0),
            image=image or "",
            platform=platform,
            available=available,
            url=_first(raw, "url", "product_url", "deep_link") or "",
            description=raw.get("description") or "",
            original_price=parse_price(str(original)) if original is not None else None,
            location=raw.get("location"),
        )
    except ValidationError as exc:
        LOGGER.debug("Dropping malformed record: %s", exc, extra={"platform": platform.value})
        return None


def newly_available(
    previous: AggregateResult | None,
    current: AggregateResult,
    *,
    report_cold: bool = False,
) -> dict[Platform, list[ProductRecord]]:
    """Available records whose id was not available in *previous*, per platform.

    A platform missing from *previous* has no baseline; it reports nothing
    unless *report_cold* is set, in which case every available record is new.
    """

    fresh: dict[Platform, list[ProductRecord]] = {}
    for platform, records in current.per_platform.items():
        if previous is None or platform not in previous.per_platform:
            if not report_cold:
                fresh[platform] = []
                continue
            known: set[str] = set()
        else:
            known = previous.available_ids(platform)
        fresh[platform] = [
            record for record in records if record.available and record.id not in known
        ]
    return fresh


class Aggregator:
    """Fan searches out to storefronts, merge, filter and diff against a baseline.

    On the first run for a key nothing is reported as new unless
    ``report_new_on_cold_start`` is set.
    """

    def __init__(
        self,
        keywords: Iterable[str] | None = DEFAULT_CATEGORY_KEYWORDS,
        *,
        baseline: BaselineStore | None = None,
        task_timeout: float | None = None,
        report_new_on_cold_start: bool = False,
        monitor: Any | None = None,
    ) -> None:
        self.keywords = clean_keywords(keywords)
        self.baseline = baseline if baseline is not None else BaselineStore()
        self.task_timeout = task_timeout
        self.report_new_on_cold_start = report_new_on_cold_start
        self.monitor = monitor

    def is_relevant(self, record: ProductRecord) -> bool:
        return matches_keywords(self.keywords, record.name, record.description)

    async def _run_source(
        self, platform: Platform, source: Source
    ) -> tuple[Platform, list[ProductRecord], str | None]:
        timeout = self.task_timeout if self.task_timeout is not None else storefront_timeout_s()
        extra = {"platform": platform.value}
        try:
            raw_records = await asyncio.wait_for(source(), timeout=timeout)
        except SessionClosed:
            raise
        except asyncio.TimeoutError:
            message = f"timed out after {timeout:.0f}s"
            LOGGER.warning("Storefront search %s", message, extra=extra)
            return platform, [], message
        except Exception as exc:
            message = f"{type(exc).__name__}: {exc}"
            LOGGER.warning("Storefront search failed: %s", message, extra=extra)
            return platform, [], message

        records: list[ProductRecord] = []
        for raw in raw_records or ():
            record = normalize_record(raw, platform)
            if record is not None and self.is_relevant(record):
                records.append(record)
        return platform, dedupe_records(records), None

    async def search(
        self,
        key: Hashable,
        sources: Mapping[Platform, Source],
    ) -> SearchResult:
        """Run every source concurrently and diff the merged result for *key*."""

        outcomes = await asyncio.gather(
            *(self._run_source(platform, source) for platform, source in sources.items())
        )

        per_platform: dict[Platform, list[ProductRecord]] = {}
        errors: dict[Platform, str] = {}
        for platform, records, error in outcomes:
            per_platform[platform] = records
            if error is not None:
                errors[platform] = error
            if self.monitor is not None:
                self.monitor.record_platform(platform, count=len(records), error=error)

        async with self.baseline.lock(key):
            previous = self.baseline.get(key)
            current = AggregateResult(per_platform=per_platform)
            cold_start = previous is None
            fresh = newly_available(previous, current, report_cold=self.report_new_on_cold_start)

            # A failed storefront keeps its old baseline (or none) so its
            # recovery is not reported as a wave of new items.
            stored = {
                platform: records
                for platform, records in per_platform.items()
                if platform not in errors
            }
            if previous is not None:
                for platform in errors:
                    if platform in previous.per_platform:
                        stored[platform] = previous.per_platform[platform]
            self.baseline.replace(key, AggregateResult(per_platform=stored, timestamp=current.timestamp))

        LOGGER.info(
            "Aggregate search | key=%s | counts=%s | new=%d | errors=%d",
            key,
            {platform.value: len(records) for platform, records in per_platform.items()},
            sum(len(records) for records in fresh.values()),
            len(errors),
        )
        return SearchResult(results=current, newly_available=fresh, errors=errors, cold_start=cold_start)
