"""Selector-fallback product extraction from rendered storefront pages.

Extraction happens in two halves.  A snapshot script runs inside the page and
serialises every candidate container (card selector family first, structural
heuristic as a last resort) into plain dicts.  The pure functions below turn those
snapshots into ``ProductRecord`` values, so markup drift only ever touches the
selector tables and the snapshot script.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence
from urllib.parse import urljoin

from playwright.async_api import Error as PlaywrightError

import quickscout.selectors as selectors
from quickscout.extractors.schemas import (
    MIN_NAME_LENGTH,
    Platform,
    ProductRecord,
    derive_record_id,
    parse_price,
)
from quickscout.logging_config import get_logger
from quickscout.normalizers import collapse_whitespace, is_unavailable_text

LOGGER = get_logger(__name__)

MAX_CONTAINERS = 400
GENERIC_STRATEGY = "generic-heuristic"

_CURRENCY_PRICE = re.compile(re.escape(selectors.CURRENCY_MARKER) + r"\s*([\d,]+)")

SNAPSHOT_SCRIPT = """
(opts) => {
  const textOf = (node) => (node && node.textContent ? node.textContent : '').trim();
  const query = (root, selector) => {
    try { return root.querySelector(selector); } catch (e) { return null; }
  };
  const firstText = (root, list) => {
    for (const selector of list) {
      const value = textOf(query(root, selector));
      if (value) return value;
    }
    return '';
  };
  const snapshot = (el) => {
    const img = el.querySelector('img');
    const link = el.tagName === 'A' ? el : (el.querySelector('a[href]') || el.closest('a[href]'));
    let sourceId = '';
    for (const attr of opts.idAttributes) {
      const value = el.getAttribute(attr);
      if (value) { sourceId = value; break; }
    }
    let disabled = false;
    for (const selector of opts.unavailableMarkers) {
      try {
        if (el.matches(selector) || el.querySelector(selector)) { disabled = true; break; }
      } catch (e) { /* invalid selector on this engine */ }
    }
    return {
      names: opts.nameSelectors.map((selector) => textOf(query(el, selector))),
      priceText: firstText(el, opts.priceSelectors),
      text: el.innerText || el.textContent || '',
      image: img ? {
        src: img.getAttribute('src') || '',
        dataSrc: img.getAttribute('data-src') || img.getAttribute('data-lazy-src') || '',
        srcset: img.getAttribute('srcset') || img.getAttribute('data-srcset') || '',
      } : null,
      disabled,
      href: link ? link.href : '',
      sourceId,
    };
  };
  let nodes = [];
  if (opts.mode === 'cards') {
    try { nodes = Array.from(document.querySelectorAll(opts.cardSelector)); } catch (e) { nodes = []; }
  } else {
    nodes = Array.from(document.querySelectorAll(opts.containerSelector)).filter((el) => {
      const height = el.offsetHeight;
      if (height < opts.minHeight || height > opts.maxHeight) return false;
      return (el.textContent || '').includes(opts.currency) && el.querySelector('img') !== null;
    });
  }
  return nodes.slice(0, opts.limit).map(snapshot);
}
"""


@dataclass(frozen=True)
class ExtractionStrategy:
    """One product-card selector family for a storefront."""

    name: str
    card_selector: str
    name_selectors: tuple[str, ...]
    price_selectors: tuple[str, ...]

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "ExtractionStrategy":
        return cls(
            name=str(mapping["name"]),
            card_selector=str(mapping["card"]),
            name_selectors=tuple(mapping.get("title") or ()) + selectors.GENERIC_NAME,
            price_selectors=tuple(mapping.get("price") or ()) + selectors.GENERIC_PRICE,
        )

    def payload(self, limit: int = MAX_CONTAINERS) -> dict[str, Any]:
        return {
            "mode": "cards",
            "cardSelector": self.card_selector,
            "nameSelectors": list(self.name_selectors),
            "priceSelectors": list(self.price_selectors),
            "idAttributes": list(selectors.ID_ATTRIBUTES),
            "unavailableMarkers": list(selectors.UNAVAILABLE_MARKERS),
            "limit": limit,
        }


def generic_payload(limit: int = MAX_CONTAINERS) -> dict[str, Any]:
    return {
        "mode": "generic",
        "containerSelector": selectors.GENERIC_CONTAINERS,
        "minHeight": selectors.GENERIC_MIN_HEIGHT,
        "maxHeight": selectors.GENERIC_MAX_HEIGHT,
        "currency": selectors.CURRENCY_MARKER,
        "nameSelectors": list(selectors.GENERIC_NAME),
        "priceSelectors": list(selectors.GENERIC_PRICE),
        "idAttributes": list(selectors.ID_ATTRIBUTES),
        "unavailableMarkers": list(selectors.UNAVAILABLE_MARKERS),
        "limit": limit,
    }


def strategies_from(families: Iterable[Mapping[str, Any]]) -> tuple[ExtractionStrategy, ...]:
    return tuple(ExtractionStrategy.from_mapping(family) for family in families)


def resolve_name(card: Mapping[str, Any], *, generic: bool = False) -> str:
    for candidate in card.get("names") or ():
        name = collapse_whitespace(candidate)
        if name:
            return name
    if not generic:
        return ""
    # Text ahead of the first price is usually the product title.
    text = str(card.get("text") or "")
    head = text.split(selectors.CURRENCY_MARKER)[0]
    return collapse_whitespace(head)[:100]


def resolve_price(card: Mapping[str, Any], *, generic: bool = False) -> int:
    price = parse_price(card.get("priceText"))
    if price or not generic:
        return price
    match = _CURRENCY_PRICE.search(str(card.get("text") or ""))
    return parse_price(match.group(1)) if match else 0


def resolve_image(image: Mapping[str, Any] | None, base_url: str = "") -> str:
    """Resolve an image URL from ``src``, then lazy-load data, then ``srcset``."""

    if not image:
        return ""
    candidates: list[str] = []
    src = str(image.get("src") or "").strip()
    # Lazy loaders park an inline placeholder in src until the real image loads.
    if src and not src.startswith("data:"):
        candidates.append(src)
    candidates.append(str(image.get("dataSrc") or "").strip())
    srcset = str(image.get("srcset") or "").strip()
    if srcset:
        candidates.append(srcset.split(",")[0].strip().split(" ")[0])
    for candidate in candidates:
        if candidate:
            if candidate.startswith("//"):
                return f"https:{candidate}"
            return urljoin(base_url, candidate) if base_url else candidate
    return ""


def resolve_available(card: Mapping[str, Any]) -> bool:
    if card.get("disabled"):
        return False
    return not is_unavailable_text(card.get("text"))


def card_to_record(
    card: Mapping[str, Any],
    platform: Platform,
    page_url: str = "",
    *,
    generic: bool = False,
) -> ProductRecord | None:
    """Build a record from one container snapshot, or None when it is unusable."""

    name = resolve_name(card, generic=generic)
    if len(name) < MIN_NAME_LENGTH:
        return None
    price = resolve_price(card, generic=generic)
    if price <= 0:
        return None

    return ProductRecord(
        id=derive_record_id(platform, name, price, card.get("sourceId")),
        name=name,
        price=price,
        image=resolve_image(card.get("image"), page_url),
        platform=platform,
        available=resolve_available(card),
        url=str(card.get("href") or page_url or ""),
    )


def dedupe_records(records: Iterable[ProductRecord]) -> list[ProductRecord]:
    """Drop repeats of (normalised name, price); first in document order wins."""

    seen: set[tuple[str, int]] = set()
    unique: list[ProductRecord] = []
    for record in records:
        if record.dedup_key in seen:
            continue
        seen.add(record.dedup_key)
        unique.append(record)
    return unique


def records_from_snapshot(
    cards: Sequence[Mapping[str, Any]],
    platform: Platform,
    page_url: str = "",
    *,
    generic: bool = False,
) -> list[ProductRecord]:
    records = (
        card_to_record(card, platform, page_url, generic=generic)
        for card in cards
    )
    return dedupe_records(record for record in records if record is not None)


async def _snapshot(page: Any, payload: dict[str, Any], label: str, platform: Platform) -> list[dict[str, Any]]:
    try:
        cards = await page.evaluate(SNAPSHOT_SCRIPT, payload)
    except PlaywrightError as exc:
        LOGGER.warning(
            "Snapshot failed for strategy=%s: %s",
            label,
            exc,
            extra={"platform": platform.value},
        )
        return []
    return list(cards or [])


async def extract(
    page: Any,
    platform: Platform,
    strategies: Sequence[ExtractionStrategy],
) -> list[ProductRecord]:
    """Return deduplicated product records from the page's rendered DOM."""

    page_url = getattr(page, "url", "") or ""
    for strategy in strategies:
        cards = await _snapshot(page, strategy.payload(), strategy.name, platform)
        if cards:
            records = records_from_snapshot(cards, platform, page_url)
            LOGGER.info(
                "strategy=%s containers=%d records=%d",
                strategy.name,
                len(cards),
                len(records),
                extra={"platform": platform.value},
            )
            return records

    cards = await _snapshot(page, generic_payload(), GENERIC_STRATEGY, platform)
    records = records_from_snapshot(cards, platform, page_url, generic=True)
    LOGGER.info(
        "strategy=%s containers=%d records=%d",
        GENERIC_STRATEGY,
        len(cards),
        len(records),
        extra={"platform": platform.value},
    )
    return records
