"""Built-in sample catalogue used when no live storefront should be touched."""

from __future__ import annotations

from typing import Any, Iterable

from quickscout.aggregator import Source
from quickscout.extractors.schemas import Platform

PLACEHOLDER_IMAGE = "https://via.placeholder.com/300x300?text=Hot+Wheels"

SAMPLE_PRODUCTS: dict[Platform, tuple[dict[str, Any], ...]] = {
    Platform.BLINKIT: (
        {"id": "hw-demo-1", "name": "Hot Wheels Premium Car - Lamborghini", "price": 299,
         "url": "https://blinkit.com"},
        {"id": "hw-demo-2", "name": "Hot Wheels Monster Trucks Set", "price": 499,
         "url": "https://blinkit.com"},
    ),
    Platform.ZEPTO: (
        {"id": "hw-demo-3", "name": "Hot Wheels Basic Car Pack - 5 Pack", "price": 349,
         "url": "https://zepto.com"},
    ),
    Platform.SWIGGY: (
        {"id": "hw-demo-4", "name": "Hot Wheels Color Shifters", "price": 399,
         "url": "https://swiggy.com"},
        {"id": "hw-demo-5", "name": "Hot Wheels Racing Circuit Set", "price": 799,
         "url": "https://swiggy.com"},
    ),
}


def sample_records(platform: Platform, location: str | None = None) -> list[dict[str, Any]]:
    records = []
    for sample in SAMPLE_PRODUCTS.get(platform, ()):
        record = dict(sample, image=PLACEHOLDER_IMAGE, available=True)
        if location:
            record["location"] = location
        records.append(record)
    return records


def demo_sources(platforms: Iterable[Platform], location: str | None = None) -> dict[Platform, Source]:
    """Aggregator sources that answer from the sample catalogue."""

    def make(platform: Platform) -> Source:
        async def run() -> list[dict[str, Any]]:
            return sample_records(platform, location)

        return run

    return {platform: make(platform) for platform in platforms}
