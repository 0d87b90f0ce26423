"""Lookup of the storefronts QuickScout knows how to drive."""

from __future__ import annotations

from typing import Iterable

from quickscout.extractors.schemas import Platform
from quickscout.storefronts import blinkit, swiggy, zepto
from quickscout.storefronts.base import Storefront

STOREFRONTS: dict[Platform, Storefront] = {
    Platform.BLINKIT: blinkit.STOREFRONT,
    Platform.ZEPTO: zepto.STOREFRONT,
    Platform.SWIGGY: swiggy.STOREFRONT,
}


def resolve_storefronts(keys: Iterable[str | Platform] | None = None) -> list[Storefront]:
    """Return storefronts for *keys* in the given order; all of them when empty."""

    if not keys:
        return list(STOREFRONTS.values())
    resolved: list[Storefront] = []
    for key in keys:
        storefront = STOREFRONTS[Platform.parse(key)]
        if storefront not in resolved:
            resolved.append(storefront)
    return resolved
