"""Zepto storefront: the address search lives behind the location header and
ends with an explicit confirmation button."""

from __future__ import annotations

import quickscout.selectors as selectors
from quickscout.extractors.product_extractor import strategies_from
from quickscout.extractors.schemas import Platform
from quickscout.storefronts.base import LocationSelectors, Storefront

STOREFRONT = Storefront(
    platform=Platform.ZEPTO,
    home_url="https://www.zepto.com/",
    search_url_template="https://www.zepto.com/search?query={query}",
    location=LocationSelectors(
        bound=selectors.ZEPTO_LOCATION_BOUND,
        prompt=selectors.ZEPTO_LOCATION_PROMPT,
        prompt_text=selectors.ZEPTO_LOCATION_PROMPT_TEXT,
        opener=selectors.ZEPTO_LOCATION_OPENER,
        input=selectors.ZEPTO_LOCATION_INPUT,
        suggestion=selectors.ZEPTO_LOCATION_SUGGESTION,
        confirm=selectors.ZEPTO_LOCATION_CONFIRM,
    ),
    strategies=strategies_from(selectors.ZEPTO_CARDS),
    open_first=True,
)
