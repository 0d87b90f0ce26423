"""Blinkit storefront: location header flow without a confirmation step."""

from __future__ import annotations

import quickscout.selectors as selectors
from quickscout.extractors.product_extractor import strategies_from
from quickscout.extractors.schemas import Platform
from quickscout.storefronts.base import LocationSelectors, Storefront

STOREFRONT = Storefront(
    platform=Platform.BLINKIT,
    home_url="https://blinkit.com/",
    search_url_template="https://blinkit.com/s/?q={query}",
    location=LocationSelectors(
        bound=selectors.BLINKIT_LOCATION_BOUND,
        prompt=selectors.BLINKIT_LOCATION_PROMPT,
        prompt_text=selectors.BLINKIT_LOCATION_PROMPT_TEXT,
        opener=selectors.BLINKIT_LOCATION_OPENER,
        input=selectors.BLINKIT_LOCATION_INPUT,
        suggestion=selectors.BLINKIT_LOCATION_SUGGESTION,
        confirm=selectors.BLINKIT_LOCATION_CONFIRM,
    ),
    strategies=strategies_from(selectors.BLINKIT_CARDS),
)
