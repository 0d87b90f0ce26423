"""Swiggy Instamart storefront.

The landing page usually shows the delivery-location input directly; returning
visitors get a "Change Location" header instead, which the shared input step
falls back to.
"""

from __future__ import annotations

import quickscout.selectors as selectors
from quickscout.extractors.product_extractor import strategies_from
from quickscout.extractors.schemas import Platform
from quickscout.storefronts.base import LocationSelectors, Storefront

STOREFRONT = Storefront(
    platform=Platform.SWIGGY,
    home_url="https://www.swiggy.com/instamart",
    search_url_template="https://www.swiggy.com/instamart/search?custom_back=true&query={query}",
    location=LocationSelectors(
        bound=selectors.SWIGGY_LOCATION_BOUND,
        prompt=selectors.SWIGGY_LOCATION_PROMPT,
        prompt_text=selectors.SWIGGY_LOCATION_PROMPT_TEXT,
        opener=selectors.SWIGGY_LOCATION_OPENER,
        input=selectors.SWIGGY_LOCATION_INPUT,
        suggestion=selectors.SWIGGY_LOCATION_SUGGESTION,
        confirm=selectors.SWIGGY_LOCATION_CONFIRM,
    ),
    strategies=strategies_from(selectors.SWIGGY_CARDS),
)
