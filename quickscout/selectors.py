"""Centralised selectors for the quick-commerce storefront flows.

Every storefront section lists its product-card families in priority order; the
extractor uses the first family that matches at least one container.  Location
selectors are comma-joined alternatives consumed by ``page.locator``.
"""

CURRENCY_MARKER = "₹"

# ==== SHARED (per-card resolution) ====
GENERIC_NAME = ("[class*='name']", "[class*='title']", "h2", "h3", "h4")
GENERIC_PRICE = ("[class*='price']", "[class*='Price']", "[data-testid*='price']")
UNAVAILABLE_MARKERS = (
    "[disabled]",
    "[aria-disabled='true']",
    "[class*='out-of-stock']",
    "[class*='OutOfStock']",
    "[class*='sold-out']",
)
ID_ATTRIBUTES = (
    "data-product-id",
    "data-productid",
    "data-product_id",
    "data-pid",
    "data-sku",
    "data-id",
)
GENERIC_CONTAINERS = "div, article, li, a"
GENERIC_MIN_HEIGHT = 100
GENERIC_MAX_HEIGHT = 600

# ==== BLINKIT ====
BLINKIT_CARDS = (
    {
        "name": "blinkit-product-card",
        "card": "[data-test-id='product-card-wrapper']",
        "title": ("div[class*='Product__UpdatedTitle']", "[data-test-id='product-title']"),
        "price": ("div[class*='Product__UpdatedPrice']", "[data-test-id='product-price']"),
    },
    {
        "name": "blinkit-product-container",
        "card": "div[class*='Product__UpdatedProductContainer'], div[class*='ProductContainer']",
        "title": ("div[class*='title']", "h3", ".product-name"),
        "price": ("div[class*='price']", "span[class*='price']"),
    },
)
BLINKIT_LOCATION_BOUND = "[class^='LocationBar__EtaContainer'], [class*='LocationBar__Eta']"
BLINKIT_LOCATION_PROMPT = "[name='select-locality'], .location-box"
BLINKIT_LOCATION_PROMPT_TEXT = ("Select Location", "Detect my location")
BLINKIT_LOCATION_OPENER = (
    "[data-test-id='location-header'], .location-box, "
    "[class*='LocationBar__Container']"
)
BLINKIT_LOCATION_INPUT = (
    "[name='select-locality'], input[placeholder*='search'], "
    "input[placeholder*='Search']"
)
BLINKIT_LOCATION_SUGGESTION = (
    "[class*='LocationSearchList__LocationListContainer'], "
    "[class*='LocationSearchList'] > div, .pac-item"
)
BLINKIT_LOCATION_CONFIRM = ""

# ==== ZEPTO ====
ZEPTO_CARDS = (
    {
        "name": "zepto-product-card",
        "card": "[data-testid='product-card']",
        "title": ("[data-testid='product-card-name']", "h5", "h4"),
        "price": ("[data-testid='product-card-price']", "[class*='price']"),
    },
    {
        "name": "zepto-product-card-class",
        "card": ".product-card, [class*='ProductCard'], a[href*='/pn/']",
        "title": ("[class*='name']", "h4", "h3"),
        "price": ("[class*='price']", "[class*='Price']"),
    },
)
ZEPTO_LOCATION_BOUND = "[data-testid='user-address'], [data-testid='delivery-time']"
ZEPTO_LOCATION_PROMPT = "input[placeholder*='Search a new location'], [data-testid='location-modal']"
ZEPTO_LOCATION_PROMPT_TEXT = ("Select Location", "Search a new location")
ZEPTO_LOCATION_OPENER = "[data-testid='location-header'], [class*='location-header']"
ZEPTO_LOCATION_INPUT = (
    "input[placeholder*='Search a new location'], input[placeholder*='address'], "
    "input[placeholder*='Search']"
)
ZEPTO_LOCATION_SUGGESTION = "[data-testid='location-search-result-item'], [data-testid='address-search-item']"
ZEPTO_LOCATION_CONFIRM = (
    "button:has-text('Confirm'), button:has-text('Confirm & Continue'), "
    "[data-testid='location-confirm-btn']"
)

# ==== SWIGGY INSTAMART ====
SWIGGY_CARDS = (
    {
        "name": "instamart-product-card",
        "card": "[data-testid='default_container_ux4'], [data-testid='product-card']",
        "title": ("[class*='novMV']", "div[class*='name']", "h3", "h4"),
        "price": ("[data-testid='item-offer-price']", "div[class*='price']"),
    },
    {
        "name": "instamart-product-card-class",
        "card": "div[class*='ProductCard'], div[class*='product-card']",
        "title": ("div[class*='name']", "h3", "h4"),
        "price": ("div[class*='price']", "span[class*='price']"),
    },
)
SWIGGY_LOCATION_BOUND = "[data-testid='header-location-address'], [class*='LocationHeader'] span"
SWIGGY_LOCATION_PROMPT = (
    "input[placeholder*='Enter your delivery location'], input[class*='_381fS']"
)
SWIGGY_LOCATION_PROMPT_TEXT = ("Enter your delivery location", "Setup your precise location")
SWIGGY_LOCATION_OPENER = "[title='Change Location'], [data-testid='header-location-container']"
SWIGGY_LOCATION_INPUT = (
    "input[placeholder*='Enter your delivery location'], input[class*='_381fS'], "
    "input[placeholder*='Search']"
)
SWIGGY_LOCATION_SUGGESTION = "div[class*='_2W-T9'], div[class*='SearchResult'] button, [data-testid='location-search-item']"
SWIGGY_LOCATION_CONFIRM = "button:has-text('Confirm Location'), button:has-text('Confirm')"
