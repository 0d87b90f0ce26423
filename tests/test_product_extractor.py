import asyncio

from playwright.async_api import Error as PlaywrightError

import quickscout.selectors as selectors
from quickscout.extractors.product_extractor import (
    card_to_record,
    extract,
    records_from_snapshot,
    resolve_image,
    strategies_from,
)
from quickscout.extractors.schemas import Platform

from fakes import FakePage

BLINKIT_STRATEGIES = strategies_from(selectors.BLINKIT_CARDS)
PRIMARY_CARD = selectors.BLINKIT_CARDS[0]["card"]
SECONDARY_CARD = selectors.BLINKIT_CARDS[1]["card"]


def _card(name, price_text, **extra):
    card = {
        "names": [name] if name is not None else [],
        "priceText": price_text,
        "text": f"{name or ''} {price_text}",
        "image": None,
        "disabled": False,
        "href": "",
        "sourceId": "",
    }
    card.update(extra)
    return card


def test_strategy_appends_generic_fallback_selectors() -> None:
    strategy = BLINKIT_STRATEGIES[0]
    assert strategy.name == "blinkit-product-card"
    assert strategy.name_selectors[-len(selectors.GENERIC_NAME):] == selectors.GENERIC_NAME
    payload = strategy.payload()
    assert payload["mode"] == "cards"
    assert payload["cardSelector"] == PRIMARY_CARD


def test_resolve_image_prefers_real_src_then_lazy_sources() -> None:
    assert resolve_image({"src": "https://cdn.example/a.jpg"}) == "https://cdn.example/a.jpg"
    assert (
        resolve_image({"src": "data:image/gif;base64,R0lG", "dataSrc": "https://cdn.example/b.jpg"})
        == "https://cdn.example/b.jpg"
    )
    assert (
        resolve_image({"src": "", "srcset": "https://cdn.example/c.jpg 1x, https://cdn.example/c2.jpg 2x"})
        == "https://cdn.example/c.jpg"
    )
    assert resolve_image({"src": "//cdn.example/d.jpg"}) == "https://cdn.example/d.jpg"
    assert resolve_image({"src": "/img/e.jpg"}, "https://blinkit.com/s/?q=x") == "https://blinkit.com/img/e.jpg"
    assert resolve_image(None) == ""


def test_card_to_record_marks_out_of_stock_unavailable() -> None:
    card = _card("Hot Wheels Basic Car", "₹199", text="Hot Wheels Basic Car ₹199 Out of Stock")
    record = card_to_record(card, Platform.BLINKIT)

    assert record is not None
    assert record.available is False
    assert record.price == 199


def test_card_to_record_disabled_button_means_unavailable() -> None:
    record = card_to_record(_card("Hot Wheels Basic Car", "₹199", disabled=True), Platform.ZEPTO)
    assert record is not None and record.available is False


def test_card_to_record_discards_missing_name_or_price() -> None:
    assert card_to_record(_card(None, "₹199"), Platform.BLINKIT) is None
    assert card_to_record(_card("Hot Wheels Car", "Add"), Platform.BLINKIT) is None
    assert card_to_record(_card("HW", "₹199"), Platform.BLINKIT) is None


def test_card_to_record_uses_source_id_when_present() -> None:
    record = card_to_record(_card("Hot Wheels Car", "₹1,299", sourceId="58231"), Platform.SWIGGY)
    assert record is not None
    assert record.id == "swiggy-58231"
    assert record.price == 1299


def test_generic_cards_fall_back_to_text_before_price() -> None:
    card = _card(None, "", text="Hot Wheels Monster Truck  ₹349  ADD")
    record = card_to_record(card, Platform.ZEPTO, generic=True)

    assert record is not None
    assert record.name == "Hot Wheels Monster Truck"
    assert record.price == 349


def test_records_from_snapshot_dedupes_on_name_and_price() -> None:
    cards = [
        _card("Hot Wheels Car", "₹199", href="https://blinkit.com/prn/1"),
        _card("hot wheels  car", "₹199", href="https://blinkit.com/prn/2"),
        _card("Hot Wheels Car", "₹249"),
    ]

    records = records_from_snapshot(cards, Platform.BLINKIT)

    assert [(record.name, record.price) for record in records] == [
        ("Hot Wheels Car", 199),
        ("Hot Wheels Car", 249),
    ]
    assert records[0].url == "https://blinkit.com/prn/1"


def test_extract_uses_first_matching_strategy() -> None:
    page = FakePage(
        url="https://blinkit.com/s/?q=hot%20wheels",
        snapshots={
            PRIMARY_CARD: [],
            SECONDARY_CARD: [_card("Hot Wheels Car", "₹199")],
            "generic": [_card("Should Not Appear", "₹1")],
        },
    )

    records = asyncio.run(extract(page, Platform.BLINKIT, BLINKIT_STRATEGIES))

    assert [record.name for record in records] == ["Hot Wheels Car"]
    modes = [payload["mode"] for payload in page.evaluated]
    assert modes == ["cards", "cards"]


def test_extract_falls_back_to_generic_heuristic() -> None:
    page = FakePage(
        snapshots={
            PRIMARY_CARD: PlaywrightError("Execution context was destroyed"),
            "generic": [_card(None, "", text="Hot Wheels 5 Pack ₹349")],
        },
    )

    records = asyncio.run(extract(page, Platform.BLINKIT, BLINKIT_STRATEGIES))

    assert len(records) == 1
    assert records[0].name == "Hot Wheels 5 Pack"
    assert page.evaluated[-1]["mode"] == "generic"


def test_extract_returns_empty_list_when_nothing_matches() -> None:
    page = FakePage()
    assert asyncio.run(extract(page, Platform.ZEPTO, strategies_from(selectors.ZEPTO_CARDS))) == []
