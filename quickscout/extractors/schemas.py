"""Data validation schemas for extracted product records."""

from __future__ import annotations

import hashlib
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from quickscout.normalizers import collapse_whitespace, normalize_name

# Digit groups split by thousands separators ("1,299" / "1,00,000").
_GROUPED_DIGITS = re.compile(r"(?<=\d),(?=\d)")
_DIGIT_RUN = re.compile(r"\d+")

MIN_NAME_LENGTH = 3


class Platform(str, Enum):
    """Storefronts tracked by QuickScout."""

    BLINKIT = "blinkit"
    ZEPTO = "zepto"
    SWIGGY = "swiggy"

    @property
    def label(self) -> str:
        return _PLATFORM_LABELS[self]

    @classmethod
    def parse(cls, value: "str | Platform") -> "Platform":
        """Resolve a platform from its key or display label."""

        if isinstance(value, Platform):
            return value
        text = str(value or "").strip().lower()
        for platform in cls:
            if text in (platform.value, platform.label.lower()):
                return platform
        raise ValueError(f"Unknown platform: {value!r}")


_PLATFORM_LABELS = {
    Platform.BLINKIT: "Blinkit",
    Platform.ZEPTO: "Zepto",
    Platform.SWIGGY: "Swiggy Instamart",
}


def parse_price(text: str | None) -> int:
    """Parse a rendered price into whole currency units.

    Thousands separators are dropped and the first contiguous digit run is used,
    so ``"₹1,299 onwards"`` yields ``1299``.  Returns ``0`` when no digits exist.
    """

    if not text:
        return 0

    match = _DIGIT_RUN.search(_GROUPED_DIGITS.sub("", text))
    if not match:
        return 0
    return int(match.group(0))


def derive_record_id(platform: Platform, name: str, price: int, source_id: str | None = None) -> str:
    """Return a storefront-qualified id, stable across runs for the same listing."""

    source = collapse_whitespace(source_id)
    if source:
        return f"{platform.value}-{source}"
    digest = hashlib.sha1(f"{normalize_name(name)}|{price}".encode("utf-8")).hexdigest()
    return f"{platform.value}-{digest[:12]}"


class ProductRecord(BaseModel):
    """Normalised product listing observed on one storefront."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    name: str
    price: int = Field(ge=0)
    image: str = ""
    platform: Platform
    available: bool = True
    url: str = ""
    description: str = ""
    original_price: int | None = Field(default=None, ge=0)
    location: str | None = None

    @field_validator("name", "image", "url", "description", mode="before")
    @classmethod
    def _collapse_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return collapse_whitespace(str(value))

    @property
    def dedup_key(self) -> tuple[str, int]:
        return normalize_name(self.name), self.price

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(mode="json")
        payload["platform"] = self.platform.label
        return payload
