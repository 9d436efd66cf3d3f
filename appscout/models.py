"""
Core data models for AppScout.

Provides:
- App / ListEntry: canonical application record shared by both stores
- Review, Permission, DataSafetyItem / DataSafety, Suggestion
- Ratings, Privacy, VersionEntry for App Store specific lookups
- Store / DataSafetyType enums
- Text and number coercion helpers shared by the normalizer and adapters
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional, Union


StoreId = Union[int, str, None]


# ----------------------------- Enums -----------------------------

class Store(str, Enum):
    """Source system a record was extracted from."""
    APP_STORE = "app_store"
    GOOGLE_PLAY = "google_play"
    UNKNOWN = "unknown"


class DataSafetyType(str, Enum):
    """Coarse classification of a data-safety label."""
    PERSONAL_INFO = "Personal info"
    LOCATION = "Location"
    CONTACTS = "Contacts"
    MEDIA = "Photos/Media/Files"
    AUDIO = "Audio"
    CALENDAR = "Calendar"
    MESSAGES = "Messages"
    PHONE = "Phone"

    @classmethod
    def from_text(cls, text: str) -> Optional["DataSafetyType"]:
        """Classify a free-form data label by keyword; None when nothing matches."""
        t = (text or "").lower()
        # Order matters: "phone" is personal info before "call" is phone
        signals = [
            ("name", cls.PERSONAL_INFO),
            ("email", cls.PERSONAL_INFO),
            ("phone", cls.PERSONAL_INFO),
            ("address", cls.PERSONAL_INFO),
            ("location", cls.LOCATION),
            ("contacts", cls.CONTACTS),
            ("photos", cls.MEDIA),
            ("camera", cls.MEDIA),
            ("microphone", cls.AUDIO),
            ("calendar", cls.CALENDAR),
            ("sms", cls.MESSAGES),
            ("call", cls.PHONE),
        ]
        for keyword, kind in signals:
            if keyword in t:
                return kind
        return None


# ----------------------------- Utilities -----------------------------

def normalize_text(s: Any) -> str:
    """Collapse whitespace and strip."""
    if not isinstance(s, str):
        return ""
    return re.sub(r"\s+", " ", s).strip()


def optional_text(s: Any) -> Optional[str]:
    """Normalized text, or None when blank or not a string."""
    text = normalize_text(s)
    return text or None


def coerce_float(value: Any, default: Optional[float] = None) -> Optional[float]:
    """Convert numbers and numeric strings ("1,234.5", "$0.99") to float."""
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        m = re.search(r"-?\d+(?:\.\d+)?", value.replace(",", ""))
        if not m:
            return default
        try:
            return float(m.group(0))
        except ValueError:
            return default
    return default


def coerce_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    """Convert numbers and numeric strings to int (truncating decimals)."""
    number = coerce_float(value)
    if number is None:
        return default
    return int(number)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _camelize(value: Any) -> Any:
    if isinstance(value, dict):
        return {_camel(k) if isinstance(k, str) else k: _camelize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_camelize(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    return value


class Record:
    """Mixin giving canonical records their camelCase output contract."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dict with camelCase keys."""
        return _camelize(asdict(self))


# ----------------------------- App -----------------------------

@dataclass
class Developer(Record):
    id: StoreId = None
    name: Optional[str] = None
    url: Optional[str] = None


@dataclass
class CategoryRef(Record):
    id: StoreId = None
    name: Optional[str] = None
    genres: List[str] = field(default_factory=list)


@dataclass
class Rating(Record):
    average: Optional[float] = None
    count: int = 0


@dataclass
class Artwork(Record):
    icon: Optional[str] = None
    icon60: Optional[str] = None
    icon100: Optional[str] = None
    icon512: Optional[str] = None


@dataclass
class App(Record):
    """
    Canonical application record.

    Produced identically from App Store JSON and Google Play HTML so calling
    code never needs to know which source supplied the data.
    """

    # Identity (at least one of the two is set)
    id: Optional[int] = None  # numeric store id (App Store trackId)
    app_id: Optional[str] = None  # bundle / package id

    title: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None
    summary: Optional[str] = None
    release_notes: Optional[str] = None

    # Release metadata
    version: Optional[str] = None
    released: Optional[str] = None
    updated: Optional[str] = None

    # Pricing
    price: float = 0.0
    currency: Optional[str] = None
    free: bool = True
    price_text: Optional[str] = None

    developer: Developer = field(default_factory=Developer)
    category: CategoryRef = field(default_factory=CategoryRef)
    rating: Rating = field(default_factory=Rating)

    # Artwork
    artwork: Artwork = field(default_factory=Artwork)
    screenshots: List[str] = field(default_factory=list)
    ipad_screenshots: List[str] = field(default_factory=list)

    # Store specific details
    content_rating: Optional[str] = None
    installs: Optional[str] = None
    size: Optional[str] = None
    min_os_version: Optional[str] = None
    ad_supported: Optional[bool] = None
    in_app_purchases: Optional[bool] = None
    languages: List[str] = field(default_factory=list)
    supported_devices: List[str] = field(default_factory=list)
    kind: Optional[str] = None

    source: str = Store.UNKNOWN.value

    def __post_init__(self):
        """Normalize fields after initialization."""
        self.normalize()

    def normalize(self) -> None:
        """Enforce the pricing invariant and tidy free-text fields."""
        self.title = optional_text(self.title)
        price = coerce_float(self.price, 0.0)
        self.price = price if price and price > 0 else 0.0
        self.free = self.price == 0
        if self.rating.count is None or self.rating.count < 0:
            self.rating.count = 0
        if isinstance(self.source, Store):
            self.source = self.source.value


@dataclass
class ListEntry(App):
    """App-shaped record from a ranked feed; missing fields stay at defaults."""
    rank: int = 0


# ----------------------------- Reviews -----------------------------

@dataclass
class Review(Record):
    """A single user review. Score 0 means "unknown", not zero stars."""

    id: Optional[str] = None
    user_name: str = "Anonymous"
    user_url: Optional[str] = None
    user_image: Optional[str] = None
    score: int = 0
    title: Optional[str] = None
    text: Optional[str] = None
    date: Optional[str] = None  # source format, never reparsed
    version: Optional[str] = None
    reply_text: Optional[str] = None
    reply_date: Optional[str] = None
    thumbs_up: int = 0
    url: Optional[str] = None

    def __post_init__(self):
        self.user_name = normalize_text(self.user_name) or "Anonymous"
        score = coerce_int(self.score, 0)
        self.score = score if 0 <= score <= 5 else 0
        thumbs = coerce_int(self.thumbs_up, 0)
        self.thumbs_up = thumbs if thumbs > 0 else 0


# ----------------------------- Permissions / data safety -----------------------------

@dataclass
class Permission(Record):
    name: str
    type: Optional[str] = None


@dataclass
class DataSafetyItem(Record):
    data: str
    optional: bool = False
    purpose: Optional[str] = None
    type: Optional[str] = None


@dataclass
class SecurityPractice(Record):
    practice: str
    description: Optional[str] = None


@dataclass
class DataSafety(Record):
    data_shared: List[DataSafetyItem] = field(default_factory=list)
    data_collected: List[DataSafetyItem] = field(default_factory=list)
    security_practices: List[SecurityPractice] = field(default_factory=list)
    privacy_policy_url: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (
            self.data_shared
            or self.data_collected
            or self.security_practices
            or self.privacy_policy_url
        )


# ----------------------------- Suggestions -----------------------------

@dataclass
class Suggestion(Record):
    term: str
    priority: int = 0


# ----------------------------- App Store extras -----------------------------

def _empty_histogram() -> Dict[str, int]:
    return {"1": 0, "2": 0, "3": 0, "4": 0, "5": 0}


@dataclass
class Ratings(Record):
    """Rating summary; the lookup API carries no per-star histogram."""
    ratings: int = 0
    average: Optional[float] = None
    histogram: Dict[str, int] = field(default_factory=_empty_histogram)


@dataclass
class PrivacyDataCategory(Record):
    data_category: Optional[str] = None
    identifier: Optional[str] = None
    data_types: List[str] = field(default_factory=list)


@dataclass
class PrivacyType(Record):
    privacy_type: Optional[str] = None
    identifier: Optional[str] = None
    description: Optional[str] = None
    data_categories: List[PrivacyDataCategory] = field(default_factory=list)
    purposes: List[Any] = field(default_factory=list)


@dataclass
class Privacy(Record):
    manage_privacy_choices_url: Optional[str] = None
    privacy_types: List[PrivacyType] = field(default_factory=list)


@dataclass
class VersionEntry(Record):
    version_display: Optional[str] = None
    release_notes: Optional[str] = None
    release_date: Optional[str] = None
    release_timestamp: Optional[str] = None
