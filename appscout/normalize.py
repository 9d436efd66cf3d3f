"""
Canonical normalization of raw candidate records.

Two steps per entity:

- resolve(): map heterogeneous raw field names onto the entity's canonical
  field names using an explicit alias table (first non-blank alias wins,
  after coercion). Runs on every candidate, before merging.
- build_*(): turn a merged, resolved record into the typed canonical
  dataclass with every field present and defaults filled.

Neither step raises: coercion failures become None and the dataclass
default applies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Type, Union

from appscout.dedupe import is_blank
from appscout.models import (
    App,
    Artwork,
    CategoryRef,
    DataSafetyItem,
    DataSafetyType,
    Developer,
    ListEntry,
    Permission,
    Rating,
    Review,
    SecurityPractice,
    Store,
    Suggestion,
    coerce_float,
    coerce_int,
    normalize_text,
)


logger = logging.getLogger(__name__)

Path = Sequence[Any]
Raw = Dict[str, Any]


# ----------------------------- Path helpers -----------------------------

def get_path(data: Any, path: Union[str, Path]) -> Any:
    """Safely read a nested path from dict/list-like data."""
    if isinstance(path, str):
        path = (path,)
    cur = data
    for key in path:
        if isinstance(cur, dict):
            if key not in cur:
                return None
            cur = cur[key]
            continue
        if isinstance(cur, list) and isinstance(key, int):
            if key < -len(cur) or key >= len(cur):
                return None
            cur = cur[key]
            continue
        return None
    return cur


TEXT_KEYS = ("label", "name", "title", "@value", "value", "text")


def as_text(value: Any) -> str:
    """Convert mixed JSON values to readable normalized text."""
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return normalize_text(value)
    if isinstance(value, (int, float)):
        return normalize_text(str(value))
    if isinstance(value, dict):
        for key in TEXT_KEYS:
            if key in value:
                text = as_text(value.get(key))
                if text:
                    return text
        return ""
    if isinstance(value, list):
        parts = [as_text(v) for v in value[:8]]
        parts = [p for p in parts if p]
        return normalize_text(", ".join(parts))
    return normalize_text(str(value))


def first_raw(data: Any, paths: Iterable[Union[str, Path]]) -> Any:
    """Return the first non-empty raw value for any candidate path."""
    for p in paths:
        val = get_path(data, p)
        if is_blank(val):
            continue
        return val
    return None


def first_text(data: Any, paths: Iterable[Union[str, Path]]) -> str:
    """Return the first non-empty text for any candidate path."""
    for p in paths:
        val = as_text(get_path(data, p))
        if val:
            return val
    return ""


# ----------------------------- Coercers -----------------------------

def text(value: Any) -> Optional[str]:
    return as_text(value) or None


def raw_text(value: Any) -> Optional[str]:
    """Text with inner whitespace preserved (descriptions, review bodies)."""
    if isinstance(value, str):
        return value.strip() or None
    return text(value)


def identifier(value: Any) -> Optional[str]:
    """Opaque identifier; integers become their decimal string."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return text(value)


def number(value: Any) -> Optional[float]:
    if isinstance(value, dict):
        value = as_text(value)
    return coerce_float(value)


def integer(value: Any) -> Optional[int]:
    if isinstance(value, dict):
        value = as_text(value)
    if isinstance(value, str) and not value.strip().replace(",", "").lstrip("-").isdigit():
        return None
    return coerce_int(value)


def count(value: Any) -> Optional[int]:
    """Non-negative integer; "1,234" and "1234+" accepted."""
    if isinstance(value, dict):
        value = as_text(value)
    n = coerce_int(value)
    if n is None or n < 0:
        return None
    return n


def score(value: Any) -> Optional[int]:
    """Star score 1..5; anything else is unknown (None)."""
    if isinstance(value, dict):
        value = first_raw(value, ("ratingValue", "value", "label"))
    n = coerce_float(value if not isinstance(value, str) else value.strip())
    if n is None:
        return None
    n = int(n)
    return n if 1 <= n <= 5 else None


def flag(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        v = value.strip().lower()
        if v in ("true", "yes", "1"):
            return True
        if v in ("false", "no", "0"):
            return False
    return None


def text_list(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    items = value if isinstance(value, list) else [value]
    out = [as_text(v) for v in items]
    out = [v for v in out if v]
    return out or None


def url(value: Any) -> Optional[str]:
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        value = first_raw(value, ("href", "url", "label", "@id"))
        if isinstance(value, dict):
            value = first_raw(value, ("href", "url", "label"))
    t = as_text(value)
    if t.startswith(("http://", "https://", "//", "/")):
        return t
    return None


def url_list(value: Any) -> Optional[List[str]]:
    items = value if isinstance(value, list) else [value]
    out = [u for u in (url(v) for v in items) if u]
    return out or None


# ----------------------------- Alias tables -----------------------------

@dataclass(frozen=True)
class FieldSpec:
    """Aliases (paths) for one canonical field, tried in order, plus coercion."""
    paths: tuple
    coerce: Callable[[Any], Any] = text


def f(*paths: Union[str, Path], coerce: Callable[[Any], Any] = text) -> FieldSpec:
    return FieldSpec(paths=tuple(paths), coerce=coerce)


Schema = Dict[str, FieldSpec]


REVIEW_FIELDS: Schema = {
    "id": f("reviewId", "id", "identifier", "@id", coerce=identifier),
    "userName": f("userName", "author", "authorName", "name"),
    "userImage": f("userImage", "avatar", "authorImage", ("author", "image"), coerce=url),
    "userUrl": f("userUrl", ("author", "url"), coerce=url),
    "title": f("title", "headline"),
    "text": f("text", "comment", "body", "reviewBody", "description", "content", coerce=raw_text),
    "score": f("score", "rating", "starRating", "ratingValue", "reviewRating", "im:rating", coerce=score),
    "date": f("date", "timestamp", "datePublished", "createdAt", "dateCreated", "updated", "dateText"),
    "version": f("version", "appVersion", "im:version"),
    "replyText": f("replyText", "developerComment", "reply", coerce=raw_text),
    "replyDate": f("replyDate", "developerCommentDate"),
    "thumbsUp": f("thumbsUp", "helpful", "upvoteCount", "im:voteCount", coerce=count),
    "url": f("url", ("link", "attributes", "href"), ("link", 0, "attributes", "href"), coerce=url),
}

APP_FIELDS: Schema = {
    "id": f("trackId", "id", coerce=integer),
    "appId": f("appId", "bundleId", "packageName", coerce=identifier),
    "title": f("title", "trackName", "name"),
    "url": f("url", "trackViewUrl", coerce=url),
    "description": f("description", coerce=raw_text),
    "summary": f("summary"),
    "releaseNotes": f("releaseNotes", "recentChanges", "whatsNew", coerce=raw_text),
    "version": f("version", "softwareVersion"),
    "released": f("released", "releaseDate", "datePublished"),
    "updated": f("updated", "currentVersionReleaseDate", "dateModified"),
    "price": f("price", ("offers", "price"), ("offers", 0, "price"), coerce=number),
    "currency": f("currency", "priceCurrency", ("offers", "priceCurrency"), ("offers", 0, "priceCurrency")),
    "priceText": f("priceText", "formattedPrice"),
    "developerId": f("developerId", "artistId", coerce=identifier),
    "developerName": f("developerName", "artistName", "developer", ("author", "name"), "sellerName"),
    "developerUrl": f("developerUrl", "artistViewUrl", coerce=url),
    "categoryId": f("categoryId", "primaryGenreId", "genreId", coerce=identifier),
    "categoryName": f("categoryName", "primaryGenreName", "applicationCategory", "genre"),
    "genres": f("genres", coerce=text_list),
    "ratingAverage": f("ratingAverage", "averageUserRating", "score", ("aggregateRating", "ratingValue"), coerce=number),
    "ratingCount": f("ratingCount", "userRatingCount", "ratings", ("aggregateRating", "ratingCount"), coerce=count),
    "icon": f("icon", "artworkUrl512", "artworkUrl100", "artworkUrl60", "image", coerce=url),
    "icon60": f("icon60", "artworkUrl60", coerce=url),
    "icon100": f("icon100", "artworkUrl100", coerce=url),
    "icon512": f("icon512", "artworkUrl512", coerce=url),
    "screenshots": f("screenshots", "screenshotUrls", "screenshot", coerce=url_list),
    "ipadScreenshots": f("ipadScreenshots", "ipadScreenshotUrls", coerce=url_list),
    "contentRating": f("contentRating", "contentAdvisoryRating"),
    "installs": f("installs", "numDownloads"),
    "size": f("size", "fileSize", "fileSizeBytes"),
    "minOsVersion": f("minOsVersion", "minimumOsVersion", "androidVersion"),
    "adSupported": f("adSupported", coerce=flag),
    "inAppPurchases": f("inAppPurchases", "offersIAP", coerce=flag),
    "languages": f("languages", "languageCodesISO2A", coerce=text_list),
    "supportedDevices": f("supportedDevices", coerce=text_list),
    "kind": f("kind", "wrapperType"),
    "rank": f("rank", coerce=count),
}

PERMISSION_FIELDS: Schema = {
    "name": f("name", "permission", "label", "title"),
    "type": f("type", "category"),
}

DATA_SAFETY_FIELDS: Schema = {
    "data": f("data", "name", "label", "title"),
    "optional": f("optional", coerce=flag),
    "purpose": f("purpose", "purposes"),
    "type": f("type"),
    "section": f("section"),
}

SUGGESTION_FIELDS: Schema = {
    "term": f("term", "suggestion", "q", "s"),
    "priority": f("priority", coerce=integer),
}


def resolve(raw: Raw, schema: Schema) -> Raw:
    """Map a raw candidate onto canonical field names; missing fields are None."""
    out: Raw = {}
    for name, field_spec in schema.items():
        value = None
        for path in field_spec.paths:
            candidate = get_path(raw, path)
            if is_blank(candidate):
                continue
            try:
                candidate = field_spec.coerce(candidate)
            except (ValueError, TypeError, AttributeError) as e:
                logger.debug("Could not coerce %s from %r: %s", name, candidate, e)
                continue
            if not is_blank(candidate):
                value = candidate
                break
        out[name] = value
    if "_strategy" in raw:
        out["_strategy"] = raw["_strategy"]
    return out


# ----------------------------- Builders -----------------------------

def build_review(r: Raw) -> Review:
    return Review(
        id=r.get("id"),
        user_name=r.get("userName") or "Anonymous",
        user_url=r.get("userUrl"),
        user_image=r.get("userImage"),
        score=r.get("score") or 0,
        title=r.get("title"),
        text=r.get("text"),
        date=r.get("date"),
        version=r.get("version"),
        reply_text=r.get("replyText"),
        reply_date=r.get("replyDate"),
        thumbs_up=r.get("thumbsUp") or 0,
        url=r.get("url"),
    )


def build_app(
    r: Raw,
    source: Union[Store, str] = Store.UNKNOWN,
    cls: Type[App] = App,
) -> Optional[App]:
    """Typed App (or ListEntry) from a resolved record; None without any identifier."""
    if r.get("id") is None and not r.get("appId"):
        return None

    icon = r.get("icon") or r.get("icon512") or r.get("icon100") or r.get("icon60")
    kwargs: Dict[str, Any] = dict(
        id=r.get("id"),
        app_id=r.get("appId"),
        title=r.get("title"),
        url=r.get("url"),
        description=r.get("description"),
        summary=r.get("summary"),
        release_notes=r.get("releaseNotes"),
        version=r.get("version"),
        released=r.get("released"),
        updated=r.get("updated"),
        price=r.get("price") or 0.0,
        currency=r.get("currency"),
        price_text=r.get("priceText"),
        developer=Developer(
            id=r.get("developerId"),
            name=r.get("developerName"),
            url=r.get("developerUrl"),
        ),
        category=CategoryRef(
            id=r.get("categoryId"),
            name=r.get("categoryName"),
            genres=r.get("genres") or [],
        ),
        rating=Rating(
            average=r.get("ratingAverage"),
            count=r.get("ratingCount") or 0,
        ),
        artwork=Artwork(
            icon=icon,
            icon60=r.get("icon60"),
            icon100=r.get("icon100"),
            icon512=r.get("icon512"),
        ),
        screenshots=r.get("screenshots") or [],
        ipad_screenshots=r.get("ipadScreenshots") or [],
        content_rating=r.get("contentRating"),
        installs=r.get("installs"),
        size=r.get("size"),
        min_os_version=r.get("minOsVersion"),
        ad_supported=r.get("adSupported"),
        in_app_purchases=r.get("inAppPurchases"),
        languages=r.get("languages") or [],
        supported_devices=r.get("supportedDevices") or [],
        kind=r.get("kind"),
        source=source,
    )
    if issubclass(cls, ListEntry):
        kwargs["rank"] = r.get("rank") or 0
    return cls(**kwargs)


def build_permission(r: Raw) -> Optional[Permission]:
    name = r.get("name")
    if not name:
        return None
    return Permission(name=name, type=r.get("type"))


def build_data_safety_item(r: Raw) -> Optional[DataSafetyItem]:
    data = r.get("data")
    if not data:
        return None
    data_type = r.get("type")
    if not data_type:
        classified = DataSafetyType.from_text(data)
        data_type = classified.value if classified else None
    return DataSafetyItem(
        data=data,
        optional=bool(r.get("optional")),
        purpose=r.get("purpose"),
        type=data_type,
    )


def build_security_practice(r: Raw) -> Optional[SecurityPractice]:
    practice = normalize_text(r.get("practice"))
    if not practice:
        return None
    return SecurityPractice(practice=practice, description=text(r.get("description")))


def build_suggestion(r: Raw) -> Optional[Suggestion]:
    term = r.get("term")
    if not term:
        return None
    return Suggestion(term=term, priority=r.get("priority") or 0)
