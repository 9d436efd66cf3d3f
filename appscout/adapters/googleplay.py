"""
Google Play adapters.

Google Play has no public API: every source is an HTML page (or, for
suggestions, a JSON payload). Fields may surface as JSON-LD, as literals
inside inline scripts, or only in the visible markup, so most adapters
bind several strategies and let the merger combine what each one found.

Field rules for the markup strategies live in module-level tables so a new
fallback pattern is a one-line change.
"""

from __future__ import annotations

import re
from typing import Any, Iterator, List, Optional, Sequence
from urllib.parse import unquote

from appscout.adapters.base import EntityAdapter, SingleEntityAdapter
from appscout.adapters.suggest import SuggestionAdapter
from appscout.dedupe import app_key, is_blank, name_key, review_key
from appscout.extract.fields import (
    clean_text,
    digits,
    extract_all,
    extract_fields,
    extract_first,
    rule,
    to_float,
    to_int,
    truncate,
)
from appscout.extract.html import Page, select_blocks
from appscout.extract.jsonld import is_type, jsonld_objects
from appscout.extract.pipeline import (
    EMBEDDED_SCRIPT,
    HEURISTIC_TEXT,
    STRUCTURED_DATA,
    VISIBLE_MARKUP,
    Candidate,
    Strategy,
)
from appscout.extract.scripts import has_any_key, keyed_values, script_json_values, walk_dicts
from appscout.models import App, DataSafety, ListEntry, Permission, Review, Store
from appscout.normalize import (
    APP_FIELDS,
    DATA_SAFETY_FIELDS,
    PERMISSION_FIELDS,
    REVIEW_FIELDS,
    as_text,
    build_app,
    build_data_safety_item,
    build_permission,
    build_review,
    build_security_practice,
    count,
    f,
    first_text,
    identifier,
    number,
    raw_text,
    resolve,
    score,
    url,
    url_list,
)


DETAILS_URL = "https://play.google.com/store/apps/details?id={}"

_APP_ID_RE = re.compile(r"/store/apps/details\?id=([^&\"'#\s<>]+)")


def _app_id_from_url(value: Any) -> Optional[str]:
    m = _APP_ID_RE.search(as_text(value))
    return unquote(m.group(1)) if m else None


def _true(_: str) -> bool:
    return True


def _price(value: str) -> float:
    """"Free" -> 0.0, "$2.99" -> 2.99; anything else is a non-match."""
    text = clean_text(value).lower()
    if text in ("free", "install", "0"):
        return 0.0
    return to_float(re.sub(r"[^0-9.,]", "", text))


def _android_version(value: str) -> str:
    text = clean_text(value)
    m = re.search(r"\d+(?:\.\d+)?", text)
    return m.group(0) if m else text


def _has_values(candidate: Candidate) -> bool:
    return any(not is_blank(v) for v in candidate.values())


# Mapping of schema.org SoftwareApplication properties onto App field names
JSONLD_APP_FIELDS = {
    "appId": f("url", coerce=_app_id_from_url),
    "title": f("name"),
    "description": f("description", coerce=raw_text),
    "url": f("url", coerce=url),
    "icon": f("image", coerce=url),
    "screenshots": f("screenshot", coerce=url_list),
    "ratingAverage": f(("aggregateRating", "ratingValue"), coerce=number),
    "ratingCount": f(("aggregateRating", "ratingCount"), ("aggregateRating", "reviewCount"), coerce=count),
    "price": f(("offers", "price"), ("offers", 0, "price"), coerce=number),
    "currency": f(("offers", "priceCurrency"), ("offers", 0, "priceCurrency")),
    "contentRating": f("contentRating"),
    "categoryName": f("applicationCategory"),
    "developerName": f("author"),
    "developerUrl": f(("author", "url"), coerce=url),
    "version": f("softwareVersion"),
}

APP_TYPES = ("SoftwareApplication", "MobileApplication", "VideoGame")


# ----------------------------- App details -----------------------------

APP_MARKUP_RULES = {
    "appId": [
        rule(r"data-docid=[\"']([^\"']+)[\"']"),
        rule(r"/store/apps/details\?id=([^&\"'#\s<>]+)"),
    ],
    "title": [
        rule(r"<h1[^>]*class=[\"'][^\"']*title[\"'][^>]*>([^<]+)</h1>", post=clean_text),
        rule(r"<meta[^>]*property=[\"']og:title[\"'][^>]*content=[\"']([^\"']+)[\"']", post=clean_text),
    ],
    "developerName": [
        rule(r"<a[^>]*href=[\"'][^\"']*/store/apps/dev(?:eloper)?\?[^\"']*[\"'][^>]*>([^<]+)</a>", post=clean_text),
        rule(r"<span[^>]*itemprop=[\"']name[\"'][^>]*>([^<]+)</span>", post=clean_text),
    ],
    "developerId": [
        rule(r"/store/apps/dev(?:eloper)?\?id=([^&\"'#\s<>]+)", post=unquote),
    ],
    "priceText": [
        rule(r"<meta[^>]*itemprop=[\"']price[\"'][^>]*content=[\"']([^\"']+)[\"']", post=clean_text),
        rule(r"<span[^>]*class=[\"'][^\"']*price[\"'][^>]*>([^<]+)</span>", post=clean_text),
    ],
    "price": [
        rule(r"<meta[^>]*itemprop=[\"']price[\"'][^>]*content=[\"']([^\"']+)[\"']", post=_price),
        rule(r"<span[^>]*class=[\"'][^\"']*price[\"'][^>]*>([^<]+)</span>", post=_price),
    ],
    "currency": [
        rule(r"<meta[^>]*itemprop=[\"']priceCurrency[\"'][^>]*content=[\"']([^\"']+)[\"']"),
    ],
    "ratingAverage": [
        rule(r"<div[^>]*class=[\"'][^\"']*rating[\"'][^>]*>([^<]+)</div>", post=to_float),
        rule(r"<meta[^>]*itemprop=[\"']ratingValue[\"'][^>]*content=[\"']([^\"']+)[\"']", post=to_float),
    ],
    "ratingCount": [
        rule(r"<meta[^>]*itemprop=[\"']ratingCount[\"'][^>]*content=[\"']([^\"']+)[\"']", post=to_int),
    ],
    "icon": [
        rule(r"<img[^>]*class=[\"'][^\"']*cover-image[\"'][^>]*src=[\"']([^\"']+)[\"']"),
        rule(r"<meta[^>]*property=[\"']og:image[\"'][^>]*content=[\"']([^\"']+)[\"']"),
    ],
    "description": [
        rule(r"<div[^>]*class=[\"'][^\"']*description[\"'][^>]*>([\s\S]*?)</div>", post=clean_text),
        rule(r"<meta[^>]*property=[\"']og:description[\"'][^>]*content=[\"']([^\"']+)[\"']", post=clean_text),
    ],
    "version": [
        rule(r"Current Version[\"'][^>]*>([^<]+)</div>"),
        rule(r"Version[\"'][^>]*>([^<]+)</div>"),
        rule(r"<div[^>]*itemprop=[\"']softwareVersion[\"'][^>]*>([^<]+)</div>"),
    ],
    "contentRating": [
        rule(r"Content Rating[\"'][^>]*>([^<]+)</div>"),
        rule(r"<div[^>]*itemprop=[\"']contentRating[\"'][^>]*>([^<]+)</div>"),
    ],
    "installs": [
        rule(r"<div[^>]*itemprop=[\"']numDownloads[\"'][^>]*>([^<]+)</div>", post=digits),
    ],
    "size": [
        rule(r"Size[\"'][^>]*>([^<]+)</div>"),
        rule(r"<div[^>]*itemprop=[\"']fileSize[\"'][^>]*>([^<]+)</div>"),
    ],
    "minOsVersion": [
        rule(r"Requires Android[\"'][^>]*>([^<]+)</div>", post=_android_version),
    ],
    "releaseNotes": [
        rule(r"What's New[\"'][^>]*>([\s\S]*?)</div>", post=truncate(500)),
        rule(r"<div[^>]*class=[\"'][^\"']*recent-changes[\"'][^>]*>([\s\S]*?)</div>", post=truncate(500)),
    ],
    "adSupported": [rule(r"(Contains Ads)[\"']", post=_true)],
    "inAppPurchases": [rule(r"(In-app purchases)[\"']", post=_true)],
    "categoryId": [
        rule(r"<a[^>]*href=[\"'][^\"']*/store/apps/category/([^/\"'?#]+)[\"'?#]"),
    ],
    "updated": [rule(r"Updated[\"'][^>]*>([^<]+)</div>")],
}

SCREENSHOT_RULES = [
    rule(r"<img[^>]*class=[\"'][^\"']*screenshot[\"'][^>]*src=[\"']([^\"']+)[\"']"),
]

APP_SCRIPT_RULES = {
    "version": [
        rule(r"softwareVersion[\"']:\s*[\"']([^\"']+)[\"']"),
        rule(r"version[\"']:\s*[\"']([^\"']+)[\"']"),
    ],
    "contentRating": [rule(r"contentRating[\"']:\s*[\"']([^\"']+)[\"']")],
    "installs": [
        rule(r"numDownloads[\"']:\s*[\"']([^\"']+)[\"']", post=digits),
        rule(r"installs[\"']:\s*[\"']([^\"']+)[\"']", post=digits),
    ],
    "size": [rule(r"fileSize[\"']:\s*[\"']([^\"']+)[\"']")],
    "minOsVersion": [
        rule(r"androidVersion[\"']:\s*[\"']([^\"']+)[\"']", post=_android_version),
        rule(r"operatingSystem[\"']:\s*[\"']Android\s*([^\"']+)[\"']", post=_android_version),
    ],
    "releaseNotes": [rule(r"releaseNotes[\"']:\s*[\"']([^\"']+)[\"']", post=truncate(500))],
    "adSupported": [rule(r"(adSupported)[\"']:\s*true", post=_true)],
    "inAppPurchases": [rule(r"(offersIAP)[\"']:\s*true", post=_true)],
}

APP_TEXT_RULES = {
    "ratingCount": [rule(r"([\d,]+)\s*(?:ratings|reviews)", post=to_int)],
    "installs": [rule(r"([\d,]+)\+?\s*(?:installs|downloads)", post=digits)],
}


_is_app_like = has_any_key("appId", "packageName")


def _play_app(record: Candidate, cls=App) -> Optional[App]:
    """Fill Play-specific derived fields, then build."""
    app_id = record.get("appId")
    if app_id and not record.get("url"):
        record["url"] = DETAILS_URL.format(app_id)
    description = record.get("description")
    if description and not record.get("summary"):
        record["summary"] = description[:200]
    if record.get("categoryId") and not record.get("categoryName"):
        record["categoryName"] = record["categoryId"]
    return build_app(record, Store.GOOGLE_PLAY, cls=cls)


class PlayAppAdapter(SingleEntityAdapter[App]):
    """
    App details page. All four strategies apply; every candidate
    describes the page's app, so they all merge into one record.
    """

    name = "play_app"
    schema = APP_FIELDS

    def strategies(self) -> Sequence[Strategy]:
        return [
            Strategy(STRUCTURED_DATA, self._jsonld, "jsonld_app"),
            Strategy(EMBEDDED_SCRIPT, self._scripts, "script_fields"),
            Strategy(VISIBLE_MARKUP, self._markup, "markup_fields"),
            Strategy(HEURISTIC_TEXT, self._text, "text_counts"),
        ]

    def prepare(self, document: Any) -> Page:
        return Page(document)

    def _jsonld(self, page: Page) -> Iterator[Candidate]:
        # The first application object is the page's own app
        for obj in jsonld_objects(page.soup, *APP_TYPES):
            yield resolve(obj, JSONLD_APP_FIELDS)
            return

    def _scripts(self, page: Page) -> Iterator[Candidate]:
        app_object = next(
            (
                obj
                for script in page.scripts
                for value in script_json_values(script)
                for obj in walk_dicts(value, _is_app_like)
            ),
            None,
        )
        if app_object is not None:
            yield app_object
        found = extract_fields("\n".join(page.scripts), APP_SCRIPT_RULES)
        if found:
            yield found

    def _markup(self, page: Page) -> Iterator[Candidate]:
        found = extract_fields(page.html, APP_MARKUP_RULES)
        screenshots = extract_all(page.html, SCREENSHOT_RULES)
        if screenshots:
            found["screenshots"] = screenshots
        if found:
            yield found

    def _text(self, page: Page) -> Iterator[Candidate]:
        found = extract_fields(page.text(), APP_TEXT_RULES)
        if found:
            yield found

    def identity_key(self, candidate: Candidate) -> Optional[str]:
        return "page"

    def build(self, record: Candidate) -> Optional[App]:
        return _play_app(record)


# ----------------------------- Reviews -----------------------------

REVIEW_BLOCK_SELECTORS = (
    'div[class$="review"]',
    'div[itemprop="review"]',
    'article[class$="review"]',
    "div[data-review-id]",
)

REVIEW_RULES = {
    "id": [
        rule(r"data-review-id=[\"']([^\"']+)[\"']"),
        rule(r"reviewId[\"']:\s*[\"']([^\"']+)[\"']"),
    ],
    "score": [
        rule(r"aria-label=[\"'](?:Rated\s+)?(\d+)\s*(?:out of \d+\s*)?stars?", post=to_int),
        rule(r"<div[^>]*class=[\"'][^\"']*rating[\"'][^>]*>(\d+)[^<]*</div>", post=to_int),
        rule(r"ratingValue[\"']:\s*[\"']?(\d+)", post=to_int),
        rule(r"<meta[^>]*itemprop=[\"']ratingValue[\"'][^>]*content=[\"'](\d+)[\"']", post=to_int),
        rule(r"<span[^>]*class=[\"'][^\"']*star-rating[\"'][^>]*>(\d+)", post=to_int),
    ],
    "text": [
        rule(r"<span[^>]*class=[\"'][^\"']*review-body[\"'][^>]*>([\s\S]*?)</span>", post=clean_text),
        rule(r"<div[^>]*class=[\"'][^\"']*review-text[\"'][^>]*>([\s\S]*?)</div>", post=clean_text),
        rule(r"<p[^>]*class=[\"'][^\"']*review-text[\"'][^>]*>([\s\S]*?)</p>", post=clean_text),
        rule(r"reviewBody[\"']:\s*[\"']([^\"']+)[\"']", post=clean_text),
        rule(r"<span[^>]*itemprop=[\"']reviewBody[\"'][^>]*>([\s\S]*?)</span>", post=clean_text),
    ],
    "userName": [
        rule(r"<span[^>]*class=[\"'][^\"']*author-name[\"'][^>]*>([^<]+)</span>", post=clean_text),
        rule(r"<a[^>]*class=[\"'][^\"']*author[\"'][^>]*>([^<]+)</a>", post=clean_text),
        rule(r"<span[^>]*itemprop=[\"']author[\"'][^>]*>([^<]+)</span>", post=clean_text),
        rule(r"author[\"']:\s*[\"']([^\"']+)[\"']", post=clean_text),
    ],
    "date": [
        rule(r"<span[^>]*class=[\"'][^\"']*review-date[\"'][^>]*>([^<]+)</span>"),
        rule(r"<time[^>]*datetime=[\"']([^\"']+)[\"']"),
        rule(r"<span[^>]*itemprop=[\"']datePublished[\"'][^>]*>([^<]+)</span>"),
        rule(r"datePublished[\"']:\s*[\"']([^\"']+)[\"']"),
    ],
    "thumbsUp": [
        rule(r"(\d+)\s*(?:thumbs?|helpful|útil)", post=to_int),
        rule(r"thumbsUp[\"']:\s*[\"']?(\d+)", post=to_int),
    ],
}

PAGINATION_RULES = [
    rule(r"nextPaginationToken[\"']?\s*:\s*[\"']([^\"']+)[\"']"),
    rule(r"paginationToken[\"']?\s*:\s*[\"']([^\"']+)[\"']"),
    rule(r"data-pagination-token=[\"']([^\"']+)[\"']"),
]

JSONLD_REVIEW_FIELDS = {
    "id": f("@id", "identifier", coerce=identifier),
    "userName": f("author"),
    "userImage": f(("author", "image"), coerce=url),
    "date": f("datePublished", "dateCreated"),
    "score": f("reviewRating", "ratingValue", coerce=score),
    "title": f("headline", "name"),
    "text": f("reviewBody", "description", "text", coerce=raw_text),
    "thumbsUp": f("upvoteCount", coerce=count),
}

REVIEW_SCRIPT_KEYS = ("reviews", "data", "comments")
_REVIEW_SCRIPT_HINT = re.compile(r"review|rating|_df_", re.I)
_is_review_like = has_any_key("reviewId", "text", "comment", "reviewBody")


def pagination_token(document: Any) -> Optional[str]:
    """Opaque next-page token of a reviews page, if the page carries one."""
    html = document.html if isinstance(document, Page) else document
    return extract_first(html, PAGINATION_RULES)


class PlayReviewsAdapter(EntityAdapter[Review]):
    """Reviews from an app page: JSON-LD, script literals, review blocks."""

    name = "play_reviews"
    schema = REVIEW_FIELDS

    def strategies(self) -> Sequence[Strategy]:
        return [
            Strategy(STRUCTURED_DATA, self._jsonld, "jsonld_reviews"),
            Strategy(EMBEDDED_SCRIPT, self._scripts, "script_reviews"),
            Strategy(VISIBLE_MARKUP, self._blocks, "review_blocks"),
        ]

    def prepare(self, document: Any) -> Page:
        return Page(document)

    def _jsonld(self, page: Page) -> Iterator[Candidate]:
        for obj in jsonld_objects(page.soup):
            if is_type(obj, "Review") or "reviewBody" in obj:
                yield resolve(obj, JSONLD_REVIEW_FIELDS)

    def _scripts(self, page: Page) -> Iterator[Candidate]:
        for script in page.scripts:
            if not _REVIEW_SCRIPT_HINT.search(script):
                continue
            for _, value in keyed_values(script, REVIEW_SCRIPT_KEYS):
                yield from walk_dicts(value, _is_review_like)

    def _blocks(self, page: Page) -> Iterator[Candidate]:
        for block in select_blocks(page.soup, REVIEW_BLOCK_SELECTORS):
            found = extract_fields(block, REVIEW_RULES)
            if found.get("score") or found.get("text") or found.get("userName"):
                yield found

    def identity_key(self, candidate: Candidate) -> Optional[str]:
        return review_key(candidate)

    def build(self, record: Candidate) -> Review:
        return build_review(record)


# ----------------------------- Permissions -----------------------------

PERMISSION_SECTION_SELECTORS = (
    'div[class$="permissions"]',
    "div#permissions",
    'section[class$="permissions"]',
    "div[data-permissions]",
)

PERMISSION_ITEM_SELECTORS = (
    'div[class$="permission"]',
    'li[class$="permission"]',
    "[data-permission]",
)

PERMISSION_RULES = {
    "name": [
        rule(r"<div[^>]*class=[\"'][^\"']*permission-name[\"'][^>]*>([^<]+)</div>", post=clean_text),
        rule(r"<span[^>]*class=[\"'][^\"']*permission-name[\"'][^>]*>([^<]+)</span>", post=clean_text),
        rule(r"<div[^>]*class=[\"'][^\"']*title[\"'][^>]*>([^<]+)</div>", post=clean_text),
        rule(r"<span[^>]*>([^<]+)</span>", post=clean_text),
        rule(r"<p[^>]*>([^<]+)</p>", post=clean_text),
        rule(r"^\s*<[^>]+>\s*([^<]+)", post=clean_text),
    ],
    "type": [
        rule(r"<div[^>]*class=[\"'][^\"']*permission-type[\"'][^>]*>([^<]+)</div>", post=clean_text),
        rule(r"<span[^>]*class=[\"'][^\"']*permission-type[\"'][^>]*>([^<]+)</span>", post=clean_text),
        rule(r"<div[^>]*class=[\"'][^\"']*category[\"'][^>]*>([^<]+)</div>", post=clean_text),
        rule(r"data-type=[\"']([^\"']+)[\"']"),
    ],
}

PERMISSION_TEXT_RULES = [
    rule(
        r"(?:permission|allows?)\s+(?:the\s+)?(?:app\s+)?(?:to\s+)?"
        r"(?:access|read|write|modify|delete|use|send|receive|view|get|set|manage|control|change|enable|disable)"
        r"\s+([^.,!?]+)",
        post=clean_text,
    ),
]

_PERMISSION_SCRIPT_HINT = re.compile(r"permission", re.I)


def _permission_items(value: Any) -> Iterator[Candidate]:
    if isinstance(value, str):
        yield {"name": value}
    elif isinstance(value, list):
        for item in value:
            if isinstance(item, str):
                yield {"name": item}
            elif isinstance(item, dict):
                yield item
    elif isinstance(value, dict):
        yield from walk_dicts(value, has_any_key("name", "permission", "label", "title"))


class PlayPermissionsAdapter(EntityAdapter[Permission]):
    """
    Permissions declared on an app page. The text heuristic is a
    best-effort fallback for pages without any permission structure.
    """

    name = "play_permissions"
    schema = PERMISSION_FIELDS

    def strategies(self) -> Sequence[Strategy]:
        return [
            Strategy(STRUCTURED_DATA, self._structured, "jsonld_permissions"),
            Strategy(EMBEDDED_SCRIPT, self._scripts, "script_permissions"),
            Strategy(VISIBLE_MARKUP, self._markup, "permission_list"),
            Strategy(HEURISTIC_TEXT, self._text, "permission_phrases"),
        ]

    def prepare(self, document: Any) -> Page:
        return Page(document)

    def _structured(self, page: Page) -> Iterator[Candidate]:
        for obj in jsonld_objects(page.soup, *APP_TYPES):
            value = obj.get("permissions")
            if isinstance(value, str):
                value = [p.strip() for p in value.split(",")]
            yield from _permission_items(value)
        for meta in page.soup.find_all("meta", attrs={"name": "permission"}):
            content = (meta.get("content") or "").strip()
            if content:
                yield {"name": content}

    def _scripts(self, page: Page) -> Iterator[Candidate]:
        for script in page.scripts:
            if not _PERMISSION_SCRIPT_HINT.search(script):
                continue
            for _, value in keyed_values(script, ("permissions", "permissionList", "usesPermissions")):
                yield from _permission_items(value)

    def _markup(self, page: Page) -> Iterator[Candidate]:
        for section in select_blocks(page.soup, PERMISSION_SECTION_SELECTORS):
            for item in select_blocks(section, PERMISSION_ITEM_SELECTORS):
                found = extract_fields(item, PERMISSION_RULES)
                if found.get("name"):
                    yield found

    def _text(self, page: Page) -> Iterator[Candidate]:
        for phrase in extract_all(page.text(), PERMISSION_TEXT_RULES):
            if 5 < len(phrase) < 100:
                yield {"name": phrase}

    _name_key = staticmethod(name_key("name"))

    def identity_key(self, candidate: Candidate) -> Optional[str]:
        return self._name_key(candidate)

    def build(self, record: Candidate) -> Optional[Permission]:
        return build_permission(record)


# ----------------------------- Data safety -----------------------------

DATA_SAFETY_KEYS = ("dataSafety", "data-safety", "data_safety")

DATA_SAFETY_SECTION_SELECTORS = (
    'div[class$="data-safety"]',
    "section#data-safety",
    "div#data-safety",
    'section[class$="data-safety"]',
)

DATA_ITEM_RULES = [
    rule(r"<span(?![^>]*purpose)[^>]*>([^<]+)</span>", post=clean_text),
    rule(r"<div[^>]*class=[\"'][^\"']*item[\"'][^>]*>([^<]+)</div>", post=clean_text),
]

PURPOSE_RULES = [
    rule(r"purpose[\"']:\s*[\"']([^\"']+)[\"']", post=clean_text),
    rule(r"<span[^>]*class=[\"'][^\"']*purpose[\"'][^>]*>([^<]+)</span>", post=clean_text),
]

PRACTICE_RULES = [rule(r">\s*([^<>]{6,}?)\s*<", post=clean_text)]

PRACTICE_DESCRIPTION_RULES = [
    rule(r"description[\"']:\s*[\"']([^\"']+)[\"']", post=clean_text),
    rule(r"<p[^>]*>([^<]+)</p>", post=clean_text),
    rule(r"<span[^>]*>([^<]+)</span>", post=clean_text),
]

PRIVACY_POLICY_RULES = [
    rule(r"<a[^>]*href=[\"']([^\"']*privacy[^\"']*)[\"'][^>]*>"),
    rule(r"privacy[^\"']*policy[\"'][^>]*href=[\"']([^\"']+)[\"']"),
    rule(r"<link[^>]*rel=[\"']privacy-policy[\"'][^>]*href=[\"']([^\"']+)[\"']"),
    rule(r"privacyPolicyUrl[\"']:\s*[\"']([^\"']+)[\"']"),
]

_STOPWORDS = {"and", "or", "the", "a", "an"}


def _safety_section(ds: Any) -> Candidate:
    if not isinstance(ds, dict):
        return {}
    return {
        "dataShared": ds.get("dataShared"),
        "dataCollected": ds.get("dataCollected"),
        "securityPractices": ds.get("securityPractices"),
        "privacyPolicyUrl": ds.get("privacyPolicyUrl"),
    }


def _markup_items(section: str, selectors: Sequence[str]) -> List[Candidate]:
    items: List[Candidate] = []
    for block in select_blocks(section, selectors):
        optional = "optional" in block.lower()
        purpose = extract_first(block, PURPOSE_RULES)
        for data in extract_all(block, DATA_ITEM_RULES):
            if not 2 < len(data) < 100 or data.lower() in _STOPWORDS:
                continue
            items.append({"data": data, "optional": optional, "purpose": purpose})
    return items


def _safety_items(value: Any) -> List:
    items = []
    seen = set()
    for raw in value if isinstance(value, list) else []:
        if isinstance(raw, str):
            raw = {"data": raw}
        if not isinstance(raw, dict):
            continue
        item = build_data_safety_item(resolve(raw, DATA_SAFETY_FIELDS))
        if item is None or item.data in seen:
            continue
        seen.add(item.data)
        items.append(item)
    return items


def _security_practices(value: Any) -> List:
    practices = []
    for raw in value if isinstance(value, list) else []:
        if isinstance(raw, str):
            raw = {"practice": raw}
        if not isinstance(raw, dict):
            continue
        practice = build_security_practice(
            {
                "practice": first_text(raw, ("practice", "name", "title", "label")),
                "description": raw.get("description"),
            }
        )
        if practice is not None:
            practices.append(practice)
    return practices


class PlayDataSafetyAdapter(SingleEntityAdapter[DataSafety]):
    """
    Data safety section of an app page. Every strategy yields a partial
    section; lists found by a higher-priority strategy win as a whole.
    """

    name = "play_datasafety"

    def strategies(self) -> Sequence[Strategy]:
        return [
            Strategy(STRUCTURED_DATA, self._jsonld, "jsonld_datasafety"),
            Strategy(EMBEDDED_SCRIPT, self._scripts, "script_datasafety"),
            Strategy(VISIBLE_MARKUP, self._markup, "datasafety_section"),
        ]

    def prepare(self, document: Any) -> Page:
        return Page(document)

    def _jsonld(self, page: Page) -> Iterator[Candidate]:
        for obj in jsonld_objects(page.soup):
            for key in DATA_SAFETY_KEYS:
                found = _safety_section(obj.get(key))
                if _has_values(found):
                    yield found

    def _scripts(self, page: Page) -> Iterator[Candidate]:
        for script in page.scripts:
            for _, value in keyed_values(script, DATA_SAFETY_KEYS):
                found = _safety_section(value)
                if _has_values(found):
                    yield found

    def _markup(self, page: Page) -> Iterator[Candidate]:
        found: Candidate = {"privacyPolicyUrl": extract_first(page.html, PRIVACY_POLICY_RULES)}
        for section in select_blocks(page.soup, DATA_SAFETY_SECTION_SELECTORS, limit=1):
            found["dataShared"] = _markup_items(
                section, ('div[class$="data-shared"]', 'section[class$="data-shared"]')
            )
            found["dataCollected"] = _markup_items(
                section, ('div[class$="data-collected"]', 'section[class$="data-collected"]')
            )
            practices = []
            for block in select_blocks(section, ('div[class$="security-practices"]',)):
                practice = extract_first(block, PRACTICE_RULES)
                if practice:
                    practices.append(
                        {"practice": practice, "description": extract_first(block, PRACTICE_DESCRIPTION_RULES)}
                    )
            found["securityPractices"] = practices
        if _has_values(found):
            yield found

    def identity_key(self, candidate: Candidate) -> Optional[str]:
        return "data_safety"

    def build(self, record: Candidate) -> Optional[DataSafety]:
        safety = DataSafety(
            data_shared=_safety_items(record.get("dataShared")),
            data_collected=_safety_items(record.get("dataCollected")),
            security_practices=_security_practices(record.get("securityPractices")),
            privacy_policy_url=as_text(record.get("privacyPolicyUrl")) or None,
        )
        return None if safety.is_empty else safety


# ----------------------------- Categories -----------------------------

# Returned when a page exposes no category links at all
FALLBACK_CATEGORIES = (
    "APPLICATION",
    "GAME",
    "ART_AND_DESIGN",
    "AUTO_AND_VEHICLES",
    "BEAUTY",
    "BOOKS_AND_REFERENCE",
    "BUSINESS",
    "COMICS",
    "COMMUNICATION",
    "DATING",
    "EDUCATION",
    "ENTERTAINMENT",
    "EVENTS",
    "FINANCE",
    "FOOD_AND_DRINK",
    "HEALTH_AND_FITNESS",
    "HOUSE_AND_HOME",
    "LIBRARIES_AND_DEMO",
    "LIFESTYLE",
    "MAPS_AND_NAVIGATION",
    "MEDICAL",
    "MUSIC_AND_AUDIO",
    "NEWS_AND_MAGAZINES",
    "PARENTING",
    "PERSONALIZATION",
    "PHOTOGRAPHY",
    "PRODUCTIVITY",
    "SHOPPING",
    "SOCIAL",
    "SPORTS",
    "TOOLS",
    "TRAVEL_AND_LOCAL",
    "VIDEO_PLAYERS",
    "WEATHER",
)

CATEGORY_LINK_RULES = [
    rule(r"<a[^>]*href=[\"'][^\"']*/store/apps/category/([^/\"'?#]+)"),
]


class PlayCategoriesAdapter(EntityAdapter[str]):
    """Category tokens, de-duplicated and sorted; a fixed list when none are found."""

    name = "play_categories"

    def strategies(self) -> Sequence[Strategy]:
        return [
            Strategy(EMBEDDED_SCRIPT, self._scripts, "script_categories"),
            Strategy(VISIBLE_MARKUP, self._links, "category_links"),
        ]

    def prepare(self, document: Any) -> Page:
        return Page(document)

    def _scripts(self, page: Page) -> Iterator[Candidate]:
        for script in page.scripts:
            for _, value in keyed_values(script, ("categories",)):
                for item in value if isinstance(value, list) else []:
                    token = item if isinstance(item, str) else first_text(item, ("id", "categoryId", "name"))
                    if token:
                        yield {"name": token}

    def _links(self, page: Page) -> Iterator[Candidate]:
        for token in extract_all(page.html, CATEGORY_LINK_RULES):
            yield {"name": unquote(token)}

    _name_key = staticmethod(name_key("name"))

    def identity_key(self, candidate: Candidate) -> Optional[str]:
        return self._name_key(candidate)

    def build(self, record: Candidate) -> Optional[str]:
        return as_text(record.get("name")) or None

    def finalize(self, records: List[str]) -> List[str]:
        return sorted(records) if records else sorted(FALLBACK_CATEGORIES)


# ----------------------------- Suggestions -----------------------------

class PlaySuggestAdapter(SuggestionAdapter):
    """Suggest payload: a list of terms / term objects, or an object holding one."""

    name = "play_suggest"
    list_keys = ("suggestions", "data")


# ----------------------------- App lists -----------------------------

APP_LINK_SELECTOR = 'a[href*="/store/apps/details?id="]'

APP_LINK_RULES = {
    "appId": [rule(r"/store/apps/details\?id=([^&\"'#\s<>]+)", post=unquote)],
    "title": [
        rule(r"<span[^>]*title=[\"']([^\"']+)[\"']", post=clean_text),
        rule(r"<div[^>]*class=[\"'][^\"']*title[\"'][^>]*>([^<]+)</div>", post=clean_text),
        rule(r"<a[^>]*title=[\"']([^\"']+)[\"']", post=clean_text),
    ],
    "icon": [rule(r"<img[^>]*src=[\"']([^\"']+)[\"']")],
    "ratingAverage": [rule(r"(\d+\.?\d*)\s*stars?", post=to_float)],
}


def _link_candidates(page: Page, selector: str) -> Iterator[Candidate]:
    for block in select_blocks(page.soup, (selector,)):
        found = extract_fields(block, APP_LINK_RULES)
        if found.get("appId"):
            yield found


def _jsonld_apps(page: Page) -> Iterator[Candidate]:
    for obj in jsonld_objects(page.soup, *APP_TYPES):
        found = resolve(obj, JSONLD_APP_FIELDS)
        if found.get("appId"):
            yield found


class PlayListAdapter(EntityAdapter[ListEntry]):
    """
    Search results, category collections and developer pages: every app
    linked from the page, ranked by first appearance.
    """

    name = "play_list"
    schema = APP_FIELDS
    ranked = True

    def strategies(self) -> Sequence[Strategy]:
        return [
            Strategy(STRUCTURED_DATA, _jsonld_apps, "jsonld_apps"),
            Strategy(EMBEDDED_SCRIPT, self._scripts, "script_app_ids"),
            Strategy(VISIBLE_MARKUP, self._links, "app_links"),
        ]

    def prepare(self, document: Any) -> Page:
        return Page(document)

    def _scripts(self, page: Page) -> Iterator[Candidate]:
        for script in page.scripts:
            for app_id in extract_all(script, APP_LINK_RULES["appId"]):
                yield {"appId": app_id}

    def _links(self, page: Page) -> Iterator[Candidate]:
        return _link_candidates(page, APP_LINK_SELECTOR)

    def identity_key(self, candidate: Candidate) -> Optional[str]:
        return app_key(candidate)

    def build(self, record: Candidate) -> Optional[ListEntry]:
        return _play_app(record, cls=ListEntry)


SIMILAR_SECTION_SELECTORS = (
    'div[class$="similar"]',
    'section[class$="you-might-also-like"]',
)

_SIMILAR_SCRIPT_HINT = re.compile(r"similar|recommended", re.I)


class PlaySimilarAdapter(EntityAdapter[App]):
    """Apps from the page's similar / "you might also like" section."""

    name = "play_similar"
    schema = APP_FIELDS

    def strategies(self) -> Sequence[Strategy]:
        return [
            Strategy(EMBEDDED_SCRIPT, self._scripts, "script_similar"),
            Strategy(VISIBLE_MARKUP, self._section_links, "similar_section"),
        ]

    def prepare(self, document: Any) -> Page:
        return Page(document)

    def _scripts(self, page: Page) -> Iterator[Candidate]:
        for script in page.scripts:
            if not _SIMILAR_SCRIPT_HINT.search(script):
                continue
            for _, value in keyed_values(script, ("similarApps",)):
                items = value if isinstance(value, list) else [value]
                for item in items:
                    if isinstance(item, str):
                        yield {"appId": item}
                        continue
                    for obj in walk_dicts(item, has_any_key("appId", "packageName", "id")):
                        app_id = first_text(obj, ("appId", "packageName", "id"))
                        if app_id:
                            yield {"appId": app_id, "title": obj.get("title") or obj.get("name")}

    def _section_links(self, page: Page) -> Iterator[Candidate]:
        for section in SIMILAR_SECTION_SELECTORS:
            yield from _link_candidates(page, f"{section} {APP_LINK_SELECTOR}")

    def identity_key(self, candidate: Candidate) -> Optional[str]:
        return app_key(candidate)

    def build(self, record: Candidate) -> Optional[App]:
        return _play_app(record)


__all__ = [
    "DETAILS_URL",
    "FALLBACK_CATEGORIES",
    "PlayAppAdapter",
    "PlayCategoriesAdapter",
    "PlayDataSafetyAdapter",
    "PlayListAdapter",
    "PlayPermissionsAdapter",
    "PlayReviewsAdapter",
    "PlaySimilarAdapter",
    "PlaySuggestAdapter",
    "pagination_token",
]
