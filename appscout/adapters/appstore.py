"""
App Store adapters.

Sources:
- iTunes Search / Lookup API (JSON): apps, search and developer results
- iTunes RSS feeds (JSON): top charts and customer reviews
- Search hints (JSON): suggestions
- privacy / version history JSON
- apps.apple.com app page (HTML): similar apps

The JSON sources are well structured, so their adapters bind only the
structured-data strategy.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterator, List, Optional, Sequence

from appscout.adapters.base import EntityAdapter, SingleEntityAdapter, load_json
from appscout.adapters.suggest import SuggestionAdapter
from appscout.dedupe import app_key, review_key
from appscout.extract.fields import extract_all, rule
from appscout.extract.html import Page
from appscout.extract.jsonld import jsonld_objects
from appscout.extract.pipeline import STRUCTURED_DATA, VISIBLE_MARKUP, Candidate, Strategy
from appscout.extract.scripts import has_any_key, walk_dicts
from appscout.models import (
    App,
    ListEntry,
    Privacy,
    PrivacyDataCategory,
    PrivacyType,
    Ratings,
    Review,
    Store,
    VersionEntry,
    optional_text,
)
from appscout.normalize import (
    APP_FIELDS,
    REVIEW_FIELDS,
    as_text,
    build_app,
    build_review,
    first_raw,
    first_text,
    get_path,
    text_list,
)


APP_URL = "https://apps.apple.com/app/id{}"

_ID_IN_URL_RE = re.compile(r"/id(\d+)")


def _id_from_url(value: Any) -> Optional[str]:
    m = _ID_IN_URL_RE.search(as_text(value))
    return m.group(1) if m else None


def _is_software(item: Dict[str, Any]) -> bool:
    return item.get("kind") == "software" or item.get("wrapperType") == "software"


# ----------------------------- Apps -----------------------------

class AppStoreAppAdapter(SingleEntityAdapter[App]):
    """
    Lookup / search / developer results from the iTunes API.

    With software_only, records that are not software (the artist record
    of a developer lookup, for instance) are skipped.
    """

    name = "appstore_app"
    schema = APP_FIELDS

    def __init__(self, software_only: bool = False, **kwargs):
        self.software_only = software_only
        super().__init__(**kwargs)

    def strategies(self) -> Sequence[Strategy]:
        return [Strategy(STRUCTURED_DATA, self._results, "itunes_results")]

    def prepare(self, document: Any) -> Any:
        return load_json(document)

    def _results(self, data: Any) -> Iterator[Candidate]:
        if isinstance(data, dict):
            results = data.get("results")
            if results is None and ("trackId" in data or "bundleId" in data):
                results = [data]
        else:
            results = data
        if not isinstance(results, list):
            return
        for item in results:
            if not isinstance(item, dict):
                continue
            if self.software_only and not _is_software(item):
                continue
            yield item

    def identity_key(self, candidate: Candidate) -> Optional[str]:
        return app_key(candidate)

    def build(self, record: Candidate) -> Optional[App]:
        return build_app(record, Store.APP_STORE)


def _entry_image(entry: Dict[str, Any]) -> Optional[str]:
    images = entry.get("im:image")
    if isinstance(images, list) and images:
        return as_text(images[-1]) or as_text(images[0]) or None
    return as_text(images) or None


def _feed_entries(data: Any) -> List[Any]:
    entries = get_path(data, ("feed", "entry"))
    if isinstance(entries, dict):
        return [entries]
    return entries if isinstance(entries, list) else []


def _list_entry(entry: Dict[str, Any], rank: int) -> Candidate:
    """Reshape an RSS chart entry onto lookup-style field names."""
    artist_href = get_path(entry, ("im:artist", "attributes", "href"))
    icon = _entry_image(entry)
    return {
        "trackId": first_raw(entry, (("id", "attributes", "im:id"), ("im:id", "label")))
        or _id_from_url(get_path(entry, ("id", "label"))),
        "bundleId": first_text(entry, (("id", "attributes", "im:bundleId"), ("im:bundleId", "label"))),
        "trackName": first_text(entry, (("im:name", "label"), ("title", "label"), ("title",))),
        "artistName": first_text(entry, (("im:artist", "label"), ("author", "name", "label"))),
        "artistId": _id_from_url(artist_href),
        "artistViewUrl": artist_href,
        "description": first_text(entry, (("summary", "label"), ("content", "label"), ("description", "label"))),
        "price": first_raw(entry, (("im:price", "attributes", "amount"), ("im:price", "label"), ("im:price",))),
        "currency": get_path(entry, ("im:price", "attributes", "currency")),
        "averageUserRating": first_raw(entry, (("im:rating", "label"), ("im:rating",))),
        "userRatingCount": first_raw(entry, (("im:ratingCount", "label"), ("im:ratingCount",))),
        "artworkUrl100": icon,
        "artworkUrl512": icon,
        "primaryGenreId": get_path(entry, ("category", "attributes", "im:id")),
        "primaryGenreName": first_text(
            entry,
            (("category", "attributes", "label"), ("im:category", "attributes", "label"), ("category", "label")),
        ),
        "releaseDate": first_text(entry, (("im:releaseDate", "label"), ("published", "label"), ("updated", "label"))),
        "trackViewUrl": first_raw(entry, (("link", "attributes", "href"), ("link", 0, "attributes", "href"))),
        "kind": "software",
        "rank": rank,
    }


class AppStoreListAdapter(EntityAdapter[ListEntry]):
    """Top chart RSS feed -> ranked ListEntry records."""

    name = "appstore_list"
    schema = APP_FIELDS

    def strategies(self) -> Sequence[Strategy]:
        return [Strategy(STRUCTURED_DATA, self._entries, "rss_feed")]

    def prepare(self, document: Any) -> Any:
        return load_json(document)

    def _entries(self, data: Any) -> Iterator[Candidate]:
        for rank, entry in enumerate(_feed_entries(data), 1):
            if isinstance(entry, dict):
                yield _list_entry(entry, rank)

    def identity_key(self, candidate: Candidate) -> Optional[str]:
        return app_key(candidate)

    def build(self, record: Candidate) -> Optional[ListEntry]:
        return build_app(record, Store.APP_STORE, cls=ListEntry)


# ----------------------------- Reviews -----------------------------

def _review_entry(entry: Dict[str, Any]) -> Candidate:
    author = entry.get("author")
    if isinstance(author, list):
        author = author[0] if author else {}
    if not isinstance(author, dict):
        author = {"name": author}

    uri = as_text(author.get("uri"))
    raw = dict(entry)
    raw["author"] = author
    # Only profile links (".../id123") are user URLs
    raw["userUrl"] = uri if _ID_IN_URL_RE.search(uri) else None
    return raw


class AppStoreReviewsAdapter(EntityAdapter[Review]):
    """Customer reviews RSS feed; the first entry describes the app and is skipped."""

    name = "appstore_reviews"
    schema = REVIEW_FIELDS

    def strategies(self) -> Sequence[Strategy]:
        return [Strategy(STRUCTURED_DATA, self._entries, "rss_feed")]

    def prepare(self, document: Any) -> Any:
        return load_json(document)

    def _entries(self, data: Any) -> Iterator[Candidate]:
        entries = get_path(data, ("feed", "entry"))
        if not isinstance(entries, list):
            return
        for entry in entries[1:]:
            if isinstance(entry, dict):
                yield _review_entry(entry)

    def identity_key(self, candidate: Candidate) -> Optional[str]:
        return review_key(candidate)

    def build(self, record: Candidate) -> Review:
        return build_review(record)


# ----------------------------- Suggestions -----------------------------

class AppStoreSuggestAdapter(SuggestionAdapter):
    """Search hints: {"hints": [{"term", "priority"}, ...]}."""

    name = "appstore_suggest"
    list_keys = ("hints",)


# ----------------------------- Similar apps (HTML) -----------------------------

APP_LINK_RULES = [
    rule(r"apps\.apple\.com/[^/\"'\s]+/app/(?:[^/\"'\s?]+/)?id(\d+)"),
    rule(r"apps\.apple\.com/app/(?:[^/\"'\s?]+/)?id(\d+)"),
]


class AppStoreSimilarAdapter(EntityAdapter[App]):
    """
    Similar apps from an apps.apple.com page: JSON-LD SoftwareApplication
    objects, then every app link in the markup.
    """

    name = "appstore_similar"
    schema = APP_FIELDS

    def strategies(self) -> Sequence[Strategy]:
        return [
            Strategy(STRUCTURED_DATA, self._jsonld, "jsonld_apps"),
            Strategy(VISIBLE_MARKUP, self._links, "app_links"),
        ]

    def prepare(self, document: Any) -> Page:
        return Page(document)

    def _jsonld(self, page: Page) -> Iterator[Candidate]:
        for obj in jsonld_objects(page.soup, "SoftwareApplication"):
            url = as_text(obj.get("url"))
            if not url:
                continue
            yield {"id": _id_from_url(url), "title": obj.get("name"), "url": url}

    def _links(self, page: Page) -> Iterator[Candidate]:
        for app_id in extract_all(page.html, APP_LINK_RULES):
            yield {"id": app_id, "url": APP_URL.format(app_id)}

    def identity_key(self, candidate: Candidate) -> Optional[str]:
        return app_key(candidate)

    def build(self, record: Candidate) -> Optional[App]:
        return build_app(record, Store.APP_STORE)


# ----------------------------- Ratings / privacy / version history -----------------------------

def parse_ratings(app: Optional[App]) -> Ratings:
    """
    Rating summary for an app. The lookup API has no per-star breakdown,
    so the histogram stays at zero.
    """
    if app is None:
        return Ratings()
    return Ratings(ratings=app.rating.count or 0, average=app.rating.average)


def _privacy_root(data: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(data, dict):
        return None
    if "privacyTypes" in data:
        return data
    for found in walk_dicts(data, has_any_key("privacyTypes")):
        return found
    return data


def parse_privacy(document: Any) -> Optional[Privacy]:
    """Privacy labels; None when the document is not a JSON object."""
    data = _privacy_root(load_json(document))
    if data is None:
        return None

    types: List[PrivacyType] = []
    for item in data.get("privacyTypes") or []:
        if not isinstance(item, dict):
            continue
        categories = [
            PrivacyDataCategory(
                data_category=optional_text(c.get("dataCategory")),
                identifier=optional_text(c.get("identifier")),
                data_types=text_list(c.get("dataTypes")) or [],
            )
            for c in item.get("dataCategories") or []
            if isinstance(c, dict)
        ]
        purposes = item.get("purposes")
        types.append(
            PrivacyType(
                privacy_type=optional_text(item.get("privacyType")),
                identifier=optional_text(item.get("identifier")),
                description=optional_text(item.get("description")),
                data_categories=categories,
                purposes=purposes if isinstance(purposes, list) else [],
            )
        )

    return Privacy(
        manage_privacy_choices_url=optional_text(data.get("managePrivacyChoicesUrl")),
        privacy_types=types,
    )


def parse_version_history(document: Any) -> List[VersionEntry]:
    data = load_json(document)
    if isinstance(data, dict):
        data = first_raw(data, ("versionHistory", "data", "results"))
    if not isinstance(data, list):
        return []

    entries = []
    for item in data:
        if not isinstance(item, dict):
            continue
        timestamp = item.get("releaseTimestamp")
        entries.append(
            VersionEntry(
                version_display=optional_text(item.get("versionDisplay")) or optional_text(item.get("version")),
                release_notes=item.get("releaseNotes") or None,
                release_date=optional_text(item.get("releaseDate")),
                release_timestamp=as_text(timestamp) or None,
            )
        )
    return entries
