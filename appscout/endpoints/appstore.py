"""
App Store URL builders (iTunes Search API, RSS feeds, apps.apple.com).
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import quote, urlencode

from appscout.errors import InvalidArgumentError


ITUNES_BASE = "https://itunes.apple.com"
APP_STORE_BASE = "https://apps.apple.com"
HINTS_URL = "https://search.itunes.apple.com/WebObjects/MZSearchHints.woa/wa/hints"

MAX_SEARCH_LIMIT = 200
MAX_REVIEW_PAGE = 10

REVIEW_SORTS = ("mostRecent", "mostHelpful")
CHARTS = ("topfreeapplications", "toppaidapplications", "topgrossingapplications")


def _require(value: Any, message: str) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidArgumentError(message)


def _positive(value: Any, name: str, default: int) -> int:
    if value is None:
        return default
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"{name} must be an integer")
    return max(1, n)


def search_url(term: str, country: str = "us", lang: str = "en", num: int = 50, page: int = 1) -> str:
    _require(term, "term is required")
    num = _positive(num, "num", 50)
    page = _positive(page, "page", 1)
    params = {
        "term": term,
        "country": country,
        "lang": lang,
        "limit": min(num, MAX_SEARCH_LIMIT),
        "offset": (page - 1) * num,
        "entity": "software",
    }
    return f"{ITUNES_BASE}/search?{urlencode(params)}"


def app_url(id: Optional[Any] = None, app_id: Optional[str] = None, country: str = "us") -> str:
    """Lookup by numeric trackId, else by bundleId."""
    if id:
        return f"{ITUNES_BASE}/lookup?{urlencode({'id': id, 'country': country})}"
    if app_id:
        return f"{ITUNES_BASE}/lookup?{urlencode({'bundleId': app_id, 'country': country})}"
    raise InvalidArgumentError("Either id or appId must be provided")


def ratings_url(id: Optional[Any] = None, app_id: Optional[str] = None, country: str = "us") -> str:
    return app_url(id=id, app_id=app_id, country=country)


def developer_url(dev_id: Any, country: str = "us", lang: str = "en") -> str:
    _require(dev_id, "devId is required")
    params = {"id": dev_id, "country": country, "lang": lang, "entity": "software"}
    return f"{ITUNES_BASE}/lookup?{urlencode(params)}"


def reviews_url(
    id: Optional[Any] = None,
    app_id: Optional[str] = None,
    country: str = "us",
    page: int = 1,
    sort: str = "mostRecent",
) -> str:
    """Customer reviews RSS; the feed serves at most 10 pages."""
    app = id or app_id
    if not app:
        raise InvalidArgumentError("Either id or appId must be provided")
    page = min(_positive(page, "page", 1), MAX_REVIEW_PAGE)
    sort = sort if sort in REVIEW_SORTS else "mostRecent"
    return f"{ITUNES_BASE}/{country}/rss/customerreviews/page={page}/id={app}/sortby={sort}/json"


def similar_url(id: Optional[Any] = None, app_id: Optional[str] = None, country: str = "us") -> str:
    app = id or app_id
    if not app:
        raise InvalidArgumentError("Either id or appId must be provided")
    return f"{APP_STORE_BASE}/{country}/app/id{app}"


def privacy_url(id: Any) -> str:
    _require(id, "id is required")
    return f"{ITUNES_BASE}/us/app-privacy-details/{id}.json"


def version_history_url(id: Any, country: str = "us") -> str:
    _require(id, "id is required")
    return f"{ITUNES_BASE}/{country}/app-version-history/{id}.json"


def list_url(chart: str = "topfreeapplications", country: str = "us", genre: Any = "all", limit: int = 200) -> str:
    if chart not in CHARTS:
        raise InvalidArgumentError(f"chart must be one of {', '.join(CHARTS)}")
    limit = min(_positive(limit, "limit", 200), MAX_SEARCH_LIMIT)
    url = f"{ITUNES_BASE}/{country}/rss/{chart}/limit={limit}"
    if genre not in (None, "", "all"):
        url += f"/genre={genre}"
    return url + "/json"


def suggest_url(term: str, country: str = "us") -> str:
    _require(term, "term is required")
    return f"{HINTS_URL}?term={quote(term, safe='')}&country={country}"
