"""
Google Play URL builders (play.google.com web pages, suggest endpoint).
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote, urlencode

from appscout.errors import InvalidArgumentError


PLAY_BASE = "https://play.google.com"
SUGGEST_BASE = "https://market.android.com/suggest/SuggRequest"

COLLECTIONS = ("topselling_free", "topselling_paid", "topgrossing", "movers_shakers")


def _require(value: Any, message: str) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidArgumentError(message)


def search_url(term: str, country: str = "us", lang: str = "en") -> str:
    _require(term, "term is required")
    params = {"q": term, "c": "apps", "gl": country, "hl": lang}
    return f"{PLAY_BASE}/store/search?{urlencode(params)}"


def app_url(app_id: str, lang: str = "en", country: str = "us") -> str:
    _require(app_id, "appId is required for Google Play")
    params = {"id": app_id, "gl": country, "hl": lang}
    return f"{PLAY_BASE}/store/apps/details?{urlencode(params)}"


def developer_url(dev_id: str, lang: str = "en", country: str = "us") -> str:
    _require(dev_id, "devId is required")
    params = {"id": dev_id, "gl": country, "hl": lang}
    return f"{PLAY_BASE}/store/apps/developer?{urlencode(params)}"


def reviews_url(app_id: str, lang: str = "en", country: str = "us") -> str:
    """Reviews are served on the details page; paging uses the page's token."""
    _require(app_id, "appId is required")
    return app_url(app_id, lang=lang, country=country) + "#Reviews"


def list_url(
    category: str = "APPLICATION",
    collection: str = "topselling_free",
    country: str = "us",
    lang: str = "en",
    num: int = 60,
) -> str:
    if collection not in COLLECTIONS:
        raise InvalidArgumentError(f"collection must be one of {', '.join(COLLECTIONS)}")
    _require(category, "category is required")
    params = {"gl": country, "hl": lang, "num": num}
    return f"{PLAY_BASE}/store/apps/category/{quote(category, safe='')}/collection/{collection}?{urlencode(params)}"


def similar_url(app_id: str, lang: str = "en", country: str = "us") -> str:
    _require(app_id, "appId is required")
    return app_url(app_id, lang=lang, country=country)


def permissions_url(app_id: str, lang: str = "en", country: str = "us") -> str:
    _require(app_id, "appId is required")
    return app_url(app_id, lang=lang, country=country)


def data_safety_url(app_id: str, lang: str = "en") -> str:
    _require(app_id, "appId is required")
    return f"{PLAY_BASE}/store/apps/details?{urlencode({'id': app_id, 'hl': lang})}"


def categories_url() -> str:
    return f"{PLAY_BASE}/store/apps"


def suggest_url(term: str, country: str = "us", lang: str = "en") -> str:
    _require(term, "term is required")
    return f"{SUGGEST_BASE}?json=1&c=3&query={quote(term, safe='')}&gl={country}&hl={lang}"
