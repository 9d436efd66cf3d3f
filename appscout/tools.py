"""
Tool layer: URL building + fetch + extraction for each public tool.

Provides:
- TOOLS: registry of the App Store and Google Play tools
- call_tool(): run one tool and return a JSON-serializable payload

call_tool() never raises. Fetch failures and bad arguments become
{"error": message, "isError": True}; a missing entity becomes
{"error": "... not found"} without the error flag.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from appscout import engine
from appscout.config import get_settings
from appscout.endpoints import appstore as as_urls
from appscout.endpoints import googleplay as gp_urls
from appscout.errors import AppScoutError, InvalidArgumentError
from appscout.fetchers.http import HttpFetcher
from appscout.models import Store


logger = logging.getLogger(__name__)

Payload = Dict[str, Any]
Handler = Callable[[Dict[str, Any], HttpFetcher], Awaitable[Payload]]

SIMILAR_NOTE = "Similar apps parsing from HTML is limited. Consider using search with related terms."
DATA_SAFETY_NOTE = "Data safety extraction from HTML is limited; the page may render this section client-side."


@dataclass(frozen=True)
class Tool:
    """A registered tool: name, description, required arguments, handler."""
    name: str
    description: str
    handler: Handler
    required: Tuple[str, ...] = ()


TOOLS: Dict[str, Tool] = {}


def tool(name: str, description: str, required: Tuple[str, ...] = ()):
    """Register an async handler under a tool name."""
    def _register(fn: Handler) -> Handler:
        TOOLS[name] = Tool(name=name, description=description, handler=fn, required=required)
        return fn
    return _register


# ---- Argument helpers ----

def _str(args: Dict[str, Any], key: str, default: Optional[str] = None) -> Optional[str]:
    value = args.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    return str(value).strip()


def _int(args: Dict[str, Any], key: str, default: int) -> int:
    value = args.get(key)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"{key} must be an integer")


def _bool(args: Dict[str, Any], key: str, default: bool = False) -> bool:
    value = args.get(key)
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return default if value is None else bool(value)


def _country(args: Dict[str, Any]) -> str:
    return _str(args, "country", get_settings().default_country)


def _lang(args: Dict[str, Any]) -> str:
    return _str(args, "lang", get_settings().default_lang)


def _dicts(records: List[Any]) -> List[Any]:
    return [r.to_dict() if hasattr(r, "to_dict") else r for r in records]


# ---- App Store ----

@tool("app", "Get detailed information about an app by ID or bundleId")
async def app(args: Dict[str, Any], fetcher: HttpFetcher) -> Payload:
    url = as_urls.app_url(id=args.get("id"), app_id=_str(args, "appId"), country=_country(args))
    found = engine.extract_app(await fetcher.fetch_json(url), Store.APP_STORE)
    if found is None:
        return {"error": "App not found"}
    return found.to_dict()


@tool("search", "Search for apps in the App Store", required=("term",))
async def search(args: Dict[str, Any], fetcher: HttpFetcher) -> Payload:
    url = as_urls.search_url(
        _str(args, "term"),
        country=_country(args),
        lang=_lang(args),
        num=_int(args, "num", 50),
        page=_int(args, "page", 1),
    )
    data = await fetcher.fetch_json(url)
    apps = _dicts(engine.extract_list(data, "search", Store.APP_STORE))
    total = data.get("resultCount") if isinstance(data, dict) else None
    return {"results": apps, "count": len(apps), "total": total or len(apps)}


@tool("list", "Get app rankings (top free, paid or grossing)")
async def chart_list(args: Dict[str, Any], fetcher: HttpFetcher) -> Payload:
    chart = _str(args, "chart", "topfreeapplications")
    country = _country(args)
    url = as_urls.list_url(
        chart=chart,
        country=country,
        genre=args.get("genre", "all"),
        limit=_int(args, "limit", 200),
    )
    data = await fetcher.fetch_json(url)
    # RSS feeds carry "feed"; anything else is iTunes API shaped
    kind = "chart" if isinstance(data, dict) and "feed" in data else "search"
    apps = _dicts(engine.extract_list(data, kind, Store.APP_STORE))
    return {"chart": chart, "country": country, "results": apps, "count": len(apps)}


@tool("reviews", "Get app reviews with pagination")
async def reviews(args: Dict[str, Any], fetcher: HttpFetcher) -> Payload:
    page = _int(args, "page", 1)
    url = as_urls.reviews_url(
        id=args.get("id"),
        app_id=_str(args, "appId"),
        country=_country(args),
        page=min(page, get_settings().max_review_pages),
        sort=_str(args, "sort", "mostRecent"),
    )
    result = engine.extract_reviews(await fetcher.fetch_json(url), Store.APP_STORE)
    data = _dicts(result["data"])
    return {"page": page, "reviews": data, "count": len(data)}


@tool("ratings", "Get app ratings distribution")
async def ratings(args: Dict[str, Any], fetcher: HttpFetcher) -> Payload:
    url = as_urls.ratings_url(id=args.get("id"), app_id=_str(args, "appId"), country=_country(args))
    found = engine.extract_ratings(await fetcher.fetch_json(url))
    if found is None:
        return {"error": "App not found"}
    return found.to_dict()


@tool("developer", "Get all apps by a developer", required=("devId",))
async def developer(args: Dict[str, Any], fetcher: HttpFetcher) -> Payload:
    dev_id = args.get("devId")
    url = as_urls.developer_url(dev_id, country=_country(args), lang=_lang(args))
    apps = _dicts(engine.extract_list(await fetcher.fetch_json(url), "developer", Store.APP_STORE))
    return {"developerId": dev_id, "apps": apps, "count": len(apps)}


@tool("similar", "Get apps similar to the specified app")
async def similar(args: Dict[str, Any], fetcher: HttpFetcher) -> Payload:
    app_id = _str(args, "appId")
    url = as_urls.similar_url(id=args.get("id"), app_id=app_id, country=_country(args))
    html = await fetcher.fetch_text(url)
    apps = _dicts(engine.extract_similar(html, Store.APP_STORE, exclude=[args.get("id"), app_id]))
    return {"similarApps": apps, "count": len(apps), "note": None if apps else SIMILAR_NOTE}


@tool("privacy", "Get app privacy labels and data usage information", required=("id",))
async def privacy(args: Dict[str, Any], fetcher: HttpFetcher) -> Payload:
    url = as_urls.privacy_url(args.get("id"))
    found = engine.extract_privacy(await fetcher.fetch_json(url))
    if found is None:
        return {"error": "Privacy data not available"}
    return found.to_dict()


@tool("versionHistory", "Get app version history with release notes", required=("id",))
async def version_history(args: Dict[str, Any], fetcher: HttpFetcher) -> Payload:
    app_id = args.get("id")
    url = as_urls.version_history_url(app_id, country=_country(args))
    history = _dicts(engine.extract_version_history(await fetcher.fetch_json(url)))
    return {"id": app_id, "versionHistory": history, "count": len(history)}


@tool("suggest", "Get search suggestions for a term", required=("term",))
async def suggest(args: Dict[str, Any], fetcher: HttpFetcher) -> Payload:
    term = _str(args, "term")
    url = as_urls.suggest_url(term, country=_country(args))
    suggestions = _dicts(engine.extract_suggestions(await fetcher.fetch_json(url), Store.APP_STORE))
    return {"term": term, "suggestions": suggestions, "count": len(suggestions)}


# ---- Google Play ----

@tool("gp_app", "[Google Play] Get detailed information about an app", required=("appId",))
async def gp_app(args: Dict[str, Any], fetcher: HttpFetcher) -> Payload:
    url = gp_urls.app_url(_str(args, "appId"), lang=_lang(args), country=_country(args))
    found = engine.extract_app(await fetcher.fetch_text(url), Store.GOOGLE_PLAY)
    if found is None:
        return {"error": "App not found"}
    return found.to_dict()


@tool("gp_search", "[Google Play] Search for apps", required=("term",))
async def gp_search(args: Dict[str, Any], fetcher: HttpFetcher) -> Payload:
    url = gp_urls.search_url(_str(args, "term"), country=_country(args), lang=_lang(args))
    apps = engine.extract_list(await fetcher.fetch_text(url), "search", Store.GOOGLE_PLAY)
    apps = _dicts(apps[: _int(args, "num", 250)])
    return {"results": apps, "count": len(apps)}


@tool("gp_list", "[Google Play] Get app lists from a category collection")
async def gp_list(args: Dict[str, Any], fetcher: HttpFetcher) -> Payload:
    collection = _str(args, "collection", "topselling_free")
    category = _str(args, "category", "APPLICATION")
    country = _country(args)
    num = _int(args, "num", 60)
    url = gp_urls.list_url(category=category, collection=collection, country=country, lang=_lang(args), num=num)
    apps = engine.extract_list(await fetcher.fetch_text(url), "collection", Store.GOOGLE_PLAY)
    apps = _dicts(apps[:num])
    return {
        "collection": collection,
        "category": category,
        "country": country,
        "results": apps,
        "count": len(apps),
    }


@tool("gp_reviews", "[Google Play] Get app reviews with pagination", required=("appId",))
async def gp_reviews(args: Dict[str, Any], fetcher: HttpFetcher) -> Payload:
    url = gp_urls.reviews_url(_str(args, "appId"), lang=_lang(args), country=_country(args))
    result = engine.extract_reviews(await fetcher.fetch_text(url), Store.GOOGLE_PLAY)
    return {
        "page": _int(args, "page", 0),
        "data": _dicts(result["data"]),
        "nextPaginationToken": result["nextPaginationToken"],
    }


@tool("gp_developer", "[Google Play] Get all apps by a developer", required=("devId",))
async def gp_developer(args: Dict[str, Any], fetcher: HttpFetcher) -> Payload:
    dev_id = _str(args, "devId")
    url = gp_urls.developer_url(dev_id, lang=_lang(args), country=_country(args))
    apps = engine.extract_list(await fetcher.fetch_text(url), "developer", Store.GOOGLE_PLAY)
    apps = _dicts(apps[: _int(args, "num", 60)])
    return {"developerId": dev_id, "apps": apps, "count": len(apps)}


@tool("gp_similar", "[Google Play] Get similar apps", required=("appId",))
async def gp_similar(args: Dict[str, Any], fetcher: HttpFetcher) -> Payload:
    app_id = _str(args, "appId")
    url = gp_urls.similar_url(app_id, lang=_lang(args), country=_country(args))
    apps = _dicts(engine.extract_similar(await fetcher.fetch_text(url), Store.GOOGLE_PLAY, exclude=[app_id]))
    return {"similarApps": apps, "count": len(apps), "note": None if apps else SIMILAR_NOTE}


@tool("gp_permissions", "[Google Play] Get app permissions", required=("appId",))
async def gp_permissions(args: Dict[str, Any], fetcher: HttpFetcher) -> Payload:
    app_id = _str(args, "appId")
    url = gp_urls.permissions_url(app_id, lang=_lang(args), country=_country(args))
    permissions = engine.extract_permissions(await fetcher.fetch_text(url), short=_bool(args, "short"))
    permissions = _dicts(permissions)
    return {"appId": app_id, "permissions": permissions, "count": len(permissions)}


@tool("gp_datasafety", "[Google Play] Get app data safety information", required=("appId",))
async def gp_datasafety(args: Dict[str, Any], fetcher: HttpFetcher) -> Payload:
    url = gp_urls.data_safety_url(_str(args, "appId"), lang=_lang(args))
    found = engine.extract_data_safety(await fetcher.fetch_text(url))
    if found is None:
        return {"error": "Data safety information not available", "note": DATA_SAFETY_NOTE}
    return found.to_dict()


@tool("gp_categories", "[Google Play] Get list of available categories")
async def gp_categories(args: Dict[str, Any], fetcher: HttpFetcher) -> Payload:
    categories = engine.extract_categories(await fetcher.fetch_text(gp_urls.categories_url()))
    return {"categories": categories, "count": len(categories)}


@tool("gp_suggest", "[Google Play] Get search suggestions", required=("term",))
async def gp_suggest(args: Dict[str, Any], fetcher: HttpFetcher) -> Payload:
    term = _str(args, "term")
    url = gp_urls.suggest_url(term, country=_country(args), lang=_lang(args))
    suggestions = _dicts(engine.extract_suggestions(await fetcher.fetch_json(url), Store.GOOGLE_PLAY))
    return {"term": term, "suggestions": suggestions, "count": len(suggestions)}


# ---- Dispatch ----

def _error(message: str) -> Payload:
    return {"error": message, "isError": True}


async def _dispatch(entry: Tool, args: Dict[str, Any], fetcher: Optional[HttpFetcher]) -> Payload:
    if fetcher is not None:
        return await entry.handler(args, fetcher)
    async with HttpFetcher.from_settings() as owned:
        return await entry.handler(args, owned)


async def call_tool(name: str, args: Optional[Dict[str, Any]] = None, fetcher: Optional[HttpFetcher] = None) -> Payload:
    """
    Run a tool by name. Without a fetcher, one is created from settings
    for the duration of the call. Never raises.
    """
    entry = TOOLS.get(name)
    if entry is None:
        return _error(f"Unknown tool: {name}")

    args = dict(args or {})
    missing = [k for k in entry.required if args.get(k) in (None, "")]
    if missing:
        return _error(f"{missing[0]} is required")

    logger.info("Calling tool %s", name)
    try:
        return await _dispatch(entry, args, fetcher)
    except AppScoutError as e:
        logger.info("Tool %s failed: %s", name, e)
        return _error(str(e))
    except Exception as e:
        logger.exception("Tool %s crashed", name)
        return _error(f"{type(e).__name__}: {e}")


def list_tools() -> List[Dict[str, Any]]:
    """Name, description and required arguments of every tool."""
    return [
        {"name": t.name, "description": t.description, "required": list(t.required)}
        for t in TOOLS.values()
    ]
