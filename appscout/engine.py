"""
Extraction engine: the call surface the tool layer uses.

Every function takes one raw document (parsed JSON, JSON text or HTML),
routes it to the adapter for its source and entity, and returns typed
records. Nothing here raises: an unusable document yields None or [].
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional, Union

from appscout.adapters.appstore import (
    AppStoreAppAdapter,
    AppStoreListAdapter,
    AppStoreReviewsAdapter,
    AppStoreSimilarAdapter,
    AppStoreSuggestAdapter,
    parse_privacy,
    parse_ratings,
    parse_version_history,
)
from appscout.adapters.googleplay import (
    PlayAppAdapter,
    PlayCategoriesAdapter,
    PlayDataSafetyAdapter,
    PlayListAdapter,
    PlayPermissionsAdapter,
    PlayReviewsAdapter,
    PlaySimilarAdapter,
    PlaySuggestAdapter,
    pagination_token,
)
from appscout.config import get_settings
from appscout.extract.pipeline import DEFAULT_HEURISTIC_THRESHOLD
from appscout.models import (
    App,
    DataSafety,
    Permission,
    Privacy,
    Ratings,
    Store,
    Suggestion,
    VersionEntry,
)


logger = logging.getLogger(__name__)

SourceArg = Union[Store, str]

# Google Play listing pages share one layout
PLAY_LIST_KINDS = ("search", "collection", "developer")


def _store(source: SourceArg) -> Store:
    if isinstance(source, Store):
        return source
    try:
        return Store(str(source).lower())
    except ValueError:
        return Store.UNKNOWN


class Engine:
    """
    One adapter instance per (source, entity). Adapters hold configuration
    only, so an Engine can serve any number of concurrent calls.
    """

    def __init__(self, heuristic_threshold: int = DEFAULT_HEURISTIC_THRESHOLD):
        opts = dict(heuristic_threshold=heuristic_threshold)

        self.appstore_app = AppStoreAppAdapter(**opts)
        self.appstore_software = AppStoreAppAdapter(software_only=True, **opts)
        self.appstore_chart = AppStoreListAdapter(**opts)
        self.appstore_reviews = AppStoreReviewsAdapter(**opts)
        self.appstore_suggest = AppStoreSuggestAdapter(**opts)
        self.appstore_similar = AppStoreSimilarAdapter(**opts)

        self.play_app = PlayAppAdapter(**opts)
        self.play_list = PlayListAdapter(**opts)
        self.play_reviews = PlayReviewsAdapter(**opts)
        self.play_permissions = PlayPermissionsAdapter(**opts)
        self.play_datasafety = PlayDataSafetyAdapter(**opts)
        self.play_categories = PlayCategoriesAdapter(**opts)
        self.play_suggest = PlaySuggestAdapter(**opts)
        self.play_similar = PlaySimilarAdapter(**opts)

    # ---- Apps ----

    def extract_app(self, document: Any, source: SourceArg) -> Optional[App]:
        store = _store(source)
        if store == Store.APP_STORE:
            return self.appstore_app.extract_one(document)
        if store == Store.GOOGLE_PLAY:
            return self.play_app.extract_one(document)
        logger.debug("extract_app: unknown source %r", source)
        return None

    def extract_list(self, document: Any, kind: str, source: SourceArg = Store.APP_STORE) -> List[App]:
        """
        App Store: "chart" (RSS feed -> ListEntry), "search" and
        "developer" (iTunes API results -> App). Google Play: every kind is
        an HTML listing page -> ListEntry.
        """
        store = _store(source)
        if store == Store.APP_STORE:
            if kind == "chart":
                return self.appstore_chart.extract(document)
            if kind == "developer":
                return self.appstore_software.extract(document)
            if kind == "search":
                return self.appstore_app.extract(document)
        elif store == Store.GOOGLE_PLAY and kind in PLAY_LIST_KINDS:
            return self.play_list.extract(document)
        logger.debug("extract_list: unsupported kind %r for %r", kind, source)
        return []

    def extract_similar(
        self,
        document: Any,
        source: SourceArg,
        exclude: Optional[Iterable[Any]] = None,
    ) -> List[App]:
        """Similar apps; `exclude` drops the page's own app by id or appId."""
        store = _store(source)
        if store == Store.APP_STORE:
            apps = self.appstore_similar.extract(document)
        elif store == Store.GOOGLE_PLAY:
            apps = self.play_similar.extract(document)
        else:
            return []

        excluded = {str(e) for e in exclude or () if e is not None and str(e)}
        if not excluded:
            return apps
        return [
            a for a in apps
            if str(a.id) not in excluded and (a.app_id or "") not in excluded
        ]

    # ---- Reviews ----

    def extract_reviews(self, document: Any, source: SourceArg) -> Dict[str, Any]:
        """{"data": [Review, ...], "nextPaginationToken": str | None}"""
        store = _store(source)
        token = None
        if store == Store.APP_STORE:
            reviews = self.appstore_reviews.extract(document)
        elif store == Store.GOOGLE_PLAY:
            reviews = self.play_reviews.extract(document)
            token = pagination_token(document) if isinstance(document, str) else None
        else:
            reviews = []
        return {"data": reviews, "nextPaginationToken": token}

    # ---- Google Play only ----

    def extract_permissions(self, document: Any, short: bool = False) -> Union[List[Permission], List[str]]:
        """Permissions; with short=True only the de-duplicated names."""
        permissions = self.play_permissions.extract(document)
        if short:
            return [p.name for p in permissions]
        return permissions

    def extract_data_safety(self, document: Any) -> Optional[DataSafety]:
        return self.play_datasafety.extract_one(document)

    def extract_categories(self, document: Any) -> List[str]:
        return self.play_categories.extract(document)

    # ---- Suggestions ----

    def extract_suggestions(self, document: Any, source: SourceArg) -> List[Suggestion]:
        store = _store(source)
        if store == Store.APP_STORE:
            return self.appstore_suggest.extract(document)
        if store == Store.GOOGLE_PLAY:
            return self.play_suggest.extract(document)
        return []

    # ---- App Store only ----

    def extract_ratings(self, document: Any) -> Optional[Ratings]:
        app = self.appstore_app.extract_one(document)
        return parse_ratings(app) if app is not None else None

    def extract_privacy(self, document: Any) -> Optional[Privacy]:
        try:
            return parse_privacy(document)
        except (ValueError, TypeError, AttributeError) as e:
            logger.debug("extract_privacy: %s", e)
            return None

    def extract_version_history(self, document: Any) -> List[VersionEntry]:
        try:
            return parse_version_history(document)
        except (ValueError, TypeError, AttributeError) as e:
            logger.debug("extract_version_history: %s", e)
            return []


@lru_cache
def get_engine() -> Engine:
    """Get the cached engine configured from settings."""
    return Engine(heuristic_threshold=get_settings().heuristic_threshold)


# ---- Module-level call surface ----

def extract_app(document: Any, source: SourceArg) -> Optional[App]:
    return get_engine().extract_app(document, source)


def extract_list(document: Any, kind: str, source: SourceArg = Store.APP_STORE) -> List[App]:
    return get_engine().extract_list(document, kind, source)


def extract_reviews(document: Any, source: SourceArg) -> Dict[str, Any]:
    return get_engine().extract_reviews(document, source)


def extract_permissions(document: Any, short: bool = False) -> Union[List[Permission], List[str]]:
    return get_engine().extract_permissions(document, short=short)


def extract_data_safety(document: Any) -> Optional[DataSafety]:
    return get_engine().extract_data_safety(document)


def extract_categories(document: Any) -> List[str]:
    return get_engine().extract_categories(document)


def extract_suggestions(document: Any, source: SourceArg) -> List[Suggestion]:
    return get_engine().extract_suggestions(document, source)


def extract_similar(document: Any, source: SourceArg, exclude: Optional[Iterable[Any]] = None) -> List[App]:
    return get_engine().extract_similar(document, source, exclude=exclude)


def extract_ratings(document: Any) -> Optional[Ratings]:
    return get_engine().extract_ratings(document)


def extract_privacy(document: Any) -> Optional[Privacy]:
    return get_engine().extract_privacy(document)


def extract_version_history(document: Any) -> List[VersionEntry]:
    return get_engine().extract_version_history(document)


__all__ = [
    "Engine",
    "get_engine",
    "extract_app",
    "extract_list",
    "extract_reviews",
    "extract_permissions",
    "extract_data_safety",
    "extract_categories",
    "extract_suggestions",
    "extract_similar",
    "extract_ratings",
    "extract_privacy",
    "extract_version_history",
]
