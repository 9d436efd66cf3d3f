"""
Entity adapters for AppScout.

Each adapter binds the strategies, alias table, identity key and builder
for one entity from one source. App Store adapters read JSON API
responses; Google Play adapters read HTML pages.
"""

from appscout.adapters.base import EntityAdapter, SingleEntityAdapter, Extraction, load_json
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
from appscout.adapters.suggest import SuggestionAdapter

__all__ = [
    "EntityAdapter",
    "SingleEntityAdapter",
    "Extraction",
    "load_json",
    "AppStoreAppAdapter",
    "AppStoreListAdapter",
    "AppStoreReviewsAdapter",
    "AppStoreSimilarAdapter",
    "AppStoreSuggestAdapter",
    "parse_privacy",
    "parse_ratings",
    "parse_version_history",
    "PlayAppAdapter",
    "PlayCategoriesAdapter",
    "PlayDataSafetyAdapter",
    "PlayListAdapter",
    "PlayPermissionsAdapter",
    "PlayReviewsAdapter",
    "PlaySimilarAdapter",
    "PlaySuggestAdapter",
    "pagination_token",
    "SuggestionAdapter",
]
