"""
AppScout: App Store and Google Play data extraction.

Turns App Store JSON API responses and Google Play / App Store HTML pages
into typed, canonical records using prioritized extraction strategies
(JSON-LD, inline script JSON, visible markup, text heuristics), identity
based merging and alias-table normalization.
"""

__version__ = "1.0.0"

from appscout.models import App, ListEntry, Review, Permission, DataSafety, Suggestion, Store
from appscout.engine import (
    Engine,
    extract_app,
    extract_list,
    extract_reviews,
    extract_permissions,
    extract_data_safety,
    extract_categories,
    extract_suggestions,
    extract_similar,
)

__all__ = [
    "App",
    "ListEntry",
    "Review",
    "Permission",
    "DataSafety",
    "Suggestion",
    "Store",
    "Engine",
    "extract_app",
    "extract_list",
    "extract_reviews",
    "extract_permissions",
    "extract_data_safety",
    "extract_categories",
    "extract_suggestions",
    "extract_similar",
]
