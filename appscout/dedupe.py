"""
Identity-key deduplication and field-level merging of candidate records.

Merge strategy:
1. Each candidate gets an identity key from an entity-specific function
2. Candidates sharing a key fold into the first-seen record
3. The first-seen (higher priority) value of a field wins unless it is
   blank, in which case a later candidate fills the gap
4. Output keeps the order of first appearance
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from appscout.extract.pipeline import Candidate


KeyFn = Callable[[Candidate], Optional[str]]


@dataclass
class MergeResult:
    """Result of merging."""
    records: List[Candidate]
    duplicates_merged: int = 0
    dropped_without_key: int = 0
    keys: List[str] = field(default_factory=list)


def normalize_key(s: Any) -> str:
    """
    Normalize a value for identity comparison.
    Lowercases and normalizes whitespace.
    """
    if s is None:
        return ""
    s = str(s).lower()
    s = re.sub(r"\s+", " ", s)
    return s.strip()


def is_blank(value: Any) -> bool:
    """Values a lower-priority candidate may overwrite."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict, tuple, set)):
        return not value
    return False


def merge_into(target: Candidate, other: Candidate) -> None:
    """Fill blank fields of target from other, in place."""
    for key, value in other.items():
        if is_blank(target.get(key)) and not is_blank(value):
            target[key] = value


class RecordMerger:
    """
    Collapses raw candidates into unique records using an identity key.
    """

    def __init__(self, identity_key: KeyFn):
        self.identity_key = identity_key

    def _key(self, candidate: Candidate) -> Optional[str]:
        try:
            key = self.identity_key(candidate)
        except (KeyError, TypeError, ValueError, AttributeError):
            return None
        key = normalize_key(key) if key is not None else ""
        return key or None

    def merge(self, candidates: List[Candidate]) -> MergeResult:
        """
        Merge a list of candidates.

        The key index is local to this call; nothing is shared between calls.
        """
        by_key: Dict[str, Candidate] = {}
        order: List[str] = []
        merged = 0
        dropped = 0

        for candidate in candidates:
            key = self._key(candidate)
            if key is None:
                dropped += 1
                continue

            existing = by_key.get(key)
            if existing is not None:
                merge_into(existing, candidate)
                merged += 1
                continue

            by_key[key] = dict(candidate)
            order.append(key)

        return MergeResult(
            records=[by_key[k] for k in order],
            duplicates_merged=merged,
            dropped_without_key=dropped,
            keys=order,
        )


# ----------------------------- Identity keys -----------------------------

def review_key(c: Candidate) -> Optional[str]:
    """Review id, else the review text, else author + date."""
    rid = c.get("id")
    if not is_blank(rid):
        return f"id:{rid}"
    text = c.get("text")
    if isinstance(text, str) and text.strip():
        return f"text:{text}"
    return f"author:{c.get('userName') or ''}|{c.get('date') or ''}"


def app_key(c: Candidate) -> Optional[str]:
    """Bundle / package id, else numeric store id."""
    for k in ("appId", "id"):
        value = c.get(k)
        if not is_blank(value):
            return str(value)
    return None


def name_key(field_name: str) -> KeyFn:
    """Key on a single (case-insensitive) string field."""
    def _key(c: Candidate) -> Optional[str]:
        value = c.get(field_name)
        return value if isinstance(value, str) else None
    return _key
