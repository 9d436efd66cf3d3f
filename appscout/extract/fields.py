"""
Ordered pattern rules for pulling single fields out of text spans.

A field is described by a list of Rule rows, most reliable source first.
extract_first() returns the value of the first row that matches and survives
its post-processor; a post-processor that rejects the matched text (raises
ValueError/TypeError or returns an empty value) makes the row a non-match and
the next row is tried. Nothing here raises past the caller.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Pattern, Sequence, Union

from appscout.models import normalize_text


PostProcessor = Callable[[str], Any]


@dataclass(frozen=True)
class Rule:
    """One row of a field's rule table."""
    pattern: Pattern[str]
    group: int = 1
    post: Optional[PostProcessor] = None


def rule(
    pattern: Union[str, Pattern[str]],
    group: int = 1,
    post: Optional[PostProcessor] = None,
    flags: int = re.IGNORECASE,
) -> Rule:
    """Build a Rule, compiling string patterns case-insensitively by default."""
    if isinstance(pattern, str):
        pattern = re.compile(pattern, flags)
    return Rule(pattern=pattern, group=group, post=post)


# Post-processor errors that turn a match into a non-match
REJECTED = (ValueError, TypeError, IndexError, KeyError, AttributeError)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def _apply(r: Rule, match: "re.Match[str]") -> Any:
    value = match.group(r.group)
    if value is None:
        return None
    if r.post is not None:
        return r.post(value)
    return value.strip()


def extract_first(text: Any, rules: Sequence[Rule], default: Any = None) -> Any:
    """Return the value produced by the first matching rule, else default."""
    if not isinstance(text, str) or not text:
        return default

    for r in rules:
        try:
            match = r.pattern.search(text)
            if not match:
                continue
            value = _apply(r, match)
        except REJECTED:
            continue
        if _is_empty(value):
            continue
        return value

    return default


def extract_all(text: Any, rules: Iterable[Rule], limit: int = 0) -> List[Any]:
    """
    Collect every match of every rule, in rule order, de-duplicated.
    Rejected or empty matches are skipped individually.
    """
    if not isinstance(text, str) or not text:
        return []

    values: List[Any] = []
    seen = set()
    for r in rules:
        for match in r.pattern.finditer(text):
            try:
                value = _apply(r, match)
            except REJECTED:
                continue
            if _is_empty(value):
                continue
            key = value if isinstance(value, (str, int, float)) else repr(value)
            if key in seen:
                continue
            seen.add(key)
            values.append(value)
            if limit and len(values) >= limit:
                return values
    return values


# ----------------------------- Post-processors -----------------------------

_TAG_RE = re.compile(r"<[^>]+>")


def clean_text(value: str) -> str:
    """Strip tags, unescape HTML entities and collapse whitespace."""
    return normalize_text(html.unescape(_TAG_RE.sub(" ", value)))


def to_int(value: str) -> int:
    """Parse an integer, tolerating thousands separators. Raises ValueError."""
    return int(value.strip().replace(",", ""))


def to_float(value: str) -> float:
    """Parse a float, tolerating thousands separators. Raises ValueError."""
    return float(value.strip().replace(",", ""))


def digits(value: str) -> str:
    """Keep only the digits ("1,000,000+" -> "1000000"); empty means no match."""
    return re.sub(r"[^0-9]", "", value)


def truncate(limit: int) -> PostProcessor:
    """clean_text, then cut to `limit` characters with an ellipsis."""
    def _post(value: str) -> str:
        text = clean_text(value)
        if len(text) > limit:
            return text[:limit] + "..."
        return text
    return _post


# ----------------------------- Rule tables -----------------------------

RuleTable = Mapping[str, Sequence[Rule]]


def extract_fields(text: Any, table: RuleTable) -> Dict[str, Any]:
    """Apply a field -> rules table; only fields that matched are returned."""
    out: Dict[str, Any] = {}
    for name, rules in table.items():
        value = extract_first(text, rules)
        if value is not None:
            out[name] = value
    return out
