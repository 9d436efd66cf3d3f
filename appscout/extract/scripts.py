"""
Inline script JSON extraction.

Store pages embed data as object/array literals inside ordinary <script>
tags: whole-script JSON payloads, `window.__STATE__ = {...}` assignments,
or properties such as `"reviews": [...]` deep inside a larger literal.
The helpers here locate such spans with a bracket-balancing scan (string
aware) and parse them as JSON; spans that fail to parse are skipped.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, Iterator, Optional, Sequence, Tuple

from appscout.extract.jsonld import parse_jsonld_tolerant


logger = logging.getLogger(__name__)

_CLOSERS = {"[": "]", "{": "}"}

_ASSIGNMENT_RE = re.compile(r"(?:^|[;\s])(?:var\s+|let\s+|const\s+)?[\w$.\[\]'\"]+\s*=\s*([\[{])")

MAX_WALK_DEPTH = 12


def balanced_span(text: str, start: int) -> Optional[str]:
    """
    Return the bracket-balanced literal starting at text[start], or None
    if it never closes. Brackets inside string literals are ignored.
    """
    if start < 0 or start >= len(text) or text[start] not in _CLOSERS:
        return None

    depth = 0
    quote = ""
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if quote:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = ""
            continue
        if ch in ("\"", "'"):
            quote = ch
        elif ch in "[{":
            depth += 1
        elif ch in "]}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def parse_fragment(span: Optional[str]) -> Any:
    """Parse a candidate span; None when it is not JSON."""
    if not span:
        return None
    return parse_jsonld_tolerant(span)


def keyed_values(script: str, keys: Sequence[str]) -> Iterator[Tuple[str, Any]]:
    """
    Yield (key, parsed value) for every `key: [...]` or `key: {...}`
    property literal in the script whose value parses as JSON.
    """
    if not isinstance(script, str) or not keys:
        return

    pattern = re.compile(
        r"""(?<![\w$])["']?(%s)["']?\s*:\s*([\[{])""" % "|".join(re.escape(k) for k in keys)
    )
    for match in pattern.finditer(script):
        span = balanced_span(script, match.start(2))
        value = parse_fragment(span)
        if value is None:
            logger.debug("Skipping unparseable %r literal in script", match.group(1))
            continue
        yield match.group(1), value


def script_json_values(script: str) -> Iterator[Any]:
    """
    Yield whole-script JSON payloads and the right-hand side of top-level
    assignments (`window.__DATA__ = {...};`).
    """
    if not isinstance(script, str):
        return

    stripped = script.strip()
    if stripped[:1] in _CLOSERS:
        value = parse_fragment(stripped)
        if value is not None:
            yield value
            return

    for match in _ASSIGNMENT_RE.finditer(script):
        value = parse_fragment(balanced_span(script, match.start(1)))
        if value is not None:
            yield value


def walk_dicts(
    data: Any,
    predicate: Callable[[Dict[str, Any]], bool],
    depth: int = 0,
) -> Iterator[Dict[str, Any]]:
    """
    Depth-first walk yielding dicts that satisfy the predicate.
    A matching dict is not descended into.
    """
    if depth > MAX_WALK_DEPTH:
        return
    if isinstance(data, dict):
        if predicate(data):
            yield data
            return
        for value in data.values():
            yield from walk_dicts(value, predicate, depth + 1)
    elif isinstance(data, list):
        for item in data:
            yield from walk_dicts(item, predicate, depth + 1)


def has_any_key(*keys: str) -> Callable[[Dict[str, Any]], bool]:
    """Predicate: the dict carries a truthy value under one of the keys."""
    def _predicate(obj: Dict[str, Any]) -> bool:
        return any(obj.get(k) for k in keys)
    return _predicate
