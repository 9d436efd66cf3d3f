"""
Robust JSON-LD extraction for schema.org data embedded in store pages.

Handles:
- Multiple script tags with different JSON-LD objects
- @graph containers
- Lists of objects and ItemList containers
- JS artifacts (comments, trailing commas) around otherwise valid JSON
- Nested structures (mainEntity, review, hasPart, ...)

Blocks that still fail to parse are skipped, never fatal.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Iterable, List

from bs4 import BeautifulSoup

from appscout.extract.html import Markup, as_soup


logger = logging.getLogger(__name__)

# Nested keys that may hold further schema.org objects
NESTED_KEYS = ("mainEntity", "about", "hasPart", "review", "reviews")


def extract_jsonld_scripts(markup: Markup) -> List[str]:
    """Extract all JSON-LD script contents from HTML."""
    if not isinstance(markup, (str, BeautifulSoup)) or not markup:
        return []

    scripts = []
    soup = as_soup(markup)

    for script in soup.find_all("script", attrs={"type": re.compile(r"ld\+json", re.I)}):
        content = script.string
        if content and content.strip():
            scripts.append(content.strip())

    return scripts


def clean_jsonld_string(s: str) -> str:
    """
    Clean JS artifacts that keep otherwise valid JSON-LD from parsing.
    """
    # Remove JS-style line comments (whole lines only, URLs contain //)
    s = re.sub(r"^\s*//.*?$", "", s, flags=re.MULTILINE)

    # Remove JS-style multi-line comments
    s = re.sub(r"/\*.*?\*/", "", s, flags=re.DOTALL)

    # Fix trailing commas before ] or }
    s = re.sub(r",\s*([\]}])", r"\1", s)

    # Drop a trailing statement terminator
    s = s.strip().rstrip(";")

    return s


def parse_jsonld_tolerant(script_content: str) -> Any:
    """
    Parse JSON-LD with tolerance for common issues.
    Returns None when the block cannot be parsed.
    """
    if not isinstance(script_content, str):
        return None

    # Try direct parse first
    try:
        return json.loads(script_content)
    except json.JSONDecodeError:
        pass

    # Try cleaned version
    cleaned = clean_jsonld_string(script_content)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    # Try extracting just the object part (sometimes there's wrapper JS)
    match = re.search(r"(\{.*\}|\[.*\])", cleaned, re.DOTALL)
    if match:
        try:
            return json.loads(match.group(1))
        except json.JSONDecodeError:
            pass

    logger.debug("Skipping unparseable JSON-LD block (%d chars)", len(script_content))
    return None


def iter_jsonld_objects(data: Any) -> Iterable[Dict]:
    """
    Iterate through all objects in a JSON-LD structure.
    Handles @graph, lists, ItemList and nested structures.
    """
    if data is None:
        return

    if isinstance(data, list):
        for item in data:
            yield from iter_jsonld_objects(item)
    elif isinstance(data, dict):
        # Check for @graph container
        if "@graph" in data:
            yield from iter_jsonld_objects(data["@graph"])

        # ItemList elements are either wrapped in ListItem.item or inline
        elements = data.get("itemListElement")
        if isinstance(elements, list):
            for element in elements:
                if isinstance(element, dict) and isinstance(element.get("item"), dict):
                    yield from iter_jsonld_objects(element["item"])
                else:
                    yield from iter_jsonld_objects(element)

        # Yield this object itself
        yield data

        for key in NESTED_KEYS:
            if key in data:
                yield from iter_jsonld_objects(data[key])


def is_type(obj: Any, *types: str) -> bool:
    """Check if an object has one of the given schema.org @type values."""
    if not isinstance(obj, dict):
        return False
    obj_type = obj.get("@type", "")
    if isinstance(obj_type, list):
        return any(t in obj_type for t in types)
    return obj_type in types


def jsonld_objects(markup: Markup, *types: str) -> List[Dict]:
    """
    All JSON-LD objects of the given @type(s) in document order.
    With no types, every object is returned.
    """
    found: List[Dict] = []
    for script_content in extract_jsonld_scripts(markup):
        data = parse_jsonld_tolerant(script_content)
        if data is None:
            continue
        for obj in iter_jsonld_objects(data):
            if not types or is_type(obj, *types):
                found.append(obj)
    return found
