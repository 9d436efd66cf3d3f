"""
HTML content extraction utilities.
"""

from __future__ import annotations

import re
from typing import Any, List, Sequence, Union

from bs4 import BeautifulSoup


Markup = Union[str, BeautifulSoup]


def as_soup(markup: Markup) -> BeautifulSoup:
    """Parse markup once so several helpers can share the tree."""
    if isinstance(markup, BeautifulSoup):
        return markup
    return BeautifulSoup(markup or "", "lxml")


def strip_html(html: str, max_len: int = 8000) -> str:
    """
    Convert HTML to plain text, stripping tags but preserving some structure.
    """
    if not html or not isinstance(html, str):
        return ""

    soup = BeautifulSoup(html, "lxml")

    # Remove script, style, and other non-content tags
    for tag in soup(["script", "style", "noscript", "iframe", "svg", "canvas"]):
        tag.decompose()

    # Get text with some structure preservation
    text = soup.get_text(" ", strip=True)

    # Normalize whitespace
    text = re.sub(r"\s+", " ", text).strip()

    return text[:max_len]


def select_blocks(markup: Markup, selectors: Sequence[str], limit: int = 0) -> List[str]:
    """
    Outer HTML of every element matching the CSS selectors.

    Selectors are tried in order and each contributes its matches in
    document order; an element matched by several selectors is returned
    once, at its first position.
    """
    soup = as_soup(markup)
    blocks: List[str] = []
    seen = set()

    for selector in selectors:
        for tag in soup.select(selector):
            if id(tag) in seen:
                continue
            seen.add(id(tag))
            blocks.append(str(tag))
            if limit and len(blocks) >= limit:
                return blocks

    return blocks


def script_bodies(markup: Markup, include_jsonld: bool = False) -> List[str]:
    """Text of every <script> element, optionally skipping JSON-LD blocks."""
    soup = as_soup(markup)
    bodies: List[str] = []

    for script in soup.find_all("script"):
        script_type = (script.get("type") or "").lower()
        if not include_jsonld and "ld+json" in script_type:
            continue
        content = script.string
        if content and content.strip():
            bodies.append(content)

    return bodies


class Page:
    """
    One HTML document, parsed once and shared by every strategy of a run.

    Non-string input becomes an empty page.
    """

    def __init__(self, html: Any):
        self.html: str = html if isinstance(html, str) else ""
        self.soup = as_soup(self.html)
        self.scripts: List[str] = script_bodies(self.soup)

    def text(self) -> str:
        return strip_html(self.html, max_len=200000)
