"""
Extraction utilities for AppScout.

Provides:
- Ordered field rule tables (regex rows with post-processors)
- The strategy pipeline running structured / script / markup / heuristic strategies
- JSON-LD extraction and parsing (tolerant of malformed data)
- Inline script JSON location and parsing
- HTML helpers
"""

from appscout.extract.fields import Rule, rule, extract_first, extract_all, extract_fields
from appscout.extract.html import Page, strip_html, select_blocks
from appscout.extract.jsonld import jsonld_objects, parse_jsonld_tolerant
from appscout.extract.pipeline import (
    Candidate,
    Strategy,
    StrategyOutcome,
    StrategyPipeline,
    PipelineResult,
)

__all__ = [
    "Rule",
    "rule",
    "extract_first",
    "extract_all",
    "extract_fields",
    "Page",
    "strip_html",
    "select_blocks",
    "jsonld_objects",
    "parse_jsonld_tolerant",
    "Candidate",
    "Strategy",
    "StrategyOutcome",
    "StrategyPipeline",
    "PipelineResult",
]
