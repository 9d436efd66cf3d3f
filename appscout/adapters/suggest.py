"""
Search suggestion adapter shared by both stores.
"""

from __future__ import annotations

from typing import Any, Iterator, List, Optional, Sequence, Tuple

from appscout.adapters.base import EntityAdapter, load_json
from appscout.dedupe import name_key
from appscout.extract.pipeline import STRUCTURED_DATA, Candidate, Strategy
from appscout.models import Suggestion
from appscout.normalize import SUGGESTION_FIELDS, build_suggestion


class SuggestionAdapter(EntityAdapter[Suggestion]):
    """
    Suggestions from a JSON document (or JSON text).

    Accepted shapes: a bare list of terms or term objects, an object with
    one of `list_keys` holding such a list, or a single term object.
    Output is sorted by priority, highest first, ties in source order.
    """

    name = "suggest"
    schema = SUGGESTION_FIELDS
    list_keys: Tuple[str, ...] = ("suggestions", "data")

    _term_key = staticmethod(name_key("term"))

    def strategies(self) -> Sequence[Strategy]:
        return [Strategy(STRUCTURED_DATA, self._items, "suggest_json")]

    def prepare(self, document: Any) -> Any:
        return load_json(document)

    def _items(self, data: Any) -> Iterator[Candidate]:
        items: Any = None
        if isinstance(data, list):
            items = data
        elif isinstance(data, dict):
            for key in self.list_keys:
                if isinstance(data.get(key), list):
                    items = data[key]
                    break
            else:
                items = [data]
        for item in items or []:
            if isinstance(item, str):
                yield {"term": item}
            elif isinstance(item, dict):
                yield item

    def identity_key(self, candidate: Candidate) -> Optional[str]:
        return self._term_key(candidate)

    def build(self, record: Candidate) -> Optional[Suggestion]:
        return build_suggestion(record)

    def finalize(self, records: List[Suggestion]) -> List[Suggestion]:
        # sorted() is stable, so equal priorities keep source order
        return sorted(records, key=lambda s: s.priority, reverse=True)
