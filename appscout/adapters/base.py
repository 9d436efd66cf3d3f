"""
Base entity adapter.

An adapter is a declarative binding of:
- the strategies that apply to its source
- the alias table that resolves raw candidates to canonical field names
- the identity key used for merging
- the builder producing the typed canonical record
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Generic, List, Optional, Sequence, TypeVar

from appscout.dedupe import RecordMerger
from appscout.extract.pipeline import (
    DEFAULT_HEURISTIC_THRESHOLD,
    Candidate,
    Strategy,
    StrategyOutcome,
    StrategyPipeline,
)
from appscout.extract.scripts import parse_fragment
from appscout.normalize import Schema, resolve


logger = logging.getLogger(__name__)

T = TypeVar("T")


def load_json(document: Any) -> Any:
    """Parsed JSON documents pass through; JSON text is parsed tolerantly."""
    if isinstance(document, bytes):
        document = document.decode("utf-8", errors="replace")
    if isinstance(document, str):
        return parse_fragment(document.strip())
    if isinstance(document, (dict, list)):
        return document
    return None


@dataclass
class Extraction(Generic[T]):
    """Typed records from one document, plus how they were obtained."""
    records: List[T] = field(default_factory=list)
    outcomes: List[StrategyOutcome] = field(default_factory=list)
    candidates: int = 0
    duplicates_merged: int = 0
    dropped: int = 0

    @property
    def failures(self) -> List[StrategyOutcome]:
        return [o for o in self.outcomes if not o.ok]

    def to_dicts(self) -> List[Any]:
        return [r.to_dict() if hasattr(r, "to_dict") else r for r in self.records]


class EntityAdapter(ABC, Generic[T]):
    """
    Base class for entity adapters.

    Adapters hold configuration only. Every run() builds fresh candidates,
    merge state and records, so one instance can serve concurrent callers.
    """

    name: str = "base"
    schema: Schema = {}
    # Fill a missing "rank" with the 1-based position among merged records
    ranked: bool = False

    def __init__(self, heuristic_threshold: int = DEFAULT_HEURISTIC_THRESHOLD):
        self.pipeline = StrategyPipeline(
            self.strategies(),
            heuristic_threshold=heuristic_threshold,
            record_key=self._record_key,
        )
        self.merger = RecordMerger(self.identity_key)

    @abstractmethod
    def strategies(self) -> Sequence[Strategy]:
        """Strategies applicable to this adapter's source."""
        raise NotImplementedError

    @abstractmethod
    def identity_key(self, candidate: Candidate) -> Optional[str]:
        """Identity of a resolved candidate; None drops it."""
        raise NotImplementedError

    @abstractmethod
    def build(self, record: Candidate) -> Optional[T]:
        """Typed canonical record from a merged candidate, or None."""
        raise NotImplementedError

    def prepare(self, document: Any) -> Any:
        """Turn the raw document into what the strategies consume."""
        return document

    def resolve(self, candidate: Candidate) -> Candidate:
        return resolve(candidate, self.schema) if self.schema else dict(candidate)

    def _record_key(self, candidate: Candidate) -> Optional[str]:
        return self.identity_key(self.resolve(candidate))

    def finalize(self, records: List[T]) -> List[T]:
        """Hook for entity-level ordering."""
        return records

    def run(self, document: Any) -> Extraction[T]:
        """Run the full pipeline; never raises."""
        try:
            prepared = self.prepare(document)
        except (ValueError, TypeError) as e:
            logger.debug("%s: cannot prepare document: %s", self.name, e)
            return Extraction()

        result = self.pipeline.run(prepared)
        try:
            resolved = [self.resolve(c) for c in result.candidates]
            merged = self.merger.merge(resolved)

            records: List[T] = []
            for position, record in enumerate(merged.records, 1):
                if self.ranked and record.get("rank") is None:
                    record["rank"] = position
                built = self.build(record)
                if built is not None:
                    records.append(built)
            records = self.finalize(records)
        except Exception as e:
            # keep the outcomes, drop the records
            logger.debug("%s: normalization failed: %s", self.name, e)
            return Extraction(outcomes=result.outcomes, candidates=len(result.candidates))

        extraction = Extraction(
            records=records,
            outcomes=result.outcomes,
            candidates=len(result.candidates),
            duplicates_merged=merged.duplicates_merged,
            dropped=merged.dropped_without_key,
        )
        logger.debug(
            "%s: %d candidates, %d merged, %d dropped, %d records",
            self.name,
            extraction.candidates,
            extraction.duplicates_merged,
            extraction.dropped,
            len(extraction.records),
        )
        return extraction

    def extract(self, document: Any) -> List[T]:
        return self.run(document).records


class SingleEntityAdapter(EntityAdapter[T]):
    """Adapter for documents that describe at most one record."""

    def extract_one(self, document: Any) -> Optional[T]:
        records = self.extract(document)
        return records[0] if records else None
