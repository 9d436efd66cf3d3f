"""
Strategy pipeline: run every applicable extraction strategy over one raw
document and collect raw candidate records.

Strategies are independent and all of them run (no short-circuit), in
priority order:

1. structured_data  - JSON-LD blocks or an already parsed JSON document
2. embedded_script  - object/array literals inside inline scripts
3. visible_markup   - entity containers in the markup, fields via rule tables
4. heuristic_text   - loose text patterns, only when 1-3 found too little

A strategy that raises is recorded as a failed StrategyOutcome and
contributes zero candidates; the pipeline itself never raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence


logger = logging.getLogger(__name__)

Candidate = Dict[str, Any]
StrategyFn = Callable[[Any], Iterable[Candidate]]
KeyFn = Callable[[Candidate], Optional[str]]

STRUCTURED_DATA = "structured_data"
EMBEDDED_SCRIPT = "embedded_script"
VISIBLE_MARKUP = "visible_markup"
HEURISTIC_TEXT = "heuristic_text"

PRIORITY = {
    STRUCTURED_DATA: 1,
    EMBEDDED_SCRIPT: 2,
    VISIBLE_MARKUP: 3,
    HEURISTIC_TEXT: 4,
}

DEFAULT_HEURISTIC_THRESHOLD = 3


@dataclass(frozen=True)
class Strategy:
    """A tagged extraction technique bound to an entity-specific function."""
    kind: str
    fn: StrategyFn
    label: str = ""

    @property
    def priority(self) -> int:
        return PRIORITY.get(self.kind, len(PRIORITY) + 1)

    @property
    def name(self) -> str:
        return self.label or self.kind


@dataclass
class StrategyOutcome:
    """Result of running one strategy: candidates on success, a reason on failure."""
    strategy: str
    kind: str
    candidates: List[Candidate] = field(default_factory=list)
    error: str = ""
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return not self.error

    @property
    def count(self) -> int:
        return len(self.candidates)


@dataclass
class PipelineResult:
    """All candidates in strategy priority order, plus per-strategy outcomes."""
    candidates: List[Candidate] = field(default_factory=list)
    outcomes: List[StrategyOutcome] = field(default_factory=list)

    @property
    def failures(self) -> List[StrategyOutcome]:
        return [o for o in self.outcomes if not o.ok]

    def outcome(self, name: str) -> Optional[StrategyOutcome]:
        for o in self.outcomes:
            if o.strategy == name:
                return o
        return None


def _clean_candidates(produced: Optional[Iterable[Candidate]]) -> List[Candidate]:
    if produced is None:
        return []
    return [dict(c) for c in produced if isinstance(c, dict) and c]


class StrategyPipeline:
    """
    Runs a fixed set of strategies over a document.

    With a record_key, the heuristic gate counts distinct records among
    the candidates found so far; without one it counts raw candidates.

    The pipeline holds configuration only; every run() builds its own
    result objects, so one instance can serve concurrent callers.
    """

    def __init__(
        self,
        strategies: Sequence[Strategy],
        heuristic_threshold: int = DEFAULT_HEURISTIC_THRESHOLD,
        record_key: Optional[KeyFn] = None,
    ):
        # sorted() is stable, so strategies of the same kind keep their order
        self.strategies = sorted(strategies, key=lambda s: s.priority)
        self.heuristic_threshold = heuristic_threshold
        self.record_key = record_key

    def run(self, document: Any) -> PipelineResult:
        """Run all strategies; never raises."""
        result = PipelineResult()

        for strategy in self.strategies:
            if strategy.kind == HEURISTIC_TEXT and self._found(result.candidates) >= self.heuristic_threshold:
                result.outcomes.append(
                    StrategyOutcome(strategy=strategy.name, kind=strategy.kind, skipped=True)
                )
                continue

            outcome = self._run_one(strategy, document)
            result.outcomes.append(outcome)
            result.candidates.extend(outcome.candidates)

        return result

    def _found(self, candidates: List[Candidate]) -> int:
        if self.record_key is None:
            return len(candidates)
        keys = set()
        for candidate in candidates:
            try:
                key = self.record_key(candidate)
            except (ValueError, TypeError, KeyError, AttributeError) as e:
                logger.debug("No record key for candidate: %s", e)
                continue
            if key is not None:
                keys.add(key)
        return len(keys)

    @staticmethod
    def _run_one(strategy: Strategy, document: Any) -> StrategyOutcome:
        try:
            candidates = _clean_candidates(strategy.fn(document))
        except Exception as e:
            reason = f"{type(e).__name__}: {e}" if str(e) else type(e).__name__
            logger.debug("Strategy %s failed: %s", strategy.name, reason)
            return StrategyOutcome(strategy=strategy.name, kind=strategy.kind, error=reason)

        for candidate in candidates:
            candidate.setdefault("_strategy", strategy.kind)
        return StrategyOutcome(strategy=strategy.name, kind=strategy.kind, candidates=candidates)
