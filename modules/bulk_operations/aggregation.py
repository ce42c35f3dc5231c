"""Aggregation of per-chunk outcomes into one batch result."""

from typing import Iterable

from .models import AggregateResult, ChunkOutcome, FailedChunk


def aggregate_outcomes(outcomes: Iterable[ChunkOutcome]) -> AggregateResult:
    """Fold chunk outcomes, in chunk order, into an AggregateResult.
    
    Counts are summed; each failed chunk contributes exactly one error
    message and one FailedChunk entry.
    """
    result = AggregateResult()
    for outcome in outcomes:
        result.succeeded += outcome.succeeded
        result.failed += outcome.failed
        if outcome.error is not None:
            result.errors.append(outcome.error)
            result.failed_chunks.append(
                FailedChunk(index=outcome.index, keys=outcome.keys, error=outcome.error)
            )
    return result


class ResultAggregator:
    """Incremental form of ``aggregate_outcomes`` for callers that report progress."""
    
    def __init__(self):
        self._outcomes = []
    
    def add(self, outcome: ChunkOutcome) -> None:
        self._outcomes.append(outcome)
    
    @property
    def outcomes(self):
        return list(self._outcomes)
    
    def result(self) -> AggregateResult:
        return aggregate_outcomes(self._outcomes)
