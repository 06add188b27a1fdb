import math
from typing import Any, Mapping, Optional

from .errors import AggregationError
from .types import AggregatedDecision, ModelOutcome


CONFIDENCE_MIN = 0.0
CONFIDENCE_MAX = 100.0


def _valid_confidence(value: Any) -> bool:
    """A finite percentage in [0, 100]."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return CONFIDENCE_MIN <= value <= CONFIDENCE_MAX and math.isfinite(value)


def aggregate(outcomes: Mapping[str, ModelOutcome]) -> AggregatedDecision:
    """Pick the outcome with the highest confidence.

    Outcomes are visited in mapping order (the order the scoring service
    listed its models). Only a strictly greater confidence replaces the
    current best, so ties keep the first model seen. Every entry is checked
    before a winner is returned: one malformed model fails the whole call,
    since defaulting a missing field would change both the comparison and
    the stored decision.
    """
    if not outcomes:
        raise AggregationError("Scoring response contained no models")

    best: Optional[ModelOutcome] = None
    for name, outcome in outcomes.items():
        if not _valid_confidence(outcome.confidence):
            raise AggregationError(f"Model {name!r} has no confidence in [0, 100]", model=name)
        if not isinstance(outcome.decision, bool):
            raise AggregationError(f"Model {name!r} has no boolean decision", model=name)
        if best is None or outcome.confidence > best.confidence:
            best = outcome

    return AggregatedDecision(
        decision=best.decision,
        confidence=float(best.confidence),
        source_model=best.model_name,
    )
