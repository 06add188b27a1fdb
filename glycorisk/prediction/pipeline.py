"""Prediction request orchestration.

Stages run in order: normalize, score, aggregate, classify, persist, notify.
Everything before ``persist`` is retryable computation with no side
effects; ``persist`` is the only transactional write; ``notify`` runs after
it and cannot change the request's result.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError

from .aggregator import aggregate
from .client import ScoringClient
from .dispatcher import BestEffortNotifier
from .errors import PersistenceError, PersistenceErrorKind, PredictionError
from .metrics import prediction_requests_total
from .normalizer import normalize_measurements
from .persistence import PersistenceCoordinator
from .repository import RecordStore
from .risk import classify
from .types import AggregatedDecision, DispatchOutcome, MeasurementSet, ModelOutcome, RiskAssessment

logger = logging.getLogger(__name__)


@dataclass
class PredictionResult:
    record_id: int
    decision: bool
    confidence: float
    tier: str
    recommendation: str
    model_used: str
    dispatch: Optional[Future] = None
    dispatch_outcome: Optional[DispatchOutcome] = None

    def to_response(self) -> Dict[str, Any]:
        return {
            "decision": self.decision,
            "confidence": self.confidence,
            "tier": self.tier,
            "recommendation": self.recommendation,
            "modelUsed": self.model_used,
        }


class PredictionPipeline:
    def __init__(
        self,
        scoring_client: ScoringClient,
        persistence: PersistenceCoordinator,
        notifier: BestEffortNotifier,
        store: Optional[RecordStore] = None,
        normalizer: Callable[[Mapping[str, Any]], MeasurementSet] = normalize_measurements,
        aggregator: Callable[[Mapping[str, ModelOutcome]], AggregatedDecision] = aggregate,
        classifier: Callable[[float], RiskAssessment] = classify,
        request_deadline_seconds: Optional[float] = 45.0,
        notify_wait_seconds: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.scoring_client = scoring_client
        self.persistence = persistence
        self.notifier = notifier
        self.store = store or persistence.store
        self.normalizer = normalizer
        self.aggregator = aggregator
        self.classifier = classifier
        self.request_deadline_seconds = request_deadline_seconds
        self.notify_wait_seconds = notify_wait_seconds
        self._clock = clock

    def run(
        self,
        raw: Mapping[str, Any],
        owner_id: int,
        contact_address: Optional[str] = None,
        deadline: Optional[float] = None,
    ) -> PredictionResult:
        """Process one prediction request.

        ``deadline`` is an absolute ``time.monotonic()`` value; when omitted
        the configured per-request budget starts now. Raises a
        ``PredictionError`` subclass on any fatal stage failure.
        """
        if deadline is None and self.request_deadline_seconds:
            deadline = self._clock() + self.request_deadline_seconds

        try:
            measurements = self.normalizer(raw)

            # The account name replaces the submitted name and the account
            # email is the default contact.
            owner = self._get_owner(owner_id)
            if owner is not None:
                if owner.name:
                    measurements = replace(measurements, name=owner.name)
                contact_address = contact_address or owner.email

            outcomes = self.scoring_client.score(measurements, deadline=deadline)
            decision = self.aggregator(outcomes)
            assessment = self.classifier(decision.confidence)
            record = self.persistence.persist(measurements, decision, assessment, owner_id, deadline=deadline)
        except PredictionError as exc:
            prediction_requests_total.labels(outcome=exc.kind).inc()
            logger.warning("Prediction failed for owner %s: %s", owner_id, exc.kind)
            raise

        prediction_requests_total.labels(outcome="success").inc()
        result = PredictionResult(
            record_id=record.id,
            decision=decision.decision,
            confidence=decision.confidence,
            tier=assessment.tier.value,
            recommendation=assessment.recommendation,
            model_used=decision.source_model,
        )

        result.dispatch = self.notifier.dispatch(record, contact_address)
        if self.notify_wait_seconds > 0:
            try:
                result.dispatch_outcome = result.dispatch.result(timeout=self.notify_wait_seconds)
            except FutureTimeoutError:
                # Still running; it completes in the background
                logger.info("Outcome email for record %s still pending after %.1fs", record.id, self.notify_wait_seconds)
        return result

    def _get_owner(self, owner_id: int):
        try:
            return self.store.get_owner(owner_id)
        except SQLAlchemyError as exc:
            logger.error("Owner lookup failed for %s: %s", owner_id, type(exc).__name__)
            raise PersistenceError(
                PersistenceErrorKind.STORE_UNAVAILABLE,
                "Record store unavailable",
                context={"owner_id": owner_id},
            ) from exc
