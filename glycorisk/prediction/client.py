"""HTTP client for the external scoring service."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

import requests

from .errors import ScoringError, ScoringErrorKind
from .metrics import (
    prediction_scoring_attempts_total,
    prediction_scoring_failures_total,
    prediction_scoring_latency_seconds,
    prediction_scoring_retries_total,
)
from .retry import RetryPolicy
from .types import MeasurementSet, ModelOutcome

logger = logging.getLogger(__name__)

# First key present wins. Older scoring deployments spell the field
# "precentage"; some use "percentage".
CONFIDENCE_KEYS: Tuple[str, ...] = ("confidence", "precentage", "percentage")
DECISION_KEYS: Tuple[str, ...] = ("prediction", "Prediction", "decision")


def _first_present(entry: Mapping[str, Any], keys: Tuple[str, ...]) -> Any:
    for key in keys:
        if key in entry and entry[key] is not None:
            return entry[key]
    return None


def parse_scoring_response(body: Any) -> Dict[str, ModelOutcome]:
    """Turn a decoded response body into named ``ModelOutcome`` entries.

    Only the envelope is checked here: a non-empty JSON object whose values
    are objects. Field values are passed through as received so the
    aggregator can reject bad ones by model name. Entries keep the order the
    service sent them in.
    """
    if not isinstance(body, dict):
        raise ValueError("response body is not a JSON object")
    if not body:
        raise ValueError("response contains no models")
    outcomes: Dict[str, ModelOutcome] = {}
    for model_name, entry in body.items():
        if not isinstance(entry, dict):
            raise ValueError(f"entry for model {model_name!r} is not an object")
        outcomes[str(model_name)] = ModelOutcome(
            model_name=str(model_name),
            confidence=_first_present(entry, CONFIDENCE_KEYS),
            decision=_first_present(entry, DECISION_KEYS),
        )
    return outcomes


class ScoringClient:
    """Calls the scoring service under a timeout with bounded retries.

    The HTTP session, retry policy, sleep function and clock are injected so
    tests can substitute them. Attempts are strictly sequential.
    """

    def __init__(
        self,
        session: requests.Session,
        url: str,
        timeout: float = 10.0,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.session = session
        self.url = url
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_settings(cls, settings, session: Optional[requests.Session] = None) -> "ScoringClient":
        return cls(
            session=session or requests.Session(),
            url=settings.predict_url,
            timeout=settings.SCORING_TIMEOUT_SECONDS,
            retry_policy=RetryPolicy.from_settings(settings),
        )

    def score(self, measurements: MeasurementSet, deadline: Optional[float] = None) -> Dict[str, ModelOutcome]:
        """Return the named model outcomes for ``measurements``.

        ``deadline`` is an absolute ``clock()`` value. No attempt starts and no
        backoff sleep runs past it.
        """
        payload = measurements.to_scoring_payload()
        policy = self.retry_policy
        started = self._clock()
        attempt = 0
        last_status: Optional[int] = None
        last_problem = "no attempt made"

        with prediction_scoring_latency_seconds.time():
            while True:
                attempt += 1
                timeout = self._attempt_timeout(deadline)
                if timeout is None:
                    last_problem = "request deadline exceeded"
                    attempt -= 1
                    break

                prediction_scoring_attempts_total.inc()
                logger.debug("Scoring attempt %d/%d (timeout=%.1fs)", attempt, policy.max_attempts, timeout)
                try:
                    response = self.session.post(
                        self.url,
                        json=payload,
                        headers={"Content-Type": "application/json"},
                        timeout=timeout,
                    )
                except requests.RequestException as exc:
                    last_status = None
                    last_problem = type(exc).__name__
                    retry = policy.should_retry(attempt, exc=exc)
                else:
                    last_status = response.status_code
                    if response.ok:
                        return self._decode(response, attempt, started)
                    last_problem = f"HTTP {response.status_code}"
                    # 4xx other than 408 fails on the first attempt
                    retry = policy.should_retry(attempt, status_code=response.status_code)

                if not retry:
                    break

                delay = policy.delay_for(attempt)
                if deadline is not None and self._clock() + delay >= deadline:
                    last_problem = f"{last_problem}; request deadline exceeded"
                    break
                prediction_scoring_retries_total.inc()
                logger.warning(
                    "Scoring attempt %d/%d failed (%s); retrying in %.2fs",
                    attempt,
                    policy.max_attempts,
                    last_problem,
                    delay,
                )
                self._sleep(delay)

        elapsed = self._clock() - started
        prediction_scoring_failures_total.labels(kind=ScoringErrorKind.UNAVAILABLE.value).inc()
        logger.error(
            "Scoring service unavailable after %d attempt(s) in %.2fs (%s)",
            attempt,
            elapsed,
            last_problem,
        )
        raise ScoringError(
            ScoringErrorKind.UNAVAILABLE,
            f"Scoring service unavailable after {attempt} attempt(s): {last_problem}",
            attempts=attempt,
            elapsed_seconds=elapsed,
            status_code=last_status,
        )

    def _attempt_timeout(self, deadline: Optional[float]) -> Optional[float]:
        if deadline is None:
            return self.timeout
        remaining = deadline - self._clock()
        if remaining <= 0:
            return None
        return min(self.timeout, remaining)

    def _decode(self, response: requests.Response, attempt: int, started: float) -> Dict[str, ModelOutcome]:
        try:
            outcomes = parse_scoring_response(response.json())
        except ValueError as exc:
            # requests' JSONDecodeError is a ValueError too
            elapsed = self._clock() - started
            prediction_scoring_failures_total.labels(kind=ScoringErrorKind.INVALID_RESPONSE.value).inc()
            logger.error(
                "Scoring service returned an invalid response on attempt %d (%s)",
                attempt,
                type(exc).__name__,
            )
            raise ScoringError(
                ScoringErrorKind.INVALID_RESPONSE,
                f"Scoring service returned an invalid response: {exc}",
                attempts=attempt,
                elapsed_seconds=elapsed,
                status_code=response.status_code,
            ) from exc
        logger.info("Scoring succeeded on attempt %d with %d model(s)", attempt, len(outcomes))
        return outcomes
