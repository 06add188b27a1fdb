"""
Shared test fixtures for the glycorisk prediction pipeline.
"""

import json
import os
from typing import Any, List, Optional, Tuple
from unittest.mock import MagicMock

# Settings are cached on first use; set the environment before importing the app
os.environ.setdefault("PREDICTION_METRICS_ENABLED", "false")
os.environ.setdefault("PREDICTION_SCORING_SERVICE_URL", "http://scoring.test")

import pytest
import requests
from sqlalchemy.pool import StaticPool

from glycorisk.db.base import Base
from glycorisk.db.session import create_db_engine, create_session_factory
from glycorisk.models import User
from glycorisk.prediction.client import ScoringClient
from glycorisk.prediction.dispatcher import BestEffortNotifier
from glycorisk.prediction.persistence import PersistenceCoordinator
from glycorisk.prediction.pipeline import PredictionPipeline
from glycorisk.prediction.repository import RecordStore
from glycorisk.prediction.retry import RetryPolicy


# =============================================================================
# HELPERS
# =============================================================================

def make_response(status_code: int, body: Any = None, raw: Optional[bytes] = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response._content = raw if raw is not None else json.dumps(body).encode("utf-8")
    response.headers["Content-Type"] = "application/json"
    response.encoding = "utf-8"
    return response


class FakeClock:
    """Monotonic clock that only moves when ``sleep`` is called."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class RecordingTransport:
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.sent: List[Tuple[str, str, str]] = []

    def send(self, address: str, subject: str, body: str) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append((address, subject, body))


# =============================================================================
# INPUT / RESPONSE FIXTURES
# =============================================================================

@pytest.fixture
def raw_measurements():
    return {
        "name": "Jane Doe",
        "Pregnancies": 2,
        "Glucose": 148,
        "BloodPressure": 72,
        "SkinThickness": 35,
        "Insulin": 0,
        "BMI": 33.6,
        "DiabetesPedigreeFunction": 0.627,
        "Age": 50,
    }


@pytest.fixture
def scoring_body():
    return {
        "logistic_regression": {"prediction": True, "confidence": 72.5},
        "random_forest": {"prediction": False, "precentage": 64.0},
        "svm": {"Prediction": True, "percentage": 81.25},
    }


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def owner(session_factory):
    db = session_factory()
    try:
        user = User(email="clinician@clinic.org", name="Dr. Avery Lee")
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    finally:
        db.close()


@pytest.fixture
def store(session_factory):
    return RecordStore(session_factory)


# =============================================================================
# PIPELINE FIXTURES
# =============================================================================

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def retry_policy():
    return RetryPolicy(max_attempts=3, base_delay=0.5, max_delay=8.0, jitter=False)


@pytest.fixture
def http_session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def scoring_client(http_session, retry_policy, clock):
    return ScoringClient(
        session=http_session,
        url="http://scoring.test/predict",
        timeout=10.0,
        retry_policy=retry_policy,
        sleep=clock.sleep,
        clock=clock,
    )


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def notifier(transport):
    notifier = BestEffortNotifier(transport, max_workers=2)
    yield notifier
    notifier.shutdown(wait=True)


@pytest.fixture
def pipeline(scoring_client, store, notifier, clock):
    return PredictionPipeline(
        scoring_client=scoring_client,
        persistence=PersistenceCoordinator(store, clock=clock),
        notifier=notifier,
        store=store,
        request_deadline_seconds=45.0,
        notify_wait_seconds=5.0,
        clock=clock,
    )
