from unittest.mock import MagicMock

import pytest
from sqlalchemy import func, select

from glycorisk.models import Notification, Patient
from glycorisk.prediction.dispatcher import BestEffortNotifier
from glycorisk.prediction.errors import (
    AggregationError,
    PersistenceError,
    PersistenceErrorKind,
    ScoringError,
    ScoringErrorKind,
    ValidationError,
)
from glycorisk.prediction.persistence import PersistenceCoordinator
from glycorisk.prediction.pipeline import PredictionPipeline
from tests.conftest import RecordingTransport, make_response


def count(session_factory, model):
    db = session_factory()
    try:
        return db.execute(select(func.count()).select_from(model)).scalar_one()
    finally:
        db.close()


def test_successful_request(pipeline, http_session, scoring_body, raw_measurements, owner, store, transport):
    http_session.post.return_value = make_response(200, scoring_body)

    result = pipeline.run(raw_measurements, owner_id=owner.id)

    assert result.to_response() == {
        "decision": True,
        "confidence": 81.25,
        "tier": "High",
        "recommendation": "Consult a doctor and undergo further medical checkups.",
        "modelUsed": "svm",
    }
    record = store.get_by_id(result.record_id)
    # Account name replaces the submitted one
    assert record.name == "Dr. Avery Lee"
    assert [n.message for n in store.list_notifications(record.id)] == ["Patient Dr. Avery Lee has High risk"]
    assert result.dispatch_outcome.ok is True
    assert transport.sent[0][0] == "clinician@clinic.org"


def test_retried_success_matches_first_attempt_success(
    pipeline, http_session, scoring_body, raw_measurements, owner, clock
):
    http_session.post.return_value = make_response(200, scoring_body)
    first = pipeline.run(raw_measurements, owner_id=owner.id)

    http_session.post.reset_mock(return_value=True)
    http_session.post.side_effect = [
        make_response(503, {}),
        make_response(503, {}),
        make_response(200, scoring_body),
    ]
    retried = pipeline.run(raw_measurements, owner_id=owner.id)

    assert retried.to_response() == first.to_response()
    assert clock.sleeps == [0.5, 1.0]


def test_exhausted_retries_write_nothing(pipeline, http_session, raw_measurements, owner, session_factory, transport):
    http_session.post.return_value = make_response(503, {})

    with pytest.raises(ScoringError) as excinfo:
        pipeline.run(raw_measurements, owner_id=owner.id)

    assert excinfo.value.error_kind is ScoringErrorKind.UNAVAILABLE
    assert count(session_factory, Patient) == 0
    assert count(session_factory, Notification) == 0
    assert transport.sent == []


def test_empty_model_set_writes_nothing(store, notifier, raw_measurements, owner, session_factory):
    scoring_client = MagicMock()
    scoring_client.score.return_value = {}
    pipeline = PredictionPipeline(
        scoring_client=scoring_client,
        persistence=PersistenceCoordinator(store),
        notifier=notifier,
    )

    with pytest.raises(AggregationError):
        pipeline.run(raw_measurements, owner_id=owner.id)

    assert count(session_factory, Patient) == 0


def test_invalid_input_never_calls_scoring(pipeline, http_session, raw_measurements, owner):
    raw = dict(raw_measurements, Glucose="high")

    with pytest.raises(ValidationError):
        pipeline.run(raw, owner_id=owner.id)

    http_session.post.assert_not_called()


def test_persistence_failure_leaves_no_notification(
    pipeline, http_session, scoring_body, raw_measurements, owner, session_factory, transport
):
    http_session.post.return_value = make_response(200, scoring_body)

    with pytest.raises(PersistenceError) as excinfo:
        pipeline.run(raw_measurements, owner_id=owner.id + 100)

    assert excinfo.value.error_kind is PersistenceErrorKind.INVALID_REFERENCE
    assert count(session_factory, Patient) == 0
    assert count(session_factory, Notification) == 0
    assert transport.sent == []


def test_notifier_failure_still_succeeds(
    scoring_client, store, http_session, scoring_body, raw_measurements, owner, session_factory, clock
):
    notifier = BestEffortNotifier(RecordingTransport(error=ConnectionRefusedError("smtp down")))
    pipeline = PredictionPipeline(
        scoring_client=scoring_client,
        persistence=PersistenceCoordinator(store, clock=clock),
        notifier=notifier,
        notify_wait_seconds=5.0,
        clock=clock,
    )
    http_session.post.return_value = make_response(200, scoring_body)
    try:
        result = pipeline.run(raw_measurements, owner_id=owner.id)
    finally:
        notifier.shutdown()

    assert result.to_response()["modelUsed"] == "svm"
    assert result.dispatch_outcome.ok is False
    assert "smtp down" in result.dispatch_outcome.reason
    assert count(session_factory, Patient) == 1
    assert count(session_factory, Notification) == 1


def test_detached_notification_returns_future(
    scoring_client, store, notifier, transport, http_session, scoring_body, raw_measurements, owner
):
    pipeline = PredictionPipeline(
        scoring_client=scoring_client,
        persistence=PersistenceCoordinator(store),
        notifier=notifier,
        notify_wait_seconds=0.0,
    )
    http_session.post.return_value = make_response(200, scoring_body)

    result = pipeline.run(raw_measurements, owner_id=owner.id, contact_address="ward7@clinic.org")

    assert result.dispatch_outcome is None
    assert result.dispatch.result(timeout=5).ok is True
    assert transport.sent[0][0] == "ward7@clinic.org"


def test_request_deadline_propagates_to_scoring(pipeline, http_session, scoring_body, raw_measurements, owner, clock):
    http_session.post.return_value = make_response(200, scoring_body)

    pipeline.run(raw_measurements, owner_id=owner.id, deadline=clock() + 2.0)

    _, kwargs = http_session.post.call_args
    assert kwargs["timeout"] == pytest.approx(2.0)


def test_infinite_confidence_is_rejected_before_write(
    pipeline, http_session, raw_measurements, owner, session_factory, transport
):
    http_session.post.return_value = make_response(200, {"m": {"prediction": True, "confidence": float("inf")}})

    with pytest.raises(AggregationError) as excinfo:
        pipeline.run(raw_measurements, owner_id=owner.id)

    assert excinfo.value.model == "m"
    assert count(session_factory, Patient) == 0
    assert transport.sent == []
