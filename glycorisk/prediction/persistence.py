"""Transaction boundary of a prediction request."""

import logging
import time
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from glycorisk.models import Notification, Patient

from .errors import PersistenceError, PersistenceErrorKind
from .metrics import prediction_records_persisted_total
from .repository import RecordStore
from .types import AggregatedDecision, MeasurementSet, RiskAssessment

logger = logging.getLogger(__name__)

FOREIGN_KEY_VIOLATION = "23503"
UNIQUE_VIOLATION = "23505"


def classify_integrity_error(exc: IntegrityError) -> PersistenceErrorKind:
    """Map a driver integrity error to a persistence error kind.

    Postgres reports a SQLSTATE on ``orig.pgcode``; SQLite only has the
    message text.
    """
    pgcode = getattr(exc.orig, "pgcode", None)
    if pgcode == FOREIGN_KEY_VIOLATION:
        return PersistenceErrorKind.INVALID_REFERENCE
    if pgcode == UNIQUE_VIOLATION:
        return PersistenceErrorKind.CONFLICT
    text = str(exc.orig).upper()
    if "FOREIGN KEY" in text:
        return PersistenceErrorKind.INVALID_REFERENCE
    if "UNIQUE" in text or "DUPLICATE" in text:
        return PersistenceErrorKind.CONFLICT
    return PersistenceErrorKind.STORE_UNAVAILABLE


def notification_message(patient_name: str, assessment: RiskAssessment) -> str:
    return f"Patient {patient_name} has {assessment.tier.value} risk"


class PersistenceCoordinator:
    def __init__(self, store: RecordStore, clock: Callable[[], float] = time.monotonic):
        self.store = store
        self._clock = clock

    def persist(
        self,
        measurements: MeasurementSet,
        decision: AggregatedDecision,
        assessment: RiskAssessment,
        owner_id: int,
        deadline: Optional[float] = None,
    ) -> Patient:
        """Write the decision record and its unread notification together.

        Either both rows exist afterwards or neither does. Time left before
        ``deadline`` bounds the write itself; a write cancelled for running
        past it is reported as ``StoreUnavailable``.
        """
        remaining = None if deadline is None else deadline - self._clock()
        if remaining is not None and remaining <= 0:
            raise PersistenceError(
                PersistenceErrorKind.STORE_UNAVAILABLE,
                "Request deadline exceeded before the record could be saved",
                context={"owner_id": owner_id},
            )

        record = Patient(
            user_id=owner_id,
            name=measurements.name,
            pregnancies=measurements.pregnancies,
            glucose=measurements.glucose,
            blood_pressure=measurements.blood_pressure,
            skin_thickness=measurements.skin_thickness,
            insulin=measurements.insulin,
            bmi=measurements.bmi,
            diabetes_pedigree_function=measurements.diabetes_pedigree_function,
            age=measurements.age,
            prediction=decision.decision,
            confidence=decision.confidence,
            model_used=decision.source_model,
            risk_level=assessment.tier.value,
            recommendation=assessment.recommendation,
        )
        notification = Notification(
            message=notification_message(measurements.name, assessment),
            is_read=False,
        )

        try:
            saved = self.store.create_decision_with_notification(record, notification, timeout_seconds=remaining)
        except IntegrityError as exc:
            kind = classify_integrity_error(exc)
            logger.error("Failed to save decision record for owner %s: %s", owner_id, kind.value)
            raise PersistenceError(
                kind,
                "Decision record rejected by the record store",
                context={"owner_id": owner_id},
            ) from exc
        except SQLAlchemyError as exc:
            logger.error(
                "Record store unavailable while saving decision for owner %s: %s",
                owner_id,
                type(exc).__name__,
            )
            raise PersistenceError(
                PersistenceErrorKind.STORE_UNAVAILABLE,
                "Record store unavailable",
                context={"owner_id": owner_id},
            ) from exc

        prediction_records_persisted_total.inc()
        logger.info("Saved decision record %s for owner %s", saved.id, owner_id)
        return saved
