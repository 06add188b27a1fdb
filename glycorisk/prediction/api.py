from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Header, HTTPException, Query

from glycorisk.core.config import get_settings
from glycorisk.db.session import get_session_factory
from glycorisk.schemas.prediction import ErrorResponse, PatientOut, PredictionResponse
from glycorisk.services.email_service import SmtpTransport

from .client import ScoringClient
from .config import get_prediction_settings
from .dispatcher import BestEffortNotifier
from .persistence import PersistenceCoordinator
from .pipeline import PredictionPipeline
from .repository import RecordStore


router = APIRouter(tags=["predictions"])


@lru_cache
def get_record_store() -> RecordStore:
    return RecordStore(get_session_factory())


@lru_cache
def get_notifier() -> BestEffortNotifier:
    return BestEffortNotifier(
        SmtpTransport.from_settings(get_settings()),
        max_workers=get_prediction_settings().NOTIFY_WORKERS,
        queue_limit=get_prediction_settings().NOTIFY_QUEUE_LIMIT,
    )


@lru_cache
def get_pipeline() -> PredictionPipeline:
    settings = get_prediction_settings()
    store = get_record_store()
    return PredictionPipeline(
        scoring_client=ScoringClient.from_settings(settings),
        persistence=PersistenceCoordinator(store),
        notifier=get_notifier(),
        store=store,
        request_deadline_seconds=settings.REQUEST_DEADLINE_SECONDS,
        notify_wait_seconds=settings.NOTIFY_WAIT_SECONDS,
    )


def parse_record_id(value: Optional[str]) -> Optional[int]:
    """Positive decimal id from a header or path segment, else None."""
    text = (value or "").strip()
    if not text.isdecimal():
        return None
    number = int(text)
    return number if number > 0 else None


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> int:
    """Owner of the request.

    Authentication happens upstream; the gateway forwards the verified user
    id in ``X-User-Id``. Deployments with in-process auth override this
    dependency.
    """
    user_id = parse_record_id(x_user_id)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user_id


_error_responses: Dict[int | str, Dict[str, Any]] = {
    422: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


@router.post("/predict", response_model=PredictionResponse, responses=_error_responses)
def predict(
    payload: Any = Body(...),
    user_id: int = Depends(get_current_user_id),
    pipeline: PredictionPipeline = Depends(get_pipeline),
):
    result = pipeline.run(payload, owner_id=user_id)
    return result.to_response()


@router.get("/patients", response_model=List[PatientOut])
def list_patients(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    user_id: int = Depends(get_current_user_id),
    store: RecordStore = Depends(get_record_store),
):
    return store.list_by_owner(user_id, skip=skip, limit=limit)


@router.get("/patients/{patient_id}", response_model=PatientOut)
def get_patient(
    patient_id: str,
    user_id: int = Depends(get_current_user_id),
    store: RecordStore = Depends(get_record_store),
):
    record_id = parse_record_id(patient_id)
    if record_id is None:
        raise HTTPException(status_code=400, detail="Invalid patient ID")
    patient = store.get_by_id(record_id, owner_id=user_id)
    if patient is None:
        raise HTTPException(status_code=404, detail="Patient not found")
    return patient
