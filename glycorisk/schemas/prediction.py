from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_serializer

from glycorisk.utils.timezone import to_utc_aware


class PredictionResponse(BaseModel):
    decision: bool
    confidence: float
    tier: str
    recommendation: str
    modelUsed: str


class ErrorResponse(BaseModel):
    kind: str
    message: str
    fields: Optional[List[Dict[str, Any]]] = None


class PatientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    name: str
    pregnancies: int
    glucose: float
    blood_pressure: float
    skin_thickness: float
    insulin: float
    bmi: float
    diabetes_pedigree_function: float
    age: int
    prediction: bool
    confidence: float
    model_used: str
    risk_level: str
    recommendation: str
    created_at: datetime

    @field_serializer("created_at")
    def _serialize_created_at(self, value: datetime) -> datetime:
        return to_utc_aware(value)
