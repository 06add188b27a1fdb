"""In-memory value types passed between pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class MeasurementSet:
    """Validated input features for one scoring request."""

    name: str
    pregnancies: int
    glucose: float
    blood_pressure: float
    skin_thickness: float
    insulin: float
    bmi: float
    diabetes_pedigree_function: float
    age: int

    def to_scoring_payload(self) -> Dict[str, Any]:
        """Body for the scoring service. Only the eight model features."""
        return {
            "Pregnancies": int(self.pregnancies),
            "Glucose": float(self.glucose),
            "BloodPressure": float(self.blood_pressure),
            "SkinThickness": float(self.skin_thickness),
            "Insulin": float(self.insulin),
            "BMI": float(self.bmi),
            "DiabetesPedigreeFunction": float(self.diabetes_pedigree_function),
            "Age": int(self.age),
        }


@dataclass(frozen=True)
class ModelOutcome:
    """One named model's answer as received. Values are checked by ``aggregate``."""

    model_name: str
    confidence: Any
    decision: Any


@dataclass(frozen=True)
class AggregatedDecision:
    decision: bool
    confidence: float
    source_model: str


class RiskTier(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    CRITICAL = "Critical"


@dataclass(frozen=True)
class RiskAssessment:
    tier: RiskTier
    recommendation: str


@dataclass(frozen=True)
class DispatchOutcome:
    """Result of one best-effort notification attempt. Never persisted."""

    ok: bool
    reason: Optional[str] = None
    record_id: Optional[int] = None
    context: Dict[str, Any] = field(default_factory=dict)
