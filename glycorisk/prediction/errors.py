"""Error taxonomy for the prediction pipeline.

Every fatal error carries a ``kind`` and a caller-safe ``message`` and can be
rendered with ``to_dict()``. Scoring request and response payloads are never
stored on an error; ``context`` holds diagnostics only (attempt counts,
elapsed time, status codes, model names).

Notification failures are not exceptions here: the notifier reports them as
a ``DispatchOutcome`` with ``ok=False``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class PredictionError(Exception):
    kind: str = "PredictionError"
    http_status: int = 500

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message}


@dataclass(frozen=True)
class FieldProblem:
    field: str
    problem: str  # "missing" | "not_numeric" | "negative" | "not_object" | "not_json"


class ValidationError(PredictionError):
    kind = "ValidationError"
    http_status = 422

    def __init__(self, problems: List[FieldProblem]):
        self.problems = list(problems)
        details = ", ".join(f"{p.field} ({p.problem})" for p in self.problems)
        super().__init__(
            f"Invalid or missing value for field(s): {details}",
            context={"fields": [p.field for p in self.problems]},
        )

    @property
    def fields(self) -> List[str]:
        return [p.field for p in self.problems]

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["fields"] = [{"field": p.field, "problem": p.problem} for p in self.problems]
        return body


class ScoringErrorKind(str, Enum):
    UNAVAILABLE = "Unavailable"
    INVALID_RESPONSE = "InvalidResponse"


class ScoringError(PredictionError):
    http_status = 503

    def __init__(
        self,
        kind: ScoringErrorKind,
        message: str,
        attempts: int,
        elapsed_seconds: float,
        status_code: Optional[int] = None,
    ):
        self.error_kind = kind
        self.attempts = attempts
        self.elapsed_seconds = elapsed_seconds
        self.status_code = status_code
        super().__init__(
            message,
            context={
                "attempts": attempts,
                "elapsed_seconds": round(elapsed_seconds, 3),
                "status_code": status_code,
            },
        )

    @property
    def kind(self) -> str:  # type: ignore[override]
        return f"ScoringError.{self.error_kind.value}"


class AggregationErrorKind(str, Enum):
    MALFORMED = "Malformed"


class AggregationError(PredictionError):
    http_status = 502

    def __init__(self, message: str, model: Optional[str] = None):
        self.error_kind = AggregationErrorKind.MALFORMED
        self.model = model
        super().__init__(message, context={"model": model})

    @property
    def kind(self) -> str:  # type: ignore[override]
        return f"AggregationError.{self.error_kind.value}"


class PersistenceErrorKind(str, Enum):
    INVALID_REFERENCE = "InvalidReference"
    CONFLICT = "Conflict"
    STORE_UNAVAILABLE = "StoreUnavailable"


class PersistenceError(PredictionError):
    http_status = 500

    def __init__(self, kind: PersistenceErrorKind, message: str, context: Optional[Dict[str, Any]] = None):
        self.error_kind = kind
        super().__init__(message, context=context)

    @property
    def kind(self) -> str:  # type: ignore[override]
        return f"PersistenceError.{self.error_kind.value}"
