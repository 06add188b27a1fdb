"""Diabetes risk prediction pipeline.

This package contains:
- input normalization into a ``MeasurementSet``
- a retrying HTTP client for the external scoring service
- aggregation of several model outputs into one decision and a risk tier
- the atomic write of the decision record with its notification
- best-effort outcome emails that never fail the request
- the FastAPI router exposing the pipeline and the record read paths
"""

from .errors import (
    AggregationError,
    PersistenceError,
    PredictionError,
    ScoringError,
    ValidationError,
)
from .pipeline import PredictionPipeline, PredictionResult
