from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PredictionSettings(BaseSettings):
    # Scoring service
    SCORING_SERVICE_URL: Optional[str] = None
    SCORING_PREDICT_PATH: str = "/predict"
    SCORING_TIMEOUT_SECONDS: float = 10.0

    # Retry policy
    SCORING_MAX_ATTEMPTS: int = 3
    SCORING_BACKOFF_BASE_SECONDS: float = 0.5
    SCORING_BACKOFF_MAX_SECONDS: float = 8.0
    SCORING_BACKOFF_JITTER: bool = True

    # Overall budget for one request (scoring + persistence)
    REQUEST_DEADLINE_SECONDS: float = 45.0

    # Best-effort notification
    NOTIFY_WORKERS: int = 4
    NOTIFY_QUEUE_LIMIT: int = 100  # queued + in-flight emails
    NOTIFY_WAIT_SECONDS: float = 0.0  # 0 = fully detached

    # Metrics
    METRICS_ENABLED: bool = True

    @field_validator("SCORING_TIMEOUT_SECONDS")
    @classmethod
    def _bound_timeout(cls, v: float) -> float:
        return min(max(float(v), 5.0), 30.0)

    @field_validator("SCORING_MAX_ATTEMPTS")
    @classmethod
    def _bound_attempts(cls, v: int) -> int:
        return min(max(int(v), 1), 5)

    @field_validator("SCORING_BACKOFF_BASE_SECONDS", "SCORING_BACKOFF_MAX_SECONDS", "NOTIFY_WAIT_SECONDS")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @field_validator("NOTIFY_WORKERS", "NOTIFY_QUEUE_LIMIT")
    @classmethod
    def _at_least_one(cls, v: int) -> int:
        return max(int(v), 1)

    @property
    def predict_url(self) -> str:
        if not self.SCORING_SERVICE_URL:
            raise RuntimeError("PREDICTION_SCORING_SERVICE_URL not configured")
        return self.SCORING_SERVICE_URL.rstrip("/") + "/" + self.SCORING_PREDICT_PATH.lstrip("/")

    model_config = SettingsConfigDict(env_prefix="PREDICTION_", env_file=".env", extra="ignore")


@lru_cache
def get_prediction_settings() -> PredictionSettings:
    return PredictionSettings()
