from prometheus_client import Counter, Histogram


prediction_requests_total = Counter(
    "prediction_requests_total",
    "Prediction requests by outcome",
    ["outcome"],
)

prediction_scoring_attempts_total = Counter(
    "prediction_scoring_attempts_total",
    "Total HTTP attempts against the scoring service",
)

prediction_scoring_retries_total = Counter(
    "prediction_scoring_retries_total",
    "Total scoring attempts that were retried",
)

prediction_scoring_failures_total = Counter(
    "prediction_scoring_failures_total",
    "Scoring calls that failed after the retry budget",
    ["kind"],
)

prediction_scoring_latency_seconds = Histogram(
    "prediction_scoring_latency_seconds",
    "Wall time of a scoring call including retries",
)

prediction_records_persisted_total = Counter(
    "prediction_records_persisted_total",
    "Decision records written together with their notification",
)

prediction_dispatch_success_total = Counter(
    "prediction_dispatch_success_total",
    "Total successful outcome emails",
)

prediction_dispatch_failed_total = Counter(
    "prediction_dispatch_failed_total",
    "Total failed outcome emails",
)
