from typing import Tuple

from .types import RiskAssessment, RiskTier

# (exclusive upper bound, tier, recommendation); first match wins
RISK_BANDS: Tuple[Tuple[float, RiskTier, str], ...] = (
    (40.0, RiskTier.LOW, "Maintain a healthy lifestyle and regular checkups."),
    (70.0, RiskTier.MODERATE, "Monitor health regularly and consider lifestyle improvements."),
    (90.0, RiskTier.HIGH, "Consult a doctor and undergo further medical checkups."),
)
CRITICAL_RECOMMENDATION = "Immediate medical consultation is required."


def classify(confidence: float) -> RiskAssessment:
    """Map a confidence percentage to a risk tier. Bands are [lower, upper)."""
    for upper, tier, recommendation in RISK_BANDS:
        if confidence < upper:
            return RiskAssessment(tier=tier, recommendation=recommendation)
    return RiskAssessment(tier=RiskTier.CRITICAL, recommendation=CRITICAL_RECOMMENDATION)
