import pytest

from glycorisk.prediction.risk import classify
from glycorisk.prediction.types import RiskTier


@pytest.mark.parametrize(
    "confidence,tier",
    [
        (0.0, RiskTier.LOW),
        (39.9, RiskTier.LOW),
        (40.0, RiskTier.MODERATE),
        (69.9, RiskTier.MODERATE),
        (70.0, RiskTier.HIGH),
        (89.99, RiskTier.HIGH),
        (90.0, RiskTier.CRITICAL),
        (100.0, RiskTier.CRITICAL),
        (-12.0, RiskTier.LOW),
        (250.0, RiskTier.CRITICAL),
        (float("inf"), RiskTier.CRITICAL),
    ],
)
def test_band_boundaries(confidence, tier):
    assert classify(confidence).tier is tier


def test_recommendations():
    assert classify(10).recommendation == "Maintain a healthy lifestyle and regular checkups."
    assert classify(50).recommendation == "Monitor health regularly and consider lifestyle improvements."
    assert classify(80).recommendation == "Consult a doctor and undergo further medical checkups."
    assert classify(95).recommendation == "Immediate medical consultation is required."


def test_tier_values_are_display_names():
    assert [t.value for t in RiskTier] == ["Low", "Moderate", "High", "Critical"]
