import pytest

from alerts.risk_aggregator import RiskPolicy, aggregate_risk, resolve_risk_policy
from models.session import RiskTier, TestVerdict

NORM = TestVerdict.NORMAL
ABN = TestVerdict.ABNORMAL
INC = TestVerdict.INCONCLUSIVE


@pytest.mark.parametrize(
    "verdicts, expected",
    [
        ((NORM, NORM, NORM), RiskTier.NO_STROKE),
        ((ABN, NORM, NORM), RiskTier.POSSIBLE_STROKE),
        ((ABN, ABN, NORM), RiskTier.EMERGENCY),
        ((ABN, ABN, ABN), RiskTier.EMERGENCY),
        ((INC, NORM, NORM), RiskTier.POSSIBLE_STROKE),
        ((INC, INC, ABN), RiskTier.POSSIBLE_STROKE),
        ((None, None, None), RiskTier.NO_STROKE),
        ((None, ABN, None), RiskTier.POSSIBLE_STROKE),
    ],
)
def test_broad_policy(verdicts, expected):
    assert aggregate_risk(*verdicts, policy=RiskPolicy.BROAD) is expected


def test_narrow_policy_ignores_inconclusive():
    assert aggregate_risk(INC, INC, NORM, policy=RiskPolicy.NARROW) is RiskTier.NO_STROKE
    assert aggregate_risk(INC, ABN, NORM, policy=RiskPolicy.NARROW) is RiskTier.POSSIBLE_STROKE
    assert aggregate_risk(ABN, ABN, INC, policy="narrow") is RiskTier.EMERGENCY


def test_default_policy_is_broad():
    assert resolve_risk_policy() is RiskPolicy.BROAD
    assert aggregate_risk(INC, NORM, NORM) is RiskTier.POSSIBLE_STROKE


def test_tier_labels():
    assert RiskTier.EMERGENCY.value == "Emergency - Call 911 Immediately"
    assert RiskTier.POSSIBLE_STROKE.value == "Possible Stroke - Seek Medical Attention"
    assert RiskTier.NO_STROKE.value == "No Stroke Detected"
