import logging
from enum import Enum
from typing import Optional, Union

from config import constants
from models.session import RiskTier, TestVerdict

logger = logging.getLogger("fast_screen.alerts.risk_aggregator")


class RiskPolicy(str, Enum):
    # Any inconclusive test is enough for a medical evaluation
    BROAD = "broad"
    # Only abnormal tests raise the tier
    NARROW = "narrow"


def resolve_risk_policy(value: Optional[Union[str, RiskPolicy]] = None) -> RiskPolicy:
    if value is None:
        value = constants.RISK_POLICY
    return RiskPolicy(str(getattr(value, "value", value)).lower())


def aggregate_risk(
    face: Optional[TestVerdict],
    arm: Optional[TestVerdict],
    speech: Optional[TestVerdict],
    policy: Optional[Union[str, RiskPolicy]] = None,
) -> RiskTier:
    """Combine the three test verdicts into an overall risk tier.

    A test that was never run counts as Normal.
    """
    policy = resolve_risk_policy(policy)
    verdicts = [v if v is not None else TestVerdict.NORMAL for v in (face, arm, speech)]

    abnormal_count = sum(1 for v in verdicts if v is TestVerdict.ABNORMAL)
    inconclusive_count = sum(1 for v in verdicts if v is TestVerdict.INCONCLUSIVE)

    if abnormal_count >= 2:
        tier = RiskTier.EMERGENCY
    elif abnormal_count == 1:
        tier = RiskTier.POSSIBLE_STROKE
    elif inconclusive_count >= 1 and policy is RiskPolicy.BROAD:
        tier = RiskTier.POSSIBLE_STROKE
    else:
        tier = RiskTier.NO_STROKE

    logger.debug(
        "Risk aggregated: abnormal=%d, inconclusive=%d, policy=%s, tier=%s",
        abnormal_count,
        inconclusive_count,
        policy.value,
        tier.name,
    )
    return tier
