"""
Risk Models for SafeBank

The scoring engine never hands back a bare number. Every score comes
with the list of risk factors that produced it, so reviewers and the
audit trail can see why a transaction was held.
"""

from enum import Enum

from pydantic import BaseModel, Field


class RiskFactorType(str, Enum):
    """Categories of risk signal."""
    AMOUNT_ANOMALY = "amount_anomaly"
    TIME_ANOMALY = "time_anomaly"
    FREQUENCY_ANOMALY = "frequency_anomaly"
    RECIPIENT_ANOMALY = "recipient_anomaly"
    LOCATION_ANOMALY = "location_anomaly"
    DEVICE_ANOMALY = "device_anomaly"
    BEHAVIOR_PATTERN = "behavior_pattern"


class FraudRecommendation(str, Enum):
    """What the engine suggests doing with a scored transaction."""
    APPROVE = "approve"
    FLAG = "flag"
    REQUIRE_ADDITIONAL_AUTH = "require_additional_auth"
    BLOCK = "block"


class RiskFactor(BaseModel):
    """One explainable contribution to a fraud score."""

    factor_type: RiskFactorType
    score: float = Field(..., ge=0.0, le=1.0)
    description: str = Field(..., max_length=300)


class FraudAnalysisResult(BaseModel):
    """
    Outcome of scoring one transaction.

    contributions maps each evaluated factor name to its weighted share
    of fraud_score (sub-score x weight in full mode, raw increment in
    lightweight mode).
    """

    fraud_score: float = Field(..., ge=0.0, le=1.0)
    risk_factors: list[RiskFactor] = Field(default_factory=list)
    contributions: dict[str, float] = Field(default_factory=dict)
    recommendation: FraudRecommendation = FraudRecommendation.APPROVE

    @property
    def factor_types(self) -> list[RiskFactorType]:
        return [factor.factor_type for factor in self.risk_factors]
