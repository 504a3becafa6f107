"""Risk scoring package."""

from safebank.scoring.engine import FACTOR_WEIGHTS, FraudDetector, FraudStatistics
from safebank.scoring.factors import circular_hour_distance
from safebank.scoring.profile import build_behavioral_profile

__all__ = [
    "FACTOR_WEIGHTS",
    "FraudDetector",
    "FraudStatistics",
    "build_behavioral_profile",
    "circular_hour_distance",
]
