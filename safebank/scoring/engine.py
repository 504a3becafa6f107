"""
Risk Scoring Engine

Scores a transaction against the user's behavioral profile and returns
the score together with the risk factors behind it.

Two modes, selected by settings.enable_behavioral_analysis:

LIGHTWEIGHT (False) - fixed increments, no profile needed:
- amount above 80% of the single-transaction limit   +0.4
- authored between 23:00 and 05:59                    +0.2
- round amount (multiple of 100, at least 1000)       +0.1
The largest reachable score is 0.7.

BEHAVIORAL (True) - weighted sum of five sub-scores, clamped to [0, 1]:
- amount anomaly      30%
- time anomaly        20%
- frequency anomaly   25%
- recipient anomaly   15%
- limit proximity     10%  (scored, never reported as a risk factor)

The engine also owns the per-user profiles it rebuilds and a set of
running counters (analyzed / flagged / blocked). All of that state is
guarded by one lock.
"""

import threading
from dataclasses import dataclass
from typing import Iterable, Optional
from uuid import UUID

import structlog

from safebank.config import SafeBankSettings, get_settings
from safebank.models.risk import (
    FraudAnalysisResult,
    FraudRecommendation,
    RiskFactor,
    RiskFactorType,
)
from safebank.models.transaction import BehavioralProfile, Transaction, UserProfile
from safebank.scoring.factors import (
    amount_anomaly_score,
    frequency_anomaly_score,
    limit_proximity_score,
    recipient_anomaly_score,
    time_anomaly_score,
)
from safebank.scoring.profile import build_behavioral_profile

logger = structlog.get_logger(__name__)


FACTOR_WEIGHTS = {
    "amount_anomaly": 0.30,
    "time_anomaly": 0.20,
    "frequency_anomaly": 0.25,
    "recipient_anomaly": 0.15,
    "limit_proximity": 0.10,
}

LIGHTWEIGHT_LARGE_AMOUNT = 0.4
LIGHTWEIGHT_NIGHT_HOUR = 0.2
LIGHTWEIGHT_ROUND_AMOUNT = 0.1


@dataclass
class FraudStatistics:
    total_transactions_analyzed: int = 0
    transactions_flagged: int = 0
    transactions_blocked: int = 0
    fraud_confirmed: int = 0


def _is_night_hour(hour: int) -> bool:
    return hour >= 23 or hour <= 5


def _is_round_amount(amount: float) -> bool:
    return amount >= 1000 and amount % 100 == 0


class FraudDetector:
    """
    Fraud scoring engine.

    Treats every transaction it scores as read-only; attaching the score
    to the transaction is the caller's job.
    """

    def __init__(self, settings: Optional[SafeBankSettings] = None):
        self._settings = settings or get_settings()
        self._profiles: dict[UUID, BehavioralProfile] = {}
        self._stats = FraudStatistics()
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Scoring
    # -------------------------------------------------------------------------

    def analyze(
        self,
        transaction: Transaction,
        profile: BehavioralProfile,
    ) -> FraudAnalysisResult:
        """
        Score a transaction.

        Args:
            transaction: The transaction to score (not modified)
            profile: Behavioral baseline of the transaction's user.
                     Ignored in lightweight mode.

        Returns:
            FraudAnalysisResult with score in [0, 1], risk factors,
            per-factor contributions and a recommendation
        """
        if self._settings.enable_behavioral_analysis:
            score, factors, contributions = self._behavioral_analysis(transaction, profile)
        else:
            score, factors, contributions = self._lightweight_analysis(transaction)

        result = FraudAnalysisResult(
            fraud_score=score,
            risk_factors=factors,
            contributions=contributions,
            recommendation=self._recommend(score),
        )
        self._record(result.fraud_score)

        logger.debug(
            "transaction_analyzed",
            transaction_id=str(transaction.transaction_id),
            fraud_score=result.fraud_score,
            risk_factors=[f.value for f in result.factor_types],
            behavioral=self._settings.enable_behavioral_analysis,
        )
        return result

    def analyze_for_user(
        self,
        transaction: Transaction,
        user: UserProfile,
    ) -> FraudAnalysisResult:
        """Score using the rebuilt profile if one exists, else the user's own."""
        profile = self.get_profile(user.user_id) or user.behavioral_profile
        return self.analyze(transaction, profile)

    def _lightweight_analysis(
        self,
        transaction: Transaction,
    ) -> tuple[float, list[RiskFactor], dict[str, float]]:
        limit = self._settings.single_transaction_limit
        factors: list[RiskFactor] = []
        contributions: dict[str, float] = {}

        if transaction.amount > limit * 0.8:
            factors.append(RiskFactor(
                factor_type=RiskFactorType.AMOUNT_ANOMALY,
                score=LIGHTWEIGHT_LARGE_AMOUNT,
                description=f"Amount {transaction.amount:.2f} is close to the {limit:.2f} limit",
            ))
            contributions["large_amount"] = LIGHTWEIGHT_LARGE_AMOUNT

        if _is_night_hour(transaction.hour):
            factors.append(RiskFactor(
                factor_type=RiskFactorType.TIME_ANOMALY,
                score=LIGHTWEIGHT_NIGHT_HOUR,
                description=f"Transaction at {transaction.hour:02d}:00 falls in night hours",
            ))
            contributions["night_hour"] = LIGHTWEIGHT_NIGHT_HOUR

        if _is_round_amount(transaction.amount):
            factors.append(RiskFactor(
                factor_type=RiskFactorType.BEHAVIOR_PATTERN,
                score=LIGHTWEIGHT_ROUND_AMOUNT,
                description=f"Round amount {transaction.amount:.2f}",
            ))
            contributions["round_amount"] = LIGHTWEIGHT_ROUND_AMOUNT

        return sum(contributions.values()), factors, contributions

    def _behavioral_analysis(
        self,
        transaction: Transaction,
        profile: BehavioralProfile,
    ) -> tuple[float, list[RiskFactor], dict[str, float]]:
        subscores = {
            "amount_anomaly": amount_anomaly_score(transaction, profile),
            "time_anomaly": time_anomaly_score(transaction, profile),
            "frequency_anomaly": frequency_anomaly_score(transaction, profile),
            "recipient_anomaly": recipient_anomaly_score(transaction, profile),
            "limit_proximity": limit_proximity_score(
                transaction, self._settings.single_transaction_limit
            ),
        }
        descriptions = {
            "amount_anomaly": (
                RiskFactorType.AMOUNT_ANOMALY,
                f"Transaction amount {transaction.amount:.2f} deviates from typical pattern",
            ),
            "time_anomaly": (
                RiskFactorType.TIME_ANOMALY,
                "Transaction time unusual for user",
            ),
            "frequency_anomaly": (
                RiskFactorType.FREQUENCY_ANOMALY,
                "Unusual transaction frequency detected",
            ),
            "recipient_anomaly": (
                RiskFactorType.RECIPIENT_ANOMALY,
                "Transaction to new or unusual recipient",
            ),
        }

        factors = [
            RiskFactor(factor_type=factor_type, score=subscores[name], description=text)
            for name, (factor_type, text) in descriptions.items()
            if subscores[name] > 0
        ]
        contributions = {
            name: subscore * FACTOR_WEIGHTS[name]
            for name, subscore in subscores.items()
        }

        score = min(max(sum(contributions.values()), 0.0), 1.0)
        return score, factors, contributions

    def _recommend(self, score: float) -> FraudRecommendation:
        if score > self._settings.fraud_threshold_high:
            return FraudRecommendation.BLOCK
        if score > self._settings.fraud_threshold_medium:
            return FraudRecommendation.REQUIRE_ADDITIONAL_AUTH
        if score > self._settings.fraud_threshold_low:
            return FraudRecommendation.FLAG
        return FraudRecommendation.APPROVE

    def _record(self, score: float) -> None:
        with self._lock:
            self._stats.total_transactions_analyzed += 1
            if score > self._settings.fraud_threshold_medium:
                self._stats.transactions_flagged += 1
            if score > self._settings.fraud_threshold_high:
                self._stats.transactions_blocked += 1

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    def rebuild_profile(
        self,
        user_id: UUID,
        history: Iterable[Transaction],
    ) -> Optional[BehavioralProfile]:
        """
        Recompute and store the user's profile from a transaction history.

        An empty history leaves any existing profile untouched and
        returns None.
        """
        transactions = list(history)
        if not transactions:
            return None

        profile = build_behavioral_profile(transactions)
        with self._lock:
            self._profiles[user_id] = profile

        logger.info(
            "behavioral_profile_rebuilt",
            user_id=str(user_id),
            sample_size=len(transactions),
        )
        return profile.model_copy(deep=True)

    def get_profile(self, user_id: UUID) -> Optional[BehavioralProfile]:
        with self._lock:
            profile = self._profiles.get(user_id)
            return profile.model_copy(deep=True) if profile else None

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def get_statistics(self) -> dict[str, float]:
        """Counters since start (or the last reset), plus rates."""
        with self._lock:
            stats = self._stats
            result = {
                "total_analyzed": float(stats.total_transactions_analyzed),
                "flagged": float(stats.transactions_flagged),
                "blocked": float(stats.transactions_blocked),
                "confirmed_fraud": float(stats.fraud_confirmed),
            }
            if stats.total_transactions_analyzed > 0:
                total = stats.total_transactions_analyzed
                result["flag_rate_percent"] = stats.transactions_flagged / total * 100.0
                result["block_rate_percent"] = stats.transactions_blocked / total * 100.0
        return result

    def mark_as_fraud(self, transaction_id: UUID, is_fraud: bool = True) -> None:
        """
        Record a confirmed fraud outcome.

        Only counted; scoring weights are not adjusted.
        """
        if not is_fraud:
            return
        with self._lock:
            self._stats.fraud_confirmed += 1
        logger.info("fraud_confirmed", transaction_id=str(transaction_id))

    def reset_statistics(self) -> None:
        with self._lock:
            self._stats = FraudStatistics()
