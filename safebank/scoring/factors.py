"""
Risk sub-scores used by the behavioral scoring mode.

Each function maps one aspect of a transaction, compared against the
user's BehavioralProfile, to a sub-score in [0, 1].
"""

from safebank.models.transaction import BehavioralProfile, Transaction

HIGH_FREQUENCY_PER_DAY = 10.0
NEAR_TYPICAL_HOURS = 2


def circular_hour_distance(a: int, b: int) -> int:
    """Distance between two hours of day on a 24h clock (0..12)."""
    diff = abs(a - b)
    return min(diff, 24 - diff)


def amount_anomaly_score(transaction: Transaction, profile: BehavioralProfile) -> float:
    """
    How far the amount deviates from the user's typical amount.

    ratio = larger / smaller of (amount, typical):
    >5 -> 0.8, >3 -> 0.6, >2 -> 0.4, otherwise 0.
    """
    typical = profile.typical_transaction_amount
    if typical <= 0:
        return 0.0

    current = transaction.amount
    if current <= 0:
        ratio = float("inf")
    else:
        ratio = max(current, typical) / min(current, typical)

    if ratio > 5.0:
        return 0.8
    if ratio > 3.0:
        return 0.6
    if ratio > 2.0:
        return 0.4
    return 0.0


def time_anomaly_score(transaction: Transaction, profile: BehavioralProfile) -> float:
    """0 at a typical hour, 0.2 within two hours of one, 0.5 otherwise."""
    typical_hours = profile.typical_transaction_times
    if not typical_hours:
        return 0.0

    hour = transaction.hour
    if hour in typical_hours:
        return 0.0

    if any(
        circular_hour_distance(hour, typical) <= NEAR_TYPICAL_HOURS
        for typical in typical_hours
    ):
        return 0.2
    return 0.5


def frequency_anomaly_score(transaction: Transaction, profile: BehavioralProfile) -> float:
    """0.3 when the user's baseline exceeds ten transactions a day, else 0."""
    # TODO: compare the user's recent rate against usage_frequency once the
    # ledger exposes a per-user rolling window; only the baseline is checked now
    if profile.usage_frequency > HIGH_FREQUENCY_PER_DAY:
        return 0.3
    return 0.0


def recipient_anomaly_score(transaction: Transaction, profile: BehavioralProfile) -> float:
    """
    0.1 when the user has no known recipients yet (new user),
    0 for a known recipient, 0.3 for a new one.
    """
    if not profile.common_recipients:
        return 0.1
    if transaction.recipient in profile.common_recipients:
        return 0.0
    return 0.3


def limit_proximity_score(transaction: Transaction, single_transaction_limit: float) -> float:
    if transaction.amount > single_transaction_limit:
        return 1.0
    if transaction.amount >= single_transaction_limit * 0.8:
        return 0.5
    return 0.0
