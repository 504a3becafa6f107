"""
Behavioral profile derivation.

A profile is a pure function of a transaction sample: the same sample
always yields the same profile. Ranking ties are broken
deterministically:
- hours of day: lower hour first
- recipients: the one seen first (in timestamp order) first
"""

from collections import Counter
from typing import Iterable

from safebank.models.transaction import BehavioralProfile, Transaction

TYPICAL_HOURS_COUNT = 3
COMMON_RECIPIENTS_COUNT = 5


def _typical_hours(transactions: list[Transaction]) -> list[int]:
    counts = Counter(tx.hour for tx in transactions)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [hour for hour, _ in ranked[:TYPICAL_HOURS_COUNT]]


def _common_recipients(transactions: list[Transaction]) -> list[str]:
    # Counter keeps first-insertion order and most_common() sorts stably
    counts = Counter(tx.recipient for tx in transactions)
    return [recipient for recipient, _ in counts.most_common(COMMON_RECIPIENTS_COUNT)]


def _usage_frequency(transactions: list[Transaction]) -> float:
    span_days = (transactions[-1].timestamp - transactions[0].timestamp).days
    return len(transactions) / max(span_days, 1)


def build_behavioral_profile(history: Iterable[Transaction]) -> BehavioralProfile:
    """
    Derive a BehavioralProfile from a transaction history.

    The history may arrive in any order; it is sorted by timestamp first.

    Raises:
        ValueError: If history is empty
    """
    transactions = sorted(history, key=lambda tx: tx.timestamp)
    if not transactions:
        raise ValueError("Cannot build a behavioral profile from an empty history")

    return BehavioralProfile(
        typical_transaction_amount=sum(tx.amount for tx in transactions) / len(transactions),
        typical_transaction_times=_typical_hours(transactions),
        common_recipients=_common_recipients(transactions),
        usage_frequency=_usage_frequency(transactions),
    )
