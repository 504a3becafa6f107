"""Shared fixtures: settings, users, transactions and a controllable clock."""

from datetime import datetime, timedelta, timezone

import pytest

from safebank.config import SafeBankSettings
from safebank.models.transaction import DeviceInfo, Transaction, UserProfile


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 10, 14, 0, tzinfo=timezone.utc))


@pytest.fixture
def settings():
    """Default limits: single 5000, daily 10000, offline 1000."""
    return SafeBankSettings(
        _env_file=None,
        fraud_threshold_low=0.3,
        fraud_threshold_medium=0.6,
        fraud_threshold_high=0.8,
        enable_behavioral_analysis=True,
        daily_transaction_limit=10000.0,
        single_transaction_limit=5000.0,
        offline_transaction_limit=1000.0,
        offline_cache_duration_hours=24,
    )


@pytest.fixture
def lightweight_settings(settings):
    return settings.model_copy(update={"enable_behavioral_analysis": False})


@pytest.fixture
def user():
    return UserProfile(
        phone_number="+15551234567",
        device_info=DeviceInfo(device_id="device-001"),
    )


@pytest.fixture
def make_transaction(user, clock):
    """Factory for transactions owned by `user`, authored at clock time."""

    def _make(amount=100.0, recipient="alice", timestamp=None, **kwargs):
        kwargs.setdefault("user_id", user.user_id)
        kwargs.setdefault("device_id", "device-001")
        return Transaction(
            amount=amount,
            recipient=recipient,
            timestamp=timestamp or clock(),
            **kwargs,
        )

    return _make
