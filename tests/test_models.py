"""
Tests for SafeBank models

Test strategy:
1. Unit tests for individual components (models, scoring, validation)
2. Flow tests for the ledger, offline envelopes and the orchestrator
3. Deterministic clocks, no network, no real cryptography
"""

import pytest
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from pydantic import ValidationError

from safebank.ledger import TransactionLedger
from safebank.models.transaction import (
    BehavioralProfile,
    DailyLimit,
    OfflineTransaction,
    Transaction,
    TransactionReceipt,
    TransactionStatus,
    TransactionType,
)
from safebank.models.risk import FraudAnalysisResult, RiskFactor, RiskFactorType
from safebank.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestTransactionModel:
    """Tests for the Transaction model."""

    def test_defaults(self, make_transaction):
        tx = make_transaction()
        assert tx.status == TransactionStatus.PENDING
        assert tx.transaction_type == TransactionType.TRANSFER
        assert tx.fraud_score == 0.0
        assert tx.location is None

    def test_strips_whitespace_from_recipient(self, make_transaction):
        tx = make_transaction(recipient="  alice  ")
        assert tx.recipient == "alice"

    def test_rejects_empty_recipient(self, make_transaction):
        with pytest.raises(ValidationError):
            make_transaction(recipient="")

    def test_rejects_nan_amount(self, make_transaction):
        with pytest.raises(ValidationError):
            make_transaction(amount=float("nan"))

    def test_allows_non_positive_amount_at_construction(self, make_transaction):
        """Positivity is a ledger rule, not a schema rule."""
        tx = make_transaction(amount=-5.0)
        assert tx.amount == -5.0

    def test_identity_is_frozen(self, make_transaction):
        tx = make_transaction()
        with pytest.raises(ValidationError):
            tx.transaction_id = uuid4()
        with pytest.raises(ValidationError):
            tx.user_id = uuid4()

    def test_naive_timestamp_is_utc(self, make_transaction):
        tx = make_transaction(timestamp=datetime(2026, 1, 1, 23, 30))
        assert tx.timestamp.tzinfo is not None
        assert tx.timestamp.utcoffset() == timedelta(0)
        assert tx.hour == 23

    def test_offset_timestamp_converted_to_utc(self, make_transaction):
        plus_two = timezone(timedelta(hours=2))
        tx = make_transaction(timestamp=datetime(2026, 1, 1, 1, 0, tzinfo=plus_two))
        assert tx.hour == 23

    def test_fraud_score_assigned_once(self, make_transaction):
        tx = make_transaction()
        tx.assign_fraud_score(0.42)
        assert tx.fraud_score == 0.42
        with pytest.raises(ValueError):
            tx.assign_fraud_score(0.1)
        assert tx.fraud_score == 0.42

    def test_fraud_score_read_only_after_assignment(self, settings, clock, make_transaction):
        tx = make_transaction()
        tx.assign_fraud_score(0.42)

        with pytest.raises(ValueError):
            tx.fraud_score = 0.99

        recorded = TransactionLedger(settings, clock=clock).process(tx)
        assert tx.fraud_score == 0.42
        assert recorded.fraud_score == 0.42

    def test_fraud_score_bounds(self, make_transaction):
        tx = make_transaction()
        with pytest.raises(ValidationError):
            tx.assign_fraud_score(1.5)

    def test_status_assignment_is_validated(self, make_transaction):
        tx = make_transaction()
        tx.status = TransactionStatus.FLAGGED
        assert tx.status == TransactionStatus.FLAGGED
        with pytest.raises(ValidationError):
            tx.status = "unknown"

    def test_terminal_statuses(self):
        assert TransactionStatus.APPROVED.is_terminal
        assert TransactionStatus.REJECTED.is_terminal
        assert not TransactionStatus.PENDING.is_terminal
        assert not TransactionStatus.REQUIRES_APPROVAL.is_terminal


class TestBehavioralProfile:
    """Tests for BehavioralProfile limits."""

    def test_empty_profile(self):
        profile = BehavioralProfile()
        assert profile.typical_transaction_amount == 0.0
        assert profile.typical_transaction_times == []
        assert profile.common_recipients == []

    def test_at_most_three_hours(self):
        with pytest.raises(ValidationError):
            BehavioralProfile(typical_transaction_times=[1, 2, 3, 4])

    def test_hours_in_range(self):
        with pytest.raises(ValidationError):
            BehavioralProfile(typical_transaction_times=[24])

    def test_at_most_five_recipients(self):
        with pytest.raises(ValidationError):
            BehavioralProfile(common_recipients=["a", "b", "c", "d", "e", "f"])


class TestLedgerModels:
    """Tests for DailyLimit, receipts and offline envelopes."""

    def test_daily_limit_rejects_negative_total(self):
        with pytest.raises(ValidationError):
            DailyLimit(user_id=uuid4(), date=datetime(2026, 1, 1).date(), total_amount=-1)

    def test_receipt_code_format(self):
        common = dict(
            transaction_id=uuid4(),
            timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc),
            amount=10.0,
            recipient="bob",
            status=TransactionStatus.APPROVED,
            fraud_score=0.1,
        )
        assert TransactionReceipt(confirmation_code="0A1B2C3D", **common)
        with pytest.raises(ValidationError):
            TransactionReceipt(confirmation_code="0a1b2c3d", **common)

    def test_envelope_expiry(self, make_transaction):
        expires = datetime(2026, 1, 2, tzinfo=timezone.utc)
        envelope = OfflineTransaction(
            transaction=make_transaction(),
            encrypted_data="00",
            signature="0" * 64,
            expires_at=expires,
        )
        assert not envelope.is_expired(expires)
        assert envelope.is_expired(expires + timedelta(seconds=1))


class TestRiskModels:
    """Tests for scoring result models."""

    def test_factor_types(self):
        result = FraudAnalysisResult(
            fraud_score=0.5,
            risk_factors=[
                RiskFactor(
                    factor_type=RiskFactorType.TIME_ANOMALY,
                    score=0.5,
                    description="late",
                ),
            ],
        )
        assert result.factor_types == [RiskFactorType.TIME_ANOMALY]

    def test_score_bounds(self):
        with pytest.raises(ValidationError):
            FraudAnalysisResult(fraud_score=1.2)


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_RECORDED,
            description="Recorded",
        )
        assert event.event_id is not None
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        tx_id, user_id = uuid4(), uuid4()
        event = AuditEventBuilder.transaction_recorded(
            transaction_id=tx_id,
            user_id=user_id,
            amount=25.0,
            status="approved",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "transaction_recorded"
        assert log_dict["entity_id"] == str(tx_id)
        assert log_dict["user_id"] == str(user_id)
        assert log_dict["details"]["amount"] == 25.0

    def test_builder_scored(self):
        cid = uuid4()
        event = AuditEventBuilder.transaction_scored(
            transaction_id=uuid4(),
            user_id=uuid4(),
            fraud_score=0.65,
            risk_factors=["amount_anomaly"],
            recommendation="require_additional_auth",
            correlation_id=cid,
        )
        assert event.event_type == AuditEventType.TRANSACTION_SCORED
        assert event.correlation_id == cid
        assert event.details["risk_factors"] == ["amount_anomaly"]

    def test_builder_rejected_is_user_action(self):
        event = AuditEventBuilder.transaction_rejected(
            transaction_id=uuid4(),
            user_id=uuid4(),
            reason=None,
        )
        assert event.is_user_action
        assert event.details["reason"] == "No reason provided"

    def test_envelope_refused_severity(self):
        tampered = AuditEventBuilder.envelope_refused(
            transaction_id=uuid4(),
            user_id=uuid4(),
            error_code="INTEGRITY_MISMATCH",
            error_message="bad signature",
        )
        expired = AuditEventBuilder.envelope_refused(
            transaction_id=uuid4(),
            user_id=uuid4(),
            error_code="ENVELOPE_EXPIRED",
            error_message="too late",
        )
        assert tampered.severity == AuditSeverity.CRITICAL
        assert expired.severity == AuditSeverity.WARNING
