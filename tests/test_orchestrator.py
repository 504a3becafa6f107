"""Tests for the end-to-end transaction flow."""

import pytest
from uuid import uuid4

from pydantic import ValidationError

from safebank.audit import AuditLogger
from safebank.errors import (
    DuplicateTransactionError,
    IntegrityMismatchError,
    TransactionLimitExceededError,
)
from safebank.ledger import TransactionLedger
from safebank.models.audit import AuditEventType, AuditSeverity
from safebank.models.transaction import (
    BehavioralProfile,
    TransactionStatus,
    TransactionType,
)
from safebank.orchestrator import TransactionFlow, create_transaction_flow
from safebank.scoring import FraudDetector
from safebank.services.storage import InMemoryAuditStorage

SECRET = "device-shared-secret"


@pytest.fixture
def flow_settings(settings):
    return settings.model_copy(update={
        "fraud_threshold_low": 0.1,
        "fraud_threshold_medium": 0.2,
        "fraud_threshold_high": 0.4,
    })


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def flow(flow_settings, clock, audit_storage):
    return TransactionFlow(
        settings=flow_settings,
        detector=FraudDetector(flow_settings),
        ledger=TransactionLedger(flow_settings, clock=clock),
        audit_logger=AuditLogger(audit_storage),
    )


@pytest.fixture
def known_user(user):
    """User with a baseline but no typical hours, so wall-clock time does not matter."""
    return user.model_copy(update={
        "behavioral_profile": BehavioralProfile(
            typical_transaction_amount=100.0,
            common_recipients=["alice"],
            usage_frequency=1.0,
        ),
    })


def event_types(audit_storage, correlation_id):
    return [e.event_type for e in audit_storage.get_events_by_correlation_id(correlation_id)]


class TestSubmit:
    """Tests for scoring, status decision and recording."""

    def test_low_risk_is_approved(self, flow, known_user, audit_storage):
        cid = uuid4()
        tx, analysis = flow.submit(
            known_user, 100.0, "alice",
            transaction_type=TransactionType.PAYMENT,
            location="Lisbon",
            correlation_id=cid,
        )

        assert tx.status == TransactionStatus.APPROVED
        assert tx.fraud_score == analysis.fraud_score == 0.0
        assert tx.device_id == "device-001"
        assert tx.transaction_type == TransactionType.PAYMENT
        assert tx.location == "Lisbon"
        assert flow.ledger.get_transaction(tx.transaction_id) is not None
        assert event_types(audit_storage, cid) == [
            AuditEventType.TRANSACTION_SCORED,
            AuditEventType.TRANSACTION_RECORDED,
        ]

    def test_medium_risk_requires_approval(self, flow, known_user):
        tx, analysis = flow.submit(known_user, 600.0, "alice")

        assert analysis.fraud_score == pytest.approx(0.24)
        assert tx.status == TransactionStatus.REQUIRES_APPROVAL

    def test_high_risk_is_rejected_but_recorded(self, flow, known_user):
        busy_user = known_user.model_copy(update={
            "behavioral_profile": known_user.behavioral_profile.model_copy(
                update={"usage_frequency": 12.0}
            ),
        })
        tx, analysis = flow.submit(busy_user, 4500.0, "mallory")

        assert analysis.fraud_score == pytest.approx(0.41)
        assert tx.status == TransactionStatus.REJECTED
        assert flow.get_transaction_statistics()["rejected_count"] == 1

    def test_refusal_is_audited_and_raised(self, flow, known_user, audit_storage):
        cid = uuid4()
        with pytest.raises(TransactionLimitExceededError):
            flow.submit(known_user, 6000.0, "alice", correlation_id=cid)

        events = audit_storage.get_events_by_correlation_id(cid)
        assert [e.event_type for e in events] == [
            AuditEventType.TRANSACTION_SCORED,
            AuditEventType.TRANSACTION_REFUSED,
        ]
        assert events[-1].error_code == "TRANSACTION_LIMIT_EXCEEDED"
        assert flow.ledger.get_user_transactions(known_user.user_id) == []

    def test_scoring_is_counted(self, flow, known_user):
        flow.submit(known_user, 100.0, "alice")
        flow.submit(known_user, 600.0, "alice")

        stats = flow.get_fraud_statistics()
        assert stats["total_analyzed"] == 2
        assert stats["flagged"] == 1

    def test_invalid_input_is_audited_as_system_error(self, flow, known_user, audit_storage):
        cid = uuid4()
        with pytest.raises(ValidationError):
            flow.submit(known_user, 100.0, "", correlation_id=cid)

        events = audit_storage.get_events_by_correlation_id(cid)
        assert [e.event_type for e in events] == [AuditEventType.SYSTEM_ERROR]
        assert events[0].severity == AuditSeverity.ERROR
        assert events[0].details["flow"] == "submit"
        assert flow.ledger.get_user_transactions(known_user.user_id) == []

    def test_scoring_failure_is_audited(self, flow, known_user, audit_storage, monkeypatch):
        def broken(transaction, user):
            raise RuntimeError("profile store unavailable")

        monkeypatch.setattr(flow.detector, "analyze_for_user", broken)

        cid = uuid4()
        with pytest.raises(RuntimeError):
            flow.submit(known_user, 100.0, "alice", correlation_id=cid)

        event = audit_storage.get_events_by_correlation_id(cid)[0]
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.description == "System error: RuntimeError"
        assert event.error_message == "profile store unavailable"


class TestReview:
    """Tests for manual approval and rejection."""

    def test_approve(self, flow, known_user, audit_storage):
        tx, _ = flow.submit(known_user, 600.0, "alice")

        approved = flow.approve(tx.transaction_id)

        assert approved.status == TransactionStatus.APPROVED
        events = audit_storage.get_events_by_entity("transaction", tx.transaction_id)
        assert events[-1].event_type == AuditEventType.TRANSACTION_APPROVED
        assert events[-1].is_user_action

    def test_reject(self, flow, known_user, audit_storage):
        tx, _ = flow.submit(known_user, 600.0, "alice")

        rejected = flow.reject(tx.transaction_id, "customer did not confirm")

        assert rejected.status == TransactionStatus.REJECTED
        events = audit_storage.get_events_by_entity("transaction", tx.transaction_id)
        assert events[-1].details["reason"] == "customer did not confirm"


class TestProfileRefresh:
    """Tests for rebuilding profiles from ledger history."""

    def test_no_history(self, flow, user):
        assert flow.refresh_behavioral_profile(user.user_id) is False
        assert flow.detector.get_profile(user.user_id) is None

    def test_rebuild_from_history(self, flow, user, audit_storage):
        flow.submit(user, 100.0, "alice")
        flow.submit(user, 300.0, "bob")

        assert flow.refresh_behavioral_profile(user.user_id) is True

        profile = flow.detector.get_profile(user.user_id)
        assert profile.typical_transaction_amount == pytest.approx(200.0)
        assert set(profile.common_recipients) == {"alice", "bob"}
        recent = audit_storage.get_recent_events(limit=1)
        assert recent[0].event_type == AuditEventType.PROFILE_REBUILT


class TestOffline:
    """Tests for sealing and replaying through the flow."""

    def test_seal_and_replay(self, flow, user, make_transaction, audit_storage):
        tx = make_transaction(amount=200.0)
        envelope = flow.seal_offline(tx, SECRET)

        cid = uuid4()
        recorded = flow.replay_offline(envelope, SECRET, correlation_id=cid)

        assert recorded.transaction_id == tx.transaction_id
        assert event_types(audit_storage, cid) == [AuditEventType.OFFLINE_ENVELOPE_REPLAYED]
        sealed = audit_storage.get_events_by_entity("envelope", tx.transaction_id)
        assert sealed[0].event_type == AuditEventType.OFFLINE_ENVELOPE_SEALED

    def test_second_replay_refused(self, flow, make_transaction, audit_storage):
        envelope = flow.seal_offline(make_transaction(amount=200.0), SECRET)
        flow.replay_offline(envelope, SECRET)

        cid = uuid4()
        with pytest.raises(DuplicateTransactionError):
            flow.replay_offline(envelope, SECRET, correlation_id=cid)

        refused = audit_storage.get_events_by_correlation_id(cid)[0]
        assert refused.event_type == AuditEventType.OFFLINE_ENVELOPE_REFUSED
        assert refused.severity == AuditSeverity.WARNING

    def test_tampered_envelope_is_critical(self, flow, make_transaction, audit_storage):
        envelope = flow.seal_offline(make_transaction(amount=200.0), SECRET)
        tampered = envelope.model_copy(update={"signature": "f" * 64})

        cid = uuid4()
        with pytest.raises(IntegrityMismatchError):
            flow.replay_offline(tampered, SECRET, correlation_id=cid)

        refused = audit_storage.get_events_by_correlation_id(cid)[0]
        assert refused.severity == AuditSeverity.CRITICAL
        assert refused.error_code == "INTEGRITY_MISMATCH"

    def test_unexpected_replay_failure_is_audited(
        self, flow, make_transaction, audit_storage, monkeypatch
    ):
        envelope = flow.seal_offline(make_transaction(amount=200.0), SECRET)

        def broken(envelope, secret):
            raise RuntimeError("storage offline")

        monkeypatch.setattr(flow.ledger, "unseal_and_process", broken)

        cid = uuid4()
        with pytest.raises(RuntimeError):
            flow.replay_offline(envelope, SECRET, correlation_id=cid)

        event = audit_storage.get_events_by_correlation_id(cid)[0]
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.details == {
            "flow": "replay_offline",
            "user_id": str(envelope.transaction.user_id),
        }


class TestFactory:
    """Tests for create_transaction_flow."""

    def test_wires_audit_storage(self, settings, user, audit_storage):
        flow = create_transaction_flow(settings, audit_storage)
        flow.submit(user, 50.0, "alice")

        assert len(audit_storage.get_recent_events()) == 2
        assert flow.get_transaction_statistics()["total_transactions"] == 1
