"""
Audit Models for SafeBank

Every decision the core makes about money is logged:
1. Scores and the factors behind them
2. Transactions recorded or refused by the ledger
3. Manual approvals and rejections
4. Offline envelopes sealed, replayed or refused

Audit logs are append-only. Events are never modified or deleted.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """What happened."""
    # Scoring
    TRANSACTION_SCORED = "transaction_scored"
    PROFILE_REBUILT = "profile_rebuilt"

    # Ledger
    TRANSACTION_RECORDED = "transaction_recorded"
    TRANSACTION_REFUSED = "transaction_refused"

    # Manual review
    TRANSACTION_APPROVED = "transaction_approved"
    TRANSACTION_REJECTED = "transaction_rejected"

    # Offline envelopes
    OFFLINE_ENVELOPE_SEALED = "offline_envelope_sealed"
    OFFLINE_ENVELOPE_REPLAYED = "offline_envelope_replayed"
    OFFLINE_ENVELOPE_REFUSED = "offline_envelope_refused"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Routes the event to a log level; CRITICAL marks suspected tampering."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """One line of the audit trail, immutable once appended."""

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Event id"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation time, UTC"
    )

    # What and how serious
    event_type: AuditEventType = Field(
        ...,
        description="Kind of decision recorded"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Log level the event is emitted at"
    )

    # Subject
    entity_type: Optional[str] = Field(
        default=None,
        description="'transaction', 'envelope' or 'profile'"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="Transaction id the event is about"
    )
    user_id: Optional[UUID] = Field(
        default=None,
        description="Owner of the transaction or profile"
    )

    # Shared by every event of one submission or replay
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Flow id passed down from the orchestrator"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="One-line summary for reviewers"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Scores, amounts, reasons"
    )

    # Set on refusals and failures
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="True for manual approve and reject"
    )

    def to_log_dict(self) -> dict:
        """Flat, JSON-safe keyword arguments for structlog."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "user_id": str(self.user_id) if self.user_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    One constructor per audited decision, so callers never pick the
    event type, severity or entity fields by hand.

    Example:
        event = AuditEventBuilder.transaction_scored(tx_id, user_id, 0.42, [...], cid)
        event = AuditEventBuilder.transaction_approved(tx_id, user_id, cid)
    """

    @staticmethod
    def transaction_scored(
        transaction_id: UUID,
        user_id: UUID,
        fraud_score: float,
        risk_factors: list[str],
        recommendation: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_SCORED,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Transaction scored {fraud_score:.2f} ({recommendation})",
            details={
                "fraud_score": fraud_score,
                "risk_factors": risk_factors,
                "recommendation": recommendation,
            },
        )

    @staticmethod
    def profile_rebuilt(
        user_id: UUID,
        sample_size: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROFILE_REBUILT,
            entity_type="profile",
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Behavioral profile rebuilt from {sample_size} transactions",
            details={
                "sample_size": sample_size,
            },
        )

    @staticmethod
    def transaction_recorded(
        transaction_id: UUID,
        user_id: UUID,
        amount: float,
        status: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_RECORDED,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Transaction recorded: {amount:.2f} ({status})",
            details={
                "amount": amount,
                "status": status,
            },
        )

    @staticmethod
    def transaction_refused(
        transaction_id: UUID,
        user_id: UUID,
        error_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REFUSED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Transaction refused by ledger: {error_code}",
            error_code=error_code,
            error_message=error_message,
        )

    @staticmethod
    def transaction_approved(
        transaction_id: UUID,
        user_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_APPROVED,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Transaction approved after manual review",
            is_user_action=True,
        )

    @staticmethod
    def transaction_rejected(
        transaction_id: UUID,
        user_id: UUID,
        reason: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Transaction rejected after manual review",
            details={
                "reason": reason or "No reason provided",
            },
            is_user_action=True,
        )

    @staticmethod
    def envelope_sealed(
        transaction_id: UUID,
        user_id: UUID,
        expires_at: datetime,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OFFLINE_ENVELOPE_SEALED,
            entity_type="envelope",
            entity_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Offline envelope sealed",
            details={
                "expires_at": expires_at.isoformat(),
            },
        )

    @staticmethod
    def envelope_replayed(
        transaction_id: UUID,
        user_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OFFLINE_ENVELOPE_REPLAYED,
            entity_type="envelope",
            entity_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Offline envelope replayed into the ledger",
        )

    @staticmethod
    def envelope_refused(
        transaction_id: UUID,
        user_id: UUID,
        error_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        # Integrity failures point at tampering, expiry does not
        severity = (
            AuditSeverity.CRITICAL
            if error_code in ("INTEGRITY_MISMATCH", "CRYPTOGRAPHY_ERROR")
            else AuditSeverity.WARNING
        )
        return AuditEvent(
            event_type=AuditEventType.OFFLINE_ENVELOPE_REFUSED,
            severity=severity,
            entity_type="envelope",
            entity_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Offline envelope refused: {error_code}",
            error_code=error_code,
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
