"""
Audit Logger

Every scoring decision, ledger commit or refusal, manual review and
offline envelope event is logged here.

The audit logger:
- Always writes a structured local log line (structlog, JSON)
- Optionally appends to an AuditStorageInterface
- Retries transient storage failures (StorageError) a few times
- Never raises on storage failure; it logs the failure and returns False
- Supports correlation IDs to trace the events of one submission
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from safebank.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from safebank.services.storage import AuditStorageInterface, StorageError


# JSON lines on the stdlib logging backend
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Records SafeBank decisions.

    Each event becomes one structlog line; when a storage backend is
    attached the event is appended there too, so reviewers can replay a
    submission by correlation id.
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Args:
            storage: Append-only event store. Without one, events only
                reach the structlog output.
        """
        self._storage = storage
        self._logger = structlog.get_logger("safebank.audit")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, max=1),
        retry=retry_if_exception_type(StorageError),
        reraise=True,
    )
    def _append(self, event: AuditEvent) -> bool:
        return self._storage.append_event(event)

    def log(self, event: AuditEvent) -> bool:
        """
        Emit the event and persist it.

        Returns False only when the storage write still fails after retries.
        """
        emit = {
            AuditSeverity.ERROR: self._logger.error,
            AuditSeverity.CRITICAL: self._logger.error,
            AuditSeverity.WARNING: self._logger.warning,
        }.get(event.severity, self._logger.info)
        emit("audit_event", **event.to_log_dict())

        if self._storage:
            try:
                return self._append(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_transaction_scored(
        self,
        transaction_id: UUID,
        user_id: UUID,
        fraud_score: float,
        risk_factors: list[str],
        recommendation: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a scoring decision."""
        event = AuditEventBuilder.transaction_scored(
            transaction_id=transaction_id,
            user_id=user_id,
            fraud_score=fraud_score,
            risk_factors=risk_factors,
            recommendation=recommendation,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_profile_rebuilt(
        self,
        user_id: UUID,
        sample_size: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.profile_rebuilt(
            user_id=user_id,
            sample_size=sample_size,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_transaction_recorded(
        self,
        transaction_id: UUID,
        user_id: UUID,
        amount: float,
        status: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a ledger commit."""
        event = AuditEventBuilder.transaction_recorded(
            transaction_id=transaction_id,
            user_id=user_id,
            amount=amount,
            status=status,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_transaction_refused(
        self,
        transaction_id: UUID,
        user_id: UUID,
        error_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a ledger refusal (limit, amount, duplicate)."""
        event = AuditEventBuilder.transaction_refused(
            transaction_id=transaction_id,
            user_id=user_id,
            error_code=error_code,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_transaction_approved(
        self,
        transaction_id: UUID,
        user_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.transaction_approved(
            transaction_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_transaction_rejected(
        self,
        transaction_id: UUID,
        user_id: UUID,
        reason: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.transaction_rejected(
            transaction_id=transaction_id,
            user_id=user_id,
            reason=reason,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_envelope_sealed(
        self,
        transaction_id: UUID,
        user_id: UUID,
        expires_at: datetime,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.envelope_sealed(
            transaction_id=transaction_id,
            user_id=user_id,
            expires_at=expires_at,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_envelope_replayed(
        self,
        transaction_id: UUID,
        user_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.envelope_replayed(
            transaction_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_envelope_refused(
        self,
        transaction_id: UUID,
        user_id: UUID,
        error_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an expired or tampered envelope."""
        event = AuditEventBuilder.envelope_refused(
            transaction_id=transaction_id,
            user_id=user_id,
            error_code=error_code,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an unexpected failure."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        self.log(event)


def create_correlation_id() -> UUID:
    """New id tying together the audit events of one submission or replay."""
    return uuid4()
