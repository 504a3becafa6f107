"""
Main Orchestrator for SafeBank

This module ties the scoring engine, the ledger and the audit log
together and defines the end-to-end flows for:
1. Submission (build -> score -> decide status -> record -> audit)
2. Manual review (approve / reject a held transaction)
3. Offline carriage (seal an envelope, replay it later)

The orchestrator enforces the boundaries:
- The score is computed once, before the ledger sees the transaction
- The ledger never recomputes or overrides the score
- Every decision and every refusal is audited
"""

from typing import Optional
from uuid import UUID

from safebank.audit import AuditLogger, create_correlation_id
from safebank.config import SafeBankSettings, get_settings
from safebank.errors import SafeBankError
from safebank.ledger import TransactionLedger
from safebank.models.risk import FraudAnalysisResult
from safebank.models.transaction import (
    OfflineTransaction,
    Transaction,
    TransactionStatus,
    TransactionType,
    UserProfile,
)
from safebank.scoring import FraudDetector
from safebank.services.storage import AuditStorageInterface


class TransactionFlow:
    """
    Orchestrates the transaction submission flow.

    Flow:
    1. Build   -> PENDING transaction, score 0, user's device id
    2. Score   -> FraudDetector.analyze_for_user
    3. Decide  -> > high: REJECTED, > medium: REQUIRES_APPROVAL, else APPROVED
    4. Record  -> TransactionLedger.process (limits, duplicates)
    5. Audit   -> scored + recorded, or refused

    REQUIRES_APPROVAL transactions wait for approve() or reject().
    """

    def __init__(
        self,
        settings: Optional[SafeBankSettings] = None,
        detector: Optional[FraudDetector] = None,
        ledger: Optional[TransactionLedger] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._settings = settings or get_settings()
        self._detector = detector or FraudDetector(self._settings)
        self._ledger = ledger or TransactionLedger(self._settings)
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def ledger(self) -> TransactionLedger:
        return self._ledger

    @property
    def detector(self) -> FraudDetector:
        return self._detector

    def _status_for(self, fraud_score: float) -> TransactionStatus:
        if fraud_score > self._settings.fraud_threshold_high:
            return TransactionStatus.REJECTED
        if fraud_score > self._settings.fraud_threshold_medium:
            return TransactionStatus.REQUIRES_APPROVAL
        return TransactionStatus.APPROVED

    def _log_failure(
        self,
        error: Exception,
        flow: str,
        user_id: UUID,
        correlation_id: UUID,
    ) -> None:
        self._audit_logger.log_error(
            error_type=type(error).__name__,
            error_message=str(error),
            details={"flow": flow, "user_id": str(user_id)},
            correlation_id=correlation_id,
        )

    def submit(
        self,
        user: UserProfile,
        amount: float,
        recipient: str,
        transaction_type: TransactionType = TransactionType.TRANSFER,
        location: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Transaction, FraudAnalysisResult]:
        """
        Score and record a new transaction for a user.

        Returns:
            (recorded_transaction, analysis)

        Raises:
            SafeBankError: The ledger refused the transaction. The refusal
                           is audited before the error propagates.

        Any other failure is audited as a system error and re-raised.
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            transaction = Transaction(
                user_id=user.user_id,
                amount=amount,
                recipient=recipient,
                transaction_type=transaction_type,
                location=location,
                device_id=user.device_info.device_id,
            )

            analysis = self._detector.analyze_for_user(transaction, user)
            transaction.assign_fraud_score(analysis.fraud_score)
            transaction.status = self._status_for(analysis.fraud_score)
        except Exception as e:
            self._log_failure(e, "submit", user.user_id, correlation_id)
            raise

        self._audit_logger.log_transaction_scored(
            transaction_id=transaction.transaction_id,
            user_id=user.user_id,
            fraud_score=analysis.fraud_score,
            risk_factors=[f.value for f in analysis.factor_types],
            recommendation=analysis.recommendation.value,
            correlation_id=correlation_id,
        )

        try:
            recorded = self._ledger.process(transaction)
        except SafeBankError as e:
            self._audit_logger.log_transaction_refused(
                transaction_id=transaction.transaction_id,
                user_id=user.user_id,
                error_code=e.code,
                error_message=e.message,
                correlation_id=correlation_id,
            )
            raise
        except Exception as e:
            self._log_failure(e, "submit", user.user_id, correlation_id)
            raise

        self._audit_logger.log_transaction_recorded(
            transaction_id=recorded.transaction_id,
            user_id=recorded.user_id,
            amount=recorded.amount,
            status=recorded.status.value,
            correlation_id=correlation_id,
        )
        return recorded, analysis

    def refresh_behavioral_profile(self, user_id: UUID) -> bool:
        """
        Rebuild the engine's profile for a user from their ledger history.

        Returns False (and keeps any existing profile) when the user has
        no recorded transactions.
        """
        history = self._ledger.get_user_transactions(user_id)
        profile = self._detector.rebuild_profile(user_id, history)
        if profile is None:
            return False

        self._audit_logger.log_profile_rebuilt(user_id=user_id, sample_size=len(history))
        return True

    def approve(
        self,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        transaction = self._ledger.approve(transaction_id)
        self._audit_logger.log_transaction_approved(
            transaction_id=transaction.transaction_id,
            user_id=transaction.user_id,
            correlation_id=correlation_id,
        )
        return transaction

    def reject(
        self,
        transaction_id: UUID,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        transaction = self._ledger.reject(transaction_id, reason)
        self._audit_logger.log_transaction_rejected(
            transaction_id=transaction.transaction_id,
            user_id=transaction.user_id,
            reason=reason,
            correlation_id=correlation_id,
        )
        return transaction

    def seal_offline(
        self,
        transaction: Transaction,
        secret: str,
        correlation_id: Optional[UUID] = None,
    ) -> OfflineTransaction:
        envelope = self._ledger.seal_offline(transaction, secret)
        self._audit_logger.log_envelope_sealed(
            transaction_id=transaction.transaction_id,
            user_id=transaction.user_id,
            expires_at=envelope.expires_at,
            correlation_id=correlation_id,
        )
        return envelope

    def replay_offline(
        self,
        envelope: OfflineTransaction,
        secret: str,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Verify an offline envelope and record its transaction.

        Raises:
            SafeBankError: Envelope refused (expired, tampered) or ledger
                           refused the recovered transaction. Audited first.

        Any other failure is audited as a system error and re-raised.
        """
        correlation_id = correlation_id or create_correlation_id()
        claimed = envelope.transaction

        try:
            recorded = self._ledger.unseal_and_process(envelope, secret)
        except SafeBankError as e:
            self._audit_logger.log_envelope_refused(
                transaction_id=claimed.transaction_id,
                user_id=claimed.user_id,
                error_code=e.code,
                error_message=e.message,
                correlation_id=correlation_id,
            )
            raise
        except Exception as e:
            self._log_failure(e, "replay_offline", claimed.user_id, correlation_id)
            raise

        self._audit_logger.log_envelope_replayed(
            transaction_id=recorded.transaction_id,
            user_id=recorded.user_id,
            correlation_id=correlation_id,
        )
        return recorded

    def get_fraud_statistics(self) -> dict[str, float]:
        return self._detector.get_statistics()

    def get_transaction_statistics(self) -> dict[str, float]:
        return self._ledger.get_transaction_statistics()


def create_transaction_flow(
    settings: Optional[SafeBankSettings] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
) -> TransactionFlow:
    """
    Factory function to create a fully wired TransactionFlow.

    Args:
        settings: Defaults to get_settings()
        audit_storage: Where audit events are persisted.
                       If None, audit events are only logged locally.
    """
    settings = settings or get_settings()
    return TransactionFlow(
        settings=settings,
        detector=FraudDetector(settings),
        ledger=TransactionLedger(settings),
        audit_logger=AuditLogger(audit_storage),
    )
