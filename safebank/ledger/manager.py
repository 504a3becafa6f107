"""
Transaction Ledger

The authoritative store of recorded transactions and per-user daily
totals.

PROCESS FLOW (per user, under that user's lock):
1. Validate (amount, single limit, daily limit, duplicate id)
2. Store a copy of the transaction and index it under its user
3. Update the user's DailyLimit (add on the same day, reset on a new one)

Steps 2 and 3 commit together: if the limit update fails, the stored
transaction is removed again and the previous DailyLimit restored.

Status changes after recording go through safebank.ledger.state.
"""

import hashlib
import threading
from datetime import date, datetime
from typing import Callable, Optional
from uuid import UUID

import structlog

from safebank.config import SafeBankSettings, get_settings
from safebank.errors import DuplicateTransactionError, TransactionNotFoundError
from safebank.ledger.offline import OfflineEnvelopeCodec
from safebank.ledger.state import transition
from safebank.models.transaction import (
    DailyLimit,
    OfflineTransaction,
    Transaction,
    TransactionReceipt,
    TransactionStatus,
    utc_now,
)
from safebank.services.crypto import EnvelopeCipher
from safebank.services.storage import (
    DuplicateError,
    InMemoryTransactionStorage,
    TransactionStorageInterface,
)
from safebank.validation import TransactionValidator

logger = structlog.get_logger(__name__)


def generate_confirmation_code(transaction_id: UUID, timestamp: datetime) -> str:
    """First 8 hex chars (uppercase) of SHA-256 over id bytes + epoch seconds."""
    hasher = hashlib.sha256()
    hasher.update(transaction_id.bytes)
    hasher.update(str(int(timestamp.timestamp())).encode("utf-8"))
    return hasher.hexdigest()[:8].upper()


def _next_daily_limit(
    previous: Optional[DailyLimit],
    transaction: Transaction,
    today: date,
) -> DailyLimit:
    if previous is not None and previous.date == today:
        return DailyLimit(
            user_id=transaction.user_id,
            date=today,
            total_amount=previous.total_amount + transaction.amount,
            transaction_count=previous.transaction_count + 1,
        )
    return DailyLimit(
        user_id=transaction.user_id,
        date=today,
        total_amount=transaction.amount,
        transaction_count=1,
    )


class TransactionLedger:
    """
    Records validated transactions and enforces per-user limits.

    Operations for one user are serialized; different users proceed
    in parallel.
    """

    def __init__(
        self,
        settings: Optional[SafeBankSettings] = None,
        storage: Optional[TransactionStorageInterface] = None,
        cipher: Optional[EnvelopeCipher] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize ledger.

        Args:
            settings: Limits to enforce. Defaults to get_settings().
            storage: Transaction store. Defaults to an in-memory store.
            cipher: Cipher for offline envelopes. Defaults to the XOR placeholder.
            clock: Source of "now". The processing day for daily limits
                   and envelope expiry are both read from it.
        """
        self._settings = settings or get_settings()
        self._storage = storage or InMemoryTransactionStorage()
        self._validator = TransactionValidator(self._storage, self._settings)
        self._envelopes = OfflineEnvelopeCodec(cipher, self._settings, clock)
        self._clock = clock

        # One lock per user seen, kept for the ledger's lifetime
        self._user_locks: dict[UUID, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, user_id: UUID) -> threading.Lock:
        with self._registry_lock:
            lock = self._user_locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                self._user_locks[user_id] = lock
            return lock

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def process(self, transaction: Transaction) -> Transaction:
        """
        Validate and record a transaction.

        Returns:
            A copy of the recorded transaction

        Raises:
            InvalidAmountError, TransactionLimitExceededError,
            DuplicateTransactionError: validation failed, nothing recorded
        """
        with self._lock_for(transaction.user_id):
            today = self._clock().date()
            self._validator.validate(transaction, today)
            self._commit(transaction, today)

        logger.info(
            "transaction_recorded",
            transaction_id=str(transaction.transaction_id),
            user_id=str(transaction.user_id),
            amount=transaction.amount,
            status=transaction.status.value,
        )
        return transaction.model_copy(deep=True)

    def _commit(self, transaction: Transaction, today: date) -> None:
        previous = self._storage.get_daily_limit(transaction.user_id)

        try:
            self._storage.add_transaction(transaction)
        except DuplicateError as e:
            raise DuplicateTransactionError(transaction.transaction_id) from e

        try:
            self._storage.save_daily_limit(_next_daily_limit(previous, transaction, today))
        except Exception:
            self._storage.remove_transaction(transaction.transaction_id)
            if previous is None:
                self._storage.delete_daily_limit(transaction.user_id)
            else:
                self._storage.save_daily_limit(previous)
            logger.error(
                "transaction_commit_rolled_back",
                transaction_id=str(transaction.transaction_id),
            )
            raise

    # -------------------------------------------------------------------------
    # Status changes
    # -------------------------------------------------------------------------

    def _require(self, transaction_id: UUID) -> Transaction:
        transaction = self._storage.get_transaction(transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)
        return transaction

    def _change_status(
        self,
        transaction_id: UUID,
        target: TransactionStatus,
    ) -> Transaction:
        user_id = self._require(transaction_id).user_id
        with self._lock_for(user_id):
            transaction = self._require(transaction_id)
            new_status = transition(transaction.status, target)
            if new_status != transaction.status:
                transaction.status = new_status
                self._storage.update_transaction(transaction)
        return transaction

    def approve(self, transaction_id: UUID) -> Transaction:
        """
        Manually approve a flagged or held transaction.

        Raises:
            TransactionNotFoundError: unknown id
            InvalidTransactionStateError: not FLAGGED or REQUIRES_APPROVAL
        """
        transaction = self._change_status(transaction_id, TransactionStatus.APPROVED)
        logger.info("transaction_approved", transaction_id=str(transaction_id))
        return transaction

    def reject(self, transaction_id: UUID, reason: str) -> Transaction:
        """
        Manually reject a transaction.

        Raises:
            TransactionNotFoundError: unknown id
            InvalidTransactionStateError: transaction already APPROVED
        """
        transaction = self._change_status(transaction_id, TransactionStatus.REJECTED)
        logger.info(
            "transaction_rejected",
            transaction_id=str(transaction_id),
            reason=reason,
        )
        return transaction

    # -------------------------------------------------------------------------
    # Offline envelopes
    # -------------------------------------------------------------------------

    def seal_offline(self, transaction: Transaction, secret: str) -> OfflineTransaction:
        """Wrap a transaction for offline carriage. Nothing is recorded."""
        return self._envelopes.seal(transaction, secret)

    def unseal_and_process(self, envelope: OfflineTransaction, secret: str) -> Transaction:
        """
        Verify an offline envelope and record its transaction.

        Replaying the same envelope twice fails the second time with
        DuplicateTransactionError.
        """
        recovered = self._envelopes.open(envelope, secret)
        return self.process(recovered)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        return self._storage.get_transaction(transaction_id)

    def get_user_transactions(self, user_id: UUID) -> list[Transaction]:
        """
        User's transactions, newest authoring timestamp first.

        Equal timestamps keep the most recently recorded first. A replayed
        offline transaction sorts by when it was authored.
        """
        transactions = []
        for transaction_id in reversed(self._storage.list_user_transaction_ids(user_id)):
            transaction = self._storage.get_transaction(transaction_id)
            if transaction is not None:
                transactions.append(transaction)
        return sorted(transactions, key=lambda t: t.timestamp, reverse=True)

    def get_daily_limit(self, user_id: UUID) -> Optional[DailyLimit]:
        return self._storage.get_daily_limit(user_id)

    def create_receipt(self, transaction: Transaction) -> TransactionReceipt:
        return TransactionReceipt(
            transaction_id=transaction.transaction_id,
            timestamp=transaction.timestamp,
            amount=transaction.amount,
            recipient=transaction.recipient,
            status=transaction.status,
            confirmation_code=generate_confirmation_code(
                transaction.transaction_id, transaction.timestamp
            ),
            fraud_score=transaction.fraud_score,
        )

    def get_transaction_statistics(self) -> dict[str, float]:
        transactions = self._storage.list_transactions()
        total = len(transactions)

        def count(*statuses: TransactionStatus) -> int:
            return sum(1 for tx in transactions if tx.status in statuses)

        approved = count(TransactionStatus.APPROVED)
        volume = sum(tx.amount for tx in transactions)

        stats = {
            "total_transactions": float(total),
            "approved_count": float(approved),
            "rejected_count": float(count(TransactionStatus.REJECTED)),
            "flagged_count": float(count(
                TransactionStatus.FLAGGED, TransactionStatus.REQUIRES_APPROVAL
            )),
            "pending_count": float(count(TransactionStatus.PENDING)),
            "total_volume": volume,
        }
        if total > 0:
            stats["approval_rate_percent"] = approved / total * 100.0
            stats["average_transaction_amount"] = volume / total
        return stats
