"""
In-memory storage backends.

State lives for the lifetime of the process only. Both classes hand out
deep copies so nothing outside the store can mutate stored records.
Each call on InMemoryTransactionStorage is atomic.
"""

import threading
from typing import Optional
from uuid import UUID

from safebank.models.audit import AuditEvent
from safebank.models.transaction import DailyLimit, Transaction
from safebank.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    NotFoundError,
    TransactionStorageInterface,
)


class InMemoryTransactionStorage(TransactionStorageInterface):
    """Transactions by id, with a per-user index of ids."""

    def __init__(self):
        self._transactions: dict[UUID, Transaction] = {}
        self._user_index: dict[UUID, list[UUID]] = {}
        self._daily_limits: dict[UUID, DailyLimit] = {}
        self._lock = threading.Lock()

    def add_transaction(self, transaction: Transaction) -> None:
        with self._lock:
            if transaction.transaction_id in self._transactions:
                raise DuplicateError(
                    f"Transaction already stored: {transaction.transaction_id}"
                )
            self._transactions[transaction.transaction_id] = transaction.model_copy(deep=True)
            self._user_index.setdefault(transaction.user_id, []).append(
                transaction.transaction_id
            )

    def update_transaction(self, transaction: Transaction) -> None:
        with self._lock:
            if transaction.transaction_id not in self._transactions:
                raise NotFoundError(
                    f"Transaction not found: {transaction.transaction_id}"
                )
            self._transactions[transaction.transaction_id] = transaction.model_copy(deep=True)

    def remove_transaction(self, transaction_id: UUID) -> None:
        with self._lock:
            transaction = self._transactions.pop(transaction_id, None)
            if transaction is None:
                return
            ids = self._user_index.get(transaction.user_id, [])
            if transaction_id in ids:
                ids.remove(transaction_id)
            if not ids:
                self._user_index.pop(transaction.user_id, None)

    def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        with self._lock:
            transaction = self._transactions.get(transaction_id)
            return transaction.model_copy(deep=True) if transaction else None

    def has_transaction(self, transaction_id: UUID) -> bool:
        with self._lock:
            return transaction_id in self._transactions

    def list_user_transaction_ids(self, user_id: UUID) -> list[UUID]:
        with self._lock:
            return list(self._user_index.get(user_id, []))

    def list_transactions(self) -> list[Transaction]:
        with self._lock:
            return [tx.model_copy(deep=True) for tx in self._transactions.values()]

    def get_daily_limit(self, user_id: UUID) -> Optional[DailyLimit]:
        with self._lock:
            daily_limit = self._daily_limits.get(user_id)
            return daily_limit.model_copy() if daily_limit else None

    def save_daily_limit(self, daily_limit: DailyLimit) -> None:
        with self._lock:
            self._daily_limits[daily_limit.user_id] = daily_limit.model_copy()

    def delete_daily_limit(self, user_id: UUID) -> None:
        with self._lock:
            self._daily_limits.pop(user_id, None)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event.model_copy(deep=True))
        return True

    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        return [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._events[-limit:])) if limit > 0 else []
