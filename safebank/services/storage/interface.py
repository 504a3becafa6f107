"""
Abstract Storage Interface

The ledger talks to storage only through these interfaces, so an
in-memory store (the one shipped today) can later be replaced by a
database without touching ledger logic.

One store keeps transactions by id plus a secondary per-user index of
transaction ids in insertion order. There is no second copy of a
transaction anywhere.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from safebank.models.audit import AuditEvent
from safebank.models.transaction import DailyLimit, Transaction


class TransactionStorageInterface(ABC):
    """
    Transactions plus the daily spending counter of each user.

    Implementations store and return copies; callers never hold a
    reference into the store.
    """

    @abstractmethod
    def add_transaction(self, transaction: Transaction) -> None:
        """
        Insert a new transaction and index it under its user.

        Raises:
            DuplicateError: If the transaction id is already stored
        """
        pass

    @abstractmethod
    def update_transaction(self, transaction: Transaction) -> None:
        """
        Replace a stored transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        pass

    @abstractmethod
    def remove_transaction(self, transaction_id: UUID) -> None:
        """Remove a transaction and its index entry (used for rollback)."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        """Return the transaction if found, None otherwise."""
        pass

    @abstractmethod
    def has_transaction(self, transaction_id: UUID) -> bool:
        pass

    @abstractmethod
    def list_user_transaction_ids(self, user_id: UUID) -> list[UUID]:
        """Transaction ids of a user, in insertion order."""
        pass

    @abstractmethod
    def list_transactions(self) -> list[Transaction]:
        """All stored transactions."""
        pass

    @abstractmethod
    def get_daily_limit(self, user_id: UUID) -> Optional[DailyLimit]:
        pass

    @abstractmethod
    def save_daily_limit(self, daily_limit: DailyLimit) -> None:
        pass

    @abstractmethod
    def delete_daily_limit(self, user_id: UUID) -> None:
        pass


class AuditStorageInterface(ABC):
    """
    Where audit events are kept.

    Append-only: no event is ever rewritten or dropped once stored.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Store one event.

        Raises:
            StorageError: If the backend cannot take the write
        """
        pass

    @abstractmethod
    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Events sharing one correlation id, oldest first."""
        pass

    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """Events about one transaction or envelope, oldest first."""
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Up to `limit` events, newest first."""
        pass


class StorageError(Exception):
    """A storage backend failed to read or write."""
    pass


class NotFoundError(StorageError):
    """Lookup for an id that is not stored."""
    pass


class DuplicateError(StorageError):
    """Insert for an id that is already stored."""
    pass
