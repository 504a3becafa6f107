"""
Transaction Validation Pipeline

Every transaction passes the same ordered checks before the ledger
records it:

1. AMOUNT        - strictly positive
2. SINGLE LIMIT  - amount <= single_transaction_limit
3. DAILY LIMIT   - today's running total + amount <= daily_transaction_limit
                   (only when the user's DailyLimit is dated today)
4. DUPLICATE     - transaction id not already in the ledger

The first failing check raises; later checks do not run.

IMPORTANT: Validation never mutates anything. Updating the daily total
is the ledger's job, after every check has passed.
"""

from datetime import date
from typing import Optional

from safebank.config import SafeBankSettings, get_settings
from safebank.errors import (
    DuplicateTransactionError,
    InvalidAmountError,
    TransactionLimitExceededError,
)
from safebank.models.transaction import DailyLimit, Transaction
from safebank.services.storage import TransactionStorageInterface


class TransactionValidator:
    """
    Runs the ordered validation pipeline against a transaction store.
    """

    def __init__(
        self,
        storage: TransactionStorageInterface,
        settings: Optional[SafeBankSettings] = None,
    ):
        """
        Initialize validator.

        Args:
            storage: Store consulted for duplicate ids and daily totals
            settings: Limits to enforce. Defaults to get_settings().
        """
        self._storage = storage
        self._settings = settings or get_settings()

    def _check_amount(self, transaction: Transaction) -> None:
        if not transaction.amount > 0:
            raise InvalidAmountError(transaction.amount)

    def _check_single_limit(self, transaction: Transaction) -> None:
        limit = self._settings.single_transaction_limit
        if transaction.amount > limit:
            raise TransactionLimitExceededError(transaction.amount, limit)

    def _check_daily_limit(
        self,
        transaction: Transaction,
        daily_limit: Optional[DailyLimit],
        today: date,
    ) -> None:
        """
        A DailyLimit from an earlier day is stale and does not count
        against today's allowance.
        """
        if daily_limit is None or daily_limit.date != today:
            return

        limit = self._settings.daily_transaction_limit
        projected = daily_limit.total_amount + transaction.amount
        if projected > limit:
            raise TransactionLimitExceededError(projected, limit)

    def _check_duplicate(self, transaction: Transaction) -> None:
        if self._storage.has_transaction(transaction.transaction_id):
            raise DuplicateTransactionError(transaction.transaction_id)

    def validate(self, transaction: Transaction, today: date) -> None:
        """
        Run the full pipeline.

        Args:
            transaction: Candidate transaction
            today: Processing day (UTC) the daily limit is evaluated for

        Raises:
            InvalidAmountError: amount is not positive
            TransactionLimitExceededError: single or daily limit exceeded
            DuplicateTransactionError: id already recorded
        """
        self._check_amount(transaction)
        self._check_single_limit(transaction)
        self._check_daily_limit(
            transaction,
            self._storage.get_daily_limit(transaction.user_id),
            today,
        )
        self._check_duplicate(transaction)
