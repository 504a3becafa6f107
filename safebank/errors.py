"""
SafeBank Error Hierarchy

Every failure the core reports is a SafeBankError subclass with:
- a stable error code (see ErrorCodes)
- a severity for logging and alerting
- is_recoverable(): whether retrying the same input can ever succeed
- to_user_message(): text safe to show to an end user

Errors are raised to the caller, who decides between retry and terminal
handling. None of them leave partially applied ledger state behind.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCodes:
    """Standard error codes"""
    # Validation
    INVALID_AMOUNT = "INVALID_AMOUNT"
    TRANSACTION_LIMIT_EXCEEDED = "TRANSACTION_LIMIT_EXCEEDED"
    INVALID_TRANSACTION_STATE = "INVALID_TRANSACTION_STATE"
    DUPLICATE_TRANSACTION = "DUPLICATE_TRANSACTION"

    # Offline envelopes
    ENVELOPE_EXPIRED = "ENVELOPE_EXPIRED"
    INTEGRITY_MISMATCH = "INTEGRITY_MISMATCH"
    CRYPTOGRAPHY_ERROR = "CRYPTOGRAPHY_ERROR"
    SERIALIZATION_ERROR = "SERIALIZATION_ERROR"

    # Storage
    TRANSACTION_NOT_FOUND = "TRANSACTION_NOT_FOUND"

    # System
    CONFIG_ERROR = "CONFIG_ERROR"


class ErrorSeverity(str, Enum):
    """Severity used when an error is logged."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SafeBankError(Exception):
    """Base exception for SafeBank core."""

    code: str = "SAFEBANK_ERROR"
    severity: ErrorSeverity = ErrorSeverity.LOW
    recoverable: bool = False
    user_message: str = "An error occurred. Please try again or contact support."

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def is_recoverable(self) -> bool:
        """Can the caller retry with the same input and hope to succeed?"""
        return self.recoverable

    def to_user_message(self) -> str:
        return self.user_message

    def to_log_dict(self) -> dict:
        return {
            "error_code": self.code,
            "error_message": self.message,
            "severity": self.severity.value,
            "recoverable": self.recoverable,
            **self.context,
        }


# =============================================================================
# VALIDATION ERRORS
# =============================================================================

class InvalidAmountError(SafeBankError):
    """Transaction amount is zero, negative or not a number."""

    code = ErrorCodes.INVALID_AMOUNT
    user_message = "Transaction amount must be greater than zero."

    def __init__(self, amount: float):
        self.amount = amount
        super().__init__(
            f"Transaction amount must be positive, got {amount}",
            context={"amount": amount},
        )


class TransactionLimitExceededError(SafeBankError):
    """
    An amount (or a projected daily total) is above its limit.

    amount is whatever was compared against limit: the transaction amount
    for per-transaction and offline limits, the projected day total for
    the daily limit.
    """

    code = ErrorCodes.TRANSACTION_LIMIT_EXCEEDED
    severity = ErrorSeverity.HIGH

    def __init__(self, amount: float, limit: float):
        self.amount = amount
        self.limit = limit
        super().__init__(
            f"Transaction limit exceeded: {amount} > {limit}",
            context={"amount": amount, "limit": limit},
        )

    def to_user_message(self) -> str:
        return f"Transaction exceeds the limit of {self.limit:.2f}"


class InvalidTransactionStateError(SafeBankError):
    """Requested status change is not allowed from the current status."""

    code = ErrorCodes.INVALID_TRANSACTION_STATE
    user_message = "This transaction can no longer be changed."

    def __init__(self, current_state: str, message: Optional[str] = None):
        self.current_state = current_state
        super().__init__(
            message or f"Invalid transaction state: {current_state}",
            context={"current_state": current_state},
        )


class DuplicateTransactionError(SafeBankError):
    """A transaction with the same id is already in the ledger."""

    code = ErrorCodes.DUPLICATE_TRANSACTION
    severity = ErrorSeverity.MEDIUM
    user_message = "This transaction has already been processed."

    def __init__(self, transaction_id: Any):
        self.transaction_id = transaction_id
        super().__init__(
            f"Transaction already recorded: {transaction_id}",
            context={"transaction_id": str(transaction_id)},
        )


# =============================================================================
# OFFLINE ENVELOPE ERRORS
# =============================================================================

class EnvelopeExpiredError(SafeBankError):
    """Offline envelope was replayed after its expiry time."""

    code = ErrorCodes.ENVELOPE_EXPIRED
    severity = ErrorSeverity.MEDIUM
    user_message = "This offline transaction has expired. Please submit it again."

    def __init__(self, expires_at: Any):
        self.expires_at = expires_at
        super().__init__(
            f"Offline transaction expired at {expires_at}",
            context={"expires_at": str(expires_at)},
        )


class CryptographyError(SafeBankError):
    """Envelope could not be encrypted or decrypted."""

    code = ErrorCodes.CRYPTOGRAPHY_ERROR
    severity = ErrorSeverity.CRITICAL


class IntegrityMismatchError(CryptographyError):
    """Recovered envelope content does not match its signature."""

    code = ErrorCodes.INTEGRITY_MISMATCH
    user_message = "This offline transaction could not be verified."


class SerializationError(SafeBankError):
    """Transaction could not be serialized or parsed."""

    code = ErrorCodes.SERIALIZATION_ERROR


# =============================================================================
# STORAGE / SYSTEM ERRORS
# =============================================================================

class TransactionNotFoundError(SafeBankError):
    """No transaction with the given id exists in the ledger."""

    code = ErrorCodes.TRANSACTION_NOT_FOUND
    user_message = "Transaction not found."

    def __init__(self, transaction_id: Any):
        self.transaction_id = transaction_id
        super().__init__(
            f"Transaction not found: {transaction_id}",
            context={"transaction_id": str(transaction_id)},
        )


class ConfigError(SafeBankError):
    """Configuration is missing or inconsistent."""

    code = ErrorCodes.CONFIG_ERROR
