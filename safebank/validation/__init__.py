"""Transaction validation package."""

from safebank.validation.validator import TransactionValidator

__all__ = ["TransactionValidator"]
