"""Services package."""

from safebank.services.crypto import (
    EnvelopeCipher,
    XorEnvelopeCipher,
    sign_payload,
    verify_payload,
)
from safebank.services.storage import (
    AuditStorageInterface,
    DuplicateError,
    InMemoryAuditStorage,
    InMemoryTransactionStorage,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
)

__all__ = [
    # Envelope cryptography
    "EnvelopeCipher",
    "XorEnvelopeCipher",
    "sign_payload",
    "verify_payload",
    # Storage services
    "AuditStorageInterface",
    "DuplicateError",
    "InMemoryAuditStorage",
    "InMemoryTransactionStorage",
    "NotFoundError",
    "StorageError",
    "TransactionStorageInterface",
]
