"""
Offline Envelope Protocol

A transaction authored without connectivity travels as an
OfflineTransaction envelope:

SEAL:
1. Refuse amounts above offline_transaction_limit
2. Serialize the transaction to canonical JSON (sorted keys, compact)
3. Encrypt the JSON bytes through an EnvelopeCipher
4. Sign the JSON bytes (SHA-256 over plaintext + secret)
5. Stamp expires_at = now + offline_cache_duration_hours

OPEN (in this order, first failure raises):
1. Expiry              -> EnvelopeExpiredError
2. Decrypt + decode    -> IntegrityMismatchError
3. Signature check     -> IntegrityMismatchError (constant time)
4. Parse transaction   -> SerializationError
5. Cleartext copy must equal the recovered transaction
                       -> IntegrityMismatchError

Opening only verifies. Recording the recovered transaction is the
ledger's job, through its normal pipeline.
"""

import json
from datetime import datetime, timedelta
from typing import Callable, Optional

import structlog
from pydantic import ValidationError

from safebank.config import SafeBankSettings, get_settings
from safebank.errors import (
    CryptographyError,
    EnvelopeExpiredError,
    IntegrityMismatchError,
    SerializationError,
    TransactionLimitExceededError,
)
from safebank.models.transaction import OfflineTransaction, Transaction, utc_now
from safebank.services.crypto import (
    EnvelopeCipher,
    XorEnvelopeCipher,
    sign_payload,
    verify_payload,
)

logger = structlog.get_logger(__name__)


def canonical_json(transaction: Transaction) -> bytes:
    """Deterministic JSON encoding of a transaction (UTF-8)."""
    try:
        payload = transaction.model_dump(mode="json")
        return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Failed to serialize transaction: {e}") from e


def _require_secret(secret: str) -> None:
    if not secret:
        raise CryptographyError("Envelope secret must not be empty")


class OfflineEnvelopeCodec:
    """Seals transactions into envelopes and verifies them on the way back."""

    def __init__(
        self,
        cipher: Optional[EnvelopeCipher] = None,
        settings: Optional[SafeBankSettings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._cipher = cipher or XorEnvelopeCipher()
        self._settings = settings or get_settings()
        self._clock = clock

    def seal(self, transaction: Transaction, secret: str) -> OfflineTransaction:
        """
        Wrap a transaction in a signed, encrypted, time-bounded envelope.

        Raises:
            TransactionLimitExceededError: amount above the offline limit
            CryptographyError: empty secret
            SerializationError: transaction cannot be encoded
        """
        limit = self._settings.offline_transaction_limit
        if transaction.amount > limit:
            raise TransactionLimitExceededError(transaction.amount, limit)
        _require_secret(secret)

        plaintext = canonical_json(transaction)
        envelope = OfflineTransaction(
            transaction=transaction.model_copy(deep=True),
            encrypted_data=self._cipher.seal(plaintext, secret),
            signature=sign_payload(plaintext, secret),
            expires_at=self._clock() + timedelta(
                hours=self._settings.offline_cache_duration_hours
            ),
        )

        logger.info(
            "offline_envelope_sealed",
            transaction_id=str(transaction.transaction_id),
            expires_at=envelope.expires_at.isoformat(),
        )
        return envelope

    def open(self, envelope: OfflineTransaction, secret: str) -> Transaction:
        """
        Verify an envelope and return the transaction recovered from it.

        Raises:
            EnvelopeExpiredError: now is past expires_at
            CryptographyError: empty secret
            IntegrityMismatchError: undecodable ciphertext, bad signature,
                or cleartext copy differing from the recovered transaction
            SerializationError: recovered plaintext is not a transaction
        """
        if envelope.is_expired(self._clock()):
            raise EnvelopeExpiredError(envelope.expires_at)
        _require_secret(secret)

        try:
            plaintext = self._cipher.open(envelope.encrypted_data, secret)
            plaintext.decode("utf-8")
        except CryptographyError as e:
            raise IntegrityMismatchError(f"Failed to decrypt envelope: {e.message}") from e
        except UnicodeDecodeError as e:
            raise IntegrityMismatchError("Decrypted envelope is not valid UTF-8") from e

        if not verify_payload(plaintext, secret, envelope.signature):
            raise IntegrityMismatchError(
                "Envelope signature does not match its content",
                context={"transaction_id": str(envelope.transaction.transaction_id)},
            )

        try:
            recovered = Transaction.model_validate_json(plaintext)
        except ValidationError as e:
            raise SerializationError(f"Failed to parse envelope transaction: {e}") from e

        if envelope.transaction.model_dump() != recovered.model_dump():
            raise IntegrityMismatchError(
                "Envelope cleartext does not match its encrypted content",
                context={"transaction_id": str(recovered.transaction_id)},
            )

        return recovered
