"""
Envelope Cipher Interface

The offline envelope protocol (serialize -> encrypt -> sign -> timestamp)
only ever calls seal() and open() on an EnvelopeCipher. Swapping the
placeholder cipher for a real AEAD primitive means writing one more
subclass; the protocol itself does not change.
"""

import hashlib
from abc import ABC, abstractmethod
from hmac import compare_digest


class EnvelopeCipher(ABC):
    """Symmetric, keyed, reversible transform of envelope plaintext."""

    @abstractmethod
    def seal(self, plaintext: bytes, key: str) -> str:
        """
        Encrypt plaintext.

        Returns:
            Text-safe ciphertext

        Raises:
            CryptographyError: If the key is unusable
        """
        pass

    @abstractmethod
    def open(self, ciphertext: str, key: str) -> bytes:
        """
        Reverse seal().

        Raises:
            CryptographyError: If the ciphertext cannot be decoded
        """
        pass


def sign_payload(plaintext: bytes, secret: str) -> str:
    """SHA-256 integrity tag over plaintext followed by the secret (hex)."""
    hasher = hashlib.sha256()
    hasher.update(plaintext)
    hasher.update(secret.encode("utf-8"))
    return hasher.hexdigest()


def verify_payload(plaintext: bytes, secret: str, signature: str) -> bool:
    """Constant-time check of a tag produced by sign_payload()."""
    expected = sign_payload(plaintext, secret)
    return compare_digest(expected, signature.lower())
