"""Envelope cryptography package."""

from safebank.services.crypto.interface import (
    EnvelopeCipher,
    sign_payload,
    verify_payload,
)
from safebank.services.crypto.xor_cipher import XorEnvelopeCipher

__all__ = [
    "EnvelopeCipher",
    "XorEnvelopeCipher",
    "sign_payload",
    "verify_payload",
]
