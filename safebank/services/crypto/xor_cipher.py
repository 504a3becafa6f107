"""
Placeholder envelope cipher.

WARNING: repeating-key XOR is not encryption in any meaningful sense.
It keeps casual eyes off an envelope sitting on a device and nothing
more. Replace with an AEAD cipher before relying on confidentiality.
"""

import binascii

from safebank.errors import CryptographyError
from safebank.services.crypto.interface import EnvelopeCipher


class XorEnvelopeCipher(EnvelopeCipher):
    """XOR each byte with the key bytes (cycled), hex encode the result."""

    @staticmethod
    def _key_bytes(key: str) -> bytes:
        key_bytes = key.encode("utf-8")
        if not key_bytes:
            raise CryptographyError("Envelope key must not be empty")
        return key_bytes

    @staticmethod
    def _xor(data: bytes, key_bytes: bytes) -> bytes:
        return bytes(b ^ key_bytes[i % len(key_bytes)] for i, b in enumerate(data))

    def seal(self, plaintext: bytes, key: str) -> str:
        return self._xor(plaintext, self._key_bytes(key)).hex()

    def open(self, ciphertext: str, key: str) -> bytes:
        key_bytes = self._key_bytes(key)
        try:
            data = bytes.fromhex(ciphertext)
        except (ValueError, binascii.Error) as e:
            raise CryptographyError(f"Failed to decode encrypted data: {e}") from e
        return self._xor(data, key_bytes)
