"""Ed25519KeyManager — Ed25519 key generation, signing, and verification.

A thin wrapper around the ``cryptography`` package's Ed25519 primitives. All
key material is handled as raw bytes so callers can store or transmit keys
without depending on this module's internal types.
"""
from __future__ import annotations

import secrets

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from agentauth.errors import EntropyError, InvalidKeyFormatError

PRIVATE_KEY_SIZE: int = 32
PUBLIC_KEY_SIZE: int = 32
SIGNATURE_SIZE: int = 64


class Ed25519KeyManager:
    """Ed25519 key management: generate, derive, sign, and verify.

    Stateless; a single instance can be shared between threads.

    Example
    -------
    ::

        manager = Ed25519KeyManager()
        private_bytes = manager.generate_private_key()
        public_bytes = manager.derive_public_key(private_bytes)
        signature = manager.sign(private_bytes, b"hello world")
        assert manager.verify(public_bytes, signature, b"hello world")
    """

    def generate_private_key(self) -> bytes:
        """Return a fresh 32-byte Ed25519 private key.

        Raises
        ------
        EntropyError
            If the operating system's random source is unavailable.
        """
        try:
            return secrets.token_bytes(PRIVATE_KEY_SIZE)
        except (NotImplementedError, OSError) as exc:
            raise EntropyError(f"Secure random source unavailable: {exc}") from exc

    def derive_public_key(self, private_key_bytes: bytes) -> bytes:
        """Derive the 32-byte raw public key for *private_key_bytes*.

        Raises
        ------
        InvalidKeyFormatError
            If the private key is not exactly 32 bytes.
        """
        private_key = self._load_private_key(private_key_bytes)
        return private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)

    def sign(self, private_key_bytes: bytes, data: bytes) -> bytes:
        """Sign *data* and return the 64-byte Ed25519 signature."""
        return self._load_private_key(private_key_bytes).sign(data)

    def verify(self, public_key_bytes: bytes, signature: bytes, data: bytes) -> bool:
        """Return ``True`` if *signature* over *data* verifies, ``False`` otherwise.

        Wrong-length keys or signatures count as a mismatch rather than an error.
        """
        if len(public_key_bytes) != PUBLIC_KEY_SIZE or len(signature) != SIGNATURE_SIZE:
            return False
        try:
            public_key = Ed25519PublicKey.from_public_bytes(public_key_bytes)
            public_key.verify(signature, data)
            return True
        except (InvalidSignature, ValueError):
            return False

    @staticmethod
    def _load_private_key(private_key_bytes: bytes) -> Ed25519PrivateKey:
        if len(private_key_bytes) != PRIVATE_KEY_SIZE:
            raise InvalidKeyFormatError(
                f"Ed25519 private key must be {PRIVATE_KEY_SIZE} bytes, "
                f"got {len(private_key_bytes)}"
            )
        return Ed25519PrivateKey.from_private_bytes(private_key_bytes)


__all__ = [
    "Ed25519KeyManager",
    "PRIVATE_KEY_SIZE",
    "PUBLIC_KEY_SIZE",
    "SIGNATURE_SIZE",
]
