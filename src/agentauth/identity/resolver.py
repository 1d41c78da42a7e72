"""Verification-key resolution for delegator DIDs.

``did:agentauth`` DIDs are self-certifying: the key is decoded from the DID
itself. Other methods (``did:web``, ``did:key`` managed elsewhere, ...) need
an external lookup, so key resolution is a pluggable callable::

    KeyResolver = Callable[[str], bytes]

Any callable that maps a DID (or ``did#fragment`` reference) to a raw 32-byte
Ed25519 public key, raising :class:`DIDResolutionError` when it cannot, can
be handed to the delegation and verification layers.
"""
from __future__ import annotations

import threading
from typing import Callable

from agentauth.errors import DIDResolutionError, InvalidDIDFormatError
from agentauth.identity.did import did_to_public_key, is_agentauth_did, strip_fragment
from agentauth.identity.key_manager import PUBLIC_KEY_SIZE

KeyResolver = Callable[[str], bytes]


def resolve_agentauth_key(reference: str) -> bytes:
    """Resolve a self-certifying ``did:agentauth`` DID or key reference.

    Raises
    ------
    DIDResolutionError
        If the DID uses another method or cannot be decoded.
    """
    did = strip_fragment(reference)
    if not is_agentauth_did(did):
        raise DIDResolutionError(
            f"Cannot resolve {did!r}: not a self-certifying did:agentauth DID",
            context={"did": did},
        )
    try:
        return did_to_public_key(did)
    except InvalidDIDFormatError as exc:
        raise DIDResolutionError(str(exc), context={"did": did}) from exc


class StaticKeyResolver:
    """Resolves DIDs from a fixed, in-memory key table.

    Falls back to :func:`resolve_agentauth_key` for DIDs not in the table, so
    a single resolver covers both self-certifying agents and externally
    anchored principals. Thread-safe.

    Parameters
    ----------
    keys:
        Optional initial mapping of DID -> raw 32-byte public key.

    Example
    -------
    ::

        resolver = StaticKeyResolver({"did:web:alice.example.com": alice_public_key})
        resolver("did:web:alice.example.com#keys-1")
    """

    def __init__(self, keys: dict[str, bytes] | None = None) -> None:
        self._keys: dict[str, bytes] = {}
        self._lock = threading.Lock()
        for did, public_key in (keys or {}).items():
            self.register(did, public_key)

    def register(self, did: str, public_key: bytes) -> None:
        """Associate *did* with *public_key*.

        Raises
        ------
        ValueError
            If *public_key* is not 32 bytes.
        """
        if len(public_key) != PUBLIC_KEY_SIZE:
            raise ValueError(
                f"Public key for {did!r} must be {PUBLIC_KEY_SIZE} bytes, got {len(public_key)}"
            )
        with self._lock:
            self._keys[strip_fragment(did)] = bytes(public_key)

    def __call__(self, reference: str) -> bytes:
        did = strip_fragment(reference)
        with self._lock:
            public_key = self._keys.get(did)
        if public_key is not None:
            return public_key
        return resolve_agentauth_key(did)

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)


__all__ = ["KeyResolver", "StaticKeyResolver", "resolve_agentauth_key"]
