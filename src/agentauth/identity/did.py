"""The ``did:agentauth`` method — self-certifying agent DIDs.

DID format
----------
::

    did:agentauth:ed25519:<base64url-public-key>

The final segment is the unpadded base64url encoding of the 32-byte raw
Ed25519 public key, so the key is recoverable from the DID string alone
without any registry lookup. :func:`public_key_to_did` and
:func:`did_to_public_key` are exact inverses.
"""
from __future__ import annotations

from agentauth.encoding import b64url_decode, b64url_encode
from agentauth.errors import InvalidDIDFormatError, InvalidKeyFormatError
from agentauth.identity.key_manager import PUBLIC_KEY_SIZE

DID_SCHEME: str = "did"
DID_METHOD: str = "agentauth"
KEY_TYPE: str = "ed25519"
DID_PREFIX: str = f"{DID_SCHEME}:{DID_METHOD}:{KEY_TYPE}:"
DEFAULT_KEY_FRAGMENT: str = "keys-1"


def public_key_to_did(public_key: bytes) -> str:
    """Encode a raw Ed25519 public key as a ``did:agentauth`` DID.

    Raises
    ------
    InvalidKeyFormatError
        If *public_key* is not exactly 32 bytes.
    """
    if len(public_key) != PUBLIC_KEY_SIZE:
        raise InvalidKeyFormatError(
            f"Ed25519 public key must be {PUBLIC_KEY_SIZE} bytes, got {len(public_key)}"
        )
    return f"{DID_PREFIX}{b64url_encode(public_key)}"


def did_to_public_key(did: str) -> bytes:
    """Recover the raw public key encoded in a ``did:agentauth`` DID.

    Raises
    ------
    InvalidDIDFormatError
        If the DID does not have exactly four colon-delimited segments
        ``did``, ``agentauth``, ``ed25519``, ``<key>``, or if the key segment
        is not a 32-byte base64url value.
    """
    parts = did.split(":") if isinstance(did, str) else []
    if (
        len(parts) != 4
        or parts[0] != DID_SCHEME
        or parts[1] != DID_METHOD
        or parts[2] != KEY_TYPE
    ):
        raise InvalidDIDFormatError(
            f"Invalid AgentAuth DID format: {did!r}. "
            f"Expected {DID_PREFIX}<base64url-public-key>",
            context={"did": did},
        )
    try:
        public_key = b64url_decode(parts[3])
    except ValueError as exc:
        raise InvalidDIDFormatError(
            f"Invalid key encoding in DID {did!r}: {exc}", context={"did": did}
        ) from exc
    if len(public_key) != PUBLIC_KEY_SIZE:
        raise InvalidDIDFormatError(
            f"DID {did!r} encodes a {len(public_key)}-byte key, "
            f"expected {PUBLIC_KEY_SIZE}",
            context={"did": did},
        )
    return public_key


def is_agentauth_did(did: str) -> bool:
    """Return True if *did* uses the ``did:agentauth:ed25519`` method prefix."""
    return isinstance(did, str) and did.startswith(DID_PREFIX)


def key_id(did: str, fragment: str = DEFAULT_KEY_FRAGMENT) -> str:
    """Return the verification-method reference ``<did>#<fragment>``."""
    return f"{did}#{fragment}"


def strip_fragment(reference: str) -> str:
    """Return the DID part of a ``<did>#<fragment>`` reference."""
    return reference.split("#", 1)[0]


__all__ = [
    "DEFAULT_KEY_FRAGMENT",
    "DID_METHOD",
    "DID_PREFIX",
    "did_to_public_key",
    "is_agentauth_did",
    "key_id",
    "public_key_to_did",
    "strip_fragment",
]
