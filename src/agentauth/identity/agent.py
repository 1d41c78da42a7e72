"""AgentIdentity — an agent's Ed25519 keypair and self-certifying DID.

An AgentIdentity owns its private key exclusively. The public key and DID
are derived deterministically from it, so an identity can be reconstructed
from a stored private key at any time. Instances are immutable; there is no
explicit teardown.
"""
from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, field
from typing import Optional

from agentauth.errors import InvalidKeyFormatError
from agentauth.identity.did import did_to_public_key, key_id, public_key_to_did
from agentauth.identity.key_manager import PRIVATE_KEY_SIZE, Ed25519KeyManager

logger = logging.getLogger(__name__)

_KEY_MANAGER = Ed25519KeyManager()


@dataclass(frozen=True)
class AgentIdentity:
    """Keypair-backed identity for an autonomous agent.

    Parameters
    ----------
    private_key:
        The 32-byte raw Ed25519 private key. Excluded from ``repr()``.
    public_key:
        The 32-byte raw Ed25519 public key derived from ``private_key``.
    did:
        The ``did:agentauth:ed25519:...`` identifier for ``public_key``.
    metadata:
        Free-form descriptive metadata (name, platform, capabilities, ...).
    created_at:
        UTC datetime when the identity was first created.

    Examples
    --------
    >>> identity = AgentIdentity.create({"name": "mail-bot"})
    >>> identity.did.startswith("did:agentauth:ed25519:")
    True
    >>> AgentIdentity.verify(identity.sign(b"hi"), b"hi", identity.did)
    True
    """

    private_key: bytes = field(repr=False)
    public_key: bytes
    did: str
    metadata: dict[str, object] = field(default_factory=dict)
    created_at: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def create(cls, metadata: Optional[dict[str, object]] = None) -> "AgentIdentity":
        """Generate a fresh keypair and derive its DID.

        Raises
        ------
        EntropyError
            If the secure random source is unavailable.
        """
        private_key = _KEY_MANAGER.generate_private_key()
        identity = cls._from_private_bytes(private_key, metadata)
        logger.debug("Created agent identity %s", identity.did)
        return identity

    @classmethod
    def from_private_key(
        cls,
        private_key_hex: str,
        metadata: Optional[dict[str, object]] = None,
        created_at: Optional[datetime.datetime] = None,
    ) -> "AgentIdentity":
        """Reconstruct an identity from a hex-encoded private key.

        Raises
        ------
        InvalidKeyFormatError
            If *private_key_hex* is not valid hex or does not decode to
            exactly 32 bytes.
        """
        try:
            private_key = bytes.fromhex(private_key_hex)
        except (TypeError, ValueError) as exc:
            raise InvalidKeyFormatError(f"Private key is not valid hex: {exc}") from exc
        if len(private_key) != PRIVATE_KEY_SIZE:
            raise InvalidKeyFormatError(
                f"Private key must decode to {PRIVATE_KEY_SIZE} bytes, got {len(private_key)}"
            )
        return cls._from_private_bytes(private_key, metadata, created_at)

    @classmethod
    def _from_private_bytes(
        cls,
        private_key: bytes,
        metadata: Optional[dict[str, object]],
        created_at: Optional[datetime.datetime] = None,
    ) -> "AgentIdentity":
        public_key = _KEY_MANAGER.derive_public_key(private_key)
        return cls(
            private_key=private_key,
            public_key=public_key,
            did=public_key_to_did(public_key),
            metadata=dict(metadata or {}),
            created_at=created_at or datetime.datetime.now(datetime.timezone.utc),
        )

    # ------------------------------------------------------------------
    # DID helpers
    # ------------------------------------------------------------------

    public_key_to_did = staticmethod(public_key_to_did)
    did_to_public_key = staticmethod(did_to_public_key)

    @property
    def key_id(self) -> str:
        """The verification-method reference ``<did>#keys-1``."""
        return key_id(self.did)

    # ------------------------------------------------------------------
    # Signing
    # ------------------------------------------------------------------

    def sign(self, data: bytes) -> bytes:
        """Sign *data* with this identity's private key (deterministic Ed25519)."""
        return _KEY_MANAGER.sign(self.private_key, data)

    @staticmethod
    def verify(signature: bytes, message: bytes, did: str) -> bool:
        """Verify *signature* over *message* against the key encoded in *did*.

        Returns False on any cryptographic mismatch.

        Raises
        ------
        InvalidDIDFormatError
            If *did* is not a well-formed ``did:agentauth`` DID.
        """
        public_key = did_to_public_key(did)
        return _KEY_MANAGER.verify(public_key, signature, message)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def export_private_key(self) -> str:
        """Return the private key as lowercase hex."""
        return self.private_key.hex()

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary for storage.

        The result contains the private key; treat it as a secret.
        """
        return {
            "did": self.did,
            "privateKey": self.export_private_key(),
            "publicKey": self.public_key.hex(),
            "metadata": dict(self.metadata),
            "created": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "AgentIdentity":
        """Reconstruct an identity from :meth:`to_dict` output.

        Raises
        ------
        InvalidKeyFormatError
            If the private key is malformed or the stored DID / public key
            do not match the key derived from it.
        """
        try:
            private_key_hex = str(data["privateKey"])
        except KeyError as exc:
            raise InvalidKeyFormatError("Identity record has no 'privateKey'") from exc

        created_raw = data.get("created")
        try:
            created_at = (
                datetime.datetime.fromisoformat(str(created_raw)) if created_raw else None
            )
        except ValueError as exc:
            raise InvalidKeyFormatError(f"Invalid 'created' timestamp: {exc}") from exc

        identity = cls.from_private_key(
            private_key_hex,
            metadata=dict(data.get("metadata") or {}),  # type: ignore[arg-type]
            created_at=created_at,
        )
        stored_did = data.get("did")
        if stored_did is not None and stored_did != identity.did:
            raise InvalidKeyFormatError(
                "Stored DID does not match the DID derived from the private key",
                context={"stored": stored_did, "derived": identity.did},
            )
        stored_public = data.get("publicKey")
        if stored_public is not None and stored_public != identity.public_key.hex():
            raise InvalidKeyFormatError(
                "Stored public key does not match the key derived from the private key"
            )
        return identity


__all__ = ["AgentIdentity"]
