"""Revocation status for delegations.

Revocation is an external state change, never a field on the delegation
itself. The verification layer consults a :class:`RevocationChecker`: any
object with ``is_revoked(delegation) -> bool``. A production deployment
backs this with the service named in the delegation's ``revocation``
descriptor; :class:`DelegationRevocation` is an in-memory registry suitable
for tests, single-process services, or as a local cache in front of that
service.

The verifier asks about every hop of an embedded chain, so revoking one
delegation rejects every token whose chain passes through it, including
sub-delegations granted beneath it.
"""
from __future__ import annotations

import threading
from typing import Protocol, runtime_checkable

from agentauth.delegation.models import Delegation


@runtime_checkable
class RevocationChecker(Protocol):
    """Black-box revocation predicate supplied by the calling service."""

    def is_revoked(self, delegation: Delegation) -> bool: ...


class DelegationRevocation:
    """In-memory registry of revoked delegation ids. Thread-safe."""

    def __init__(self) -> None:
        self._revoked: set[str] = set()
        self._lock = threading.Lock()

    def revoke(self, delegation_id: str) -> None:
        """Revoke a single delegation by id."""
        with self._lock:
            self._revoked.add(delegation_id)

    def is_revoked(self, delegation: Delegation | str) -> bool:
        """Return True if *delegation* (or a delegation id) has been revoked."""
        delegation_id = delegation if isinstance(delegation, str) else delegation.id
        with self._lock:
            return delegation_id in self._revoked

    def revoked_ids(self) -> frozenset[str]:
        """Return a snapshot of all revoked delegation ids."""
        with self._lock:
            return frozenset(self._revoked)


__all__ = ["DelegationRevocation", "RevocationChecker"]
