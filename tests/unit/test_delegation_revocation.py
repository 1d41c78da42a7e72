"""Tests for agentauth.delegation.revocation — DelegationRevocation."""
from __future__ import annotations

import threading

import pytest

from agentauth.delegation import (
    Delegation,
    DelegationRevocation,
    RevocationChecker,
    create_delegation,
)
from agentauth.identity import AgentIdentity


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def revocation() -> DelegationRevocation:
    return DelegationRevocation()


@pytest.fixture()
def delegation() -> Delegation:
    principal = AgentIdentity.create()
    return create_delegation(principal.did, AgentIdentity.create().did, ["x"]).sign(principal)


# ---------------------------------------------------------------------------
# DelegationRevocation — revoke / is_revoked
# ---------------------------------------------------------------------------


class TestRevokeAndIsRevoked:
    def test_not_revoked_initially(self, revocation: DelegationRevocation) -> None:
        assert revocation.is_revoked("urn:uuid:001") is False

    def test_revoke_marks_id_revoked(self, revocation: DelegationRevocation) -> None:
        revocation.revoke("urn:uuid:001")
        assert revocation.is_revoked("urn:uuid:001") is True

    def test_accepts_delegation_objects(
        self, revocation: DelegationRevocation, delegation: Delegation
    ) -> None:
        assert revocation.is_revoked(delegation) is False
        revocation.revoke(delegation.id)
        assert revocation.is_revoked(delegation) is True

    def test_unrelated_id_not_revoked(self, revocation: DelegationRevocation) -> None:
        revocation.revoke("urn:uuid:001")
        assert revocation.is_revoked("urn:uuid:999") is False

    def test_revoke_idempotent(self, revocation: DelegationRevocation) -> None:
        revocation.revoke("urn:uuid:001")
        revocation.revoke("urn:uuid:001")
        assert revocation.revoked_ids() == frozenset({"urn:uuid:001"})

    def test_satisfies_checker_protocol(self, revocation: DelegationRevocation) -> None:
        assert isinstance(revocation, RevocationChecker)


# ---------------------------------------------------------------------------
# DelegationRevocation — snapshot / concurrency
# ---------------------------------------------------------------------------


class TestSnapshot:
    def test_snapshot_is_immutable(self, revocation: DelegationRevocation) -> None:
        revocation.revoke("a")
        snapshot = revocation.revoked_ids()
        revocation.revoke("b")
        assert snapshot == frozenset({"a"})

    def test_concurrent_revokes(self, revocation: DelegationRevocation) -> None:
        def worker(offset: int) -> None:
            for n in range(50):
                revocation.revoke(f"urn:uuid:{offset}-{n}")

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len(revocation.revoked_ids()) == 200
