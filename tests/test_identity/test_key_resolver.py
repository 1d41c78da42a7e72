"""Tests for agentauth.identity.resolver — key resolution for delegator DIDs."""
from __future__ import annotations

import pytest

from agentauth.errors import DIDResolutionError
from agentauth.identity import AgentIdentity, StaticKeyResolver, resolve_agentauth_key


class TestResolveAgentAuthKey:
    def test_resolves_self_certifying_did(self) -> None:
        identity = AgentIdentity.create()
        assert resolve_agentauth_key(identity.did) == identity.public_key

    def test_resolves_key_reference(self) -> None:
        identity = AgentIdentity.create()
        assert resolve_agentauth_key(identity.key_id) == identity.public_key

    def test_other_method_raises(self) -> None:
        with pytest.raises(DIDResolutionError):
            resolve_agentauth_key("did:web:alice.example.com")

    def test_corrupt_agentauth_did_raises(self) -> None:
        with pytest.raises(DIDResolutionError):
            resolve_agentauth_key("did:agentauth:ed25519:AAAA")


class TestStaticKeyResolver:
    def test_registered_did_resolves(self) -> None:
        alice = AgentIdentity.create()
        resolver = StaticKeyResolver({"did:web:alice.example.com": alice.public_key})
        assert resolver("did:web:alice.example.com#keys-1") == alice.public_key
        assert len(resolver) == 1

    def test_falls_back_to_self_certifying(self) -> None:
        agent = AgentIdentity.create()
        assert StaticKeyResolver()(agent.did) == agent.public_key

    def test_unknown_did_raises(self) -> None:
        with pytest.raises(DIDResolutionError):
            StaticKeyResolver()("did:web:unknown.example.com")

    def test_register_rejects_wrong_length(self) -> None:
        with pytest.raises(ValueError):
            StaticKeyResolver().register("did:web:alice.example.com", b"\x00" * 8)
