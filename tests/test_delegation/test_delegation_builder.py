"""Tests for create_delegation, UnsignedDelegation and delegation proofs."""
from __future__ import annotations

import datetime

import pytest
from pydantic import ValidationError

from agentauth.delegation import (
    Delegation,
    UnsignedDelegation,
    create_delegation,
    verify_delegation_signature,
)
from agentauth.errors import DIDResolutionError, InvalidDelegationError
from agentauth.identity import AgentIdentity, StaticKeyResolver


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def principal() -> AgentIdentity:
    return AgentIdentity.create({"name": "alice"})


@pytest.fixture()
def agent() -> AgentIdentity:
    return AgentIdentity.create({"name": "mail-bot"})


@pytest.fixture()
def delegation(principal: AgentIdentity, agent: AgentIdentity) -> Delegation:
    return create_delegation(
        principal.did,
        agent.did,
        ["mail.read", "mail.send"],
        audiences=["https://mail.example.com"],
        platform="openai",
        agent_name="mail-bot",
        constraints={"maxUsesPerHour": 100, "requireMFA": False},
    ).sign(principal)


# ---------------------------------------------------------------------------
# create_delegation
# ---------------------------------------------------------------------------


class TestCreateDelegation:
    def test_returns_unsigned_builder(self, principal: AgentIdentity, agent: AgentIdentity) -> None:
        unsigned = create_delegation(principal.did, agent.did, ["mail.read"])
        assert isinstance(unsigned, UnsignedDelegation)
        assert not isinstance(unsigned, Delegation)

    def test_id_is_urn_uuid(self, principal: AgentIdentity, agent: AgentIdentity) -> None:
        unsigned = create_delegation(principal.did, agent.did, ["mail.read"])
        assert unsigned.id.startswith("urn:uuid:")

    def test_ids_unique(self, principal: AgentIdentity, agent: AgentIdentity) -> None:
        ids = {create_delegation(principal.did, agent.did, ["x"]).id for _ in range(20)}
        assert len(ids) == 20

    def test_fields_populated(self, delegation: Delegation, principal: AgentIdentity) -> None:
        assert delegation.type == "DelegationToken"
        assert delegation.delegate.platform == "openai"
        assert delegation.delegate.name == "mail-bot"
        assert delegation.scopes == ("mail.read", "mail.send")
        assert delegation.scope.audiences == ("https://mail.example.com",)
        assert delegation.constraints.max_uses_per_hour == 100
        assert delegation.proof.verification_method == f"{principal.did}#keys-1"
        assert delegation.proof.type == "Ed25519Signature2020"
        assert delegation.proof.proof_purpose == "assertionMethod"

    def test_snake_case_constraint_keys_accepted(
        self, principal: AgentIdentity, agent: AgentIdentity
    ) -> None:
        unsigned = create_delegation(
            principal.did, agent.did, ["x"], constraints={"max_uses": 5}
        )
        assert unsigned.constraints.max_uses == 5

    def test_unknown_constraint_rejected(
        self, principal: AgentIdentity, agent: AgentIdentity
    ) -> None:
        with pytest.raises(InvalidDelegationError) as exc_info:
            create_delegation(principal.did, agent.did, ["x"], constraints={"maxSpend": 10})
        assert exc_info.value.kind == "InvalidDelegation"

    def test_not_before_after_not_after_rejected(
        self, principal: AgentIdentity, agent: AgentIdentity
    ) -> None:
        with pytest.raises(InvalidDelegationError):
            create_delegation(
                principal.did,
                agent.did,
                ["x"],
                constraints={
                    "notBefore": "2026-02-01T00:00:00Z",
                    "notAfter": "2026-01-01T00:00:00Z",
                },
            )

    @pytest.mark.parametrize(
        "constraints",
        [
            {"maxUses": 0},
            {"maxUsesPerHour": -1},
            {"maxValuePerUse": -5},
            {"ipAllowlist": ["not-an-ip"]},
            {"timeWindows": [{"hours": "25:00-26:00"}]},
            {"timeWindows": [{"tz": "Mars/Olympus_Mons"}]},
            {"timeWindows": [{"days": ["funday"]}]},
            {"notAfter": "2026-01-01T00:00:00"},
        ],
    )
    def test_invalid_constraints_rejected(
        self,
        principal: AgentIdentity,
        agent: AgentIdentity,
        constraints: dict[str, object],
    ) -> None:
        with pytest.raises(InvalidDelegationError):
            create_delegation(principal.did, agent.did, ["x"], constraints=constraints)

    def test_empty_delegator_rejected(self, agent: AgentIdentity) -> None:
        with pytest.raises(InvalidDelegationError):
            create_delegation("", agent.did, ["x"])

    @pytest.mark.parametrize("field", ["scopes", "exclude", "audiences"])
    def test_bare_string_list_rejected(
        self, principal: AgentIdentity, agent: AgentIdentity, field: str
    ) -> None:
        arguments: dict[str, object] = {"scopes": ["mail.read"], field: "mail.read"}
        with pytest.raises(InvalidDelegationError) as exc_info:
            create_delegation(principal.did, agent.did, **arguments)  # type: ignore[arg-type]
        assert exc_info.value.context == {"field": field}

    def test_revocation_descriptor(self, principal: AgentIdentity, agent: AgentIdentity) -> None:
        unsigned = create_delegation(
            principal.did,
            agent.did,
            ["x"],
            revocation={"endpoint": "https://revoke.example.com", "method": "GET", "cacheTTL": 60},
        )
        assert unsigned.revocation is not None
        assert unsigned.revocation.cache_ttl == 60


# ---------------------------------------------------------------------------
# Signing and proof verification
# ---------------------------------------------------------------------------


class TestDelegationProof:
    def test_signed_delegation_verifies(self, delegation: Delegation) -> None:
        assert verify_delegation_signature(delegation) is True

    def test_proof_survives_json_round_trip(self, delegation: Delegation) -> None:
        restored = Delegation.from_json(delegation.to_json())
        assert restored.to_dict() == delegation.to_dict()
        assert verify_delegation_signature(restored) is True

    def test_tampered_scope_fails(self, delegation: Delegation) -> None:
        data = delegation.to_dict()
        data["scope"] = {"include": ["mail.read", "mail.send", "mail.delete"]}
        tampered = Delegation.from_dict(data)
        assert verify_delegation_signature(tampered) is False

    def test_signature_by_other_key_fails(
        self, principal: AgentIdentity, agent: AgentIdentity
    ) -> None:
        forged = create_delegation(principal.did, agent.did, ["x"]).sign(agent)
        assert verify_delegation_signature(forged) is False

    def test_verification_method_of_other_did_fails(
        self, delegation: Delegation, agent: AgentIdentity
    ) -> None:
        data = delegation.to_dict()
        data["proof"]["verificationMethod"] = agent.key_id  # type: ignore[index]
        assert verify_delegation_signature(Delegation.from_dict(data)) is False

    def test_undecodable_proof_value_fails(self, delegation: Delegation) -> None:
        data = delegation.to_dict()
        data["proof"]["proofValue"] = "not*base64"  # type: ignore[index]
        assert verify_delegation_signature(Delegation.from_dict(data)) is False

    def test_did_web_delegator_with_resolver(self, agent: AgentIdentity) -> None:
        alice_keys = AgentIdentity.create()
        signed = create_delegation("did:web:alice.example.com", agent.did, ["mail.read"]).sign(
            alice_keys
        )
        resolver = StaticKeyResolver({"did:web:alice.example.com": alice_keys.public_key})
        assert verify_delegation_signature(signed, resolver) is True

    def test_did_web_delegator_without_resolver_raises(self, agent: AgentIdentity) -> None:
        signed = create_delegation("did:web:alice.example.com", agent.did, ["x"]).sign(
            AgentIdentity.create()
        )
        with pytest.raises(DIDResolutionError):
            verify_delegation_signature(signed)

    def test_attach_external_proof(self, principal: AgentIdentity, agent: AgentIdentity) -> None:
        from agentauth.encoding import b64url_encode

        unsigned = create_delegation(principal.did, agent.did, ["mail.read"])
        signature = principal.sign(unsigned.signing_input())
        issued = unsigned.attach_proof(b64url_encode(signature))
        assert verify_delegation_signature(issued) is True

    def test_attach_empty_proof_rejected(
        self, principal: AgentIdentity, agent: AgentIdentity
    ) -> None:
        with pytest.raises(InvalidDelegationError):
            create_delegation(principal.did, agent.did, ["x"]).attach_proof("")

    def test_signing_input_excludes_proof_value(self, delegation: Delegation) -> None:
        assert delegation.proof.proof_value.encode() not in delegation.signing_input()
        assert b"proofValue" not in delegation.signing_input()


# ---------------------------------------------------------------------------
# Interchange format
# ---------------------------------------------------------------------------


class TestInterchangeFormat:
    def test_camel_case_keys(self, delegation: Delegation) -> None:
        data = delegation.to_dict()
        assert "maxUsesPerHour" in data["constraints"]  # type: ignore[operator]
        assert "verificationMethod" in data["proof"]  # type: ignore[operator]
        assert "proofValue" in data["proof"]  # type: ignore[operator]

    def test_unsigned_form_is_not_a_delegation(
        self, principal: AgentIdentity, agent: AgentIdentity
    ) -> None:
        unsigned = create_delegation(principal.did, agent.did, ["x"])
        with pytest.raises(InvalidDelegationError):
            Delegation.from_dict(unsigned.to_dict())

    def test_unknown_top_level_key_rejected(self, delegation: Delegation) -> None:
        data = delegation.to_dict()
        data["extra"] = True
        with pytest.raises(InvalidDelegationError):
            Delegation.from_dict(data)

    def test_invalid_json_rejected(self) -> None:
        with pytest.raises(InvalidDelegationError):
            Delegation.from_json("{not json")

    def test_delegation_is_immutable(self, delegation: Delegation) -> None:
        with pytest.raises(ValidationError):
            delegation.id = "urn:uuid:other"  # type: ignore[misc]

    def test_timestamps_are_utc(self, delegation: Delegation) -> None:
        assert delegation.proof.created.utcoffset() == datetime.timedelta(0)
