#!/usr/bin/env python3
"""Example: Quickstart

Demonstrates the minimal flow: a principal delegates a scope to an agent,
the agent issues a token embedding that delegation, and a service verifies
the token with AgentVerifier.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install agentauth
"""
from __future__ import annotations

import agentauth
from agentauth import (
    AATToken,
    AgentAuthConfig,
    AgentIdentity,
    AgentVerifier,
    StaticKeyResolver,
    create_delegation,
)

PRINCIPAL_DID = "did:web:alice.example.com"
AUDIENCE = "https://api.example.com"


def main() -> None:
    print(f"agentauth version: {agentauth.__version__}")

    # Step 1: Create the agent identity and the principal's signing key
    agent = AgentIdentity.create({"name": "mail-assistant"})
    alice_key = AgentIdentity.create({"name": "alice"})
    print(f"Agent DID: {agent.did[:48]}...")

    # Step 2: Alice delegates mail.read to the agent, at most 100 uses per hour
    delegation = create_delegation(
        PRINCIPAL_DID,
        agent.did,
        ["mail.read"],
        agent_name="mail-assistant",
        constraints={"maxUsesPerHour": 100},
    ).sign(alice_key)
    print(f"Delegation issued: {delegation.id}")

    # Step 3: The agent issues a one-hour token embedding the delegation
    token = AATToken.create(
        agent,
        PRINCIPAL_DID,
        AUDIENCE,
        ["mail.read"],
        delegation_chain=[delegation],
        expires_in="1h",
    )
    print(f"Token: {token[:60]}...")

    # Step 4: The service verifies the token; did:web keys come from the resolver
    resolver = StaticKeyResolver({PRINCIPAL_DID: alice_key.public_key})
    verifier = AgentVerifier(
        AgentAuthConfig(audience=AUDIENCE, required_scopes=["mail.read"]),
        key_resolver=resolver,
    )
    verified = verifier.verify(token)
    print(f"Verified agent:     {verified.agent_did == agent.did}")
    print(f"Acting on behalf of: {verified.delegator_did}")
    print(f"Scopes:              {', '.join(verified.scopes)}")

    print("\nQuickstart complete.")


if __name__ == "__main__":
    main()
