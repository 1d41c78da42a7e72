#!/usr/bin/env python3
"""Example: Header Middleware

Demonstrates AgentAuthMiddleware turning an HTTP Authorization header into
an AuthResult with a 200, 401 or 403 status, ready for any web framework.

Usage:
    python examples/03_header_middleware.py

Requirements:
    pip install agentauth
"""
from __future__ import annotations

import agentauth
from agentauth import (
    AATToken,
    AgentAuthConfig,
    AgentAuthMiddleware,
    AgentIdentity,
    AgentVerifier,
    DelegationRevocation,
    create_delegation,
)

AUDIENCE = "https://calendar.example.com"


def main() -> None:
    print(f"agentauth version: {agentauth.__version__}")

    principal = AgentIdentity.create({"name": "bob"})
    agent = AgentIdentity.create({"name": "scheduler"})
    delegation = create_delegation(
        principal.did, agent.did, ["calendar.read", "calendar.write"]
    ).sign(principal)
    token = AATToken.create(
        agent, principal.did, AUDIENCE, ["calendar.read"], delegation_chain=[delegation]
    )

    revocation = DelegationRevocation()
    middleware = AgentAuthMiddleware(
        AgentVerifier(
            AgentAuthConfig(audience=AUDIENCE, required_scopes=["calendar.read"]),
            revocation=revocation,
        )
    )

    headers = {
        "missing header": None,
        "wrong scheme": f"Basic {token}",
        "garbage token": "Bearer not.a.token",
        "valid token": f"Bearer {token}",
    }
    for label, header in headers.items():
        result = middleware.authenticate_from_header(header)
        print(f"  {label:<16} -> {result.status_code} {result.error_kind or 'OK'}")

    # Revoking the delegation turns the same token into a 403
    revocation.revoke(delegation.id)
    result = middleware.authenticate_from_header(f"Bearer {token}")
    print(f"  {'after revoke':<16} -> {result.status_code} {result.error_kind}")

    print("\nMiddleware example complete.")


if __name__ == "__main__":
    main()
