#!/usr/bin/env python3
"""Example: Constraint Enforcement

Demonstrates how delegation constraints (MFA, IP allowlist, value limit and
hourly usage) are enforced per request through RequestContext and a
UsageCounter.

Usage:
    python examples/02_constraint_enforcement.py

Requirements:
    pip install agentauth
"""
from __future__ import annotations

import agentauth
from agentauth import (
    AATToken,
    AgentAuthConfig,
    AgentAuthError,
    AgentIdentity,
    AgentVerifier,
    InMemoryUsageCounter,
    RequestContext,
    create_delegation,
)

AUDIENCE = "https://payments.example.com"


def attempt(verifier: AgentVerifier, token: str, label: str, context: RequestContext) -> None:
    try:
        verifier.verify(token, context)
        print(f"  [ALLOW] {label}")
    except AgentAuthError as exc:
        print(f"  [DENY]  {label}: {exc.kind}")


def main() -> None:
    print(f"agentauth version: {agentauth.__version__}")

    principal = AgentIdentity.create({"name": "acme-finance"})
    agent = AgentIdentity.create({"name": "payments-bot"})

    # Step 1: Delegate payments.create with layered constraints
    delegation = create_delegation(
        principal.did,
        agent.did,
        ["payments.create"],
        audiences=[AUDIENCE],
        constraints={
            "requireMFA": True,
            "ipAllowlist": ["10.0.0.0/8"],
            "maxValuePerUse": 500,
            "maxUsesPerHour": 2,
        },
    ).sign(principal)

    token = AATToken.create(
        agent, principal.did, AUDIENCE, ["payments.create"], delegation_chain=[delegation]
    )

    # Step 2: The service records each use before verifying
    counter = InMemoryUsageCounter()
    verifier = AgentVerifier(
        AgentAuthConfig(audience=AUDIENCE, usage_policy="fail_closed"),
        usage_counter=counter,
    )

    print("Requests:")
    attempt(verifier, token, "no MFA", RequestContext(ip="10.1.2.3", value=20))
    attempt(
        verifier,
        token,
        "outside allowlist",
        RequestContext(ip="203.0.113.9", mfa_verified=True, value=20),
    )
    attempt(
        verifier,
        token,
        "value too high",
        RequestContext(ip="10.1.2.3", mfa_verified=True, value=900),
    )
    for n in range(1, 4):
        counter.record(delegation.id)
        attempt(
            verifier,
            token,
            f"use #{n} this hour",
            RequestContext(ip="10.1.2.3", mfa_verified=True, value=20),
        )

    print("\nConstraint enforcement complete.")


if __name__ == "__main__":
    main()
