"""Delegations: signed, constrained grants of authority from principal to agent.

Quick start
-----------
::

    from agentauth.delegation import create_delegation, verify_delegation
    from agentauth.identity import AgentIdentity

    principal = AgentIdentity.create()
    agent = AgentIdentity.create()

    delegation = create_delegation(
        delegator_did=principal.did,
        delegate_did=agent.did,
        scopes=["mail.read"],
        constraints={"maxUsesPerHour": 100},
    ).sign(principal)

    assert verify_delegation(delegation)
"""
from __future__ import annotations

from agentauth.delegation.builder import create_delegation
from agentauth.delegation.models import (
    DelegateRef,
    Delegation,
    DelegationConstraints,
    DelegationProof,
    DelegationScope,
    DelegationSigner,
    DelegatorRef,
    RevocationDescriptor,
    TimeWindow,
    UnsignedDelegation,
)
from agentauth.delegation.revocation import DelegationRevocation, RevocationChecker
from agentauth.delegation.verification import (
    check_delegation_validity,
    verify_delegation,
    verify_delegation_signature,
)

__all__ = [
    "DelegateRef",
    "Delegation",
    "DelegationConstraints",
    "DelegationProof",
    "DelegationRevocation",
    "DelegationScope",
    "DelegationSigner",
    "DelegatorRef",
    "RevocationChecker",
    "RevocationDescriptor",
    "TimeWindow",
    "UnsignedDelegation",
    "check_delegation_validity",
    "create_delegation",
    "verify_delegation",
    "verify_delegation_signature",
]
