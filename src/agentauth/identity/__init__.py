"""Agent identities: Ed25519 keypairs and self-certifying ``did:agentauth`` DIDs.

Quick start
-----------
::

    from agentauth.identity import AgentIdentity

    agent = AgentIdentity.create({"name": "mail-bot"})
    signature = agent.sign(b"payload")
    assert AgentIdentity.verify(signature, b"payload", agent.did)
"""
from __future__ import annotations

from agentauth.identity.agent import AgentIdentity
from agentauth.identity.did import (
    did_to_public_key,
    is_agentauth_did,
    key_id,
    public_key_to_did,
)
from agentauth.identity.key_manager import Ed25519KeyManager
from agentauth.identity.resolver import KeyResolver, StaticKeyResolver, resolve_agentauth_key

__all__ = [
    "AgentIdentity",
    "Ed25519KeyManager",
    "KeyResolver",
    "StaticKeyResolver",
    "did_to_public_key",
    "is_agentauth_did",
    "key_id",
    "public_key_to_did",
    "resolve_agentauth_key",
]
