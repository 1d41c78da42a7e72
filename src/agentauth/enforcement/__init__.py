"""Request-time verification: token, delegation chain and runtime constraints.

Quick start
-----------
::

    from agentauth.config import AgentAuthConfig
    from agentauth.enforcement import AgentVerifier, RequestContext

    verifier = AgentVerifier(AgentAuthConfig(audience="https://api.example.com"))
    agent = verifier.verify(token, RequestContext(ip="203.0.113.7", mfa_verified=True))
"""
from __future__ import annotations

from agentauth.enforcement.constraints import check_constraint, enforce_constraints
from agentauth.enforcement.context import RequestContext
from agentauth.enforcement.middleware import AgentAuthMiddleware, AuthResult
from agentauth.enforcement.usage import InMemoryUsageCounter, UsageCounter
from agentauth.enforcement.verifier import AgentVerifier, VerifiedAgent, verify_agent

__all__ = [
    "AgentAuthMiddleware",
    "AgentVerifier",
    "AuthResult",
    "InMemoryUsageCounter",
    "RequestContext",
    "UsageCounter",
    "VerifiedAgent",
    "check_constraint",
    "enforce_constraints",
    "verify_agent",
]
