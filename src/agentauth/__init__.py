"""agentauth — verifiable identity and scoped, constrained delegation for AI agents.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import agentauth
>>> agentauth.__version__
'0.1.0'

Quick start
-----------
::

    from agentauth import AATToken, AgentIdentity, AgentVerifier, create_delegation

    user = AgentIdentity.create({"name": "alice"})
    agent = AgentIdentity.create({"name": "mail-bot"})

    delegation = create_delegation(
        user.did, agent.did, ["mail.read"], constraints={"maxUsesPerHour": 100}
    ).sign(user)

    token = AATToken.create(
        agent, user.did, "https://mail.example.com", ["mail.read"], [delegation]
    )
    verified = AgentVerifier().verify(token)
"""
from __future__ import annotations

__version__: str = "0.1.0"

from agentauth.config import AgentAuthConfig

# ------------------------------------------------------------------
# Identity
# ------------------------------------------------------------------
from agentauth.identity.agent import AgentIdentity
from agentauth.identity.did import did_to_public_key, public_key_to_did
from agentauth.identity.key_manager import Ed25519KeyManager
from agentauth.identity.resolver import KeyResolver, StaticKeyResolver, resolve_agentauth_key

# ------------------------------------------------------------------
# Delegation
# ------------------------------------------------------------------
from agentauth.delegation.builder import create_delegation
from agentauth.delegation.models import (
    Delegation,
    DelegationConstraints,
    TimeWindow,
    UnsignedDelegation,
)
from agentauth.delegation.revocation import DelegationRevocation, RevocationChecker
from agentauth.delegation.verification import (
    check_delegation_validity,
    verify_delegation,
    verify_delegation_signature,
)

# ------------------------------------------------------------------
# Token
# ------------------------------------------------------------------
from agentauth.token.aat import AATToken
from agentauth.token.duration import parse_duration

# ------------------------------------------------------------------
# Enforcement
# ------------------------------------------------------------------
from agentauth.enforcement.constraints import check_constraint, enforce_constraints
from agentauth.enforcement.context import RequestContext
from agentauth.enforcement.middleware import AgentAuthMiddleware, AuthResult
from agentauth.enforcement.usage import InMemoryUsageCounter, UsageCounter
from agentauth.enforcement.verifier import AgentVerifier, VerifiedAgent, verify_agent

# ------------------------------------------------------------------
# Errors
# ------------------------------------------------------------------
from agentauth.errors import (
    AgentAuthError,
    AudienceMismatchError,
    ConfigurationError,
    ConstraintViolationError,
    DelegationChainError,
    DelegationError,
    DelegationExpiredError,
    DelegationNotYetValidError,
    DelegationRevokedError,
    DIDResolutionError,
    EntropyError,
    IdentityError,
    InsufficientScopeError,
    InvalidDelegationError,
    InvalidDelegationSignatureError,
    InvalidDIDFormatError,
    InvalidDurationFormatError,
    InvalidKeyFormatError,
    InvalidSignatureError,
    IPNotAllowedError,
    MalformedTokenError,
    MFARequiredError,
    NoDelegationError,
    OutsideTimeWindowError,
    SubdelegationNotAllowedError,
    TokenError,
    TokenExpiredError,
    UsageLimitExceededError,
    ValueExceedsLimitError,
)

__all__ = [
    # version
    "__version__",
    # config
    "AgentAuthConfig",
    # identity
    "AgentIdentity",
    "Ed25519KeyManager",
    "KeyResolver",
    "StaticKeyResolver",
    "did_to_public_key",
    "public_key_to_did",
    "resolve_agentauth_key",
    # delegation
    "Delegation",
    "DelegationConstraints",
    "DelegationRevocation",
    "RevocationChecker",
    "TimeWindow",
    "UnsignedDelegation",
    "check_delegation_validity",
    "create_delegation",
    "verify_delegation",
    "verify_delegation_signature",
    # token
    "AATToken",
    "parse_duration",
    # enforcement
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
    # errors
    "AgentAuthError",
    "AudienceMismatchError",
    "ConfigurationError",
    "ConstraintViolationError",
    "DelegationChainError",
    "DelegationError",
    "DelegationExpiredError",
    "DelegationNotYetValidError",
    "DelegationRevokedError",
    "DIDResolutionError",
    "EntropyError",
    "IdentityError",
    "InsufficientScopeError",
    "InvalidDelegationError",
    "InvalidDelegationSignatureError",
    "InvalidDIDFormatError",
    "InvalidDurationFormatError",
    "InvalidKeyFormatError",
    "InvalidSignatureError",
    "IPNotAllowedError",
    "MalformedTokenError",
    "MFARequiredError",
    "NoDelegationError",
    "OutsideTimeWindowError",
    "SubdelegationNotAllowedError",
    "TokenError",
    "TokenExpiredError",
    "UsageLimitExceededError",
    "ValueExceedsLimitError",
]
