"""AgentVerifier — full verification of an agent token for one request.

Runs, stopping at the first failure:

1. Token verification (structure, signature, expiry, audience, scopes).
2. Presence of a delegation chain (when required by configuration).
3. Validity window of every hop, root first.
4. Delegation proof signatures (when a key resolver is configured).
5. Revocation status (when a revocation checker is configured).
6. Chain linkage: the root delegator is the token subject, each hop's
   delegate is the next hop's delegator, the last delegate is the token
   issuer, no hop widens its parent's scopes, and the token's scopes and
   audience are covered by the delegations.
7. Runtime constraints of every hop (when enforcement is enabled).

Collaborators that need I/O (usage counters, revocation, key resolution) are
passed in as capabilities; the verifier holds no mutable state of its own.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from agentauth.config import AgentAuthConfig
from agentauth.delegation.models import Delegation
from agentauth.delegation.revocation import RevocationChecker
from agentauth.delegation.verification import (
    check_delegation_validity,
    verify_delegation_signature,
)
from agentauth.enforcement.constraints import enforce_constraints
from agentauth.enforcement.context import RequestContext
from agentauth.enforcement.usage import UsageCounter
from agentauth.errors import (
    AgentAuthError,
    AudienceMismatchError,
    DelegationChainError,
    DelegationRevokedError,
    InvalidDelegationSignatureError,
    NoDelegationError,
)
from agentauth.identity.resolver import KeyResolver
from agentauth.token.aat import AATToken

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerifiedAgent:
    """Outcome of a successful :meth:`AgentVerifier.verify`.

    Parameters
    ----------
    agent_did:
        The acting agent (token ``iss``).
    delegator_did:
        The principal the agent acts for (token ``sub``).
    scopes:
        Scopes granted by the token.
    delegation:
        The root delegation (principal to first agent), or None when the
        token carries no chain and delegation is optional.
    delegation_chain:
        All embedded delegations, root first.
    token:
        The verified token.
    """

    agent_did: str
    delegator_did: str
    scopes: tuple[str, ...]
    delegation: Optional[Delegation]
    delegation_chain: tuple[Delegation, ...]
    token: AATToken


class AgentVerifier:
    """Verifies agent tokens and enforces their delegation constraints.

    Parameters
    ----------
    config:
        Verification policy. Defaults to :class:`AgentAuthConfig` defaults.
    usage_counter:
        Lookup for ``maxUses`` / ``maxUsesPerHour``.
    revocation:
        Revocation predicate consulted for every hop.
    key_resolver:
        Resolves delegator keys; enables delegation proof verification.

    Example
    -------
    ::

        verifier = AgentVerifier(AgentAuthConfig(audience="https://api.example.com"))
        agent = verifier.verify(token, RequestContext(ip="203.0.113.7"))
        print(agent.agent_did, agent.delegator_did)
    """

    def __init__(
        self,
        config: Optional[AgentAuthConfig] = None,
        *,
        usage_counter: Optional[UsageCounter] = None,
        revocation: Optional[RevocationChecker] = None,
        key_resolver: Optional[KeyResolver] = None,
    ) -> None:
        self._config = config or AgentAuthConfig()
        self._usage_counter = usage_counter
        self._revocation = revocation
        self._key_resolver = key_resolver

    @property
    def config(self) -> AgentAuthConfig:
        return self._config

    def verify(
        self,
        token: str,
        context: Optional[RequestContext] = None,
        *,
        audience: Optional[str] = None,
        required_scopes: Optional[Sequence[str]] = None,
    ) -> VerifiedAgent:
        """Verify *token* for a request described by *context*.

        *audience* and *required_scopes* override the configured values.

        Raises
        ------
        AgentAuthError
            The specific subclass for the first failed check.
        """
        try:
            return self._verify(token, context or RequestContext(), audience, required_scopes)
        except AgentAuthError as exc:
            logger.info("Agent token rejected: %s: %s", exc.kind, exc)
            raise

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _verify(
        self,
        token: str,
        context: RequestContext,
        audience: Optional[str],
        required_scopes: Optional[Sequence[str]],
    ) -> VerifiedAgent:
        config = self._config
        verified = AATToken.verify(
            token,
            audience=audience if audience is not None else config.audience,
            required_scopes=(
                required_scopes if required_scopes is not None else config.required_scopes
            ),
            now=context.unix_time(),
        )
        chain = verified.delegation_chain

        if not chain:
            if config.require_delegation:
                raise NoDelegationError("No delegation in token")
            return self._result(verified)

        moment = context.moment()
        for delegation in chain:
            check_delegation_validity(delegation, moment)

        if self._key_resolver is not None:
            for delegation in chain:
                if not verify_delegation_signature(delegation, self._key_resolver):
                    raise InvalidDelegationSignatureError(
                        f"Delegation {delegation.id} has an invalid proof",
                        context={"delegation_id": delegation.id},
                    )

        if self._revocation is not None:
            for delegation in chain:
                if self._revocation.is_revoked(delegation):
                    raise DelegationRevokedError(
                        f"Delegation {delegation.id} has been revoked",
                        context={"delegation_id": delegation.id},
                    )

        if config.validate_chain:
            self._check_chain(verified)

        if config.enforce_constraints:
            for position, delegation in enumerate(chain):
                enforce_constraints(
                    delegation,
                    context,
                    hops_after=len(chain) - 1 - position,
                    usage_counter=self._usage_counter,
                    usage_policy=config.usage_policy,
                )

        return self._result(verified)

    @staticmethod
    def _check_chain(token: AATToken) -> None:
        payload = token.payload
        chain = token.delegation_chain

        if chain[0].delegator.id != payload.sub:
            raise DelegationChainError(
                f"Root delegator {chain[0].delegator.id} does not match token subject {payload.sub}"
            )
        for parent, child in zip(chain, chain[1:]):
            if parent.delegate.id != child.delegator.id:
                raise DelegationChainError(
                    f"Delegation {child.id} is not granted by the delegate of {parent.id}"
                )
            excess = set(child.scope.include) - set(parent.scope.include)
            if excess:
                raise DelegationChainError(
                    f"Delegation {child.id} claims scopes not held by its parent: "
                    f"{sorted(excess)}",
                    context={"delegation_id": child.id, "excess": sorted(excess)},
                )
        if chain[-1].delegate.id != payload.iss:
            raise DelegationChainError(
                f"Last delegate {chain[-1].delegate.id} does not match token issuer {payload.iss}"
            )

        granted = set(chain[-1].scope.include)
        excluded: set[str] = set()
        for delegation in chain:
            excluded.update(delegation.scope.exclude or ())
        uncovered = sorted(s for s in payload.scope if s not in granted or s in excluded)
        if uncovered:
            raise DelegationChainError(
                f"Token scopes not covered by delegation: {uncovered}",
                context={"scopes": uncovered},
            )

        for delegation in chain:
            audiences = delegation.scope.audiences
            if audiences and payload.aud not in audiences:
                raise AudienceMismatchError(expected=list(audiences), actual=payload.aud)

    @staticmethod
    def _result(token: AATToken) -> VerifiedAgent:
        chain = token.delegation_chain
        return VerifiedAgent(
            agent_did=token.get_agent(),
            delegator_did=token.get_delegator(),
            scopes=tuple(token.get_scopes()),
            delegation=chain[0] if chain else None,
            delegation_chain=chain,
            token=token,
        )


def verify_agent(
    token: str,
    audience: Optional[str] = None,
    required_scopes: Optional[Sequence[str]] = None,
    *,
    context: Optional[RequestContext] = None,
    enforce: bool = True,
    usage_counter: Optional[UsageCounter] = None,
    revocation: Optional[RevocationChecker] = None,
    key_resolver: Optional[KeyResolver] = None,
) -> VerifiedAgent:
    """One-shot verification with default policy; see :class:`AgentVerifier`."""
    config = AgentAuthConfig(
        audience=audience,
        required_scopes=list(required_scopes or []),
        enforce_constraints=enforce,
    )
    verifier = AgentVerifier(
        config,
        usage_counter=usage_counter,
        revocation=revocation,
        key_resolver=key_resolver,
    )
    return verifier.verify(token, context)


__all__ = ["AgentVerifier", "VerifiedAgent", "verify_agent"]
