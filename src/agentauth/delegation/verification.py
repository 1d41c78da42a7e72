"""Static delegation checks: validity window and proof signature.

These checks need no request context. :func:`verify_delegation` is the
necessary-but-not-sufficient time-bounds check; full verification also
requires :func:`verify_delegation_signature` and a revocation lookup, both of
which depend on external collaborators (a key resolver and a revocation
service) and are therefore pluggable.
"""
from __future__ import annotations

import datetime
import logging
from typing import Optional

from agentauth.delegation.models import Delegation
from agentauth.encoding import b64url_decode
from agentauth.errors import DelegationExpiredError, DelegationNotYetValidError
from agentauth.identity.key_manager import Ed25519KeyManager
from agentauth.identity.resolver import KeyResolver, resolve_agentauth_key

logger = logging.getLogger(__name__)

_KEY_MANAGER = Ed25519KeyManager()


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def check_delegation_validity(
    delegation: Delegation, now: Optional[datetime.datetime] = None
) -> None:
    """Raise if *delegation* is outside its ``notBefore``/``notAfter`` window.

    Raises
    ------
    DelegationExpiredError
        If ``notAfter`` is earlier than *now*.
    DelegationNotYetValidError
        If ``notBefore`` is later than *now*.
    """
    moment = now or _utcnow()
    constraints = delegation.constraints
    if constraints.not_after is not None and constraints.not_after < moment:
        raise DelegationExpiredError(
            f"Delegation {delegation.id} expired at {constraints.not_after.isoformat()}",
            context={"delegation_id": delegation.id},
        )
    if constraints.not_before is not None and constraints.not_before > moment:
        raise DelegationNotYetValidError(
            f"Delegation {delegation.id} is not valid before "
            f"{constraints.not_before.isoformat()}",
            context={"delegation_id": delegation.id},
        )


def verify_delegation(delegation: Delegation, now: Optional[datetime.datetime] = None) -> bool:
    """Return True when *delegation* is inside its validity window."""
    try:
        check_delegation_validity(delegation, now)
    except (DelegationExpiredError, DelegationNotYetValidError):
        return False
    return True


def verify_delegation_signature(
    delegation: Delegation, resolver: Optional[KeyResolver] = None
) -> bool:
    """Verify the delegator's proof over the delegation's canonical bytes.

    Parameters
    ----------
    delegation:
        The issued delegation.
    resolver:
        Maps the proof's verification method to a raw public key. Defaults
        to :func:`resolve_agentauth_key`, which only handles self-certifying
        ``did:agentauth`` delegators.

    Returns
    -------
    bool
        False on a cryptographic mismatch, an undecodable proof value, or a
        verification method that does not belong to the delegator.

    Raises
    ------
    DIDResolutionError
        If the resolver cannot find a key for the delegator.
    """
    method = delegation.proof.verification_method
    if method.split("#", 1)[0] != delegation.delegator.id:
        logger.info(
            "Delegation %s proof method %s does not belong to delegator %s",
            delegation.id,
            method,
            delegation.delegator.id,
        )
        return False
    public_key = (resolver or resolve_agentauth_key)(method)
    try:
        signature = b64url_decode(delegation.proof.proof_value)
    except ValueError:
        return False
    return _KEY_MANAGER.verify(public_key, signature, delegation.signing_input())


__all__ = [
    "check_delegation_validity",
    "verify_delegation",
    "verify_delegation_signature",
]
