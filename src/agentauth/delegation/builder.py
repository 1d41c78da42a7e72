"""create_delegation — construct a pre-issuance delegation.

The returned :class:`UnsignedDelegation` has a fresh ``urn:uuid`` id and a
proof skeleton stamped with the current time and the delegator's
``#keys-1`` verification method. It becomes a usable :class:`Delegation`
only once the delegator's signature is attached.
"""
from __future__ import annotations

import datetime
import logging
import uuid
from typing import Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from agentauth.delegation.models import (
    DelegationConstraints,
    RevocationDescriptor,
    UnsignedDelegation,
    _error_summary,
)
from agentauth.errors import InvalidDelegationError
from agentauth.identity.did import key_id

logger = logging.getLogger(__name__)


def create_delegation(
    delegator_did: str,
    delegate_did: str,
    scopes: Sequence[str],
    audiences: Optional[Sequence[str]] = None,
    platform: Optional[str] = None,
    agent_name: Optional[str] = None,
    constraints: Union[DelegationConstraints, Mapping[str, object], None] = None,
    revocation: Union[RevocationDescriptor, Mapping[str, object], None] = None,
    exclude: Optional[Sequence[str]] = None,
) -> UnsignedDelegation:
    """Build an unsigned delegation from *delegator_did* to *delegate_did*.

    Parameters
    ----------
    delegator_did:
        DID of the granting principal (human or organization).
    delegate_did:
        DID of the agent receiving authority.
    scopes:
        Permission strings granted.
    audiences:
        Optional list of relying services the delegation may be used against.
    platform, agent_name:
        Optional descriptive fields for the delegate.
    constraints:
        A :class:`DelegationConstraints` or its camelCase / snake_case mapping.
        Unknown keys are rejected.
    revocation:
        Optional revocation descriptor (endpoint, method, cacheTTL).
    exclude:
        Optional permission strings explicitly withheld.

    Returns
    -------
    UnsignedDelegation
        Call ``.sign(delegator_signer)`` or ``.attach_proof(value)`` to issue it.

    Raises
    ------
    InvalidDelegationError
        If any field fails validation (e.g. ``notBefore`` after ``notAfter``),
        or *scopes*, *exclude* or *audiences* is a bare string.
    """
    for name, value in (("scopes", scopes), ("exclude", exclude), ("audiences", audiences)):
        if isinstance(value, str):
            raise InvalidDelegationError(
                f"{name} must be a list of strings, not a single string {value!r}",
                context={"field": name},
            )
    if isinstance(constraints, DelegationConstraints):
        constraints = constraints.model_dump(by_alias=True, exclude_none=True)
    if isinstance(revocation, RevocationDescriptor):
        revocation = revocation.model_dump(by_alias=True, exclude_none=True)

    created = datetime.datetime.now(datetime.timezone.utc).replace(microsecond=0)
    data: dict[str, object] = {
        "id": f"urn:uuid:{uuid.uuid4()}",
        "delegator": {"id": delegator_did},
        "delegate": {"id": delegate_did, "platform": platform, "name": agent_name},
        "scope": {
            "include": list(scopes),
            "exclude": list(exclude) if exclude is not None else None,
            "audiences": list(audiences) if audiences is not None else None,
        },
        "constraints": dict(constraints or {}),
        "revocation": dict(revocation) if revocation is not None else None,
        "proof": {"created": created, "verificationMethod": key_id(delegator_did)},
    }
    try:
        unsigned = UnsignedDelegation.model_validate(data)
    except ValidationError as exc:
        summary = _error_summary(exc)
        raise InvalidDelegationError(
            f"Invalid delegation: {'; '.join(summary)}",
            context={"errors": summary},
        ) from exc

    logger.debug(
        "Built delegation %s from %s to %s (scopes=%s)",
        unsigned.id,
        delegator_did,
        delegate_did,
        list(unsigned.scope.include),
    )
    return unsigned


__all__ = ["create_delegation"]
