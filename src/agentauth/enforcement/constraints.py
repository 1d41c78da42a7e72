"""Constraint enforcement — pure predicates over (delegation, request context).

Each ``check_*`` function raises the matching
:class:`~agentauth.errors.ConstraintViolationError` subclass or returns
``None``. None of them keep state, so they can be evaluated concurrently
for independent requests. :func:`enforce_constraints` runs all of them for
one delegation hop.
"""
from __future__ import annotations

import ipaddress
import logging
from typing import Literal, Optional

from agentauth.delegation.models import Delegation, DelegationConstraints
from agentauth.enforcement.context import RequestContext
from agentauth.enforcement.usage import HOUR_SECONDS, UsageCounter
from agentauth.errors import (
    IPNotAllowedError,
    MFARequiredError,
    OutsideTimeWindowError,
    SubdelegationNotAllowedError,
    UsageLimitExceededError,
    ValueExceedsLimitError,
)

logger = logging.getLogger(__name__)

UsagePolicy = Literal["fail_open", "fail_closed"]
LimitName = Literal["maxUses", "maxUsesPerHour", "maxValuePerUse"]

_LIMIT_FIELDS: dict[str, str] = {
    "maxUses": "max_uses",
    "maxUsesPerHour": "max_uses_per_hour",
    "maxValuePerUse": "max_value_per_use",
}


def check_constraint(
    delegation: Delegation, constraint: LimitName, current_value: Optional[float] = None
) -> bool:
    """Compare *current_value* against a numeric limit of *delegation*.

    Returns True when the limit is unset, when no current value is known,
    or when ``current_value <= limit``.
    """
    try:
        field_name = _LIMIT_FIELDS[constraint]
    except KeyError:
        raise ValueError(f"Unknown limit constraint {constraint!r}") from None
    limit = getattr(delegation.constraints, field_name)
    if limit is None or current_value is None:
        return True
    return current_value <= limit


# ------------------------------------------------------------------
# Individual predicates
# ------------------------------------------------------------------


def check_mfa(constraints: DelegationConstraints, context: RequestContext) -> None:
    if constraints.require_mfa and not context.mfa_verified:
        raise MFARequiredError("MFA required but not provided")


def check_subdelegation(constraints: DelegationConstraints, hops_after: int) -> None:
    """Reject when a hop forbidding sub-delegation is followed by *hops_after* hops."""
    if not constraints.allow_subdelegation and hops_after > 0:
        raise SubdelegationNotAllowedError(
            "Subdelegation not allowed", context={"hops_after": hops_after}
        )


def check_ip(constraints: DelegationConstraints, context: RequestContext) -> None:
    if not constraints.ip_allowlist:
        return
    if context.ip is None:
        raise IPNotAllowedError("Request IP unknown but the delegation has an IP allowlist")
    try:
        address = ipaddress.ip_address(context.ip)
    except ValueError as exc:
        raise IPNotAllowedError(
            f"Request IP {context.ip!r} is not a valid address", context={"ip": context.ip}
        ) from exc
    for entry in constraints.ip_allowlist:
        if address in ipaddress.ip_network(entry, strict=False):
            return
    raise IPNotAllowedError(
        f"Request IP {context.ip} is not in the allowlist", context={"ip": context.ip}
    )


def check_time_windows(constraints: DelegationConstraints, context: RequestContext) -> None:
    if not constraints.time_windows:
        return
    moment = context.moment()
    if any(window.contains(moment) for window in constraints.time_windows):
        return
    raise OutsideTimeWindowError(
        "Action outside allowed time window", context={"at": moment.isoformat()}
    )


def check_value(constraints: DelegationConstraints, context: RequestContext) -> None:
    limit = constraints.max_value_per_use
    if limit is None or context.value is None:
        return
    if context.value > limit:
        raise ValueExceedsLimitError(
            f"Value {context.value} exceeds the per-use limit {limit}",
            context={"value": context.value, "limit": limit},
        )


def check_usage(
    delegation: Delegation,
    usage_counter: Optional[UsageCounter],
    usage_policy: UsagePolicy = "fail_open",
) -> None:
    """Check ``maxUses`` and ``maxUsesPerHour`` against the external counter.

    A missing counter, or a counter returning ``None``, passes under
    ``"fail_open"`` and raises under ``"fail_closed"``.
    """
    limits = (
        ("maxUses", delegation.constraints.max_uses, None),
        ("maxUsesPerHour", delegation.constraints.max_uses_per_hour, HOUR_SECONDS),
    )
    for name, limit, window in limits:
        if limit is None:
            continue
        current = usage_counter.count(delegation.id, window) if usage_counter else None
        if current is None:
            if usage_policy == "fail_closed":
                raise UsageLimitExceededError(
                    f"No usage count available for {name} on delegation {delegation.id}",
                    context={"delegation_id": delegation.id, "constraint": name},
                )
            logger.debug(
                "No usage count for %s on %s; treating as unconstrained", name, delegation.id
            )
            continue
        if not check_constraint(delegation, name, current):  # type: ignore[arg-type]
            raise UsageLimitExceededError(
                f"{name} limit {limit} exceeded ({current} uses)",
                context={
                    "delegation_id": delegation.id,
                    "constraint": name,
                    "limit": limit,
                    "current": current,
                },
            )


# ------------------------------------------------------------------
# All constraints for one hop
# ------------------------------------------------------------------


def enforce_constraints(
    delegation: Delegation,
    context: RequestContext,
    *,
    hops_after: int = 0,
    usage_counter: Optional[UsageCounter] = None,
    usage_policy: UsagePolicy = "fail_open",
) -> None:
    """Evaluate every runtime constraint of *delegation*; all must pass.

    Parameters
    ----------
    delegation:
        The delegation hop being exercised.
    context:
        Facts about the current request.
    hops_after:
        Number of chain hops following this one (0 for the last hop).
    usage_counter:
        External usage lookup for ``maxUses`` / ``maxUsesPerHour``.
    usage_policy:
        Behaviour when no usage count is available.

    Raises
    ------
    ConstraintViolationError
        The first failing constraint's specific subclass.
    """
    constraints = delegation.constraints
    check_mfa(constraints, context)
    check_subdelegation(constraints, hops_after)
    check_ip(constraints, context)
    check_time_windows(constraints, context)
    check_usage(delegation, usage_counter, usage_policy)
    check_value(constraints, context)


__all__ = [
    "check_constraint",
    "check_ip",
    "check_mfa",
    "check_subdelegation",
    "check_time_windows",
    "check_usage",
    "check_value",
    "enforce_constraints",
]
