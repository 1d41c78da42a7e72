"""Error taxonomy for agentauth.

Every failure raised by the library derives from :class:`AgentAuthError`, so
callers can catch the whole family with a single ``except`` clause. Each
concrete class carries a stable ``kind`` string that transport layers can map
to protocol responses (e.g. 401 vs 403) without string-matching messages.

Families
--------
- Identity: EntropyError, InvalidKeyFormatError, InvalidDIDFormatError,
  DIDResolutionError
- Token: MalformedTokenError, InvalidSignatureError, TokenExpiredError,
  AudienceMismatchError, InsufficientScopeError,
  InvalidDurationFormatError
- Delegation: InvalidDelegationError, DelegationExpiredError,
  DelegationNotYetValidError, InvalidDelegationSignatureError,
  DelegationRevokedError, DelegationChainError, NoDelegationError
- Constraints: MFARequiredError, SubdelegationNotAllowedError,
  IPNotAllowedError, OutsideTimeWindowError,
  ValueExceedsLimitError, UsageLimitExceededError
- Configuration: ConfigurationError
"""
from __future__ import annotations


class AgentAuthError(Exception):
    """Root exception for all agentauth failures.

    Parameters
    ----------
    message:
        Human-readable description of what went wrong.
    context:
        Optional dict of structured metadata (DIDs, delegation ids, limits)
        that helps diagnostics without log scraping. Never contains key
        material.
    """

    kind: str = "AgentAuthError"

    def __init__(self, message: str, context: dict[str, object] | None = None) -> None:
        super().__init__(message)
        self.context: dict[str, object] = context or {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind!r}, message={str(self)!r})"


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


class IdentityError(AgentAuthError):
    """Base class for key and DID failures."""


class EntropyError(IdentityError):
    """Raised when the cryptographically secure random source is unavailable."""

    kind = "EntropyError"


class InvalidKeyFormatError(IdentityError):
    """Raised for malformed or wrong-length key material."""

    kind = "InvalidKeyFormat"


class InvalidDIDFormatError(IdentityError):
    """Raised when a DID does not parse as ``did:agentauth:ed25519:<key>``."""

    kind = "InvalidDIDFormat"


class DIDResolutionError(IdentityError):
    """Raised when no verification key can be found for a DID."""

    kind = "DIDResolutionError"


# ---------------------------------------------------------------------------
# Token
# ---------------------------------------------------------------------------


class TokenError(AgentAuthError):
    """Base class for AAT construction and verification failures."""


class MalformedTokenError(TokenError):
    """Raised for a wrong segment count, bad base64url or bad JSON."""

    kind = "MalformedToken"


class InvalidSignatureError(TokenError):
    """Raised when the token signature does not verify against the issuer DID."""

    kind = "InvalidSignature"


class TokenExpiredError(TokenError):
    """Raised when the token's ``exp`` claim lies in the past."""

    kind = "TokenExpired"

    def __init__(self, expired_at: int, now: int) -> None:
        self.expired_at = expired_at
        self.now = now
        super().__init__(
            f"Token expired at {expired_at} (now {now})",
            context={"exp": expired_at, "now": now},
        )


class AudienceMismatchError(TokenError):
    """Raised when the token is bound to a different relying service."""

    kind = "AudienceMismatch"

    def __init__(self, expected: str | list[str], actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Invalid audience: expected {expected!r}, got {actual!r}",
            context={"expected": expected, "actual": actual},
        )


class InsufficientScopeError(TokenError):
    """Raised when required scopes are missing from the token."""

    kind = "InsufficientScope"

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(
            f"Missing required scopes: {', '.join(missing)}",
            context={"missing": missing},
        )


class InvalidDurationFormatError(TokenError):
    """Raised when an ``expires_in`` value is not ``<positive int><s|m|h|d>``."""

    kind = "InvalidDurationFormat"


# ---------------------------------------------------------------------------
# Delegation
# ---------------------------------------------------------------------------


class DelegationError(AgentAuthError):
    """Base class for delegation and delegation-chain failures."""


class InvalidDelegationError(DelegationError):
    """Raised when delegation fields fail validation at the boundary."""

    kind = "InvalidDelegation"


class DelegationExpiredError(DelegationError):
    """Raised when a delegation's ``notAfter`` has passed."""

    kind = "DelegationExpired"


class DelegationNotYetValidError(DelegationError):
    """Raised when a delegation's ``notBefore`` is still in the future."""

    kind = "DelegationNotYetValid"


class InvalidDelegationSignatureError(DelegationError):
    """Raised when a delegation proof does not verify against its delegator key."""

    kind = "InvalidDelegationSignature"


class DelegationRevokedError(DelegationError):
    """Raised when the revocation service reports a delegation as revoked."""

    kind = "DelegationRevoked"


class DelegationChainError(DelegationError):
    """Raised when delegation hops do not link up or widen their authority."""

    kind = "DelegationChainError"


class NoDelegationError(DelegationError):
    """Raised when policy requires a delegation and the token carries none."""

    kind = "NoDelegation"


# ---------------------------------------------------------------------------
# Constraints
# ---------------------------------------------------------------------------


class ConstraintViolationError(AgentAuthError):
    """Base class for runtime constraint failures."""


class MFARequiredError(ConstraintViolationError):
    """Raised when the delegation requires MFA and no proof was presented."""

    kind = "MFARequired"


class SubdelegationNotAllowedError(ConstraintViolationError):
    """Raised when a delegation forbidding sub-delegation is followed by another hop."""

    kind = "SubdelegationNotAllowed"


class IPNotAllowedError(ConstraintViolationError):
    """Raised when the request IP is outside the delegation's allowlist."""

    kind = "IPNotAllowed"


class OutsideTimeWindowError(ConstraintViolationError):
    """Raised when the request falls outside every permitted time window."""

    kind = "OutsideTimeWindow"


class ValueExceedsLimitError(ConstraintViolationError):
    """Raised when an action's declared value is above ``maxValuePerUse``."""

    kind = "ValueExceedsLimit"


class UsageLimitExceededError(ConstraintViolationError):
    """Raised when a usage counter reports more uses than the delegation allows."""

    kind = "UsageLimitExceeded"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(AgentAuthError):
    """Raised when configuration cannot be loaded or fails validation."""

    kind = "ConfigurationError"


__all__ = [
    "AgentAuthError",
    "AudienceMismatchError",
    "ConfigurationError",
    "ConstraintViolationError",
    "DIDResolutionError",
    "DelegationChainError",
    "DelegationError",
    "DelegationExpiredError",
    "DelegationNotYetValidError",
    "DelegationRevokedError",
    "EntropyError",
    "IPNotAllowedError",
    "IdentityError",
    "InsufficientScopeError",
    "InvalidDIDFormatError",
    "InvalidDelegationError",
    "InvalidDelegationSignatureError",
    "InvalidDurationFormatError",
    "InvalidKeyFormatError",
    "InvalidSignatureError",
    "MFARequiredError",
    "MalformedTokenError",
    "NoDelegationError",
    "OutsideTimeWindowError",
    "SubdelegationNotAllowedError",
    "TokenError",
    "TokenExpiredError",
    "UsageLimitExceededError",
    "ValueExceedsLimitError",
]
