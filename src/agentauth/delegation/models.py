"""Delegation data model — the JSON interchange format for delegated authority.

A delegation is a grant of scoped, constrained authority from a delegator
principal (a human or organization DID) to a delegate agent DID. The models
here are pydantic v2 models with camelCase aliases matching the wire format::

    {
      "type": "DelegationToken",
      "id": "urn:uuid:...",
      "delegator": {"id": "did:web:alice.example.com"},
      "delegate": {"id": "did:agentauth:ed25519:...", "platform": "...", "name": "..."},
      "scope": {"include": ["mail.read"], "exclude": [...], "audiences": [...]},
      "constraints": {"notAfter": "...", "maxUsesPerHour": 100, ...},
      "revocation": {"endpoint": "https://...", "method": "GET", "cacheTTL": 300},
      "proof": {"type": "Ed25519Signature2020", "created": "...",
                "verificationMethod": "did:web:alice.example.com#keys-1",
                "proofPurpose": "assertionMethod", "proofValue": "..."}
    }

Every model is frozen and forbids unknown keys, so an unrecognised
constraint is rejected at the boundary instead of being carried along and
silently ignored.

Signing is a separate step: :class:`UnsignedDelegation` is the pre-issuance
builder type and only :class:`Delegation` (which always carries a proof
value) is accepted by the verification layer.
"""
from __future__ import annotations

import datetime
import ipaddress
import json
import re
import zoneinfo
from typing import Literal, Optional, Protocol

from pydantic import (
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from agentauth.encoding import b64url_encode, canonical_json
from agentauth.errors import InvalidDelegationError

DELEGATION_TYPE: str = "DelegationToken"
PROOF_TYPE: str = "Ed25519Signature2020"
PROOF_PURPOSE: str = "assertionMethod"

DAY_NAMES: tuple[str, ...] = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

_HOURS_PATTERN = re.compile(r"^(?P<sh>\d{2}):(?P<sm>\d{2})-(?P<eh>\d{2}):(?P<em>\d{2})$")

DayName = Literal["mon", "tue", "wed", "thu", "fri", "sat", "sun"]


class DelegationSigner(Protocol):
    """Anything able to sign bytes on behalf of a delegator (e.g. an AgentIdentity)."""

    def sign(self, data: bytes) -> bytes: ...


def _parse_hours(hours: str) -> tuple[int, int]:
    """Parse ``HH:MM-HH:MM`` into ``(start_minute, end_minute)`` of the day."""
    match = _HOURS_PATTERN.match(hours)
    if not match:
        raise ValueError(f"Hour range {hours!r} must look like 'HH:MM-HH:MM'")
    start_h, start_m = int(match.group("sh")), int(match.group("sm"))
    end_h, end_m = int(match.group("eh")), int(match.group("em"))
    if start_h > 23 or end_h > 23 or start_m > 59 or end_m > 59:
        raise ValueError(f"Hour range {hours!r} contains an invalid time of day")
    return start_h * 60 + start_m, end_h * 60 + end_m


def _load_zone(name: Optional[str]) -> datetime.tzinfo:
    if name is None or name.upper() in ("UTC", "Z"):
        return datetime.timezone.utc
    return zoneinfo.ZoneInfo(name)


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    def to_dict(self) -> dict[str, object]:
        """Serialize to the camelCase JSON interchange form."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# ------------------------------------------------------------------
# Constraints
# ------------------------------------------------------------------


class TimeWindow(_WireModel):
    """A recurring window during which a delegation may be exercised.

    Parameters
    ----------
    days:
        Lowercase three-letter day names. ``None`` means every day.
    hours:
        ``"HH:MM-HH:MM"`` in the window's timezone, inclusive on both ends.
        A range whose end is before its start wraps past midnight.
        ``None`` means the whole day.
    tz:
        IANA timezone name. ``None`` means UTC.
    """

    days: Optional[tuple[DayName, ...]] = None
    hours: Optional[str] = None
    tz: Optional[str] = None

    @field_validator("days", mode="before")
    @classmethod
    def _lowercase_days(cls, value: object) -> object:
        if isinstance(value, (list, tuple)):
            if not value:
                raise ValueError("days must name at least one day")
            return tuple(str(day).strip().lower()[:3] for day in value)
        return value

    @field_validator("hours")
    @classmethod
    def _check_hours(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            _parse_hours(value)
        return value

    @field_validator("tz")
    @classmethod
    def _check_tz(cls, value: Optional[str]) -> Optional[str]:
        try:
            _load_zone(value)
        except (zoneinfo.ZoneInfoNotFoundError, ValueError, OSError) as exc:
            # Names such as "America" resolve to a tzdata directory (OSError).
            raise ValueError(f"Unknown timezone {value!r}") from exc
        return value

    def contains(self, moment: datetime.datetime) -> bool:
        """Return True when the aware datetime *moment* falls inside this window."""
        local = moment.astimezone(_load_zone(self.tz))
        if self.days is not None and DAY_NAMES[local.weekday()] not in self.days:
            return False
        if self.hours is None:
            return True
        start, end = _parse_hours(self.hours)
        minute = local.hour * 60 + local.minute
        if start <= end:
            return start <= minute <= end
        return minute >= start or minute <= end


class DelegationConstraints(_WireModel):
    """Conditions narrowing when, how often, and from where a delegation applies."""

    not_before: Optional[AwareDatetime] = Field(default=None, alias="notBefore")
    not_after: Optional[AwareDatetime] = Field(default=None, alias="notAfter")
    max_uses: Optional[int] = Field(default=None, alias="maxUses", gt=0)
    max_uses_per_hour: Optional[int] = Field(default=None, alias="maxUsesPerHour", gt=0)
    max_value_per_use: Optional[float] = Field(default=None, alias="maxValuePerUse", ge=0)
    require_mfa: bool = Field(default=False, alias="requireMFA")
    allow_subdelegation: bool = Field(default=True, alias="allowSubdelegation")
    ip_allowlist: tuple[str, ...] = Field(default=(), alias="ipAllowlist")
    time_windows: tuple[TimeWindow, ...] = Field(default=(), alias="timeWindows")

    @field_validator("ip_allowlist")
    @classmethod
    def _check_ip_entries(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for entry in value:
            try:
                ipaddress.ip_network(entry, strict=False)
            except ValueError as exc:
                raise ValueError(f"Invalid IP allowlist entry {entry!r}") from exc
        return value

    @model_validator(mode="after")
    def _check_time_bounds(self) -> "DelegationConstraints":
        if (
            self.not_before is not None
            and self.not_after is not None
            and self.not_before > self.not_after
        ):
            raise ValueError("notBefore must not be later than notAfter")
        return self


# ------------------------------------------------------------------
# Parties, scope, revocation
# ------------------------------------------------------------------


class DelegatorRef(_WireModel):
    """The principal granting authority."""

    id: str = Field(min_length=1)
    proof: Optional[str] = None


class DelegateRef(_WireModel):
    """The agent receiving authority."""

    id: str = Field(min_length=1)
    platform: Optional[str] = None
    name: Optional[str] = None


class DelegationScope(_WireModel):
    """Permissions granted, explicitly excluded, and audiences allowed."""

    include: tuple[str, ...]
    exclude: Optional[tuple[str, ...]] = None
    audiences: Optional[tuple[str, ...]] = None


class RevocationDescriptor(_WireModel):
    """Where and how often to check whether the delegation was revoked."""

    endpoint: str = Field(min_length=1)
    method: Optional[Literal["GET", "POST"]] = None
    cache_ttl: Optional[int] = Field(default=None, alias="cacheTTL", ge=0)


# ------------------------------------------------------------------
# Proof
# ------------------------------------------------------------------


class ProofOptions(_WireModel):
    """Proof metadata fixed before the signature is computed."""

    type: str = PROOF_TYPE
    created: AwareDatetime
    verification_method: str = Field(alias="verificationMethod", min_length=1)
    proof_purpose: str = Field(default=PROOF_PURPOSE, alias="proofPurpose")


class DelegationProof(ProofOptions):
    """Complete proof including the base64url signature value."""

    proof_value: str = Field(alias="proofValue", min_length=1)


# ------------------------------------------------------------------
# Delegation
# ------------------------------------------------------------------


class _DelegationBody(_WireModel):
    type: Literal["DelegationToken"] = DELEGATION_TYPE
    id: str = Field(min_length=1)
    delegator: DelegatorRef
    delegate: DelegateRef
    scope: DelegationScope
    constraints: DelegationConstraints = Field(default_factory=DelegationConstraints)
    revocation: Optional[RevocationDescriptor] = None

    def signing_input(self) -> bytes:
        """Canonical bytes covered by the delegator's signature.

        Compact, key-sorted JSON of the interchange form with
        ``proof.proofValue`` omitted.
        """
        data = self.to_dict()
        proof = dict(data["proof"])  # type: ignore[arg-type]
        proof.pop("proofValue", None)
        data["proof"] = proof
        return canonical_json(data)


class UnsignedDelegation(_DelegationBody):
    """A delegation awaiting its delegator's signature.

    Not accepted anywhere a :class:`Delegation` is expected. Finalize with
    :meth:`sign` (the delegator signs locally) or :meth:`attach_proof` (the
    signature was collected elsewhere, e.g. by an approval UI or wallet).
    """

    proof: ProofOptions

    def sign(self, signer: DelegationSigner) -> "Delegation":
        """Sign :meth:`signing_input` with *signer* and return the issued delegation."""
        signature = signer.sign(self.signing_input())
        return self.attach_proof(b64url_encode(signature))

    def attach_proof(self, proof_value: str) -> "Delegation":
        """Return the issued delegation carrying an externally produced *proof_value*.

        Raises
        ------
        InvalidDelegationError
            If *proof_value* is empty.
        """
        data = self.to_dict()
        data["proof"] = {**data["proof"], "proofValue": proof_value}  # type: ignore[dict-item]
        return Delegation.from_dict(data)


class Delegation(_DelegationBody):
    """A signed, immutable grant of authority from delegator to delegate."""

    proof: DelegationProof

    @property
    def delegator_did(self) -> str:
        return self.delegator.id

    @property
    def delegate_did(self) -> str:
        return self.delegate.id

    @property
    def scopes(self) -> tuple[str, ...]:
        return self.scope.include

    def to_json(self) -> str:
        """Serialize to a compact JSON string."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: object) -> "Delegation":
        """Validate *data* (interchange form) into a Delegation.

        Raises
        ------
        InvalidDelegationError
            If a field is missing, malformed, or not part of the format.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            summary = _error_summary(exc)
            raise InvalidDelegationError(
                f"Invalid delegation: {'; '.join(summary)}",
                context={"errors": summary},
            ) from exc

    @classmethod
    def from_json(cls, text: str) -> "Delegation":
        """Parse a JSON string produced by :meth:`to_json`."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise InvalidDelegationError(f"Delegation is not valid JSON: {exc}") from exc
        return cls.from_dict(data)


def _error_summary(exc: ValidationError) -> list[str]:
    return [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]


__all__ = [
    "DAY_NAMES",
    "DELEGATION_TYPE",
    "DelegateRef",
    "Delegation",
    "DelegationConstraints",
    "DelegationProof",
    "DelegationScope",
    "DelegationSigner",
    "DelegatorRef",
    "PROOF_PURPOSE",
    "PROOF_TYPE",
    "ProofOptions",
    "RevocationDescriptor",
    "TimeWindow",
    "UnsignedDelegation",
]
