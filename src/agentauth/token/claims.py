"""Header and payload claim models for the AgentAuth Token (AAT)."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, model_validator

TOKEN_ALGORITHM: str = "EdDSA"
TOKEN_TYPE: str = "AAT"
# 9999-12-31T23:59:59Z, the last instant datetime can represent.
MAX_TIMESTAMP: int = 253_402_300_799


class _ClaimModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    def to_dict(self) -> dict[str, object]:
        return self.model_dump(mode="json")


class TokenHeader(_ClaimModel):
    """``alg`` and ``typ`` are fixed; ``kid`` is ``<issuer DID>#keys-1``."""

    alg: Literal["EdDSA"] = TOKEN_ALGORITHM
    typ: Literal["AAT"] = TOKEN_TYPE
    kid: StrictStr = Field(min_length=1)


class ActorClaim(_ClaimModel):
    """The acting party (RFC 8693 style ``act`` claim)."""

    sub: StrictStr = Field(min_length=1)


class TokenPayload(_ClaimModel):
    """Claims asserted by the issuing agent.

    Parameters
    ----------
    iss:
        The acting agent's DID; its key signs the token.
    sub:
        The delegator's DID.
    aud:
        The relying service the token is bound to.
    iat, exp:
        Issued-at and expiry as integer Unix seconds; ``exp > iat``, both
        within ``0..MAX_TIMESTAMP``.
    nonce:
        Hex-encoded random value for replay resistance.
    scope:
        Granted permission strings.
    act:
        Restates ``iss`` as the actor.
    """

    iss: StrictStr = Field(min_length=1)
    sub: StrictStr = Field(min_length=1)
    aud: StrictStr
    iat: StrictInt = Field(ge=0, le=MAX_TIMESTAMP)
    exp: StrictInt = Field(ge=0, le=MAX_TIMESTAMP)
    nonce: StrictStr = Field(min_length=1)
    scope: tuple[StrictStr, ...]
    act: ActorClaim

    @model_validator(mode="after")
    def _check_lifetime(self) -> "TokenPayload":
        if self.exp <= self.iat:
            raise ValueError("exp must be later than iat")
        return self


__all__ = [
    "ActorClaim",
    "MAX_TIMESTAMP",
    "TOKEN_ALGORITHM",
    "TOKEN_TYPE",
    "TokenHeader",
    "TokenPayload",
]
