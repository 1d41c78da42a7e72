"""AATToken — the AgentAuth bearer token.

Token format
------------
Four dot-separated unpadded base64url segments::

    base64url(header).base64url(payload).base64url(delegationChain).base64url(signature)

- header: ``{"alg": "EdDSA", "typ": "AAT", "kid": "<issuer DID>#keys-1"}``
- payload: ``iss, sub, aud, iat, exp, nonce, scope, act.sub``
- delegationChain: JSON array of delegations, root principal first
- signature: Ed25519 over the ASCII bytes ``header.payload.delegationChain``

The issuer's key is recovered from the ``iss`` DID itself, so verification
needs no key lookup and no network call. Verification is a sequential gate
that checks the signature before trusting any claim.
"""
from __future__ import annotations

import binascii
import json
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Optional, Sequence

from pydantic import ValidationError

from agentauth.delegation.models import Delegation
from agentauth.encoding import b64url_decode, b64url_encode, canonical_json
from agentauth.errors import (
    AudienceMismatchError,
    EntropyError,
    InsufficientScopeError,
    InvalidDelegationError,
    InvalidDIDFormatError,
    InvalidSignatureError,
    MalformedTokenError,
    TokenExpiredError,
)
from agentauth.identity.agent import AgentIdentity
from agentauth.identity.did import key_id
from agentauth.token.claims import ActorClaim, TokenHeader, TokenPayload
from agentauth.token.duration import parse_duration

logger = logging.getLogger(__name__)

NONCE_BYTES: int = 16
SEGMENT_COUNT: int = 4


def _generate_nonce() -> str:
    try:
        return secrets.token_hex(NONCE_BYTES)
    except (NotImplementedError, OSError) as exc:
        raise EntropyError(f"Secure random source unavailable: {exc}") from exc


def _encode_segment(value: object) -> str:
    return b64url_encode(canonical_json(value))


def _decode_segment(segment: str, name: str) -> object:
    try:
        return json.loads(b64url_decode(segment).decode("utf-8"))
    except (ValueError, UnicodeDecodeError, binascii.Error) as exc:
        raise MalformedTokenError(f"Could not decode token {name}: {exc}") from exc


@dataclass(frozen=True)
class AATToken:
    """A decoded AgentAuth token.

    Instances are produced by :meth:`verify` (trusted) or :meth:`decode`
    (untrusted, for inspection only). They hold serialized values only, with
    no reference to the identity that issued them.

    Parameters
    ----------
    header:
        The token header.
    payload:
        The token claims.
    delegation_chain:
        Embedded delegations, root principal first.
    signature:
        Raw Ed25519 signature bytes.
    """

    header: TokenHeader
    payload: TokenPayload
    delegation_chain: tuple[Delegation, ...]
    signature: bytes

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        identity: AgentIdentity,
        delegator: str,
        audience: str,
        scopes: Sequence[str],
        delegation_chain: Optional[Sequence[Delegation]] = None,
        expires_in: str = "1h",
        now: Optional[int] = None,
    ) -> str:
        """Build and sign a new token string.

        Parameters
        ----------
        identity:
            The acting agent; becomes ``iss`` and signs the token.
        delegator:
            DID of the principal the agent acts for; becomes ``sub``.
        audience:
            The relying service URL or identifier; becomes ``aud``.
        scopes:
            Granted permission strings.
        delegation_chain:
            Delegations to embed, root principal first.
        expires_in:
            Lifetime such as ``"15m"``, ``"1h"`` or ``"7d"``.
        now:
            Issue time in Unix seconds; defaults to the current time.

        Raises
        ------
        InvalidDurationFormatError
            If *expires_in* is malformed.
        EntropyError
            If no nonce can be generated.
        MalformedTokenError
            If the claims are out of range, e.g. an expiry past year 9999.
        TypeError
            If *scopes* is a bare string instead of a sequence of strings.
        """
        if isinstance(scopes, str):
            raise TypeError(f"scopes must be a sequence of strings, not {scopes!r}")
        iat = int(time.time()) if now is None else int(now)
        exp = iat + parse_duration(expires_in)
        chain = tuple(delegation_chain or ())

        header = TokenHeader(kid=key_id(identity.did))
        try:
            payload = TokenPayload(
                iss=identity.did,
                sub=delegator,
                aud=audience,
                iat=iat,
                exp=exp,
                nonce=_generate_nonce(),
                scope=tuple(scopes),
                act=ActorClaim(sub=identity.did),
            )
        except ValidationError as exc:
            raise MalformedTokenError(f"Invalid token claims: {exc}") from exc

        header_b64 = _encode_segment(header.to_dict())
        payload_b64 = _encode_segment(payload.to_dict())
        chain_b64 = _encode_segment([delegation.to_dict() for delegation in chain])

        signing_input = f"{header_b64}.{payload_b64}.{chain_b64}"
        signature = identity.sign(signing_input.encode("utf-8"))

        logger.debug(
            "Issued AAT iss=%s sub=%s aud=%s exp=%d chain=%d",
            identity.did,
            delegator,
            audience,
            exp,
            len(chain),
        )
        return f"{signing_input}.{b64url_encode(signature)}"

    # ------------------------------------------------------------------
    # Decode / verify
    # ------------------------------------------------------------------

    @classmethod
    def decode(cls, token: str) -> "AATToken":
        """Parse *token* WITHOUT checking its signature or claims.

        Use only for inspection and debugging; use :meth:`verify` to
        authenticate a token.

        Raises
        ------
        MalformedTokenError
            For a wrong segment count or undecodable segments.
        """
        header, payload, chain_b64, signature = cls._split(token)
        chain = cls._decode_chain(chain_b64)
        return cls(header=header, payload=payload, delegation_chain=chain, signature=signature)

    @staticmethod
    def _split(token: str) -> tuple[TokenHeader, TokenPayload, str, bytes]:
        """Decode header, payload and signature; the chain segment stays encoded."""
        parts = token.split(".") if isinstance(token, str) else []
        if len(parts) != SEGMENT_COUNT:
            raise MalformedTokenError(
                f"Invalid AAT token format (expected {SEGMENT_COUNT} parts, got {len(parts)})"
            )
        header_b64, payload_b64, chain_b64, signature_b64 = parts

        raw_header = _decode_segment(header_b64, "header")
        raw_payload = _decode_segment(payload_b64, "payload")
        try:
            signature = b64url_decode(signature_b64)
        except ValueError as exc:
            raise MalformedTokenError(f"Could not decode token signature: {exc}") from exc

        try:
            header = TokenHeader.model_validate(raw_header)
            payload = TokenPayload.model_validate(raw_payload)
        except ValidationError as exc:
            raise MalformedTokenError(f"Invalid token claims: {exc}") from exc
        return header, payload, chain_b64, signature

    @staticmethod
    def _decode_chain(chain_b64: str) -> tuple[Delegation, ...]:
        raw_chain = _decode_segment(chain_b64, "delegation chain")
        if not isinstance(raw_chain, list):
            raise MalformedTokenError("Delegation chain segment must be a JSON array")
        try:
            return tuple(Delegation.from_dict(item) for item in raw_chain)
        except InvalidDelegationError as exc:
            raise MalformedTokenError(f"Invalid embedded delegation: {exc}") from exc

    @classmethod
    def verify(
        cls,
        token: str,
        audience: Optional[str] = None,
        required_scopes: Optional[Sequence[str]] = None,
        now: Optional[int] = None,
    ) -> "AATToken":
        """Authenticate *token* and check its audience and scopes.

        Steps, stopping at the first failure: structure, signature against
        the ``iss`` DID, expiry, audience, required scopes. The embedded
        delegation chain is only parsed once the signature has verified, and
        its hops are NOT validated here; see
        :class:`agentauth.enforcement.AgentVerifier`.

        Raises
        ------
        MalformedTokenError
            Wrong segment count, bad base64url/JSON, or invalid claim structure.
        InvalidSignatureError
            Signature does not verify against the issuer DID.
        TokenExpiredError
            ``exp`` is earlier than *now*.
        AudienceMismatchError
            *audience* given and not equal to ``aud``.
        InsufficientScopeError
            Any of *required_scopes* is not granted (exact string match).
        """
        header, payload, chain_b64, signature = cls._split(token)

        signing_input = token.rsplit(".", 1)[0].encode("utf-8")
        try:
            valid = AgentIdentity.verify(signature, signing_input, payload.iss)
        except InvalidDIDFormatError as exc:
            raise InvalidSignatureError(
                f"Issuer DID cannot be used for verification: {exc}"
            ) from exc
        if not valid:
            raise InvalidSignatureError("Invalid token signature")

        decoded = cls(
            header=header,
            payload=payload,
            delegation_chain=cls._decode_chain(chain_b64),
            signature=signature,
        )
        if payload.act.sub != payload.iss:
            raise MalformedTokenError("Actor claim does not match the token issuer")

        current = int(time.time()) if now is None else int(now)
        if payload.exp < current:
            raise TokenExpiredError(expired_at=payload.exp, now=current)

        if audience is not None and payload.aud != audience:
            raise AudienceMismatchError(expected=audience, actual=payload.aud)

        if required_scopes:
            missing = [scope for scope in required_scopes if scope not in payload.scope]
            if missing:
                raise InsufficientScopeError(missing)

        return decoded

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_agent(self) -> str:
        """Return the acting agent's DID (``iss``)."""
        return self.payload.iss

    def get_delegator(self) -> str:
        """Return the delegator's DID (``sub``)."""
        return self.payload.sub

    def get_audience(self) -> str:
        return self.payload.aud

    def get_scopes(self) -> list[str]:
        """Return the granted scopes."""
        return list(self.payload.scope)

    def has_scope(self, scope: str) -> bool:
        """Return True if *scope* is granted (exact match, no wildcards)."""
        return scope in self.payload.scope

    def to_dict(self) -> dict[str, object]:
        """Return the decoded header, payload and chain as plain data."""
        return {
            "header": self.header.to_dict(),
            "payload": self.payload.to_dict(),
            "delegationChain": [delegation.to_dict() for delegation in self.delegation_chain],
        }


__all__ = ["AATToken", "NONCE_BYTES"]
