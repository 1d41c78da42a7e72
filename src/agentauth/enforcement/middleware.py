"""AgentAuthMiddleware — framework-neutral Authorization header handling.

Parses ``Authorization: Bearer <agent token>`` and runs an
:class:`~agentauth.enforcement.verifier.AgentVerifier`, producing an
:class:`AuthResult` that a web framework adapter can turn into a response.

Status codes:
  - ``401``: no credentials, or credentials that are not a valid token
    (malformed, bad signature, expired).
  - ``403``: a valid token that is not allowed to do this (audience, scope,
    delegation or constraint failure).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from agentauth.enforcement.context import RequestContext
from agentauth.enforcement.verifier import AgentVerifier, VerifiedAgent
from agentauth.errors import (
    AgentAuthError,
    InvalidSignatureError,
    MalformedTokenError,
    TokenExpiredError,
)

logger = logging.getLogger(__name__)

UNAUTHORIZED = 401
FORBIDDEN = 403
OK = 200

_UNAUTHENTICATED_ERRORS = (MalformedTokenError, InvalidSignatureError, TokenExpiredError)


@dataclass
class AuthResult:
    """Result of an authentication attempt.

    Parameters
    ----------
    success:
        Whether the request is authorised.
    status_code:
        200 on success, otherwise 401 or 403.
    agent:
        The verified agent on success, else None.
    error_kind:
        Stable error kind of the failure (empty on success), e.g.
        ``"TokenExpired"`` or ``"MFARequired"``.
    reason:
        Human-readable explanation of a failure (empty on success).
    """

    success: bool
    status_code: int
    agent: Optional[VerifiedAgent] = None
    error_kind: str = ""
    reason: str = ""


class AgentAuthMiddleware:
    """Authorization header handler for agent requests.

    Parameters
    ----------
    verifier:
        The verifier carrying audience, scope and constraint policy.
    """

    def __init__(self, verifier: AgentVerifier) -> None:
        self._verifier = verifier

    def authenticate(self, token: str, context: Optional[RequestContext] = None) -> AuthResult:
        """Verify a bare token string.

        Parameters
        ----------
        token:
            The agent token (without the ``Bearer`` prefix).
        context:
            Facts about the request for constraint enforcement.

        Returns
        -------
        AuthResult
        """
        try:
            agent = self._verifier.verify(token.strip(), context)
        except AgentAuthError as exc:
            status = UNAUTHORIZED if isinstance(exc, _UNAUTHENTICATED_ERRORS) else FORBIDDEN
            return AuthResult(
                success=False,
                status_code=status,
                error_kind=exc.kind,
                reason=str(exc),
            )
        return AuthResult(success=True, status_code=OK, agent=agent)

    def authenticate_from_header(
        self,
        authorization_header: Optional[str],
        context: Optional[RequestContext] = None,
    ) -> AuthResult:
        """Parse an HTTP Authorization header and authenticate it.

        Parameters
        ----------
        authorization_header:
            The raw value of the Authorization HTTP header, or None when the
            request has none.
        context:
            Facts about the request for constraint enforcement.

        Returns
        -------
        AuthResult
        """
        if not authorization_header or not authorization_header.strip():
            return self._unauthorized("Missing agent token")

        parts = authorization_header.strip().split(None, 1)
        if len(parts) != 2:
            return self._unauthorized("Malformed Authorization header")

        scheme, credentials = parts[0].lower(), parts[1]
        if scheme != "bearer":
            return self._unauthorized(f"Unsupported authorization scheme {parts[0]!r}")

        result = self.authenticate(credentials, context)
        if not result.success:
            logger.info(
                "Rejected agent request with status %d: %s", result.status_code, result.reason
            )
        return result

    @staticmethod
    def _unauthorized(reason: str) -> AuthResult:
        logger.info("Rejected agent request with status %d: %s", UNAUTHORIZED, reason)
        return AuthResult(
            success=False,
            status_code=UNAUTHORIZED,
            error_kind="MissingToken",
            reason=reason,
        )


__all__ = ["AgentAuthMiddleware", "AuthResult"]
