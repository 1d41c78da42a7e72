"""AgentAuth Tokens (AAT): compact, signed, self-contained agent credentials."""
from __future__ import annotations

from agentauth.token.aat import AATToken
from agentauth.token.claims import ActorClaim, TokenHeader, TokenPayload
from agentauth.token.duration import parse_duration

__all__ = ["AATToken", "ActorClaim", "TokenHeader", "TokenPayload", "parse_duration"]
