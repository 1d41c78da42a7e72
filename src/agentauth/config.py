"""Verifier configuration for agentauth.

``AgentAuthConfig`` is a pydantic v2 model acting as the validated boundary
between raw configuration sources (JSON files, environment variables,
in-memory dicts) and the verification layer. Every field has a default so a
verifier can start with zero configuration.

Environment variables
---------------------
``from_env()`` reads ``AGENTAUTH_<FIELD>`` (upper-case field name), e.g.::

    AGENTAUTH_AUDIENCE=https://api.example.com
    AGENTAUTH_REQUIRED_SCOPES=mail.read,mail.send
    AGENTAUTH_ENFORCE_CONSTRAINTS=false
    AGENTAUTH_USAGE_POLICY=fail_closed
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from agentauth.errors import ConfigurationError, InvalidDurationFormatError
from agentauth.token.duration import parse_duration

logger = logging.getLogger(__name__)

ENV_PREFIX: str = "AGENTAUTH_"

_TRUE_WORDS = frozenset({"1", "true", "yes", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "off"})


class AgentAuthConfig(BaseModel):
    """Validated runtime configuration for token verification.

    Parameters
    ----------
    audience:
        Expected ``aud`` claim. ``None`` skips the audience check.
    required_scopes:
        Scopes every accepted token must carry.
    default_expires_in:
        Lifetime used when issuing tokens without an explicit one.
    enforce_constraints:
        Whether delegation constraints (MFA, IP, time windows, limits) are
        evaluated.
    require_delegation:
        Reject tokens with an empty delegation chain.
    validate_chain:
        Check that delegation hops link the token's ``sub`` to its ``iss``
        without widening scope.
    usage_policy:
        ``"fail_open"`` treats a missing usage counter as unconstrained;
        ``"fail_closed"`` rejects the request instead.
    log_level:
        Level name applied by :meth:`configure_logging`.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    audience: Optional[str] = None
    required_scopes: list[str] = Field(default_factory=list)
    default_expires_in: str = "1h"
    enforce_constraints: bool = True
    require_delegation: bool = True
    validate_chain: bool = True
    usage_policy: Literal["fail_open", "fail_closed"] = "fail_open"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"

    @field_validator("default_expires_in")
    @classmethod
    def _check_expires_in(cls, value: str) -> str:
        try:
            parse_duration(value)
        except InvalidDurationFormatError as exc:
            raise ValueError(str(exc)) from exc
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: Any) -> Any:  # noqa: ANN401
        return value.upper() if isinstance(value, str) else value

    # ------------------------------------------------------------------
    # Loaders
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "AgentAuthConfig":
        """Validate *data* into a config.

        Raises
        ------
        ConfigurationError
            On unknown keys or invalid values.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(
                f"Invalid agentauth configuration: {exc}",
                context={"keys": sorted(data)},
            ) from exc

    @classmethod
    def from_json(cls, path: str | Path) -> "AgentAuthConfig":
        """Load configuration from a JSON file containing an object."""
        resolved = Path(path)
        if not resolved.exists():
            raise ConfigurationError(
                f"JSON config file not found: {resolved}", context={"path": str(resolved)}
            )
        try:
            with resolved.open(encoding="utf-8") as fh:
                raw = json.load(fh)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(
                f"Failed to parse JSON config at {resolved}: {exc}",
                context={"path": str(resolved)},
            ) from exc
        if not isinstance(raw, dict):
            raise ConfigurationError(
                f"JSON config at {resolved} must be an object", context={"path": str(resolved)}
            )
        logger.debug("Loaded JSON config from %s", resolved)
        return cls.from_dict(raw)

    @classmethod
    def from_env(
        cls, prefix: str = ENV_PREFIX, environ: Optional[dict[str, str]] = None
    ) -> "AgentAuthConfig":
        """Build configuration from ``<prefix><FIELD>`` environment variables.

        List fields are comma-separated; boolean fields accept
        ``1/0``, ``true/false``, ``yes/no``, ``on/off``.
        """
        env = os.environ if environ is None else environ
        data: dict[str, object] = {}
        for name, field in cls.model_fields.items():
            raw = env.get(f"{prefix}{name.upper()}")
            if raw is None:
                continue
            if field.annotation is bool:
                data[name] = _parse_bool(name, raw)
            elif name == "required_scopes":
                data[name] = [item.strip() for item in raw.split(",") if item.strip()]
            else:
                data[name] = raw
        return cls.from_dict(data)

    def configure_logging(self) -> None:
        """Apply :attr:`log_level` to the ``agentauth`` logger hierarchy."""
        logging.getLogger("agentauth").setLevel(self.log_level)


def _parse_bool(name: str, raw: str) -> bool:
    word = raw.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ConfigurationError(
        f"Environment value for {name!r} is not a boolean: {raw!r}", context={"field": name}
    )


__all__ = ["AgentAuthConfig", "ENV_PREFIX"]
