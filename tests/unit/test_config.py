"""Tests for agentauth.config — AgentAuthConfig loaders."""
from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from agentauth.config import AgentAuthConfig
from agentauth.errors import ConfigurationError


class TestDefaults:
    def test_zero_configuration(self) -> None:
        config = AgentAuthConfig()
        assert config.audience is None
        assert config.required_scopes == []
        assert config.default_expires_in == "1h"
        assert config.enforce_constraints is True
        assert config.require_delegation is True
        assert config.validate_chain is True
        assert config.usage_policy == "fail_open"
        assert config.log_level == "WARNING"


class TestFromDict:
    def test_valid(self) -> None:
        config = AgentAuthConfig.from_dict(
            {"audience": "https://api.example.com", "required_scopes": ["a", "b"]}
        )
        assert config.required_scopes == ["a", "b"]

    def test_unknown_key_rejected(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            AgentAuthConfig.from_dict({"audiance": "typo"})
        assert exc_info.value.kind == "ConfigurationError"

    def test_invalid_duration_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            AgentAuthConfig.from_dict({"default_expires_in": "1 hour"})

    def test_invalid_usage_policy_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            AgentAuthConfig.from_dict({"usage_policy": "maybe"})

    def test_log_level_case_insensitive(self) -> None:
        assert AgentAuthConfig.from_dict({"log_level": "debug"}).log_level == "DEBUG"


class TestFromJson:
    def test_loads_file(self, tmp_path: Path) -> None:
        path = tmp_path / "agentauth.json"
        path.write_text(json.dumps({"audience": "https://api.example.com"}), encoding="utf-8")
        assert AgentAuthConfig.from_json(path).audience == "https://api.example.com"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            AgentAuthConfig.from_json(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            AgentAuthConfig.from_json(path)

    def test_non_object(self, tmp_path: Path) -> None:
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            AgentAuthConfig.from_json(path)


class TestFromEnv:
    def test_reads_prefixed_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AGENTAUTH_AUDIENCE", "https://api.example.com")
        monkeypatch.setenv("AGENTAUTH_REQUIRED_SCOPES", "mail.read, mail.send,")
        monkeypatch.setenv("AGENTAUTH_ENFORCE_CONSTRAINTS", "false")
        monkeypatch.setenv("AGENTAUTH_USAGE_POLICY", "fail_closed")
        config = AgentAuthConfig.from_env()
        assert config.audience == "https://api.example.com"
        assert config.required_scopes == ["mail.read", "mail.send"]
        assert config.enforce_constraints is False
        assert config.usage_policy == "fail_closed"

    def test_explicit_environ_and_prefix(self) -> None:
        config = AgentAuthConfig.from_env(
            prefix="MYAPP_", environ={"MYAPP_REQUIRE_DELEGATION": "no"}
        )
        assert config.require_delegation is False

    def test_invalid_boolean(self) -> None:
        with pytest.raises(ConfigurationError):
            AgentAuthConfig.from_env(environ={"AGENTAUTH_VALIDATE_CHAIN": "sometimes"})

    def test_empty_environment_gives_defaults(self) -> None:
        assert AgentAuthConfig.from_env(environ={}) == AgentAuthConfig()


class TestConfigureLogging:
    def test_sets_package_logger_level(self) -> None:
        logger = logging.getLogger("agentauth")
        previous = logger.level
        try:
            AgentAuthConfig(log_level="DEBUG").configure_logging()
            assert logger.level == logging.DEBUG
        finally:
            logger.setLevel(previous)
