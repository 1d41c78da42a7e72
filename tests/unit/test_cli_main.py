"""Tests for agentauth.cli.main — CLI commands via Click test runner."""
from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from agentauth.cli.main import cli
from agentauth.encoding import b64url_decode, b64url_encode
from agentauth.identity import AgentIdentity


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def principal_file(tmp_path: Path) -> Path:
    path = tmp_path / "principal.json"
    path.write_text(json.dumps(AgentIdentity.create({"name": "alice"}).to_dict()), encoding="utf-8")
    return path


@pytest.fixture()
def agent_file(tmp_path: Path) -> Path:
    path = tmp_path / "agent.json"
    path.write_text(json.dumps(AgentIdentity.create({"name": "bot"}).to_dict()), encoding="utf-8")
    return path


def _did(path: Path) -> str:
    return str(json.loads(path.read_text(encoding="utf-8"))["did"])


@pytest.fixture()
def delegation_file(
    runner: CliRunner, tmp_path: Path, principal_file: Path, agent_file: Path
) -> Path:
    out = tmp_path / "delegation.json"
    result = runner.invoke(
        cli,
        [
            "delegation",
            "create",
            "--identity",
            str(principal_file),
            "--delegate",
            _did(agent_file),
            "--scope",
            "mail.read",
            "--scope",
            "mail.send",
            "--max-uses-per-hour",
            "100",
            "--out",
            str(out),
        ],
    )
    assert result.exit_code == 0, result.output
    return out


@pytest.fixture()
def token(
    runner: CliRunner, principal_file: Path, agent_file: Path, delegation_file: Path
) -> str:
    result = runner.invoke(
        cli,
        [
            "token",
            "create",
            "--identity",
            str(agent_file),
            "--delegator",
            _did(principal_file),
            "--audience",
            "https://mail.example.com",
            "--scope",
            "mail.read",
            "--delegation",
            str(delegation_file),
        ],
    )
    assert result.exit_code == 0, result.output
    return result.output.strip()


# ---------------------------------------------------------------------------
# Root CLI
# ---------------------------------------------------------------------------


class TestRootCLI:
    def test_help_exits_zero(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0

    def test_version_command(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert "agentauth" in result.output.lower()
        assert "0.1.0" in result.output

    def test_log_level_option(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--log-level", "debug", "version"])
        assert result.exit_code == 0


# ---------------------------------------------------------------------------
# identity
# ---------------------------------------------------------------------------


class TestIdentityCommands:
    def test_create_prints_identity_json(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["identity", "create", "--name", "mail-bot"])
        assert result.exit_code == 0
        assert "did:agentauth:ed25519:" in result.output
        assert "privateKey" in result.output

    def test_create_writes_file(self, runner: CliRunner, tmp_path: Path) -> None:
        out = tmp_path / "id.json"
        result = runner.invoke(cli, ["identity", "create", "--name", "mail-bot", "--out", str(out)])
        assert result.exit_code == 0
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["metadata"] == {"name": "mail-bot"}
        assert AgentIdentity.from_dict(data).did == data["did"]

    def test_create_with_bad_metadata(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["identity", "create", "--metadata", "{bad"])
        assert result.exit_code == 1

    def test_show_omits_private_key(self, runner: CliRunner, agent_file: Path) -> None:
        private_key = json.loads(agent_file.read_text(encoding="utf-8"))["privateKey"]
        result = runner.invoke(cli, ["identity", "show", str(agent_file)])
        assert result.exit_code == 0
        assert private_key not in result.output

    def test_show_rejects_corrupt_file(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "corrupt.json"
        path.write_text(json.dumps({"privateKey": "zz"}), encoding="utf-8")
        result = runner.invoke(cli, ["identity", "show", str(path)])
        assert result.exit_code == 1


# ---------------------------------------------------------------------------
# delegation
# ---------------------------------------------------------------------------


class TestDelegationCommands:
    def test_create_writes_signed_delegation(
        self, delegation_file: Path, principal_file: Path
    ) -> None:
        from agentauth.delegation import Delegation, verify_delegation_signature

        delegation = Delegation.from_json(delegation_file.read_text(encoding="utf-8"))
        assert delegation.delegator_did == _did(principal_file)
        assert delegation.constraints.max_uses_per_hour == 100
        assert verify_delegation_signature(delegation) is True

    def test_expires_in_sets_not_after(
        self, runner: CliRunner, tmp_path: Path, principal_file: Path, agent_file: Path
    ) -> None:
        from agentauth.delegation import Delegation

        out = tmp_path / "d.json"
        result = runner.invoke(
            cli,
            [
                "delegation",
                "create",
                "--identity",
                str(principal_file),
                "--delegate",
                _did(agent_file),
                "--scope",
                "x",
                "--expires-in",
                "30d",
                "--out",
                str(out),
            ],
        )
        assert result.exit_code == 0, result.output
        constraints = Delegation.from_json(out.read_text(encoding="utf-8")).constraints
        assert constraints.not_before is not None
        assert constraints.not_after is not None
        assert (constraints.not_after - constraints.not_before).days == 30

    def test_invalid_ip_fails(
        self, runner: CliRunner, principal_file: Path, agent_file: Path
    ) -> None:
        result = runner.invoke(
            cli,
            [
                "delegation",
                "create",
                "--identity",
                str(principal_file),
                "--delegate",
                _did(agent_file),
                "--scope",
                "x",
                "--ip",
                "not-an-ip",
            ],
        )
        assert result.exit_code == 1


# ---------------------------------------------------------------------------
# token
# ---------------------------------------------------------------------------


class TestTokenCommands:
    def test_create_prints_four_segment_token(self, token: str) -> None:
        assert len(token.split(".")) == 4

    def test_verify_success(self, runner: CliRunner, token: str) -> None:
        result = runner.invoke(
            cli,
            ["token", "verify", token, "--audience", "https://mail.example.com", "-s", "mail.read"],
            env={},
        )
        assert result.exit_code == 0, result.output
        assert "PASS" in result.output

    def test_verify_wrong_audience(self, runner: CliRunner, token: str) -> None:
        result = runner.invoke(
            cli, ["token", "verify", token, "--audience", "https://other.example.com"]
        )
        assert result.exit_code == 1
        assert "AudienceMismatch" in result.output

    def test_verify_missing_scope(self, runner: CliRunner, token: str) -> None:
        result = runner.invoke(cli, ["token", "verify", token, "-s", "mail.delete"])
        assert result.exit_code == 1
        assert "InsufficientScope" in result.output

    def test_verify_garbage(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["token", "verify", "a.b.c"])
        assert result.exit_code == 1
        assert "MalformedToken" in result.output

    def test_verify_without_delegation(
        self, runner: CliRunner, agent_file: Path, principal_file: Path
    ) -> None:
        created = runner.invoke(
            cli,
            [
                "token",
                "create",
                "--identity",
                str(agent_file),
                "--delegator",
                _did(principal_file),
                "--audience",
                "https://mail.example.com",
                "--scope",
                "mail.read",
            ],
        )
        token = created.output.strip()
        assert runner.invoke(cli, ["token", "verify", token]).exit_code == 1
        allowed = runner.invoke(cli, ["token", "verify", token, "--allow-no-delegation"])
        assert allowed.exit_code == 0, allowed.output

    def test_verify_reads_environment(self, runner: CliRunner, token: str) -> None:
        result = runner.invoke(
            cli,
            ["token", "verify", token],
            env={"AGENTAUTH_AUDIENCE": "https://other.example.com"},
        )
        assert result.exit_code == 1

    def test_create_with_bad_expiry(
        self, runner: CliRunner, agent_file: Path, principal_file: Path
    ) -> None:
        result = runner.invoke(
            cli,
            [
                "token",
                "create",
                "--identity",
                str(agent_file),
                "--delegator",
                _did(principal_file),
                "--audience",
                "https://mail.example.com",
                "--scope",
                "x",
                "--expires-in",
                "forever",
            ],
        )
        assert result.exit_code == 1

    def test_inspect(self, runner: CliRunner, token: str) -> None:
        result = runner.invoke(cli, ["token", "inspect", token])
        assert result.exit_code == 0
        assert '"typ": "AAT"' in result.output
        assert "delegationChain" in result.output

    def test_inspect_garbage(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["token", "inspect", "garbage"])
        assert result.exit_code == 1

    def test_verify_signed_token_with_out_of_range_expiry(
        self, runner: CliRunner, token: str, agent_file: Path
    ) -> None:
        agent = AgentIdentity.from_dict(json.loads(agent_file.read_text(encoding="utf-8")))
        parts = token.split(".")
        payload = json.loads(b64url_decode(parts[1]))
        payload["exp"] = 10**20
        parts[1] = b64url_encode(json.dumps(payload).encode("utf-8"))
        signing_input = ".".join(parts[:3])
        resigned = f"{signing_input}.{b64url_encode(agent.sign(signing_input.encode('utf-8')))}"
        result = runner.invoke(cli, ["token", "verify", resigned])
        assert result.exit_code == 1
        assert "MalformedToken" in result.output

    def test_delegation_expiry_out_of_range(
        self, runner: CliRunner, principal_file: Path, agent_file: Path
    ) -> None:
        result = runner.invoke(
            cli,
            [
                "delegation",
                "create",
                "--identity",
                str(principal_file),
                "--delegate",
                _did(agent_file),
                "--scope",
                "x",
                "--expires-in",
                "999999999999d",
            ],
        )
        assert result.exit_code == 1
        assert "out of range" in result.output
