"""CLI entry point for agentauth.

Invoked as::

    agentauth [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m agentauth.cli.main

Commands
--------
version             Show version information
identity create     Generate a new agent identity
identity show       Display an identity file (without its private key)
delegation create   Issue a signed delegation to another agent
token create        Issue an agent token
token verify        Verify an agent token and its delegation chain
token inspect       Decode a token without verifying it
"""
from __future__ import annotations

import datetime
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

console = Console()


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(package_name="agentauth")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging level for agentauth diagnostics.",
)
def cli(log_level: str) -> None:
    """Verifiable identity and scoped delegation for AI agents"""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from agentauth import __version__

    console.print(f"[bold]agentauth[/bold] v{__version__}")


# ------------------------------------------------------------------
# identity command group
# ------------------------------------------------------------------


@cli.group(name="identity")
def identity_group() -> None:
    """Manage agent identities."""


@identity_group.command(name="create")
@click.option("--name", "-n", default=None, help="Human-readable name stored in metadata.")
@click.option(
    "--metadata",
    "-m",
    default=None,
    help="JSON object of extra metadata (e.g. '{\"env\": \"prod\"}').",
)
@click.option(
    "--out",
    type=click.Path(),
    default=None,
    help="Write the identity JSON (including the private key) to this path.",
)
def identity_create_command(
    name: Optional[str], metadata: Optional[str], out: Optional[str]
) -> None:
    """Generate a new Ed25519 agent identity."""
    from agentauth.errors import EntropyError
    from agentauth.identity import AgentIdentity

    parsed_metadata: dict[str, object] = {}
    if metadata:
        try:
            parsed_metadata = json.loads(metadata)
        except json.JSONDecodeError as exc:
            console.print(f"[red]Error:[/red] --metadata is not valid JSON: {exc}")
            sys.exit(1)
        if not isinstance(parsed_metadata, dict):
            console.print("[red]Error:[/red] --metadata must be a JSON object")
            sys.exit(1)
    if name:
        parsed_metadata["name"] = name

    try:
        identity = AgentIdentity.create(parsed_metadata)
    except EntropyError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    identity_json = json.dumps(identity.to_dict(), indent=2)
    if out:
        Path(out).write_text(identity_json, encoding="utf-8")
        console.print(f"[green]Identity written to[/green] {out}")
        console.print("[yellow]The file contains the private key; keep it secret.[/yellow]")
    else:
        click.echo(identity_json)

    console.print(f"\n  DID:      [bold]{identity.did}[/bold]")
    console.print(f"  Created:  {identity.created_at.isoformat()}")


@identity_group.command(name="show")
@click.argument("identity_file", type=click.Path(exists=True))
def identity_show_command(identity_file: str) -> None:
    """Display the public parts of IDENTITY_FILE."""
    identity = _load_identity(identity_file)

    table = Table(title="Agent Identity", show_header=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("DID", identity.did)
    table.add_row("Public key", identity.public_key.hex())
    table.add_row("Key id", identity.key_id)
    table.add_row("Created", identity.created_at.isoformat())
    table.add_row("Metadata", json.dumps(identity.metadata) if identity.metadata else "(none)")
    console.print(table)


# ------------------------------------------------------------------
# delegation command group
# ------------------------------------------------------------------


@cli.group(name="delegation")
def delegation_group() -> None:
    """Issue and inspect delegations."""


@delegation_group.command(name="create")
@click.option(
    "--identity",
    "identity_file",
    type=click.Path(exists=True),
    required=True,
    help="Identity file of the delegator (signs the delegation).",
)
@click.option("--delegate", required=True, help="DID of the agent receiving authority.")
@click.option(
    "--scope", "-s", multiple=True, required=True, help="Scope to grant (repeatable)."
)
@click.option("--exclude", multiple=True, help="Scope explicitly withheld (repeatable).")
@click.option("--audience", multiple=True, help="Restrict use to this audience (repeatable).")
@click.option("--platform", default=None, help="Platform hosting the delegate agent.")
@click.option("--agent-name", default=None, help="Human-readable name of the delegate.")
@click.option(
    "--expires-in",
    default=None,
    help="Validity period such as '30d'; sets notAfter.",
)
@click.option("--max-uses", type=int, default=None, help="Lifetime use limit.")
@click.option("--max-uses-per-hour", type=int, default=None, help="Hourly use limit.")
@click.option("--max-value", type=float, default=None, help="Per-use value limit.")
@click.option("--require-mfa", is_flag=True, default=False, help="Require verified MFA.")
@click.option(
    "--no-subdelegation",
    is_flag=True,
    default=False,
    help="Forbid the delegate from re-delegating.",
)
@click.option("--ip", "ip_allowlist", multiple=True, help="Allowed IP or CIDR (repeatable).")
@click.option(
    "--out",
    type=click.Path(),
    default=None,
    help="Write the delegation JSON to this file path.",
)
def delegation_create_command(
    identity_file: str,
    delegate: str,
    scope: tuple[str, ...],
    exclude: tuple[str, ...],
    audience: tuple[str, ...],
    platform: Optional[str],
    agent_name: Optional[str],
    expires_in: Optional[str],
    max_uses: Optional[int],
    max_uses_per_hour: Optional[int],
    max_value: Optional[float],
    require_mfa: bool,
    no_subdelegation: bool,
    ip_allowlist: tuple[str, ...],
    out: Optional[str],
) -> None:
    """Create a delegation signed by the identity in --identity."""
    from agentauth.delegation import create_delegation
    from agentauth.errors import AgentAuthError
    from agentauth.token import parse_duration

    identity = _load_identity(identity_file)

    constraints: dict[str, object] = {}
    if expires_in:
        try:
            seconds = parse_duration(expires_in)
        except AgentAuthError as exc:
            console.print(f"[red]Error:[/red] {exc}")
            sys.exit(1)
        now = datetime.datetime.now(datetime.timezone.utc).replace(microsecond=0)
        try:
            not_after = now + datetime.timedelta(seconds=seconds)
        except OverflowError:
            console.print(f"[red]Error:[/red] --expires-in {expires_in!r} is out of range")
            sys.exit(1)
        constraints["notBefore"] = now.isoformat()
        constraints["notAfter"] = not_after.isoformat()
    if max_uses is not None:
        constraints["maxUses"] = max_uses
    if max_uses_per_hour is not None:
        constraints["maxUsesPerHour"] = max_uses_per_hour
    if max_value is not None:
        constraints["maxValuePerUse"] = max_value
    if require_mfa:
        constraints["requireMFA"] = True
    if no_subdelegation:
        constraints["allowSubdelegation"] = False
    if ip_allowlist:
        constraints["ipAllowlist"] = list(ip_allowlist)

    try:
        delegation = create_delegation(
            identity.did,
            delegate,
            list(scope),
            audiences=list(audience) or None,
            platform=platform,
            agent_name=agent_name,
            constraints=constraints,
            exclude=list(exclude) or None,
        ).sign(identity)
    except AgentAuthError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    delegation_json = json.dumps(delegation.to_dict(), indent=2)
    if out:
        Path(out).write_text(delegation_json, encoding="utf-8")
        console.print(f"[green]Delegation written to[/green] {out}")
    else:
        click.echo(delegation_json)

    console.print(f"\n  Delegation ID:  [bold]{delegation.id}[/bold]")
    console.print(f"  Delegator:      {delegation.delegator_did}")
    console.print(f"  Delegate:       {delegation.delegate_did}")
    console.print(f"  Scopes:         {', '.join(delegation.scopes)}")


# ------------------------------------------------------------------
# token command group
# ------------------------------------------------------------------


@cli.group(name="token")
def token_group() -> None:
    """Issue, verify and inspect agent tokens."""


@token_group.command(name="create")
@click.option(
    "--identity",
    "identity_file",
    type=click.Path(exists=True),
    required=True,
    help="Identity file of the acting agent (signs the token).",
)
@click.option("--delegator", required=True, help="DID of the principal the agent acts for.")
@click.option("--audience", required=True, help="Relying service URL or identifier.")
@click.option(
    "--scope", "-s", multiple=True, required=True, help="Scope to claim (repeatable)."
)
@click.option("--expires-in", default="1h", show_default=True, help="Token lifetime.")
@click.option(
    "--delegation",
    "delegation_files",
    type=click.Path(exists=True),
    multiple=True,
    help="Delegation JSON file to embed, root first (repeatable).",
)
def token_create_command(
    identity_file: str,
    delegator: str,
    audience: str,
    scope: tuple[str, ...],
    expires_in: str,
    delegation_files: tuple[str, ...],
) -> None:
    """Create a signed agent token; prints the token string."""
    from agentauth.delegation import Delegation
    from agentauth.errors import AgentAuthError
    from agentauth.token import AATToken

    identity = _load_identity(identity_file)
    try:
        chain = [
            Delegation.from_json(Path(path).read_text(encoding="utf-8"))
            for path in delegation_files
        ]
        token = AATToken.create(
            identity,
            delegator,
            audience,
            list(scope),
            delegation_chain=chain,
            expires_in=expires_in,
        )
    except AgentAuthError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    click.echo(token)


@token_group.command(name="verify")
@click.argument("token")
@click.option("--audience", default=None, help="Expected audience.")
@click.option("--scope", "-s", multiple=True, help="Required scope (repeatable).")
@click.option(
    "--allow-no-delegation",
    is_flag=True,
    default=False,
    help="Accept tokens that embed no delegation chain.",
)
def token_verify_command(
    token: str,
    audience: Optional[str],
    scope: tuple[str, ...],
    allow_no_delegation: bool,
) -> None:
    """Verify TOKEN, its delegation chain and constraints.

    Defaults come from AGENTAUTH_* environment variables; options override
    them. Exits with status 1 when the token is rejected.
    """
    from agentauth.config import AgentAuthConfig
    from agentauth.enforcement import AgentVerifier
    from agentauth.errors import AgentAuthError

    try:
        config = AgentAuthConfig.from_env()
        if audience is not None:
            config.audience = audience
        if scope:
            config.required_scopes = list(scope)
        if allow_no_delegation:
            config.require_delegation = False
        agent = AgentVerifier(config).verify(token.strip())
    except AgentAuthError as exc:
        console.print(f"  [red]FAIL[/red]  {exc.kind}: {exc}")
        sys.exit(1)

    console.print("  [green]PASS[/green]  Token verified")
    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Agent", agent.agent_did)
    table.add_row("Delegator", agent.delegator_did)
    table.add_row("Audience", agent.token.get_audience())
    table.add_row("Scopes", ", ".join(agent.scopes) or "(none)")
    table.add_row("Delegations", str(len(agent.delegation_chain)))
    table.add_row(
        "Expires",
        datetime.datetime.fromtimestamp(
            agent.token.payload.exp, tz=datetime.timezone.utc
        ).isoformat(),
    )
    console.print(table)


@token_group.command(name="inspect")
@click.argument("token")
def token_inspect_command(token: str) -> None:
    """Decode TOKEN without verifying its signature or claims."""
    from agentauth.errors import MalformedTokenError
    from agentauth.token import AATToken

    try:
        decoded = AATToken.decode(token.strip())
    except MalformedTokenError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    console.print("[yellow]Decoded without verification.[/yellow]")
    click.echo(json.dumps(decoded.to_dict(), indent=2))


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _load_identity(identity_file: str):  # type: ignore[return]
    """Load an AgentIdentity from a JSON file written by ``identity create``."""
    from agentauth.errors import AgentAuthError
    from agentauth.identity import AgentIdentity

    try:
        data = json.loads(Path(identity_file).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        console.print(f"[red]Error:[/red] Could not read identity file: {exc}")
        sys.exit(1)
    if not isinstance(data, dict):
        console.print("[red]Error:[/red] Identity file must contain a JSON object")
        sys.exit(1)
    try:
        return AgentIdentity.from_dict(data)
    except AgentAuthError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)


if __name__ == "__main__":
    cli()
