"""Gatehouse CLI — onboard accounts, log in, inspect sessions.

Usage:
    gatehouse health                                   # Server + database status
    gatehouse create-account alice --name "Acme"       # Account + key + owner
    gatehouse register bob --account-key <key>         # Standard user
    gatehouse login bob --account-key <key>            # Prints a bearer token
    gatehouse whoami --token <token>                   # Current user
    gatehouse logout --token <token>                   # Revoke the token
    gatehouse users --token <admin token>              # List users (admin)

The account key and token can also come from GATEHOUSE_ACCOUNT_KEY and
GATEHOUSE_TOKEN, so `export GATEHOUSE_TOKEN=$(gatehouse login bob -q)` works.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

from gatehouse import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("GATEHOUSE_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the Gatehouse backend."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _require(value: Optional[str], flag: str, env: str) -> str:
    if not value:
        click.secho(f"Error: {flag} required (or set {env})", fg="red", err=True)
        sys.exit(1)
    return value


def _check(r: httpx.Response) -> dict | list | None:
    """Return the JSON body, or print the server's message and exit 1."""
    if r.is_success:
        return r.json()
    try:
        message = r.json().get("message") or r.json().get("detail")
    except (ValueError, AttributeError):
        message = r.text
    click.secho(f"Error ({r.status_code}): {message}", fg="red", err=True)
    sys.exit(1)


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _print_user(user: dict) -> None:
    role = user.get("role") or "user"
    click.echo(f"  id:       {user['id']}")
    click.echo(f"  username: {user['username']}")
    click.echo(f"  role:     {click.style(role, fg='magenta' if role != 'user' else 'white')}")
    if user.get("metadata"):
        click.echo(f"  metadata: {json.dumps(user['metadata'])}")


account_key_option = click.option(
    "--account-key", "-k",
    envvar="GATEHOUSE_ACCOUNT_KEY",
    help="Account key (or set GATEHOUSE_ACCOUNT_KEY)",
)
token_option = click.option(
    "--token", "-t",
    envvar="GATEHOUSE_TOKEN",
    help="Bearer token (or set GATEHOUSE_TOKEN)",
)
password_option = click.option(
    "--password", "-p",
    prompt=True,
    hide_input=True,
    help="Password (prompted if omitted)",
)


def _auth_headers(token: Optional[str]) -> dict:
    return {"Authorization": f"Bearer {token}"} if token else {}


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="gatehouse")
def main():
    """Gatehouse — multi-tenant accounts, users and bearer sessions."""


# ---------------------------------------------------------------------------
# gatehouse health
# ---------------------------------------------------------------------------


@main.command()
def health():
    """Check server and database health."""
    _run(_health_impl())


async def _health_impl():
    async with _client() as c:
        data = _check(await c.get("/api/v1/health"))
    color = "green" if data["status"] == "healthy" else "yellow"
    click.secho(f"{data['status']} (v{data['version']})", fg=color, bold=True)
    click.echo(f"  database: {data.get('database')}")


# ---------------------------------------------------------------------------
# gatehouse create-account
# ---------------------------------------------------------------------------


@main.command("create-account")
@click.argument("username")
@password_option
@click.option("--name", "-n", help="Display name for the account")
@click.option("--json", "as_json", is_flag=True, help="Print the raw response")
def create_account(username: str, password: str, name: Optional[str], as_json: bool):
    """Create an account with its first key and an owner USERNAME."""
    _run(_create_account_impl(username, password, name, as_json))


async def _create_account_impl(username: str, password: str, name: Optional[str], as_json: bool):
    async with _client() as c:
        data = _check(await c.post("/api/v1/accounts", json={
            "name": name,
            "username": username,
            "password": password,
        }))

    if as_json:
        click.echo(_pretty_json(data))
        return

    click.secho("Account created", fg="green", bold=True)
    click.echo(f"  account:     {data['account']['id']}")
    click.echo(f"  account key: {click.style(data['key']['id'], bold=True)}")
    click.echo(f"  owner:       {data['user']['username']} ({data['user']['id']})")
    if data["user"].get("token"):
        click.echo(f"  token:       {data['user']['token']}")
    else:
        click.secho("  token:       unavailable — log in to get one", fg="yellow")


# ---------------------------------------------------------------------------
# gatehouse register / login
# ---------------------------------------------------------------------------


@main.command()
@click.argument("username")
@password_option
@account_key_option
def register(username: str, password: str, account_key: Optional[str]):
    """Register USERNAME as a standard user of an account."""
    key = _require(account_key, "--account-key", "GATEHOUSE_ACCOUNT_KEY")
    _run(_session_impl("post", username, password, key, quiet=False))


@main.command()
@click.argument("username")
@password_option
@account_key_option
@click.option("--quiet", "-q", is_flag=True, help="Print only the token")
def login(username: str, password: str, account_key: Optional[str], quiet: bool):
    """Log in as USERNAME and print a bearer token."""
    key = _require(account_key, "--account-key", "GATEHOUSE_ACCOUNT_KEY")
    _run(_session_impl("put", username, password, key, quiet=quiet))


async def _session_impl(method: str, username: str, password: str, account_key: str, quiet: bool):
    async with _client() as c:
        r = await c.request(
            method.upper(),
            "/api/v1/auth",
            json={"username": username, "password": password},
            headers={"Account-Key": account_key},
        )
        user = _check(r)

    if quiet:
        click.echo(user.get("token") or "")
        return

    verb = "Registered" if method == "post" else "Logged in"
    click.secho(f"{verb} {user['username']}", fg="green", bold=True)
    _print_user(user)
    if user.get("token"):
        click.echo(f"  token:    {user['token']}")


# ---------------------------------------------------------------------------
# gatehouse whoami / logout
# ---------------------------------------------------------------------------


@main.command()
@token_option
def whoami(token: Optional[str]):
    """Show the user a token belongs to."""
    _run(_whoami_impl(_require(token, "--token", "GATEHOUSE_TOKEN")))


async def _whoami_impl(token: str):
    async with _client() as c:
        user = _check(await c.get("/api/v1/auth", headers=_auth_headers(token)))

    if user is None:
        click.secho("Not logged in (token unknown, expired or revoked)", fg="yellow")
        sys.exit(1)
    _print_user(user)


@main.command()
@token_option
def logout(token: Optional[str]):
    """Revoke a token."""
    _run(_logout_impl(token))


async def _logout_impl(token: Optional[str]):
    async with _client() as c:
        _check(await c.delete("/api/v1/auth", headers=_auth_headers(token)))
    click.secho("Logged out", fg="green")


# ---------------------------------------------------------------------------
# gatehouse users
# ---------------------------------------------------------------------------


@main.command()
@token_option
def users(token: Optional[str]):
    """List users (requires an admin or owner token)."""
    _run(_users_impl(_require(token, "--token", "GATEHOUSE_TOKEN")))


async def _users_impl(token: str):
    async with _client() as c:
        rows = _check(await c.get("/api/v1/users", headers=_auth_headers(token)))

    if not rows:
        click.echo("No users found.")
        return

    click.secho(f"Users ({len(rows)}):", bold=True)
    click.echo()
    for u in rows:
        role = u.get("role") or "—"
        click.echo(f"  {u['id'][:8]}  {u['username']:24s}  {role}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
