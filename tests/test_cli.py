"""CLI tests — commands against a mocked HTTP backend.

Learn: The CLI only talks HTTP, so each test swaps _client() for an
httpx client on a MockTransport and asserts on what was sent and what
was printed. No server, no database.
"""

import json

import httpx
import pytest
from click.testing import CliRunner

from gatehouse.cli import main as cli

USER = {
    "id": "5b8f0d6e-3c51-4c62-9a86-0d7f4c1e2a10",
    "username": "bob",
    "role": "",
    "metadata": None,
    "created_at": "2026-01-01T00:00:00Z",
    "updated_at": "2026-01-01T00:00:00Z",
    "token": "hdr.payload.sig",
}


@pytest.fixture()
def backend(monkeypatch):
    """Route CLI requests to a handler; returns the list of seen requests."""
    seen = []
    routes = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        status, body = routes[(request.method, request.url.path)]
        return httpx.Response(
            status,
            content=json.dumps(body),
            headers={"content-type": "application/json"},
        )

    monkeypatch.setattr(
        cli,
        "_client",
        lambda: httpx.AsyncClient(
            transport=httpx.MockTransport(handler), base_url="http://test"
        ),
    )
    monkeypatch.delenv("GATEHOUSE_TOKEN", raising=False)
    monkeypatch.delenv("GATEHOUSE_ACCOUNT_KEY", raising=False)
    return routes, seen


@pytest.fixture()
def runner():
    return CliRunner()


def test_health(backend, runner):
    routes, _ = backend
    routes[("GET", "/api/v1/health")] = (
        200, {"status": "healthy", "server": "ok", "version": "0.1.0", "database": "ok"}
    )
    result = runner.invoke(cli.main, ["health"])
    assert result.exit_code == 0
    assert "healthy" in result.output


def test_create_account(backend, runner):
    routes, seen = backend
    routes[("POST", "/api/v1/accounts")] = (201, {
        "account": {"id": "acc-1", "name": "Acme", "created_at": "2026-01-01T00:00:00Z"},
        "key": {"id": "key-1", "account_id": "acc-1", "created_at": "2026-01-01T00:00:00Z"},
        "user": {**USER, "username": "alice", "role": "owner"},
    })
    result = runner.invoke(
        cli.main, ["create-account", "alice", "--password", "pw", "--name", "Acme"]
    )
    assert result.exit_code == 0, result.output
    assert "key-1" in result.output
    assert json.loads(seen[0].content) == {"name": "Acme", "username": "alice", "password": "pw"}


def test_login_quiet_prints_only_token(backend, runner):
    routes, seen = backend
    routes[("PUT", "/api/v1/auth")] = (200, USER)
    result = runner.invoke(
        cli.main, ["login", "bob", "-p", "pw", "--account-key", "key-1", "-q"]
    )
    assert result.exit_code == 0
    assert result.output.strip() == "hdr.payload.sig"
    assert seen[0].headers["Account-Key"] == "key-1"


def test_login_requires_account_key(backend, runner):
    result = runner.invoke(cli.main, ["login", "bob", "-p", "pw"])
    assert result.exit_code == 1
    assert "--account-key required" in result.output


def test_login_failure_shows_server_message(backend, runner):
    routes, _ = backend
    routes[("PUT", "/api/v1/auth")] = (401, {"message": "invalid username or password"})
    result = runner.invoke(cli.main, ["login", "bob", "-p", "bad", "-k", "key-1"])
    assert result.exit_code == 1
    assert "invalid username or password" in result.output


def test_register(backend, runner):
    routes, seen = backend
    routes[("POST", "/api/v1/auth")] = (200, USER)
    result = runner.invoke(cli.main, ["register", "bob", "-p", "pw", "-k", "key-1"])
    assert result.exit_code == 0
    assert "Registered bob" in result.output
    assert seen[0].method == "POST"


def test_whoami(backend, runner):
    routes, seen = backend
    routes[("GET", "/api/v1/auth")] = (200, USER)
    result = runner.invoke(cli.main, ["whoami", "--token", "hdr.payload.sig"])
    assert result.exit_code == 0
    assert "bob" in result.output
    assert seen[0].headers["Authorization"] == "Bearer hdr.payload.sig"


def test_whoami_with_dead_token(backend, runner):
    routes, _ = backend
    routes[("GET", "/api/v1/auth")] = (200, None)
    result = runner.invoke(cli.main, ["whoami", "-t", "stale"])
    assert result.exit_code == 1
    assert "Not logged in" in result.output


def test_logout(backend, runner):
    routes, _ = backend
    routes[("DELETE", "/api/v1/auth")] = (200, {"success": True})
    result = runner.invoke(cli.main, ["logout", "-t", "anything"], env={"GATEHOUSE_TOKEN": None})
    assert result.exit_code == 0
    assert "Logged out" in result.output


def test_users(backend, runner):
    routes, _ = backend
    routes[("GET", "/api/v1/users")] = (200, [USER, {**USER, "username": "alice", "role": "owner"}])
    result = runner.invoke(cli.main, ["users"], env={"GATEHOUSE_TOKEN": "admin-token"})
    assert result.exit_code == 0
    assert "Users (2)" in result.output
    assert "alice" in result.output


def test_users_forbidden(backend, runner):
    routes, _ = backend
    routes[("GET", "/api/v1/users")] = (403, {"message": "forbidden"})
    result = runner.invoke(cli.main, ["users", "-t", "pleb-token"])
    assert result.exit_code == 1
    assert "forbidden" in result.output
