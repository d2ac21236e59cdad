"""User API tests — own metadata and the admin user surface."""

import uuid

import pytest

from conftest import bearer, key_headers


async def _register(client, account, username, password="pw_123456"):
    r = await client.post(
        "/api/v1/auth",
        json={"username": username, "password": password},
        headers=key_headers(account),
    )
    assert r.status_code == 200, r.text
    return r.json()


def _owner(account) -> dict:
    return bearer(account["user"]["token"])


# ═══════════════════════════════════════════════════════════
# Metadata (self-service)
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_update_own_metadata(client, account):
    user = await _register(client, account, "meta")
    r = await client.patch(
        "/api/v1/users",
        json={"metadata": {"theme": "dark", "tags": ["a", "b"]}},
        headers=bearer(user["token"]),
    )
    assert r.status_code == 200
    data = r.json()
    assert data["metadata"] == {"theme": "dark", "tags": ["a", "b"]}
    assert "token" not in data

    me = await client.get("/api/v1/auth", headers=bearer(user["token"]))
    assert me.json()["metadata"] == {"theme": "dark", "tags": ["a", "b"]}


@pytest.mark.asyncio
async def test_metadata_patch_cannot_change_role_or_username(client, account):
    user = await _register(client, account, "plain")
    r = await client.patch(
        "/api/v1/users",
        json={"metadata": {"a": 1}, "role": "admin", "username": "root"},
        headers=bearer(user["token"]),
    )
    assert r.status_code == 200
    assert r.json()["role"] == ""
    assert r.json()["username"] == "plain"


@pytest.mark.asyncio
async def test_metadata_requires_token(client):
    r = await client.patch("/api/v1/users", json={"metadata": {}})
    assert r.status_code == 401


# ═══════════════════════════════════════════════════════════
# Admin guard
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_admin_routes_reject_standard_users(client, account):
    user = await _register(client, account, "pleb")
    headers = bearer(user["token"])
    some_id = str(uuid.uuid4())

    assert (await client.get("/api/v1/users", headers=headers)).status_code == 403
    assert (await client.post("/api/v1/users", json={}, headers=headers)).status_code == 403
    assert (await client.get(f"/api/v1/users/{some_id}", headers=headers)).status_code == 403
    assert (await client.put(f"/api/v1/users/{some_id}", json={}, headers=headers)).status_code == 403
    assert (await client.delete(f"/api/v1/users/{some_id}", headers=headers)).status_code == 403


@pytest.mark.asyncio
async def test_admin_routes_reject_anonymous(client):
    r = await client.get("/api/v1/users")
    assert r.status_code == 401
    assert r.json() == {"message": "unauthorized"}


# ═══════════════════════════════════════════════════════════
# Admin CRUD
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_owner_lists_users(client, account):
    await _register(client, account, "listed")
    r = await client.get("/api/v1/users", headers=_owner(account))
    assert r.status_code == 200
    names = {u["username"] for u in r.json()}
    assert {"owner", "listed"} <= names
    assert all("token" not in u for u in r.json())


@pytest.mark.asyncio
async def test_default_admin_scope_spans_accounts(client, account, other_account):
    await _register(client, other_account, "globex-user")
    r = await client.get("/api/v1/users", headers=_owner(account))
    assert "globex-user" in {u["username"] for u in r.json()}


@pytest.mark.asyncio
async def test_admin_creates_privileged_user(client, account):
    r = await client.post(
        "/api/v1/users",
        json={"username": "deputy", "password": "deputy_pw", "role": "admin"},
        headers=_owner(account),
    )
    assert r.status_code == 201
    assert r.json()["role"] == "admin"

    login = await client.put(
        "/api/v1/auth",
        json={"username": "deputy", "password": "deputy_pw"},
        headers=key_headers(account),
    )
    assert login.status_code == 200
    listing = await client.get("/api/v1/users", headers=bearer(login.json()["token"]))
    assert listing.status_code == 200


@pytest.mark.asyncio
async def test_admin_create_duplicate(client, account):
    r = await client.post(
        "/api/v1/users",
        json={"username": "owner", "password": "pw"},
        headers=_owner(account),
    )
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_get_user(client, account):
    user = await _register(client, account, "lookup")
    r = await client.get(f"/api/v1/users/{user['id']}", headers=_owner(account))
    assert r.status_code == 200
    assert r.json()["username"] == "lookup"


@pytest.mark.asyncio
async def test_get_missing_user_is_null(client, account):
    r = await client.get(f"/api/v1/users/{uuid.uuid4()}", headers=_owner(account))
    assert r.status_code == 200
    assert r.json() is None


@pytest.mark.asyncio
async def test_update_user(client, account):
    user = await _register(client, account, "before")
    r = await client.put(
        f"/api/v1/users/{user['id']}",
        json={"username": "after", "role": "admin", "metadata": {"k": "v"}},
        headers=_owner(account),
    )
    assert r.status_code == 200
    data = r.json()
    assert data["username"] == "after"
    assert data["role"] == "admin"
    assert data["metadata"] == {"k": "v"}


@pytest.mark.asyncio
async def test_update_missing_user(client, account):
    r = await client.put(
        f"/api/v1/users/{uuid.uuid4()}", json={"role": "admin"}, headers=_owner(account)
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_delete_user_ends_their_sessions(client, account):
    user = await _register(client, account, "doomed")

    r = await client.delete(f"/api/v1/users/{user['id']}", headers=_owner(account))
    assert r.status_code == 200
    assert r.json() == {"success": True}

    gone = await client.get(f"/api/v1/users/{user['id']}", headers=_owner(account))
    assert gone.json() is None
    me = await client.get("/api/v1/auth", headers=bearer(user["token"]))
    assert me.json() is None


@pytest.mark.asyncio
async def test_delete_missing_user_still_succeeds(client, account):
    r = await client.delete(f"/api/v1/users/{uuid.uuid4()}", headers=_owner(account))
    assert r.status_code == 200
    assert r.json() == {"success": True}
