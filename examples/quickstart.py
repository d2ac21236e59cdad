#!/usr/bin/env python3
"""
Gatehouse Quickstart — Full session lifecycle in one script.

Creates an account → registers a user → logs in → edits metadata →
changes password → logs out → shows the token is dead.
Run with: python examples/quickstart.py

Requires: pip install httpx
Backend must be running: http://localhost:8000
"""

import sys
import time
import uuid

import httpx

BASE = "http://localhost:8000/api/v1"


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def main():
    run_id = uuid.uuid4().hex[:6]
    client = httpx.Client(base_url=BASE, timeout=10)

    # ── Health check ──────────────────────────────────────────────
    print("Checking backend health...")
    try:
        resp = client.get("/health")
    except httpx.ConnectError:
        print(f"Backend not reachable at {BASE}")
        print("Start it with:  uvicorn gatehouse.main:app --reload --port 8000")
        sys.exit(1)
    health = resp.json()
    print(f"  Status:   {health['status']}")
    print(f"  Database: {health['database']}")

    # ── Create account (auto-creates key + owner) ─────────────────
    print("\n1. Creating account...")
    resp = client.post("/accounts", json={
        "name": f"Demo Corp {run_id}",
        "username": "owner",
        "password": "owner-password-123",
    })
    assert resp.status_code == 201, f"Failed: {resp.text}"
    created = resp.json()
    key = created["key"]["id"]
    owner_token = created["user"]["token"]
    print(f"   Account: {created['account']['name']} ({created['account']['id'][:8]}...)")
    print(f"   Key:     {key}")
    print(f"   Owner:   {created['user']['username']} ({created['user']['role']})")

    # ── Register a standard user ──────────────────────────────────
    print("\n2. Registering a user...")
    resp = client.post(
        "/auth",
        json={"username": "bob", "password": "bob-password-123"},
        headers={"Account-Key": key},
    )
    assert resp.status_code == 200, f"Failed: {resp.text}"
    bob = resp.json()
    print(f"   User: {bob['username']} (role={bob['role']!r})")

    # ── Log in ────────────────────────────────────────────────────
    print("\n3. Logging in...")
    resp = client.put(
        "/auth",
        json={"username": "bob", "password": "bob-password-123"},
        headers={"Account-Key": key},
    )
    assert resp.status_code == 200, f"Failed: {resp.text}"
    token = resp.json()["token"]
    print(f"   Token: {token[:32]}...")

    # Fingerprints are recorded after the response is sent.
    time.sleep(0.2)

    # ── Who am I ──────────────────────────────────────────────────
    resp = client.get("/auth", headers=bearer(token))
    print(f"\n4. Current user: {resp.json()['username']}")

    # ── Metadata ──────────────────────────────────────────────────
    print("\n5. Updating metadata...")
    resp = client.patch("/users", json={"metadata": {"theme": "dark"}}, headers=bearer(token))
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   Metadata: {resp.json()['metadata']}")

    # ── Password change ───────────────────────────────────────────
    print("\n6. Changing password...")
    resp = client.put(
        "/auth/password",
        json={"password": "bob-password-123", "newPassword": "bob-password-456"},
        headers=bearer(token),
    )
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print("   Password changed")

    # ── Owner lists users ─────────────────────────────────────────
    resp = client.get("/users", headers=bearer(owner_token))
    names = [u["username"] for u in resp.json()]
    print(f"\n7. Users visible to the owner: {len(names)}")

    # ── Logout ────────────────────────────────────────────────────
    print("\n8. Logging out...")
    client.delete("/auth", headers=bearer(token))
    resp = client.get("/auth", headers=bearer(token))
    print(f"   Current user after logout: {resp.json()}")

    print("\n✓ Quickstart complete!")


if __name__ == "__main__":
    main()
