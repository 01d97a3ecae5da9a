#!/usr/bin/env python3
"""
VOID Quickstart — account lifecycle and a persisted conversation in one script.

Signs up → logs in → recovers the password → appends turns → reads them back.
Run with: python examples/quickstart.py

Requires: pip install httpx
Backend must be running: http://localhost:8000
"""

import httpx
import sys
import uuid

BASE = "http://localhost:8000/api/v1"


def main():
    run_id = uuid.uuid4().hex[:6]
    username = f"demo-{run_id}"
    client = httpx.Client(base_url=BASE, timeout=10)

    # ── Health check ──────────────────────────────────────────────
    print("Checking backend health...")
    try:
        resp = client.get("/health")
    except httpx.ConnectError:
        print(f"Backend not reachable at {BASE}")
        print("Start it with:  voidchat serve")
        sys.exit(1)
    health = resp.json()
    print(f"  Status:   {health['status']}")
    print(f"  Database: {health['database']}")

    # ── Sign up ───────────────────────────────────────────────────
    print("\n1. Signing up...")
    resp = client.post("/auth/signup", json={
        "username": username,
        "password": "pw1",
        "securityQuestion": "First pet?",
        "securityAnswer": "Rex",
    })
    assert resp.status_code == 201, f"Failed: {resp.text}"
    print(f"   Account #{resp.json()['user']['id']}: {username}")

    # ── Duplicate is refused ──────────────────────────────────────
    resp = client.post("/auth/signup", json={
        "username": username,
        "password": "other",
        "securityQuestion": "Q",
        "securityAnswer": "A",
    })
    print(f"   Same username again → {resp.status_code} {resp.json()['detail']}")

    # ── Forgot + reset ────────────────────────────────────────────
    print("\n2. Recovering the password...")
    resp = client.post("/auth/forgot-password", json={"username": username})
    print(f"   Question: {resp.json()['securityQuestion']}")
    resp = client.post("/auth/reset-password", json={
        "username": username,
        "securityAnswer": "  rex ",
        "newPassword": "pw2",
    })
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   {resp.json()['message']}")

    # ── Log in with the new password ──────────────────────────────
    print("\n3. Logging in...")
    resp = client.post("/auth/login", json={"username": username, "password": "pw1"})
    print(f"   Old password → {resp.status_code}")
    resp = client.post("/auth/login", json={"username": username, "password": "pw2"})
    assert resp.status_code == 200, f"Failed: {resp.text}"
    client.headers["Authorization"] = f"Bearer {resp.json()['token']}"
    print("   New password → 200")

    # ── Append turns ──────────────────────────────────────────────
    print("\n4. Appending messages...")
    for role, content in [("user", "hi"), ("assistant", "hello")]:
        resp = client.post("/messages", json={"role": role, "content": content})
        assert resp.status_code == 201, f"Failed: {resp.text}"
        print(f"   + {role}: {content}")

    # ── Read the transcript ───────────────────────────────────────
    print("\n5. Transcript:")
    for m in client.get("/messages").json():
        print(f"   [{m['createdAt']}] {m['role']}: {m['content']}")

    print(f"\n✓ Done. {username} has a persisted conversation.")


if __name__ == "__main__":
    main()
