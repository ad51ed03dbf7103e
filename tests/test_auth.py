"""Authentication and user management API tests."""

import pytest

from sowflow.models.enums import Role
from sowflow.services.security import decode_token, hash_password, make_tokens, verify_password

TEST_PASSWORD = "correct-horse-battery"


@pytest.mark.asyncio
async def test_login_and_me(client, make_user):
    user_id, _ = await make_user(Role.DIRECTOR, email="dana@example.com")

    r = await client.post("/api/v1/auth/login", json={"email": "dana@example.com", "password": TEST_PASSWORD})
    assert r.status_code == 200, r.text
    tokens = r.json()
    assert tokens["token_type"] == "bearer"
    assert tokens["expires_in"] > 0

    claims = decode_token(tokens["access_token"])
    assert claims["sub"] == user_id
    assert claims["role"] == "director"

    r = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
    assert r.status_code == 200
    me = r.json()
    assert me["user_id"] == user_id
    assert me["role"] == "director"
    assert me["last_login"] is not None


@pytest.mark.asyncio
async def test_login_wrong_password(client, make_user):
    await make_user(Role.MANAGER, email="sam@example.com")
    r = await client.post("/api/v1/auth/login", json={"email": "sam@example.com", "password": "nope-nope"})
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "AUTHENTICATION_ERROR"


@pytest.mark.asyncio
async def test_refresh_issues_new_tokens(client, make_user):
    user_id, _ = await make_user(Role.VP)
    _, refresh = make_tokens(user_id, Role.VP.value)

    r = await client.post("/api/v1/auth/refresh", json={"refresh_token": refresh})
    assert r.status_code == 200
    assert decode_token(r.json()["access_token"])["role"] == "vp"


@pytest.mark.asyncio
async def test_refresh_rejects_access_token(client, make_user):
    user_id, _ = await make_user(Role.VP)
    access, _ = make_tokens(user_id, Role.VP.value)
    r = await client.post("/api/v1/auth/refresh", json={"refresh_token": access})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_refresh_token_cannot_authenticate_requests(client, make_user):
    user_id, _ = await make_user(Role.VP)
    _, refresh = make_tokens(user_id, Role.VP.value)
    r = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {refresh}"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_unknown_role_claim_is_unauthenticated(client, make_document):
    doc_id = await make_document()
    access, _ = make_tokens("usr_ghost", "overlord")
    r = await client.get(f"/api/v1/documents/{doc_id}", headers={"Authorization": f"Bearer {access}"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_admin_creates_user(client, admin):
    _, admin_h = admin
    body = {"email": "pat@example.com", "display_name": "Pat", "password": "long-enough-pw", "role": "pmo"}

    r = await client.post("/api/v1/users", json=body, headers=admin_h)
    assert r.status_code == 201, r.text
    assert r.json()["role"] == "pmo"
    assert r.json()["is_admin"] is False

    r = await client.post("/api/v1/users", json=body, headers=admin_h)
    assert r.status_code == 409

    r = await client.post("/api/v1/auth/login", json={"email": "pat@example.com", "password": "long-enough-pw"})
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_non_admin_cannot_create_user(client, manager):
    _, manager_h = manager
    body = {"email": "eve@example.com", "display_name": "Eve", "password": "long-enough-pw", "role": "admin"}
    r = await client.post("/api/v1/users", json=body, headers=manager_h)
    assert r.status_code == 403


def test_password_hash_roundtrip():
    hashed = hash_password("s3cret-value")
    assert hashed != "s3cret-value"
    assert verify_password("s3cret-value", hashed)
    assert not verify_password("other", hashed)
    assert not verify_password("s3cret-value", "malformed")
