"""
Integration tests for admin login, logout and session verification
"""

from sqlmodel import select

from honeycert.core.security import decode_admin_token
from honeycert.models import AdminConfirmation
from tests.conftest import email_registration

LOGIN = "/api/admin/login"


async def register_and_confirm(client, session_maker) -> dict:
    response = await client.post("/api/admin/register", json=email_registration())
    admin = response.json()["data"]["admin"]
    async with session_maker() as session:
        confirmation = (
            await session.exec(select(AdminConfirmation).where(AdminConfirmation.admin_id == admin["id"]))
        ).one()
    await client.post("/api/admin/confirm-email", json={"token": confirmation.token})
    return admin


async def test_login_success_sets_cookie(client, session_maker):
    admin = await register_and_confirm(client, session_maker)

    response = await client.post(LOGIN, json={"email": "ada@example.com", "password": "correct-horse"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["admin"]["id"] == admin["id"]
    assert body["data"]["schema"]["name"] == admin["schemaName"]
    assert body["data"]["schema"]["displayName"] == "Ada Lovelace's Workspace"

    payload = decode_admin_token(body["data"]["token"])
    assert payload["adminId"] == admin["id"]
    assert payload["schemaName"] == admin["schemaName"]
    assert payload["role"] == "admin"

    cookie = response.headers["set-cookie"]
    assert cookie.startswith("admin-token=")
    assert "HttpOnly" in cookie
    assert "samesite=lax" in cookie.lower()


async def test_login_before_confirmation_is_403(client):
    await client.post("/api/admin/register", json=email_registration())

    response = await client.post(LOGIN, json={"email": "ada@example.com", "password": "correct-horse"})

    assert response.status_code == 403
    assert response.json() == {"success": False, "error": "Account is inactive"}


async def test_login_wrong_password_is_401(client, session_maker):
    await register_and_confirm(client, session_maker)

    response = await client.post(LOGIN, json={"email": "ada@example.com", "password": "wrong-horse"})

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid email or password"


async def test_login_unknown_email_is_401(client):
    response = await client.post(LOGIN, json={"email": "nobody@example.com", "password": "whatever1"})

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid email or password"


async def test_login_missing_fields_is_400(client):
    response = await client.post(LOGIN, json={"email": "ada@example.com"})

    assert response.status_code == 400


async def test_login_malformed_email_is_400(client):
    response = await client.post(LOGIN, json={"email": "ada", "password": "correct-horse"})

    assert response.status_code == 400


async def test_login_store_unreachable_is_503(client, monkeypatch):
    from honeycert.api import admin as admin_api

    async def failing_ping(session):
        return False

    monkeypatch.setattr(admin_api, "ping", failing_ping)

    response = await client.post(LOGIN, json={"email": "ada@example.com", "password": "correct-horse"})

    assert response.status_code == 503


async def test_logout_clears_cookie(client):
    response = await client.post("/api/admin/logout")

    assert response.status_code == 200
    cookie = response.headers["set-cookie"]
    assert cookie.startswith("admin-token=")
    assert "Max-Age=0" in cookie


async def test_verify_session_cookie(client, session_maker):
    admin = await register_and_confirm(client, session_maker)
    login = await client.post(LOGIN, json={"email": "ada@example.com", "password": "correct-horse"})
    token = login.json()["data"]["token"]

    response = await client.post("/api/admin/auth/verify", headers={"Cookie": f"admin-token={token}"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["token"] == token
    assert body["admin"]["id"] == admin["id"]
    assert body["admin"]["firstname"] == "Ada"
    assert body["admin"]["schemaName"] == admin["schemaName"]


async def test_verify_without_cookie_is_401(client):
    client.cookies.clear()

    response = await client.post("/api/admin/auth/verify")

    assert response.status_code == 401
    assert response.json()["error"] == "No authentication token found"


async def test_verify_invalid_token_is_401(client):
    response = await client.post("/api/admin/auth/verify", headers={"Cookie": "admin-token=garbage"})

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid token"
