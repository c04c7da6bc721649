"""
Integration tests for Authentication Flow.

Verifies Login -> Me, role guards and token revocation.
"""

import pytest


@pytest.mark.asyncio
async def test_admin_login_and_me(client, admin_user):
    response = await client.post("/v1/auth/login", json={"username": "admin", "password": "admin123"})
    assert response.status_code == 200
    data = response.json()
    assert data["tokenType"] == "bearer"
    assert data["role"] == "ADMIN"
    assert data["employeeId"] is None

    response = await client.get("/v1/auth/me", headers={"Authorization": f"Bearer {data['accessToken']}"})
    assert response.status_code == 200
    me = response.json()
    assert me["username"] == "admin"
    assert me["details"] is None


@pytest.mark.asyncio
async def test_login_wrong_password(client, admin_user):
    response = await client.post("/v1/auth/login", json={"username": "admin", "password": "wrong"})
    assert response.status_code == 401
    assert response.json()["error_code"] == "ERR_UNAUTHORIZED"


@pytest.mark.asyncio
async def test_login_unknown_user(client):
    response = await client.post("/v1/auth/login", json={"username": "ghost", "password": "whatever"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_inactive_user_cannot_login(client, admin_user, db_session):
    admin_user.is_active = False
    db_session.add(admin_user)
    await db_session.commit()

    response = await client.post("/v1/auth/login", json={"username": "admin", "password": "admin123"})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_employee_me_includes_details(client, employee_headers):
    response = await client.get("/v1/auth/me", headers=employee_headers)
    assert response.status_code == 200
    me = response.json()
    assert me["role"] == "EMPLOYEE"
    assert me["details"]["name"] == "Budi"
    assert me["details"]["email"] == "budi@example.com"
    assert me["employeeId"] == me["details"]["id"]


@pytest.mark.asyncio
async def test_missing_token_rejected(client):
    response = await client.get("/v1/auth/me")
    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_invalid_token_rejected(client):
    response = await client.get("/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_employee_blocked_from_admin_routes(client, employee_headers):
    for path in ("/v1/users", "/v1/employees", "/v1/transactions"):
        response = await client.get(path, headers=employee_headers)
        assert response.status_code == 403, path


@pytest.mark.asyncio
async def test_password_change_revokes_old_token(client, admin_headers, employee_headers):
    response = await client.get("/v1/auth/me", headers=employee_headers)
    employee_id = response.json()["details"]["id"]

    response = await client.put(
        f"/v1/employees/{employee_id}", json={"password": "baru12345"}, headers=admin_headers
    )
    assert response.status_code == 200

    response = await client.get("/v1/auth/me", headers=employee_headers)
    assert response.status_code == 401

    response = await client.post("/v1/auth/login", json={"username": "budi", "password": "baru12345"})
    assert response.status_code == 200
    fresh = {"Authorization": f"Bearer {response.json()['accessToken']}"}
    response = await client.get("/v1/auth/me", headers=fresh)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_deleted_user_token_rejected(client, admin_headers):
    response = await client.post("/v1/users", json={"username": "finance2", "password": "secret123"}, headers=admin_headers)
    assert response.status_code == 201
    user_id = response.json()["id"]

    response = await client.post("/v1/auth/login", json={"username": "finance2", "password": "secret123"})
    headers = {"Authorization": f"Bearer {response.json()['accessToken']}"}

    response = await client.delete(f"/v1/users/{user_id}", headers=admin_headers)
    assert response.status_code == 204

    response = await client.get("/v1/auth/me", headers=headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_logout_revokes_only_that_token(client, admin_user, admin_headers):
    response = await client.post("/v1/auth/login", json={"username": "admin", "password": "admin123"})
    other = {"Authorization": f"Bearer {response.json()['accessToken']}"}

    response = await client.post("/v1/auth/logout", headers=admin_headers)
    assert response.status_code == 204

    response = await client.get("/v1/auth/me", headers=admin_headers)
    assert response.status_code == 401
    response = await client.get("/v1/auth/me", headers=other)
    assert response.status_code == 200
