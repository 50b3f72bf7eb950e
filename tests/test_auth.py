import pytest


@pytest.mark.asyncio
async def test_root_health_check(client):
    res = await client.get("/")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_admin_login(client):
    payload = {"email": "admin@example.com", "password": "adminpass"}
    res = await client.post("/api/v1/auth/login", json=payload)
    assert res.status_code == 200
    body = res.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == "SUPER_ADMIN"
    assert body["user"]["sip_id"] == "00.0000.0001"


@pytest.mark.asyncio
async def test_login_with_wrong_password(client):
    res = await client.post("/api/v1/auth/login", json={"email": "admin@example.com", "password": "nope"})
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_me_requires_token(client):
    res = await client.get("/api/v1/auth/me")
    assert res.status_code in (401, 403)


@pytest.mark.asyncio
async def test_club_user_needs_organization(client, admin_headers):
    payload = {"name": "Club", "email": "club.noorg@example.com", "password": "secret123", "role": "CLUB"}
    res = await client.post("/api/v1/auth/users", json=payload, headers=admin_headers)
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_duplicate_email_rejected(client, admin_headers, make_user):
    await make_user("ATHLETE", "dup@example.com")
    payload = {"name": "Dup", "email": "dup@example.com", "password": "secret123", "role": "ATHLETE"}
    res = await client.post("/api/v1/auth/users", json=payload, headers=admin_headers)
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_simulation_headers_change_displayed_user(client, admin_headers, make_user):
    await make_user("ATHLETE", "archer@example.com", sip_id="04.3174.0001")

    res = await client.get("/api/v1/auth/me", headers={**admin_headers, "X-Simulate-Role": "coach"})
    assert res.json()["role"] == "COACH"
    assert res.json()["simulated"] is True

    res = await client.get("/api/v1/auth/me", headers={**admin_headers, "X-Simulate-User": "04.3174.0001"})
    assert res.json()["email"] == "archer@example.com"
    assert res.json()["role"] == "ATHLETE"

    # unknown member: real profile, simulated flag still set
    res = await client.get("/api/v1/auth/me", headers={**admin_headers, "X-Simulate-User": "99.0000.0000"})
    assert res.json()["email"] == "admin@example.com"
    assert res.json()["simulated"] is True


@pytest.mark.asyncio
async def test_non_admin_simulation_is_forbidden(client, make_user):
    headers = await make_user("COACH", "coach.sim@example.com")
    res = await client.get("/api/v1/auth/me", headers={**headers, "X-Simulate-Role": "ATHLETE"})
    assert res.status_code == 403


@pytest.mark.asyncio
async def test_simulation_lookups(client, admin_headers, make_user):
    await make_user("JUDGE", "judge@example.com", sip_id="07.0001.0001")

    res = await client.get("/api/v1/auth/simulate/judge", headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["email"] == "judge@example.com"

    res = await client.get("/api/v1/auth/simulate/PARENT", headers=admin_headers)
    assert res.status_code == 404

    res = await client.get("/api/v1/auth/simulate-user/07.0001.0001", headers=admin_headers)
    assert res.json()["role"] == "JUDGE"
