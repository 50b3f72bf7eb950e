import pytest

BASE = "/api/v1/permissions"


@pytest.mark.asyncio
async def test_matrix_lists_every_role(client, admin_headers):
    res = await client.get(f"{BASE}/matrix", headers=admin_headers)
    assert res.status_code == 200
    roles = [r["role"] for r in res.json()]
    assert "SUPER_ADMIN" in roles and "CLUB_OWNER" in roles
    coach = next(r for r in res.json() if r["role"] == "COACH")
    finance = next(p for p in coach["permissions"] if p["module"] == "finance")
    assert finance["canView"] is False


@pytest.mark.asyncio
async def test_update_check_and_reset(client, admin_headers):
    params = {"role": "COACH", "module": "finance", "action": "view"}
    res = await client.get(f"{BASE}/check", params=params, headers=admin_headers)
    assert res.json()["allowed"] is False

    res = await client.put(f"{BASE}/matrix/COACH", json={"module": "finance", "action": "view", "enabled": True},
                           headers=admin_headers)
    assert res.status_code == 200

    res = await client.get(f"{BASE}/check", params=params, headers=admin_headers)
    assert res.json()["allowed"] is True

    res = await client.post(f"{BASE}/matrix/reset", headers=admin_headers)
    assert res.status_code == 200

    res = await client.get(f"{BASE}/check", params=params, headers=admin_headers)
    assert res.json()["allowed"] is False


@pytest.mark.asyncio
async def test_matrix_update_survives_store_reload(client, admin_headers):
    from app.main import app

    await client.put(f"{BASE}/matrix/JUDGE", json={"module": "reports", "action": "view", "enabled": True},
                     headers=admin_headers)
    app.state.permission_store = None

    res = await client.get(f"{BASE}/check", params={"role": "JUDGE", "module": "reports"}, headers=admin_headers)
    assert res.json()["allowed"] is True


@pytest.mark.asyncio
async def test_update_rejects_unknown_module(client, admin_headers):
    res = await client.put(f"{BASE}/matrix/COACH", json={"module": "ghost", "action": "view", "enabled": True},
                           headers=admin_headers)
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_ui_settings_partial_update(client, admin_headers):
    res = await client.put(f"{BASE}/ui-settings/PARENT", json={"primaryColor": "#123456"}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["primaryColor"] == "#123456"
    assert res.json()["accentColor"] == "#d946ef"

    res = await client.post(f"{BASE}/ui-settings/reset", headers=admin_headers)
    parent = next(s for s in res.json() if s["role"] == "PARENT")
    assert parent["primaryColor"] == "#a855f7"


@pytest.mark.asyncio
async def test_effective_view_while_simulating(client, admin_headers):
    res = await client.get(f"{BASE}/effective", headers={**admin_headers, "X-Simulate-Role": "SUPPLIER"})
    body = res.json()
    assert body["realRole"] == "SUPER_ADMIN"
    assert body["effectiveRole"] == "SUPPLIER"
    assert body["simulating"] is True
    assert body["sidebar"] == ["dashboard", "inventory", "profile", "digitalcard"]


@pytest.mark.asyncio
async def test_club_sidebar_override_applies_to_members(client, admin_headers, make_user):
    club_headers = await make_user("CLUB", "club.sidebar@example.com", organization_id="club-5")

    res = await client.get(f"{BASE}/club-sidebar/club-5", headers=club_headers)
    assert res.status_code == 404

    override = {"allowed": ["dashboard", "profile", "finance"], "added": ["events"]}
    res = await client.put(f"{BASE}/club-sidebar/club-5", json=override, headers=club_headers)
    assert res.status_code == 200

    res = await client.get(f"{BASE}/effective", headers=club_headers)
    assert res.json()["sidebar"] == ["dashboard", "profile", "finance", "events"]

    # other clubs are off limits
    res = await client.put(f"{BASE}/club-sidebar/club-6", json=override, headers=club_headers)
    assert res.status_code == 403

    res = await client.delete(f"{BASE}/club-sidebar/club-5", headers=club_headers)
    assert res.status_code == 204
    res = await client.get(f"{BASE}/club-sidebar/club-5", headers=admin_headers)
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_navbar_shortcuts(client, admin_headers):
    res = await client.put(f"{BASE}/navbar-shortcuts", json={"slot2": "ghost"}, headers=admin_headers)
    assert res.status_code == 400

    res = await client.put(f"{BASE}/navbar-shortcuts", json={"slot2": "scoring", "slot4": "profile"},
                           headers=admin_headers)
    assert res.status_code == 200

    res = await client.get(f"{BASE}/navbar-shortcuts", headers=admin_headers)
    assert res.json() == {"slot2": "scoring", "slot4": "profile"}


@pytest.mark.asyncio
async def test_matrix_writes_are_audited(client, admin_headers):
    await client.put(f"{BASE}/matrix/COACH", json={"module": "finance", "action": "edit", "enabled": True},
                     headers=admin_headers)
    res = await client.get("/api/v1/audit/system-logs", params={"event_type": "PERMISSION_UPDATED"},
                           headers=admin_headers)
    assert res.status_code == 200
    assert res.json()[0]["resource_id"] == "COACH"


@pytest.mark.asyncio
async def test_registry_endpoints(client, make_user):
    headers = await make_user("PARENT", "parent.registry@example.com")

    res = await client.get(f"{BASE}/modules", headers=headers)
    assert res.status_code == 200
    jersey = next(m for m in res.json() if m["name"] == "jersey")
    assert jersey["defaultRoles"] == ["SUPPLIER"]

    res = await client.get(f"{BASE}/modules/ghost", headers=headers)
    assert res.status_code == 404

    res = await client.get(f"{BASE}/roles", headers=headers)
    owner = next(r for r in res.json() if r["role"] == "CLUB_OWNER")
    assert owner["code"] == "02a"
