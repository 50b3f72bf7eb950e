import pytest
from sqlmodel import select

from app.core.database import AsyncSessionLocal
from app.models.system_audit import SystemAuditLog
from app.services.audit_service import log_system_event


@pytest.mark.asyncio
async def test_log_system_event_writes_a_timestamped_row(db):
    await log_system_event(
        event_type="SIDEBAR_RESET",
        actor_role="SUPER_ADMIN",
        resource_type="SidebarRoleConfig",
        resource_id="ATHLETE",
    )

    async with AsyncSessionLocal() as session:
        rows = (await session.execute(select(SystemAuditLog))).scalars().all()

    assert len(rows) == 1
    assert rows[0].event_type == "SIDEBAR_RESET"
    assert rows[0].timestamp is not None


@pytest.mark.asyncio
async def test_failed_login_is_audited(client, admin_headers):
    await client.post("/api/v1/auth/login", json={"email": "admin@example.com", "password": "wrong"})

    res = await client.get("/api/v1/audit/system-logs", params={"event_type": "LOGIN_FAILED"},
                           headers=admin_headers)
    assert res.status_code == 200
    assert res.json()[0]["status"] == "FAILURE"
