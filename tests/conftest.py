import os
import tempfile

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# ------------------------------------------------------------------
# FORCE TESTING CONFIG
# Must be set BEFORE importing app.main so config.py and database.py
# pick up the throwaway SQLite file and the seeded admin credentials.
# ------------------------------------------------------------------
TEST_DB = os.path.join(tempfile.gettempdir(), "sip_access_test.db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB}"
os.environ["SECRET_KEY"] = "test-secret-key-with-enough-length-for-hs256"
os.environ["SUPER_ADMIN_EMAIL"] = "admin@example.com"
os.environ["SUPER_ADMIN_PASSWORD"] = "adminpass"
os.environ["ENV"] = "test"

from app.main import app  # noqa: E402
from app.core.database import drop_db, init_db  # noqa: E402
from app.core.seeding_logic import seed_all  # noqa: E402

ADMIN_CREDENTIALS = {"email": "admin@example.com", "password": "adminpass"}


@pytest_asyncio.fixture
async def db():
    """Fresh schema + seed data per test; stores reload lazily from it."""
    await drop_db()
    await init_db()
    await seed_all()
    app.state.permission_store = None
    app.state.ui_builder_store = None
    yield
    app.state.permission_store = None
    app.state.ui_builder_store = None
    await drop_db()


@pytest_asyncio.fixture
async def client(db):
    # ASGITransport does not fire startup events; the db fixture seeds instead
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


async def login(client, email, password):
    res = await client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['access_token']}"}


@pytest_asyncio.fixture
async def admin_headers(client):
    return await login(client, **ADMIN_CREDENTIALS)


@pytest_asyncio.fixture
async def make_user(client, admin_headers):
    """Create a user through the API and return auth headers for it."""

    async def _make(role, email, sip_id=None, organization_id=None, password="secret123"):
        payload = {
            "name": f"{role.title()} User",
            "email": email,
            "password": password,
            "role": role,
            "sip_id": sip_id,
            "organization_id": organization_id,
        }
        res = await client.post("/api/v1/auth/users", json=payload, headers=admin_headers)
        assert res.status_code == 201, res.text
        return await login(client, email, password)

    return _make
