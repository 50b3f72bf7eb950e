import uuid

import pytest

from app.core.exceptions import SimulationNotAllowedError
from app.models.enums import UserRole
from app.models.user import User
from app.services.permission_service import MemoryBackend, PermissionStore
from app.services.simulation_service import SimulationController, SimulationState


def make_user(role, sip_id=None, organization_id=None):
    return User(
        id=uuid.uuid4(),
        sip_id=sip_id,
        name=f"{role.value} person",
        email=f"{role.value.lower()}@example.com",
        password_hash="x",
        role=role,
        organization_id=organization_id,
    )


def lookup_from(*users):
    by_sip = {u.sip_id: u for u in users}

    async def lookup(sip_id):
        return by_sip.get(sip_id)

    return lookup


def test_role_simulation_and_exit():
    sim = SimulationController(make_user(UserRole.SUPER_ADMIN))
    assert sim.state == SimulationState.NORMAL

    sim.set_simulated_role("coach")
    assert sim.state == SimulationState.SIMULATING_ROLE
    assert sim.effective_role == UserRole.COACH

    sim.clear()
    assert sim.effective_role == UserRole.SUPER_ADMIN
    assert sim.is_simulating is False


def test_non_admin_cannot_simulate():
    sim = SimulationController(make_user(UserRole.COACH))
    with pytest.raises(SimulationNotAllowedError):
        sim.set_simulated_role(UserRole.ATHLETE)
    assert sim.effective_role == UserRole.COACH


def test_unknown_role_is_rejected():
    sim = SimulationController(make_user(UserRole.SUPER_ADMIN))
    with pytest.raises(ValueError):
        sim.set_simulated_role("WIZARD")


@pytest.mark.asyncio
async def test_user_simulation_takes_over_role_and_organization():
    club = make_user(UserRole.CLUB, sip_id="02.0001.0001", organization_id="club-7")
    sim = SimulationController(make_user(UserRole.SUPER_ADMIN), lookup_from(club))

    found = await sim.set_simulated_user("02.0001.0001")
    assert found is club
    assert sim.state == SimulationState.SIMULATING_USER
    assert sim.effective_role == UserRole.CLUB
    assert sim.organization_id == "club-7"
    assert sim.displayed_user()["name"] == club.name


@pytest.mark.asyncio
async def test_failed_lookup_keeps_role_label_and_real_profile():
    admin = make_user(UserRole.SUPER_ADMIN)
    sim = SimulationController(admin, lookup_from())
    sim.set_simulated_role(UserRole.ATHLETE)

    assert await sim.set_simulated_user("99.9999.9999") is None
    assert sim.state == SimulationState.SIMULATING_USER
    assert sim.effective_role == UserRole.ATHLETE
    shown = sim.displayed_user()
    assert shown["email"] == admin.email
    assert shown["role"] == UserRole.ATHLETE


@pytest.mark.asyncio
async def test_lookup_errors_are_treated_as_not_found():
    async def broken(_):
        raise RuntimeError("directory offline")

    sim = SimulationController(make_user(UserRole.SUPER_ADMIN), broken)
    assert await sim.set_simulated_user("04.0000.0001") is None


@pytest.mark.asyncio
async def test_simulated_sidebar_is_the_target_roles_sidebar():
    store = await PermissionStore(MemoryBackend()).load()
    sim = SimulationController(make_user(UserRole.SUPER_ADMIN))
    sim.set_simulated_role(UserRole.JUDGE)
    assert await sim.effective_sidebar(store) == store.get_ui_settings(UserRole.JUDGE).sidebar_modules


@pytest.mark.asyncio
async def test_failed_lookup_does_not_keep_previous_targets_role():
    coach = make_user(UserRole.COACH, sip_id="06.0001.0001")
    sim = SimulationController(make_user(UserRole.SUPER_ADMIN), lookup_from(coach))
    sim.set_simulated_role(UserRole.JUDGE)

    await sim.set_simulated_user("06.0001.0001")
    assert sim.effective_role == UserRole.COACH

    assert await sim.set_simulated_user("99.9999.9999") is None
    assert sim.effective_role == UserRole.JUDGE


@pytest.mark.asyncio
async def test_clear_after_user_simulation_restores_real_sidebar():
    store = await PermissionStore(MemoryBackend()).load()
    coach = make_user(UserRole.COACH, sip_id="06.0001.0001", organization_id="club-2")
    sim = SimulationController(make_user(UserRole.SUPER_ADMIN), lookup_from(coach))
    before = await sim.effective_sidebar(store)

    sim.set_simulated_role(UserRole.JUDGE)
    await sim.set_simulated_user("06.0001.0001")
    assert await sim.effective_sidebar(store) != before

    sim.clear()
    assert sim.state == SimulationState.NORMAL
    assert sim.effective_role == UserRole.SUPER_ADMIN
    assert sim.organization_id is None
    assert sim.displayed_user()["simulated"] is False
    assert await sim.effective_sidebar(store) == before
