import json

import pytest

from app.core.defaults import get_default_permissions, get_default_ui_settings
from app.core.exceptions import PersistenceError
from app.core.migrations import MIGRATIONS, PostHocModuleAddition, apply_migrations
from app.models.enums import ActionType, UserRole
from app.schemas.permissions import ClubSidebarOverride, NavbarShortcuts, SidebarGroupConfig
from app.services.permission_service import (
    MIGRATIONS_KEY,
    NAVBAR_SHORTCUTS_KEY,
    PERMISSIONS_KEY,
    UI_SETTINGS_KEY,
    MemoryBackend,
    PermissionStore,
    club_sidebar_key,
    resolve_sidebar,
    set_permission_flag,
)


async def fresh_store(initial=None):
    return await PermissionStore(MemoryBackend(initial)).load()


class FailingBackend(MemoryBackend):
    async def write(self, key, value):
        raise PersistenceError(f"Could not write '{key}'")


class UnreadableBackend(MemoryBackend):
    """Reads come back empty while `reads_fail` is set, as during a database outage."""

    reads_fail = False

    async def read(self, key):
        if self.reads_fail:
            return None
        return await super().read(key)


# ------------------------------------------------------------------
# QUERIES
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_has_permission_unknown_module_or_role_is_false():
    store = await fresh_store()
    assert store.has_permission(UserRole.ATHLETE, "no_such_module") is False
    assert store.has_permission("NOT_A_ROLE", "dashboard") is False
    assert store.has_permission(UserRole.ATHLETE, "dashboard", "fly") is False


@pytest.mark.asyncio
async def test_has_permission_is_case_insensitive_on_role():
    store = await fresh_store()
    assert store.has_permission("athlete", "scoring", "create") is True


@pytest.mark.asyncio
async def test_effective_sidebar_only_contains_registered_names():
    store = await fresh_store()
    await store.update_ui_settings(UserRole.JUDGE, sidebar_modules=["scoring", "ghost", "profile", "scoring"])
    assert await store.effective_sidebar(UserRole.JUDGE) == ["scoring", "profile"]


@pytest.mark.asyncio
async def test_effective_sidebar_unknown_role_is_empty():
    store = await fresh_store()
    assert await store.effective_sidebar("WIZARD") == []


@pytest.mark.asyncio
async def test_effective_sidebar_precedence():
    store = await fresh_store()
    groups = [SidebarGroupConfig(id="g", label="G", modules=["dashboard", "scoring", "finance"])]
    await store.set_org_sidebar("club-1", ClubSidebarOverride(allowed=["dashboard", "finance"], added=["inventory"]))

    sidebar = await store.effective_sidebar(UserRole.CLUB, "club-1", groups)
    assert sidebar == ["dashboard", "finance", "inventory"]


def test_resolve_sidebar_empty_group_layout_hides_everything():
    assert resolve_sidebar(["dashboard", "profile"], groups=[]) == []


# ------------------------------------------------------------------
# MUTATIONS
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_update_permission_persists_through_backend():
    backend = MemoryBackend()
    store = await PermissionStore(backend).load()
    await store.update_permission(UserRole.COACH, "finance", ActionType.view, True)

    reloaded = await PermissionStore(backend).load()
    assert reloaded.has_permission(UserRole.COACH, "finance", "view") is True


@pytest.mark.asyncio
async def test_update_permission_rejects_unknown_module():
    store = await fresh_store()
    with pytest.raises(ValueError):
        await store.update_permission(UserRole.COACH, "ghost", "view", True)


def test_set_permission_flag_does_not_mutate_input():
    records = get_default_permissions()
    updated = set_permission_flag(records, UserRole.COACH, "finance", ActionType.edit, True)
    coach_before = next(r for r in records if r.role == UserRole.COACH)
    coach_after = next(r for r in updated if r.role == UserRole.COACH)
    assert coach_before.find("finance").can_edit is False
    assert coach_after.find("finance").can_edit is True


@pytest.mark.asyncio
async def test_reset_is_idempotent():
    store = await fresh_store()
    await store.update_permission(UserRole.ATHLETE, "admin", "view", True)
    first = await store.reset_permissions()
    second = await store.reset_permissions()
    assert first == second == get_default_permissions()
    assert store.has_permission(UserRole.ATHLETE, "admin") is False


@pytest.mark.asyncio
async def test_update_ui_settings_merges_partial_changes():
    store = await fresh_store()
    before = store.get_ui_settings(UserRole.PARENT)
    after = await store.update_ui_settings(UserRole.PARENT, primary_color="#000000")
    assert after.primary_color == "#000000"
    assert after.accent_color == before.accent_color
    assert after.sidebar_modules == before.sidebar_modules


@pytest.mark.asyncio
async def test_failed_write_surfaces_but_keeps_memory_state():
    # migrations already recorded, so load() itself does not write
    backend = FailingBackend({MIGRATIONS_KEY: json.dumps([m.id for m in MIGRATIONS])})
    store = await PermissionStore(backend).load()
    with pytest.raises(PersistenceError):
        await store.update_permission(UserRole.COACH, "finance", "view", True)
    assert store.has_permission(UserRole.COACH, "finance") is True


# ------------------------------------------------------------------
# LOAD / MIGRATIONS
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_malformed_snapshot_falls_back_to_defaults():
    store = await fresh_store({PERMISSIONS_KEY: "{not json", UI_SETTINGS_KEY: json.dumps([{"role": 1}])})
    assert store.has_permission(UserRole.ATHLETE, "scoring", "create") is True
    assert store.get_ui_settings(UserRole.EO).sidebar_modules == get_default_ui_settings(UserRole.EO).sidebar_modules


@pytest.mark.asyncio
async def test_old_snapshot_gets_events_for_event_organizer_once():
    old_ui = get_default_ui_settings()
    for entry in old_ui:
        if entry.role == UserRole.EO:
            entry.sidebar_modules.remove("events")
    backend = MemoryBackend({
        UI_SETTINGS_KEY: json.dumps([e.model_dump(mode="json", by_alias=True) for e in old_ui]),
    })

    store = await PermissionStore(backend).load()
    assert "events" in store.get_ui_settings(UserRole.EO).sidebar_modules
    assert json.loads(await backend.read(MIGRATIONS_KEY)) == [m.id for m in MIGRATIONS]

    # an admin removes it again; a reload must not bring it back
    sidebar = [m for m in store.get_ui_settings(UserRole.EO).sidebar_modules if m != "events"]
    await store.update_ui_settings(UserRole.EO, sidebar_modules=sidebar)
    reloaded = await PermissionStore(backend).load()
    assert "events" not in reloaded.get_ui_settings(UserRole.EO).sidebar_modules


@pytest.mark.asyncio
async def test_unreadable_snapshot_is_not_overwritten_by_defaults():
    backend = UnreadableBackend()
    store = await PermissionStore(backend).load()
    await store.update_permission(UserRole.COACH, "finance", ActionType.view, True)
    saved = dict(backend.data)

    backend.reads_fail = True
    degraded = await PermissionStore(backend).load()
    assert degraded.has_permission(UserRole.COACH, "finance") is False
    assert backend.data == saved

    backend.reads_fail = False
    reloaded = await PermissionStore(backend).load()
    assert reloaded.has_permission(UserRole.COACH, "finance") is True


@pytest.mark.asyncio
async def test_fresh_store_records_migrations_with_its_first_save():
    backend = MemoryBackend()
    store = await PermissionStore(backend).load()
    assert MIGRATIONS_KEY not in backend.data

    await store.update_ui_settings(UserRole.PARENT, primary_color="#000000")
    assert json.loads(backend.data[MIGRATIONS_KEY]) == [m.id for m in MIGRATIONS]


def test_apply_migrations_skips_unregistered_modules():
    applied = []
    steps = [PostHocModuleAddition(id="x", role=UserRole.EO, module="ghost")]
    assert apply_migrations(get_default_permissions(), get_default_ui_settings(), applied, steps) == []
    assert applied == []


# ------------------------------------------------------------------
# CLUB OVERRIDES / SHORTCUTS
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_legacy_club_sidebar_list_reads_as_allowed():
    store = await fresh_store({club_sidebar_key("club-9"): json.dumps(["dashboard", "finance"])})
    override = await store.get_org_sidebar("club-9")
    assert override.allowed == ["dashboard", "finance"]
    assert override.added == []


@pytest.mark.asyncio
async def test_navbar_shortcuts_validate_module_names():
    backend = MemoryBackend()
    store = await PermissionStore(backend).load()
    with pytest.raises(ValueError):
        await store.set_navbar_shortcuts(NavbarShortcuts(slot2="ghost"))

    await store.set_navbar_shortcuts(NavbarShortcuts(slot2="scoring", slot4="profile"))
    assert NAVBAR_SHORTCUTS_KEY in backend.data
    assert (await store.get_navbar_shortcuts()).slot4 == "profile"
