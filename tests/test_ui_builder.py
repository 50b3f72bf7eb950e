import re

import pytest

from app.models.enums import LayoutSection, ModuleLayoutType, UIElementType, UserRole
from app.schemas.ui_builder import CustomModuleDraft, UIElementCreate
from app.services.permission_service import MemoryBackend
from app.services.ui_builder_service import (
    UI_BUILDER_KEY,
    UIBuilderStore,
    build_custom_module,
    generate_element_id,
    generate_module_id,
)


async def fresh_store(backend=None):
    return await UIBuilderStore(backend or MemoryBackend()).load()


def test_generated_ids_have_expected_shape():
    assert re.fullmatch(r"elem_\d+_[a-z0-9]{9}", generate_element_id())
    assert generate_module_id().startswith("custom_")


def test_custom_module_name_is_slugged_and_ordered_last():
    draft = CustomModuleDraft(type=ModuleLayoutType.table, name="Equipment  Log", label="Equipment Log",
                              data_source="inventory")
    module = build_custom_module(draft, existing_count=2)
    assert module.name == "equipment_log"
    assert module.order == 3
    assert module.visible is True


def test_custom_module_draft_validation():
    with pytest.raises(ValueError):
        CustomModuleDraft(type="table", name="  ", label="x")
    with pytest.raises(ValueError):
        CustomModuleDraft(type="table", name="x", label="x", data_source="weather")


@pytest.mark.asyncio
async def test_default_settings_seed_module_layouts():
    store = await fresh_store()
    athlete = store.get_role_settings(UserRole.ATHLETE)
    dashboard = next(m for m in athlete.modules if m.module_id == "dashboard")
    assert dashboard.layout.left_title[0].config["content"].startswith("Welcome back")
    assert athlete.custom_modules == []


@pytest.mark.asyncio
async def test_layout_element_add_and_remove():
    backend = MemoryBackend()
    store = await fresh_store(backend)
    element = UIElementCreate(type=UIElementType.text, config={"content": "Hi", "style": "body"})

    updated = await store.add_layout_element(UserRole.COACH, "athletes", LayoutSection.middleTitle, element)
    middle = next(m for m in updated.modules if m.module_id == "athletes").layout.middle_title
    assert len(middle) == 1 and middle[0].id.startswith("elem_")
    assert UI_BUILDER_KEY in backend.data

    removed = await store.remove_layout_element(UserRole.COACH, "athletes", LayoutSection.middleTitle, middle[0].id)
    assert next(m for m in removed.modules if m.module_id == "athletes").layout.middle_title == []

    with pytest.raises(ValueError):
        await store.remove_layout_element(UserRole.COACH, "athletes", LayoutSection.middleTitle, "elem_missing")


@pytest.mark.asyncio
async def test_custom_module_toggle_and_delete_survive_reload():
    backend = MemoryBackend()
    store = await fresh_store(backend)
    draft = CustomModuleDraft(type=ModuleLayoutType.calendar, name="Camp Days", label="Camp Days")
    module = await store.add_custom_module(UserRole.CLUB, draft)

    toggled = await store.toggle_custom_module(UserRole.CLUB, module.id)
    assert toggled.visible is False

    reloaded = await fresh_store(backend)
    assert reloaded.get_role_settings(UserRole.CLUB).custom_modules[0].visible is False

    await reloaded.delete_custom_module(UserRole.CLUB, module.id)
    assert reloaded.get_role_settings(UserRole.CLUB).custom_modules == []
    with pytest.raises(ValueError):
        await reloaded.delete_custom_module(UserRole.CLUB, module.id)


@pytest.mark.asyncio
async def test_reset_role_restores_defaults_only_for_that_role():
    store = await fresh_store()
    draft = CustomModuleDraft(type=ModuleLayoutType.deck, name="Deck", label="Deck")
    await store.add_custom_module(UserRole.CLUB, draft)
    await store.add_custom_module(UserRole.COACH, draft)

    await store.reset_role_settings(UserRole.CLUB)
    assert store.get_role_settings(UserRole.CLUB).custom_modules == []
    assert len(store.get_role_settings(UserRole.COACH).custom_modules) == 1


@pytest.mark.asyncio
async def test_malformed_document_loads_defaults():
    store = await fresh_store(MemoryBackend({UI_BUILDER_KEY: "[]"}))
    assert len(store.config.settings) == len(UserRole)


# ------------------------------------------------------------------
# API
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_ui_builder_routes(client, admin_headers):
    res = await client.get("/api/v1/ui-builder/coach", headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["role"] == "COACH"

    res = await client.post(
        "/api/v1/ui-builder/COACH/custom-modules",
        json={"type": "table", "name": "Bow Rack", "label": "Bow Rack", "dataSource": "inventory"},
        headers=admin_headers,
    )
    assert res.status_code == 201
    module_id = res.json()["id"]
    assert res.json()["name"] == "bow_rack"

    res = await client.post(f"/api/v1/ui-builder/COACH/custom-modules/{module_id}/toggle", headers=admin_headers)
    assert res.json()["visible"] is False

    res = await client.delete(f"/api/v1/ui-builder/COACH/custom-modules/{module_id}", headers=admin_headers)
    assert res.status_code == 204

    res = await client.post(
        "/api/v1/ui-builder/COACH/modules/dashboard/layout/rightTitle",
        json={"type": "icon", "config": {"name": "Bell"}},
        headers=admin_headers,
    )
    assert res.status_code == 200

    res = await client.get("/api/v1/ui-builder/WIZARD", headers=admin_headers)
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_ui_builder_writes_require_super_admin(client, make_user):
    headers = await make_user("COACH", "coach.builder@example.com")
    res = await client.post("/api/v1/ui-builder/reset", headers=headers)
    assert res.status_code == 403
