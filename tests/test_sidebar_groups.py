import pytest

from app.schemas.permissions import SidebarGroupConfig
from app.services.sidebar_service import parse_groups
from app.services.ui_builder_service import (
    available_modules,
    create_group,
    delete_group,
    move_module,
    remove_module,
    rename_group,
    reorder_module,
)


def make_groups():
    return [
        SidebarGroupConfig(id="general", label="General", modules=["dashboard", "profile"]),
        SidebarGroupConfig(id="sport", label="Sport", modules=["scoring", "schedules", "attendance"]),
        SidebarGroupConfig(id="ops", label="Ops", modules=["jersey"],
                           nested_modules={"jersey": ["shipping"]}),
    ]


def placements(groups):
    names = [n for g in groups for n in g.all_modules()]
    assert len(names) == len(set(names))
    return names


def test_move_between_groups_keeps_each_module_in_one_group():
    groups = make_groups()
    moved = move_module(groups, "scoring", "general", 1)
    assert moved[0].modules == ["dashboard", "scoring", "profile"]
    assert "scoring" not in moved[1].modules
    placements(moved)
    # input untouched
    assert groups[1].modules == ["scoring", "schedules", "attendance"]


def test_move_from_pool_appends_when_index_missing():
    moved = move_module(make_groups(), "finance", "sport")
    assert moved[1].modules[-1] == "finance"
    assert "finance" not in available_modules(moved)


def test_move_to_pool_detaches_nested_children_too():
    moved = move_module(make_groups(), "shipping", None)
    assert moved[2].nested_modules == {"jersey": []}
    assert "shipping" in available_modules(moved)
    assert remove_module(make_groups(), "shipping") == moved


def test_moving_a_parent_carries_its_nested_children():
    moved = move_module(make_groups(), "jersey", "general", 0)
    assert moved[0].modules[0] == "jersey"
    assert moved[0].nested_modules == {"jersey": ["shipping"]}
    assert moved[2].modules == []
    assert moved[2].nested_modules is None
    placements(moved)


def test_parent_sent_to_pool_releases_its_children():
    moved = remove_module(make_groups(), "jersey")
    assert moved[2].nested_modules is None
    assert {"jersey", "shipping"} <= set(available_modules(moved))


def test_move_into_unknown_group_raises():
    with pytest.raises(ValueError):
        move_module(make_groups(), "scoring", "nowhere")


def test_reorder_within_group():
    reordered = reorder_module(make_groups(), "sport", 0, 2)
    assert reordered[1].modules == ["schedules", "attendance", "scoring"]


def test_reorder_clamps_target_and_rejects_bad_source():
    assert reorder_module(make_groups(), "sport", 2, 99)[1].modules == ["scoring", "schedules", "attendance"]
    with pytest.raises(ValueError):
        reorder_module(make_groups(), "sport", 5, 0)


def test_group_lifecycle():
    groups = create_group(make_groups(), "Club Tools", icon="Wrench")
    assert groups[-1].id == "club_tools"
    with pytest.raises(ValueError):
        create_group(groups, "Club Tools")

    groups = rename_group(groups, "club_tools", "Tools")
    assert groups[-1].label == "Tools"

    groups = delete_group(groups, "sport")
    assert "scoring" in available_modules(groups)
    with pytest.raises(ValueError):
        delete_group(groups, "sport")


def test_parse_groups_accepts_json_text():
    groups = parse_groups('[{"id": "a", "label": "A", "modules": ["dashboard"]}]')
    assert groups[0].modules == ["dashboard"]


@pytest.mark.parametrize("raw", [
    "not json",
    '{"id": "a"}',
    [{"id": "a", "label": "A", "modules": ["dashboard"]}, {"id": "b", "label": "B", "modules": ["dashboard"]}],
    [{"id": "a", "label": "A"}, {"id": "a", "label": "Again"}],
])
def test_parse_groups_rejects_invalid_layouts(raw):
    with pytest.raises(ValueError):
        parse_groups(raw)
