import pytest

from app.core.wire import (
    Explicit,
    Unrestricted,
    WireParseError,
    feature_gate,
    parse_config,
    parse_target_roles,
)
from app.models.enums import UserRole
from app.services.role_module_service import is_sub_module_enabled, toggle_sub_module

CODES = ["scoring", "training", "bleep"]


def test_target_roles_accepts_text_or_list():
    assert parse_target_roles('["ATHLETE", "coach"]') == [UserRole.ATHLETE, UserRole.COACH]
    assert parse_target_roles(["CLUB"]) == [UserRole.CLUB]
    assert parse_target_roles(None) == []


def test_target_roles_skips_unknown_names():
    assert parse_target_roles('["ATHLETE", "No.1"]') == [UserRole.ATHLETE]


@pytest.mark.parametrize("raw", ["not json", '{"role": "CLUB"}', "42"])
def test_target_roles_rejects_non_lists(raw):
    with pytest.raises(WireParseError):
        parse_target_roles(raw)


def test_parse_config_tolerates_garbage():
    assert parse_config('{"a": 1}') == {"a": 1}
    assert parse_config("{broken") == {}
    assert parse_config("[1, 2]") == {}
    assert parse_config(None) == {}


def test_feature_gate_missing_vs_empty():
    assert isinstance(feature_gate({}), Unrestricted)
    gate = feature_gate({"enabled_features": []})
    assert isinstance(gate, Explicit)
    assert gate.effective(CODES) == []


def test_feature_gate_non_list_is_unrestricted():
    assert isinstance(feature_gate({"enabled_features": "scoring"}), Unrestricted)


def test_first_toggle_makes_the_implicit_set_explicit():
    config = toggle_sub_module({}, CODES, "training")
    assert config["enabled_features"] == ["scoring", "bleep"]
    assert is_sub_module_enabled(True, config, "training") is False
    assert is_sub_module_enabled(True, config, "scoring") is True


def test_toggle_twice_restores_membership():
    config = {"enabled_features": ["scoring"], "theme": "dark"}
    once = toggle_sub_module(config, CODES, "bleep")
    twice = toggle_sub_module(once, CODES, "bleep")
    assert "bleep" in once["enabled_features"]
    assert set(twice["enabled_features"]) == {"scoring"}
    assert twice["theme"] == "dark"


def test_disabled_module_disables_every_sub_module():
    assert is_sub_module_enabled(False, {}, "scoring") is False
