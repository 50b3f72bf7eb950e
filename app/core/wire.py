# app/core/wire.py

import json
from dataclasses import dataclass
from typing import Any, Iterable, Union

from loguru import logger

from app.models.enums import parse_role, UserRole

# ------------------------------------------------------------
# BOUNDARY PARSING
# `targetRoles` and `config` arrive either as JSON text or as
# already-decoded values. Everything past this module sees the
# canonical form only.
# ------------------------------------------------------------


class WireParseError(ValueError):
    pass


def parse_target_roles(raw: Union[str, Iterable, None]) -> list[UserRole]:
    """
    Canonical role list for a catalog module.
    Raises WireParseError when the value is not a list; unknown role
    names inside a valid list are skipped.
    """
    value = raw
    if raw is None:
        return []
    if isinstance(raw, (bytes, str)):
        try:
            value = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise WireParseError(f"targetRoles is not valid JSON: {e}") from e

    if not isinstance(value, (list, tuple)):
        raise WireParseError("targetRoles must be a list")

    roles = []
    for item in value:
        role = parse_role(item)
        if role is not None and role not in roles:
            roles.append(role)
    return roles


def parse_config(raw: Union[str, dict, None]) -> dict[str, Any]:
    """Config blob as a dict. Malformed or non-object input reads as {}."""
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return dict(raw)
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Discarding malformed module config: {!r}", raw)
        return {}
    if not isinstance(value, dict):
        logger.warning("Module config is not an object: {!r}", raw)
        return {}
    return value


def dump_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


# ------------------------------------------------------------
# SUB-MODULE GATE
# Missing `enabled_features` -> every sub-module is on.
# Present (even empty) -> only the listed codes are on.
# ------------------------------------------------------------

ENABLED_FEATURES_KEY = "enabled_features"


@dataclass(frozen=True)
class Unrestricted:
    def allows(self, code: str) -> bool:
        return True

    def effective(self, all_codes: Iterable[str]) -> list[str]:
        return list(all_codes)


@dataclass(frozen=True)
class Explicit:
    codes: frozenset

    def allows(self, code: str) -> bool:
        return code in self.codes

    def effective(self, all_codes: Iterable[str]) -> list[str]:
        return [c for c in all_codes if c in self.codes]


FeatureGate = Union[Unrestricted, Explicit]


def feature_gate(config: dict[str, Any]) -> FeatureGate:
    if ENABLED_FEATURES_KEY not in config:
        return Unrestricted()
    listed = config.get(ENABLED_FEATURES_KEY)
    if not isinstance(listed, list):
        logger.warning("Ignoring non-list enabled_features: {!r}", listed)
        return Unrestricted()
    return Explicit(frozenset(str(c) for c in listed))
