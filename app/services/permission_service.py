# app/services/permission_service.py

import json
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from loguru import logger
from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from app.core.defaults import (
    get_default_permissions,
    get_default_role_permissions,
    get_default_ui_settings,
)
from app.core.exceptions import PersistenceError
from app.core.migrations import apply_migrations
from app.core.registry import is_registered, registered_only
from app.models.enums import ActionType, UserRole, parse_role
from app.models.settings_snapshot import SettingsSnapshot
from app.schemas.permissions import (
    ClubSidebarOverride,
    ModulePermission,
    NavbarShortcuts,
    RolePermissions,
    RoleUISettings,
    SidebarGroupConfig,
)

# ============================================================================
# STORAGE KEYS
# ============================================================================
PERMISSIONS_KEY = "sip_role_permissions_v7"
UI_SETTINGS_KEY = "sip_ui_settings_v7"
NAVBAR_SHORTCUTS_KEY = "navbar_shortcuts"
MIGRATIONS_KEY = "sip_data_migrations"


def club_sidebar_key(org_id: str) -> str:
    return f"sip_club_sidebar_{org_id}_v1"


_PERMISSIONS_ADAPTER = TypeAdapter(list[RolePermissions])
_UI_SETTINGS_ADAPTER = TypeAdapter(list[RoleUISettings])


# ============================================================================
# BACKENDS
# ============================================================================
class SnapshotBackend(ABC):
    """Key -> JSON text storage behind the permission and UI builder stores."""

    @abstractmethod
    async def read(self, key: str) -> Optional[str]: ...

    @abstractmethod
    async def write(self, key: str, value: str) -> None: ...

    @abstractmethod
    async def delete(self, key: str) -> None: ...


class MemoryBackend(SnapshotBackend):
    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.data: dict[str, str] = dict(initial or {})

    async def read(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def write(self, key: str, value: str) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)


class DatabaseBackend(SnapshotBackend):
    """Persists snapshots in the `settings_snapshots` table, one session per call."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def read(self, key: str) -> Optional[str]:
        try:
            async with self.session_factory() as session:
                row = await session.get(SettingsSnapshot, key)
                return row.value if row else None
        except SQLAlchemyError as e:
            logger.error(f"Snapshot read failed for '{key}': {e}")
            return None

    async def write(self, key: str, value: str) -> None:
        async with self.session_factory() as session:
            try:
                row = await session.get(SettingsSnapshot, key)
                if row:
                    row.value = value
                    row.updated_at = datetime.now(timezone.utc)
                else:
                    row = SettingsSnapshot(key=key, value=value)
                session.add(row)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.exception(f"Snapshot write failed for '{key}'")
                raise PersistenceError(f"Could not persist '{key}'") from e

    async def delete(self, key: str) -> None:
        async with self.session_factory() as session:
            try:
                row = await session.get(SettingsSnapshot, key)
                if row:
                    await session.delete(row)
                    await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.exception(f"Snapshot delete failed for '{key}'")
                raise PersistenceError(f"Could not delete '{key}'") from e


# ============================================================================
# PURE REDUCERS
# Both return a fresh list; no record is shared with the input.
# ============================================================================
def set_permission_flag(
    records: list[RolePermissions],
    role: UserRole,
    module: str,
    action: ActionType,
    enabled: bool,
) -> list[RolePermissions]:
    result = [r.model_copy(deep=True) for r in records]
    target = next((r for r in result if r.role == role), None)
    if target is None:
        target = get_default_role_permissions(role) or RolePermissions(role=role)
        result.append(target)

    perm = target.find(module)
    if perm is None:
        perm = ModulePermission(module=module)
        target.permissions.append(perm)
    setattr(perm, f"can_{ActionType(action).value}", bool(enabled))
    return result


def merge_ui_settings(
    records: list[RoleUISettings],
    role: UserRole,
    changes: dict[str, Any],
) -> list[RoleUISettings]:
    result = [r.model_copy(deep=True) for r in records]
    for index, record in enumerate(result):
        if record.role == role:
            break
    else:
        result.append(get_default_ui_settings(role).model_copy(update={"role": role}))
        index = len(result) - 1

    allowed = {k: v for k, v in changes.items() if v is not None and k in RoleUISettings.model_fields and k != "role"}
    merged = result[index].model_dump()
    merged.update(allowed)
    result[index] = RoleUISettings.model_validate(merged)
    return result


def resolve_sidebar(
    base: Iterable[str],
    groups: Optional[list[SidebarGroupConfig]] = None,
    org_override: Optional[ClubSidebarOverride] = None,
) -> list[str]:
    """
    Static/edited role default < role-admin group layout < organization override.
    Only registered names survive, first occurrence wins.
    """
    names = list(base)
    if groups is not None:
        names = [name for group in groups for name in group.all_modules()]
    if org_override is not None:
        if org_override.allowed is not None:
            allowed = set(org_override.allowed)
            names = [n for n in names if n in allowed]
        names.extend(org_override.added)
    return registered_only(names)


def _one_per_role(records: list, defaults: list) -> list:
    """Keep the first stored record per role; fill missing roles from defaults."""
    by_role = {}
    for record in records:
        by_role.setdefault(record.role, record)
    return [by_role.get(d.role, d) for d in defaults]


# ============================================================================
# STORE
# ============================================================================
class PermissionStore:
    """
    Owns the permission matrix and role UI settings.
    load() once, then every committed mutation is written through the backend.
    """

    def __init__(self, backend: SnapshotBackend):
        self.backend = backend
        self.permissions: list[RolePermissions] = get_default_permissions()
        self.ui_settings: list[RoleUISettings] = get_default_ui_settings()
        self.applied_migrations: list[str] = []
        self._migrations_pending = False

    # ---------------- lifecycle ----------------
    async def _read_json(self, key: str, adapter: TypeAdapter):
        raw = await self.backend.read(key)
        if raw is None:
            return None
        try:
            return adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed snapshot '{key}': {e.error_count()} error(s)")
            return None

    async def load(self) -> "PermissionStore":
        stored_perms = await self._read_json(PERMISSIONS_KEY, _PERMISSIONS_ADAPTER)
        stored_ui = await self._read_json(UI_SETTINGS_KEY, _UI_SETTINGS_ADAPTER)
        applied = await self._read_json(MIGRATIONS_KEY, TypeAdapter(list[str]))

        self.permissions = _one_per_role(stored_perms or [], get_default_permissions())
        self.ui_settings = _one_per_role(stored_ui or [], get_default_ui_settings())
        self.applied_migrations = list(applied or [])
        self._migrations_pending = False

        # Only snapshots that were actually read are written back. Defaults
        # standing in for a missing or unreadable snapshot stay in memory.
        if apply_migrations(self.permissions, self.ui_settings, self.applied_migrations):
            if stored_perms is not None:
                await self._save_permissions()
            if stored_ui is not None:
                await self._save_ui_settings()
            if stored_perms is None and stored_ui is None:
                self._migrations_pending = True
            else:
                await self._record_migrations()

        logger.info(
            f"Permission store loaded ({'snapshot' if stored_perms else 'defaults'}, "
            f"{len(self.applied_migrations)} migration(s) recorded)"
        )
        return self

    async def _record_migrations(self) -> None:
        await self.backend.write(MIGRATIONS_KEY, json.dumps(self.applied_migrations))
        self._migrations_pending = False

    async def _save_permissions(self) -> None:
        await self.backend.write(PERMISSIONS_KEY, _PERMISSIONS_ADAPTER.dump_json(self.permissions, by_alias=True).decode())
        if self._migrations_pending:
            await self._record_migrations()

    async def _save_ui_settings(self) -> None:
        await self.backend.write(UI_SETTINGS_KEY, _UI_SETTINGS_ADAPTER.dump_json(self.ui_settings, by_alias=True).decode())
        if self._migrations_pending:
            await self._record_migrations()

    # ---------------- queries ----------------
    def get_role_permissions(self, role) -> Optional[RolePermissions]:
        parsed = parse_role(role)
        for record in self.permissions:
            if record.role == parsed:
                return record.model_copy(deep=True)
        return None

    def has_permission(self, role, module: str, action: ActionType | str = ActionType.view) -> bool:
        parsed = parse_role(role)
        if parsed is None:
            return False
        record = next((r for r in self.permissions if r.role == parsed), None)
        if record is None:
            return False
        perm = record.find(module)
        if perm is None:
            return False
        try:
            return perm.allows(ActionType(action))
        except ValueError:
            return False

    def get_ui_settings(self, role) -> RoleUISettings:
        parsed = parse_role(role)
        for record in self.ui_settings:
            if record.role == parsed:
                return record.model_copy(deep=True)
        return get_default_ui_settings(parsed)

    async def effective_sidebar(
        self,
        role,
        org_id: Optional[str] = None,
        sidebar_groups: Optional[list[SidebarGroupConfig]] = None,
    ) -> list[str]:
        parsed = parse_role(role)
        if parsed is None:
            return []

        override = None
        if org_id:
            try:
                override = await self.get_org_sidebar(org_id)
            except Exception:
                logger.exception(f"Club sidebar override for '{org_id}' unavailable; using role sidebar")

        base = self.get_ui_settings(parsed).sidebar_modules
        return resolve_sidebar(base, sidebar_groups, override)

    # ---------------- mutations ----------------
    async def update_permission(self, role, module: str, action: ActionType | str, enabled: bool) -> RolePermissions:
        parsed = parse_role(role)
        if parsed is None:
            raise ValueError(f"Unknown role '{role}'")
        if not is_registered(module):
            raise ValueError(f"Unknown module '{module}'")

        self.permissions = set_permission_flag(self.permissions, parsed, module, ActionType(action), enabled)
        await self._save_permissions()
        return self.get_role_permissions(parsed)

    async def update_ui_settings(self, role, **changes) -> RoleUISettings:
        parsed = parse_role(role)
        if parsed is None:
            raise ValueError(f"Unknown role '{role}'")

        self.ui_settings = merge_ui_settings(self.ui_settings, parsed, changes)
        await self._save_ui_settings()
        return self.get_ui_settings(parsed)

    async def reset_permissions(self) -> list[RolePermissions]:
        self.permissions = get_default_permissions()
        await self._save_permissions()
        return get_default_permissions()

    async def reset_ui_settings(self) -> list[RoleUISettings]:
        self.ui_settings = get_default_ui_settings()
        await self._save_ui_settings()
        return get_default_ui_settings()

    # ---------------- club sidebar overrides ----------------
    async def get_org_sidebar(self, org_id: str) -> Optional[ClubSidebarOverride]:
        raw = await self.backend.read(club_sidebar_key(org_id))
        if raw is None:
            return None
        try:
            value = json.loads(raw)
            # legacy form: a bare list of allowed module names
            if isinstance(value, list):
                return ClubSidebarOverride(allowed=[str(v) for v in value])
            return ClubSidebarOverride.model_validate(value)
        except (ValueError, ValidationError):
            logger.warning(f"Ignoring malformed club sidebar for '{org_id}'")
            return None

    async def set_org_sidebar(self, org_id: str, override: ClubSidebarOverride) -> ClubSidebarOverride:
        await self.backend.write(club_sidebar_key(org_id), override.model_dump_json(by_alias=True))
        return override

    async def clear_org_sidebar(self, org_id: str) -> None:
        await self.backend.delete(club_sidebar_key(org_id))

    # ---------------- navbar shortcuts ----------------
    async def get_navbar_shortcuts(self) -> NavbarShortcuts:
        raw = await self.backend.read(NAVBAR_SHORTCUTS_KEY)
        if raw:
            try:
                return NavbarShortcuts.model_validate_json(raw)
            except ValidationError:
                logger.warning("Ignoring malformed navbar shortcuts")
        return NavbarShortcuts()

    async def set_navbar_shortcuts(self, shortcuts: NavbarShortcuts) -> NavbarShortcuts:
        for slot in (shortcuts.slot2, shortcuts.slot4):
            if slot is not None and not is_registered(slot):
                raise ValueError(f"Unknown module '{slot}'")
        await self.backend.write(NAVBAR_SHORTCUTS_KEY, shortcuts.model_dump_json(by_alias=True))
        return shortcuts
