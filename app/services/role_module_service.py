# app/services/role_module_service.py

from datetime import datetime, timezone
from typing import Any, Iterable, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.exceptions import FoundationModuleLockedError, SystemModuleNotFoundError
from app.core.wire import (
    ENABLED_FEATURES_KEY,
    Explicit,
    WireParseError,
    dump_json,
    feature_gate,
    parse_config,
    parse_target_roles,
)
from app.models.enums import ModuleCategory, ModuleType, UserRole, parse_role
from app.models.module_config import OrgModuleConfig, RoleModuleConfig
from app.models.system_module import ModuleOption, SubModule, SystemModule
from app.schemas.system_module import (
    ModuleOptionRead,
    RoleModuleRead,
    SubModuleRead,
    SystemModuleRead,
)


# ============================================================================
# SUB-MODULE TOGGLE (pure)
# ============================================================================
def toggle_sub_module(config: dict[str, Any], sub_module_codes: Iterable[str], code: str) -> dict[str, Any]:
    """
    Flip one sub-module. Without `enabled_features` every code counts as
    enabled, so the first toggle turns the implicit set into an explicit list.
    """
    gate = feature_gate(config)
    if isinstance(gate, Explicit):
        current = [str(c) for c in config[ENABLED_FEATURES_KEY]]
    else:
        current = list(sub_module_codes)

    if code in current:
        updated = [c for c in current if c != code]
    else:
        updated = current + [code]
    return {**config, ENABLED_FEATURES_KEY: updated}


def is_sub_module_enabled(module_enabled: bool, config: dict[str, Any], code: str) -> bool:
    if not module_enabled:
        return False
    return feature_gate(config).allows(code)


# ============================================================================
# CATALOG HELPERS
# ============================================================================
def is_foundation(module: SystemModule) -> bool:
    return (module.category or "").upper() == ModuleCategory.FOUNDATION.value


def ensure_can_set(module: SystemModule, is_enabled: bool) -> None:
    if not is_enabled and is_foundation(module):
        raise FoundationModuleLockedError(module.code)


def visible_to_role(module: SystemModule, role: UserRole) -> bool:
    """UNIVERSAL (or untyped) modules are always visible; ROLE_SPECIFIC need the role listed."""
    if (module.module_type or ModuleType.UNIVERSAL.value).upper() != ModuleType.ROLE_SPECIFIC.value:
        return True
    try:
        return role in parse_target_roles(module.target_roles)
    except WireParseError as e:
        logger.warning(f"Hiding module {module.code}: {e}")
        return False


def _safe_target_roles(module: SystemModule) -> list[str]:
    try:
        return [r.value for r in parse_target_roles(module.target_roles)]
    except WireParseError:
        return []


async def _load_catalog(session: AsyncSession) -> list[tuple[SystemModule, SystemModuleRead]]:
    modules = (await session.execute(select(SystemModule).order_by(SystemModule.name))).scalars().all()
    subs = (await session.execute(select(SubModule).order_by(SubModule.code))).scalars().all()
    options = (await session.execute(select(ModuleOption).order_by(ModuleOption.code))).scalars().all()

    options_by_sub: dict[UUID, list[ModuleOptionRead]] = {}
    for opt in options:
        options_by_sub.setdefault(opt.sub_module_id, []).append(ModuleOptionRead.model_validate(opt))

    subs_by_module: dict[UUID, list[SubModuleRead]] = {}
    for sub in subs:
        subs_by_module.setdefault(sub.module_id, []).append(
            SubModuleRead(id=sub.id, code=sub.code, name=sub.name, options=options_by_sub.get(sub.id, []))
        )

    catalog = []
    for mod in modules:
        catalog.append((mod, SystemModuleRead(
            id=mod.id,
            code=mod.code,
            name=mod.name,
            description=mod.description,
            icon=mod.icon,
            category=mod.category,
            module_type=mod.module_type or ModuleType.UNIVERSAL,
            target_roles=_safe_target_roles(mod),
            sub_modules=subs_by_module.get(mod.id, []),
        )))
    return catalog


async def list_system_modules(session: AsyncSession) -> list[SystemModuleRead]:
    return [read for _, read in await _load_catalog(session)]


async def get_module_or_404(session: AsyncSession, module_id: UUID) -> SystemModule:
    module = await session.get(SystemModule, module_id)
    if module is None:
        raise SystemModuleNotFoundError(module_id)
    return module


async def get_sub_module_codes(session: AsyncSession, module_id: UUID) -> list[str]:
    result = await session.execute(
        select(SubModule.code).where(SubModule.module_id == module_id).order_by(SubModule.code)
    )
    return list(result.scalars().all())


def _role_value(role) -> str:
    parsed = parse_role(role)
    if parsed is None:
        raise ValueError(f"Unknown role '{role}'")
    return parsed.value


# ============================================================================
# RESOLUTION
# organization override > role config > default (enabled, {})
# ============================================================================
async def get_role_modules(
    session: AsyncSession,
    role,
    organization_id: Optional[str] = None,
) -> list[RoleModuleRead]:
    parsed = UserRole(_role_value(role))

    role_rows = (await session.execute(
        select(RoleModuleConfig).where(RoleModuleConfig.role == parsed.value)
    )).scalars().all()
    role_cfgs = {row.module_id: row for row in role_rows}

    org_cfgs = {}
    if organization_id:
        org_rows = (await session.execute(
            select(OrgModuleConfig).where(OrgModuleConfig.organization_id == organization_id)
        )).scalars().all()
        org_cfgs = {row.module_id: row for row in org_rows}

    resolved = []
    for module, read in await _load_catalog(session):
        if not visible_to_role(module, parsed):
            continue

        is_enabled, config, source = True, {}, "default"
        role_cfg = role_cfgs.get(module.id)
        if role_cfg is not None:
            is_enabled, config, source = role_cfg.is_enabled, parse_config(role_cfg.config), "role"
        org_cfg = org_cfgs.get(module.id)
        if org_cfg is not None:
            is_enabled, source = org_cfg.is_enabled, "organization"
            config = {**config, **parse_config(org_cfg.config)}

        if is_foundation(module):
            is_enabled = True

        resolved.append(RoleModuleRead(
            **read.model_dump(),
            is_enabled=is_enabled,
            config=config,
            source=source,
        ))
    return resolved


async def get_my_modules(
    session: AsyncSession,
    role,
    organization_id: Optional[str] = None,
) -> list[RoleModuleRead]:
    return [m for m in await get_role_modules(session, role, organization_id) if m.is_enabled]


# ============================================================================
# MUTATIONS
# ============================================================================
async def _upsert_role_config(
    session: AsyncSession,
    role: str,
    module_id: UUID,
    is_enabled: bool,
    config: Optional[dict],
) -> RoleModuleConfig:
    result = await session.execute(
        select(RoleModuleConfig).where(
            RoleModuleConfig.role == role,
            RoleModuleConfig.module_id == module_id,
        )
    )
    row = result.scalar_one_or_none()
    if row is None:
        row = RoleModuleConfig(role=role, module_id=module_id, is_enabled=is_enabled,
                               config=dump_json(config or {}))
    else:
        row.is_enabled = is_enabled
        if config is not None:
            row.config = dump_json(config)
        row.updated_at = datetime.now(timezone.utc)
    session.add(row)
    return row


async def update_role_module_config(
    session: AsyncSession,
    role,
    module_id: UUID,
    is_enabled: bool = True,
    config: Optional[dict] = None,
) -> RoleModuleConfig:
    """
    Upserts one (role, module) switch. `config=None` keeps the stored blob.
    Disabling a FOUNDATION module raises before anything is written.
    """
    role_value = _role_value(role)
    module = await get_module_or_404(session, module_id)
    ensure_can_set(module, is_enabled)

    row = await _upsert_role_config(session, role_value, module.id, is_enabled, config)
    await session.commit()
    await session.refresh(row)
    logger.info(f"{module.code} {'enabled' if is_enabled else 'disabled'} for {role_value}")
    return row


async def batch_update_role_modules(
    session: AsyncSession,
    role,
    updates: list[tuple[UUID, bool, Optional[dict]]],
) -> list[RoleModuleConfig]:
    """All entries are validated first; a single rejection aborts the whole batch."""
    role_value = _role_value(role)

    checked = []
    for module_id, is_enabled, config in updates:
        module = await get_module_or_404(session, module_id)
        ensure_can_set(module, is_enabled)
        checked.append((module, is_enabled, config))

    rows = [
        await _upsert_role_config(session, role_value, module.id, is_enabled, config)
        for module, is_enabled, config in checked
    ]
    await session.commit()
    for row in rows:
        await session.refresh(row)
    logger.info(f"Updated {len(rows)} module configs for {role_value}")
    return rows


async def toggle_role_sub_module(
    session: AsyncSession,
    role,
    module_id: UUID,
    code: str,
) -> tuple[dict, bool]:
    """Flips one sub-module for a role; returns (new config, new state of `code`)."""
    role_value = _role_value(role)
    module = await get_module_or_404(session, module_id)
    codes = await get_sub_module_codes(session, module.id)
    if code not in codes:
        raise ValueError(f"Sub-module '{code}' does not belong to {module.code}")

    result = await session.execute(
        select(RoleModuleConfig).where(
            RoleModuleConfig.role == role_value,
            RoleModuleConfig.module_id == module.id,
        )
    )
    row = result.scalar_one_or_none()
    is_enabled = row.is_enabled if row else True
    current = parse_config(row.config) if row else {}

    updated = toggle_sub_module(current, codes, code)
    await _upsert_role_config(session, role_value, module.id, is_enabled, updated)
    await session.commit()
    return updated, is_sub_module_enabled(is_enabled, updated, code)
