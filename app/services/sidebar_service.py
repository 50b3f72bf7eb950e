# app/services/sidebar_service.py

from datetime import datetime, timezone
from typing import Any, Optional

from loguru import logger
from pydantic import TypeAdapter, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.defaults import default_sidebar_groups
from app.core.wire import dump_json
from app.models.enums import UserRole, parse_role
from app.models.sidebar import SidebarRoleConfig
from app.schemas.permissions import SidebarGroupConfig

_GROUPS_ADAPTER = TypeAdapter(list[SidebarGroupConfig])


# ============================================================================
# VALIDATION
# ============================================================================
def parse_groups(raw: Any) -> list[SidebarGroupConfig]:
    """
    Accepts a decoded list or JSON text. Raises ValueError when the payload is
    not a list of groups or a module appears in more than one group.
    """
    try:
        if isinstance(raw, (str, bytes)):
            groups = _GROUPS_ADAPTER.validate_json(raw)
        else:
            groups = _GROUPS_ADAPTER.validate_python(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid sidebar groups: {e.error_count()} error(s)") from e

    seen_ids, seen_modules = set(), set()
    for group in groups:
        if group.id in seen_ids:
            raise ValueError(f"Duplicate group id '{group.id}'")
        seen_ids.add(group.id)
        for name in group.all_modules():
            if name in seen_modules:
                raise ValueError(f"Module '{name}' is assigned to more than one group")
            seen_modules.add(name)
    return groups


def _role_key(role) -> str:
    parsed = parse_role(role)
    if parsed is None:
        raise ValueError(f"Unknown role '{role}'")
    return parsed.value


# ============================================================================
# QUERIES
# ============================================================================
async def list_sidebar_configs(session: AsyncSession) -> list[SidebarRoleConfig]:
    result = await session.execute(select(SidebarRoleConfig).order_by(SidebarRoleConfig.role))
    return result.scalars().all()


async def get_sidebar_groups(session: AsyncSession, role) -> Optional[list[SidebarGroupConfig]]:
    """Persisted layout for the role, or None when there is none (or it is unreadable)."""
    parsed = parse_role(role)
    if parsed is None:
        return None
    row = await session.get(SidebarRoleConfig, parsed.value)
    if row is None:
        return None
    try:
        return parse_groups(row.groups)
    except ValueError:
        logger.warning(f"Stored sidebar layout for {parsed.value} is malformed; ignoring it")
        return None


async def get_groups_or_default(session: AsyncSession, role: UserRole) -> list[SidebarGroupConfig]:
    groups = await get_sidebar_groups(session, role)
    return groups if groups is not None else default_sidebar_groups(role)


# ============================================================================
# MUTATIONS
# ============================================================================
async def save_sidebar_groups(
    session: AsyncSession,
    role,
    groups: list[SidebarGroupConfig],
) -> SidebarRoleConfig:
    key = _role_key(role)
    payload = dump_json(_GROUPS_ADAPTER.dump_python(groups, mode="json", by_alias=True))

    row = await session.get(SidebarRoleConfig, key)
    if row:
        row.groups = payload
        row.updated_at = datetime.now(timezone.utc)
    else:
        row = SidebarRoleConfig(role=key, groups=payload)
    session.add(row)
    await session.commit()
    await session.refresh(row)
    logger.info(f"Sidebar layout saved for {key} ({len(groups)} groups)")
    return row


async def reset_sidebar(session: AsyncSession, role) -> bool:
    """Deletes the custom layout. Returns False when there was nothing to delete."""
    key = _role_key(role)
    row = await session.get(SidebarRoleConfig, key)
    if row is None:
        return False
    await session.delete(row)
    await session.commit()
    logger.info(f"Sidebar layout reset for {key}")
    return True
