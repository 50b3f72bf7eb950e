# app/services/org_module_service.py

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.wire import dump_json
from app.models.module_config import OrgModuleConfig
from app.models.system_module import SystemModule
from app.schemas.system_module import OrgModuleConfigRead
from app.services.role_module_service import ensure_can_set, get_module_or_404


def _to_read(row: OrgModuleConfig, module: Optional[SystemModule]) -> OrgModuleConfigRead:
    read = OrgModuleConfigRead.model_validate(row)
    if module is not None:
        read.module_code = module.code
        read.module_name = module.name
    return read


async def get_org_module_configs(session: AsyncSession, organization_id: str) -> list[OrgModuleConfigRead]:
    result = await session.execute(
        select(OrgModuleConfig, SystemModule)
        .join(SystemModule, SystemModule.id == OrgModuleConfig.module_id)
        .where(OrgModuleConfig.organization_id == organization_id)
        .order_by(SystemModule.name)
    )
    return [_to_read(row, module) for row, module in result.all()]


async def upsert_org_module_config(
    session: AsyncSession,
    organization_id: str,
    module_id: UUID,
    is_enabled: bool = True,
    config: Optional[dict] = None,
) -> OrgModuleConfigRead:
    """Same foundation lock as the role layer, scoped to one organization."""
    if not organization_id:
        raise ValueError("organization_id is required")

    module = await get_module_or_404(session, module_id)
    ensure_can_set(module, is_enabled)

    result = await session.execute(
        select(OrgModuleConfig).where(
            OrgModuleConfig.organization_id == organization_id,
            OrgModuleConfig.module_id == module.id,
        )
    )
    row = result.scalar_one_or_none()
    if row is None:
        row = OrgModuleConfig(
            organization_id=organization_id,
            module_id=module.id,
            is_enabled=is_enabled,
            config=dump_json(config or {}),
        )
    else:
        row.is_enabled = is_enabled
        if config is not None:
            row.config = dump_json(config)
        row.updated_at = datetime.now(timezone.utc)

    session.add(row)
    await session.commit()
    await session.refresh(row)
    logger.info(f"Org {organization_id}: {module.code} {'enabled' if is_enabled else 'disabled'}")
    return _to_read(row, module)
