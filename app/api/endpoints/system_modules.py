# app/api/endpoints/system_modules.py

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from app.api.deps import get_current_user, get_db_session, role_required
from app.core.exceptions import SystemModuleNotFoundError
from app.models.enums import UserRole
from app.models.user import User
from app.schemas.system_module import OrgModuleConfigRead, OrgModuleUpdate, SystemModuleRead
from app.services.audit_service import log_system_event
from app.services.org_module_service import get_org_module_configs, upsert_org_module_config
from app.services.role_module_service import list_system_modules

router = APIRouter(prefix="/api/v1/system-modules", tags=["System Modules"])

require_org_admin = role_required(UserRole.CLUB, UserRole.CLUB_OWNER)


def _resolve_org(current_user: User, organization_id: Optional[str]) -> str:
    """Super admins may target any organization; everyone else gets their own."""
    if current_user.role == UserRole.SUPER_ADMIN and organization_id:
        return organization_id
    if not current_user.organization_id:
        raise HTTPException(400, detail="No organization associated with this account")
    return current_user.organization_id


# -------------------------------------------------------------------
# MODULE CATALOG
# -------------------------------------------------------------------
@router.get("", response_model=List[SystemModuleRead])
async def get_system_modules(
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(get_current_user),
):
    return await list_system_modules(session)


# -------------------------------------------------------------------
# ORGANIZATION OVERRIDES
# -------------------------------------------------------------------
@router.get("/config", response_model=List[OrgModuleConfigRead])
async def get_org_config(
    organization_id: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_org_admin),
):
    return await get_org_module_configs(session, _resolve_org(current_user, organization_id))


@router.post("/config", response_model=OrgModuleConfigRead)
async def update_org_config(
    data: OrgModuleUpdate,
    background_tasks: BackgroundTasks,
    organization_id: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_org_admin),
):
    org_id = _resolve_org(current_user, organization_id)
    try:
        result = await upsert_org_module_config(session, org_id, data.module_id, data.is_enabled, data.config)
    except SystemModuleNotFoundError as e:
        raise HTTPException(404, detail=str(e))
    except ValueError as e:
        raise HTTPException(400, detail=str(e))

    background_tasks.add_task(
        log_system_event,
        event_type="ORG_MODULE_UPDATED",
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        resource_type="OrgModuleConfig",
        resource_id=f"{org_id}:{data.module_id}",
        new_values={"is_enabled": result.is_enabled, "config": result.config},
    )
    return result
