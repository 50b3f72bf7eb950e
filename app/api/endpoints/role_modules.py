# app/api/endpoints/role_modules.py

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from app.api.deps import get_db_session, get_simulation, require_super_admin
from app.core.exceptions import SystemModuleNotFoundError
from app.models.user import User
from app.schemas.system_module import (
    RoleModuleBatch,
    RoleModuleConfigRead,
    RoleModuleRead,
    RoleModuleUpdate,
    SubModuleToggleResult,
)
from app.services.audit_service import log_system_event
from app.services.role_module_service import (
    batch_update_role_modules,
    get_my_modules,
    get_role_modules,
    toggle_role_sub_module,
    update_role_module_config,
)
from app.services.simulation_service import SimulationController

router = APIRouter(prefix="/api/v1/role-modules", tags=["Role Modules"])


# -------------------------------------------------------------------
# MY MODULES (caller's effective role; honours simulation)
# declared before /{role} so it is not captured as a role name
# -------------------------------------------------------------------
@router.get("/my-modules", response_model=List[RoleModuleRead])
async def my_modules(
    session: AsyncSession = Depends(get_db_session),
    sim: SimulationController = Depends(get_simulation),
):
    return await get_my_modules(session, sim.effective_role, sim.organization_id)


# -------------------------------------------------------------------
# LIST MODULES FOR A ROLE
# -------------------------------------------------------------------
@router.get("/{role}", response_model=List[RoleModuleRead])
async def list_role_modules(
    role: str,
    organization_id: Optional[str] = Query(None, description="Apply this organization's overrides"),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_super_admin),
):
    try:
        return await get_role_modules(session, role, organization_id)
    except ValueError as e:
        raise HTTPException(400, detail=str(e))


# -------------------------------------------------------------------
# UPDATE ONE (role, module)
# -------------------------------------------------------------------
@router.put("/{role}/{module_id}", response_model=RoleModuleConfigRead)
async def update_role_module(
    role: str,
    module_id: UUID,
    data: RoleModuleUpdate,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_super_admin),
):
    try:
        row = await update_role_module_config(session, role, module_id, data.is_enabled, data.config)
    except SystemModuleNotFoundError as e:
        raise HTTPException(404, detail=str(e))
    except ValueError as e:
        # includes FoundationModuleLockedError
        raise HTTPException(400, detail=str(e))

    background_tasks.add_task(
        log_system_event,
        event_type="ROLE_MODULE_UPDATED",
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        resource_type="RoleModuleConfig",
        resource_id=f"{row.role}:{module_id}",
        new_values={"is_enabled": row.is_enabled, "config": data.config},
    )
    return row


# -------------------------------------------------------------------
# BATCH UPDATE
# -------------------------------------------------------------------
@router.post("/{role}/batch", response_model=List[RoleModuleConfigRead])
async def batch_update(
    role: str,
    data: RoleModuleBatch,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_super_admin),
):
    try:
        rows = await batch_update_role_modules(
            session, role, [(m.module_id, m.is_enabled, m.config) for m in data.modules]
        )
    except SystemModuleNotFoundError as e:
        raise HTTPException(404, detail=str(e))
    except ValueError as e:
        raise HTTPException(400, detail=str(e))

    background_tasks.add_task(
        log_system_event,
        event_type="ROLE_MODULES_BATCH_UPDATED",
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        resource_type="RoleModuleConfig",
        resource_id=role.upper(),
        new_values={"count": len(rows)},
    )
    return rows


# -------------------------------------------------------------------
# TOGGLE ONE SUB-MODULE
# -------------------------------------------------------------------
@router.post("/{role}/{module_id}/sub-modules/{code}/toggle", response_model=SubModuleToggleResult)
async def toggle_sub_module_endpoint(
    role: str,
    module_id: UUID,
    code: str,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_super_admin),
):
    try:
        config, enabled = await toggle_role_sub_module(session, role, module_id, code)
    except SystemModuleNotFoundError as e:
        raise HTTPException(404, detail=str(e))
    except ValueError as e:
        raise HTTPException(400, detail=str(e))

    return SubModuleToggleResult(module_id=module_id, code=code, enabled=enabled, config=config)
