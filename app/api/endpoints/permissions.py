# app/api/endpoints/permissions.py

from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.api.deps import (
    get_current_user,
    get_db_session,
    get_permission_store,
    get_simulation,
    require_super_admin,
)
from app.core.registry import MODULE_LIST, ROLE_LIST, get_module
from app.models.enums import ActionType, UserRole, parse_role
from app.models.user import User
from app.schemas.permissions import (
    ClubSidebarOverride,
    EffectiveView,
    ModuleInfo,
    NavbarShortcuts,
    PermissionCheck,
    PermissionUpdate,
    RoleInfo,
    RolePermissions,
    RoleUISettings,
    RoleUISettingsUpdate,
)
from app.services import sidebar_service
from app.services.audit_service import log_system_event
from app.services.permission_service import PermissionStore
from app.services.simulation_service import SimulationController

router = APIRouter(prefix="/api/v1/permissions", tags=["Permissions"])


def _club_scope(current_user: User, org_id: str) -> None:
    """Club admins only touch their own organization; super admins touch any."""
    if current_user.role == UserRole.SUPER_ADMIN:
        return
    if current_user.role in (UserRole.CLUB, UserRole.CLUB_OWNER) and current_user.organization_id == org_id:
        return
    raise HTTPException(status.HTTP_403_FORBIDDEN, detail="Not allowed to manage this organization")


# -------------------------------------------------------------------
# REGISTRY
# -------------------------------------------------------------------
@router.get("/modules", response_model=List[ModuleInfo])
async def list_registry_modules(_: User = Depends(get_current_user)):
    return MODULE_LIST


@router.get("/modules/{name}", response_model=ModuleInfo)
async def get_registry_module(name: str, _: User = Depends(get_current_user)):
    module = get_module(name)
    if module is None:
        raise HTTPException(404, detail=f"Module '{name}' is not registered")
    return module


@router.get("/roles", response_model=List[RoleInfo])
async def list_roles(_: User = Depends(get_current_user)):
    return ROLE_LIST


# -------------------------------------------------------------------
# PERMISSION MATRIX
# -------------------------------------------------------------------
@router.get("/matrix", response_model=List[RolePermissions])
async def get_matrix(
    store: PermissionStore = Depends(get_permission_store),
    _: User = Depends(require_super_admin),
):
    return [store.get_role_permissions(r.role) for r in store.permissions]


@router.get("/matrix/{role}", response_model=RolePermissions)
async def get_role_matrix(
    role: str,
    store: PermissionStore = Depends(get_permission_store),
    _: User = Depends(get_current_user),
):
    record = store.get_role_permissions(role)
    if record is None:
        raise HTTPException(404, detail=f"No permissions for role '{role}'")
    return record


@router.put("/matrix/{role}", response_model=RolePermissions)
async def update_matrix_cell(
    role: str,
    data: PermissionUpdate,
    background_tasks: BackgroundTasks,
    store: PermissionStore = Depends(get_permission_store),
    current_user: User = Depends(require_super_admin),
):
    try:
        record = await store.update_permission(role, data.module, data.action, data.enabled)
    except ValueError as e:
        raise HTTPException(400, detail=str(e))

    background_tasks.add_task(
        log_system_event,
        event_type="PERMISSION_UPDATED",
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        resource_type="RolePermissions",
        resource_id=record.role.value,
        new_values={"module": data.module, "action": data.action.value, "enabled": data.enabled},
    )
    return record


@router.post("/matrix/reset", response_model=List[RolePermissions])
async def reset_matrix(
    background_tasks: BackgroundTasks,
    store: PermissionStore = Depends(get_permission_store),
    current_user: User = Depends(require_super_admin),
):
    records = await store.reset_permissions()
    background_tasks.add_task(
        log_system_event,
        event_type="PERMISSIONS_RESET",
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        resource_type="RolePermissions",
    )
    return records


@router.get("/check", response_model=PermissionCheck)
async def check_permission(
    role: str = Query(...),
    module: str = Query(...),
    action: ActionType = Query(ActionType.view),
    store: PermissionStore = Depends(get_permission_store),
    _: User = Depends(get_current_user),
):
    return PermissionCheck(
        role=role,
        module=module,
        action=action,
        allowed=store.has_permission(role, module, action),
    )


# -------------------------------------------------------------------
# ROLE UI SETTINGS
# -------------------------------------------------------------------
@router.get("/ui-settings", response_model=List[RoleUISettings])
async def get_all_ui_settings(
    store: PermissionStore = Depends(get_permission_store),
    _: User = Depends(require_super_admin),
):
    return [store.get_ui_settings(r.role) for r in store.ui_settings]


@router.post("/ui-settings/reset", response_model=List[RoleUISettings])
async def reset_ui_settings(
    store: PermissionStore = Depends(get_permission_store),
    _: User = Depends(require_super_admin),
):
    return await store.reset_ui_settings()


@router.get("/ui-settings/{role}", response_model=RoleUISettings)
async def get_ui_settings(
    role: str,
    store: PermissionStore = Depends(get_permission_store),
    _: User = Depends(get_current_user),
):
    if parse_role(role) is None:
        raise HTTPException(400, detail=f"Unknown role '{role}'")
    return store.get_ui_settings(role)


@router.put("/ui-settings/{role}", response_model=RoleUISettings)
async def update_ui_settings(
    role: str,
    data: RoleUISettingsUpdate,
    store: PermissionStore = Depends(get_permission_store),
    _: User = Depends(require_super_admin),
):
    try:
        return await store.update_ui_settings(role, **data.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(400, detail=str(e))


# -------------------------------------------------------------------
# EFFECTIVE VIEW (what the caller, or the role they simulate, sees)
# -------------------------------------------------------------------
@router.get("/effective", response_model=EffectiveView)
async def effective_view(
    session: AsyncSession = Depends(get_db_session),
    store: PermissionStore = Depends(get_permission_store),
    sim: SimulationController = Depends(get_simulation),
):
    groups = await sidebar_service.get_sidebar_groups(session, sim.effective_role)
    ui = store.get_ui_settings(sim.effective_role)
    return EffectiveView(
        real_role=sim.real_role,
        effective_role=sim.effective_role,
        simulating=sim.is_simulating,
        sidebar=await sim.effective_sidebar(store, groups),
        primary_color=ui.primary_color,
        accent_color=ui.accent_color,
    )


# -------------------------------------------------------------------
# CLUB SIDEBAR OVERRIDES
# -------------------------------------------------------------------
@router.get("/club-sidebar/{org_id}", response_model=ClubSidebarOverride)
async def get_club_sidebar(
    org_id: str,
    store: PermissionStore = Depends(get_permission_store),
    current_user: User = Depends(get_current_user),
):
    _club_scope(current_user, org_id)
    override = await store.get_org_sidebar(org_id)
    if override is None:
        raise HTTPException(404, detail="No sidebar override for this organization")
    return override


@router.put("/club-sidebar/{org_id}", response_model=ClubSidebarOverride)
async def set_club_sidebar(
    org_id: str,
    data: ClubSidebarOverride,
    background_tasks: BackgroundTasks,
    store: PermissionStore = Depends(get_permission_store),
    current_user: User = Depends(get_current_user),
):
    _club_scope(current_user, org_id)
    override = await store.set_org_sidebar(org_id, data)
    background_tasks.add_task(
        log_system_event,
        event_type="CLUB_SIDEBAR_UPDATED",
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        resource_type="ClubSidebar",
        resource_id=org_id,
        new_values=override.model_dump(),
    )
    return override


@router.delete("/club-sidebar/{org_id}", status_code=204)
async def clear_club_sidebar(
    org_id: str,
    store: PermissionStore = Depends(get_permission_store),
    current_user: User = Depends(get_current_user),
):
    _club_scope(current_user, org_id)
    await store.clear_org_sidebar(org_id)


# -------------------------------------------------------------------
# NAVBAR SHORTCUTS
# -------------------------------------------------------------------
@router.get("/navbar-shortcuts", response_model=NavbarShortcuts)
async def get_navbar_shortcuts(
    store: PermissionStore = Depends(get_permission_store),
    _: User = Depends(get_current_user),
):
    return await store.get_navbar_shortcuts()


@router.put("/navbar-shortcuts", response_model=NavbarShortcuts)
async def set_navbar_shortcuts(
    data: NavbarShortcuts,
    store: PermissionStore = Depends(get_permission_store),
    _: User = Depends(require_super_admin),
):
    try:
        return await store.set_navbar_shortcuts(data)
    except ValueError as e:
        raise HTTPException(400, detail=str(e))
