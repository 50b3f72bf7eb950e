# app/api/endpoints/sidebar.py

from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlmodel.ext.asyncio.session import AsyncSession

from app.api.deps import get_db_session, require_super_admin
from app.core.defaults import default_sidebar_groups
from app.models.enums import parse_role
from app.models.user import User
from app.schemas.permissions import (
    SidebarLayoutRead,
    SidebarGroupCreate,
    SidebarGroupRename,
    SidebarMoveRequest,
    SidebarReorderRequest,
    SidebarSaveRequest,
)
from app.services import sidebar_service
from app.services.audit_service import log_system_event
from app.services.ui_builder_service import (
    available_modules,
    create_group,
    delete_group,
    move_module,
    rename_group,
    reorder_module,
)

router = APIRouter(prefix="/api/v1/permissions/sidebar", tags=["Sidebar Layout"])


def _role_or_400(role: str):
    parsed = parse_role(role)
    if parsed is None:
        raise HTTPException(400, detail=f"Unknown role '{role}'")
    return parsed


def _layout(role, groups, is_default=False) -> SidebarLayoutRead:
    return SidebarLayoutRead(
        role=role.value,
        groups=groups,
        available=available_modules(groups),
        is_default=is_default,
    )


# -------------------------------------------------------------------
# ALL PERSISTED LAYOUTS
# -------------------------------------------------------------------
@router.get("/config/all", response_model=List[SidebarLayoutRead])
async def get_all_sidebar_configs(
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_super_admin),
):
    layouts = []
    for row in await sidebar_service.list_sidebar_configs(session):
        role = parse_role(row.role)
        groups = await sidebar_service.get_sidebar_groups(session, row.role)
        if role is not None and groups is not None:
            layouts.append(_layout(role, groups))
    return layouts


# -------------------------------------------------------------------
# RESET (declared ahead of the /{role} routes)
# -------------------------------------------------------------------
@router.post("/reset/{role}", response_model=SidebarLayoutRead)
async def reset_sidebar_config(
    role: str,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_super_admin),
):
    parsed = _role_or_400(role)
    deleted = await sidebar_service.reset_sidebar(session, parsed)

    if deleted:
        background_tasks.add_task(
            log_system_event,
            event_type="SIDEBAR_RESET",
            actor_id=current_user.id,
            actor_role=current_user.role.value,
            resource_type="SidebarRoleConfig",
            resource_id=parsed.value,
        )
    return _layout(parsed, default_sidebar_groups(parsed), is_default=True)


# -------------------------------------------------------------------
# GET / SAVE LAYOUT FOR A ROLE
# -------------------------------------------------------------------
@router.get("/{role}", response_model=SidebarLayoutRead)
async def get_sidebar_config(
    role: str,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_super_admin),
):
    parsed = _role_or_400(role)
    groups = await sidebar_service.get_sidebar_groups(session, parsed)
    if groups is None:
        raise HTTPException(404, detail="No custom sidebar config found")
    return _layout(parsed, groups)


@router.post("/{role}", response_model=SidebarLayoutRead)
async def save_sidebar_config(
    role: str,
    data: SidebarSaveRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_super_admin),
):
    parsed = _role_or_400(role)
    try:
        groups = sidebar_service.parse_groups(data.groups)
    except ValueError as e:
        raise HTTPException(400, detail=str(e))

    await sidebar_service.save_sidebar_groups(session, parsed, groups)
    background_tasks.add_task(
        log_system_event,
        event_type="SIDEBAR_SAVED",
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        resource_type="SidebarRoleConfig",
        resource_id=parsed.value,
        new_values={"groups": [g.id for g in groups]},
    )
    return _layout(parsed, groups)


# -------------------------------------------------------------------
# DRAG OPERATIONS (applied to the stored layout, or the default one)
# -------------------------------------------------------------------
@router.post("/{role}/move", response_model=SidebarLayoutRead)
async def move_sidebar_module(
    role: str,
    data: SidebarMoveRequest,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_super_admin),
):
    parsed = _role_or_400(role)
    groups = await sidebar_service.get_groups_or_default(session, parsed)
    try:
        groups = move_module(groups, data.module, data.to_group, data.index)
    except ValueError as e:
        raise HTTPException(400, detail=str(e))

    await sidebar_service.save_sidebar_groups(session, parsed, groups)
    return _layout(parsed, groups)


@router.post("/{role}/reorder", response_model=SidebarLayoutRead)
async def reorder_sidebar_module(
    role: str,
    data: SidebarReorderRequest,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_super_admin),
):
    parsed = _role_or_400(role)
    groups = await sidebar_service.get_groups_or_default(session, parsed)
    try:
        groups = reorder_module(groups, data.group_id, data.old_index, data.new_index)
    except ValueError as e:
        raise HTTPException(400, detail=str(e))

    await sidebar_service.save_sidebar_groups(session, parsed, groups)
    return _layout(parsed, groups)


# -------------------------------------------------------------------
# GROUP MANAGEMENT
# -------------------------------------------------------------------
@router.post("/{role}/groups", response_model=SidebarLayoutRead, status_code=201)
async def add_sidebar_group(
    role: str,
    data: SidebarGroupCreate,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_super_admin),
):
    parsed = _role_or_400(role)
    groups = await sidebar_service.get_groups_or_default(session, parsed)
    try:
        groups = create_group(groups, data.label, data.icon, data.color, data.id)
    except ValueError as e:
        raise HTTPException(400, detail=str(e))

    await sidebar_service.save_sidebar_groups(session, parsed, groups)
    return _layout(parsed, groups)


@router.patch("/{role}/groups/{group_id}", response_model=SidebarLayoutRead)
async def rename_sidebar_group(
    role: str,
    group_id: str,
    data: SidebarGroupRename,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_super_admin),
):
    parsed = _role_or_400(role)
    groups = await sidebar_service.get_groups_or_default(session, parsed)
    try:
        groups = rename_group(groups, group_id, data.label)
    except ValueError as e:
        raise HTTPException(404 if "not found" in str(e) else 400, detail=str(e))

    await sidebar_service.save_sidebar_groups(session, parsed, groups)
    return _layout(parsed, groups)


@router.delete("/{role}/groups/{group_id}", response_model=SidebarLayoutRead)
async def delete_sidebar_group(
    role: str,
    group_id: str,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_super_admin),
):
    parsed = _role_or_400(role)
    groups = await sidebar_service.get_groups_or_default(session, parsed)
    try:
        groups = delete_group(groups, group_id)
    except ValueError as e:
        raise HTTPException(404, detail=str(e))

    await sidebar_service.save_sidebar_groups(session, parsed, groups)
    return _layout(parsed, groups)
