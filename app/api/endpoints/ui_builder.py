# app/api/endpoints/ui_builder.py

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_current_user, get_ui_builder_store, require_super_admin
from app.models.enums import LayoutSection
from app.models.user import User
from app.schemas.ui_builder import (
    CustomModule,
    CustomModuleDraft,
    ExtendedUISettings,
    UIBuilderConfig,
    UIElementCreate,
)
from app.services.ui_builder_service import UIBuilderStore

router = APIRouter(prefix="/api/v1/ui-builder", tags=["UI Builder"])


# -------------------------------------------------------------------
# WHOLE DOCUMENT
# -------------------------------------------------------------------
@router.get("", response_model=UIBuilderConfig)
async def get_config(
    store: UIBuilderStore = Depends(get_ui_builder_store),
    _: User = Depends(require_super_admin),
):
    return store.config


@router.post("/reset", response_model=UIBuilderConfig)
async def reset_config(
    store: UIBuilderStore = Depends(get_ui_builder_store),
    _: User = Depends(require_super_admin),
):
    return await store.reset_all()


# -------------------------------------------------------------------
# PER-ROLE SETTINGS
# -------------------------------------------------------------------
@router.get("/{role}", response_model=ExtendedUISettings)
async def get_role_settings(
    role: str,
    store: UIBuilderStore = Depends(get_ui_builder_store),
    _: User = Depends(get_current_user),
):
    try:
        return store.get_role_settings(role)
    except ValueError as e:
        raise HTTPException(400, detail=str(e))


@router.put("/{role}", response_model=ExtendedUISettings)
async def save_role_settings(
    role: str,
    data: ExtendedUISettings,
    store: UIBuilderStore = Depends(get_ui_builder_store),
    _: User = Depends(require_super_admin),
):
    try:
        return await store.save_role_settings(role, data)
    except ValueError as e:
        raise HTTPException(400, detail=str(e))


@router.post("/{role}/reset", response_model=ExtendedUISettings)
async def reset_role_settings(
    role: str,
    store: UIBuilderStore = Depends(get_ui_builder_store),
    _: User = Depends(require_super_admin),
):
    try:
        return await store.reset_role_settings(role)
    except ValueError as e:
        raise HTTPException(400, detail=str(e))


# -------------------------------------------------------------------
# LAYOUT ELEMENTS
# -------------------------------------------------------------------
@router.post("/{role}/modules/{module_id}/layout/{section}", response_model=ExtendedUISettings)
async def add_layout_element(
    role: str,
    module_id: str,
    section: LayoutSection,
    data: UIElementCreate,
    store: UIBuilderStore = Depends(get_ui_builder_store),
    _: User = Depends(require_super_admin),
):
    try:
        return await store.add_layout_element(role, module_id, section, data)
    except ValueError as e:
        raise HTTPException(400, detail=str(e))


@router.delete("/{role}/modules/{module_id}/layout/{section}/{element_id}", response_model=ExtendedUISettings)
async def remove_layout_element(
    role: str,
    module_id: str,
    section: LayoutSection,
    element_id: str,
    store: UIBuilderStore = Depends(get_ui_builder_store),
    _: User = Depends(require_super_admin),
):
    try:
        return await store.remove_layout_element(role, module_id, section, element_id)
    except ValueError as e:
        raise HTTPException(404, detail=str(e))


# -------------------------------------------------------------------
# CUSTOM MODULES
# -------------------------------------------------------------------
@router.post("/{role}/custom-modules", response_model=CustomModule, status_code=201)
async def create_custom_module(
    role: str,
    data: CustomModuleDraft,
    store: UIBuilderStore = Depends(get_ui_builder_store),
    _: User = Depends(require_super_admin),
):
    try:
        return await store.add_custom_module(role, data)
    except ValueError as e:
        raise HTTPException(400, detail=str(e))


@router.post("/{role}/custom-modules/{module_id}/toggle", response_model=CustomModule)
async def toggle_custom_module(
    role: str,
    module_id: str,
    store: UIBuilderStore = Depends(get_ui_builder_store),
    _: User = Depends(require_super_admin),
):
    try:
        return await store.toggle_custom_module(role, module_id)
    except ValueError as e:
        raise HTTPException(404, detail=str(e))


@router.delete("/{role}/custom-modules/{module_id}", status_code=204)
async def delete_custom_module(
    role: str,
    module_id: str,
    store: UIBuilderStore = Depends(get_ui_builder_store),
    _: User = Depends(require_super_admin),
):
    try:
        await store.delete_custom_module(role, module_id)
    except ValueError as e:
        raise HTTPException(404, detail=str(e))
