# app/services/ui_builder_service.py

import random
import re
import string
import time
from datetime import datetime, timezone
from typing import Iterable, Optional

from loguru import logger
from pydantic import ValidationError

from app.core.config import settings
from app.core.defaults import generate_default_module_configs, get_default_ui_settings
from app.core.registry import MODULE_NAMES
from app.models.enums import LayoutSection, UserRole, parse_role
from app.schemas.permissions import SidebarGroupConfig
from app.schemas.ui_builder import (
    CustomModule,
    CustomModuleDraft,
    ExtendedUISettings,
    ModuleLayout,
    UIBuilderConfig,
    UIElement,
    UIElementCreate,
    UIModuleConfig,
)
from app.services.permission_service import SnapshotBackend

UI_BUILDER_KEY = "sip_ui_builder_config_v2"


def _suffix() -> str:
    return "".join(random.choices(string.ascii_lowercase + string.digits, k=9))


def generate_element_id() -> str:
    return f"elem_{int(time.time() * 1000)}_{_suffix()}"


def generate_module_id() -> str:
    return f"custom_{int(time.time() * 1000)}_{_suffix()}"


# ============================================================================
# GROUP OPERATIONS (pure)
# Every function returns a new list and never mutates its input.
# ============================================================================
def _copy(groups: list[SidebarGroupConfig]) -> list[SidebarGroupConfig]:
    return [g.model_copy(deep=True) for g in groups]


def _find_group(groups: list[SidebarGroupConfig], group_id: str) -> SidebarGroupConfig:
    for group in groups:
        if group.id == group_id:
            return group
    raise ValueError(f"Sidebar group '{group_id}' not found")


def _detach(groups: list[SidebarGroupConfig], module: str) -> Optional[list[str]]:
    """Take `module` out of every group; returns its nested children if it was a parent."""
    carried = None
    for group in groups:
        if module in group.modules:
            group.modules.remove(module)
        nested = group.nested_modules or {}
        if module in nested:
            carried = nested.pop(module)
            group.nested_modules = nested or None
        for children in nested.values():
            if module in children:
                children.remove(module)
    return carried


def move_module(
    groups: list[SidebarGroupConfig],
    module: str,
    to_group: Optional[str],
    index: Optional[int] = None,
) -> list[SidebarGroupConfig]:
    """
    Move `module` into `to_group` at `index` (append when index is None or
    out of range). The module leaves whichever group held it, or the
    available pool, and takes its nested children along. to_group=None
    sends it back to the pool; its children return to the pool with it.
    """
    result = _copy(groups)
    if to_group is None:
        _detach(result, module)
        return result

    target = _find_group(result, to_group)
    children = _detach(result, module)
    if index is None or index < 0 or index > len(target.modules):
        target.modules.append(module)
    else:
        target.modules.insert(index, module)
    if children is not None:
        target.nested_modules = {**(target.nested_modules or {}), module: children}
    return result


def reorder_module(
    groups: list[SidebarGroupConfig],
    group_id: str,
    old_index: int,
    new_index: int,
) -> list[SidebarGroupConfig]:
    result = _copy(groups)
    modules = _find_group(result, group_id).modules
    if not 0 <= old_index < len(modules):
        raise ValueError(f"Index {old_index} out of range for group '{group_id}'")
    new_index = max(0, min(new_index, len(modules) - 1))
    modules.insert(new_index, modules.pop(old_index))
    return result


def remove_module(groups: list[SidebarGroupConfig], module: str) -> list[SidebarGroupConfig]:
    return move_module(groups, module, None)


def available_modules(
    groups: list[SidebarGroupConfig],
    candidates: Iterable[str] = MODULE_NAMES,
) -> list[str]:
    grouped = {name for group in groups for name in group.all_modules()}
    return [name for name in candidates if name not in grouped]


def create_group(
    groups: list[SidebarGroupConfig],
    label: str,
    icon: str = "Folder",
    color: str = "gray",
    group_id: Optional[str] = None,
) -> list[SidebarGroupConfig]:
    if not label or not label.strip():
        raise ValueError("Group label must not be blank")
    group_id = group_id or re.sub(r"[^a-z0-9]+", "_", label.strip().lower()).strip("_")
    if any(g.id == group_id for g in groups):
        raise ValueError(f"Sidebar group '{group_id}' already exists")
    return _copy(groups) + [SidebarGroupConfig(id=group_id, label=label.strip(), icon=icon, color=color)]


def rename_group(groups: list[SidebarGroupConfig], group_id: str, label: str) -> list[SidebarGroupConfig]:
    if not label or not label.strip():
        raise ValueError("Group label must not be blank")
    result = _copy(groups)
    _find_group(result, group_id).label = label.strip()
    return result


def delete_group(groups: list[SidebarGroupConfig], group_id: str) -> list[SidebarGroupConfig]:
    """Drops the group; its modules fall back to the available pool."""
    _find_group(groups, group_id)
    return [g.model_copy(deep=True) for g in groups if g.id != group_id]


# ============================================================================
# LAYOUT ELEMENTS (pure)
# ============================================================================
_SECTION_ATTR = {
    LayoutSection.leftTitle: "left_title",
    LayoutSection.middleTitle: "middle_title",
    LayoutSection.rightTitle: "right_title",
}


def _module_config(modules: list[UIModuleConfig], module_id: str) -> UIModuleConfig:
    for config in modules:
        if config.module_id == module_id:
            return config
    raise ValueError(f"Module '{module_id}' is not configured for this role")


def add_layout_element(
    modules: list[UIModuleConfig],
    module_id: str,
    section: LayoutSection,
    element: UIElementCreate,
) -> list[UIModuleConfig]:
    result = [m.model_copy(deep=True) for m in modules]
    config = _module_config(result, module_id)
    if config.layout is None:
        config.layout = ModuleLayout()

    attr = _SECTION_ATTR[LayoutSection(section)]
    elements = getattr(config.layout, attr) or []
    elements.append(UIElement(
        id=element.id or generate_element_id(),
        type=element.type,
        visible=element.visible,
        config=dict(element.config),
    ))
    setattr(config.layout, attr, elements)
    return result


def remove_layout_element(
    modules: list[UIModuleConfig],
    module_id: str,
    section: LayoutSection,
    element_id: str,
) -> list[UIModuleConfig]:
    result = [m.model_copy(deep=True) for m in modules]
    config = _module_config(result, module_id)
    attr = _SECTION_ATTR[LayoutSection(section)]
    elements = getattr(config.layout, attr, None) if config.layout else None
    if not elements or not any(e.id == element_id for e in elements):
        raise ValueError(f"Element '{element_id}' not found in {module_id}.{LayoutSection(section).value}")
    setattr(config.layout, attr, [e for e in elements if e.id != element_id])
    return result


# ============================================================================
# CUSTOM MODULES
# ============================================================================
def build_custom_module(draft: CustomModuleDraft, existing_count: int) -> CustomModule:
    return CustomModule(
        id=generate_module_id(),
        name=re.sub(r"\s+", "_", draft.name.lower()),
        label=draft.label,
        icon=draft.icon,
        type=draft.type,
        data_source=draft.data_source,
        visible=True,
        order=existing_count + 1,
    )


def default_role_settings(role: UserRole) -> ExtendedUISettings:
    ui = get_default_ui_settings(role)
    return ExtendedUISettings(
        role=role,
        primary_color=ui.primary_color,
        accent_color=ui.accent_color,
        modules=generate_default_module_configs(ui.sidebar_modules),
        custom_modules=[],
    )


def default_config() -> UIBuilderConfig:
    return UIBuilderConfig(
        version=settings.UI_BUILDER_VERSION,
        last_updated=datetime.now(timezone.utc),
        settings=[default_role_settings(role) for role in UserRole],
    )


# ============================================================================
# STORE
# ============================================================================
class UIBuilderStore:
    """Per-role UI builder documents; every save overwrites the role entry whole."""

    def __init__(self, backend: SnapshotBackend):
        self.backend = backend
        self.config: UIBuilderConfig = default_config()

    async def load(self) -> "UIBuilderStore":
        raw = await self.backend.read(UI_BUILDER_KEY)
        if raw:
            try:
                self.config = UIBuilderConfig.model_validate_json(raw)
            except ValidationError:
                logger.warning("Malformed UI builder config; starting from defaults")
                self.config = default_config()
        return self

    async def _save(self) -> None:
        self.config.last_updated = datetime.now(timezone.utc)
        await self.backend.write(UI_BUILDER_KEY, self.config.model_dump_json(by_alias=True))

    @staticmethod
    def _role(role) -> UserRole:
        parsed = parse_role(role)
        if parsed is None:
            raise ValueError(f"Unknown role '{role}'")
        return parsed

    def get_role_settings(self, role) -> ExtendedUISettings:
        parsed = self._role(role)
        for entry in self.config.settings:
            if entry.role == parsed:
                return entry.model_copy(deep=True)
        return default_role_settings(parsed)

    async def save_role_settings(self, role, entry: ExtendedUISettings) -> ExtendedUISettings:
        parsed = self._role(role)
        entry = entry.model_copy(update={"role": parsed}, deep=True)
        self.config.settings = [s for s in self.config.settings if s.role != parsed] + [entry]
        await self._save()
        return self.get_role_settings(parsed)

    async def reset_role_settings(self, role) -> ExtendedUISettings:
        parsed = self._role(role)
        return await self.save_role_settings(parsed, default_role_settings(parsed))

    async def reset_all(self) -> UIBuilderConfig:
        self.config = default_config()
        await self._save()
        return self.config.model_copy(deep=True)

    # ---------------- layout ----------------
    async def add_layout_element(self, role, module_id: str, section: LayoutSection,
                                 element: UIElementCreate) -> ExtendedUISettings:
        entry = self.get_role_settings(role)
        entry.modules = add_layout_element(entry.modules, module_id, section, element)
        return await self.save_role_settings(role, entry)

    async def remove_layout_element(self, role, module_id: str, section: LayoutSection,
                                    element_id: str) -> ExtendedUISettings:
        entry = self.get_role_settings(role)
        entry.modules = remove_layout_element(entry.modules, module_id, section, element_id)
        return await self.save_role_settings(role, entry)

    # ---------------- custom modules ----------------
    async def add_custom_module(self, role, draft: CustomModuleDraft) -> CustomModule:
        entry = self.get_role_settings(role)
        module = build_custom_module(draft, len(entry.custom_modules))
        entry.custom_modules.append(module)
        await self.save_role_settings(role, entry)
        return module

    async def delete_custom_module(self, role, module_id: str) -> None:
        entry = self.get_role_settings(role)
        remaining = [m for m in entry.custom_modules if m.id != module_id]
        if len(remaining) == len(entry.custom_modules):
            raise ValueError(f"Custom module '{module_id}' not found")
        entry.custom_modules = remaining
        await self.save_role_settings(role, entry)

    async def toggle_custom_module(self, role, module_id: str) -> CustomModule:
        entry = self.get_role_settings(role)
        for module in entry.custom_modules:
            if module.id == module_id:
                module.visible = not module.visible
                await self.save_role_settings(role, entry)
                return module
        raise ValueError(f"Custom module '{module_id}' not found")
