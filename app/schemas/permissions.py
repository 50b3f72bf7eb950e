from typing import Any, Dict, List, Optional, Union

from pydantic import Field

from app.models.enums import ActionType, UserRole
from app.schemas.base import CamelModel


# ---------------------------------------------------------
# PERMISSION MATRIX
# ---------------------------------------------------------
class ModulePermission(CamelModel):
    module: str
    can_view: bool = False
    can_create: bool = False
    can_edit: bool = False
    can_delete: bool = False

    def allows(self, action: ActionType) -> bool:
        return bool(getattr(self, f"can_{ActionType(action).value}"))


class RolePermissions(CamelModel):
    role: UserRole
    permissions: List[ModulePermission] = Field(default_factory=list)

    def find(self, module: str) -> Optional[ModulePermission]:
        for perm in self.permissions:
            if perm.module == module:
                return perm
        return None


class PermissionUpdate(CamelModel):
    module: str
    action: ActionType
    enabled: bool


class PermissionCheck(CamelModel):
    role: str
    module: str
    action: ActionType
    allowed: bool


# ---------------------------------------------------------
# UI SETTINGS
# ---------------------------------------------------------
class RoleUISettings(CamelModel):
    role: UserRole
    primary_color: str
    accent_color: str
    sidebar_modules: List[str] = Field(default_factory=list)
    dashboard_widgets: List[str] = Field(default_factory=list)


class RoleUISettingsUpdate(CamelModel):
    primary_color: Optional[str] = None
    accent_color: Optional[str] = None
    sidebar_modules: Optional[List[str]] = None
    dashboard_widgets: Optional[List[str]] = None


# ---------------------------------------------------------
# SIDEBAR GROUPS
# ---------------------------------------------------------
class SidebarGroupConfig(CamelModel):
    id: str
    label: str
    icon: str = "Folder"
    color: str = "gray"
    modules: List[str] = Field(default_factory=list)
    # parent module -> child modules rendered beneath it
    nested_modules: Optional[Dict[str, List[str]]] = None

    def all_modules(self) -> List[str]:
        names = list(self.modules)
        for children in (self.nested_modules or {}).values():
            names.extend(children)
        return names


class SidebarSaveRequest(CamelModel):
    # JSON text or an already-decoded list of groups
    groups: Union[str, List[Any]]


class SidebarLayoutRead(CamelModel):
    role: str
    groups: List[SidebarGroupConfig]
    # registry modules not placed in any group
    available: List[str] = Field(default_factory=list)
    is_default: bool = False


class SidebarMoveRequest(CamelModel):
    module: str
    to_group: Optional[str] = None   # None -> back to the available pool
    index: Optional[int] = None


class SidebarGroupCreate(CamelModel):
    label: str
    icon: str = "Folder"
    color: str = "gray"
    id: Optional[str] = None


class SidebarGroupRename(CamelModel):
    label: str


class SidebarReorderRequest(CamelModel):
    group_id: str
    old_index: int
    new_index: int


# ---------------------------------------------------------
# CLUB OVERRIDES / SHORTCUTS
# ---------------------------------------------------------
class ClubSidebarOverride(CamelModel):
    """
    Per-organization sidebar override. `allowed` restricts the role
    sidebar to those names (None = no restriction); `added` appends.
    """
    allowed: Optional[List[str]] = None
    added: List[str] = Field(default_factory=list)


class NavbarShortcuts(CamelModel):
    slot2: Optional[str] = None
    slot4: Optional[str] = None


class EffectiveView(CamelModel):
    real_role: UserRole
    effective_role: UserRole
    simulating: bool
    sidebar: List[str]
    primary_color: str
    accent_color: str


# ---------------------------------------------------------
# REGISTRY (read-only)
# ---------------------------------------------------------
class ModuleInfo(CamelModel):
    name: str
    label: str
    icon: str
    category: str
    default_roles: List[UserRole] = Field(default_factory=list)


class RoleInfo(CamelModel):
    role: UserRole
    code: str
    label: str
