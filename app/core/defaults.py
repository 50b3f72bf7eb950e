# app/core/defaults.py

from copy import deepcopy
from typing import Callable, Iterable

from app.core.registry import MODULE_LIST, MODULE_NAMES
from app.models.enums import UserRole as R
from app.schemas.permissions import (
    ModulePermission,
    RolePermissions,
    RoleUISettings,
    SidebarGroupConfig,
)
from app.schemas.ui_builder import ModuleLayout, UIElement, UIModuleConfig

# ----------------------------------------------------------------
# 1. PERMISSION MATRIX
# Each role is described by four predicates over the module name
# (view, create, edit, delete) and expanded over MODULE_LIST.
# ----------------------------------------------------------------

Rule = Callable[[str], bool]


def _all(_: str) -> bool:
    return True


def _none(_: str) -> bool:
    return False


def _only(*names: str) -> Rule:
    allowed = frozenset(names)
    return lambda name: name in allowed


def _except(*names: str) -> Rule:
    blocked = frozenset(names)
    return lambda name: name not in blocked


_CLUB_RULES = (_except("admin"),) * 4

PERMISSION_RULES: dict[R, tuple[Rule, Rule, Rule, Rule]] = {
    R.SUPER_ADMIN: (_all, _all, _all, _all),
    R.PERPANI: (_all, _except("admin"), _except("admin"), _only("athletes", "schedules")),
    R.CLUB: _CLUB_RULES,
    R.CLUB_OWNER: _CLUB_RULES,
    R.SCHOOL: (
        _except("admin", "finance"),
        _only("athletes", "schedules", "attendance"),
        _only("athletes", "schedules", "profile"),
        _none,
    ),
    R.ATHLETE: (
        _only(
            "dashboard", "scoring", "bleep_test", "schedules", "attendance", "analytics",
            "profile", "digitalcard", "archerconfig", "athlete_training_schedule",
            "athlete_archery_guidance", "achievements", "progress",
        ),
        _only("scoring"),
        _only("profile", "archerconfig"),
        _none,
    ),
    R.PARENT: (
        _only("dashboard", "schedules", "analytics", "profile", "digitalcard", "finance"),
        _none,
        _only("profile"),
        _none,
    ),
    R.COACH: (
        _except("finance", "admin"),
        _only("scoring", "bleep_test", "schedules", "attendance"),
        _only("athletes", "scoring", "schedules", "profile", "coach_analytics"),
        _none,
    ),
    R.JUDGE: (
        _only("dashboard", "scoring", "schedules", "athletes", "profile", "digitalcard"),
        _only("scoring"),
        _only("scoring", "profile"),
        _none,
    ),
    R.EO: (
        _only("dashboard", "schedules", "athletes", "attendance", "reports", "profile", "digitalcard", "events"),
        _only("schedules"),
        _only("schedules", "profile"),
        _none,
    ),
    R.SUPPLIER: (
        _only("dashboard", "inventory", "profile", "digitalcard"),
        _only("inventory"),
        _only("inventory", "profile"),
        _none,
    ),
    R.MANPOWER: (
        _only("dashboard", "profile", "inventory", "schedules", "finance"),
        _none,
        _only("profile"),
        _none,
    ),
}


def _expand(role: R) -> RolePermissions:
    view, create, edit, delete = PERMISSION_RULES[role]
    return RolePermissions(
        role=role,
        permissions=[
            ModulePermission(
                module=m.name,
                can_view=view(m.name),
                can_create=create(m.name),
                can_edit=edit(m.name),
                can_delete=delete(m.name),
            )
            for m in MODULE_LIST
        ],
    )


DEFAULT_PERMISSIONS: list[RolePermissions] = [_expand(role) for role in R]


# ----------------------------------------------------------------
# 2. UI SETTINGS (colours, default sidebar, dashboard widgets)
# ----------------------------------------------------------------

_WIDGETS_FULL = ["stats", "topPerformers", "quickActions", "charts"]

_CLUB_SIDEBAR = [
    "dashboard", "profile", "digitalcard", "notifications",
    "organization", "finance", "inventory", "member_approval", "invoicing",
    "enhanced_reports", "filemanager", "club_permissions",
    "scoring", "achievements", "progress", "athlete_training_schedule",
    "athlete_archery_guidance", "bleep_test", "archerconfig", "attendance_history",
    "coach_analytics", "score_validation", "payments",
    "athletes", "schedules", "attendance", "analytics", "reports",
]

_UI_TABLE = [
    # role, primary, accent, sidebar, widgets
    (R.SUPER_ADMIN, "#ef4444", "#f97316", list(MODULE_NAMES), _WIDGETS_FULL),
    (R.PERPANI, "#dc2626", "#ea580c", [n for n in MODULE_NAMES if n != "admin"], _WIDGETS_FULL),
    (R.CLUB, "#f97316", "#eab308", _CLUB_SIDEBAR, _WIDGETS_FULL + ["finance"]),
    (R.CLUB_OWNER, "#f97316", "#eab308", _CLUB_SIDEBAR, _WIDGETS_FULL + ["finance"]),
    (R.SCHOOL, "#10b981", "#14b8a6", [
        "dashboard", "athletes", "scoring", "bleep_test", "schedules", "attendance",
        "analytics", "reports", "profile", "digitalcard", "o2sn_registration",
    ], _WIDGETS_FULL),
    (R.ATHLETE, "#3b82f6", "#0ea5e9", [
        "dashboard", "achievements", "progress", "scoring", "bleep_test",
        "athlete_training_schedule", "athlete_archery_guidance", "schedules", "attendance",
        "attendance_history", "analytics", "profile", "digitalcard", "archerconfig",
    ], ["stats", "quickActions", "charts"]),
    (R.PARENT, "#a855f7", "#d946ef", [
        "dashboard", "schedules", "analytics", "finance", "payments", "profile", "digitalcard",
    ], ["stats", "charts"]),
    (R.COACH, "#22c55e", "#10b981", [
        "dashboard", "athletes", "scoring", "bleep_test", "schedules", "attendance", "inventory",
        "analytics", "reports", "profile", "digitalcard", "archerconfig", "coach_analytics",
    ], _WIDGETS_FULL),
    (R.JUDGE, "#6366f1", "#8b5cf6", [
        "dashboard", "scoring", "schedules", "athletes", "profile", "digitalcard",
    ], ["stats", "quickActions"]),
    (R.EO, "#14b8a6", "#06b6d4", [
        "dashboard", "events", "schedules", "athletes", "attendance", "reports", "profile", "digitalcard",
    ], ["stats", "quickActions", "charts"]),
    (R.SUPPLIER, "#f43f5e", "#fb7185", ["dashboard", "inventory", "profile", "digitalcard"], ["stats", "quickActions"]),
    (R.MANPOWER, "#8b5cf6", "#a78bfa", ["dashboard", "profile", "inventory"], ["stats", "quickActions"]),
]

DEFAULT_UI_SETTINGS: list[RoleUISettings] = [
    RoleUISettings(
        role=role,
        primary_color=primary,
        accent_color=accent,
        sidebar_modules=list(sidebar),
        dashboard_widgets=list(widgets),
    )
    for role, primary, accent, sidebar, widgets in _UI_TABLE
]


# ----------------------------------------------------------------
# 3. SIDEBAR GROUP CATALOG
# ----------------------------------------------------------------

SIDEBAR_ROLE_GROUPS: list[SidebarGroupConfig] = [
    SidebarGroupConfig(id="general", label="General", icon="LayoutDashboard", color="primary",
                       modules=["dashboard", "profile", "digitalcard", "notifications"]),
    SidebarGroupConfig(id="athlete", label="Athlete", icon="Target", color="blue",
                       modules=["scoring", "achievements", "progress", "athlete_training_schedule",
                                "athlete_archery_guidance", "bleep_test", "archerconfig", "attendance_history"]),
    SidebarGroupConfig(id="coach", label="Coach", icon="Users", color="green",
                       modules=["coach_analytics", "score_validation", "athletes", "schedules", "attendance"]),
    SidebarGroupConfig(id="club", label="Club", icon="Building2", color="orange",
                       modules=["organization", "finance", "inventory", "member_approval", "invoicing",
                                "enhanced_reports", "filemanager", "club_permissions", "analytics", "reports"]),
    SidebarGroupConfig(id="school", label="School", icon="GraduationCap", color="emerald",
                       modules=["schools", "o2sn_registration"]),
    SidebarGroupConfig(id="parent", label="Parent", icon="Heart", color="purple",
                       modules=["payments"]),
    SidebarGroupConfig(id="eo", label="Event Organizer", icon="Calendar", color="teal",
                       modules=["events", "event_creation", "event_registration", "event_results"]),
    SidebarGroupConfig(id="judge", label="Judge", icon="Scale", color="indigo",
                       modules=["score_validation"]),
    SidebarGroupConfig(id="supplier", label="Supplier", icon="Package", color="rose",
                       modules=["jersey", "manpower", "inventory"],
                       nested_modules={"jersey": ["quality_control", "shipping"]}),
    SidebarGroupConfig(id="manpower", label="Manpower", icon="Wrench", color="violet",
                       modules=["manpower", "inventory", "jersey"],
                       nested_modules={"jersey": ["quality_control", "shipping"]}),
    SidebarGroupConfig(id="perpani", label="Federation", icon="Award", color="red",
                       modules=["perpani_management", "licensing", "club_approval"]),
    SidebarGroupConfig(id="system", label="System", icon="Settings", color="gray",
                       modules=["history", "admin", "audit_logs"]),
]


def default_sidebar_groups(role: R) -> list[SidebarGroupConfig]:
    """
    The catalog narrowed to what `role` sees by default. Each module lands in
    the first group that lists it; groups left empty are dropped.
    """
    visible = set(get_default_ui_settings(role).sidebar_modules)
    seen: set[str] = set()
    groups = []

    def take(names: Iterable[str]) -> list[str]:
        kept = [n for n in names if n in visible and n not in seen]
        seen.update(kept)
        return kept

    for group in SIDEBAR_ROLE_GROUPS:
        modules = take(group.modules)
        nested = None
        if group.nested_modules:
            nested = {
                parent: take(children)
                for parent, children in group.nested_modules.items()
                if parent in modules
            }
        if modules:
            groups.append(group.model_copy(update={"modules": modules, "nested_modules": nested or None}, deep=True))
    return groups


# ----------------------------------------------------------------
# 4. MODULE LAYOUTS (UI builder header slots)
# ----------------------------------------------------------------

def _text(id_: str, content: str, style: str) -> UIElement:
    return UIElement(id=id_, type="text", config={"content": content, "style": style})


def _button(id_: str, label: str, target: str, variant: str = "primary") -> UIElement:
    return UIElement(id=id_, type="button",
                     config={"label": label, "action": "modal", "target": target, "variant": variant})


def _layout(prefix: str, title: str, subtitle: str, button: tuple | None = None) -> ModuleLayout:
    left = [_text(f"{prefix}_title", title, "heading"), _text(f"{prefix}_subtitle", subtitle, "subheading")]
    right = [_button(f"{prefix}_btn", *button)] if button else None
    return ModuleLayout(left_title=left, right_title=right)


DEFAULT_MODULE_LAYOUTS: dict[str, ModuleLayout] = {
    "dashboard": _layout("dash", "Welcome back, {user.name}", "Here's what's happening today",
                         ("Quick Actions", "quickActions", "secondary")),
    "athletes": _layout("ath", "Athletes", "Manage your team members", ("Add Athlete", "addAthlete")),
    "scoring": _layout("sc", "Scoring", "Track scores and performance", ("New Session", "newSession")),
    "schedules": _layout("sch", "Schedules", "Manage training and events", ("Add Event", "addEvent")),
    "attendance": _layout("att", "Attendance", "Track check-ins and presence"),
    "finance": _layout("fin", "Finance", "Payments and transactions", ("New Transaction", "newTransaction")),
    "inventory": _layout("inv", "Inventory", "Equipment and supplies", ("Add Item", "addItem")),
    "analytics": _layout("ana", "Analytics", "Performance insights"),
    "reports": _layout("rep", "Reports", "Generate and export reports", ("Generate", "generateReport")),
    "profile": _layout("pro", "Profile", "Your personal information", ("Edit Profile", "editProfile", "secondary")),
    "digitalcard": _layout("dc", "Digital ID Card", "Your membership card", ("Download", "downloadCard")),
    "archerconfig": _layout("ac", "Archer Config", "Equipment settings", ("Save Config", "saveConfig")),
    "organization": _layout("org", "Organization", "Club information", ("Edit Info", "editOrg", "secondary")),
    "manpower": _layout("mp", "Manpower", "Staff and coaches", ("Add Member", "addMember")),
    "filemanager": _layout("fm", "File Manager", "Documents and media", ("Upload", "uploadFile")),
    "admin": _layout("adm", "Admin Panel", "System configuration"),
}


def generate_default_module_configs(modules: Iterable[str]) -> list[UIModuleConfig]:
    return [
        UIModuleConfig(
            module_id=module_id,
            visible=True,
            order=index,
            layout=deepcopy(DEFAULT_MODULE_LAYOUTS.get(module_id)),
        )
        for index, module_id in enumerate(modules)
    ]


# ----------------------------------------------------------------
# 5. ACCESSORS (always deep copies)
# ----------------------------------------------------------------

def get_default_permissions() -> list[RolePermissions]:
    return deepcopy(DEFAULT_PERMISSIONS)


def get_default_ui_settings(role: R | None = None):
    """
    All roles when `role` is None, otherwise that role's entry
    (falling back to the first entry for roles without one).
    """
    if role is None:
        return deepcopy(DEFAULT_UI_SETTINGS)
    for entry in DEFAULT_UI_SETTINGS:
        if entry.role == role:
            return entry.model_copy(deep=True)
    return DEFAULT_UI_SETTINGS[0].model_copy(deep=True)


def get_default_role_permissions(role: R) -> RolePermissions | None:
    for entry in DEFAULT_PERMISSIONS:
        if entry.role == role:
            return entry.model_copy(deep=True)
    return None
