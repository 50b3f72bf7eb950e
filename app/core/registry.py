# app/core/registry.py

from dataclasses import dataclass, field
from typing import Optional

from app.models.enums import SidebarCategory as C, UserRole as R

# ==========================================================
# MODULE REGISTRY
# Every module name referenced by permissions, sidebars or
# layouts must be listed here; anything else is invisible.
# ==========================================================


@dataclass(frozen=True)
class ModuleMetadata:
    name: str
    label: str
    icon: str
    category: C
    default_roles: tuple = field(default_factory=tuple)


def _m(name, label, icon, category, *roles) -> ModuleMetadata:
    return ModuleMetadata(name=name, label=label, icon=icon, category=category, default_roles=tuple(roles))


_STAFF = (R.ATHLETE, R.COACH, R.CLUB, R.SCHOOL, R.PARENT, R.EO, R.JUDGE, R.SUPPLIER, R.MANPOWER)

MODULE_LIST: list[ModuleMetadata] = [
    # --- General (Visible to All/Most) ---
    _m("dashboard", "Dashboard", "LayoutDashboard", C.general, *_STAFF),
    _m("profile", "Profile", "User", C.general, *_STAFF),
    _m("digitalcard", "Digital ID Card", "CreditCard", C.general, *_STAFF[:-1]),
    _m("notifications", "Notifications", "Bell", C.general, R.ATHLETE, R.COACH, R.CLUB, R.SCHOOL, R.PARENT),

    # --- Athlete ---
    _m("scoring", "Scoring", "Target", C.role_specific, R.ATHLETE, R.COACH, R.CLUB),
    _m("achievements", "Achievements", "Trophy", C.role_specific, R.ATHLETE),
    _m("progress", "Progress Charts", "TrendingUp", C.role_specific, R.ATHLETE),
    _m("athlete_training_schedule", "Training Schedule", "Calendar", C.role_specific, R.ATHLETE),
    _m("athlete_archery_guidance", "Archery Guidance", "Shield", C.role_specific, R.ATHLETE),
    _m("bleep_test", "Bleep Test", "Timer", C.role_specific, R.ATHLETE, R.COACH),
    _m("archerconfig", "Archer Config", "Target", C.role_specific, R.ATHLETE, R.COACH),
    _m("attendance_history", "Attendance History", "Calendar", C.role_specific, R.ATHLETE),

    # --- Coach ---
    _m("coach_analytics", "Team Analytics", "BarChart3", C.role_specific, R.COACH),
    _m("score_validation", "Score Validation", "Target", C.role_specific, R.COACH, R.JUDGE),

    # --- Club ---
    _m("athletes", "Athletes", "Users", C.role_specific, R.CLUB, R.COACH, R.SCHOOL, R.EO),
    _m("schedules", "Schedules", "Calendar", C.role_specific, R.CLUB, R.COACH, R.SCHOOL, R.EO, R.JUDGE),
    _m("attendance", "Attendance", "CheckSquare", C.role_specific, R.CLUB, R.COACH, R.SCHOOL, R.EO),
    _m("finance", "Finance", "DollarSign", C.role_specific, R.CLUB, R.PARENT),
    _m("inventory", "Inventory", "Package", C.role_specific, R.CLUB, R.SUPPLIER, R.MANPOWER),
    _m("organization", "Organization", "Building2", C.role_specific, R.CLUB),
    _m("member_approval", "Member Approval", "UserCheck", C.role_specific, R.CLUB),
    _m("invoicing", "Invoicing", "Receipt", C.role_specific, R.CLUB),
    _m("club_permissions", "Club Panel", "Shield", C.role_specific, R.CLUB),
    _m("club_approval", "Club Approval", "Building2", C.role_specific, R.PERPANI),

    # --- School ---
    _m("schools", "Schools", "GraduationCap", C.role_specific, R.SCHOOL),
    _m("o2sn_registration", "O2SN Registration", "Trophy", C.role_specific, R.SCHOOL),

    # --- Parent ---
    _m("payments", "Payments", "CreditCard", C.role_specific, R.PARENT),

    # --- Event Organizer ---
    _m("events", "Events", "Calendar", C.role_specific, R.EO, R.JUDGE, R.COACH),
    _m("event_creation", "Create Event", "Plus", C.role_specific, R.EO),
    _m("event_registration", "Registrations", "Users", C.role_specific, R.EO),
    _m("event_results", "Results", "Trophy", C.role_specific, R.EO),

    # --- Supplier / Manpower ---
    _m("jersey", "Jersey System", "Shirt", C.role_specific, R.SUPPLIER),
    _m("shipping", "Shipping", "Truck", C.role_specific, R.SUPPLIER, R.MANPOWER),
    _m("manpower", "Manpower", "Users", C.role_specific, R.SUPPLIER, R.MANPOWER),
    _m("quality_control", "Quality Control", "CheckCircle", C.role_specific, R.MANPOWER, R.SUPPLIER),

    # --- Federation ---
    _m("perpani_management", "Perpani Management", "Building2", C.role_specific, R.PERPANI),
    _m("licensing", "Licensing", "Award", C.role_specific, R.PERPANI),

    # --- Common / Shared ---
    _m("analytics", "Analytics", "BarChart3", C.role_specific, R.CLUB, R.SCHOOL, R.COACH),
    _m("reports", "Reports", "FileText", C.role_specific, R.CLUB, R.SCHOOL, R.COACH, R.EO),
    _m("enhanced_reports", "Enhanced Reports", "FileBarChart", C.role_specific, R.CLUB),
    _m("filemanager", "File Manager", "FolderOpen", C.role_specific, R.CLUB, R.SUPER_ADMIN),
    _m("history", "History", "History", C.role_specific, R.SUPER_ADMIN),

    # --- Admin Only ---
    _m("admin", "Admin Panel", "Settings", C.admin_only, R.SUPER_ADMIN),
    _m("audit_logs", "Audit Logs", "FileSearch", C.admin_only, R.SUPER_ADMIN),
]

MODULE_NAMES: tuple[str, ...] = tuple(m.name for m in MODULE_LIST)
_BY_NAME = {m.name: m for m in MODULE_LIST}


# Role display metadata
ROLE_LIST: list[dict] = [
    {"role": R.SUPER_ADMIN, "code": "00", "label": "Super Admin"},
    {"role": R.PERPANI, "code": "01", "label": "Perpani"},
    {"role": R.CLUB, "code": "02", "label": "Club"},
    {"role": R.CLUB_OWNER, "code": "02a", "label": "Club Owner"},
    {"role": R.SCHOOL, "code": "03", "label": "School"},
    {"role": R.ATHLETE, "code": "04", "label": "Athlete"},
    {"role": R.PARENT, "code": "05", "label": "Parent"},
    {"role": R.COACH, "code": "06", "label": "Coach"},
    {"role": R.JUDGE, "code": "07", "label": "Judge"},
    {"role": R.EO, "code": "08", "label": "Event Organizer"},
    {"role": R.SUPPLIER, "code": "09", "label": "Supplier"},
    {"role": R.MANPOWER, "code": "10", "label": "Manpower"},
]


def is_registered(name: str) -> bool:
    return name in _BY_NAME


def get_module(name: str) -> Optional[ModuleMetadata]:
    return _BY_NAME.get(name)


def registered_only(names) -> list[str]:
    """Drop unknown module names and duplicates, keeping first position."""
    seen = set()
    result = []
    for name in names:
        if name in _BY_NAME and name not in seen:
            seen.add(name)
            result.append(name)
    return result
