from enum import Enum


class UserRole(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"   # 00
    PERPANI = "PERPANI"           # 01 - federation
    CLUB = "CLUB"                 # 02
    CLUB_OWNER = "CLUB_OWNER"     # 02a - alias for CLUB
    SCHOOL = "SCHOOL"             # 03
    ATHLETE = "ATHLETE"           # 04
    PARENT = "PARENT"             # 05
    COACH = "COACH"               # 06
    JUDGE = "JUDGE"               # 07
    EO = "EO"                     # 08 - event organizer
    SUPPLIER = "SUPPLIER"         # 09
    MANPOWER = "MANPOWER"         # 10


class ActionType(str, Enum):
    view = "view"
    create = "create"
    edit = "edit"
    delete = "delete"


class SidebarCategory(str, Enum):
    general = "general"
    role_specific = "role_specific"
    admin_only = "admin_only"


# Categories of the federation module catalog ("lego warehouse")
class ModuleCategory(str, Enum):
    FOUNDATION = "FOUNDATION"
    COMMERCE = "COMMERCE"
    OPS = "OPS"
    SPORT = "SPORT"
    ADMIN = "ADMIN"
    ATHLETE = "ATHLETE"


class ModuleType(str, Enum):
    UNIVERSAL = "UNIVERSAL"
    ROLE_SPECIFIC = "ROLE_SPECIFIC"


class ModuleLayoutType(str, Enum):
    calendar = "calendar"
    deck = "deck"
    table = "table"
    gallery = "gallery"
    detail = "detail"
    map = "map"
    chart = "chart"
    dashboard = "dashboard"
    form = "form"
    onboarding = "onboarding"
    card = "card"


class UIElementType(str, Enum):
    logo = "logo"
    icon = "icon"
    text = "text"
    button = "button"


class LayoutSection(str, Enum):
    leftTitle = "leftTitle"
    middleTitle = "middleTitle"
    rightTitle = "rightTitle"


def parse_role(value) -> UserRole | None:
    """
    Case-insensitive role lookup. Returns None for unknown roles
    instead of raising, so resolvers can degrade to "no access".
    """
    if isinstance(value, UserRole):
        return value
    if value is None:
        return None
    try:
        return UserRole(str(value).strip().upper())
    except ValueError:
        return None
