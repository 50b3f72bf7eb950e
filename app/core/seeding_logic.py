from sqlmodel import select
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import UserRole
from app.models.system_module import SystemModule, SubModule, ModuleOption
from app.services.auth_service import get_user_by_email, create_user
from app.core.database import AsyncSessionLocal
from app.core.config import settings
from app.core.wire import dump_json

# ----------------------------------------------------------------
# 1. DEFINE STATIC DATA (federation module catalog)
# ----------------------------------------------------------------

def _opt(code, label, type_="BOOLEAN", default="true"):
    return {"code": code, "label": label, "type": type_, "default_value": default}


MODULE_CATALOG = [
    {
        "code": "foundation", "name": "Foundation (Core)", "icon": "Shield",
        "category": "FOUNDATION", "module_type": "UNIVERSAL",
        "description": "Essential system features required for all users.",
        "sub_modules": [
            {"code": "auth", "name": "Auth & Session"},
            {"code": "profile", "name": "Profile & Identity"},
            {"code": "notification", "name": "Notification System"},
            {"code": "file_manager", "name": "File Manager"},
        ],
    },
    {
        "code": "commerce", "name": "Commerce & Finance", "icon": "ShoppingCart",
        "category": "COMMERCE", "module_type": "ROLE_SPECIFIC",
        "target_roles": ["CLUB", "SUPPLIER", "SUPER_ADMIN"],
        "description": "Sales, inventory, and financial management.",
        "sub_modules": [
            {"code": "catalog", "name": "Product Catalog",
             "options": [_opt("allow_variants", "Allow Product Variants")]},
            {"code": "inventory", "name": "Inventory (Simple)"},
            {"code": "orders", "name": "Order Processing",
             "options": [_opt("auto_confirm", "Auto Confirm Orders", default="false")]},
            {"code": "finance", "name": "Finance & Invoicing"},
        ],
    },
    {
        "code": "manufacturing", "name": "Manufacturing & Ops", "icon": "Factory",
        "category": "OPS", "module_type": "ROLE_SPECIFIC",
        "target_roles": ["SUPPLIER", "MANPOWER"],
        "description": "End-to-end production tracking for manufacturers.",
        "sub_modules": [
            {"code": "timeline", "name": "Production Timeline (Gantt)"},
            {"code": "workstation", "name": "Workstation Assignment"},
            {"code": "qc", "name": "QC & Inspection"},
            {"code": "logistics", "name": "Courier & Logistics"},
            {"code": "repair", "name": "Repair Handling (RMA)"},
        ],
    },
    {
        "code": "sport", "name": "Sport & Event", "icon": "Target",
        "category": "SPORT", "module_type": "ROLE_SPECIFIC",
        "target_roles": ["ATHLETE", "COACH", "CLUB"],
        "description": "Archery specific features for athletes and clubs.",
        "sub_modules": [
            {"code": "scoring", "name": "Scoring System"},
            {"code": "training", "name": "Training Schedule"},
            {"code": "bleep", "name": "Bleep Test (VO2 Max)"},
            {"code": "attendance", "name": "QR Attendance"},
            {"code": "equipment", "name": "Equipment Config Advisor"},
        ],
    },
    {
        "code": "admin", "name": "Admin Utilities", "icon": "Settings",
        "category": "ADMIN", "module_type": "ROLE_SPECIFIC",
        "target_roles": ["SUPER_ADMIN"],
        "description": "System management tools.",
        "sub_modules": [
            {"code": "user_mgmt", "name": "User Management"},
            {"code": "module_builder", "name": "Module Builder"},
            {"code": "permissions", "name": "Role Permissions"},
        ],
    },
    {
        "code": "athlete_foundation", "name": "Athlete Foundation", "icon": "User",
        "category": "ATHLETE", "module_type": "ROLE_SPECIFIC", "target_roles": ["ATHLETE"],
        "description": "Core modules for Athlete role: Personal Information, Notification, File Manager",
        "sub_modules": [
            {"code": "personal_info", "name": "Personal Information Collection",
             "options": [_opt("account_verification", "Account Verification")]},
            {"code": "notification_sys", "name": "Notification System",
             "options": [_opt("inbox_outbox", "Inbox/Outbox Message SIP")]},
            {"code": "file_manager", "name": "File Manager",
             "options": [_opt("file_upload", "File Name, Upload")]},
            {"code": "archer_details", "name": "Archer Details", "options": [
                _opt("division", "Division", "TEXT", ""),
                _opt("gender", "Gender", "TEXT", ""),
                _opt("shooting_distance", "Shooting Distance", "TEXT", ""),
                _opt("date_of_birth", "Date of Birth", "DATE", ""),
                _opt("body_weight", "Body Weight (kg)", "NUMBER", ""),
                _opt("body_height", "Body Height (cm)", "NUMBER", ""),
            ]},
        ],
    },
    {
        "code": "athlete_dashboard", "name": "[Mod] Dashboard", "icon": "LayoutDashboard",
        "category": "ATHLETE", "module_type": "ROLE_SPECIFIC", "target_roles": ["ATHLETE"],
        "description": "Athlete Dashboard with performance timelines and statistics",
        "sub_modules": [
            {"code": "index_arrow_timeline", "name": "[Sub] Index Arrow Timeline"},
            {"code": "bmi_timeline", "name": "[Sub] BMI Timeline"},
            {"code": "training_performance_timeline", "name": "[Sub] Training Performance Timeline"},
            {"code": "top_performers", "name": "[Sub] Top Performers"},
        ],
    },
    {
        "code": "athlete_digital_id", "name": "[Mod] Digital ID Card", "icon": "CreditCard",
        "category": "ATHLETE", "module_type": "ROLE_SPECIFIC", "target_roles": ["ATHLETE"],
        "description": "Digital identification card for athletes",
        "sub_modules": [
            {"code": "id_card_settings", "name": "ID Card Settings", "options": [
                _opt("show_qr", "Show QR Code"),
                _opt("show_stats", "Show Statistics"),
            ]},
        ],
    },
    {
        "code": "athlete_archery_guidance", "name": "[Mod] Archery Guidance", "icon": "Shield",
        "category": "ATHLETE", "module_type": "ROLE_SPECIFIC", "target_roles": ["ATHLETE"],
        "description": "Safety guidelines and equipment recommendations for archers",
        "sub_modules": [
            {"code": "safety_in_archery", "name": "[Sub] Safety in Archery", "options": [
                _opt("no_safety_no_archery", "No Safety No Archery"),
                _opt("preparation_check", "Preparation Check"),
                _opt("follow_the_signal", "Follow the Signal"),
            ]},
            {"code": "equipment_preferences", "name": "[Sub] Equipment Preferences", "options": [
                _opt("bow_recommendation", "Bow Recommendation (Draw Length)"),
                _opt("safety_accessories", "Safety Accessories"),
            ]},
        ],
    },
    {
        "code": "athlete_training_schedule", "name": "[Mod] Training Schedule", "icon": "Calendar",
        "category": "ATHLETE", "module_type": "ROLE_SPECIFIC", "target_roles": ["ATHLETE"],
        "description": "Training schedule management for technique, fitness, and mental",
        "sub_modules": [
            {"code": "technique", "name": "[Sub] Technique"},
            {"code": "fitness", "name": "[Sub] Fitness"},
            {"code": "mental", "name": "[Sub] Mental"},
        ],
    },
    {
        "code": "athlete_scoring", "name": "[Mod] Scoring", "icon": "Target",
        "category": "ATHLETE", "module_type": "ROLE_SPECIFIC", "target_roles": ["ATHLETE"],
        "description": "Scoring records and history for athletes",
        "sub_modules": [
            {"code": "scoring_history", "name": "Scoring History"},
            {"code": "scoring_statistics", "name": "Scoring Statistics"},
        ],
    },
    {
        "code": "athlete_event", "name": "[Mod] Event", "icon": "Trophy",
        "category": "ATHLETE", "module_type": "ROLE_SPECIFIC", "target_roles": ["ATHLETE"],
        "description": "Event participation and registration management",
        "sub_modules": [
            {"code": "calendar", "name": "[Sub] Calendar"},
            {"code": "registration", "name": "[Sub] Registration"},
            {"code": "participant_record", "name": "[Sub] Participant Record"},
        ],
    },
]


# ----------------------------------------------------------------
# 2. SEEDING FUNCTIONS (idempotent, keyed by code)
# ----------------------------------------------------------------

async def seed_all():
    async with AsyncSessionLocal() as session:
        try:
            if settings.SEED_SYSTEM_MODULES:
                await seed_system_modules(session)
            await seed_admin_user(session)
            await session.commit()
            logger.success("Seeding complete.")
        except Exception as e:
            logger.error(f"Seeding failed: {e}")
            await session.rollback()
            raise


async def seed_system_modules(session: AsyncSession, catalog: list[dict] = MODULE_CATALOG):
    for data in catalog:
        target_roles = data.get("target_roles")
        result = await session.execute(select(SystemModule).where(SystemModule.code == data["code"]))
        module = result.scalar_one_or_none()

        if not module:
            logger.info(f"Creating module: {data['code']}")
            module = SystemModule(code=data["code"], name=data["name"], category=data["category"])
        module.name = data["name"]
        module.description = data.get("description")
        module.icon = data.get("icon")
        module.category = data["category"]
        module.module_type = data.get("module_type", "UNIVERSAL")
        module.target_roles = dump_json(target_roles) if target_roles else None
        session.add(module)
        await session.flush()  # need module.id

        for sub_data in data.get("sub_modules", []):
            await _seed_sub_module(session, module, sub_data)
    await session.flush()


async def _seed_sub_module(session: AsyncSession, module: SystemModule, data: dict):
    result = await session.execute(
        select(SubModule).where(SubModule.module_id == module.id, SubModule.code == data["code"])
    )
    sub = result.scalar_one_or_none()
    if not sub:
        sub = SubModule(module_id=module.id, code=data["code"], name=data["name"])
    sub.name = data["name"]
    session.add(sub)
    await session.flush()

    for opt in data.get("options", []):
        result = await session.execute(
            select(ModuleOption).where(ModuleOption.sub_module_id == sub.id, ModuleOption.code == opt["code"])
        )
        option = result.scalar_one_or_none()
        if not option:
            option = ModuleOption(sub_module_id=sub.id, code=opt["code"], label=opt["label"])
        option.label = opt["label"]
        option.type = opt["type"]
        option.default_value = opt["default_value"]
        session.add(option)


async def seed_admin_user(session: AsyncSession):
    if not settings.SUPER_ADMIN_EMAIL or not settings.SUPER_ADMIN_PASSWORD:
        logger.warning("Missing Super Admin credentials in settings.")
        return

    if await get_user_by_email(session, settings.SUPER_ADMIN_EMAIL):
        logger.info("Super Admin already exists. Skipping.")
        return

    await create_user(
        session=session,
        name=settings.SUPER_ADMIN_NAME or "Super Admin",
        email=settings.SUPER_ADMIN_EMAIL,
        password=settings.SUPER_ADMIN_PASSWORD,
        role=UserRole.SUPER_ADMIN,
        sip_id="00.0000.0001",
    )
    logger.success("Super Admin created.")
