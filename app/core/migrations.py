# app/core/migrations.py

from dataclasses import dataclass

from loguru import logger

from app.core.registry import is_registered
from app.models.enums import UserRole
from app.schemas.permissions import ModulePermission, RolePermissions, RoleUISettings

# ----------------------------------------------------------------
# POST-HOC MODULE ADDITIONS
# Modules introduced after a role's record was first persisted.
# Each step runs once; applied ids are stored with the snapshot.
# ----------------------------------------------------------------


@dataclass(frozen=True)
class PostHocModuleAddition:
    id: str
    role: UserRole
    module: str
    grant_view: bool = True
    add_to_sidebar: bool = True


MIGRATIONS: list[PostHocModuleAddition] = [
    PostHocModuleAddition(id="2024-eo-events", role=UserRole.EO, module="events"),
]


def _apply_step(
    step: PostHocModuleAddition,
    permissions: list[RolePermissions],
    ui_settings: list[RoleUISettings],
) -> None:
    if step.grant_view:
        for record in permissions:
            if record.role != step.role:
                continue
            perm = record.find(step.module)
            if perm is None:
                record.permissions.append(ModulePermission(module=step.module, can_view=True))
            else:
                perm.can_view = True

    if step.add_to_sidebar:
        for settings in ui_settings:
            if settings.role == step.role and step.module not in settings.sidebar_modules:
                settings.sidebar_modules.append(step.module)


def apply_migrations(
    permissions: list[RolePermissions],
    ui_settings: list[RoleUISettings],
    applied: list[str],
    steps: list[PostHocModuleAddition] = MIGRATIONS,
) -> list[str]:
    """
    Applies pending steps in place and returns the ids applied by this call.
    `applied` is extended with them.
    """
    done = []
    for step in steps:
        if step.id in applied:
            continue
        if not is_registered(step.module):
            logger.warning(f"Skipping migration {step.id}: unknown module '{step.module}'")
            continue
        _apply_step(step, permissions, ui_settings)
        applied.append(step.id)
        done.append(step.id)
        logger.info(f"Applied data migration {step.id} ({step.role.value} += {step.module})")
    return done
