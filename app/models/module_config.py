# app/models/module_config.py

from sqlmodel import SQLModel, Field
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, UniqueConstraint, Uuid
from datetime import datetime, timezone
from uuid import UUID, uuid4


class RoleModuleConfig(SQLModel, table=True):
    """
    Per (role, module) switch. `config` is JSON text; the recognised key is
    `enabled_features` (list of sub-module codes).
    """
    __tablename__ = "role_module_configs"
    __table_args__ = (UniqueConstraint("role", "module_id", name="uq_role_module"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    role: str = Field(sa_column=Column(String(32), nullable=False, index=True))
    module_id: UUID = Field(
        sa_column=Column(Uuid, ForeignKey("system_modules.id", ondelete="CASCADE"), nullable=False)
    )

    is_enabled: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True))
    config: str = Field(default="{}", sa_column=Column(Text, nullable=False, default="{}"))

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )


class OrgModuleConfig(SQLModel, table=True):
    """
    Per (organization, module) switch. Same shape as RoleModuleConfig,
    scoped to a club/organization instead of a role.
    """
    __tablename__ = "org_module_configs"
    __table_args__ = (UniqueConstraint("organization_id", "module_id", name="uq_org_module"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    organization_id: str = Field(sa_column=Column(String(64), nullable=False, index=True))
    module_id: UUID = Field(
        sa_column=Column(Uuid, ForeignKey("system_modules.id", ondelete="CASCADE"), nullable=False)
    )

    is_enabled: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True))
    config: str = Field(default="{}", sa_column=Column(Text, nullable=False, default="{}"))

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
