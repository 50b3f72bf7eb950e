# app/models/system_module.py

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, ForeignKey, String, Text, UniqueConstraint, Uuid
from typing import Optional
from uuid import UUID, uuid4


class SystemModule(SQLModel, table=True):
    """
    One entry of the federation module catalog.
    `target_roles` is persisted as JSON text (e.g. '["CLUB","SUPPLIER"]')
    and is only meaningful when module_type is ROLE_SPECIFIC.
    """
    __tablename__ = "system_modules"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    code: str = Field(sa_column=Column(String(64), nullable=False, unique=True, index=True))
    name: str = Field(sa_column=Column(String(128), nullable=False))
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    icon: Optional[str] = Field(default=None, sa_column=Column(String(64), nullable=True))

    category: str = Field(sa_column=Column(String(32), nullable=False))
    module_type: str = Field(default="UNIVERSAL", sa_column=Column(String(32), nullable=False))
    target_roles: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))


class SubModule(SQLModel, table=True):
    __tablename__ = "sub_modules"
    __table_args__ = (UniqueConstraint("module_id", "code", name="uq_sub_module_code"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    module_id: UUID = Field(
        sa_column=Column(Uuid, ForeignKey("system_modules.id", ondelete="CASCADE"), nullable=False, index=True)
    )

    code: str = Field(sa_column=Column(String(64), nullable=False))
    name: str = Field(sa_column=Column(String(128), nullable=False))


class ModuleOption(SQLModel, table=True):
    __tablename__ = "module_options"
    __table_args__ = (UniqueConstraint("sub_module_id", "code", name="uq_module_option_code"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    sub_module_id: UUID = Field(
        sa_column=Column(Uuid, ForeignKey("sub_modules.id", ondelete="CASCADE"), nullable=False, index=True)
    )

    code: str = Field(sa_column=Column(String(64), nullable=False))
    label: str = Field(sa_column=Column(String(255), nullable=False))
    type: str = Field(default="BOOLEAN", sa_column=Column(String(16), nullable=False))  # BOOLEAN / TEXT / NUMBER / DATE
    default_value: str = Field(default="", sa_column=Column(String(255), nullable=False))
