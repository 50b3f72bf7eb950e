from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, String, Text
from datetime import datetime, timezone


class SidebarRoleConfig(SQLModel, table=True):
    __tablename__ = "sidebar_role_configs"

    role: str = Field(sa_column=Column(String(32), primary_key=True))

    # JSON text of a SidebarGroupConfig list
    groups: str = Field(sa_column=Column(Text, nullable=False))

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
