# app/models/system_audit.py

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, JSON
from typing import Optional, Dict, Any
from uuid import UUID, uuid4
from datetime import datetime, timezone

class SystemAuditLog(SQLModel, table=True):
    __tablename__ = "system_audit_logs"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    # Who did it (null for system actions such as startup seeding)
    actor_id: Optional[UUID] = Field(default=None, foreign_key="users.id")
    actor_role: Optional[str] = None

    # e.g. "ROLE_MODULE_UPDATED", "SIDEBAR_RESET", "PERMISSIONS_RESET"
    event_type: str = Field(index=True)

    # What was affected (e.g. "RoleModuleConfig", "SidebarRoleConfig") and its key
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None

    old_values: Dict[str, Any] = Field(default={}, sa_column=Column(JSON))
    new_values: Dict[str, Any] = Field(default={}, sa_column=Column(JSON))

    # "SUCCESS" / "FAILURE" / "REJECTED"
    status: str = Field(default="SUCCESS")

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
