from pydantic import BaseModel
from typing import Optional, Dict, Any
from uuid import UUID
from datetime import datetime


class SystemAuditLogRead(BaseModel):
    id: UUID
    actor_id: Optional[UUID] = None
    actor_role: Optional[str] = None
    event_type: str
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    status: str
    timestamp: datetime

    class Config:
        from_attributes = True
