# app/api/endpoints/logs.py

from fastapi import APIRouter, Depends, Query
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from typing import List, Optional

# Database dependencies
from app.api.deps import get_db_session, require_super_admin

# Models
from app.models.user import User
from app.models.system_audit import SystemAuditLog

# Schemas
from app.schemas.audit import SystemAuditLogRead

router = APIRouter(prefix="/api/v1/audit", tags=["Audit & Logs"])


# -------------------------------------------------------------------
# VIEW CONFIGURATION AUDIT TRAIL (permission, module and sidebar edits)
# -------------------------------------------------------------------
@router.get("/system-logs", response_model=List[SystemAuditLogRead])
async def get_system_logs(
    event_type: Optional[str] = Query(None, description="Filter by event type"),
    resource_type: Optional[str] = Query(None, description="Filter by resource type"),
    status: Optional[str] = Query(None, description="Filter by status"),
    limit: int = Query(100, ge=1, le=500),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_super_admin),
):
    query = select(SystemAuditLog).order_by(SystemAuditLog.timestamp.desc()).limit(limit)

    if event_type:
        query = query.where(SystemAuditLog.event_type == event_type)
    if resource_type:
        query = query.where(SystemAuditLog.resource_type == resource_type)
    if status:
        query = query.where(SystemAuditLog.status == status)

    result = await session.execute(query)
    return result.scalars().all()
