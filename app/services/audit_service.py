# app/services/audit_service.py

from typing import Any, Dict, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from app.core.database import AsyncSessionLocal
from app.models.system_audit import SystemAuditLog


async def log_system_event(
    event_type: str,
    actor_id: Optional[UUID] = None,
    actor_role: Optional[str] = None,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    old_values: Optional[Dict[str, Any]] = None,
    new_values: Optional[Dict[str, Any]] = None,
    status: str = "SUCCESS",
) -> None:
    """
    Records one configuration change in its own session.
    Safe for use in BackgroundTasks; failures are logged, never raised.
    """
    async with AsyncSessionLocal() as session:
        try:
            session.add(SystemAuditLog(
                actor_id=actor_id,
                actor_role=actor_role,
                event_type=event_type,
                resource_type=resource_type,
                resource_id=resource_id,
                old_values=old_values or {},
                new_values=new_values or {},
                status=status,
            ))
            await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Audit log write failed ({event_type}): {e}")
            await session.rollback()
