# app/api/deps.py

from typing import AsyncGenerator, Optional

import jwt
from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import AsyncSessionLocal, get_session
from app.core.exceptions import SimulationNotAllowedError
from app.core.security import decode_token
from app.models.enums import UserRole, parse_role
from app.models.user import User
from app.services.auth_service import get_user_by_id, get_user_by_sip_id
from app.services.permission_service import DatabaseBackend, PermissionStore
from app.services.simulation_service import SimulationController
from app.services.ui_builder_service import UIBuilderStore


# ------------------------------------------------------------
# HTTP Bearer Authentication
# ------------------------------------------------------------
bearer_scheme = HTTPBearer(auto_error=True)


# ------------------------------------------------------------
# DB Session
# ------------------------------------------------------------
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


# ------------------------------------------------------------
# Get current logged-in user from JWT
# ------------------------------------------------------------
async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db_session),
) -> User:

    try:
        payload = decode_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise HTTPException(401, "Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(401, "Could not validate credentials")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(401, "Invalid token payload")

    user = await get_user_by_id(session, user_id)
    if not user:
        raise HTTPException(401, "User not found")

    return user


# ------------------------------------------------------------
# Role-based access control (case-safe, SUPER_ADMIN bypass)
# ------------------------------------------------------------
def role_required(*allowed_roles: UserRole):
    """
    Enforces that the current user has one of the allowed roles.
    SUPER_ADMIN always passes.
    """
    normalized_allowed = {parse_role(r) for r in allowed_roles} - {None}

    async def checker(current_user: User = Depends(get_current_user)):
        user_role = parse_role(current_user.role)

        if user_role == UserRole.SUPER_ADMIN:
            return current_user

        if user_role not in normalized_allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied for role '{getattr(current_user.role, 'value', current_user.role)}'"
            )

        return current_user

    return checker


require_super_admin = role_required(UserRole.SUPER_ADMIN)


# ------------------------------------------------------------
# Stores (one per app, loaded on first use)
# ------------------------------------------------------------
async def get_permission_store(request: Request) -> PermissionStore:
    store = getattr(request.app.state, "permission_store", None)
    if store is None:
        store = await PermissionStore(DatabaseBackend(AsyncSessionLocal)).load()
        request.app.state.permission_store = store
    return store


async def get_ui_builder_store(request: Request) -> UIBuilderStore:
    store = getattr(request.app.state, "ui_builder_store", None)
    if store is None:
        store = await UIBuilderStore(DatabaseBackend(AsyncSessionLocal)).load()
        request.app.state.ui_builder_store = store
    return store


# ------------------------------------------------------------
# Simulation (X-Simulate-Role / X-Simulate-User headers)
# ------------------------------------------------------------
async def get_simulation(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
    simulate_role: Optional[str] = Header(None, alias="X-Simulate-Role"),
    simulate_user: Optional[str] = Header(None, alias="X-Simulate-User"),
) -> SimulationController:

    async def lookup(sip_id: str):
        return await get_user_by_sip_id(session, sip_id)

    controller = SimulationController(current_user, lookup)
    try:
        if simulate_role:
            controller.set_simulated_role(simulate_role)
        if simulate_user:
            await controller.set_simulated_user(simulate_user)
    except SimulationNotAllowedError as e:
        raise HTTPException(status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(e))

    return controller
