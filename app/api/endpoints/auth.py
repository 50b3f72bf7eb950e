# app/api/endpoints/auth.py

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlmodel.ext.asyncio.session import AsyncSession

# Schemas
from app.schemas.auth import LoginRequest, TokenWithUser
from app.schemas.user import DisplayedUser, UserCreate, UserRead

# Models
from app.models.enums import parse_role
from app.models.user import User

# Services
from app.services.audit_service import log_system_event
from app.services.auth_service import (
    authenticate_user,
    create_login_response,
    create_user,
    get_first_user_by_role,
    get_user_by_email,
    get_user_by_sip_id,
)
from app.services.simulation_service import SimulationController

# Deps
from app.api.deps import get_db_session, get_simulation, require_super_admin

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


# -------------------------------------------------------------------
# LOGIN
# -------------------------------------------------------------------
@router.post("/login", response_model=TokenWithUser)
async def login(
    payload: LoginRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session)
):
    user = await authenticate_user(session, payload.email, payload.password)

    if not user:
        # the error response drops background tasks, so write it now
        await log_system_event(
            event_type="LOGIN_FAILED",
            resource_type="User",
            new_values={"email": payload.email},
            status="FAILURE",
        )
        raise HTTPException(status_code=401, detail="Invalid credentials")

    background_tasks.add_task(
        log_system_event,
        event_type="LOGIN",
        actor_id=user.id,
        actor_role=user.role.value,
        resource_type="User",
        resource_id=str(user.id),
    )
    return create_login_response(user)


# -------------------------------------------------------------------
# CURRENT (DISPLAYED) USER
# honours X-Simulate-Role / X-Simulate-User for super admins
# -------------------------------------------------------------------
@router.get("/me", response_model=DisplayedUser)
async def me(sim: SimulationController = Depends(get_simulation)):
    return sim.displayed_user()


# -------------------------------------------------------------------
# SIMULATION LOOKUPS (super admin)
# -------------------------------------------------------------------
@router.get("/simulate/{role}", response_model=UserRead)
async def simulate_role_target(
    role: str,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_super_admin),
):
    """First account holding `role`; used to preview that role with real data."""
    if parse_role(role) is None:
        raise HTTPException(400, detail=f"Unknown role '{role}'")

    user = await get_first_user_by_role(session, role)
    if not user:
        raise HTTPException(404, detail=f"No user found with role '{role}'")
    return user


@router.get("/simulate-user/{sip_id}", response_model=UserRead)
async def simulate_user_target(
    sip_id: str,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_super_admin),
):
    user = await get_user_by_sip_id(session, sip_id)
    if not user:
        raise HTTPException(404, detail=f"No user found with SIP ID '{sip_id}'")
    return user


# -------------------------------------------------------------------
# CREATE USER (super admin)
# -------------------------------------------------------------------
@router.post("/users", response_model=UserRead, status_code=201)
async def register_user(
    data: UserCreate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_super_admin),
):
    if await get_user_by_email(session, data.email):
        raise HTTPException(400, detail="Email already exists")

    try:
        user = await create_user(
            session=session,
            name=data.name,
            email=data.email,
            password=data.password,
            role=data.role,
            sip_id=data.sip_id,
            organization_id=data.organization_id,
        )
    except ValueError as e:
        raise HTTPException(400, detail=str(e))

    await log_system_event(
        event_type="USER_CREATED",
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        resource_type="User",
        resource_id=str(user.id),
        new_values={"email": user.email, "role": user.role.value},
    )
    return user
