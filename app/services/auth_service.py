# app/services/auth_service.py

import uuid
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import settings
from app.core.security import create_access_token, hash_password, verify_password
from app.models.enums import UserRole, parse_role
from app.models.user import User
from app.schemas.auth import TokenWithUser
from app.schemas.user import UserRead


# ============================================================================
# FETCH USER BY EMAIL
# ============================================================================
async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


# ============================================================================
# FETCH USER BY ID
# ============================================================================
async def get_user_by_id(session: AsyncSession, user_id: str) -> User | None:
    try:
        key = uuid.UUID(str(user_id))
    except ValueError:
        return None
    return await session.get(User, key)


# ============================================================================
# FETCH USER BY SIP ID (external member number)
# ============================================================================
async def get_user_by_sip_id(session: AsyncSession, sip_id: str) -> User | None:
    result = await session.execute(select(User).where(User.sip_id == sip_id.strip()))
    return result.scalar_one_or_none()


# ============================================================================
# FIRST USER OF A ROLE (role simulation target)
# ============================================================================
async def get_first_user_by_role(session: AsyncSession, role) -> User | None:
    parsed = parse_role(role)
    if parsed is None:
        return None
    result = await session.execute(
        select(User).where(User.role == parsed).order_by(User.created_at).limit(1)
    )
    return result.scalars().first()


# ============================================================================
# CREATE USER
# ============================================================================
async def create_user(
    session: AsyncSession,
    name: str,
    email: str,
    password: str,
    role: UserRole,
    sip_id: Optional[str] = None,
    organization_id: Optional[str] = None,
) -> User:

    # Club-scoped roles must belong to an organization
    if role in (UserRole.CLUB, UserRole.CLUB_OWNER) and not organization_id:
        raise ValueError(f"{role.value} accounts must include organization_id")

    user = User(
        id=uuid.uuid4(),
        sip_id=sip_id,
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        organization_id=organization_id,
    )

    session.add(user)

    try:
        await session.commit()
        await session.refresh(user)
        return user

    except IntegrityError:
        await session.rollback()
        raise ValueError("User with this email or SIP ID already exists")


# ============================================================================
# AUTHENTICATE
# ============================================================================
async def authenticate_user(session: AsyncSession, email: str, password: str) -> User | None:
    user = await get_user_by_email(session, email)
    if not user:
        return None

    if not verify_password(password, user.password_hash):
        return None

    return user


# ============================================================================
# CREATE LOGIN RESPONSE
# ============================================================================
def create_login_response(user: User) -> TokenWithUser:
    token = create_access_token(
        subject=str(user.id),
        data={
            "role": user.role.value if isinstance(user.role, UserRole) else str(user.role),
            "organization_id": user.organization_id,
        },
    )

    return TokenWithUser(
        access_token=token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserRead.model_validate(user),
    )
