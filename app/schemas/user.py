from typing import Optional
from uuid import UUID
from pydantic import BaseModel, EmailStr
from app.models.enums import UserRole


# ---------------------------------------------------------
# BASE
# ---------------------------------------------------------
class UserBase(BaseModel):
    name: str
    email: EmailStr


# ---------------------------------------------------------
# CREATE USER (Super admin creates any user)
# ---------------------------------------------------------
class UserCreate(UserBase):
    password: str
    role: UserRole
    sip_id: Optional[str] = None
    organization_id: Optional[str] = None   # required for CLUB / CLUB_OWNER


# ---------------------------------------------------------
# READ USER (response)
# ---------------------------------------------------------
class UserRead(UserBase):
    id: UUID
    sip_id: Optional[str] = None
    role: UserRole | str
    organization_id: Optional[str] = None

    class Config:
        from_attributes = True


# ---------------------------------------------------------
# SIMULATION VIEW
# ---------------------------------------------------------
class DisplayedUser(BaseModel):
    id: UUID
    sip_id: Optional[str] = None
    name: str
    email: str
    role: UserRole
    organization_id: Optional[str] = None
    simulated: bool = False
