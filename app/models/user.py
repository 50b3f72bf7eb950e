# app/models/user.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import DateTime, String
from sqlalchemy import Enum as PGEnum
from datetime import datetime, timezone
import uuid
from typing import Optional

from app.models.enums import UserRole


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # External member number shown on the digital ID card (e.g. "04.3174.0001")
    sip_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), unique=True, index=True, nullable=True)
    )

    name: str = Field(nullable=False)
    email: str = Field(nullable=False, index=True, unique=True)
    password_hash: str = Field(nullable=False)

    role: UserRole = Field(
        sa_column=Column(PGEnum(UserRole, name="user_role"), nullable=False)
    )

    # Club / organization the user belongs to (scopes org-level overrides)
    organization_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), index=True, nullable=True)
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
