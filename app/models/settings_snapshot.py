from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, String, Text
from datetime import datetime, timezone


class SettingsSnapshot(SQLModel, table=True):
    """
    Key/value JSON blobs backing the permission store
    (permission matrix, UI settings, club sidebar overrides, shortcuts...).
    """
    __tablename__ = "settings_snapshots"

    key: str = Field(sa_column=Column(String(128), primary_key=True))
    value: str = Field(sa_column=Column(Text, nullable=False))

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
