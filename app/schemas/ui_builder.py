from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from app.models.enums import ModuleLayoutType, UIElementType, UserRole
from app.schemas.base import CamelModel

# Data sources a custom module may bind to
DATA_SOURCES = ("athletes", "scores", "schedules", "attendance", "finance", "inventory", "custom")


# ---------------------------------------------------------
# LAYOUT ELEMENTS
# ---------------------------------------------------------
class UIElement(CamelModel):
    id: str
    type: UIElementType
    visible: bool = True
    # text: {content, style}; button: {label, action, target, variant};
    # logo: {source, customUrl, size}; icon: {name, color}
    config: Dict[str, Any] = Field(default_factory=dict)


class UIElementCreate(CamelModel):
    id: Optional[str] = None
    type: UIElementType
    visible: bool = True
    config: Dict[str, Any] = Field(default_factory=dict)


class ModuleLayout(CamelModel):
    left_title: Optional[List[UIElement]] = None
    middle_title: Optional[List[UIElement]] = None
    right_title: Optional[List[UIElement]] = None


class UIModuleConfig(CamelModel):
    module_id: str
    visible: bool = True
    order: int = 0
    layout: Optional[ModuleLayout] = None


# ---------------------------------------------------------
# CUSTOM MODULES
# ---------------------------------------------------------
class CustomModule(CamelModel):
    id: str
    name: str
    label: str
    icon: str
    type: ModuleLayoutType
    data_source: Optional[str] = None
    visible: bool = True
    order: int = 0
    layout: Optional[ModuleLayout] = None


class CustomModuleDraft(CamelModel):
    """Wizard input: step 1 picks `type`, step 2 fills the rest."""
    type: ModuleLayoutType
    name: str
    label: str
    icon: str = "Box"
    data_source: Optional[str] = None

    @field_validator("name", "label")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator("data_source")
    @classmethod
    def known_source(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in DATA_SOURCES:
            raise ValueError(f"unknown data source '{v}'")
        return v


# ---------------------------------------------------------
# PER-ROLE DOCUMENT
# ---------------------------------------------------------
class ExtendedUISettings(CamelModel):
    role: UserRole
    primary_color: str
    accent_color: str
    modules: List[UIModuleConfig] = Field(default_factory=list)
    custom_modules: List[CustomModule] = Field(default_factory=list)


class UIBuilderConfig(CamelModel):
    version: str
    last_updated: datetime
    settings: List[ExtendedUISettings] = Field(default_factory=list)
