from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from app.core.wire import parse_config
from app.models.enums import ModuleCategory, ModuleType
from app.schemas.base import CamelModel


# ---------------------------------------------------------
# CATALOG (READ)
# ---------------------------------------------------------
class ModuleOptionRead(CamelModel):
    id: UUID
    code: str
    label: str
    type: str
    default_value: str


class SubModuleRead(CamelModel):
    id: UUID
    code: str
    name: str
    options: List[ModuleOptionRead] = Field(default_factory=list)


class SystemModuleRead(CamelModel):
    id: UUID
    code: str
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    category: ModuleCategory
    module_type: ModuleType = ModuleType.UNIVERSAL
    # always a parsed list on the way out
    target_roles: List[str] = Field(default_factory=list)
    sub_modules: List[SubModuleRead] = Field(default_factory=list)


class RoleModuleRead(SystemModuleRead):
    is_enabled: bool = True
    config: Dict[str, Any] = Field(default_factory=dict)
    # which layer decided is_enabled: "default" / "role" / "organization"
    source: str = "default"


# ---------------------------------------------------------
# UPDATES
# `config` may arrive as JSON text; it is decoded here.
# ---------------------------------------------------------
class _ConfigPayload(CamelModel):
    config: Optional[Dict[str, Any]] = None

    @field_validator("config", mode="before")
    @classmethod
    def decode_config(cls, v):
        if v is None:
            return None
        return parse_config(v)


class RoleModuleUpdate(_ConfigPayload):
    is_enabled: bool = True


class RoleModuleBatchItem(_ConfigPayload):
    module_id: UUID
    is_enabled: bool = True


class RoleModuleBatch(CamelModel):
    modules: List[RoleModuleBatchItem]


class RoleModuleConfigRead(CamelModel):
    id: UUID
    role: str
    module_id: UUID
    is_enabled: bool
    config: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("config", mode="before")
    @classmethod
    def decode_config(cls, v):
        return parse_config(v)


class OrgModuleUpdate(_ConfigPayload):
    module_id: UUID
    is_enabled: bool = True


class OrgModuleConfigRead(CamelModel):
    id: UUID
    organization_id: str
    module_id: UUID
    is_enabled: bool
    config: Dict[str, Any] = Field(default_factory=dict)
    module_code: Optional[str] = None
    module_name: Optional[str] = None

    @field_validator("config", mode="before")
    @classmethod
    def decode_config(cls, v):
        return parse_config(v)


class SubModuleToggleResult(CamelModel):
    module_id: UUID
    code: str
    enabled: bool
    config: Dict[str, Any]
