from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from src.infrastructure.database.enums.Permissions import Permissions


class RoleCreateRequest(BaseModel):
    """New roles are placed at the bottom of the hierarchy with no permissions"""
    name: str = Field(..., min_length=1, max_length=50)


class RoleUpdateRequest(BaseModel):
    """Omitted fields stay unchanged; `permissions` replaces the whole set"""
    name: str | None = Field(default=None, min_length=1, max_length=50)
    permissions: list[Permissions] | None = None


class RoleReorderRequest(BaseModel):
    """Role ids in their new order, highest rank first"""
    role_ids: list[UUID]


class RoleMembersRequest(BaseModel):
    member_ids: list[UUID] = Field(..., description="User IDs of the members receiving the role")


class RoleResponse(BaseModel):
    id: UUID
    conversation_id: UUID
    name: str
    level: int | None = Field(default=None, description="1 is the highest rank, null marks the default role")
    is_default: bool
    permissions: list[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RoleMembersResponse(BaseModel):
    role_id: UUID
    member_ids: list[UUID]
