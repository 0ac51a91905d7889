from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from src.application.authorization.gate import Action, DecisionCode
from src.core.exceptions import DenialReason
from src.infrastructure.database.enums.ConversationType import ConversationType


class ConversationCreateRequest(BaseModel):
    """Schema for creating a group conversation, the creator becomes its owner"""
    name: str = Field(..., min_length=1, max_length=100)
    is_private: bool = False
    member_ids: list[UUID] | None = Field(default=None, description="Optional list of user IDs to add as members")


class DirectConversationCreateRequest(BaseModel):
    """Schema for starting a direct conversation"""
    user_id: UUID


class ConversationRenameRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class ConversationAvatarRequest(BaseModel):
    """`null` clears the avatar"""
    avatar_url: str | None = Field(..., max_length=2048)


class UserBriefResponse(BaseModel):
    id: UUID
    name: str
    username: str | None = None

    model_config = ConfigDict(from_attributes=True)


class MemberResponse(BaseModel):
    """Schema for a conversation member"""
    user_id: UUID
    conversation_id: UUID
    muted_until: datetime | None = None
    user: UserBriefResponse | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConversationResponse(BaseModel):
    """Schema for conversation response"""
    id: UUID
    name: str | None = None
    avatar_url: str | None = None
    conversation_type: ConversationType
    is_private: bool
    owner_id: UUID | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthorizeRequest(BaseModel):
    """Ask whether the current user may perform `action`"""
    action: Action
    target_id: UUID | None = Field(default=None, description="Member acted upon, or the message author")
    target_role_ids: list[UUID] = Field(default_factory=list)


class DecisionResponse(BaseModel):
    allowed: bool
    code: DecisionCode
    message: str
    reason: DenialReason | None = None

    model_config = ConfigDict(from_attributes=True)
