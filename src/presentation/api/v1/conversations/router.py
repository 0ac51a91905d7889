from fastapi import APIRouter, Path
from uuid import UUID

from src.core.exceptions import AppError
from src.presentation.api.middlewares.jwt_guard import CURRENT_USER_DEP
from src.presentation.api.dependencies import AUTHORIZATION_SERVICE_DEP, CONVERSATION_SERVICE_DEP
from src.presentation.schemas.conversations import (
    AuthorizeRequest,
    ConversationAvatarRequest,
    ConversationCreateRequest,
    ConversationRenameRequest,
    ConversationResponse,
    DecisionResponse,
    DirectConversationCreateRequest,
    MemberResponse,
)
from src.presentation.schemas.responses import ResponseModel, response_success
from src.presentation.utils.errors import raise_app_error, raise_http_exception
from src.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/conversation", tags=["Conversations"])


@router.post("/", response_model=ResponseModel[ConversationResponse])
async def create_conversation(
    current_user: CURRENT_USER_DEP,
    conversation_service: CONVERSATION_SERVICE_DEP,
    conversation_data: ConversationCreateRequest,
) -> ResponseModel[ConversationResponse] | None:
    """Create a group conversation owned by the current user"""
    try:
        conversation = await conversation_service.create_group_conversation(
            owner_id=current_user.id,
            name=conversation_data.name,
            is_private=conversation_data.is_private,
            member_ids=conversation_data.member_ids,
        )
        return response_success(
            data=ConversationResponse.model_validate(conversation),
            message="Conversation created successfully",
        )
    except AppError as e:
        logger.warning("Failed to create conversation: %s", e)
        raise_app_error(e)
    except Exception as e:
        logger.error("Failed to create conversation: %s", e)
        raise_http_exception(message="Failed to create conversation", error=e)


@router.post("/direct", response_model=ResponseModel[ConversationResponse])
async def create_direct_conversation(
    current_user: CURRENT_USER_DEP,
    conversation_service: CONVERSATION_SERVICE_DEP,
    direct_data: DirectConversationCreateRequest,
) -> ResponseModel[ConversationResponse] | None:
    """Start a direct conversation with another user"""
    try:
        conversation = await conversation_service.create_direct_conversation(
            user_id=current_user.id,
            other_user_id=direct_data.user_id,
        )
        return response_success(
            data=ConversationResponse.model_validate(conversation),
            message="Direct conversation created successfully",
        )
    except AppError as e:
        logger.warning("Failed to create direct conversation: %s", e)
        raise_app_error(e)
    except Exception as e:
        logger.error("Failed to create direct conversation: %s", e)
        raise_http_exception(message="Failed to create direct conversation", error=e)


@router.get("/{conversation_id}", response_model=ResponseModel[ConversationResponse])
async def get_conversation(
    current_user: CURRENT_USER_DEP,
    conversation_service: CONVERSATION_SERVICE_DEP,
    conversation_id: UUID = Path(..., description="Conversation ID"),
) -> ResponseModel[ConversationResponse] | None:
    try:
        conversation = await conversation_service.get_conversation(current_user.id, conversation_id)
        return response_success(
            data=ConversationResponse.model_validate(conversation),
            message="Conversation retrieved successfully",
        )
    except AppError as e:
        logger.warning("Failed to get conversation: %s", e)
        raise_app_error(e)
    except Exception as e:
        logger.error("Failed to get conversation: %s", e)
        raise_http_exception(message="Failed to get conversation", error=e)


@router.patch("/{conversation_id}", response_model=ResponseModel[ConversationResponse])
async def rename_conversation(
    current_user: CURRENT_USER_DEP,
    conversation_service: CONVERSATION_SERVICE_DEP,
    rename_data: ConversationRenameRequest,
    conversation_id: UUID = Path(..., description="Conversation ID"),
) -> ResponseModel[ConversationResponse] | None:
    """Rename a group (requires manage_chat)"""
    try:
        conversation = await conversation_service.rename_conversation(
            current_user.id, conversation_id, rename_data.name
        )
        return response_success(
            data=ConversationResponse.model_validate(conversation),
            message="Conversation renamed successfully",
        )
    except AppError as e:
        logger.warning("Failed to rename conversation: %s", e)
        raise_app_error(e)
    except Exception as e:
        logger.error("Failed to rename conversation: %s", e)
        raise_http_exception(message="Failed to rename conversation", error=e)


@router.delete("/{conversation_id}", response_model=ResponseModel[None])
async def delete_conversation(
    current_user: CURRENT_USER_DEP,
    conversation_service: CONVERSATION_SERVICE_DEP,
    conversation_id: UUID = Path(..., description="Conversation ID"),
) -> ResponseModel[None] | None:
    """Delete a group (owner only)"""
    try:
        await conversation_service.delete_conversation(current_user.id, conversation_id)
        return response_success(data=None, message="Conversation deleted successfully")
    except AppError as e:
        logger.warning("Failed to delete conversation: %s", e)
        raise_app_error(e)
    except Exception as e:
        logger.error("Failed to delete conversation: %s", e)
        raise_http_exception(message="Failed to delete conversation", error=e)


@router.patch("/{conversation_id}/avatar", response_model=ResponseModel[ConversationResponse])
async def update_conversation_avatar(
    current_user: CURRENT_USER_DEP,
    conversation_service: CONVERSATION_SERVICE_DEP,
    avatar_data: ConversationAvatarRequest,
    conversation_id: UUID = Path(..., description="Conversation ID"),
) -> ResponseModel[ConversationResponse] | None:
    """Set or clear the avatar of a group (requires manage_chat)"""
    try:
        conversation = await conversation_service.update_avatar(
            current_user.id, conversation_id, avatar_data.avatar_url
        )
        return response_success(
            data=ConversationResponse.model_validate(conversation),
            message="Conversation avatar updated successfully",
        )
    except AppError as e:
        logger.warning("Failed to update conversation avatar: %s", e)
        raise_app_error(e)
    except Exception as e:
        logger.error("Failed to update conversation avatar: %s", e)
        raise_http_exception(message="Failed to update conversation avatar", error=e)


@router.post("/{conversation_id}/join", response_model=ResponseModel[ConversationResponse])
async def join_conversation(
    current_user: CURRENT_USER_DEP,
    conversation_service: CONVERSATION_SERVICE_DEP,
    conversation_id: UUID = Path(..., description="Conversation ID"),
) -> ResponseModel[ConversationResponse] | None:
    """Join a public group"""
    try:
        await conversation_service.join_conversation(current_user.id, conversation_id)
        conversation = await conversation_service.get_conversation(current_user.id, conversation_id)
        return response_success(
            data=ConversationResponse.model_validate(conversation),
            message="Joined conversation successfully",
        )
    except AppError as e:
        logger.warning("Failed to join conversation: %s", e)
        raise_app_error(e)
    except Exception as e:
        logger.error("Failed to join conversation: %s", e)
        raise_http_exception(message="Failed to join conversation", error=e)


@router.delete("/{conversation_id}/membership", response_model=ResponseModel[None])
async def leave_conversation(
    current_user: CURRENT_USER_DEP,
    conversation_service: CONVERSATION_SERVICE_DEP,
    conversation_id: UUID = Path(..., description="Conversation ID"),
) -> ResponseModel[None] | None:
    try:
        await conversation_service.leave_conversation(current_user.id, conversation_id)
        return response_success(data=None, message="Left conversation successfully")
    except AppError as e:
        logger.warning("Failed to leave conversation: %s", e)
        raise_app_error(e)
    except Exception as e:
        logger.error("Failed to leave conversation: %s", e)
        raise_http_exception(message="Failed to leave conversation", error=e)


@router.get("/{conversation_id}/members", response_model=ResponseModel[list[MemberResponse]])
async def get_conversation_members(
    current_user: CURRENT_USER_DEP,
    conversation_service: CONVERSATION_SERVICE_DEP,
    conversation_id: UUID = Path(..., description="Conversation ID"),
) -> ResponseModel[list[MemberResponse]] | None:
    """Get members of a conversation (only members can view)"""
    try:
        members = await conversation_service.get_members(current_user.id, conversation_id)
        return response_success(
            data=[MemberResponse.model_validate(member) for member in members],
            message="Members retrieved successfully",
        )
    except AppError as e:
        logger.warning("Failed to get conversation members: %s", e)
        raise_app_error(e)
    except Exception as e:
        logger.error("Failed to get conversation members: %s", e)
        raise_http_exception(message="Failed to get conversation members", error=e)


@router.post("/{conversation_id}/authorize", response_model=ResponseModel[DecisionResponse])
async def authorize_action(
    current_user: CURRENT_USER_DEP,
    authorization_service: AUTHORIZATION_SERVICE_DEP,
    authorize_data: AuthorizeRequest,
    conversation_id: UUID = Path(..., description="Conversation ID"),
) -> ResponseModel[DecisionResponse] | None:
    """
    Decide whether the current user may perform an action.
    Denials are answered with `allowed: false` and a reason, never with an error status.
    """
    try:
        decision = await authorization_service.authorize(
            authorize_data.action,
            current_user.id,
            conversation_id,
            authorize_data.target_id,
            target_role_ids=authorize_data.target_role_ids,
        )
        return response_success(
            data=DecisionResponse.model_validate(decision),
            message=decision.message,
        )
    except Exception as e:
        logger.error("Failed to authorize action: %s", e)
        raise_http_exception(message="Failed to authorize action", error=e)
