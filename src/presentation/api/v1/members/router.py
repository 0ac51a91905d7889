from fastapi import APIRouter, Path
from uuid import UUID

from src.core.exceptions import AppError
from src.presentation.api.middlewares.jwt_guard import CURRENT_USER_DEP
from src.presentation.api.dependencies import MEMBER_SERVICE_DEP, ROLE_SERVICE_DEP
from src.presentation.schemas.members import MemberStateResponse, MuteRequest
from src.presentation.schemas.roles import RoleResponse
from src.presentation.schemas.responses import ResponseModel, response_success
from src.presentation.utils.errors import raise_app_error, raise_http_exception
from src.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/conversation/{conversation_id}/members/{member_id}", tags=["Members"])


@router.get("/roles", response_model=ResponseModel[list[RoleResponse]])
async def get_member_roles(
    current_user: CURRENT_USER_DEP,
    role_service: ROLE_SERVICE_DEP,
    conversation_id: UUID = Path(..., description="Conversation ID"),
    member_id: UUID = Path(..., description="User ID of the member"),
) -> ResponseModel[list[RoleResponse]] | None:
    """Roles held by a member, including the default role"""
    try:
        roles = await role_service.get_member_roles(current_user.id, conversation_id, member_id)
        return response_success(
            data=[RoleResponse.model_validate(role) for role in roles],
            message="Member roles retrieved successfully",
        )
    except AppError as e:
        logger.warning("Failed to get member roles: %s", e)
        raise_app_error(e)
    except Exception as e:
        logger.error("Failed to get member roles: %s", e)
        raise_http_exception(message="Failed to get member roles", error=e)


@router.patch("/mute", response_model=ResponseModel[MemberStateResponse])
async def mute_member(
    current_user: CURRENT_USER_DEP,
    member_service: MEMBER_SERVICE_DEP,
    mute_data: MuteRequest,
    conversation_id: UUID = Path(..., description="Conversation ID"),
    member_id: UUID = Path(..., description="User ID of the member"),
) -> ResponseModel[MemberStateResponse] | None:
    """Mute a member until the given time, or unmute with null"""
    try:
        membership = await member_service.mute_member(
            current_user.id, conversation_id, member_id, mute_data.muted_until
        )
        return response_success(
            data=MemberStateResponse.model_validate(membership),
            message="Member muted successfully" if membership.muted_until else "Member unmuted successfully",
        )
    except AppError as e:
        logger.warning("Failed to mute member: %s", e)
        raise_app_error(e)
    except Exception as e:
        logger.error("Failed to mute member: %s", e)
        raise_http_exception(message="Failed to mute member", error=e)


@router.delete("", response_model=ResponseModel[None])
async def kick_member(
    current_user: CURRENT_USER_DEP,
    member_service: MEMBER_SERVICE_DEP,
    conversation_id: UUID = Path(..., description="Conversation ID"),
    member_id: UUID = Path(..., description="User ID of the member"),
) -> ResponseModel[None] | None:
    try:
        await member_service.kick_member(current_user.id, conversation_id, member_id)
        return response_success(data=None, message="Member kicked successfully")
    except AppError as e:
        logger.warning("Failed to kick member: %s", e)
        raise_app_error(e)
    except Exception as e:
        logger.error("Failed to kick member: %s", e)
        raise_http_exception(message="Failed to kick member", error=e)
