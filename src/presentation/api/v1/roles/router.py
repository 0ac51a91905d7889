from fastapi import APIRouter, Path
from uuid import UUID

from src.core.exceptions import AppError
from src.presentation.api.middlewares.jwt_guard import CURRENT_USER_DEP
from src.presentation.api.dependencies import ROLE_SERVICE_DEP
from src.presentation.schemas.roles import (
    RoleCreateRequest,
    RoleMembersRequest,
    RoleMembersResponse,
    RoleReorderRequest,
    RoleResponse,
    RoleUpdateRequest,
)
from src.presentation.schemas.responses import ResponseModel, response_success
from src.presentation.utils.errors import raise_app_error, raise_http_exception
from src.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/conversation/{conversation_id}/roles", tags=["Roles"])


@router.get("", response_model=ResponseModel[list[RoleResponse]])
async def get_roles(
    current_user: CURRENT_USER_DEP,
    role_service: ROLE_SERVICE_DEP,
    conversation_id: UUID = Path(..., description="Conversation ID"),
) -> ResponseModel[list[RoleResponse]] | None:
    """Get every role of a conversation, highest rank first"""
    try:
        roles = await role_service.get_roles(current_user.id, conversation_id)
        return response_success(
            data=[RoleResponse.model_validate(role) for role in roles],
            message="Roles retrieved successfully",
        )
    except AppError as e:
        logger.warning("Failed to get roles: %s", e)
        raise_app_error(e)
    except Exception as e:
        logger.error("Failed to get roles: %s", e)
        raise_http_exception(message="Failed to get roles", error=e)


@router.post("", response_model=ResponseModel[RoleResponse])
async def create_role(
    current_user: CURRENT_USER_DEP,
    role_service: ROLE_SERVICE_DEP,
    role_data: RoleCreateRequest,
    conversation_id: UUID = Path(..., description="Conversation ID"),
) -> ResponseModel[RoleResponse] | None:
    """Create a role at the lowest rank"""
    try:
        role = await role_service.create_role(current_user.id, conversation_id, role_data.name)
        return response_success(
            data=RoleResponse.model_validate(role),
            message="Role created successfully",
        )
    except AppError as e:
        logger.warning("Failed to create role: %s", e)
        raise_app_error(e)
    except Exception as e:
        logger.error("Failed to create role: %s", e)
        raise_http_exception(message="Failed to create role", error=e)


# Must stay above the /{role_id} routes, "levels" would be parsed as a role id
@router.patch("/levels", response_model=ResponseModel[list[RoleResponse]])
async def reorder_roles(
    current_user: CURRENT_USER_DEP,
    role_service: ROLE_SERVICE_DEP,
    reorder_data: RoleReorderRequest,
    conversation_id: UUID = Path(..., description="Conversation ID"),
) -> ResponseModel[list[RoleResponse]] | None:
    """Reorder roles; returns every leveled role in its new order"""
    try:
        roles = await role_service.reorder_role_levels(current_user.id, conversation_id, reorder_data.role_ids)
        return response_success(
            data=[RoleResponse.model_validate(role) for role in roles],
            message="Roles reordered successfully",
        )
    except AppError as e:
        logger.warning("Failed to reorder roles: %s", e)
        raise_app_error(e)
    except Exception as e:
        logger.error("Failed to reorder roles: %s", e)
        raise_http_exception(message="Failed to reorder roles", error=e)


@router.patch("/{role_id}", response_model=ResponseModel[RoleResponse])
async def update_role(
    current_user: CURRENT_USER_DEP,
    role_service: ROLE_SERVICE_DEP,
    update_data: RoleUpdateRequest,
    conversation_id: UUID = Path(..., description="Conversation ID"),
    role_id: UUID = Path(..., description="Role ID"),
) -> ResponseModel[RoleResponse] | None:
    """Rename a role and/or replace its permissions"""
    try:
        permissions = None
        if update_data.permissions is not None:
            permissions = [permission.value for permission in update_data.permissions]

        role = await role_service.update_role_metadata(
            current_user.id,
            conversation_id,
            role_id,
            name=update_data.name,
            permissions=permissions,
        )
        return response_success(
            data=RoleResponse.model_validate(role),
            message="Role updated successfully",
        )
    except AppError as e:
        logger.warning("Failed to update role: %s", e)
        raise_app_error(e)
    except Exception as e:
        logger.error("Failed to update role: %s", e)
        raise_http_exception(message="Failed to update role", error=e)


@router.delete("/{role_id}", response_model=ResponseModel[None])
async def delete_role(
    current_user: CURRENT_USER_DEP,
    role_service: ROLE_SERVICE_DEP,
    conversation_id: UUID = Path(..., description="Conversation ID"),
    role_id: UUID = Path(..., description="Role ID"),
) -> ResponseModel[None] | None:
    """Delete a role; lower roles move up one level"""
    try:
        await role_service.delete_role(current_user.id, conversation_id, role_id)
        return response_success(data=None, message="Role deleted successfully")
    except AppError as e:
        logger.warning("Failed to delete role: %s", e)
        raise_app_error(e)
    except Exception as e:
        logger.error("Failed to delete role: %s", e)
        raise_http_exception(message="Failed to delete role", error=e)


@router.post("/{role_id}/members", response_model=ResponseModel[RoleMembersResponse])
async def add_role_members(
    current_user: CURRENT_USER_DEP,
    role_service: ROLE_SERVICE_DEP,
    members_data: RoleMembersRequest,
    conversation_id: UUID = Path(..., description="Conversation ID"),
    role_id: UUID = Path(..., description="Role ID"),
) -> ResponseModel[RoleMembersResponse] | None:
    try:
        member_ids = await role_service.add_role_members(
            current_user.id, conversation_id, role_id, members_data.member_ids
        )
        return response_success(
            data=RoleMembersResponse(role_id=role_id, member_ids=member_ids),
            message="Role members added successfully",
        )
    except AppError as e:
        logger.warning("Failed to add role members: %s", e)
        raise_app_error(e)
    except Exception as e:
        logger.error("Failed to add role members: %s", e)
        raise_http_exception(message="Failed to add role members", error=e)


@router.delete("/{role_id}/members/{member_id}", response_model=ResponseModel[None])
async def remove_role_member(
    current_user: CURRENT_USER_DEP,
    role_service: ROLE_SERVICE_DEP,
    conversation_id: UUID = Path(..., description="Conversation ID"),
    role_id: UUID = Path(..., description="Role ID"),
    member_id: UUID = Path(..., description="User ID of the member"),
) -> ResponseModel[None] | None:
    try:
        await role_service.remove_role_member(current_user.id, conversation_id, role_id, member_id)
        return response_success(data=None, message="Role member removed successfully")
    except AppError as e:
        logger.warning("Failed to remove role member: %s", e)
        raise_app_error(e)
    except Exception as e:
        logger.error("Failed to remove role member: %s", e)
        raise_http_exception(message="Failed to remove role member", error=e)
