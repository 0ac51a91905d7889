from typing import Annotated

from fastapi import Depends

from src.infrastructure.database.session import DB_DEP
from src.infrastructure.database.repositories.user_repository import UserRepository
from src.infrastructure.database.repositories.conversation_repo import ConversationRepository
from src.infrastructure.database.repositories.role_repository import RoleRepository
from src.application.services.authorization_service import AuthorizationService
from src.application.services.conversation_service import ConversationService
from src.application.services.member_service import MemberService
from src.application.services.role_service import RoleService


async def get_authorization_service(session: DB_DEP) -> AuthorizationService:
    """Get AuthorizationService instance with all dependencies"""
    return AuthorizationService(
        conversation_repository=ConversationRepository(session),
        role_repository=RoleRepository(session),
    )


AUTHORIZATION_SERVICE_DEP = Annotated[AuthorizationService, Depends(get_authorization_service)]


async def get_conversation_service(
    session: DB_DEP, authorization_service: AUTHORIZATION_SERVICE_DEP
) -> ConversationService:
    """Get ConversationService instance with all dependencies"""
    return ConversationService(
        conversation_repository=ConversationRepository(session),
        user_repository=UserRepository(session),
        role_repository=RoleRepository(session),
        authorization_service=authorization_service,
    )


async def get_role_service(session: DB_DEP, authorization_service: AUTHORIZATION_SERVICE_DEP) -> RoleService:
    """Get RoleService instance with all dependencies"""
    return RoleService(
        role_repository=RoleRepository(session),
        conversation_repository=ConversationRepository(session),
        authorization_service=authorization_service,
    )


async def get_member_service(session: DB_DEP, authorization_service: AUTHORIZATION_SERVICE_DEP) -> MemberService:
    """Get MemberService instance with all dependencies"""
    return MemberService(
        conversation_repository=ConversationRepository(session),
        authorization_service=authorization_service,
    )


CONVERSATION_SERVICE_DEP = Annotated[ConversationService, Depends(get_conversation_service)]
ROLE_SERVICE_DEP = Annotated[RoleService, Depends(get_role_service)]
MEMBER_SERVICE_DEP = Annotated[MemberService, Depends(get_member_service)]
