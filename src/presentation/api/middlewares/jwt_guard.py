from typing import Annotated
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError

from src.infrastructure.database.models.users import Users
from src.infrastructure.database.repositories.user_repository import UserRepository
from src.infrastructure.database.session import DB_DEP
from src.infrastructure.security.jwt import JWTHandler
from src.presentation.utils.errors import raise_unauthorized_error

security = HTTPBearer()
jwt_handler = JWTHandler()


def verify_token(payload: dict) -> bool:
    if (token_type := payload.get("type")) is None:
        return False

    if token_type != "access":
        return False

    if jwt_handler.is_token_expired(payload):
        return False

    if payload.get("sub") is None:
        return False

    return True


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    session: DB_DEP,
) -> Users:
    """
    Get current user from JWT token
    """
    try:
        payload = jwt_handler.decode_token(credentials.credentials)
        if not verify_token(payload):
            return raise_unauthorized_error()

        user_id = UUID(payload["sub"])
    except (JWTError, ValueError):
        return raise_unauthorized_error()

    user = await UserRepository(session).get_by_id(user_id)
    if user is None:
        return raise_unauthorized_error()

    return user


CURRENT_USER_DEP = Annotated[Users, Depends(get_current_user)]
