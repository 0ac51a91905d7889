from datetime import datetime, timedelta, UTC
from typing import Any
from jose import jwt
from uuid import UUID

from src.core.config import settings


class JWTHandler:
    """Handler for access tokens issued to chat users"""

    @staticmethod
    def create_access_token(user_id: UUID) -> tuple[str, datetime]:
        """Create access token"""
        expires_at = datetime.now(UTC) + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)

        jwt_data = {
            "sub": str(user_id),
            "type": "access",
            "exp": int(expires_at.timestamp()),
        }

        token = jwt.encode(
            jwt_data, settings.JWT_SECRET_KEY.get_secret_value(), algorithm=settings.JWT_ALGORITHM
        )
        return token, expires_at

    @staticmethod
    def decode_token(token: str) -> dict[str, Any]:
        """Decode JWT token, raises JWTError when it is malformed, forged or expired"""
        return jwt.decode(
            token, settings.JWT_SECRET_KEY.get_secret_value(), algorithms=[settings.JWT_ALGORITHM]
        )

    @staticmethod
    def is_token_expired(payload: dict[str, Any]) -> bool:
        exp = payload.get("exp")
        if not exp:
            return True

        return exp < int(datetime.now(UTC).timestamp())
