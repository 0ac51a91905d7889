from fastapi import APIRouter
from src.presentation.api.v1.conversations.router import router as conversation_router
from src.presentation.api.v1.roles.router import router as role_router
from src.presentation.api.v1.members.router import router as member_router

V1_ROUTER = APIRouter(prefix="/api/v1")

V1_ROUTER.include_router(conversation_router)
V1_ROUTER.include_router(role_router)
V1_ROUTER.include_router(member_router)
