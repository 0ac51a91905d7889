"""
Shared pytest fixtures.

Settings are read from the environment at import time, so the environment
is prepared before anything from `src` is imported.
"""

import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DB_URL", "sqlite+aiosqlite://")
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from collections.abc import AsyncGenerator  # noqa: E402
from dataclasses import dataclass  # noqa: E402
from uuid import UUID  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from src.application.services.authorization_service import AuthorizationService  # noqa: E402
from src.application.services.conversation_service import ConversationService  # noqa: E402
from src.application.services.member_service import MemberService  # noqa: E402
from src.application.services.role_service import RoleService  # noqa: E402
from src.infrastructure.database.models.BaseModel import BaseModel  # noqa: E402
from src.infrastructure.database.models.roles import Roles  # noqa: E402
from src.infrastructure.database.models.users import Users  # noqa: E402
from src.infrastructure.database.repositories.conversation_repo import ConversationRepository  # noqa: E402
from src.infrastructure.database.repositories.role_repository import RoleRepository  # noqa: E402
from src.infrastructure.database.repositories.user_repository import UserRepository  # noqa: E402
from src.infrastructure.database.session import get_db  # noqa: E402
from src.infrastructure.database.enums.Permissions import Permissions  # noqa: E402
from src.infrastructure.security.jwt import JWTHandler  # noqa: E402
from src.main import app  # noqa: E402


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession]:
    async with session_factory() as session:
        yield session


class Services:
    """Every service wired to one session, the way the API dependencies wire them"""

    def __init__(self, session: AsyncSession):
        self.conversation_repo = ConversationRepository(session)
        self.role_repo = RoleRepository(session)
        self.user_repo = UserRepository(session)
        self.authorization = AuthorizationService(self.conversation_repo, self.role_repo)
        self.conversations = ConversationService(
            self.conversation_repo, self.user_repo, self.role_repo, self.authorization
        )
        self.roles = RoleService(self.role_repo, self.conversation_repo, self.authorization)
        self.members = MemberService(self.conversation_repo, self.authorization)


@pytest.fixture
def services(session) -> Services:
    return Services(session)


@dataclass(frozen=True)
class Person:
    """Plain copy of a user; ORM instances expire when a failed operation rolls the session back"""

    id: UUID
    name: str


@pytest.fixture
def make_user(session):
    counter = 0

    async def _make_user(name: str | None = None) -> Person:
        nonlocal counter
        counter += 1
        user = Users(name=name or f"user-{counter}", username=f"user_{counter}")
        session.add(user)
        await session.commit()
        return Person(id=user.id, name=user.name)

    return _make_user


class Group:
    """A group conversation with its owner and helpers to populate roles"""

    def __init__(self, services: Services, conversation_id: UUID, owner: Person):
        self.services = services
        self.id = conversation_id
        self.owner = owner

    async def add_member(self, user: Person) -> None:
        await self.services.conversations.join_conversation(user.id, self.id)

    async def add_role(self, name: str, permissions: tuple[Permissions, ...] = ()) -> Roles:
        role = await self.services.roles.create_role(self.owner.id, self.id, name)
        if permissions:
            role = await self.services.roles.update_role_metadata(
                self.owner.id, self.id, role.id, permissions=[p.value for p in permissions]
            )
        return role

    async def grant(self, role: Roles, *users: Person) -> None:
        await self.services.roles.add_role_members(self.owner.id, self.id, role.id, [u.id for u in users])

    async def levels(self) -> dict[str, int | None]:
        roles = await self.services.role_repo.get_roles(self.id)
        return {role.name: role.level for role in roles}

    async def default_role(self) -> Roles:
        roles = await self.services.roles.get_roles(self.owner.id, self.id)
        return roles[-1]

    async def member_ids(self) -> set[UUID]:
        members = await self.services.conversations.get_members(self.owner.id, self.id)
        return {member.user_id for member in members}


@pytest.fixture
def make_group(services, make_user):
    async def _make_group(is_private: bool = False, owner: Person | None = None) -> Group:
        owner = owner or await make_user("owner")
        conversation = await services.conversations.create_group_conversation(
            owner.id, "group", is_private=is_private
        )
        return Group(services, conversation.id, owner)

    return _make_group


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient]:
    async def override_get_db() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _auth_headers(user: Person) -> dict[str, str]:
        token, _ = JWTHandler.create_access_token(user.id)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
