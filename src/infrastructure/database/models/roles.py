from uuid import UUID

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import JSON, Column, ForeignKey, Index, Table, UniqueConstraint, Uuid, text

import uuid
from datetime import datetime

from src.infrastructure.database.models.BaseModel import BaseModel, get_datetime_UTC
from src.application.authorization.ranks import DEFAULT, Leveled, Rank


user_conversation_roles = Table(
    "user_conversation_roles",
    BaseModel.metadata,
    Column(
        "membership_id",
        ForeignKey("user_conversation.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "role_id",
        ForeignKey("roles.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Roles(BaseModel):
    __tablename__ = "roles"

    repr_cols = ("name", "level")

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, unique=True, nullable=False
    )
    conversation_id: Mapped[UUID] = mapped_column(
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False
    )

    name: Mapped[str] = mapped_column(nullable=False)
    permissions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    # NULL only for the conversation's default role, exposed as `rank`
    level: Mapped[int] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(default=get_datetime_UTC)
    updated_at: Mapped[datetime] = mapped_column(
        default=get_datetime_UTC, onupdate=get_datetime_UTC
    )

    __table_args__ = (
        UniqueConstraint('conversation_id', 'level', name='uq_roles_conversation_level'),
        Index(
            'uq_roles_conversation_default',
            'conversation_id',
            unique=True,
            postgresql_where=text('level IS NULL'),
            sqlite_where=text('level IS NULL'),
        ),
    )

    @property
    def rank(self) -> Rank:
        return DEFAULT if self.level is None else Leveled(self.level)

    @property
    def is_default(self) -> bool:
        return self.level is None


class RoleCounters(BaseModel):
    """Per-conversation hint of the last allocated level; its row is the rank write lock"""

    __tablename__ = "role_counters"

    conversation_id: Mapped[UUID] = mapped_column(
        ForeignKey("conversations.id", ondelete="CASCADE"),
        primary_key=True
    )
    last_level: Mapped[int] = mapped_column(nullable=False, default=0)

    updated_at: Mapped[datetime] = mapped_column(
        default=get_datetime_UTC, onupdate=get_datetime_UTC
    )
