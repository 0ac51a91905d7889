from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from src.application.authorization.ranks import Default, Rank
from src.infrastructure.database.enums.ConversationType import ConversationType
from src.infrastructure.database.enums.Permissions import Permissions

if TYPE_CHECKING:
    from src.infrastructure.database.models.conversations import Conversations
    from src.infrastructure.database.models.roles import Roles
    from src.infrastructure.database.models.user_conversation import UserConversation


@dataclass(frozen=True, slots=True)
class RoleSnapshot:
    id: UUID
    name: str
    rank: Rank
    permissions: frozenset[Permissions] = frozenset()

    @property
    def is_default(self) -> bool:
        return isinstance(self.rank, Default)

    @classmethod
    def from_model(cls, role: "Roles") -> "RoleSnapshot":
        return cls(
            id=role.id,
            name=role.name,
            rank=role.rank,
            permissions=frozenset(Permissions(p) for p in role.permissions),
        )


@dataclass(frozen=True, slots=True)
class MemberSnapshot:
    """A member as seen by the gate: held roles always include the default role"""

    user_id: UUID
    roles: tuple[RoleSnapshot, ...] = ()
    is_owner: bool = False
    muted_until: datetime | None = None

    def is_muted(self, now: datetime) -> bool:
        return self.muted_until is not None and self.muted_until > now

    @classmethod
    def from_model(
        cls,
        membership: "UserConversation",
        roles: tuple[RoleSnapshot, ...],
        owner_id: UUID | None,
    ) -> "MemberSnapshot":
        return cls(
            user_id=membership.user_id,
            roles=roles,
            is_owner=owner_id is not None and membership.user_id == owner_id,
            muted_until=membership.muted_until,
        )


@dataclass(frozen=True, slots=True)
class ConversationSnapshot:
    id: UUID
    kind: ConversationType
    is_private: bool = False
    owner_id: UUID | None = None

    @property
    def is_direct(self) -> bool:
        return self.kind == ConversationType.DIRECT

    @property
    def is_hidden(self) -> bool:
        return self.is_private or self.is_direct

    @classmethod
    def from_model(cls, conversation: "Conversations") -> "ConversationSnapshot":
        return cls(
            id=conversation.id,
            kind=conversation.conversation_type,
            is_private=conversation.is_private,
            owner_id=conversation.owner_id,
        )
