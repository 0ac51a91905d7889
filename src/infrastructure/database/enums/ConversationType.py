import enum


class ConversationType(str, enum.Enum):
    """Kind of conversation"""

    DIRECT = 'direct'  # Exactly two users, no owner, always private
    GROUP = 'group'  # Owned conversation with roles
