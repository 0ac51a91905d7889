import enum


class Permissions(str, enum.Enum):
    """Closed vocabulary of permissions a role can carry"""

    ADMIN = 'admin'  # Bypasses every permission check
    MANAGE_ROLE = 'manage_role'
    MANAGE_CHAT = 'manage_chat'
    MANAGE_MEMBER = 'manage_member'
    KICK_MEMBER = 'kick_member'
    MUTE_MEMBER = 'mute_member'
    SEND_MESSAGE = 'send_message'
    MANAGE_MESSAGE = 'manage_message'
    CREATE_INVITE = 'create_invite'
    VIEW_CHAT = 'view_chat'
