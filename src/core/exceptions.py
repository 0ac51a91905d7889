import enum


class DenialReason(str, enum.Enum):
    """Stable, machine-checkable reasons attached to every denial"""

    # Not found
    CONVERSATION_NOT_FOUND = 'conversation_not_found'
    MEMBER_NOT_FOUND = 'member_not_found'
    ROLE_NOT_FOUND = 'role_not_found'
    USER_NOT_FOUND = 'user_not_found'

    # Forbidden
    NOT_A_MEMBER = 'not_a_member'
    MISSING_PERMISSION = 'missing_permission'
    RANK_VIOLATION = 'rank_violation'
    OWNER_IMMUNE = 'owner_immune'
    ADMIN_IMMUNE = 'admin_immune'
    DEFAULT_ROLE_PROTECTED = 'default_role_protected'
    DIRECT_CONVERSATION_IMMUTABLE = 'direct_conversation_immutable'
    MUTED = 'muted'
    OWNER_CANNOT_LEAVE = 'owner_cannot_leave'
    OWNER_ONLY = 'owner_only'
    CONVERSATION_LIMIT_REACHED = 'conversation_limit_reached'

    # Conflict
    RESERVED_ROLE_NAME = 'reserved_role_name'
    ALREADY_MEMBER = 'already_member'
    ALREADY_HOLDS_ROLE = 'already_holds_role'
    DIRECT_CONVERSATION_EXISTS = 'direct_conversation_exists'
    CONCURRENT_MODIFICATION = 'concurrent_modification'

    # Validation
    INVALID_REQUEST = 'invalid_request'
    DUPLICATE_IDS = 'duplicate_ids'
    MUTE_OUT_OF_BOUNDS = 'mute_out_of_bounds'


class AppError(Exception):
    """Base class for errors the routers translate into API responses"""

    def __init__(self, message: str, reason: DenialReason):
        super().__init__(message)
        self.message = message
        self.reason = reason

    def __str__(self) -> str:
        return self.message


class NotFoundError(AppError):
    """Entity does not exist or is hidden from the actor"""


class ForbiddenError(AppError):
    """Actor is a member but is not allowed to perform the action"""


class ConflictError(AppError):
    """State conflict; `retryable` marks conflicts caused by concurrent writes"""

    def __init__(self, message: str, reason: DenialReason, retryable: bool = False):
        super().__init__(message, reason)
        self.retryable = retryable


class RequestValidationError(AppError):
    """Request is well-formed but semantically invalid"""

    def __init__(self, message: str, reason: DenialReason = DenialReason.INVALID_REQUEST):
        super().__init__(message, reason)
