from src.presentation.api.dependencies.services import AUTHORIZATION_SERVICE_DEP
from src.presentation.api.dependencies.services import CONVERSATION_SERVICE_DEP
from src.presentation.api.dependencies.services import MEMBER_SERVICE_DEP
from src.presentation.api.dependencies.services import ROLE_SERVICE_DEP

__all__ = [
    'AUTHORIZATION_SERVICE_DEP',
    'CONVERSATION_SERVICE_DEP',
    'MEMBER_SERVICE_DEP',
    'ROLE_SERVICE_DEP',
]
