"""ユーザードメインの公開インターフェース。"""

from .entities import User, normalize_username
from .exceptions import (
    INVALID_CREDENTIALS_MESSAGE,
    InvalidCredentialsError,
    UsernameAlreadyRegisteredError,
)
from .services import UserRegistrationService
from .value_objects import RegistrationIntent

__all__ = [
    "INVALID_CREDENTIALS_MESSAGE",
    "InvalidCredentialsError",
    "RegistrationIntent",
    "User",
    "UserRegistrationService",
    "UsernameAlreadyRegisteredError",
    "normalize_username",
]
