"""ユーザー登録に関するドメインサービス。"""

from __future__ import annotations

from dataclasses import dataclass

from .entities import User
from .exceptions import UsernameAlreadyRegisteredError
from .repository import UserRepository
from .value_objects import RegistrationIntent


@dataclass
class UserRegistrationService:
    """ユーザーの登録ポリシーを担うドメインサービス。"""

    repository: UserRepository

    def register(self, intent: RegistrationIntent) -> User:
        if self.repository.exists(intent.username):
            raise UsernameAlreadyRegisteredError(intent.username)

        user = self._build_user(intent)
        return self.repository.add(user)

    def _build_user(self, intent: RegistrationIntent) -> User:
        user = User(username=intent.username)
        user.set_password(intent.raw_password)
        return user
