from __future__ import annotations
from typing import Protocol, Optional
from .entities import User


class UserRepository(Protocol):
    def get_by_username(self, username: str) -> Optional[User]:
        ...

    def get_by_id(self, user_id: int) -> Optional[User]:
        ...

    def exists(self, username: str) -> bool:
        ...

    def add(self, user: User) -> User:
        ...
