from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from core.db import session_scope
from core.models.user import UserRecord
from core.time import ensure_utc
from domain.user.entities import User, normalize_username
from domain.user.repository import UserRepository


class SqlAlchemyUserRepository(UserRepository):
    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def get_by_username(self, username: str) -> Optional[User]:
        key = normalize_username(username)
        if not key:
            return None
        with session_scope(self._session_factory) as session:
            stmt = select(UserRecord).filter_by(username_key=key)
            model = session.execute(stmt).scalar_one_or_none()
            return self._to_domain(model) if model else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        with session_scope(self._session_factory) as session:
            model = session.get(UserRecord, user_id)
            return self._to_domain(model) if model else None

    def exists(self, username: str) -> bool:
        return self.get_by_username(username) is not None

    def add(self, user: User) -> User:
        with session_scope(self._session_factory) as session:
            model = UserRecord(
                username=user.username.strip(),
                username_key=user.username_key,
                password_hash=user.password_hash,
                created_at=user.created_at,
            )
            session.add(model)
            session.flush()
            user.id = model.id
        return user

    def _to_domain(self, model: UserRecord) -> User:
        return User(
            username=model.username,
            password_hash=model.password_hash,
            id=model.id,
            created_at=ensure_utc(model.created_at),
        )
