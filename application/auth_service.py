from __future__ import annotations

import logging
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from application.wiki.dto import ServiceResult
from core.logging_config import log_event_error, log_event_info, log_event_warning
from domain.user.entities import User
from domain.user.exceptions import InvalidCredentialsError
from domain.user.repository import UserRepository
from domain.user.services import UserRegistrationService
from domain.user.value_objects import RegistrationIntent
from domain.wiki.exceptions import WikiError, WikiStoreError

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, repo: UserRepository):
        self.repo = repo
        self.registration = UserRegistrationService(repo)
        # ユーザー不在時にも同じコストの照合を行うためのダミーハッシュ
        self._dummy_hash = generate_password_hash("wiki-dummy-password")

    def register_user(self, username: str, password: str) -> ServiceResult[User]:
        try:
            intent = RegistrationIntent.create(username=username, raw_password=password)
            user = self.registration.register(intent)
        except WikiError as exc:
            if isinstance(exc, WikiStoreError):
                log_event_error(logger, "Failed to register user", "auth.register.failed")
            else:
                log_event_warning(logger, f"User registration rejected: {exc}", "auth.register.rejected")
            return ServiceResult.failure(exc)

        log_event_info(logger, "User registered", "auth.register.success", user_id=user.id)
        return ServiceResult.success(user)

    def authenticate_user(self, username: str, password: str) -> ServiceResult[User]:
        """ユーザー名とパスワードを照合する。

        ユーザー不在とパスワード不一致は同じ :class:`InvalidCredentialsError` になる。
        """
        if not (username or "").strip() or not password:
            return ServiceResult.failure(InvalidCredentialsError())

        try:
            user = self.repo.get_by_username(username)
        except WikiError as exc:
            log_event_error(logger, "Failed to load user for authentication", "auth.login.failed")
            return ServiceResult.failure(exc)

        if user is None:
            check_password_hash(self._dummy_hash, password)
            log_event_warning(logger, "Login failed", "auth.login.rejected")
            return ServiceResult.failure(InvalidCredentialsError())

        if not user.check_password(password):
            log_event_warning(logger, "Login failed", "auth.login.rejected", user_id=user.id)
            return ServiceResult.failure(InvalidCredentialsError())

        log_event_info(logger, "User logged in", "auth.login.success", user_id=user.id)
        return ServiceResult.success(user)

    def get_user(self, user_id: int) -> Optional[User]:
        try:
            return self.repo.get_by_id(user_id)
        except WikiError:
            log_event_error(logger, "Failed to load user", "auth.user_loader.error", user_id=user_id)
            return None
