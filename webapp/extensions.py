from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from flask_login import LoginManager, UserMixin
from sqlalchemy import Engine

from application.auth_service import AuthService
from application.wiki.services import WikiPageService
from domain.user.entities import User

login_manager = LoginManager()
login_manager.login_view = "auth.login"  # 未ログイン時のリダイレクト先
login_manager.login_message = None

EXTENSION_KEY = "wiki"


@dataclass
class WikiServices:
    """アプリケーションに紐づくサービス群"""

    engine: Engine
    page_service: WikiPageService
    auth_service: AuthService


class LoginUser(UserMixin):
    """Flask-Login に渡すセッション上のユーザー"""

    def __init__(self, user_id: int, username: str):
        self.id = user_id
        self.username = username

    @classmethod
    def from_domain(cls, user: User) -> "LoginUser":
        return cls(user.id, user.username)


def get_services() -> WikiServices:
    return current_app.extensions[EXTENSION_KEY]


@login_manager.user_loader
def load_user(user_id):
    try:
        numeric_id = int(user_id)
    except (TypeError, ValueError):
        return None

    user = get_services().auth_service.get_user(numeric_id)
    if user is None:
        current_app.logger.warning(
            "Session refers to an unknown user",
            extra={"event": "auth.user_loader.missing", "user_id": numeric_id},
        )
        return None
    return LoginUser.from_domain(user)
