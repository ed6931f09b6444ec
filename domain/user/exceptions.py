"""ユーザードメインに関する例外定義。"""

from domain.wiki.exceptions import WikiAuthError, WikiConflictError

INVALID_CREDENTIALS_MESSAGE = "Invalid username or password"


class UsernameAlreadyRegisteredError(WikiConflictError):
    """同じユーザー名が既に登録されている場合に発生する例外。"""

    def __init__(self, username: str):
        super().__init__("Username already exists")
        self.username = username


class InvalidCredentialsError(WikiAuthError):
    """ユーザー不在とパスワード不一致を区別しない認証エラー。"""

    def __init__(self) -> None:
        super().__init__(INVALID_CREDENTIALS_MESSAGE)
