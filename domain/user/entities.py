from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash


@dataclass
class User:
    username: str
    password_hash: str = field(default="", repr=False)
    id: Optional[int] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def set_password(self, raw: str) -> None:
        self.password_hash = generate_password_hash(raw)

    def check_password(self, raw: str) -> bool:
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, raw)

    @property
    def username_key(self) -> str:
        """一意性判定に使う正規化済みユーザー名。"""
        return normalize_username(self.username)


def normalize_username(username: str) -> str:
    return (username or "").strip().casefold()
