"""ユーザードメインで利用する値オブジェクト。"""

from __future__ import annotations

from dataclasses import dataclass, field

from domain.wiki.exceptions import WikiValidationError


@dataclass(frozen=True)
class RegistrationIntent:
    """ユーザー登録のリクエスト内容を表す値オブジェクト。"""

    username: str
    raw_password: str = field(repr=False)

    @classmethod
    def create(cls, *, username: str, raw_password: str) -> "RegistrationIntent":
        normalized_username = (username or "").strip()
        if not normalized_username or not (raw_password or "").strip():
            raise WikiValidationError("Please fill all fields")
        return cls(username=normalized_username, raw_password=raw_password)
