"""
Wiki domain entities - 純粋な業務ロジックとドメインモデル

エンティティはすべて immutable。更新時は ``dataclasses.replace`` で
新しい値を組み立て、置き換えた全体を永続化する。
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import BinaryIO


@dataclass(frozen=True)
class Attachment:
    """ページに紐づく添付ファイルのメタデータ"""

    file_id: str
    file_name: str
    mime_type: str
    last_modified_utc: datetime

    def matches(self, file_id: str) -> bool:
        return self.file_id.casefold() == (file_id or "").casefold()

    def to_document(self) -> dict[str, str]:
        return {
            "file_id": self.file_id,
            "file_name": self.file_name,
            "mime_type": self.mime_type,
            "last_modified_utc": self.last_modified_utc.isoformat(),
        }

    @classmethod
    def from_document(cls, document: dict[str, str]) -> "Attachment":
        return cls(
            file_id=document["file_id"],
            file_name=document["file_name"],
            mime_type=document["mime_type"],
            last_modified_utc=datetime.fromisoformat(document["last_modified_utc"]),
        )


@dataclass(frozen=True)
class Page:
    """Wikiページのドメインエンティティ"""

    id: int | None
    name: str
    content: str
    last_modified_utc: datetime
    attachments: tuple[Attachment, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "attachments", tuple(self.attachments))

    def is_named(self, name: str) -> bool:
        """大文字小文字を区別せずにページ名を比較する"""
        return self.name.casefold() == (name or "").casefold()

    def with_attachment(self, attachment: Attachment) -> "Page":
        return replace(self, attachments=self.attachments + (attachment,))

    def without_attachment(self, file_id: str) -> "Page":
        remaining = tuple(a for a in self.attachments if not a.matches(file_id))
        return replace(self, attachments=remaining)

    def find_attachment(self, file_id: str) -> Attachment | None:
        for attachment in self.attachments:
            if attachment.matches(file_id):
                return attachment
        return None


@dataclass(frozen=True)
class UploadedFile:
    """アップロードされたファイル（Web 層から渡される）"""

    file_name: str
    mime_type: str
    stream: BinaryIO = field(repr=False)

    @classmethod
    def from_bytes(cls, file_name: str, mime_type: str, content: bytes) -> "UploadedFile":
        return cls(file_name=file_name, mime_type=mime_type, stream=io.BytesIO(content))

    def has_file_name(self) -> bool:
        return bool((self.file_name or "").strip())


@dataclass(frozen=True)
class PageInput:
    """ページ保存フォームの入力値"""

    id: int | None
    name: str
    content: str
    attachment: UploadedFile | None = None


@dataclass(frozen=True)
class StoredFileInfo:
    """Blob ストレージ上のファイルメタデータ"""

    file_id: str
    file_name: str
    mime_type: str
    length: int
    uploaded_at: datetime


@dataclass(frozen=True)
class StoredFile:
    """メタデータと本体をまとめたダウンロード結果"""

    info: StoredFileInfo
    content: bytes = field(repr=False)

    @property
    def file_name(self) -> str:
        return self.info.file_name

    @property
    def mime_type(self) -> str:
        return self.info.mime_type
