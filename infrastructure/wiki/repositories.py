"""
Wiki機能のリポジトリ実装 - データアクセス層

各メソッドは :func:`core.db.session_scope` で自分専用のセッションを開き、
終了時に必ず解放する。データベース例外は ``WikiStoreError`` として伝播する。
"""

from __future__ import annotations

import io
from typing import BinaryIO, List, Optional, Union

from sqlalchemy import asc, func, select
from sqlalchemy.orm import Session, sessionmaker

from core.db import session_scope
from core.models.wiki.models import WikiFileChunkRecord, WikiFileRecord, WikiPageRecord
from core.time import ensure_utc, utc_now
from domain.wiki.entities import Attachment, Page, StoredFileInfo

# 1 チャンクあたりのバイト数 (255 KiB)
CHUNK_SIZE = 255 * 1024

FileSource = Union[bytes, bytearray, BinaryIO]


class WikiPageRepository:
    """Wikiページのデータアクセス"""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def find_all(self) -> List[Page]:
        """全ページを名前順で取得"""
        with session_scope(self._session_factory) as session:
            stmt = select(WikiPageRecord).order_by(asc(WikiPageRecord.name))
            return [self._to_domain(record) for record in session.execute(stmt).scalars()]

    def find_by_id(self, page_id: int) -> Optional[Page]:
        """IDでページを検索"""
        with session_scope(self._session_factory) as session:
            record = session.get(WikiPageRecord, page_id)
            return self._to_domain(record) if record is not None else None

    def find_by_name(self, name: str) -> Optional[Page]:
        """名前でページを検索（大文字小文字は区別しない）"""
        key = (name or "").strip().lower()
        if not key:
            return None
        with session_scope(self._session_factory) as session:
            stmt = select(WikiPageRecord).where(func.lower(WikiPageRecord.name) == key)
            record = session.execute(stmt).scalars().first()
            return self._to_domain(record) if record is not None else None

    def add(self, page: Page) -> Page:
        """ページを追加し、採番済みのページを返す"""
        with session_scope(self._session_factory) as session:
            record = WikiPageRecord(
                name=page.name,
                content=page.content,
                last_modified_utc=page.last_modified_utc,
                attachments=[a.to_document() for a in page.attachments],
            )
            session.add(record)
            session.flush()
            return self._to_domain(record)

    def update(self, page: Page) -> bool:
        """既存ページを丸ごと置き換える。対象がなければ ``False``"""
        with session_scope(self._session_factory) as session:
            record = session.get(WikiPageRecord, page.id)
            if record is None:
                return False
            record.name = page.name
            record.content = page.content
            record.last_modified_utc = page.last_modified_utc
            record.attachments = [a.to_document() for a in page.attachments]
            return True

    def delete(self, page_id: int) -> bool:
        """ページを削除"""
        with session_scope(self._session_factory) as session:
            record = session.get(WikiPageRecord, page_id)
            if record is None:
                return False
            session.delete(record)
            return True

    @staticmethod
    def _to_domain(record: WikiPageRecord) -> Page:
        return Page(
            id=record.id,
            name=record.name,
            content=record.content or "",
            last_modified_utc=ensure_utc(record.last_modified_utc),
            attachments=tuple(Attachment.from_document(doc) for doc in (record.attachments or [])),
        )


class WikiFileStorage:
    """添付ファイル本体のBlobストレージ

    本体は :data:`CHUNK_SIZE` ごとに ``wiki_file_chunk`` へ分割して保存する。
    """

    def __init__(self, session_factory: sessionmaker[Session], chunk_size: int = CHUNK_SIZE):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._session_factory = session_factory
        self._chunk_size = chunk_size

    def upload(self, file_id: str, file_name: str, mime_type: str, source: FileSource) -> StoredFileInfo:
        stream = io.BytesIO(bytes(source)) if isinstance(source, (bytes, bytearray)) else source

        with session_scope(self._session_factory) as session:
            record = WikiFileRecord(
                id=file_id,
                file_name=file_name,
                mime_type=mime_type or "application/octet-stream",
                uploaded_at=utc_now(),
            )
            session.add(record)

            length = 0
            index = 0
            while True:
                data = stream.read(self._chunk_size)
                if not data:
                    break
                session.add(WikiFileChunkRecord(file_id=file_id, chunk_index=index, data=data))
                length += len(data)
                index += 1

            record.length = length
            session.flush()
            return self._to_info(record)

    def find_by_id(self, file_id: str) -> Optional[StoredFileInfo]:
        if not file_id:
            return None
        with session_scope(self._session_factory) as session:
            record = session.get(WikiFileRecord, file_id)
            return self._to_info(record) if record is not None else None

    def download(self, file_id: str) -> bytes:
        """チャンクを順番に連結した本体を返す。存在しなければ空バイト列"""
        with session_scope(self._session_factory) as session:
            stmt = (
                select(WikiFileChunkRecord.data)
                .where(WikiFileChunkRecord.file_id == file_id)
                .order_by(asc(WikiFileChunkRecord.chunk_index))
            )
            return b"".join(session.execute(stmt).scalars())

    def delete(self, file_id: str) -> bool:
        with session_scope(self._session_factory) as session:
            record = session.get(WikiFileRecord, file_id)
            if record is None:
                return False
            session.delete(record)
            return True

    @staticmethod
    def _to_info(record: WikiFileRecord) -> StoredFileInfo:
        return StoredFileInfo(
            file_id=record.id,
            file_name=record.file_name,
            mime_type=record.mime_type,
            length=record.length or 0,
            uploaded_at=ensure_utc(record.uploaded_at),
        )


__all__ = ["CHUNK_SIZE", "WikiFileStorage", "WikiPageRepository"]
