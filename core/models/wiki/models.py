"""Wiki機能のSQLAlchemyモデル."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, LargeBinary, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.db import Base, BigInt


class WikiPageRecord(Base):
    """Wikiページモデル

    添付ファイルはメタデータのみを順序付きの JSON ドキュメントとして保持する。
    本体は :class:`WikiFileRecord` 側にあり ``file_id`` で参照する。
    """

    __tablename__ = "wiki_page"

    id: Mapped[int] = mapped_column(BigInt, primary_key=True, autoincrement=True)
    # 正規名は常に小文字なので、一意インデックスがそのまま大文字小文字を区別しない一意性になる
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    last_modified_utc: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    attachments: Mapped[list[dict[str, str]]] = mapped_column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<WikiPageRecord {self.name}>"


class WikiFileRecord(Base):
    """添付ファイル本体のメタデータ"""

    __tablename__ = "wiki_file"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False, default="application/octet-stream")
    length: Mapped[int] = mapped_column(BigInt, nullable=False, default=0)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    chunks: Mapped[list["WikiFileChunkRecord"]] = relationship(
        "WikiFileChunkRecord",
        back_populates="file",
        cascade="all, delete-orphan",
        order_by="WikiFileChunkRecord.chunk_index",
        passive_deletes=True,
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<WikiFileRecord {self.id} {self.file_name}>"


class WikiFileChunkRecord(Base):
    """添付ファイル本体を固定長に分割したチャンク"""

    __tablename__ = "wiki_file_chunk"
    __table_args__ = (UniqueConstraint("file_id", "chunk_index", name="uq_wiki_file_chunk_index"),)

    id: Mapped[int] = mapped_column(BigInt, primary_key=True, autoincrement=True)
    file_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("wiki_file.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False)
    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

    file: Mapped[WikiFileRecord] = relationship("WikiFileRecord", back_populates="chunks")
