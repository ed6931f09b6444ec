"""
Wikiリポジトリのテスト
"""

import io
from datetime import datetime, timezone

import pytest
from sqlalchemy import select

from core.db import session_scope
from core.models.wiki.models import WikiFileChunkRecord, WikiFileRecord
from domain.wiki.entities import Attachment, Page
from infrastructure.wiki.repositories import WikiFileStorage

NOW = datetime(2024, 2, 29, 12, 0, tzinfo=timezone.utc)


def _page(name, **kwargs):
    return Page(id=None, name=name, content=kwargs.pop("content", "body"), last_modified_utc=NOW, **kwargs)


class TestWikiPageRepository:
    def test_add_assigns_id_and_round_trips(self, page_repository):
        attachment = Attachment("abc", "a.txt", "text/plain", NOW)

        saved = page_repository.add(_page("first", attachments=(attachment,)))
        loaded = page_repository.find_by_id(saved.id)

        assert saved.id is not None
        assert loaded == saved
        assert loaded.last_modified_utc.tzinfo is not None
        assert loaded.attachments == (attachment,)

    def test_find_all_is_ordered_by_name(self, page_repository):
        for name in ("b", "c", "a"):
            page_repository.add(_page(name))

        assert [p.name for p in page_repository.find_all()] == ["a", "b", "c"]

    def test_find_by_name_ignores_case(self, page_repository):
        page_repository.add(_page("some-page"))

        assert page_repository.find_by_name("SOME-PAGE").name == "some-page"
        assert page_repository.find_by_name("other") is None
        assert page_repository.find_by_name("") is None

    def test_update_replaces_whole_record(self, page_repository):
        saved = page_repository.add(_page("old"))

        updated = Page(id=saved.id, name="new", content="changed", last_modified_utc=NOW)
        assert page_repository.update(updated) is True

        assert page_repository.find_by_id(saved.id) == updated

    def test_update_missing_page_returns_false(self, page_repository):
        assert page_repository.update(Page(id=42, name="x", content="y", last_modified_utc=NOW)) is False

    def test_delete(self, page_repository):
        saved = page_repository.add(_page("gone"))

        assert page_repository.delete(saved.id) is True
        assert page_repository.find_by_id(saved.id) is None
        assert page_repository.delete(saved.id) is False


class TestWikiFileStorage:
    def test_upload_from_bytes(self, file_storage):
        info = file_storage.upload("id-1", "a.txt", "text/plain", b"content")

        assert info.file_id == "id-1"
        assert info.length == 7
        assert file_storage.find_by_id("id-1") == info
        assert file_storage.download("id-1") == b"content"

    def test_upload_from_stream_in_small_chunks(self, session_factory):
        storage = WikiFileStorage(session_factory, chunk_size=4)
        payload = b"0123456789abcdef!"

        info = storage.upload("id-2", "data.bin", "application/octet-stream", io.BytesIO(payload))

        assert info.length == len(payload)
        assert storage.download("id-2") == payload

    def test_chunk_rows_are_the_only_record_of_chunking(self, session_factory):
        storage = WikiFileStorage(session_factory, chunk_size=4)
        storage.upload("id-4", "data.bin", "application/octet-stream", b"0123456789")

        with session_scope(session_factory) as session:
            indexes = session.execute(
                select(WikiFileChunkRecord.chunk_index)
                .where(WikiFileChunkRecord.file_id == "id-4")
                .order_by(WikiFileChunkRecord.chunk_index)
            ).scalars().all()

        assert indexes == [0, 1, 2]
        assert not hasattr(WikiFileRecord, "chunk_count")

    def test_empty_file(self, file_storage):
        info = file_storage.upload("empty", "empty.txt", "", b"")

        assert info.length == 0
        assert info.mime_type == "application/octet-stream"
        assert file_storage.download("empty") == b""

    def test_delete_removes_metadata_and_chunks(self, file_storage):
        file_storage.upload("id-3", "a.txt", "text/plain", b"x" * 10)

        assert file_storage.delete("id-3") is True
        assert file_storage.find_by_id("id-3") is None
        assert file_storage.download("id-3") == b""
        assert file_storage.delete("id-3") is False

    def test_chunk_size_must_be_positive(self, session_factory):
        with pytest.raises(ValueError):
            WikiFileStorage(session_factory, chunk_size=0)
