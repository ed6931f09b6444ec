import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from core.db import create_session_factory, create_store_engine, init_store, session_scope
from core.models.wiki.models import WikiPageRecord
from domain.wiki.exceptions import WikiStoreError
from infrastructure.wiki.repositories import WikiPageRepository


def test_successful_scope_commits(session_factory):
    with session_scope(session_factory) as session:
        session.add(WikiPageRecord(name="kept", content="x", attachments=[]))

    with session_scope(session_factory) as session:
        assert session.query(WikiPageRecord).filter_by(name="kept").count() == 1


def test_failed_scope_rolls_back(session_factory):
    with pytest.raises(RuntimeError):
        with session_scope(session_factory) as session:
            session.add(WikiPageRecord(name="discarded", content="x", attachments=[]))
            session.flush()
            raise RuntimeError("boom")

    with session_scope(session_factory) as session:
        assert session.query(WikiPageRecord).count() == 0


def test_database_errors_become_store_errors(session_factory):
    with pytest.raises(WikiStoreError) as excinfo:
        with session_scope(session_factory) as session:
            session.execute(text("SELECT * FROM no_such_table"))

    assert isinstance(excinfo.value.__cause__, OperationalError)


def test_unique_name_violation_is_a_store_error(page_repository):
    from datetime import datetime, timezone

    from domain.wiki.entities import Page

    page = Page(id=None, name="dup", content="x", last_modified_utc=datetime.now(timezone.utc))
    page_repository.add(page)

    with pytest.raises(WikiStoreError):
        page_repository.add(page)


def test_missing_tables_surface_as_store_error(tmp_path):
    engine = create_store_engine(f"sqlite:///{(tmp_path / 'bare.db').as_posix()}")
    repository = WikiPageRepository(create_session_factory(engine))

    with pytest.raises(WikiStoreError):
        repository.find_all()
    engine.dispose()


def test_in_memory_store_is_shared_between_sessions():
    engine = create_store_engine("sqlite://")
    init_store(engine)
    factory = create_session_factory(engine)

    with session_scope(factory) as session:
        session.add(WikiPageRecord(name="memory", content="x", attachments=[]))

    with session_scope(factory) as session:
        assert session.query(WikiPageRecord).count() == 1
    engine.dispose()


def test_missing_parent_directory_is_created(tmp_path):
    db_path = tmp_path / "nested" / "instance" / "wiki.db"
    engine = create_store_engine(f"sqlite:///{db_path.as_posix()}")
    init_store(engine)

    assert db_path.exists()
    engine.dispose()
