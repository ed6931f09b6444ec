import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

os.environ.setdefault("TESTING", "true")

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


class FakeClock:
    """テストから時刻を進められる時計"""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def database_uri(tmp_path):
    return f"sqlite:///{(tmp_path / 'wiki.db').as_posix()}"


@pytest.fixture
def session_factory(database_uri):
    """テストごとに新しい SQLite ファイルを用意する"""
    from core.db import create_session_factory, create_store_engine, init_store

    engine = create_store_engine(database_uri)
    init_store(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def page_repository(session_factory):
    from infrastructure.wiki.repositories import WikiPageRepository

    return WikiPageRepository(session_factory)


@pytest.fixture
def file_storage(session_factory):
    from infrastructure.wiki.repositories import WikiFileStorage

    return WikiFileStorage(session_factory)


@pytest.fixture
def user_repository(session_factory):
    from infrastructure.user_repository import SqlAlchemyUserRepository

    return SqlAlchemyUserRepository(session_factory)


@pytest.fixture
def page_cache(clock):
    from application.wiki.cache import PageListCache

    return PageListCache(clock=clock)


@pytest.fixture
def page_service(page_repository, file_storage, page_cache, clock):
    from application.wiki.services import WikiPageService

    return WikiPageService(page_repository, file_storage, page_cache, clock=clock)


@pytest.fixture
def auth_service(user_repository):
    from application.auth_service import AuthService

    return AuthService(user_repository)


@pytest.fixture
def app(database_uri, clock):
    """テスト用のFlaskアプリケーション"""
    from webapp import create_app
    from webapp.config import TestConfig

    class _Config(TestConfig):
        WIKI_DATABASE_URI = database_uri

    app = create_app(_Config, clock=clock)
    yield app
    app.extensions["wiki"].engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def logged_in_client(app, client):
    """登録済みユーザーでログインしたクライアント"""
    services = app.extensions["wiki"]
    result = services.auth_service.register_user("alice", "wonderland")
    assert result.ok
    response = client.post("/login", data={"username": "alice", "password": "wonderland"})
    assert response.status_code == 302
    return client
