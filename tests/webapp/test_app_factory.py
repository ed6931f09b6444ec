"""
アプリケーションファクトリのテスト
"""

from pathlib import Path

from webapp import create_app
from webapp.config import TestConfig


def test_create_app_boots_from_empty_working_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("WIKI_DATABASE_URI", raising=False)

    class _Config(TestConfig):
        WIKI_DATABASE_URI = None
        WIKI_DATABASE_PATH = "instance/wiki.db"

    app = create_app(_Config)
    try:
        assert (tmp_path / "instance" / "wiki.db").exists()
        response = app.test_client().get("/")
        assert response.status_code == 302
    finally:
        app.extensions["wiki"].engine.dispose()


def test_factory_reads_store_settings_from_app_config(tmp_path):
    db_path = tmp_path / "data" / "store.db"

    class _Config(TestConfig):
        WIKI_DATABASE_URI = f"sqlite:///{db_path.as_posix()}"
        WIKI_PAGE_LIST_CACHE_TTL_SECONDS = 90

    app = create_app(_Config)
    try:
        services = app.extensions["wiki"]
        assert Path(services.engine.url.database) == db_path
        assert services.page_service.cache.ttl.total_seconds() == 90
    finally:
        app.extensions["wiki"].engine.dispose()
