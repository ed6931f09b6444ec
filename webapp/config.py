import os

from dotenv import load_dotenv

from core.settings import ApplicationSettings

load_dotenv()

_settings = ApplicationSettings(use_app_config=False)


class Config:
    """Base Flask application configuration populated from the environment."""

    SECRET_KEY = _settings.secret_key or os.urandom(32).hex()

    # Store
    # 未設定なら create_app で instance フォルダの SQLite を使う
    WIKI_DATABASE_URI = _settings.get("WIKI_DATABASE_URI")

    # Wiki behaviour
    WIKI_HOME_PAGE_NAME = _settings.home_page_name
    WIKI_PAGE_LIST_CACHE_TTL_SECONDS = int(_settings.page_list_cache_ttl.total_seconds())
    WIKI_LOG_LEVEL = _settings.log_level
    MAX_CONTENT_LENGTH = _settings.max_upload_bytes

    # Session settings
    PERMANENT_SESSION_LIFETIME = _settings.session_lifetime
    REMEMBER_COOKIE_DURATION = _settings.session_lifetime
    SESSION_COOKIE_SECURE = _settings.session_cookie_secure
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    REMEMBER_COOKIE_HTTPONLY = True


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key"
    WIKI_DATABASE_URI = "sqlite://"
    WIKI_LOG_LEVEL = "DEBUG"
    SESSION_COOKIE_SECURE = False
