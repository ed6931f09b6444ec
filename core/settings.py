"""Centralised application settings abstraction.

This module exposes :class:`ApplicationSettings` which consolidates all
configuration lookups of the wiki.  The process environment (or any mapping
provided) is the backing store; inside an application context values present in
``app.config`` take precedence.

The global :data:`settings` instance should be used for production code, while
tests can instantiate their own :class:`ApplicationSettings` with a dedicated
mapping to validate behaviour in isolation.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Mapping, Optional, cast

from flask import current_app, has_app_context

from domain.wiki.naming import HOME_PAGE_NAME

DEFAULT_DATABASE_FILENAME = "wiki.db"
DEFAULT_PAGE_LIST_CACHE_TTL_SECONDS = 30 * 60
DEFAULT_MAX_UPLOAD_BYTES = 16 * 1024 * 1024
DEFAULT_SESSION_LIFETIME_MINUTES = 20


@dataclass(frozen=True)
class _EnvironmentFacade:
    """Thin wrapper that provides ``Mapping`` compatible access to env vars."""

    source: Mapping[str, str]

    @classmethod
    def from_environ(cls, env: Optional[Mapping[str, str]] = None) -> "_EnvironmentFacade":
        return cls(source=os.environ if env is None else env)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.source.get(key, default)


if TYPE_CHECKING:  # pragma: no cover
    from flask import Flask


class ApplicationSettings:
    """Domain level representation of configuration values.

    The class favours explicit properties instead of generic ``get`` access so
    that the rest of the application operates on intent-revealing names and
    default values live in a single location.
    """

    def __init__(self, env: Optional[Mapping[str, str]] = None, *, use_app_config: bool = True) -> None:
        self._env = _EnvironmentFacade.from_environ(env)
        self._use_app_config = use_app_config

    # ------------------------------------------------------------------
    # Generic helpers
    # ------------------------------------------------------------------
    def _get(self, key: str, default: Optional[str] = None):
        if self._use_app_config and has_app_context():
            app = cast("Flask", current_app)
            if key in app.config:
                return app.config.get(key)

        value = self._env.get(key)
        if value is not None:
            return value
        return default

    def get(self, key: str, default=None):
        """Return the configured value for *key* or *default* if missing."""

        value = self._get(key)
        return default if value is None else value

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Return a boolean configuration value."""

        value = self._get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return bool(value)
        if isinstance(value, str):
            normalised = value.strip().lower()
            if normalised in {"1", "true", "yes", "on"}:
                return True
            if normalised in {"0", "false", "no", "off"}:
                return False
        return default

    def get_int(self, key: str, default: int = 0) -> int:
        """Return an integer configuration value."""

        value = self._get(key)
        if value is None:
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def get_path(self, key: str, default: Optional[Path | str] = None) -> Optional[Path]:
        """Return a :class:`Path` for the configured value."""

        value = self._get(key)
        if value is not None:
            try:
                return Path(str(value))
            except (TypeError, ValueError):
                return None
        if default is None:
            return None
        return Path(str(default))

    # ------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------
    @property
    def database_path(self) -> Path:
        """SQLite ファイルの場所。未設定ならアプリの instance フォルダ配下"""

        path = self.get_path("WIKI_DATABASE_PATH")
        if path is not None:
            return path
        if self._use_app_config and has_app_context():
            return Path(current_app.instance_path) / DEFAULT_DATABASE_FILENAME
        return Path("instance") / DEFAULT_DATABASE_FILENAME

    @property
    def database_uri(self) -> str:
        """SQLAlchemy URI of the wiki store.

        ``WIKI_DATABASE_URI`` wins; otherwise a SQLite file at
        :attr:`database_path` is used.
        """

        value = self._get("WIKI_DATABASE_URI")
        if value:
            return str(value)
        return f"sqlite:///{self.database_path.as_posix()}"

    # ------------------------------------------------------------------
    # Wiki behaviour
    # ------------------------------------------------------------------
    @property
    def home_page_name(self) -> str:
        value = self._get("WIKI_HOME_PAGE_NAME")
        return str(value).strip() if value else HOME_PAGE_NAME

    @property
    def page_list_cache_ttl(self) -> timedelta:
        seconds = self.get_int("WIKI_PAGE_LIST_CACHE_TTL_SECONDS", DEFAULT_PAGE_LIST_CACHE_TTL_SECONDS)
        if seconds < 0:
            seconds = DEFAULT_PAGE_LIST_CACHE_TTL_SECONDS
        return timedelta(seconds=seconds)

    @property
    def max_upload_bytes(self) -> int:
        value = self.get_int("WIKI_MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES)
        return value if value > 0 else DEFAULT_MAX_UPLOAD_BYTES

    # ------------------------------------------------------------------
    # Web / runtime
    # ------------------------------------------------------------------
    @property
    def log_level(self) -> str:
        value = self._get("WIKI_LOG_LEVEL")
        return str(value).upper() if value else "INFO"

    @property
    def secret_key(self) -> Optional[str]:
        value = self._get("SECRET_KEY")
        return str(value) if value else None

    @property
    def session_lifetime(self) -> timedelta:
        minutes = self.get_int("WIKI_SESSION_LIFETIME_MINUTES", DEFAULT_SESSION_LIFETIME_MINUTES)
        return timedelta(minutes=minutes if minutes > 0 else DEFAULT_SESSION_LIFETIME_MINUTES)

    @property
    def session_cookie_secure(self) -> bool:
        return self.get_bool("SESSION_COOKIE_SECURE", False)


settings = ApplicationSettings()

__all__ = ["ApplicationSettings", "settings"]
