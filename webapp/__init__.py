# webapp/__init__.py
import json
import logging
from collections.abc import Mapping, Sequence
from typing import Optional

from flask import Flask, render_template, request

from werkzeug.exceptions import HTTPException

from .extensions import EXTENSION_KEY, WikiServices, login_manager
from application.auth_service import AuthService
from application.wiki.cache import PageListCache
from application.wiki.services import WikiPageService
from core.db import create_session_factory, create_store_engine, init_store
from core.logging_config import configure_logging
from core.settings import settings
from core.time import Clock
from infrastructure.user_repository import SqlAlchemyUserRepository
from infrastructure.wiki.repositories import WikiFileStorage, WikiPageRepository


_SENSITIVE_KEYWORDS = {
    "password",
    "passwd",
    "secret",
    "token",
}


def _is_sensitive_key(key):
    if not isinstance(key, str):
        return False
    key_lower = key.lower()
    return any(keyword in key_lower for keyword in _SENSITIVE_KEYWORDS)


def _mask_sensitive_data(data):
    """再帰的に辞書やリスト内の機密情報をマスクする。"""

    if isinstance(data, Mapping):
        masked = {}
        for key, value in data.items():
            if _is_sensitive_key(key):
                masked[key] = "***"
            else:
                masked[key] = _mask_sensitive_data(value)
        return masked
    if isinstance(data, Sequence) and not isinstance(data, (str, bytes, bytearray)):
        return [_mask_sensitive_data(item) for item in data]
    return data


def _build_services(app: Flask, clock: Optional[Clock]) -> WikiServices:
    # app.config の値が環境変数より優先される
    with app.app_context():
        database_uri = settings.database_uri
        home_page_name = settings.home_page_name
        cache_ttl = settings.page_list_cache_ttl

    engine = create_store_engine(database_uri)
    init_store(engine)
    session_factory = create_session_factory(engine)

    cache = PageListCache(ttl=cache_ttl, clock=clock)
    page_service = WikiPageService(
        WikiPageRepository(session_factory),
        WikiFileStorage(session_factory),
        cache,
        home_page_name=home_page_name,
        clock=clock,
    )
    auth_service = AuthService(SqlAlchemyUserRepository(session_factory))
    return WikiServices(engine=engine, page_service=page_service, auth_service=auth_service)


def create_app(config_object=None, *, clock: Optional[Clock] = None):
    """アプリケーションファクトリ"""
    from dotenv import load_dotenv
    from .config import Config

    # .env を読み込む（環境変数が未設定の場合のみ）
    load_dotenv()

    app = Flask(__name__)
    app.config.from_object(config_object or Config)

    with app.app_context():
        log_level = settings.log_level
    configure_logging(app.logger, log_level)
    for logger_name in ("application", "infrastructure", "core", "domain"):
        configure_logging(logging.getLogger(logger_name), log_level)

    app.extensions[EXTENSION_KEY] = _build_services(app, clock)
    login_manager.init_app(app)

    from .auth import bp as auth_bp
    app.register_blueprint(auth_bp)

    # ページ名のキャッチオールを含むため最後に登録
    from .wiki import bp as wiki_bp
    app.register_blueprint(wiki_bp)

    @app.errorhandler(404)
    def handle_404(e):
        app.logger.warning(
            "404 path=%s full=%s ua=%s",
            request.path,
            request.full_path,
            request.user_agent,
            extra={"event": "http.not_found"},
        )
        return render_template("error.html", message="Page not found"), 404

    @app.errorhandler(Exception)
    def handle_exception(e):
        is_http = isinstance(e, HTTPException)
        if is_http and (e.code is None or e.code < 400):
            return e
        code = e.code if is_http else 500
        # 外部公開メッセージ：5xxは伏せる
        public_message = e.description if (is_http and code < 500) else "Internal Server Error"

        log_dict = {
            "method": request.method,
            "path": request.path,
            "status": code,
        }
        form_dict = request.form.to_dict()
        if form_dict:
            log_dict["form"] = _mask_sensitive_data(form_dict)

        # 4xxはstackなし、5xxはstack付き
        if is_http and 400 <= code < 500:
            app.logger.warning(json.dumps(log_dict, ensure_ascii=False), extra={"event": "http.4xx"})
        elif is_http:
            app.logger.error(json.dumps(log_dict, ensure_ascii=False), extra={"event": "http.5xx"})
        else:
            app.logger.exception(json.dumps(log_dict, ensure_ascii=False), extra={"event": "http.5xx"})

        return render_template("error.html", message=public_message), code

    return app
