"""
Wiki機能用のユーティリティ関数
"""

from datetime import datetime

from markupsafe import Markup

from core.time import ensure_utc
from domain.wiki.naming import PageNameService

DISPLAY_DATE_FORMAT = "%B %d, %Y"


def display_title(name):
    """``my-page`` を ``My Page`` に変換"""
    return PageNameService.display_title(name)


def format_date(value: datetime) -> str:
    """最終更新日時の表示用フォーマット"""
    if value is None:
        return ""
    return ensure_utc(value).strftime(DISPLAY_DATE_FORMAT)


def attachment_markdown(attachment) -> str:
    """添付ファイルを本文に貼り付けるための Markdown リンク"""
    return f"[{attachment.file_name}](/attachment?fileId={attachment.file_id})"


def safe_html(rendered: str) -> Markup:
    """サニタイズ済みの HTML をテンプレートへ渡す"""
    return Markup(rendered)


TEMPLATE_FILTERS = {
    "display_title": display_title,
    "wiki_date": format_date,
    "attachment_markdown": attachment_markdown,
}
