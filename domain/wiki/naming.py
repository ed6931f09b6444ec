"""ページ名に関するドメインサービスおよび値オブジェクト。"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .markdown import HtmlSanitizer

HOME_PAGE_NAME = "home-page"

_TAG_PATTERN = re.compile(r"<[^>]*>")
_PATH_SEPARATOR_PATTERN = re.compile(r"[/\\]+")


@dataclass(frozen=True)
class PageName:
    """正規化済みのページ名を表す値オブジェクト。"""

    value: str

    def __post_init__(self) -> None:
        normalized = (self.value or "").strip()
        if not normalized:
            raise ValueError("page name must not be empty")
        object.__setattr__(self, "value", normalized)

    def __str__(self) -> str:  # pragma: no cover - dataclass repr helper
        return self.value

    def matches(self, other: str) -> bool:
        return self.value.casefold() == (other or "").casefold()


class KebabCaseConverter:
    """入力されたタイトルをケバブケースへ変換するコンポーネント。

    ``MyNewPage`` や ``HTTPServer setup`` のような表記を単語ごとに分割して
    ``my-new-page`` / ``http-server-setup`` にする。
    """

    _WORD_PATTERN = re.compile(r"[A-Z]{2,}(?=[A-Z][a-z]+[0-9]*|\b)|[A-Z]?[a-z]+[0-9]*|[A-Z]|[0-9]+")

    def convert(self, text: str) -> str:
        if not text:
            return ""
        return "-".join(self._WORD_PATTERN.findall(text)).lower()


class PageNameService:
    """ページ名の正規化・表示名変換を担うドメインサービス。"""

    def __init__(
        self,
        sanitizer: HtmlSanitizer | None = None,
        kebab_converter: KebabCaseConverter | None = None,
    ) -> None:
        self._sanitizer = sanitizer or HtmlSanitizer()
        self._kebab_converter = kebab_converter or KebabCaseConverter()

    def normalize(self, raw_name: str) -> PageName:
        """保存用の正規名を生成する。

        前後の空白を除き、小文字化し、空白をハイフンに置き換えたうえで
        HTML サニタイザを通す。名前は URL のパスに使うため、残ったタグは
        テキストだけにし、``/`` と ``\\`` はハイフンにする。結果が空なら
        ``ValueError``。
        """

        proper_name = (raw_name or "").strip().replace(" ", "-").lower()
        cleaned = _TAG_PATTERN.sub("", self._sanitizer.clean(proper_name))
        return PageName(_PATH_SEPARATOR_PATTERN.sub("-", cleaned))

    def from_title(self, title: str) -> PageName:
        """新規ページ作成フォームに入力されたタイトルから名前を作る。"""

        return PageName(self._kebab_converter.convert(title))

    @staticmethod
    def display_title(name: str) -> str:
        """``my-page`` を ``My Page`` のような表示用タイトルにする。"""

        return " ".join(word.capitalize() for word in (name or "").replace("-", " ").split())
