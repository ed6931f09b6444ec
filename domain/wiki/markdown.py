"""Domain services and value objects for processing wiki markdown content.

Page content is stored as raw Markdown and only turned into HTML when it is
read.  Rendering always happens in this order:

1. Markdown -> HTML (Python-Markdown, soft line breaks become ``<br>``)
2. bare URLs are turned into links
3. the HTML is passed through :class:`HtmlSanitizer`

Sanitizing the Markdown source instead would break legitimate syntax that
uses angle brackets (block quotes, autolinks, code spans).
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from html.parser import HTMLParser
from typing import Callable

import markdown


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarkdownContent:
    """Markdown 形式の本文を表す値オブジェクト。"""

    value: str

    def normalized(self) -> str:
        """None や BOM を考慮した正規化済みテキストを返す。"""

        return (self.value or "").strip("\ufeff")

    def is_empty(self) -> bool:
        return not self.normalized().strip()


class UrlAutoLinker:
    """HTML のテキスト部分にある URL を自動的にリンク化するコンポーネント。

    ``<a>``・``<pre>``・``<code>`` の内側とタグ属性には手を触れない。
    """

    _TAG_PATTERN = re.compile(r"(<[^>]*>)")
    _TAG_NAME_PATTERN = re.compile(r"<\s*(/?)\s*([a-zA-Z0-9]+)")
    _URL_PATTERN = re.compile(r'(https?://(?:\[[0-9a-fA-F:]+\]|[^\s<>"\'`\]]+)(?::[0-9]+)?[^\s<>"\'`]*)')
    _PROTECTED_TAGS = {"a", "pre", "code"}

    def convert(self, text: str) -> str:
        if not text:
            return ""

        protected_depth = 0
        parts: list[str] = []
        for segment in self._TAG_PATTERN.split(text):
            if not segment:
                continue
            if segment.startswith("<"):
                match = self._TAG_NAME_PATTERN.match(segment)
                if match and match.group(2).lower() in self._PROTECTED_TAGS:
                    if match.group(1):
                        protected_depth = max(0, protected_depth - 1)
                    elif not segment.rstrip().endswith("/>"):
                        protected_depth += 1
                parts.append(segment)
            elif protected_depth:
                parts.append(segment)
            else:
                parts.append(self._URL_PATTERN.sub(self._replace, segment))
        return "".join(parts)

    @staticmethod
    def _replace(match: re.Match[str]) -> str:
        url = match.group(1)
        trimmed = re.sub(r"[.,;!?]+$", "", url)
        trailing = url[len(trimmed):]
        return f'<a href="{trimmed}" target="_blank" rel="noopener noreferrer">{trimmed}</a>{trailing}'


class _SanitizingParser(HTMLParser):
    """:class:`HtmlSanitizer` が使う許可リスト方式のパーサー。"""

    def __init__(self, sanitizer: "HtmlSanitizer") -> None:
        super().__init__(convert_charrefs=True)
        self._sanitizer = sanitizer
        self._output: list[str] = []
        self._open_tags: list[str] = []
        self._skip_stack: list[str] = []

    # --- HTMLParser hooks -------------------------------------------------
    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if self._skip_stack:
            if tag in self._sanitizer.DROP_WITH_CONTENT and tag not in self._sanitizer.VOID_TAGS:
                self._skip_stack.append(tag)
            return

        if tag in self._sanitizer.DROP_WITH_CONTENT:
            if tag not in self._sanitizer.VOID_TAGS:
                self._skip_stack.append(tag)
            return

        if tag not in self._sanitizer.ALLOWED_TAGS:
            return

        self._output.append(self._render_start(tag, attrs))
        if tag not in self._sanitizer.VOID_TAGS:
            self._open_tags.append(tag)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if self._skip_stack or tag in self._sanitizer.DROP_WITH_CONTENT:
            return
        if tag not in self._sanitizer.ALLOWED_TAGS:
            return
        self._output.append(self._render_start(tag, attrs))
        if tag not in self._sanitizer.VOID_TAGS:
            self._output.append(f"</{tag}>")

    def handle_endtag(self, tag: str) -> None:
        if self._skip_stack:
            if tag == self._skip_stack[-1]:
                self._skip_stack.pop()
            return

        if tag not in self._open_tags:
            return

        # 閉じ忘れのタグは内側から順に閉じる
        while self._open_tags:
            current = self._open_tags.pop()
            self._output.append(f"</{current}>")
            if current == tag:
                break

    def handle_data(self, data: str) -> None:
        if self._skip_stack:
            return
        self._output.append(html.escape(data, quote=False))

    # コメント・宣言・処理命令はすべて捨てる
    def handle_comment(self, data: str) -> None:
        return

    def handle_decl(self, decl: str) -> None:
        return

    def handle_pi(self, data: str) -> None:
        return

    def unknown_decl(self, data: str) -> None:
        return

    # ---------------------------------------------------------------------
    def result(self) -> str:
        self.close()
        while self._open_tags:
            self._output.append(f"</{self._open_tags.pop()}>")
        return "".join(self._output)

    def _render_start(self, tag: str, attrs: list[tuple[str, str | None]]) -> str:
        rendered = [tag]
        for name, value in attrs:
            cleaned = self._sanitizer.clean_attribute(tag, name, value)
            if cleaned is None:
                continue
            rendered.append(f'{name}="{html.escape(cleaned, quote=True)}"')
        return "<" + " ".join(rendered) + ">"


class HtmlSanitizer:
    """Markdown 変換後の HTML から危険な要素・属性を取り除く。

    許可リストにないタグはタグだけを除去して中身のテキストを残す。
    スクリプト実行につながる要素は中身ごと破棄する。
    """

    ALLOWED_TAGS = frozenset({
        "a", "abbr", "b", "blockquote", "br", "caption", "cite", "code", "col",
        "colgroup", "dd", "del", "details", "div", "dl", "dt", "em", "figcaption",
        "figure", "h1", "h2", "h3", "h4", "h5", "h6", "hr", "i", "img", "ins",
        "kbd", "li", "mark", "ol", "p", "pre", "q", "s", "samp", "small", "span",
        "strike", "strong", "sub", "summary", "sup", "table", "tbody", "td",
        "tfoot", "th", "thead", "tr", "u", "ul", "var", "wbr",
    })

    VOID_TAGS = frozenset({"br", "col", "hr", "img", "wbr", "meta", "link", "base", "input", "embed"})

    DROP_WITH_CONTENT = frozenset({
        "script", "style", "iframe", "object", "embed", "applet", "noscript",
        "template", "frame", "frameset", "noframes", "form", "input", "button",
        "textarea", "select", "option", "meta", "link", "base", "svg", "math",
        "title", "xmp", "noembed",
    })

    GLOBAL_ATTRIBUTES = frozenset({"class", "id", "title", "lang", "dir"})

    TAG_ATTRIBUTES: dict[str, frozenset[str]] = {
        "a": frozenset({"href", "rel", "target", "name"}),
        "img": frozenset({"src", "alt", "width", "height"}),
        "td": frozenset({"align", "colspan", "rowspan", "style"}),
        "th": frozenset({"align", "colspan", "rowspan", "style", "scope"}),
        "ol": frozenset({"start", "type"}),
        "col": frozenset({"span"}),
        "colgroup": frozenset({"span"}),
        "details": frozenset({"open"}),
    }

    URL_ATTRIBUTES = frozenset({"href", "src"})
    ALLOWED_SCHEMES = frozenset({"http", "https", "mailto"})

    _SCHEME_PATTERN = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*):")
    _CONTROL_PATTERN = re.compile(r"[\x00-\x20\x7f]+")
    _TEXT_ALIGN_PATTERN = re.compile(r"^\s*text-align:\s*(left|right|center);?\s*$", re.IGNORECASE)

    def clean(self, html_content: str) -> str:
        if not html_content:
            return ""

        parser = _SanitizingParser(self)
        parser.feed(html_content)
        return parser.result()

    def clean_attribute(self, tag: str, name: str, value: str | None) -> str | None:
        """許可された属性なら安全な値を、そうでなければ ``None`` を返す。"""

        allowed = self.GLOBAL_ATTRIBUTES | self.TAG_ATTRIBUTES.get(tag, frozenset())
        if name not in allowed:
            return None
        if value is None:
            return "" if name == "open" else None
        if name in self.URL_ATTRIBUTES and not self.is_safe_url(value):
            return None
        if name == "style" and not self._TEXT_ALIGN_PATTERN.match(value):
            return None
        return value

    def is_safe_url(self, url: str) -> bool:
        compact = self._CONTROL_PATTERN.sub("", url or "")
        match = self._SCHEME_PATTERN.match(compact)
        if match is None:
            # 相対 URL・フラグメント
            return True
        return match.group(1).lower() in self.ALLOWED_SCHEMES


class MarkdownRenderer:
    """Wiki 向け Markdown レンダラー。"""

    def __init__(
        self,
        *,
        auto_linker: UrlAutoLinker | None = None,
        sanitizer: HtmlSanitizer | None = None,
        markdown_factory: Callable[[], markdown.Markdown] | None = None,
    ) -> None:
        self.auto_linker = auto_linker or UrlAutoLinker()
        self.sanitizer = sanitizer or HtmlSanitizer()
        self._markdown_factory = markdown_factory or self._default_markdown_factory

    @staticmethod
    def _default_markdown_factory() -> markdown.Markdown:
        return markdown.Markdown(
            extensions=[
                "markdown.extensions.extra",
                "markdown.extensions.nl2br",
                "markdown.extensions.sane_lists",
            ],
            output_format="html",
        )

    def render(self, content: MarkdownContent | str) -> str:
        if isinstance(content, str):
            content = MarkdownContent(content)

        if content.is_empty():
            logger.debug("Markdown content is empty; returning empty string")
            return ""

        text = content.normalized().replace("\r\n", "\n").replace("\r", "\n")

        engine = self._markdown_factory()
        html_output = engine.convert(text)
        linked = self.auto_linker.convert(html_output)
        sanitized = self.sanitizer.clean(linked)

        logger.debug("Rendered HTML output: %s", sanitized[:100])
        return sanitized
