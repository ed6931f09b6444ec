"""Wiki ドメインモジュール。"""

from .entities import (
    Attachment,
    Page,
    PageInput,
    StoredFile,
    StoredFileInfo,
    UploadedFile,
)
from .exceptions import (
    WikiAuthError,
    WikiConflictError,
    WikiError,
    WikiNotFoundError,
    WikiStoreError,
    WikiValidationError,
)
from .markdown import (
    HtmlSanitizer,
    MarkdownContent,
    MarkdownRenderer,
    UrlAutoLinker,
)
from .naming import HOME_PAGE_NAME, KebabCaseConverter, PageName, PageNameService
from .validation import PageInputValidator, ValidationIssue

__all__ = [
    "Attachment",
    "HOME_PAGE_NAME",
    "HtmlSanitizer",
    "KebabCaseConverter",
    "MarkdownContent",
    "MarkdownRenderer",
    "Page",
    "PageInput",
    "PageInputValidator",
    "PageName",
    "PageNameService",
    "StoredFile",
    "StoredFileInfo",
    "UploadedFile",
    "UrlAutoLinker",
    "ValidationIssue",
    "WikiAuthError",
    "WikiConflictError",
    "WikiError",
    "WikiNotFoundError",
    "WikiStoreError",
    "WikiValidationError",
]
