"""Wikiページ保存時の入力検証。"""

from __future__ import annotations

from dataclasses import dataclass

from .entities import Page, PageInput
from .exceptions import WikiValidationError
from .naming import HOME_PAGE_NAME

NAME_REQUIRED = "Name is required"
CONTENT_REQUIRED = "Content is required"


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    message: str


class PageInputValidator:
    """フォーム入力値を検証し、違反内容を列挙するバリデータ。"""

    def __init__(self, home_page_name: str = HOME_PAGE_NAME) -> None:
        self.home_page_name = home_page_name

    def validate(self, page_input: PageInput, existing: Page | None = None) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []

        if not (page_input.name or "").strip():
            issues.append(ValidationIssue("name", NAME_REQUIRED))
        elif self._renames_home_page(page_input, existing):
            issues.append(
                ValidationIssue(
                    "name",
                    f"You cannot modify home page name. Please keep it {self.home_page_name}",
                )
            )

        if not (page_input.content or "").strip():
            issues.append(ValidationIssue("content", CONTENT_REQUIRED))

        return issues

    def ensure_valid(self, page_input: PageInput, existing: Page | None = None) -> None:
        """最初の違反を :class:`WikiValidationError` として送出する。"""

        issues = self.validate(page_input, existing)
        if issues:
            first = issues[0]
            raise WikiValidationError(first.message, field=first.field)

    def _renames_home_page(self, page_input: PageInput, existing: Page | None) -> bool:
        if existing is None or not existing.is_named(self.home_page_name):
            return False
        submitted = page_input.name.strip().replace(" ", "-").lower()
        return submitted != self.home_page_name.lower()


__all__ = [
    "CONTENT_REQUIRED",
    "NAME_REQUIRED",
    "PageInputValidator",
    "ValidationIssue",
]
