"""
Wiki機能のアプリケーションサービス - ユースケースの実装

ページの一覧・取得・保存・削除と添付ファイルの操作を提供する。
すべての操作は :class:`ServiceResult` を返し、例外をサービスの外へ投げない。
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Callable, Optional

from application.wiki.cache import PageListCache
from application.wiki.dto import PageLink, ServiceResult
from core.logging_config import log_event_error, log_event_info, log_event_warning
from core.time import Clock, utc_now
from domain.wiki.entities import Attachment, Page, PageInput, StoredFile, UploadedFile
from domain.wiki.exceptions import (
    WikiConflictError,
    WikiError,
    WikiNotFoundError,
    WikiStoreError,
    WikiValidationError,
)
from domain.wiki.markdown import MarkdownContent, MarkdownRenderer
from domain.wiki.naming import HOME_PAGE_NAME, PageName, PageNameService
from domain.wiki.validation import NAME_REQUIRED, PageInputValidator
from infrastructure.wiki.repositories import WikiFileStorage, WikiPageRepository

logger = logging.getLogger(__name__)


def _new_file_id() -> str:
    return str(uuid.uuid4())


class WikiPageService:
    """Wikiページ関連のビジネスロジック"""

    def __init__(
        self,
        page_repository: WikiPageRepository,
        file_storage: WikiFileStorage,
        cache: Optional[PageListCache] = None,
        *,
        renderer: Optional[MarkdownRenderer] = None,
        name_service: Optional[PageNameService] = None,
        home_page_name: str = HOME_PAGE_NAME,
        clock: Optional[Clock] = None,
        file_id_factory: Callable[[], str] = _new_file_id,
    ) -> None:
        self.page_repo = page_repository
        self.file_storage = file_storage
        self.cache = cache or PageListCache()
        self.renderer = renderer or MarkdownRenderer()
        self.name_service = name_service or PageNameService(self.renderer.sanitizer)
        self.home_page_name = home_page_name
        self.validator = PageInputValidator(home_page_name)
        self._clock = clock or utc_now
        self._file_id_factory = file_id_factory

    # ------------------------------------------------------------------
    # 参照系
    # ------------------------------------------------------------------
    def list_all_pages(self) -> ServiceResult[tuple[Page, ...]]:
        """全ページを名前順で返す。キャッシュが有効ならストアに触れない。"""
        try:
            pages = self.cache.get_or_load(self.page_repo.find_all)
        except WikiError as exc:
            log_event_error(logger, "Failed to list wiki pages", "wiki.page.list_failed")
            return ServiceResult.failure(exc)
        return ServiceResult.success(pages)

    def get_page(self, name: str) -> ServiceResult[Page]:
        """名前（大文字小文字を区別しない）でページを取得"""
        try:
            page = self.page_repo.find_by_name(name)
        except WikiError as exc:
            log_event_error(logger, "Failed to load wiki page", "wiki.page.get_failed", page_name=name)
            return ServiceResult.failure(exc)
        if page is None:
            return ServiceResult.failure(WikiNotFoundError(f"Page '{name}' was not found"))
        return ServiceResult.success(page)

    def get_page_by_id(self, page_id: int) -> ServiceResult[Page]:
        try:
            page = self.page_repo.find_by_id(page_id)
        except WikiError as exc:
            log_event_error(logger, "Failed to load wiki page", "wiki.page.get_failed", page_id=page_id)
            return ServiceResult.failure(exc)
        if page is None:
            return ServiceResult.failure(WikiNotFoundError(f"Page id {page_id} was not found"))
        return ServiceResult.success(page)

    def get_file(self, file_id: str) -> Optional[StoredFile]:
        """添付ファイル本体を取得。存在しない場合やストア障害時は ``None``"""
        try:
            info = self.file_storage.find_by_id(file_id)
            if info is None:
                return None
            content = self.file_storage.download(file_id)
        except WikiError:
            log_event_error(logger, "Failed to load attachment", "wiki.attachment.get_failed", file_id=file_id)
            return None
        return StoredFile(info=info, content=content)

    def all_page_links(self) -> ServiceResult[tuple[PageLink, ...]]:
        """サイドバー用のリンク一覧（表示名とページ名の組）"""
        result = self.list_all_pages()
        if not result.ok:
            return ServiceResult.failure(result.error)
        links = tuple(
            PageLink(title=self.name_service.display_title(page.name), name=page.name)
            for page in result.value or ()
        )
        return ServiceResult.success(links)

    # ------------------------------------------------------------------
    # レンダリング
    # ------------------------------------------------------------------
    def render_page(self, page: Page) -> str:
        return self.render_markdown(page.content)

    def render_markdown(self, text: str) -> str:
        return self.renderer.render(MarkdownContent(text or ""))

    # ------------------------------------------------------------------
    # 更新系
    # ------------------------------------------------------------------
    def save_page(self, page_input: PageInput) -> ServiceResult[Page]:
        """ページを新規作成または更新する。

        添付ファイルがあれば Blob を先にアップロードしてからページを書き込む。
        本文は加工せずそのまま保存する。
        """
        uploaded_file_id: Optional[str] = None
        try:
            existing = self.page_repo.find_by_id(page_input.id) if page_input.id is not None else None
            self.validator.ensure_valid(page_input, existing)
            name = self._normalize_name(page_input.name)

            holder = self.page_repo.find_by_name(name.value)
            if holder is not None and (existing is None or holder.id != existing.id):
                raise WikiConflictError(f"A page named '{name.value}' already exists")

            now = self._clock()
            attachment = None
            if page_input.attachment is not None and page_input.attachment.has_file_name():
                attachment = self._upload(page_input.attachment, now)
                uploaded_file_id = attachment.file_id

            if existing is not None:
                page = replace(existing, name=name.value, content=page_input.content, last_modified_utc=now)
                if attachment is not None:
                    page = page.with_attachment(attachment)
                if not self.page_repo.update(page):
                    raise WikiNotFoundError(f"Page id {existing.id} was not found")
            else:
                page = Page(
                    id=None,
                    name=name.value,
                    content=page_input.content,
                    last_modified_utc=now,
                    attachments=(attachment,) if attachment is not None else (),
                )
                page = self.page_repo.add(page)
        except WikiError as exc:
            self._log_failure(exc, "Failed to save wiki page", "wiki.page.save_failed", page_name=page_input.name)
            if uploaded_file_id is not None:
                log_event_warning(
                    logger,
                    "Attachment was stored but the page write failed",
                    "wiki.attachment.orphaned",
                    file_id=uploaded_file_id,
                )
            return ServiceResult.failure(exc)

        self.cache.invalidate()
        log_event_info(logger, "Wiki page saved", "wiki.page.saved", page_id=page.id, page_name=page.name)
        return ServiceResult.success(page)

    def delete_page(self, page_id: int, protected_name: Optional[str] = None) -> ServiceResult[bool]:
        """ページと添付ファイルをすべて削除する。ホームページは削除できない。"""
        protected = protected_name or self.home_page_name
        try:
            page = self.page_repo.find_by_id(page_id)
            if page is None:
                raise WikiNotFoundError(f"Page id {page_id} was not found")
            if page.is_named(protected):
                raise WikiValidationError(f"The page '{protected}' cannot be deleted", field="name")

            for attachment in page.attachments:
                if not self.file_storage.delete(attachment.file_id):
                    log_event_warning(
                        logger,
                        "Attachment blob was already missing",
                        "wiki.attachment.missing",
                        file_id=attachment.file_id,
                        page_id=page_id,
                    )

            if not self.page_repo.delete(page_id):
                raise WikiNotFoundError(f"Page id {page_id} was not found")
        except WikiError as exc:
            self._log_failure(exc, "Failed to delete wiki page", "wiki.page.delete_failed", page_id=page_id)
            return ServiceResult.failure(exc, value=False)

        self.cache.invalidate()
        log_event_info(logger, "Wiki page deleted", "wiki.page.deleted", page_id=page_id)
        return ServiceResult.success(True)

    def delete_attachment(self, page_id: int, file_id: str) -> ServiceResult[Page]:
        """添付ファイルの Blob とメタデータを削除する。

        ページに無い添付を指定した場合や Blob の削除に失敗した場合は、
        失敗結果の ``value`` にページを入れて返す。
        """
        try:
            page = self.page_repo.find_by_id(page_id)
        except WikiError as exc:
            self._log_failure(exc, "Failed to delete attachment", "wiki.attachment.delete_failed", page_id=page_id)
            return ServiceResult.failure(exc)
        if page is None:
            log_event_warning(logger, "Page for attachment was not found", "wiki.attachment.delete_failed", page_id=page_id)
            return ServiceResult.failure(WikiNotFoundError(f"Page id {page_id} was not found"))

        attachment = page.find_attachment(file_id)
        if attachment is None:
            log_event_warning(
                logger,
                "Attachment is not on the page",
                "wiki.attachment.delete_failed",
                page_id=page_id,
                file_id=file_id,
            )
            return ServiceResult.failure(WikiNotFoundError(f"File '{file_id}' was not found"), value=page)

        try:
            deleted = self.file_storage.delete(attachment.file_id)
        except WikiError as exc:
            self._log_failure(exc, "Failed to delete attachment blob", "wiki.attachment.delete_failed", file_id=file_id)
            return ServiceResult.failure(exc, value=page)
        if not deleted:
            log_event_warning(logger, "Attachment blob was not found", "wiki.attachment.delete_failed", file_id=file_id)
            return ServiceResult.failure(WikiNotFoundError(f"File '{file_id}' was not found"), value=page)

        updated = page.without_attachment(file_id)
        try:
            if not self.page_repo.update(updated):
                raise WikiNotFoundError(f"Page id {page_id} was not found")
        except WikiError as exc:
            self._log_failure(
                exc,
                "Attachment blob was deleted but the page could not be updated",
                "wiki.attachment.metadata_update_failed",
                page_id=page_id,
                file_id=file_id,
            )
            return ServiceResult.failure(exc, value=page)

        self.cache.invalidate()
        log_event_info(logger, "Attachment deleted", "wiki.attachment.deleted", page_id=page_id, file_id=file_id)
        return ServiceResult.success(updated)

    # ------------------------------------------------------------------
    # 内部ヘルパー
    # ------------------------------------------------------------------
    def _normalize_name(self, raw_name: str) -> PageName:
        try:
            return self.name_service.normalize(raw_name)
        except ValueError as exc:
            raise WikiValidationError(NAME_REQUIRED, field="name") from exc

    def _upload(self, uploaded: UploadedFile, now) -> Attachment:
        file_id = self._file_id_factory()
        mime_type = uploaded.mime_type or "application/octet-stream"
        try:
            self.file_storage.upload(file_id, uploaded.file_name, mime_type, uploaded.stream)
        except OSError as exc:
            raise WikiStoreError(f"Could not read uploaded file '{uploaded.file_name}'") from exc
        return Attachment(file_id=file_id, file_name=uploaded.file_name, mime_type=mime_type, last_modified_utc=now)

    @staticmethod
    def _log_failure(exc: WikiError, message: str, event: str, **extra) -> None:
        # 入力起因の失敗は warning、ストア障害はスタックトレース付きで error
        if isinstance(exc, WikiStoreError):
            log_event_error(logger, message, event, **extra)
        else:
            log_event_warning(logger, f"{message}: {exc}", event, **extra)


__all__ = ["WikiPageService"]
