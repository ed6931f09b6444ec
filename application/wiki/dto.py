"""Wikiアプリケーション層で利用するDTOとビューモデル"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from domain.wiki.exceptions import WikiError

T = TypeVar("T")


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """サービス操作の結果。

    サービスは例外を境界の外へ投げず、成否と値・エラーをこの DTO で返す。
    失敗時でも ``value`` に関連する値（削除できなかったページなど）が入ることがある。
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[WikiError] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "ServiceResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: WikiError, value: Optional[T] = None) -> "ServiceResult[T]":
        return cls(ok=False, value=value, error=error)

    @property
    def message(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None


@dataclass(frozen=True)
class PageLink:
    """サイドバーのリンク補助に使うページ参照"""

    title: str
    name: str

    @property
    def markdown(self) -> str:
        return f"[{self.title}](/{self.name})"


__all__ = ["PageLink", "ServiceResult"]
