"""ページ一覧のキャッシュ"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence

from core.time import Clock, utc_now
from domain.wiki.entities import Page

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(minutes=30)


class PageListCache:
    """全ページ一覧を 1 スロットだけ保持する絶対有効期限付きキャッシュ。

    有効期限は格納した時刻から数える。書き込み系の操作が成功したら
    :meth:`invalidate` で明示的に破棄する。
    """

    def __init__(self, ttl: timedelta = DEFAULT_TTL, clock: Optional[Clock] = None) -> None:
        if ttl < timedelta(0):
            raise ValueError("ttl must not be negative")
        self.ttl = ttl
        self._clock = clock or utc_now
        self._lock = threading.Lock()
        self._pages: Optional[tuple[Page, ...]] = None
        self._expires_at: Optional[datetime] = None

    def get(self) -> Optional[tuple[Page, ...]]:
        with self._lock:
            if self._pages is None:
                return None
            if self._expires_at is not None and self._clock() >= self._expires_at:
                logger.debug("Page list cache expired", extra={"event": "wiki.cache.expired"})
                self._pages = None
                self._expires_at = None
                return None
            return self._pages

    def set(self, pages: Sequence[Page]) -> tuple[Page, ...]:
        snapshot = tuple(pages)
        with self._lock:
            self._pages = snapshot
            self._expires_at = self._clock() + self.ttl
        return snapshot

    def invalidate(self) -> None:
        with self._lock:
            self._pages = None
            self._expires_at = None
        logger.debug("Page list cache invalidated", extra={"event": "wiki.cache.invalidated"})

    def get_or_load(self, loader: Callable[[], Sequence[Page]]) -> tuple[Page, ...]:
        cached = self.get()
        if cached is not None:
            return cached
        return self.set(loader())


__all__ = ["DEFAULT_TTL", "PageListCache"]
