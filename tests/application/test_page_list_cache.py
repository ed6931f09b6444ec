from datetime import datetime, timedelta, timezone

import pytest

from application.wiki.cache import DEFAULT_TTL, PageListCache
from domain.wiki.entities import Page

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _page(page_id: int, name: str) -> Page:
    return Page(id=page_id, name=name, content="x", last_modified_utc=NOW)


def test_default_ttl_is_thirty_minutes():
    assert DEFAULT_TTL == timedelta(minutes=30)
    assert PageListCache().ttl == DEFAULT_TTL


def test_empty_cache_returns_none(clock):
    assert PageListCache(clock=clock).get() is None


def test_set_returns_immutable_snapshot(clock):
    cache = PageListCache(clock=clock)
    pages = [_page(1, "a")]

    snapshot = cache.set(pages)
    pages.append(_page(2, "b"))

    assert snapshot == (_page(1, "a"),)
    assert cache.get() is snapshot


def test_entry_expires_after_ttl(clock):
    cache = PageListCache(ttl=timedelta(minutes=30), clock=clock)
    cache.set([_page(1, "a")])

    clock.advance(minutes=29, seconds=59)
    assert cache.get() is not None

    clock.advance(seconds=1)
    assert cache.get() is None


def test_expiration_is_absolute_and_not_extended_by_reads(clock):
    cache = PageListCache(ttl=timedelta(minutes=30), clock=clock)
    cache.set([_page(1, "a")])

    for _ in range(3):
        clock.advance(minutes=10)
        cache.get()

    assert cache.get() is None


def test_invalidate_drops_entry(clock):
    cache = PageListCache(clock=clock)
    cache.set([_page(1, "a")])

    cache.invalidate()

    assert cache.get() is None


def test_get_or_load_only_calls_loader_on_miss(clock):
    cache = PageListCache(clock=clock)
    calls = []

    def loader():
        calls.append(1)
        return [_page(1, "a")]

    first = cache.get_or_load(loader)
    second = cache.get_or_load(loader)

    assert first is second
    assert len(calls) == 1


def test_empty_listing_is_cached(clock):
    cache = PageListCache(clock=clock)
    calls = []

    def loader():
        calls.append(1)
        return []

    cache.get_or_load(loader)
    cache.get_or_load(loader)

    assert len(calls) == 1


def test_negative_ttl_is_rejected():
    with pytest.raises(ValueError):
        PageListCache(ttl=timedelta(seconds=-1))
