"""
Unit tests for MetaInfoCache
"""

import asyncio

import pytest

from metafix.services.metainfo_cache import MetaInfoCache, get_metainfo_cache


def test_get_on_empty_cache_returns_none(metainfo_cache):
    assert metainfo_cache.get("/media") is None
    assert "/media" not in metainfo_cache


def test_set_then_get_returns_same_document(metainfo_cache):
    document = {"folders": {"A": {"tmdb_id": 1}}}

    metainfo_cache.set("/media", document)

    assert metainfo_cache.get("/media") is document
    assert len(metainfo_cache) == 1


def test_set_overwrites(metainfo_cache):
    metainfo_cache.set("/media", {"folders": {}})
    replacement = {"folders": {"B": {}}}

    metainfo_cache.set("/media", replacement)

    assert metainfo_cache.get("/media") is replacement


def test_invalidate_clears_only_that_root(metainfo_cache):
    metainfo_cache.set("/media", {"folders": {}})
    metainfo_cache.set("/anime", {"folders": {}})

    metainfo_cache.invalidate("/media")

    assert metainfo_cache.get("/media") is None
    assert metainfo_cache.get("/anime") is not None


def test_invalidate_unknown_root_is_noop(metainfo_cache):
    metainfo_cache.invalidate("/never-set")

    assert len(metainfo_cache) == 0


def test_roots_are_distinct_keys(metainfo_cache):
    metainfo_cache.set("/media", {"folders": {"A": {}}})

    assert metainfo_cache.get("/media/") is None


def test_clear(metainfo_cache):
    metainfo_cache.set("/media", {"folders": {}})
    metainfo_cache.set("/anime", {"folders": {}})

    metainfo_cache.clear()

    assert len(metainfo_cache) == 0


def test_lock_is_stable_per_root(metainfo_cache):
    assert metainfo_cache.lock("/media") is metainfo_cache.lock("/media")
    assert metainfo_cache.lock("/media") is not metainfo_cache.lock("/anime")
    assert isinstance(metainfo_cache.lock("/media"), asyncio.Lock)


@pytest.mark.asyncio
async def test_lock_serializes_holders(metainfo_cache):
    order = []

    async def hold(name):
        async with metainfo_cache.lock("/media"):
            order.append(f"{name}-in")
            await asyncio.sleep(0)
            order.append(f"{name}-out")

    await asyncio.gather(hold("a"), hold("b"))

    assert order == ["a-in", "a-out", "b-in", "b-out"]


def test_global_cache_is_singleton():
    assert get_metainfo_cache() is get_metainfo_cache()
    assert isinstance(get_metainfo_cache(), MetaInfoCache)
