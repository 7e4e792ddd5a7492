"""Tests for the proxy cache: single-flight generation and weak retention."""

from __future__ import annotations

import gc
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from pyfusion.proxy.core.cache import ProxyCache
from pyfusion.proxy.exceptions import ProxyConfigurationError


def make_type(name: str = "Generated") -> type:
    return type(name, (), {})


class TestGet:
    def test_generates_once_then_hits(self) -> None:
        cache = ProxyCache()
        calls = []

        def generate():
            calls.append(1)
            return kept

        kept = make_type()
        assert cache.get("key", generate) is kept
        assert cache.get("key", generate) is kept
        assert len(calls) == 1
        assert cache.generations == 1
        assert "key" in cache
        assert len(cache) == 1

    def test_distinct_keys_generate_separately(self) -> None:
        cache = ProxyCache()
        first, second = make_type("A"), make_type("B")
        assert cache.get("a", lambda: first) is first
        assert cache.get("b", lambda: second) is second
        assert cache.generations == 2

    def test_concurrent_requests_share_one_generation(self) -> None:
        cache = ProxyCache()
        calls = []
        kept = make_type()

        def slow_generate():
            calls.append(threading.get_ident())
            time.sleep(0.2)
            return kept

        with ThreadPoolExecutor(max_workers=4) as pool:
            futures = [pool.submit(cache.get, "key", slow_generate) for _ in range(4)]
            results = [future.result() for future in futures]

        assert all(result is kept for result in results)
        assert len(calls) == 1
        assert cache.generations == 1

    def test_failure_is_not_cached_and_reaches_waiters(self) -> None:
        cache = ProxyCache()
        started = threading.Event()

        def failing():
            started.set()
            time.sleep(0.1)
            raise RuntimeError("boom")

        with ThreadPoolExecutor(max_workers=2) as pool:
            owner = pool.submit(cache.get, "key", failing)
            started.wait()
            waiter = pool.submit(cache.get, "key", failing)
            with pytest.raises(RuntimeError, match="boom"):
                owner.result()
            with pytest.raises(RuntimeError, match="boom"):
                waiter.result()

        assert "key" not in cache
        kept = make_type()
        assert cache.get("key", lambda: kept) is kept

    def test_recursive_generation_for_same_key_raises(self) -> None:
        cache = ProxyCache()

        def reentrant():
            return cache.get("key", reentrant)

        with pytest.raises(ProxyConfigurationError):
            cache.get("key", reentrant)
        assert "key" not in cache

    def test_collected_class_is_evicted(self) -> None:
        cache = ProxyCache()
        generated = make_type()
        cache.get("key", lambda: generated)
        assert len(cache) == 1

        del generated
        gc.collect()

        assert len(cache) == 0
        assert "key" not in cache

    def test_clear_drops_settled_entries(self) -> None:
        cache = ProxyCache()
        kept = make_type()
        cache.get("key", lambda: kept)
        cache.clear()
        assert "key" not in cache

    def test_default_is_shared(self) -> None:
        assert ProxyCache.default() is ProxyCache.default()


class TestNames:
    def test_allocate_reserves_chosen_name(self) -> None:
        cache = ProxyCache()
        name = cache.allocate_name(lambda taken: "a.B" if not taken("a.B") else "a.B_2")
        assert name == "a.B"
        assert cache.is_name_taken("a.B")
        assert cache.allocate_name(lambda taken: "a.B" if not taken("a.B") else "a.B_2") == "a.B_2"

    def test_release_frees_name(self) -> None:
        cache = ProxyCache()
        cache.reserve_name("a.B")
        cache.release_name("a.B")
        assert not cache.is_name_taken("a.B")

    def test_name_released_when_class_collected(self) -> None:
        cache = ProxyCache()
        generated = make_type()
        cache.reserve_name("a.B", generated)
        assert cache.is_name_taken("a.B")

        del generated
        gc.collect()

        assert not cache.is_name_taken("a.B")
