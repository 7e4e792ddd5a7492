# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Proxy cache — one generation per key, weakly held results.

The first thread asking for a key installs a pending
:class:`concurrent.futures.Future` under the lock and generates outside
of it; concurrent askers block on that future. A successful result is
kept through a :class:`weakref.ref` whose callback drops the entry once
the generated class is collected. Failures are never cached.
"""

from __future__ import annotations

import threading
import weakref
from collections.abc import Callable, Hashable
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import ClassVar

import structlog

from pyfusion.proxy.exceptions import ProxyConfigurationError

logger = structlog.get_logger("pyfusion.proxy.cache")


@dataclass
class _Pending:
    future: Future[type] = field(default_factory=Future)
    thread_id: int = field(default_factory=threading.get_ident)


class ProxyCache:
    """Key -> generated class map with single-flight generation."""

    _default: ClassVar[ProxyCache | None] = None
    _default_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self) -> None:
        # reentrant: weakref callbacks may fire from a gc pass inside a locked section
        self._lock = threading.RLock()
        self._entries: dict[Hashable, _Pending | weakref.ref[type]] = {}
        self._names_lock = threading.RLock()
        self._names: set[str] = set()
        self._generations = 0

    @classmethod
    def default(cls) -> ProxyCache:
        """The process-wide shared cache."""
        if cls._default is None:
            with cls._default_lock:
                if cls._default is None:
                    cls._default = cls()
        return cls._default

    @property
    def generations(self) -> int:
        """Number of successful generations performed through this cache."""
        return self._generations

    def get(self, key: Hashable, generate: Callable[[], type]) -> type:
        """Return the class cached under *key*, generating it at most once."""
        with self._lock:
            entry = self._entries.get(key)
            if isinstance(entry, weakref.ref):
                cached = entry()
                if cached is not None:
                    logger.debug("proxy_cache_hit", class_name=cached.__qualname__)
                    return cached
                entry = None
            if entry is None:
                pending = _Pending()
                self._entries[key] = pending
                owner = True
            else:
                pending = entry
                owner = False

        if not owner:
            if pending.thread_id == threading.get_ident():
                raise ProxyConfigurationError("Recursive proxy generation for the same key", key=key)
            return pending.future.result()

        try:
            generated = generate()
        except BaseException as exc:
            with self._lock:
                if self._entries.get(key) is pending:
                    del self._entries[key]
            pending.future.set_exception(exc)
            logger.warning("proxy_generation_failed", key=repr(key), error=str(exc))
            raise

        reference = weakref.ref(generated, self._evictor(key))
        with self._lock:
            self._entries[key] = reference
            self._generations += 1
        pending.future.set_result(generated)
        return generated

    def _evictor(self, key: Hashable) -> Callable[[weakref.ref[type]], None]:
        def evict(reference: weakref.ref[type]) -> None:
            with self._lock:
                if self._entries.get(key) is reference:
                    del self._entries[key]

        return evict

    # ------------------------------------------------------------------
    # Reserved names
    # ------------------------------------------------------------------

    def allocate_name(self, choose: Callable[[Callable[[str], bool]], str]) -> str:
        """Run a naming decision and reserve its result atomically.

        *choose* receives :meth:`is_name_taken` as its predicate.
        """
        with self._names_lock:
            name = choose(self.is_name_taken)
            self._names.add(name)
            return name

    def reserve_name(self, name: str, generated: type | None = None) -> None:
        """Reserve *name*; with *generated* the name is freed when it dies."""
        with self._names_lock:
            self._names.add(name)
        if generated is not None:
            weakref.finalize(generated, self.release_name, name)

    def release_name(self, name: str) -> None:
        with self._names_lock:
            self._names.discard(name)

    def is_name_taken(self, name: str) -> bool:
        with self._names_lock:
            return name in self._names

    # ------------------------------------------------------------------

    def __len__(self) -> int:
        with self._lock:
            return sum(
                1 for entry in list(self._entries.values()) if isinstance(entry, weakref.ref) and entry() is not None
            )

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return isinstance(entry, weakref.ref) and entry() is not None

    def clear(self) -> None:
        """Drop every settled entry; pending generations are left alone."""
        with self._lock:
            for key in [k for k, v in self._entries.items() if isinstance(v, weakref.ref)]:
                del self._entries[key]
