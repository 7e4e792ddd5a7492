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
"""Naming policy for generated classes."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable


@runtime_checkable
class NamingPolicy(Protocol):
    """Chooses the qualified name of a generated class.

    *names* answers whether a candidate is already taken; implementations
    must return a name for which it answers ``False``.
    """

    def get_class_name(
        self,
        prefix: str | None,
        source: str,
        key: object,
        names: Callable[[str], bool],
    ) -> str: ...


class DefaultNamingPolicy:
    """``<prefix>$$<Source>ByFusion$$<hash>`` with ``_2``, ``_3`` probing.

    Policies compare equal when their tags match, so two default
    instances share cache entries.
    """

    EMPTY_PREFIX = "pyfusion.empty.Object"
    RESERVED_NAMESPACES = ("builtins",)

    def __init__(self, stress_hash_codes: bool | None = None) -> None:
        self._stress_hash_codes = stress_hash_codes

    @property
    def tag(self) -> str:
        return "ByFusion"

    @property
    def stress_hash_codes(self) -> bool:
        if self._stress_hash_codes is not None:
            return self._stress_hash_codes
        from pyfusion.proxy.settings import current

        return current().stress_hash_codes

    def get_class_name(
        self,
        prefix: str | None,
        source: str,
        key: object,
        names: Callable[[str], bool],
    ) -> str:
        if prefix is None:
            prefix = self.EMPTY_PREFIX
        elif any(prefix == ns or prefix.startswith(ns + ".") for ns in self.RESERVED_NAMESPACES):
            prefix = "_" + prefix

        key_hash = 0 if self.stress_hash_codes else hash(key) & 0xFFFFFFFF
        base = f"{prefix}$${source.rpartition('.')[2]}{self.tag}$${key_hash:x}"
        attempt = base
        index = 2
        while names(attempt):
            attempt = f"{base}_{index}"
            index += 1
        return attempt

    def __eq__(self, other: object) -> bool:
        return isinstance(other, DefaultNamingPolicy) and other.tag == self.tag

    def __hash__(self) -> int:
        return hash(self.tag)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(tag={self.tag!r})"


DEFAULT_NAMING_POLICY = DefaultNamingPolicy()
