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
"""Callback kinds and callback filters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pyfusion.proxy.core.members import MethodRecord
    from pyfusion.proxy.method_proxy import MethodProxy

EMPTY_ARGS: tuple[Any, ...] = ()


@runtime_checkable
class ExecutionInterceptor(Protocol):
    """General-purpose around-advice for every routed method.

    ``args`` holds the positional arguments; methods with keyword-only
    or ``**kwargs`` parameters receive one trailing ``dict`` with those
    values. The return value is coerced to the method's declared return
    type; an awaitable returned from a coroutine method is awaited first.
    """

    def intercept(
        self,
        caller: type | None,
        proxy: Any,
        method: MethodRecord,
        args: tuple[Any, ...],
        method_proxy: MethodProxy,
    ) -> Any: ...


class NoOp:
    """Marker callback: routed methods keep the original implementation."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "NO_OP"


NO_OP = NoOp()


@runtime_checkable
class CallbackFilter(Protocol):
    """Maps each interceptable method to a callback slot index.

    Filters take part in the generation key, so they must be hashable
    with equality that reflects their routing.
    """

    def accept(self, method: MethodRecord) -> int: ...


@dataclass(frozen=True)
class AllZeroCallbackFilter:
    """Routes every method to slot 0."""

    def accept(self, method: MethodRecord) -> int:
        return 0


ALL_ZERO = AllZeroCallbackFilter()
