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
"""Method markers read by the proxy engine — @bridge and @raises."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from pyfusion.proxy.core.members import BRIDGE_ATTR

F = TypeVar("F", bound=Callable[..., Any])


# ---------------------------------------------------------------------------
# @bridge: a compatibility shim forwarding to a more specific method
# ---------------------------------------------------------------------------


def bridge(fn: F) -> F:
    """Mark *fn* as a bridge method.

    A bridge only adapts its signature (usually a wider return or
    argument type) and forwards to the real implementation through
    ``super()`` or ``Base.method(self, ...)``. When a proxy is generated,
    the forwarding target is read from the bridge's source and the
    bridge's original-implementation path calls that target directly.

    Sets ``__fusion_bridge__ = True`` on the function.
    """
    setattr(fn, BRIDGE_ATTR, True)
    return fn


# ---------------------------------------------------------------------------
# @raises: declared exception types, surfaced on MethodRecord
# ---------------------------------------------------------------------------


def raises(*exception_types: type[BaseException]) -> Callable[[F], F]:
    """Declare the exception types a method may raise.

    Sets ``__fusion_raises__`` to the given tuple, which becomes
    ``MethodRecord.exception_types``.
    """

    def decorator(fn: F) -> F:
        fn.__fusion_raises__ = exception_types  # type: ignore[attr-defined]
        return fn

    return decorator
