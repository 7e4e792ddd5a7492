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
"""Registry of callback kinds and their generators."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from pyfusion.proxy.callback import ExecutionInterceptor, NoOp
from pyfusion.proxy.exceptions import (
    AmbiguousCallbackTypeError,
    ProxyConfigurationError,
    UnknownCallbackTypeError,
)
from pyfusion.proxy.generator import CallbackGenerator, NoOpGenerator
from pyfusion.proxy.interceptor import ExecutionInterceptorGenerator


@dataclass(frozen=True)
class CallbackInfo:
    kind: type
    generator: CallbackGenerator


CALLBACKS: tuple[CallbackInfo, ...] = (
    CallbackInfo(ExecutionInterceptor, ExecutionInterceptorGenerator()),
    CallbackInfo(NoOp, NoOpGenerator()),
)


def determine_type(callback_type: type, check_all: bool = True) -> type:
    """Return the single registered kind *callback_type* belongs to.

    With *check_all* every kind is checked, so a type matching two kinds
    raises :class:`AmbiguousCallbackTypeError` instead of silently taking
    the first.
    """
    match: type | None = None
    for info in CALLBACKS:
        if issubclass(callback_type, info.kind):
            if match is not None:
                raise AmbiguousCallbackTypeError(callback_type, match, info.kind)
            match = info.kind
            if not check_all:
                break
    if match is None:
        raise UnknownCallbackTypeError(callback_type)
    return match


def determine_types(callback_types: Sequence[type], check_all: bool = True) -> tuple[type, ...]:
    return tuple(determine_type(t, check_all) for t in callback_types)


def determine_types_of(callbacks: Sequence[Any], check_all: bool = True) -> tuple[type, ...]:
    kinds: list[type] = []
    for index, callback in enumerate(callbacks):
        if callback is None:
            raise ProxyConfigurationError(f"Callback {index} may not be None", index=index)
        kinds.append(determine_type(type(callback), check_all))
    return tuple(kinds)


def get_generator(kind: type) -> CallbackGenerator:
    for info in CALLBACKS:
        if info.kind is kind:
            return info.generator
    raise UnknownCallbackTypeError(kind)


def get_generators(kinds: Sequence[type]) -> tuple[CallbackGenerator, ...]:
    return tuple(get_generator(kind) for kind in kinds)
