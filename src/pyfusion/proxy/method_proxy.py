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
"""MethodProxy — forwarding handle for one intercepted method."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pyfusion.proxy.core.members import MethodRecord
from pyfusion.proxy.core.signature import Signature
from pyfusion.proxy.exceptions import ProxyConfigurationError


def spread(function: Any, args: Sequence[Any], has_keywords: bool) -> Any:
    """Call *function* with an ``args`` tuple as built by generated methods."""
    if has_keywords and args:
        *positional, keywords = args
        return function(*positional, **keywords)
    return function(*args)


class MethodProxy:
    """Handle passed to :meth:`ExecutionInterceptor.intercept`.

    :meth:`invoke_super` runs the original implementation on a proxy
    instance and may be called any number of times. :meth:`invoke` makes
    a normal (virtual) call on any object.
    """

    __slots__ = ("_signature", "_super_name", "_method", "_has_keywords")

    def __init__(self, signature: Signature, super_name: str, method: MethodRecord, has_keywords: bool) -> None:
        self._signature = signature
        self._super_name = super_name
        self._method = method
        self._has_keywords = has_keywords

    @property
    def signature(self) -> Signature:
        return self._signature

    @property
    def super_name(self) -> str:
        """Name of the generated access method that reaches the original."""
        return self._super_name

    @property
    def method(self) -> MethodRecord:
        return self._method

    def invoke_super(self, obj: Any, args: Sequence[Any]) -> Any:
        return spread(getattr(obj, self._super_name), args, self._has_keywords)

    def invoke(self, obj: Any, args: Sequence[Any]) -> Any:
        return spread(getattr(obj, self._signature.name), args, self._has_keywords)

    @staticmethod
    def find(type_: type, signature: Signature) -> MethodProxy | None:
        """Look up the handle a generated *type_* registered for *signature*."""
        finder = getattr(type_, "fusion_find_method_proxy", None)
        if finder is None:
            raise ProxyConfigurationError(f"{type_.__qualname__} is not an enhanced class", type=type_)
        return finder(signature)

    def __repr__(self) -> str:
        return f"MethodProxy({self._signature}, super_name={self._super_name!r})"
