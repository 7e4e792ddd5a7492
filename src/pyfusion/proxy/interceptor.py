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
"""Dispatch generator for :class:`ExecutionInterceptor` slots.

Every routed method gets two members: an access method that reaches the
original implementation, and an override that hands control to the
slot's callback. Roughly, for ``def greet(self, name) -> str``::

    def _fusion_access_0(self, name):
        return super().greet(name)

    def greet(self, name):
        _fusion_cb = self._fusion_callback_0
        if _fusion_cb is None:
            return self._fusion_access_0(name)
        return _fusion_cb.intercept(_fusion_caller(_fusion_getframe(1)), self, <record>, (name,), <proxy>)
"""

from __future__ import annotations

import inspect
import sys
from collections.abc import Callable, Sequence
from types import FrameType

from pyfusion.proxy.callback import EMPTY_ARGS
from pyfusion.proxy.core.emitter import ClassEmitter
from pyfusion.proxy.core.members import MethodRecord
from pyfusion.proxy.core.types import Sort, unbox_or_zero
from pyfusion.proxy.generator import GenerationContext

_RECEIVER_NAMES = ("self", "cls")


def caller_type(frame: FrameType | None) -> type | None:
    """Type on whose behalf *frame* runs: its ``self``'s type, its ``cls``, or ``None``."""
    if frame is None:
        return None
    code = frame.f_code
    if code.co_argcount == 0 or code.co_varnames[0] not in _RECEIVER_NAMES:
        return None
    receiver = frame.f_locals.get(code.co_varnames[0])
    if receiver is None:
        return None
    return receiver if isinstance(receiver, type) else type(receiver)


class ExecutionInterceptorGenerator:
    def generate_static(self, context: GenerationContext, methods: Sequence[MethodRecord]) -> None:
        by_owner: dict[type, list[MethodRecord]] = {}
        for record in methods:
            by_owner.setdefault(record.owner, []).append(record)
        for records in by_owner.values():
            for record in records:
                context.register(record)

    def generate(self, context: GenerationContext, methods: Sequence[MethodRecord]) -> None:
        emitter = context.emitter
        emitter.bind_named("_fusion_caller", caller_type)
        emitter.bind_named("_fusion_getframe", sys._getframe)
        emitter.bind_named("_fusion_coerce", unbox_or_zero)
        emitter.bind_named("_fusion_isawaitable", inspect.isawaitable)
        emitter.bind_named("_fusion_empty_args", EMPTY_ARGS)

        for record in methods:
            context.emit_access(record)
            self._emit_override(context, record)

    def _emit_override(self, context: GenerationContext, record: MethodRecord) -> None:
        emitter = context.emitter
        plan = context.plan(record)
        method_ident, proxy_ident = context.register(record)
        receiver = plan.receiver
        access = f"{receiver}.{context.access_name(record)}({plan.forward})"
        args = plan.packed or "_fusion_empty_args"
        call = (
            f"_fusion_cb.intercept(_fusion_caller(_fusion_getframe(1)), "
            f"{receiver}, {method_ident}, {args}, {proxy_ident})"
        )
        return_type = record.signature.return_type
        coerced = return_type.sort not in (Sort.OBJECT, Sort.ARRAY)
        coerce_ident = emitter.bind(return_type, "rtype") if coerced else None

        with emitter.begin_method(record.name, plan.definition, is_async=record.is_async) as body:
            body.append(f"_fusion_cb = {receiver}.{context.callback_field(context.index_of(record))}")
            if record.is_async:
                with body.indent("if _fusion_cb is None:"):
                    body.append(f"return await {access}")
                body.append(f"_fusion_result = {call}")
                with body.indent("if _fusion_isawaitable(_fusion_result):"):
                    body.append("_fusion_result = await _fusion_result")
                if coerced:
                    body.append(f"return _fusion_coerce({coerce_ident}, _fusion_result)")
                else:
                    body.append("return _fusion_result")
            else:
                with body.indent("if _fusion_cb is None:"):
                    body.append(f"return {access}")
                if coerced:
                    body.append(f"return _fusion_coerce({coerce_ident}, {call})")
                else:
                    body.append(f"return {call}")

        _copy_metadata(emitter, record)


def _copy_metadata(emitter: ClassEmitter, record: MethodRecord) -> None:
    emitter.after_load(lambda generated: _carry_over(getattr(generated, record.name), record.function))


def _carry_over(override: Callable[..., object], original: Callable[..., object]) -> None:
    override.__doc__ = original.__doc__
    override.__annotations__ = dict(getattr(original, "__annotations__", None) or {})
    override.__wrapped__ = original
