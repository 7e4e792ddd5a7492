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
"""Factory mixin and callback binding for generated classes.

Callbacks reach a new instance through a thread-local registration made
just before construction; the generated ``__init__`` picks them up via
:func:`bind_callbacks`. Classes can also carry static callbacks used
when nothing is registered for the current thread.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from typing import Any

from pyfusion.proxy.exceptions import ProxyConfigurationError

CALLBACK_TYPES_ATTR = "__fusion_callback_types__"
STATIC_CALLBACKS_ATTR = "__fusion_static_callbacks__"

_pending = threading.local()


def _registrations() -> dict[type, tuple[Any, ...]]:
    registrations = getattr(_pending, "callbacks", None)
    if registrations is None:
        registrations = {}
        _pending.callbacks = registrations
    return registrations


def callback_types_of(generated: type) -> tuple[type, ...]:
    kinds = getattr(generated, CALLBACK_TYPES_ATTR, None)
    if kinds is None:
        raise ProxyConfigurationError(f"{generated.__qualname__} is not an enhanced class", type=generated)
    return kinds


def slot_field(index: int) -> str:
    return f"_fusion_callback_{index}"


def validate_callbacks(generated: type, callbacks: Sequence[Any], allow_none: bool = False) -> tuple[Any, ...]:
    """Check arity and kinds of *callbacks* against *generated*'s slots."""
    kinds = callback_types_of(generated)
    if len(callbacks) != len(kinds):
        raise ProxyConfigurationError(
            f"{generated.__qualname__} expects {len(kinds)} callback(s), got {len(callbacks)}",
            expected=len(kinds),
            actual=len(callbacks),
        )
    for index, (callback, kind) in enumerate(zip(callbacks, kinds)):
        if callback is None and allow_none:
            continue
        if not isinstance(callback, kind):
            raise ProxyConfigurationError(
                f"Callback {index} is not a {kind.__qualname__}",
                index=index,
                kind=kind,
            )
    return tuple(callbacks)


def register_thread_callbacks(generated: type, callbacks: Sequence[Any] | None) -> None:
    """Stage *callbacks* for the next instance of *generated* built on this thread."""
    registrations = _registrations()
    if callbacks is None:
        registrations.pop(generated, None)
    else:
        registrations[generated] = validate_callbacks(generated, callbacks, allow_none=True)


def register_static_callbacks(generated: type, callbacks: Sequence[Any] | None) -> None:
    """Install class-wide fallback callbacks on *generated*."""
    if callbacks is None:
        setattr(generated, STATIC_CALLBACKS_ATTR, None)
    else:
        setattr(generated, STATIC_CALLBACKS_ATTR, validate_callbacks(generated, callbacks, allow_none=True))


def bind_callbacks(instance: Any, generated: type) -> None:
    """Copy staged (or static) callbacks into *instance*'s slot fields."""
    callbacks = _registrations().get(generated)
    if callbacks is None:
        callbacks = getattr(generated, STATIC_CALLBACKS_ATTR, None)
    if callbacks is None:
        return
    for index, callback in enumerate(callbacks):
        object.__setattr__(instance, slot_field(index), callback)


class Factory:
    """Capabilities every generated class gains when built with ``use_factory``.

    Lets a proxy instance stamp out siblings with different callbacks and
    swap its own callbacks after construction.
    """

    __slots__ = ()

    def new_instance(self, callbacks: Any, *args: Any, **kwargs: Any) -> Any:
        """Build a new instance of this proxy class with *callbacks* installed.

        A single bare callback is accepted for single-slot classes.
        """
        generated = _generated_type(self)
        if not isinstance(callbacks, (list, tuple)):
            if len(callback_types_of(generated)) != 1:
                raise ProxyConfigurationError(
                    "A single callback was given to a class with several callback slots",
                    type=generated,
                )
            callbacks = (callbacks,)
        register_thread_callbacks(generated, callbacks)
        try:
            return generated(*args, **kwargs)
        finally:
            register_thread_callbacks(generated, None)

    def get_callback(self, index: int) -> Any:
        self._check_index(index)
        return getattr(self, slot_field(index))

    def set_callback(self, index: int, callback: Any) -> None:
        kind = self._check_index(index)
        if callback is not None and not isinstance(callback, kind):
            raise ProxyConfigurationError(f"Callback {index} is not a {kind.__qualname__}", index=index, kind=kind)
        object.__setattr__(self, slot_field(index), callback)

    def get_callbacks(self) -> tuple[Any, ...]:
        kinds = callback_types_of(_generated_type(self))
        return tuple(getattr(self, slot_field(index)) for index in range(len(kinds)))

    def set_callbacks(self, callbacks: Sequence[Any]) -> None:
        validated = validate_callbacks(_generated_type(self), callbacks, allow_none=True)
        for index, callback in enumerate(validated):
            object.__setattr__(self, slot_field(index), callback)

    def _check_index(self, index: int) -> type:
        kinds = callback_types_of(_generated_type(self))
        if not 0 <= index < len(kinds):
            raise IndexError(f"callback index {index} out of range for {len(kinds)} slot(s)")
        return kinds[index]


def _generated_type(instance: Any) -> type:
    """The generated class in *instance*'s MRO (user subclasses allowed)."""
    for klass in type(instance).__mro__:
        if CALLBACK_TYPES_ATTR in vars(klass):
            return klass
    raise ProxyConfigurationError(f"{type(instance).__qualname__} is not an enhanced class", type=type(instance))
