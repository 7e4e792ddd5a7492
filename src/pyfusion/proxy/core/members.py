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
"""Method records, modifiers and the interceptable-method walk."""

from __future__ import annotations

import dis
import enum
import inspect
import typing
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from pyfusion.proxy.core.signature import Signature

BRIDGE_ATTR = "__fusion_bridge__"

# Names whose override would break instance construction or attribute
# access on the generated type itself.
RESERVED_NAMES = frozenset(
    {
        "__init__",
        "__new__",
        "__init_subclass__",
        "__class_getitem__",
        "__getattribute__",
        "__getattr__",
        "__setattr__",
        "__delattr__",
        "__del__",
        "__subclasshook__",
    }
)

# Members the engine itself emits on generated classes.
GENERATED_PREFIXES = ("_fusion_", "__fusion_", "fusion_find_method_proxy")


class Modifier(enum.IntFlag):
    PUBLIC = 0x0001
    PRIVATE = 0x0002
    PROTECTED = 0x0004
    STATIC = 0x0008
    FINAL = 0x0010
    ASYNC = 0x0020
    BRIDGE = 0x0040
    ABSTRACT = 0x0400
    SYNTHETIC = 0x1000


@dataclass(frozen=True, eq=False)
class MethodRecord:
    """Reflective handle of one interceptable method.

    Records compare by identity; the generated class keeps one record per
    intercepted method and hands the same object to every ``intercept``
    call. ``exception_types`` stays empty unless the function lists its
    raised exceptions in ``__fusion_raises__``.
    """

    owner: type
    signature: Signature
    modifiers: Modifier
    function: Callable[..., Any]
    exception_types: tuple[type[BaseException], ...] = ()

    @property
    def name(self) -> str:
        return self.signature.name

    @property
    def is_abstract(self) -> bool:
        return bool(self.modifiers & Modifier.ABSTRACT)

    @property
    def is_bridge(self) -> bool:
        return bool(self.modifiers & Modifier.BRIDGE)

    @property
    def is_async(self) -> bool:
        return bool(self.modifiers & Modifier.ASYNC)

    @property
    def python_signature(self) -> inspect.Signature | None:
        try:
            return inspect.signature(self.function, follow_wrapped=False)
        except (TypeError, ValueError):
            return None

    def __str__(self) -> str:
        return f"{self.owner.__qualname__}.{self.signature}"

    def __repr__(self) -> str:
        return f"MethodRecord({self})"


def unwrap_member(member: Any) -> tuple[Any, bool]:
    """Return ``(function, is_static)`` for a raw class ``__dict__`` entry."""
    if isinstance(member, (staticmethod, classmethod)):
        return member.__func__, True
    return member, False


_STUB_OPCODES = frozenset(
    {"RESUME", "NOP", "LOAD_CONST", "RETURN_CONST", "RETURN_VALUE", "RETURN_GENERATOR", "POP_TOP"}
)


def is_stub(function: Callable[..., Any]) -> bool:
    """True when the body only returns ``None`` (``...``, ``pass`` or a docstring).

    Protocol members written this way have no implementation to fall
    back on; a protocol member with a real body is a default method.
    """
    for instruction in dis.get_instructions(function):
        if instruction.opname not in _STUB_OPCODES:
            return False
        if instruction.opname in ("LOAD_CONST", "RETURN_CONST") and instruction.argval is not None:
            return False
    return True


def modifiers_of(owner: type, name: str, member: Any) -> Modifier | None:
    """Compute modifiers for a class ``__dict__`` entry.

    Returns ``None`` when the entry is not a plain (or static/class)
    function and therefore cannot be a method.
    """
    function, is_static = unwrap_member(member)
    if not inspect.isfunction(function):
        return None

    modifiers = Modifier(0)
    mangled_prefix = f"_{owner.__name__.lstrip('_')}__"
    if name.startswith(mangled_prefix) and not name.endswith("__"):
        modifiers |= Modifier.PRIVATE
    elif name.startswith("_") and not name.endswith("__"):
        modifiers |= Modifier.PROTECTED
    else:
        modifiers |= Modifier.PUBLIC

    if is_static:
        modifiers |= Modifier.STATIC
    if getattr(function, "__final__", False):
        modifiers |= Modifier.FINAL
    if getattr(function, "__isabstractmethod__", False):
        modifiers |= Modifier.ABSTRACT
    elif getattr(owner, "_is_protocol", False) and is_stub(function):
        modifiers |= Modifier.ABSTRACT
    if getattr(function, BRIDGE_ATTR, False):
        modifiers |= Modifier.BRIDGE | Modifier.SYNTHETIC
    if inspect.iscoroutinefunction(function):
        modifiers |= Modifier.ASYNC
    return modifiers


def method_record(owner: type, name: str, member: Any) -> MethodRecord | None:
    modifiers = modifiers_of(owner, name, member)
    if modifiers is None:
        return None
    function, _ = unwrap_member(member)
    signature = Signature.from_function(name, function, bound=not modifiers & Modifier.STATIC)
    raises = tuple(getattr(function, "__fusion_raises__", ()))
    return MethodRecord(owner, signature, modifiers, function, raises)


class RejectModifierPredicate:
    """Accepts records carrying none of the modifiers in *mask*."""

    def __init__(self, mask: Modifier) -> None:
        self.mask = mask

    def __call__(self, record: MethodRecord) -> bool:
        return not record.modifiers & self.mask


REJECT_UNOVERRIDABLE = RejectModifierPredicate(Modifier.FINAL | Modifier.STATIC | Modifier.PRIVATE)


def _hierarchy(classes: Iterable[type], skip: frozenset[type]) -> Iterator[type]:
    seen: set[type] = set()
    for cls in classes:
        for klass in inspect.getmro(cls):
            if klass in skip or klass in seen:
                continue
            seen.add(klass)
            yield klass


def collect_methods(
    superclass: type,
    interfaces: Iterable[type] = (),
    skip: Iterable[type] = (),
    predicate: Callable[[MethodRecord], bool] = REJECT_UNOVERRIDABLE,
) -> list[MethodRecord]:
    """Walk the hierarchy and return the methods a proxy should override.

    Classes are visited superclass MRO first, then each interface's MRO.
    The first definition of a name wins, whatever its kind, so a name
    shadowed by a non-function (or a final method) is never intercepted.
    """
    excluded = frozenset({object, typing.Generic, typing.Protocol, *skip})
    seen: set[str] = set()
    records: list[MethodRecord] = []
    for klass in _hierarchy((superclass, *interfaces), excluded):
        for name, member in vars(klass).items():
            if name in seen:
                continue
            seen.add(name)
            if name in RESERVED_NAMES or name.startswith(GENERATED_PREFIXES):
                continue
            record = method_record(klass, name, member)
            if record is not None and predicate(record):
                records.append(record)
    return records
