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
"""Type descriptors — canonical, hashable references to Python types.

A descriptor is a compact string used as a cache and dispatch key:

* primitives: ``V`` (``None``/void), ``Z`` (bool), ``I`` (int),
  ``D`` (float), ``C`` (complex)
* objects: ``L<module>/<qualname>;`` where nested qualname segments are
  joined with ``$`` (``Lpkg/mod/Outer$Inner;``)
* arrays: ``[<component>`` (``list[int]`` is ``[I``)
"""

from __future__ import annotations

import enum
import functools
import inspect
import operator
import types
import typing
from dataclasses import dataclass
from typing import Any

from pyfusion.proxy.exceptions import SignatureSyntaxError

BASE_NAMESPACE = "builtins"


class Sort(enum.Enum):
    """Classification of a descriptor."""

    VOID = "V"
    BOOLEAN = "Z"
    INT = "I"
    FLOAT = "D"
    COMPLEX = "C"
    ARRAY = "["
    OBJECT = "L"


# semantic name -> descriptor
_TRANSFORMS: dict[str, str] = {
    "void": "V",
    "None": "V",
    "bool": "Z",
    "int": "I",
    "float": "D",
    "complex": "C",
}

# descriptor -> semantic name
_REVERSE: dict[str, str] = {
    "V": "None",
    "Z": "bool",
    "I": "int",
    "D": "float",
    "C": "complex",
}

_PRIMITIVE_TYPES: dict[Any, str] = {
    None: "V",
    type(None): "V",
    bool: "Z",
    int: "I",
    float: "D",
    complex: "C",
}

_ILLEGAL_NAME_CHARS = frozenset(" \t\n;()/,[]")


def _scan(descriptor: str, start: int) -> int:
    """Return the index just past the single type starting at *start*."""
    if start >= len(descriptor):
        raise SignatureSyntaxError(descriptor, "unexpected end of descriptor")
    head = descriptor[start]
    if head in _REVERSE:
        return start + 1
    if head == "[":
        return _scan(descriptor, start + 1)
    if head == "L":
        end = descriptor.find(";", start)
        if end <= start + 1:
            raise SignatureSyntaxError(descriptor, f"unterminated object type at offset {start}")
        return end + 1
    raise SignatureSyntaxError(descriptor, f"unknown type code '{head}' at offset {start}")


def split_descriptors(text: str) -> tuple[str, ...]:
    """Split a run of concatenated descriptors (``"IDLbuiltins/str;"``)."""
    parts: list[str] = []
    index = 0
    while index < len(text):
        end = _scan(text, index)
        parts.append(text[index:end])
        index = end
    return tuple(parts)


@dataclass(frozen=True)
class TypeDescriptor:
    """Immutable type reference with structural equality.

    Build instances through :meth:`of`, :meth:`from_annotation` or
    :func:`parse_type`; those paths intern equal descriptors.
    """

    descriptor: str

    def __post_init__(self) -> None:
        if _scan(self.descriptor, 0) != len(self.descriptor):
            raise SignatureSyntaxError(self.descriptor, "trailing characters after type")

    @staticmethod
    def of(descriptor: str) -> TypeDescriptor:
        return _intern(descriptor)

    @staticmethod
    def for_class(cls: type) -> TypeDescriptor:
        """Descriptor for a class object, honouring the primitive table."""
        code = _PRIMITIVE_TYPES.get(cls)
        if code is not None:
            return _intern(code)
        qualname = cls.__qualname__.replace(".", "$")
        module = cls.__module__.replace(".", "/")
        return _intern(f"L{module}/{qualname};")

    @staticmethod
    def from_annotation(annotation: Any) -> TypeDescriptor:
        """Map a Python annotation onto a descriptor.

        Parameterized generics are erased to their origin, except
        ``list[X]`` which becomes an array of ``X``. Unions, ``Any``,
        type variables, unresolved forward references and missing
        annotations all erase to ``object``.
        """
        if annotation is inspect.Parameter.empty or annotation is typing.Any:
            return OBJECT_TYPE
        if annotation in _PRIMITIVE_TYPES:
            return _intern(_PRIMITIVE_TYPES[annotation])
        if isinstance(annotation, (str, typing.ForwardRef, typing.TypeVar)):
            return OBJECT_TYPE

        origin = typing.get_origin(annotation)
        if origin is typing.Annotated:
            return TypeDescriptor.from_annotation(typing.get_args(annotation)[0])
        if origin is list:
            args = typing.get_args(annotation)
            component = TypeDescriptor.from_annotation(args[0]) if args else OBJECT_TYPE
            return component.array_of()
        if origin in (typing.Union, types.UnionType):
            return OBJECT_TYPE
        if origin is not None:
            return TypeDescriptor.from_annotation(origin)

        if isinstance(annotation, type):
            return TypeDescriptor.for_class(annotation)
        return OBJECT_TYPE

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    @property
    def sort(self) -> Sort:
        return Sort(self.descriptor[0])

    @property
    def is_primitive(self) -> bool:
        return self.sort not in (Sort.ARRAY, Sort.OBJECT)

    @property
    def is_array(self) -> bool:
        return self.sort is Sort.ARRAY

    @property
    def dimensions(self) -> int:
        return len(self.descriptor) - len(self.descriptor.lstrip("["))

    @property
    def component_type(self) -> TypeDescriptor:
        if not self.is_array:
            raise ValueError(f"Type {self.class_name} is not an array")
        return _intern(self.descriptor[1:])

    @property
    def element_type(self) -> TypeDescriptor:
        return _intern(self.descriptor[self.dimensions :])

    def array_of(self) -> TypeDescriptor:
        return _intern("[" + self.descriptor)

    # ------------------------------------------------------------------
    # Names
    # ------------------------------------------------------------------

    @property
    def internal_name(self) -> str:
        """``builtins/str`` for objects; the raw descriptor otherwise."""
        if self.sort is Sort.OBJECT:
            return self.descriptor[1:-1]
        return self.descriptor

    @property
    def class_name(self) -> str:
        """Semantic name: ``int``, ``builtins.str``, ``pkg.Foo[]``."""
        if self.is_primitive:
            return _REVERSE[self.descriptor]
        if self.is_array:
            return self.component_type.class_name + "[]"
        return self.internal_name.replace("/", ".")

    @property
    def module(self) -> str | None:
        if self.sort is not Sort.OBJECT:
            return None
        return self.internal_name.rpartition("/")[0].replace("/", ".")

    @property
    def qualname(self) -> str | None:
        if self.sort is not Sort.OBJECT:
            return None
        return self.internal_name.rpartition("/")[2].replace("$", ".")

    def __str__(self) -> str:
        return self.descriptor


@functools.lru_cache(maxsize=4096)
def _intern(descriptor: str) -> TypeDescriptor:
    return TypeDescriptor(descriptor)


VOID_TYPE = TypeDescriptor.of("V")
BOOLEAN_TYPE = TypeDescriptor.of("Z")
INT_TYPE = TypeDescriptor.of("I")
FLOAT_TYPE = TypeDescriptor.of("D")
COMPLEX_TYPE = TypeDescriptor.of("C")
OBJECT_TYPE = TypeDescriptor.of("Lbuiltins/object;")
STRING_TYPE = TypeDescriptor.of("Lbuiltins/str;")
DICT_TYPE = TypeDescriptor.of("Lbuiltins/dict;")
OBJECT_ARRAY_TYPE = OBJECT_TYPE.array_of()


# ---------------------------------------------------------------------------
# Semantic-name parsing
# ---------------------------------------------------------------------------


def map_type(name: str) -> str:
    """Translate a semantic type name into a descriptor string.

    ``int`` -> ``I``, ``str`` -> ``Lbuiltins/str;``,
    ``pkg.Foo[][]`` -> ``[[Lpkg/Foo;``. Unqualified names resolve
    against the ``builtins`` namespace.
    """
    text = name.strip()
    if not text:
        raise SignatureSyntaxError(name, "empty type name")

    dims = 0
    while text.endswith("[]"):
        dims += 1
        text = text[:-2].rstrip()
    if not text or any(ch in _ILLEGAL_NAME_CHARS for ch in text):
        raise SignatureSyntaxError(name, "illegal type name")

    code = _TRANSFORMS.get(text)
    if code is None:
        if "." not in text:
            text = f"{BASE_NAMESPACE}.{text}"
        if any(not part for part in text.split(".")):
            raise SignatureSyntaxError(name, "empty namespace segment")
        code = "L" + text.replace(".", "/") + ";"
    elif code == "V" and dims:
        raise SignatureSyntaxError(name, "arrays of void are not allowed")
    return "[" * dims + code


def parse_type(name: str) -> TypeDescriptor:
    return TypeDescriptor.of(map_type(name))


def parse_types(text: str) -> tuple[TypeDescriptor, ...]:
    """Parse a comma separated list of semantic type names."""
    if not text.strip():
        return ()
    return tuple(parse_type(part) for part in text.split(","))


# ---------------------------------------------------------------------------
# Boxing
# ---------------------------------------------------------------------------

_BOXED: dict[str, str] = {
    "I": "Lnumbers/Integral;",
    "D": "Lnumbers/Real;",
    "C": "Lnumbers/Complex;",
}
_UNBOXED: dict[str, str] = {boxed: primitive for primitive, boxed in _BOXED.items()}

_ZERO: dict[Sort, Any] = {
    Sort.BOOLEAN: False,
    Sort.INT: 0,
    Sort.FLOAT: 0.0,
    Sort.COMPLEX: 0j,
}

_UNBOX: dict[Sort, Any] = {
    Sort.BOOLEAN: bool,
    Sort.INT: operator.index,
    Sort.FLOAT: float,
    Sort.COMPLEX: complex,
}


def get_boxed_type(type_: TypeDescriptor) -> TypeDescriptor:
    boxed = _BOXED.get(type_.descriptor)
    return type_ if boxed is None else TypeDescriptor.of(boxed)


def get_unboxed_type(type_: TypeDescriptor) -> TypeDescriptor:
    primitive = _UNBOXED.get(type_.descriptor)
    return type_ if primitive is None else TypeDescriptor.of(primitive)


def zero_value(type_: TypeDescriptor) -> Any:
    return _ZERO.get(type_.sort)


def unbox_or_zero(type_: TypeDescriptor, value: Any) -> Any:
    """Coerce *value* to the declared return *type_*.

    Void discards the value. Primitives unwrap boxed numbers
    (anything supporting ``__index__``/``__float__``/``__complex__``)
    and turn ``None`` into the zero value. Object and array types pass
    through untouched.
    """
    sort = type_.sort
    if sort is Sort.VOID:
        return None
    unbox = _UNBOX.get(sort)
    if unbox is None:
        return value
    if value is None:
        return _ZERO[sort]
    return unbox(value)


def escape_type(text: str) -> str:
    """Escape descriptor punctuation so the result is identifier-safe."""
    return "".join(_ESCAPES.get(ch, ch) for ch in text)


_ESCAPES: dict[str, str] = {
    "$": "$24",
    ".": "$2E",
    "[": "$5B",
    ";": "$3B",
    "(": "$28",
    ")": "$29",
    "/": "$2F",
}
