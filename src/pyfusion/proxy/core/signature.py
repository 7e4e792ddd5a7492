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
"""Method signatures — name plus ``(args)return`` descriptor."""

from __future__ import annotations

import functools
import inspect
import typing
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from pyfusion.proxy.core.types import (
    DICT_TYPE,
    OBJECT_TYPE,
    VOID_TYPE,
    TypeDescriptor,
    map_type,
    split_descriptors,
)
from pyfusion.proxy.exceptions import SignatureSyntaxError

CONSTRUCTOR_NAME = "__init__"


def method_descriptor(return_type: TypeDescriptor, argument_types: Sequence[TypeDescriptor] = ()) -> str:
    return "(" + "".join(t.descriptor for t in argument_types) + ")" + return_type.descriptor


@dataclass(frozen=True)
class Signature:
    """A method identity: ``name`` plus its ``(args)return`` descriptor.

    Two signatures are equal when both the name and the descriptor match;
    ``str()`` renders ``name + descriptor`` and is used as the key of the
    generated ``fusion_find_method_proxy`` table.
    """

    name: str
    descriptor: str

    def __post_init__(self) -> None:
        if "(" in self.name:
            raise SignatureSyntaxError(self.name, "name contains '('")
        if not self.descriptor.startswith("(") or ")" not in self.descriptor:
            raise SignatureSyntaxError(self.descriptor, "descriptor must look like '(args)return'")
        # validates both halves
        self.argument_types
        self.return_type

    @classmethod
    def of(
        cls,
        name: str,
        return_type: TypeDescriptor,
        argument_types: Sequence[TypeDescriptor] = (),
    ) -> Signature:
        return cls(name, method_descriptor(return_type, argument_types))

    @functools.cached_property
    def argument_types(self) -> tuple[TypeDescriptor, ...]:
        inner = self.descriptor[1 : self.descriptor.index(")")]
        return tuple(TypeDescriptor.of(d) for d in split_descriptors(inner))

    @functools.cached_property
    def return_type(self) -> TypeDescriptor:
        return TypeDescriptor.of(self.descriptor[self.descriptor.index(")") + 1 :])

    @property
    def is_constructor(self) -> bool:
        return self.name == CONSTRUCTOR_NAME

    def __str__(self) -> str:
        return self.name + self.descriptor

    @classmethod
    def from_function(cls, name: str, function: Callable[..., Any], bound: bool = True) -> Signature:
        """Build a signature from a function's parameters and annotations.

        The receiver (``self``/``cls``) is dropped when *bound*. Var-args
        become an array of their annotation; ``**kwargs`` becomes a dict.
        A missing return annotation erases to ``object``; only an explicit
        ``-> None`` yields void.
        """
        try:
            params = list(inspect.signature(function, follow_wrapped=False).parameters.values())
        except (TypeError, ValueError):
            return cls.of(name, OBJECT_TYPE, (OBJECT_TYPE.array_of(), DICT_TYPE))

        hints = _type_hints(function)
        if bound and params and params[0].kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            params = params[1:]

        argument_types: list[TypeDescriptor] = []
        for param in params:
            annotation = hints.get(param.name, param.annotation)
            if param.kind is inspect.Parameter.VAR_POSITIONAL:
                argument_types.append(TypeDescriptor.from_annotation(annotation).array_of())
            elif param.kind is inspect.Parameter.VAR_KEYWORD:
                argument_types.append(DICT_TYPE)
            else:
                argument_types.append(TypeDescriptor.from_annotation(annotation))

        if "return" in hints:
            returns = hints["return"]
            return_type = VOID_TYPE if returns is None else TypeDescriptor.from_annotation(returns)
        else:
            return_type = OBJECT_TYPE
        return cls.of(name, return_type, argument_types)


def _type_hints(function: Callable[..., Any]) -> dict[str, Any]:
    try:
        return typing.get_type_hints(function)
    except (NameError, TypeError, AttributeError):
        pass
    # One unresolvable name must not erase its neighbours, so each
    # annotation is resolved on its own against the function's globals.
    namespace = getattr(function, "__globals__", None) or {}
    annotations = getattr(function, "__annotations__", None) or {}
    return {key: _resolve_annotation(value, namespace) for key, value in annotations.items()}


def _resolve_annotation(annotation: Any, namespace: dict[str, Any]) -> Any:
    if not isinstance(annotation, str):
        return annotation
    try:
        return eval(annotation, namespace, {})
    except (NameError, AttributeError, TypeError, SyntaxError):
        # left as a string; from_annotation erases it to object
        return annotation


def parse_signature(text: str) -> Signature:
    """Parse ``"ReturnType name(ArgType, ArgType)"`` into a :class:`Signature`.

    Raises :class:`SignatureSyntaxError` for any malformed input; no
    partially built signature is ever returned.
    """
    source = text.strip()
    space = source.find(" ")
    lparen = source.find("(", space + 1)
    rparen = source.find(")", lparen + 1)
    if space <= 0 or lparen < 0 or rparen < 0:
        raise SignatureSyntaxError(text, "expected 'ReturnType name(ArgType, ...)'")
    if source[rparen + 1 :].strip():
        raise SignatureSyntaxError(text, "unexpected text after ')'")

    name = source[space + 1 : lparen].strip()
    if not name.isidentifier():
        raise SignatureSyntaxError(text, f"'{name}' is not a valid method name")

    return_descriptor = map_type(source[:space])
    arguments = source[lparen + 1 : rparen]
    argument_descriptors = [] if not arguments.strip() else [map_type(part) for part in arguments.split(",")]
    return Signature(name, "(" + "".join(argument_descriptors) + ")" + return_descriptor)


def parse_constructor(arguments: str | Sequence[TypeDescriptor] = "") -> Signature:
    """Signature of ``__init__`` taking *arguments* and returning void."""
    if isinstance(arguments, str):
        return parse_signature(f"void {CONSTRUCTOR_NAME}({arguments})")
    return Signature.of(CONSTRUCTOR_NAME, VOID_TYPE, arguments)
