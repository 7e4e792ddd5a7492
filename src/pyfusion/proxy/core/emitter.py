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
"""Code emission engine — builds, compiles and loads generated classes.

A generated class is emitted as Python source. Non-literal values
(method records, callback kinds, default argument values) are bound into
the class's globals under generated identifiers, so the source only ever
refers to them by name. :meth:`ClassEmitter.end_class` compiles the
source under a synthetic filename, registers it with :mod:`linecache` so
tracebacks show the generated lines, and executes it.
"""

from __future__ import annotations

import inspect
import linecache
import weakref
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from types import CodeType
from typing import Any

from pyfusion.proxy.exceptions import CodeGenerationError

_CLASS_IDENT = "_FusionGenerated"


class CodeWriter:
    """Indentation-aware source builder."""

    def __init__(self, indent_unit: str = "    ", level: int = 0) -> None:
        self._lines: list[str] = []
        self._unit = indent_unit
        self._level = level

    def append(self, line: str) -> None:
        self._lines.append(self._unit * self._level + line if line else "")

    def blank(self) -> None:
        self._lines.append("")

    @contextmanager
    def indent(self, header: str | None = None) -> Iterator[CodeWriter]:
        if header is not None:
            self.append(header)
        self._level += 1
        try:
            yield self
        finally:
            self._level -= 1

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def __str__(self) -> str:
        return "\n".join(self._lines) + "\n"


@dataclass(frozen=True)
class ParameterPlan:
    """How a method's parameters are re-declared and forwarded.

    ``definition`` re-declares the parameters (defaults bound by name),
    ``forward`` passes them on unchanged, and ``packed`` builds the
    positional ``args`` tuple handed to callbacks. Keyword-only and
    ``**kwargs`` values travel as one trailing dict element.
    """

    receiver: str
    definition: str
    forward: str
    packed: str | None
    has_keywords: bool

    @classmethod
    def for_function(cls, function: Callable[..., Any], bind: Callable[[Any, str], str]) -> ParameterPlan:
        try:
            params = list(inspect.signature(function, follow_wrapped=False).parameters.values())
        except (TypeError, ValueError):
            return cls("self", "self, *args, **kwargs", "*args, **kwargs", "(*args, kwargs)", True)

        receiver = "self"
        if params and params[0].kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            receiver = params.pop(0).name

        definition = [receiver]
        forward: list[str] = []
        positional: list[str] = []
        keywords: list[str] = []
        saw_positional_only = False
        saw_star = False
        for param in params:
            kind = param.kind
            if kind is not inspect.Parameter.POSITIONAL_ONLY and saw_positional_only:
                definition.append("/")
                saw_positional_only = False
            if kind is inspect.Parameter.POSITIONAL_ONLY:
                saw_positional_only = True
            if kind is inspect.Parameter.KEYWORD_ONLY and not saw_star:
                definition.append("*")
                saw_star = True

            if kind is inspect.Parameter.VAR_POSITIONAL:
                saw_star = True
                definition.append(f"*{param.name}")
                forward.append(f"*{param.name}")
                positional.append(f"*{param.name}")
            elif kind is inspect.Parameter.VAR_KEYWORD:
                definition.append(f"**{param.name}")
                forward.append(f"**{param.name}")
                keywords.append(f"**{param.name}")
            elif kind is inspect.Parameter.KEYWORD_ONLY:
                definition.append(_with_default(param, bind))
                forward.append(f"{param.name}={param.name}")
                keywords.append(f"{param.name!r}: {param.name}")
            else:
                definition.append(_with_default(param, bind))
                forward.append(param.name)
                positional.append(param.name)
        if saw_positional_only:
            definition.append("/")

        if not positional and not keywords:
            packed = None
        else:
            items = list(positional)
            if keywords:
                items.append("{" + ", ".join(keywords) + "}")
            packed = "(" + ", ".join(items) + ",)"
        return cls(receiver, ", ".join(definition), ", ".join(forward), packed, bool(keywords))


def _with_default(param: inspect.Parameter, bind: Callable[[Any, str], str]) -> str:
    if param.default is inspect.Parameter.empty:
        return param.name
    return f"{param.name}={bind(param.default, 'default')}"


@dataclass(frozen=True)
class GeneratedClass:
    type: type
    source: str
    code: CodeType
    filename: str

    @property
    def name(self) -> str:
        return f"{self.type.__module__}.{self.type.__qualname__}"


def compute_bases(superclass: type, interfaces: Sequence[type], mixins: Sequence[type] = ()) -> tuple[type, ...]:
    """Order bases so a consistent MRO exists.

    ``object`` is never listed explicitly, and interfaces or mixins
    already in the superclass's MRO are dropped.
    """
    bases: list[type] = [] if superclass is object else [superclass]
    for extra in (*interfaces, *mixins):
        if extra is object or extra in bases:
            continue
        if any(extra in base.__mro__ for base in bases):
            continue
        bases.append(extra)
    return tuple(bases) or (object,)


class ClassEmitter:
    """Assembles one generated class.

    ``class_name`` is the fully qualified name; its last dotted segment
    becomes ``__qualname__`` and the rest ``__module__``.
    """

    def __init__(
        self,
        class_name: str,
        superclass: type = object,
        interfaces: Sequence[type] = (),
        mixins: Sequence[type] = (),
    ) -> None:
        self.class_name = class_name
        module, _, short = class_name.rpartition(".")
        self.module = module or "pyfusion.generated"
        self.short_name = short
        self.bases = compute_bases(superclass, interfaces, mixins)
        self._namespace: dict[str, Any] = {"__name__": self.module}
        self._body = CodeWriter(level=1)
        self._members: set[str] = set()
        self._counter = 0
        self._post_load: list[Callable[[type], None]] = []

    def bind(self, value: Any, hint: str = "const") -> str:
        """Bind *value* into the class globals and return its identifier."""
        identifier = f"_fusion_{hint}_{self._counter}"
        self._counter += 1
        self._namespace[identifier] = value
        return identifier

    def bind_named(self, identifier: str, value: Any) -> str:
        existing = self._namespace.get(identifier, value)
        if existing is not value:
            raise CodeGenerationError(self.class_name, f"global '{identifier}' bound twice")
        self._namespace[identifier] = value
        return identifier

    def _claim(self, name: str) -> None:
        if name in self._members:
            raise CodeGenerationError(self.class_name, f"duplicate member '{name}'")
        self._members.add(name)

    def declare_field(self, name: str, value: Any = None) -> None:
        """Declare a class-level field; ``None`` is emitted literally."""
        self._claim(name)
        if value is None:
            self._body.append(f"{name} = None")
        else:
            self._body.append(f"{name} = {self.bind(value, 'field')}")

    @contextmanager
    def begin_method(
        self,
        name: str,
        parameters: str,
        is_async: bool = False,
        decorators: Sequence[str] = (),
    ) -> Iterator[CodeWriter]:
        """Open a method body; statements written inside land in the body."""
        self._claim(name)
        self._body.blank()
        for decorator in decorators:
            self._body.append(f"@{decorator}")
        keyword = "async def" if is_async else "def"
        with self._body.indent(f"{keyword} {name}({parameters}):") as body:
            yield body

    def after_load(self, action: Callable[[type], None]) -> None:
        """Run *action* on the loaded class at the end of :meth:`end_class`."""
        self._post_load.append(action)

    def has_member(self, name: str) -> bool:
        return name in self._members

    def source(self) -> str:
        writer = CodeWriter()
        writer.append(f"# {self.class_name}")
        base_idents = ", ".join(self.bind_named(f"_fusion_base_{i}", base) for i, base in enumerate(self.bases))
        writer.append(f"class {_CLASS_IDENT}({base_idents}):")
        lines = self._body.lines
        if not any(line.strip() for line in lines):
            lines = ["    pass"]
        return str(writer) + "\n".join(lines) + "\n"

    def end_class(self) -> GeneratedClass:
        """Compile and load the class; returns ``(type, source, code)``."""
        source = self.source()
        filename = f"<pyfusion {self.class_name}>"
        try:
            code = compile(source, filename, "exec")
        except SyntaxError as exc:
            raise CodeGenerationError(
                self.class_name, f"emitted source does not compile: {exc.msg} (line {exc.lineno})"
            ) from exc

        linecache.cache[filename] = (len(source), None, source.splitlines(True), filename)
        try:
            exec(code, self._namespace)
        except TypeError as exc:
            linecache.cache.pop(filename, None)
            raise CodeGenerationError(self.class_name, str(exc)) from exc

        generated = self._namespace.pop(_CLASS_IDENT)
        generated.__name__ = self.short_name
        generated.__qualname__ = self.short_name
        for member in vars(generated).values():
            function = getattr(member, "__func__", member)
            if inspect.isfunction(function) and function.__qualname__.startswith(f"{_CLASS_IDENT}."):
                function.__qualname__ = self.short_name + function.__qualname__[len(_CLASS_IDENT) :]
        weakref.finalize(generated, linecache.cache.pop, filename, None)
        for action in self._post_load:
            action(generated)
        return GeneratedClass(generated, source, code, filename)
