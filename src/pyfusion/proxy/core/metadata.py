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
"""Type metadata reader — static inspection of a class's defining source.

The artifact behind a class is the source of its defining module. It is
located with :mod:`inspect` and read through :mod:`linecache`, then
parsed with :mod:`ast`; nothing is imported or executed.
"""

from __future__ import annotations

import ast
import enum
import inspect
import linecache
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

from pyfusion.proxy.exceptions import MetadataReadError

_FUNCTION_NODES = (ast.FunctionDef, ast.AsyncFunctionDef)
_RECEIVERS = frozenset({"self", "cls"})


class CallKind(enum.Enum):
    SUPER = "super"
    QUALIFIED = "qualified"
    VIRTUAL = "virtual"
    OTHER = "other"


@dataclass(frozen=True)
class CallSite:
    kind: CallKind
    owner: str | None
    name: str
    argument_count: int
    lineno: int


@dataclass(frozen=True)
class MethodBody:
    name: str
    lineno: int
    calls: tuple[CallSite, ...] = ()
    decorators: tuple[str, ...] = ()


@dataclass(frozen=True)
class ClassMetadata:
    name: str
    superclass: str | None
    interfaces: tuple[str, ...]
    methods: Mapping[str, MethodBody] = field(default_factory=dict)
    source_file: str | None = None


@dataclass(frozen=True)
class SourceArtifact:
    filename: str
    tree: ast.Module


class _CallCollector(ast.NodeVisitor):
    """Collect call sites of one function body in evaluation order.

    Children are visited before the call itself, so arguments come
    before the call that consumes them. Nested scopes are not entered.
    """

    def __init__(self) -> None:
        self.calls: list[CallSite] = []

    def collect(self, function: ast.FunctionDef | ast.AsyncFunctionDef) -> tuple[CallSite, ...]:
        for statement in function.body:
            self.visit(statement)
        return tuple(self.calls)

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
        return None

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> None:
        return None

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        return None

    def visit_Lambda(self, node: ast.Lambda) -> None:
        return None

    def visit_Call(self, node: ast.Call) -> None:
        self.generic_visit(node)
        self.calls.append(_classify(node))


def _classify(node: ast.Call) -> CallSite:
    func = node.func
    argc = len(node.args) + len(node.keywords)
    if isinstance(func, ast.Attribute):
        target = func.value
        if isinstance(target, ast.Call) and isinstance(target.func, ast.Name) and target.func.id == "super":
            owner = ast.unparse(target.args[0]) if target.args else None
            return CallSite(CallKind.SUPER, owner, func.attr, argc, node.lineno)
        if isinstance(target, ast.Name) and target.id in _RECEIVERS:
            return CallSite(CallKind.VIRTUAL, target.id, func.attr, argc, node.lineno)
        if (
            isinstance(target, (ast.Name, ast.Attribute))
            and node.args
            and isinstance(node.args[0], ast.Name)
            and node.args[0].id in _RECEIVERS
        ):
            return CallSite(CallKind.QUALIFIED, ast.unparse(target), func.attr, argc - 1, node.lineno)
    return CallSite(CallKind.OTHER, None, ast.unparse(func), argc, node.lineno)


def _definitions(body: list[ast.stmt]) -> Iterator[ast.stmt]:
    """Yield defs of one scope, looking through compound statements."""
    for statement in body:
        if isinstance(statement, (ast.ClassDef, *_FUNCTION_NODES)):
            yield statement
            continue
        for attr in ("body", "orelse", "finalbody"):
            yield from _definitions(getattr(statement, attr, None) or [])
        for handler in getattr(statement, "handlers", None) or []:
            yield from _definitions(handler.body)
        for case in getattr(statement, "cases", None) or []:
            yield from _definitions(case.body)


def _find_class(tree: ast.Module, qualname: str) -> ast.ClassDef | None:
    """Resolve a ``__qualname__`` path to its ``ClassDef``.

    Each segment stops at the first matching definition of its scope.
    """
    scope: ast.AST = tree
    for segment in qualname.split("."):
        if segment == "<locals>":
            continue
        match = next(
            (node for node in _definitions(getattr(scope, "body", [])) if getattr(node, "name", None) == segment),
            None,
        )
        if match is None:
            return None
        scope = match
    return scope if isinstance(scope, ast.ClassDef) else None


def _class_header(node: ast.ClassDef) -> tuple[str, tuple[str, ...]]:
    bases = tuple(ast.unparse(base) for base in node.bases)
    if not bases:
        return "object", ()
    return bases[0], bases[1:]


class ClassMetadataReader:
    """Reads class headers and method bodies from source artifacts."""

    def for_type(self, cls: type) -> SourceArtifact:
        """Locate and parse the artifact backing *cls*."""
        type_name = f"{cls.__module__}.{cls.__qualname__}"
        try:
            filename = inspect.getsourcefile(cls)
        except TypeError as exc:
            raise MetadataReadError(type_name, str(exc)) from exc
        if filename is None:
            raise MetadataReadError(type_name, "no source file")

        lines = linecache.getlines(filename)
        if not lines:
            raise MetadataReadError(type_name, f"source {filename} is empty or unreadable")
        try:
            tree = ast.parse("".join(lines), filename)
        except SyntaxError as exc:
            raise MetadataReadError(type_name, f"source {filename} does not parse: {exc.msg}") from exc
        return SourceArtifact(filename, tree)

    def _locate(self, cls: type) -> tuple[SourceArtifact, ast.ClassDef]:
        artifact = self.for_type(cls)
        node = _find_class(artifact.tree, cls.__qualname__)
        if node is None:
            raise MetadataReadError(
                f"{cls.__module__}.{cls.__qualname__}",
                f"class not defined in {artifact.filename}",
            )
        return artifact, node

    def read_class_info(self, cls: type) -> tuple[str, ...]:
        """Return ``(name, superclass, *interfaces)`` without reading bodies."""
        _, node = self._locate(cls)
        superclass, interfaces = _class_header(node)
        return (f"{cls.__module__}.{cls.__qualname__}", superclass, *interfaces)

    def read(self, cls: type) -> ClassMetadata:
        """Read the class header plus every method body with its call sites."""
        artifact, node = self._locate(cls)
        superclass, interfaces = _class_header(node)
        methods: dict[str, MethodBody] = {}
        for statement in node.body:
            if not isinstance(statement, _FUNCTION_NODES):
                continue
            methods[statement.name] = MethodBody(
                name=statement.name,
                lineno=statement.lineno,
                calls=_CallCollector().collect(statement),
                decorators=tuple(ast.unparse(d) for d in statement.decorator_list),
            )
        return ClassMetadata(
            name=f"{cls.__module__}.{cls.__qualname__}",
            superclass=superclass,
            interfaces=interfaces,
            methods=methods,
            source_file=artifact.filename,
        )
