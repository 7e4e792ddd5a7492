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
"""Enhancer — generates subclasses whose methods dispatch through callbacks.

Usage::

    class Tracing:
        def intercept(self, caller, proxy, method, args, method_proxy):
            print("->", method.name)
            return method_proxy.invoke_super(proxy, args)

    enhancer = Enhancer()
    enhancer.set_superclass(GreetingService)
    enhancer.set_callback(Tracing())
    service = enhancer.create()

Generated classes are cached per :class:`GenerationKey`; equal
configurations share one class.
"""

from __future__ import annotations

import inspect
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import structlog

from pyfusion.proxy.bridge import BridgeMethodResolver
from pyfusion.proxy.callback import ALL_ZERO, CallbackFilter
from pyfusion.proxy.callback_info import determine_types, determine_types_of, get_generator
from pyfusion.proxy.core.cache import ProxyCache
from pyfusion.proxy.core.debugging import DebugClassWriter
from pyfusion.proxy.core.emitter import ClassEmitter, GeneratedClass, ParameterPlan
from pyfusion.proxy.core.members import MethodRecord, collect_methods
from pyfusion.proxy.core.metadata import ClassMetadataReader
from pyfusion.proxy.core.naming import DEFAULT_NAMING_POLICY, NamingPolicy
from pyfusion.proxy.core.signature import Signature
from pyfusion.proxy.core.types import TypeDescriptor
from pyfusion.proxy.exceptions import ConstructorMismatchError, ProxyConfigurationError
from pyfusion.proxy.factory import (
    CALLBACK_TYPES_ATTR,
    STATIC_CALLBACKS_ATTR,
    Factory,
    bind_callbacks,
    register_static_callbacks,
    register_thread_callbacks,
)
from pyfusion.proxy.generator import CallbackGenerator, GenerationContext
from pyfusion.proxy.settings import current

logger = structlog.get_logger("pyfusion.proxy.enhancer")

_SOURCE = "pyfusion.proxy.Enhancer"
METHODS_ATTR = "__fusion_methods__"


@dataclass(frozen=True)
class GenerationKey:
    """Everything that shapes a generated class; equal keys share a class."""

    superclass: type
    interfaces: tuple[type, ...]
    callback_types: tuple[type, ...]
    naming_policy: NamingPolicy
    callback_filter: CallbackFilter
    use_factory: bool
    intercept_during_construction: bool


class Enhancer:
    """Configures and creates proxy classes and instances.

    An enhancer is not thread-safe; configure one per use. The classes it
    produces, and the cache behind them, are.
    """

    def __init__(self) -> None:
        self._superclass: type = object
        self._interfaces: tuple[type, ...] = ()
        self._callbacks: tuple[Any, ...] | None = None
        self._callback_types: tuple[type, ...] | None = None
        self._callback_filter: CallbackFilter | None = None
        self._naming_policy: NamingPolicy = DEFAULT_NAMING_POLICY
        self._use_factory = True
        self._use_cache: bool | None = None
        self._intercept_during_construction: bool | None = None
        self._cache: ProxyCache | None = None
        self._reader = ClassMetadataReader()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_superclass(self, superclass: type | None) -> None:
        """Set the class to extend; a protocol becomes the sole interface."""
        if superclass is None or superclass is object:
            self._superclass = object
            return
        if not isinstance(superclass, type):
            raise ProxyConfigurationError(f"{superclass!r} is not a class", superclass=superclass)
        if getattr(superclass, "_is_protocol", False):
            self.set_interfaces((superclass,))
            self._superclass = object
            return
        if getattr(superclass, "__final__", False):
            raise ProxyConfigurationError(f"Cannot subclass final class {superclass.__qualname__}")
        self._superclass = superclass

    def set_interfaces(self, interfaces: Sequence[type] | None) -> None:
        interfaces = tuple(interfaces or ())
        for interface in interfaces:
            if not isinstance(interface, type):
                raise ProxyConfigurationError(f"{interface!r} is not a class", interface=interface)
        self._interfaces = interfaces

    def set_callback(self, callback: Any) -> None:
        self.set_callbacks((callback,))

    def set_callbacks(self, callbacks: Sequence[Any]) -> None:
        if not callbacks:
            raise ProxyConfigurationError("Callbacks may not be empty")
        self._callbacks = tuple(callbacks)

    def set_callback_type(self, callback_type: type) -> None:
        self.set_callback_types((callback_type,))

    def set_callback_types(self, callback_types: Sequence[type]) -> None:
        if not callback_types:
            raise ProxyConfigurationError("Callback types may not be empty")
        for callback_type in callback_types:
            if not isinstance(callback_type, type):
                raise ProxyConfigurationError(f"{callback_type!r} is not a class", callback_type=callback_type)
        self._callback_types = tuple(callback_types)

    def set_callback_filter(self, callback_filter: CallbackFilter | None) -> None:
        self._callback_filter = callback_filter

    def set_naming_policy(self, naming_policy: NamingPolicy | None) -> None:
        self._naming_policy = naming_policy if naming_policy is not None else DEFAULT_NAMING_POLICY

    def set_use_factory(self, use_factory: bool) -> None:
        self._use_factory = use_factory

    def set_use_cache(self, use_cache: bool) -> None:
        self._use_cache = use_cache

    def set_intercept_during_construction(self, intercept_during_construction: bool) -> None:
        self._intercept_during_construction = intercept_during_construction

    def set_cache(self, cache: ProxyCache | None) -> None:
        self._cache = cache

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create(self, *args: Any, **kwargs: Any) -> Any:
        """Generate (or reuse) the proxy class and build an instance of it.

        Raises :class:`ConstructorMismatchError` when *args*/*kwargs* do
        not bind to the superclass constructor.
        """
        if self._callbacks is None:
            raise ProxyConfigurationError("Callbacks are required to create an instance")
        generated = self._create_class()
        try:
            inspect.signature(generated).bind(*args, **kwargs)
        except TypeError as exc:
            raise ConstructorMismatchError(self._superclass, str(exc)) from exc
        except ValueError:
            # no introspectable signature; let the constructor decide
            pass

        register_thread_callbacks(generated, self._callbacks)
        try:
            return generated(*args, **kwargs)
        finally:
            register_thread_callbacks(generated, None)

    def create_class(self) -> type:
        """Generate (or reuse) the proxy class without instantiating it."""
        return self._create_class()

    @classmethod
    def create_proxy(
        cls,
        superclass: type,
        callback: Any,
        interfaces: Sequence[type] = (),
        callback_filter: CallbackFilter | None = None,
    ) -> Any:
        """One-call form: proxy *superclass* with *callback* (or a list of callbacks)."""
        enhancer = cls()
        enhancer.set_superclass(superclass)
        if interfaces:
            enhancer.set_interfaces(interfaces)
        enhancer.set_callback_filter(callback_filter)
        if isinstance(callback, (list, tuple)):
            enhancer.set_callbacks(callback)
        else:
            enhancer.set_callback(callback)
        return enhancer.create()

    @staticmethod
    def register_callbacks(generated: type, callbacks: Sequence[Any] | None) -> None:
        """Stage callbacks for instances of *generated* built on this thread.

        Pass ``None`` to clear the registration.
        """
        register_thread_callbacks(generated, callbacks)

    @staticmethod
    def register_static_callbacks(generated: type, callbacks: Sequence[Any] | None) -> None:
        """Install fallback callbacks used when nothing is staged for the thread."""
        register_static_callbacks(generated, callbacks)

    @staticmethod
    def is_enhanced(type_: Any) -> bool:
        return isinstance(type_, type) and CALLBACK_TYPES_ATTR in vars(type_)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def _validate(self) -> tuple[tuple[type, ...], CallbackFilter]:
        if self._callbacks is not None and self._callback_types is not None:
            if len(self._callbacks) != len(self._callback_types):
                raise ProxyConfigurationError("Callbacks and callback types must have the same length")
            kinds = determine_types(self._callback_types)
            for index, (callback, callback_type) in enumerate(zip(self._callbacks, self._callback_types)):
                if callback is not None and not isinstance(callback, callback_type):
                    raise ProxyConfigurationError(
                        f"Callback {index} is not assignable to {callback_type.__qualname__}",
                        index=index,
                    )
        elif self._callback_types is not None:
            kinds = determine_types(self._callback_types)
        elif self._callbacks is not None:
            kinds = determine_types_of(self._callbacks)
        else:
            raise ProxyConfigurationError("Either callbacks or callback types are required")

        callback_filter = self._callback_filter
        if callback_filter is None:
            if len(kinds) > 1:
                raise ProxyConfigurationError("Several callback types but no callback filter")
            callback_filter = ALL_ZERO
        try:
            hash(callback_filter)
        except TypeError as exc:
            raise ProxyConfigurationError("Callback filter must be hashable", filter=callback_filter) from exc
        return kinds, callback_filter

    def _create_class(self) -> type:
        kinds, callback_filter = self._validate()
        properties = current()
        intercept_during_construction = (
            self._intercept_during_construction
            if self._intercept_during_construction is not None
            else properties.intercept_during_construction
        )
        use_cache = self._use_cache if self._use_cache is not None else properties.use_cache
        key = GenerationKey(
            superclass=self._superclass,
            interfaces=self._interfaces,
            callback_types=kinds,
            naming_policy=self._naming_policy,
            callback_filter=callback_filter,
            use_factory=self._use_factory,
            intercept_during_construction=intercept_during_construction,
        )
        cache = self._cache if self._cache is not None else ProxyCache.default()
        if use_cache:
            return cache.get(key, lambda: self._generate(key, cache))
        return self._generate(key, cache)

    def _generate(self, key: GenerationKey, cache: ProxyCache) -> type:
        methods = collect_methods(key.superclass, key.interfaces, skip=(Factory,))
        indexes = self._route(key, methods)
        bridge_targets = self._resolve_bridges(methods)

        prefix = None
        if key.superclass is not object:
            prefix = TypeDescriptor.for_class(key.superclass).class_name
        elif key.interfaces:
            prefix = TypeDescriptor.for_class(key.interfaces[0]).class_name
        name = cache.allocate_name(lambda taken: key.naming_policy.get_class_name(prefix, _SOURCE, key, taken))
        try:
            generated = self._emit(name, key, methods, indexes, bridge_targets)
        except BaseException:
            cache.release_name(name)
            raise
        cache.reserve_name(name, generated.type)

        location = current().debug_location
        if location:
            DebugClassWriter(location).write(generated)

        logger.info(
            "proxy_class_generated",
            class_name=generated.name,
            superclass=key.superclass.__qualname__,
            methods=len(getattr(generated.type, METHODS_ATTR)),
            bridges=len(bridge_targets),
        )
        return generated.type

    @staticmethod
    def _route(key: GenerationKey, methods: Sequence[MethodRecord]) -> dict[MethodRecord, int]:
        indexes: dict[MethodRecord, int] = {}
        for record in methods:
            index = key.callback_filter.accept(record)
            if not 0 <= index < len(key.callback_types):
                raise ProxyConfigurationError(
                    f"Callback filter returned index {index} for {record}, "
                    f"but only {len(key.callback_types)} callback slot(s) exist",
                    index=index,
                )
            indexes[record] = index
        return indexes

    def _resolve_bridges(self, methods: Sequence[MethodRecord]) -> dict[Signature, Signature]:
        declared_to_bridges: dict[type, set[Signature]] = {}
        for record in methods:
            if record.is_bridge:
                declared_to_bridges.setdefault(record.owner, set()).add(record.signature)
        if not declared_to_bridges:
            return {}
        return BridgeMethodResolver(declared_to_bridges, self._reader).resolve_all()

    def _emit(
        self,
        name: str,
        key: GenerationKey,
        methods: Sequence[MethodRecord],
        indexes: dict[MethodRecord, int],
        bridge_targets: dict[Signature, Signature],
    ) -> GeneratedClass:
        emitter = ClassEmitter(
            name,
            key.superclass,
            key.interfaces,
            mixins=(Factory,) if key.use_factory else (),
        )
        context = GenerationContext(emitter, methods, indexes, bridge_targets)

        for index in range(len(key.callback_types)):
            emitter.declare_field(context.callback_field(index))
        emitter.declare_field(CALLBACK_TYPES_ATTR, key.callback_types)
        emitter.declare_field(STATIC_CALLBACKS_ATTR)
        self._emit_constructor(emitter, key)

        groups: dict[int, tuple[CallbackGenerator, list[MethodRecord]]] = {}
        for record in methods:
            generator = get_generator(key.callback_types[indexes[record]])
            groups.setdefault(id(generator), (generator, []))[1].append(record)
        for generator, records in groups.values():
            generator.generate_static(context, records)
        for generator, records in groups.values():
            generator.generate(context, records)

        emitter.declare_field(METHODS_ATTR, tuple(context.handles))
        table = emitter.bind(context.proxies, "proxies")
        with emitter.begin_method("fusion_find_method_proxy", "cls, signature", decorators=("classmethod",)) as body:
            body.append(f"return {table}.get(str(signature))")
        return emitter.end_class()

    @staticmethod
    def _emit_constructor(emitter: ClassEmitter, key: GenerationKey) -> None:
        """Argument-forwarding ``__init__`` that binds callbacks around the base call."""
        base_init = key.superclass.__init__
        if base_init is object.__init__:
            definition, forward, receiver = "self", "", "self"
        elif inspect.isfunction(base_init):
            plan = ParameterPlan.for_function(base_init, emitter.bind)
            definition, forward, receiver = plan.definition, plan.forward, plan.receiver
        else:
            definition, forward, receiver = "self, *args, **kwargs", "*args, **kwargs", "self"

        bind = emitter.bind_named("_fusion_bind_callbacks", bind_callbacks)
        with emitter.begin_method("__init__", definition) as body:
            if key.intercept_during_construction:
                body.append(f"{bind}({receiver}, __class__)")
                body.append(f"super().__init__({forward})")
            else:
                body.append(f"super().__init__({forward})")
                body.append(f"{bind}({receiver}, __class__)")
