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
"""Per-kind callback generators and the context they emit against."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Protocol

from pyfusion.proxy.core.emitter import ClassEmitter, ParameterPlan
from pyfusion.proxy.core.members import MethodRecord
from pyfusion.proxy.core.signature import Signature
from pyfusion.proxy.exceptions import AbstractMethodInvokedError
from pyfusion.proxy.method_proxy import MethodProxy


class GenerationContext:
    """What a callback generator needs to know about the class being built."""

    def __init__(
        self,
        emitter: ClassEmitter,
        methods: Sequence[MethodRecord],
        indexes: Mapping[MethodRecord, int],
        bridge_targets: Mapping[Signature, Signature],
    ) -> None:
        self.emitter = emitter
        self._positions = {record: position for position, record in enumerate(methods)}
        self._indexes = indexes
        self._bridge_targets = bridge_targets
        self._plans: dict[MethodRecord, ParameterPlan] = {}
        self.handles: dict[MethodRecord, tuple[str, str]] = {}
        self.proxies: dict[str, MethodProxy] = {}

    def index_of(self, record: MethodRecord) -> int:
        return self._indexes[record]

    @staticmethod
    def callback_field(index: int) -> str:
        return f"_fusion_callback_{index}"

    def access_name(self, record: MethodRecord) -> str:
        return f"_fusion_access_{self._positions[record]}"

    def plan(self, record: MethodRecord) -> ParameterPlan:
        plan = self._plans.get(record)
        if plan is None:
            plan = ParameterPlan.for_function(record.function, self.emitter.bind)
            self._plans[record] = plan
        return plan

    def bridge_target(self, record: MethodRecord) -> Signature | None:
        if not record.is_bridge:
            return None
        return self._bridge_targets.get(record.signature)

    def register(self, record: MethodRecord) -> tuple[str, str]:
        """Bind the record and its :class:`MethodProxy`; returns both identifiers."""
        handles = self.handles.get(record)
        if handles is None:
            proxy = MethodProxy(record.signature, self.access_name(record), record, self.plan(record).has_keywords)
            handles = (self.emitter.bind(record, "method"), self.emitter.bind(proxy, "proxy"))
            self.handles[record] = handles
            self.proxies[str(record.signature)] = proxy
        return handles

    def emit_access(self, record: MethodRecord) -> None:
        """Emit the method that reaches the original implementation.

        Abstract originals raise; bridges with a resolved target of a
        different name call that target virtually; everything else goes
        through ``super()``.
        """
        plan = self.plan(record)
        target = self.bridge_target(record)
        with self.emitter.begin_method(self.access_name(record), plan.definition) as body:
            if record.is_abstract:
                error = self.emitter.bind_named("_fusion_abstract_error", AbstractMethodInvokedError)
                body.append(f"raise {error}({str(record)!r})")
            elif target is not None and target.name != record.name:
                body.append(f"return {plan.receiver}.{target.name}({plan.forward})")
            else:
                body.append(f"return super().{record.name}({plan.forward})")


class CallbackGenerator(Protocol):
    def generate_static(self, context: GenerationContext, methods: Sequence[MethodRecord]) -> None:
        """Populate the registration table for *methods*."""
        ...

    def generate(self, context: GenerationContext, methods: Sequence[MethodRecord]) -> None:
        """Emit the members for *methods*."""
        ...


class NoOpGenerator:
    """Routed methods are left alone, so the original stays in place."""

    def generate_static(self, context: GenerationContext, methods: Sequence[MethodRecord]) -> None:
        return None

    def generate(self, context: GenerationContext, methods: Sequence[MethodRecord]) -> None:
        return None
