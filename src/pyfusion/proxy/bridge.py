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
"""Bridge resolver — finds the method each bridge forwards to.

A bridge is recognized by reading its body: the first call that goes
through ``super()``, or through ``Base.name(self, ...)`` where ``Base``
is a base class or interface of the owner, is the forwarding target.
"""

from __future__ import annotations

from collections.abc import Mapping, Set

import structlog

from pyfusion.proxy.core.members import unwrap_member
from pyfusion.proxy.core.metadata import CallKind, CallSite, ClassMetadata, ClassMetadataReader
from pyfusion.proxy.core.signature import Signature
from pyfusion.proxy.exceptions import MetadataReadError

logger = structlog.get_logger("pyfusion.proxy.bridge")


def _short(name: str) -> str:
    return name.rpartition(".")[2]


class BridgeMethodResolver:
    """Maps bridge signatures to the signatures they forward to."""

    def __init__(
        self,
        declared_to_bridges: Mapping[type, Set[Signature]],
        reader: ClassMetadataReader | None = None,
    ) -> None:
        self._declared_to_bridges = declared_to_bridges
        self._reader = reader if reader is not None else ClassMetadataReader()

    def resolve_all(self) -> dict[Signature, Signature]:
        resolved: dict[Signature, Signature] = {}
        for owner, bridges in self._declared_to_bridges.items():
            try:
                metadata = self._reader.read(owner)
            except MetadataReadError as exc:
                logger.debug("bridge_metadata_unavailable", owner=owner.__qualname__, reason=str(exc))
                continue
            self._visit(owner, metadata, set(bridges), resolved)
        return resolved

    def _visit(
        self,
        owner: type,
        metadata: ClassMetadata,
        eligible: set[Signature],
        resolved: dict[Signature, Signature],
    ) -> None:
        for name, body in metadata.methods.items():
            member = vars(owner).get(name)
            if member is None:
                continue
            function, _ = unwrap_member(member)
            signature = Signature.from_function(name, function)
            if signature not in eligible:
                continue
            eligible.discard(signature)

            target = next(
                (t for t in (self._target(owner, call) for call in body.calls) if t is not None),
                None,
            )
            if target is not None and target != signature:
                resolved[signature] = target

    def _target(self, owner: type, call: CallSite) -> Signature | None:
        """Signature of the method *call* binds to, if it is a forwarding call."""
        mro = owner.__mro__
        if call.kind is CallKind.SUPER:
            start = 0
            if call.owner is not None:
                start = next((i for i, c in enumerate(mro) if c.__name__ == _short(call.owner)), -1)
                if start < 0:
                    return None
            search = mro[start + 1 :]
        elif call.kind is CallKind.QUALIFIED and call.owner is not None:
            qualifier = next((c for c in mro[1:] if c.__name__ == _short(call.owner)), None)
            if qualifier is None:
                return None
            search = qualifier.__mro__
        else:
            return None

        for klass in search:
            member = vars(klass).get(call.name)
            if member is not None:
                function, _ = unwrap_member(member)
                if not callable(function):
                    return None
                return Signature.from_function(call.name, function)
        return None
