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
"""Proxy engine building blocks: descriptors, metadata, naming, emission, caching."""

from pyfusion.proxy.core.cache import ProxyCache
from pyfusion.proxy.core.debugging import DebugClassWriter
from pyfusion.proxy.core.emitter import ClassEmitter, CodeWriter, GeneratedClass, ParameterPlan
from pyfusion.proxy.core.members import MethodRecord, Modifier, RejectModifierPredicate, collect_methods
from pyfusion.proxy.core.metadata import CallKind, CallSite, ClassMetadata, ClassMetadataReader, MethodBody
from pyfusion.proxy.core.naming import DEFAULT_NAMING_POLICY, DefaultNamingPolicy, NamingPolicy
from pyfusion.proxy.core.signature import Signature, parse_constructor, parse_signature
from pyfusion.proxy.core.types import (
    Sort,
    TypeDescriptor,
    escape_type,
    get_boxed_type,
    get_unboxed_type,
    parse_type,
    unbox_or_zero,
)

__all__ = [
    "DEFAULT_NAMING_POLICY",
    "CallKind",
    "CallSite",
    "ClassEmitter",
    "ClassMetadata",
    "ClassMetadataReader",
    "CodeWriter",
    "DebugClassWriter",
    "DefaultNamingPolicy",
    "GeneratedClass",
    "MethodBody",
    "MethodRecord",
    "Modifier",
    "NamingPolicy",
    "ParameterPlan",
    "ProxyCache",
    "RejectModifierPredicate",
    "Signature",
    "Sort",
    "TypeDescriptor",
    "collect_methods",
    "escape_type",
    "get_boxed_type",
    "get_unboxed_type",
    "parse_constructor",
    "parse_signature",
    "parse_type",
    "unbox_or_zero",
]
