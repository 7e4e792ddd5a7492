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
"""Proxy engine exceptions — configuration, generation and dispatch errors."""

from __future__ import annotations

from pyfusion.kernel.exceptions import (
    ConfigurationException,
    InfrastructureException,
    NotImplementedException,
    ValidationException,
)


class ProxyConfigurationError(ConfigurationException):
    """The enhancer was configured in a way no proxy class can satisfy."""

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message, code="PROXY_CONFIGURATION", context=dict(context))


class UnknownCallbackTypeError(ProxyConfigurationError):
    """A callback (or callback type) matches none of the recognized kinds."""

    def __init__(self, callback_type: type) -> None:
        self.callback_type = callback_type
        super().__init__(
            f"Unknown callback type {callback_type.__qualname__}",
            callback_type=callback_type,
        )


class AmbiguousCallbackTypeError(ProxyConfigurationError):
    """A callback (or callback type) matches more than one recognized kind."""

    def __init__(self, callback_type: type, first: type, second: type) -> None:
        self.callback_type = callback_type
        self.kinds = (first, second)
        super().__init__(
            f"Callback {callback_type.__qualname__} implements both "
            f"{first.__qualname__} and {second.__qualname__}",
            callback_type=callback_type,
        )


class ConstructorMismatchError(ProxyConfigurationError):
    """Constructor arguments do not bind to any constructor of the superclass."""

    def __init__(self, superclass: type, reason: str) -> None:
        self.superclass = superclass
        super().__init__(
            f"No constructor of {superclass.__qualname__} accepts the given arguments: {reason}",
            superclass=superclass,
        )


class SignatureSyntaxError(ValidationException):
    """Malformed ``"ReturnType name(ArgType, ...)"`` notation or descriptor."""

    def __init__(self, text: str, reason: str) -> None:
        self.text = text
        super().__init__(f"Cannot parse '{text}': {reason}", code="SIGNATURE_SYNTAX")


class CodeGenerationError(InfrastructureException):
    """Emitting, compiling or dumping a generated class failed."""

    def __init__(self, class_name: str, reason: str) -> None:
        self.class_name = class_name
        super().__init__(f"Cannot generate {class_name}: {reason}", code="CODE_GENERATION")


class MetadataReadError(InfrastructureException):
    """The artifact backing a type is missing or unreadable."""

    def __init__(self, type_name: str, reason: str) -> None:
        self.type_name = type_name
        super().__init__(f"Cannot read metadata for {type_name}: {reason}", code="METADATA_READ")


class AbstractMethodInvokedError(NotImplementedException):
    """An abstract original implementation was reached through a proxy.

    Raised by the access path of a generated method when no callback is
    installed (or the callback forwards to ``invoke_super``) and the
    superclass only declares the method abstractly.
    """

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"{method} is abstract", code="ABSTRACT_METHOD")
