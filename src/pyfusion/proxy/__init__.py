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
"""Runtime proxy generation: subclasses whose methods dispatch through callbacks."""

from pyfusion.proxy.bridge import BridgeMethodResolver
from pyfusion.proxy.callback import ALL_ZERO, EMPTY_ARGS, NO_OP, CallbackFilter, ExecutionInterceptor, NoOp
from pyfusion.proxy.decorators import bridge, raises
from pyfusion.proxy.enhancer import Enhancer, GenerationKey
from pyfusion.proxy.exceptions import (
    AbstractMethodInvokedError,
    AmbiguousCallbackTypeError,
    CodeGenerationError,
    ConstructorMismatchError,
    MetadataReadError,
    ProxyConfigurationError,
    SignatureSyntaxError,
    UnknownCallbackTypeError,
)
from pyfusion.proxy.factory import Factory
from pyfusion.proxy.method_proxy import MethodProxy
from pyfusion.proxy.settings import ProxyProperties

__all__ = [
    "ALL_ZERO",
    "EMPTY_ARGS",
    "NO_OP",
    "AbstractMethodInvokedError",
    "AmbiguousCallbackTypeError",
    "BridgeMethodResolver",
    "CallbackFilter",
    "CodeGenerationError",
    "ConstructorMismatchError",
    "Enhancer",
    "ExecutionInterceptor",
    "Factory",
    "GenerationKey",
    "MetadataReadError",
    "MethodProxy",
    "NoOp",
    "ProxyConfigurationError",
    "ProxyProperties",
    "SignatureSyntaxError",
    "UnknownCallbackTypeError",
    "bridge",
    "raises",
]
