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
"""Unified exception hierarchy for PyFusion.

All framework exceptions inherit from FusionException, enabling unified
error handling across modules.

Categories:
- ConfigurationException: Invalid setup supplied by the caller
- InfrastructureException: Code generation and artifact access failures
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class FusionException(Exception):
    """Base exception for all PyFusion errors.

    Carries an optional error code and context dict for structured error data.
    Catch FusionException to handle all framework errors, or catch specific
    subclasses for targeted handling.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "PROXY_CONFIG").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationException(FusionException):
    """The caller supplied an invalid or inconsistent setup."""


class ValidationException(ConfigurationException):
    """Input validation failures."""


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(FusionException):
    """Infrastructure failures: code generation, artifact access, file output."""


class NotImplementedException(InfrastructureException):
    """Requested operation is not implemented by the target."""
