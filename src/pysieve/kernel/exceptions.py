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
"""Unified exception hierarchy for pysieve.

Every error raised while compiling descriptors inherits from
:class:`SieveException`, so callers can catch the base class to handle all
query failures or a specific subclass for targeted handling.

Categories:
- Field errors: unknown fields and fields restricted by access policy
- Descriptor errors: malformed JSON paths and unknown operator tokens
- Value errors: filter values that cannot be coerced to the field type
- CompileFailureException: catch-all for descriptors that cannot be compiled
"""

from __future__ import annotations

from typing import Any


# =============================================================================
# Base Exception
# =============================================================================


class SieveException(Exception):
    """Base exception for all pysieve errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "SIEVE_FIELD_NOT_FOUND").
        context: Arbitrary key-value pairs describing the failing descriptor.
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
# Field Exceptions
# =============================================================================


class FieldNotFoundException(SieveException):
    """A field named in a filter or sort does not exist on the entity."""

    def __init__(self, path: str, entity_type: type) -> None:
        super().__init__(
            f"Field '{path}' not found on type '{entity_type.__name__}'",
            code="SIEVE_FIELD_NOT_FOUND",
            context={"path": path, "entity_type": entity_type.__name__},
        )
        self.path = path
        self.entity_type = entity_type


class FieldNotFilterableException(SieveException):
    """A field is excluded from filtering by the entity configuration."""

    def __init__(self, path: str) -> None:
        super().__init__(
            f"Field '{path}' is not filterable",
            code="SIEVE_FIELD_NOT_FILTERABLE",
            context={"path": path},
        )
        self.path = path


class FieldNotSortableException(SieveException):
    """A field is excluded from sorting by the entity configuration."""

    def __init__(self, path: str) -> None:
        super().__init__(
            f"Field '{path}' is not sortable",
            code="SIEVE_FIELD_NOT_SORTABLE",
            context={"path": path},
        )
        self.path = path


# =============================================================================
# Descriptor Exceptions
# =============================================================================


class InvalidJsonPathException(SieveException):
    """A JSON path does not have the ``column.key[.key...]`` shape."""

    def __init__(self, path: str, message: str | None = None) -> None:
        super().__init__(
            message or f"Invalid JSON path '{path}'. JSON paths require at least column.property format",
            code="SIEVE_INVALID_JSON_PATH",
            context={"path": path},
        )
        self.path = path


class InvalidOperatorException(SieveException):
    """A filter operator token is not recognized or not supported."""

    def __init__(self, token: str) -> None:
        super().__init__(
            f"Invalid or unsupported filter operator: '{token}'",
            code="SIEVE_INVALID_OPERATOR",
            context={"operator": token},
        )
        self.token = token


# =============================================================================
# Value Exceptions
# =============================================================================


class ValueConversionException(SieveException):
    """A filter value cannot be converted to the target field type."""

    def __init__(self, value: Any, target_type: type) -> None:
        type_name = getattr(target_type, "__name__", str(target_type))
        super().__init__(
            f"Cannot convert value '{value}' to type '{type_name}'",
            code="SIEVE_VALUE_CONVERSION",
            context={"value": value, "target_type": type_name},
        )
        self.value = value
        self.target_type = target_type


class CompileFailureException(SieveException):
    """A descriptor could not be compiled into a predicate or sort key."""

    def __init__(self, message: str, context: dict | None = None) -> None:
        super().__init__(message, code="SIEVE_COMPILE_FAILURE", context=context)
