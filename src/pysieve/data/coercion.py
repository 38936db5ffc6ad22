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
"""Conversion of raw filter values into the target field type.

Filter values usually arrive as strings (query strings, JSON bodies), so
every comparison value is converted to the type of the member it is
compared against before a predicate node is built.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any
from uuid import UUID

from pysieve.kernel.exceptions import ValueConversionException

_TRUE = frozenset({"true", "1", "yes", "y", "on"})
_FALSE = frozenset({"false", "0", "no", "n", "off"})

# [-][D.]HH:MM[:SS[.fraction]]
_TIMESPAN = re.compile(
    r"^(?P<sign>-)?(?:(?P<days>\d+)\.)?(?P<hours>\d{1,2}):(?P<minutes>\d{2})"
    r"(?::(?P<seconds>\d{2})(?:\.(?P<fraction>\d{1,7}))?)?$"
)


def coerce_value(value: Any, target: Any) -> Any:
    """Convert *value* to *target*.

    ``None`` passes through unchanged; callers decide whether the member
    accepts it.

    Raises:
        ValueConversionException: When the value cannot be represented as *target*.
    """
    if value is None or target is object or target is Any:
        return value
    if not isinstance(target, type):
        return value

    try:
        if issubclass(target, Enum):
            return _to_enum(value, target)
        if target is bool:
            return _to_bool(value)
        if target is str:
            return value if isinstance(value, str) else str(value)
        if target is int:
            return _to_int(value)
        if target is float:
            return float(value)
        if target is Decimal:
            return value if isinstance(value, Decimal) else Decimal(str(value).strip())
        if target is UUID:
            return value if isinstance(value, UUID) else UUID(str(value).strip())
        if target is datetime:
            return _to_datetime(value)
        if target is date:
            return _to_date(value)
        if target is time:
            return value if isinstance(value, time) else time.fromisoformat(str(value).strip())
        if target is timedelta:
            return _to_timedelta(value)
        if isinstance(value, target):
            return value
        return target(value)
    except ValueConversionException:
        raise
    except (ValueError, TypeError, InvalidOperation, OverflowError) as exc:
        raise ValueConversionException(value, target) from exc


def _to_enum(value: Any, target: type[Enum]) -> Enum:
    if isinstance(value, target):
        return value
    text = str(value).strip()
    for member in target:
        if member.name.lower() == text.lower():
            return member
    for member in target:
        if str(member.value).lower() == text.lower():
            return member
    raise ValueConversionException(value, target)


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueConversionException(value, bool)


def _to_int(value: Any) -> int:
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueConversionException(value, int)
        return int(value)
    return int(str(value).strip())


def _parse_iso(text: str) -> datetime:
    text = text.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return _parse_iso(str(value))


def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if len(text) > 10:
        return _parse_iso(text).date()
    return date.fromisoformat(text)


def _to_timedelta(value: Any) -> timedelta:
    if isinstance(value, timedelta):
        return value
    if isinstance(value, int | float) and not isinstance(value, bool):
        return timedelta(seconds=value)
    text = str(value).strip()
    match = _TIMESPAN.match(text)
    if match is None:
        return timedelta(seconds=float(text))
    fraction = match.group("fraction") or "0"
    result = timedelta(
        days=int(match.group("days") or 0),
        hours=int(match.group("hours")),
        minutes=int(match.group("minutes")),
        seconds=int(match.group("seconds") or 0),
        microseconds=int(fraction.ljust(6, "0")[:6]),
    )
    return -result if match.group("sign") else result
