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
"""Filter operator tokens and their parsed form.

Token grammar::

    comparison  := "==" | "!=" | ">" | "<" | ">=" | "<="
    text        := "@=" | "_=" | "_-=" | "!@=" | "!_=" | "!_-="
    operator    := comparison | text | ("==" | "!=" | text) "*" | "len" comparison

A trailing ``*`` folds case on both sides before comparing. Several values
for one operator are OR-combined, except for the negated equality forms
(``!=``, ``!=*``) whose values are AND-combined ("none of these").
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pysieve.kernel.exceptions import InvalidOperatorException


class FilterOperator:
    """Operator token constants."""

    EQUALS = "=="
    NOT_EQUALS = "!="
    GREATER_THAN = ">"
    LESS_THAN = "<"
    GREATER_THAN_OR_EQUAL = ">="
    LESS_THAN_OR_EQUAL = "<="
    CONTAINS = "@="
    STARTS_WITH = "_="
    ENDS_WITH = "_-="
    DOES_NOT_CONTAIN = "!@="
    DOES_NOT_START_WITH = "!_="
    DOES_NOT_END_WITH = "!_-="
    EQUALS_IGNORE_CASE = "==*"
    NOT_EQUALS_IGNORE_CASE = "!=*"
    CONTAINS_IGNORE_CASE = "@=*"
    STARTS_WITH_IGNORE_CASE = "_=*"
    ENDS_WITH_IGNORE_CASE = "_-=*"
    DOES_NOT_CONTAIN_IGNORE_CASE = "!@=*"
    DOES_NOT_START_WITH_IGNORE_CASE = "!_=*"
    DOES_NOT_END_WITH_IGNORE_CASE = "!_-=*"
    LENGTH_EQUALS = "len=="
    LENGTH_NOT_EQUALS = "len!="
    LENGTH_GREATER_THAN = "len>"
    LENGTH_LESS_THAN = "len<"
    LENGTH_GREATER_THAN_OR_EQUAL = "len>="
    LENGTH_LESS_THAN_OR_EQUAL = "len<="


class Comparison(Enum):
    """Comparison performed by a :class:`~pysieve.data.predicate.Compare` node."""

    EQ = "=="
    NE = "!="
    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="
    CONTAINS = "@="
    STARTS_WITH = "_="
    ENDS_WITH = "_-="

    @property
    def is_ordering(self) -> bool:
        return self in (Comparison.GT, Comparison.LT, Comparison.GE, Comparison.LE)

    @property
    def is_text(self) -> bool:
        return self in (Comparison.CONTAINS, Comparison.STARTS_WITH, Comparison.ENDS_WITH)


LENGTH_PREFIX = "len"

_COMPARISONS: dict[str, Comparison] = {c.value: c for c in Comparison}

# Base forms that accept the case-insensitive ``*`` suffix.
_FOLDABLE = frozenset({"==", "!=", "@=", "_=", "_-=", "!@=", "!_=", "!_-="})


@dataclass(frozen=True)
class Operator:
    """A parsed operator token.

    Attributes:
        token: The token as supplied.
        comparison: The positive comparison (``!@=`` parses to ``CONTAINS``).
        negated: ``True`` for ``!@=``, ``!_=``, ``!_-=`` (per-value negation).
        ignore_case: ``True`` when the token carries the ``*`` suffix.
        length: ``True`` for ``len`` forms comparing cardinality.
    """

    token: str
    comparison: Comparison
    negated: bool = False
    ignore_case: bool = False
    length: bool = False

    @property
    def combine_with_and(self) -> bool:
        """Whether multiple values must all hold (only ``!=`` / ``!=*``)."""
        return self.comparison is Comparison.NE and not self.length

    @property
    def base(self) -> str:
        """Token without the ``len`` prefix and the ``*`` suffix."""
        prefix = "!" if self.negated else ""
        return prefix + self.comparison.value


def parse_operator(token: str | None) -> Operator:
    """Parse an operator token; ``None`` or empty means equality.

    Raises:
        InvalidOperatorException: If the token is not part of the grammar.
    """
    if not token:
        return Operator(token=FilterOperator.EQUALS, comparison=Comparison.EQ)

    raw = token.strip()
    if raw.startswith(LENGTH_PREFIX):
        base = raw[len(LENGTH_PREFIX):]
        comparison = _COMPARISONS.get(base)
        if comparison is None or comparison.is_text:
            raise InvalidOperatorException(token)
        return Operator(token=token, comparison=comparison, length=True)

    ignore_case = raw.endswith("*")
    base = raw[:-1] if ignore_case else raw
    if ignore_case and base not in _FOLDABLE:
        raise InvalidOperatorException(token)

    negated = base.startswith("!") and base not in _COMPARISONS
    comparison = _COMPARISONS.get(base[1:] if negated else base)
    if comparison is None or (negated and not comparison.is_text):
        raise InvalidOperatorException(token)

    return Operator(token=token, comparison=comparison, negated=negated, ignore_case=ignore_case)
