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
"""Predicate evaluation over plain Python objects.

Comparisons follow Python semantics with one exception: ordering a value
against ``None`` or an incomparable type is simply false, so a record with
a missing value never matches ``>``/``<`` filters.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping, Sequence
from typing import Any

from pysieve.data.operators import Comparison
from pysieve.data.predicate import (
    And,
    Compare,
    CustomPredicate,
    ElementContains,
    ExistentialAny,
    FieldRef,
    JsonValue,
    Length,
    Not,
    Operand,
    Or,
    Predicate,
    VectorMatch,
)
from pysieve.data.sort import CustomKey, SortKey

_WORD = re.compile(r"\w+", re.UNICODE)


def read_operand(operand: Operand, record: Any) -> Any:
    """Read *operand* from *record*; a ``None`` anywhere on the way yields ``None``."""
    if isinstance(operand, FieldRef):
        value = record
        for member in operand.members:
            if value is None:
                return None
            value = member.get(value)
        return value
    if isinstance(operand, JsonValue):
        return json_text(read_operand(operand.document, record), operand.keys)
    if isinstance(operand, Length):
        value = read_operand(operand.target, record)
        return None if value is None else len(value)
    raise TypeError(f"Unsupported operand: {operand!r}")


def json_text(document: Any, keys: Sequence[str]) -> str | None:
    """Text at *keys* inside *document* (a mapping or JSON text), or ``None``."""
    if isinstance(document, str | bytes):
        try:
            document = json.loads(document)
        except json.JSONDecodeError:
            return None
    value = document
    for key in keys:
        if isinstance(value, Mapping):
            if key not in value:
                return None
            value = value[key]
        elif isinstance(value, list) and key.isdigit() and int(key) < len(value):
            value = value[int(key)]
        else:
            return None
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value)


def _fold(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


def _order(comparison: Comparison, left: Any, right: Any) -> bool:
    if left is None or right is None:
        return False
    try:
        if comparison is Comparison.GT:
            return left > right
        if comparison is Comparison.LT:
            return left < right
        if comparison is Comparison.GE:
            return left >= right
        return left <= right
    except TypeError:
        return False


def _text(comparison: Comparison, left: Any, right: Any) -> bool:
    if not isinstance(left, str) or right is None:
        return False
    needle = str(right)
    if comparison is Comparison.CONTAINS:
        return needle in left
    if comparison is Comparison.STARTS_WITH:
        return left.startswith(needle)
    return left.endswith(needle)


def term_match(text: str, query: str) -> bool:
    """Approximate ``text @@ to_tsquery(query)`` without stemming.

    ``|`` separates alternatives; within an alternative every term (split on
    ``&`` or whitespace) must occur as a word. A trailing ``:*`` makes a
    term match word prefixes.
    """
    words = {w.lower() for w in _WORD.findall(text)}
    for alternative in query.split("|"):
        terms = [t.strip().lower() for t in re.split(r"[&\s]+", alternative) if t.strip()]
        if terms and all(_term_in(term, words) for term in terms):
            return True
    return False


def _term_in(term: str, words: set[str]) -> bool:
    if term.endswith(":*"):
        prefix = term[:-2]
        return any(w.startswith(prefix) for w in words)
    return term.strip("'\"") in words


class PredicateEvaluator:
    """Visitor deciding whether a single record satisfies a predicate."""

    def matches(self, predicate: Predicate, record: Any) -> bool:
        return bool(predicate.accept(_Evaluation(self, record)))

    def read_key(self, key: SortKey, record: Any) -> Any:
        """Value of a sort key for *record*, as used by :meth:`SortChain.sort`."""
        if isinstance(key.key, CustomKey):
            return key.key.func(record)
        return read_operand(key.key, record)


class _Evaluation:
    def __init__(self, evaluator: PredicateEvaluator, record: Any) -> None:
        self._evaluator = evaluator
        self._record = record

    def visit_compare(self, node: Compare) -> bool:
        left = read_operand(node.left, self._record)
        right = node.value
        if node.ignore_case:
            left, right = _fold(left), _fold(right)
        comparison = node.comparison
        if comparison is Comparison.EQ:
            return left == right
        if comparison is Comparison.NE:
            return left != right
        if comparison.is_ordering:
            return _order(comparison, left, right)
        return _text(comparison, left, right)

    def visit_and(self, node: And) -> bool:
        return all(child.accept(self) for child in node.children)

    def visit_or(self, node: Or) -> bool:
        return any(child.accept(self) for child in node.children)

    def visit_not(self, node: Not) -> bool:
        return not node.child.accept(self)

    def visit_element_contains(self, node: ElementContains) -> bool:
        elements = read_operand(node.collection, self._record)
        if elements is None:
            return False
        if node.ignore_case:
            wanted = _fold(node.value)
            return any(_fold(e) == wanted for e in elements)
        return node.value in elements

    def visit_existential_any(self, node: ExistentialAny) -> bool:
        elements = read_operand(node.collection, self._record)
        if elements is None:
            return False
        return any(self._evaluator.matches(node.inner, element) for element in elements)

    def visit_vector_match(self, node: VectorMatch) -> bool:
        text = read_operand(node.field, self._record)
        if text is None:
            return False
        return term_match(str(text), node.term)

    def visit_custom(self, node: CustomPredicate) -> bool:
        return bool(node.func(self._record))
