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
"""Translation of predicate trees and sort chains into SQLAlchemy expressions.

Navigation rules:

* a scalar relationship hop becomes ``relationship.has(...)`` in filters and
  a correlated scalar subquery in ORDER BY;
* :class:`ExistentialAny` over a relationship becomes ``relationship.any(...)``;
* element membership on an ``ARRAY`` column becomes ``:value = ANY(column)``;
* JSON values are read with ``column[path].as_string()``;
* lengths use ``length()``, ``cardinality()``, or a correlated ``count(*)``;
* vector matches render ``column @@ to_tsquery(language, term)``.

The full-text and ``ARRAY`` forms are PostgreSQL-specific.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from sqlalchemy import JSON, and_, any_, cast, func, literal, not_, or_, select, type_coerce
from sqlalchemy.dialects.postgresql import REGCONFIG
from sqlalchemy.sql.elements import ColumnElement

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
from pysieve.data.schema import MemberInfo
from pysieve.data.sort import CustomKey, SortChain
from pysieve.kernel.exceptions import CompileFailureException

ClauseBuilder = Callable[[Any], ColumnElement[Any]]


def json_path(column: Any, keys: Sequence[str]) -> ColumnElement[Any]:
    """Text at *keys* inside the JSON held by *column*."""
    expression = getattr(column, "expression", column)
    document = column if isinstance(getattr(expression, "type", None), JSON) else type_coerce(column, JSON)
    element = document[keys[0]] if len(keys) == 1 else document[tuple(keys)]
    return element.as_string()


def count_related(attribute: Any) -> ColumnElement[int]:
    """Correlated ``count(*)`` of the rows reachable through a collection relationship."""
    prop = attribute.property
    source = prop.secondary if prop.secondary is not None else prop.target
    return select(func.count()).select_from(source).where(prop.primaryjoin).scalar_subquery()


def navigate(scope: Any, members: Sequence[MemberInfo], build: ClauseBuilder) -> ColumnElement[Any]:
    """Walk *members* from *scope*, wrapping scalar relationship hops in ``has()``."""
    head, *rest = members
    attribute = getattr(scope, head.name)
    if not rest:
        return build(attribute)
    if not head.is_relationship:
        raise CompileFailureException(
            f"Cannot navigate through non-relationship member '{head.name}'",
            context={"member": head.name},
        )
    return attribute.has(navigate(head.type, rest, build))


def compare_clause(
    expression: Any,
    comparison: Comparison,
    value: Any,
    ignore_case: bool = False,
    nullable: bool = False,
) -> ColumnElement[bool]:
    """``expression <comparison> value`` with null handling matching Python ``==``/``!=``."""
    if ignore_case:
        expression = func.lower(expression)
        if isinstance(value, str):
            value = value.lower()
    if comparison is Comparison.EQ:
        return expression.is_(None) if value is None else expression == value
    if comparison is Comparison.NE:
        if value is None:
            return expression.is_not(None)
        clause = expression != value
        return or_(clause, expression.is_(None)) if nullable else clause
    if comparison is Comparison.GT:
        return expression > value
    if comparison is Comparison.LT:
        return expression < value
    if comparison is Comparison.GE:
        return expression >= value
    if comparison is Comparison.LE:
        return expression <= value
    if comparison is Comparison.CONTAINS:
        return expression.contains(value, autoescape=True)
    if comparison is Comparison.STARTS_WITH:
        return expression.startswith(value, autoescape=True)
    return expression.endswith(value, autoescape=True)


def is_nullable(operand: Operand) -> bool:
    if isinstance(operand, FieldRef):
        return any(m.nullable for m in operand.members)
    if isinstance(operand, JsonValue):
        return True
    if isinstance(operand.target, FieldRef) and operand.target.member.is_relationship:
        return False
    return is_nullable(operand.target)


class PredicateTranslator:
    """Translate a :class:`Predicate` into a WHERE clause on *entity*."""

    def __init__(self, entity: type) -> None:
        self._entity = entity

    def translate(self, predicate: Predicate) -> ColumnElement[bool]:
        return predicate.accept(_Translation(self._entity))


class _Translation:
    def __init__(self, scope: Any) -> None:
        self._scope = scope

    def _with_operand(self, operand: Operand, apply: ClauseBuilder) -> ColumnElement[Any]:
        if isinstance(operand, FieldRef):
            return navigate(self._scope, operand.members, apply)
        if isinstance(operand, JsonValue):
            return navigate(self._scope, operand.document.members, lambda col: apply(json_path(col, operand.keys)))
        target = operand.target
        if isinstance(target, JsonValue):
            return navigate(
                self._scope,
                target.document.members,
                lambda col: apply(func.length(json_path(col, target.keys))),
            )
        return navigate(self._scope, target.members, lambda col: apply(self._length(col, target.member)))

    @staticmethod
    def _length(attribute: Any, member: MemberInfo) -> ColumnElement[int]:
        if member.is_relationship:
            return count_related(attribute)
        if member.is_collection:
            return func.cardinality(attribute)
        return func.length(attribute)

    def visit_compare(self, node: Compare) -> ColumnElement[bool]:
        nullable = is_nullable(node.left)
        return self._with_operand(
            node.left,
            lambda expr: compare_clause(expr, node.comparison, node.value, node.ignore_case, nullable),
        )

    def visit_and(self, node: And) -> ColumnElement[bool]:
        return and_(*(child.accept(self) for child in node.children))

    def visit_or(self, node: Or) -> ColumnElement[bool]:
        return or_(*(child.accept(self) for child in node.children))

    def visit_not(self, node: Not) -> ColumnElement[bool]:
        child = node.child
        if isinstance(child, Compare) and child.comparison.is_text and is_nullable(child.left):
            # A missing value never contains anything, so NOT(...) holds for it.
            return self._with_operand(
                child.left,
                lambda expr: or_(
                    not_(compare_clause(expr, child.comparison, child.value, child.ignore_case)),
                    expr.is_(None),
                ),
            )
        return not_(child.accept(self))

    def visit_element_contains(self, node: ElementContains) -> ColumnElement[bool]:
        def build(column: Any) -> ColumnElement[bool]:
            if node.ignore_case and isinstance(node.value, str):
                element = func.unnest(column).column_valued("element")
                return select(element).where(func.lower(element) == node.value.lower()).exists()
            return literal(node.value) == any_(column)

        return navigate(self._scope, node.collection.members, build)

    def visit_existential_any(self, node: ExistentialAny) -> ColumnElement[bool]:
        inner = node.inner.accept(_Translation(node.element_type))
        return navigate(self._scope, node.collection.members, lambda attribute: attribute.any(inner))

    def visit_vector_match(self, node: VectorMatch) -> ColumnElement[bool]:
        return navigate(
            self._scope,
            node.field.members,
            lambda column: column.op("@@", is_comparison=True)(
                func.to_tsquery(cast(node.language, REGCONFIG), node.term)
            ),
        )

    def visit_custom(self, node: CustomPredicate) -> ColumnElement[bool]:
        return node.func(self._scope)


def scalar_path(scope: Any, members: Sequence[MemberInfo], build: ClauseBuilder) -> ColumnElement[Any]:
    """Sortable expression for *members*; scalar relationship hops become correlated subqueries."""
    head, *rest = members
    attribute = getattr(scope, head.name)
    if not rest:
        return build(attribute)
    if not head.is_relationship:
        raise CompileFailureException(
            f"Cannot navigate through non-relationship member '{head.name}'",
            context={"member": head.name},
        )
    inner = scalar_path(head.type, rest, build)
    return select(inner).where(attribute.property.primaryjoin).scalar_subquery()


class SortTranslator:
    """Translate a :class:`SortChain` into ORDER BY clauses on *entity*.

    Ascending keys sort nulls last and descending keys sort nulls first.
    """

    def __init__(self, entity: type) -> None:
        self._entity = entity

    def translate(self, chain: SortChain) -> list[ColumnElement[Any]]:
        clauses: list[ColumnElement[Any]] = []
        for key in chain:
            expression = self._expression(key.key)
            clauses.append(expression.desc().nulls_first() if key.descending else expression.asc().nulls_last())
        return clauses

    def _expression(self, key: FieldRef | JsonValue | CustomKey) -> Any:
        if isinstance(key, CustomKey):
            return key.func(self._entity)
        if isinstance(key, JsonValue):
            return scalar_path(self._entity, key.document.members, lambda column: json_path(column, key.keys))
        return scalar_path(self._entity, key.members, lambda column: column)
