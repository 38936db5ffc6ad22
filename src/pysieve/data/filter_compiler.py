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
"""Filter descriptor compiler: descriptors in, backend-neutral predicate out.

Restricted fields raise :class:`FieldNotFilterableException` first, for
every leaf kind, vector, JSON and length leaves included. Each permitted
leaf is then dispatched in this order:

1. ``vector`` leaves become :class:`VectorMatch` nodes OR-combined per value.
   The language is the one registered for the full path on the root
   entity, else for the member on its owning type, else the default.
2. ``json`` leaves compare the text at a key path inside a JSON document.
3. ``len`` operators compare string length or collection cardinality.
4. Registered custom filters replace the operator and values entirely.
5. Paths through a collection become :class:`ExistentialAny` nodes.
6. Everything else is a direct comparison of the member against the
   converted values.

Top-level leaves combine with AND; an :class:`OrGroup` combines its
children with OR. In lenient mode a leaf that fails to compile is dropped
and a ``filter_skipped`` event is logged; malformed JSON paths are always
raised.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import structlog

from pysieve.config.properties.query import QueryProperties
from pysieve.data.coercion import coerce_value
from pysieve.data.descriptor import Filter, FilterLeaf, OrGroup
from pysieve.data.operators import Comparison, Operator, parse_operator
from pysieve.data.policy import FieldPolicy
from pysieve.data.predicate import (
    Compare,
    CustomPredicate,
    ElementContains,
    ExistentialAny,
    FieldRef,
    JsonValue,
    Length,
    Not,
    Predicate,
    VectorMatch,
    all_of,
    any_of,
)
from pysieve.data.registry import Registry
from pysieve.data.resolver import AnyElement, FieldPath, FieldResolver
from pysieve.data.schema import MemberInfo, SchemaProvider
from pysieve.kernel.exceptions import (
    CompileFailureException,
    InvalidJsonPathException,
    SieveException,
)

logger = structlog.get_logger("pysieve.data.compiler")

LeafBuilder = Callable[[FieldRef], Predicate | None]


def split_json_path(path: str) -> list[str]:
    """Split ``column.key[.key...]``, rejecting paths with fewer than two segments."""
    parts = path.split(".")
    if len(parts) < 2 or any(not p.strip() for p in parts):
        raise InvalidJsonPathException(path)
    return [p.strip() for p in parts]


def holds_json(member: MemberInfo) -> bool:
    """Whether *member* can hold a JSON document (mapping or JSON text)."""
    return member.is_json or member.type is str or member.type is object


class PredicateCompiler:
    """Compile filter descriptors for one schema/registry pair."""

    def __init__(self, schema: SchemaProvider, registry: Registry, properties: QueryProperties) -> None:
        self._resolver = FieldResolver(schema)
        self._policy = FieldPolicy(schema, registry)
        self._registry = registry
        self._properties = properties

    def compile(
        self,
        filters: Sequence[Filter] | None,
        root: type,
        strict: bool | None = None,
    ) -> Predicate | None:
        """Compile *filters* against *root*; ``None`` means "match everything"."""
        if strict is None:
            strict = self._properties.throw_on_invalid_fields
        predicate = all_of(self._compile_filter(f, root, strict) for f in filters or ())
        if predicate is not None:
            logger.debug("filters_compiled", entity=root.__name__, predicate=str(predicate))
        return predicate

    def _compile_filter(self, descriptor: Filter, root: type, strict: bool) -> Predicate | None:
        if isinstance(descriptor, OrGroup):
            return any_of(self._compile_filter(child, root, strict) for child in descriptor.filters)
        try:
            return self._compile_leaf(descriptor, root)
        except InvalidJsonPathException:
            raise
        except SieveException as exc:
            if strict:
                raise
            logger.debug(
                "filter_skipped",
                entity=root.__name__,
                field=descriptor.field,
                operator=descriptor.operator,
                code=exc.code,
                reason=str(exc),
            )
            return None

    def _compile_leaf(self, leaf: FilterLeaf, root: type) -> Predicate | None:
        path = (leaf.field or "").strip()
        if not path:
            raise CompileFailureException("Filter leaf has no field", context={"entity_type": root.__name__})
        if leaf.json:
            split_json_path(path)

        self._policy.require_filterable(root, path)

        if leaf.vector:
            return self._compile_vector(leaf, path, root)
        if leaf.json:
            return self._compile_json(leaf, path, root)

        operator = parse_operator(leaf.operator)
        if operator.length:
            return self._compile_length(leaf, path, operator, root)

        custom = self._registry.get_custom_filter(root, path)
        if custom is not None:
            return CustomPredicate(path, custom)

        field_path = self._resolver.resolve(root, path)
        return self._on_path(field_path, lambda ref: self._compare_member(ref, operator, leaf.values or ()))

    # ------------------------------------------------------------------
    # Leaf kinds
    # ------------------------------------------------------------------

    def _compile_vector(self, leaf: FilterLeaf, path: str, root: type) -> Predicate | None:
        field_path = self._resolver.resolve(root, path)
        terms = [str(v) for v in leaf.values or () if v is not None and str(v) != ""]
        if not terms:
            return None

        def build(ref: FieldRef) -> Predicate | None:
            language = self._vector_language(root, path, ref.member)
            return any_of(VectorMatch(ref, language, term) for term in terms)

        return self._on_path(field_path, build)

    def _compile_json(self, leaf: FilterLeaf, path: str, root: type) -> Predicate | None:
        column, *keys = split_json_path(path)
        member = self._resolver.resolve_member(root, column)
        if not holds_json(member):
            raise CompileFailureException(
                f"Field '{member.name}' does not hold a JSON document",
                context={"path": path, "entity_type": root.__name__},
            )
        operand = JsonValue(FieldRef((member,)), tuple(keys))
        operator = parse_operator(leaf.operator)
        if operator.length:
            return self._compare_length(Length(operand), operator, leaf.values or ())
        return self._compare_operand(operand, str, True, operator, leaf.values or ())

    def _compile_length(self, leaf: FilterLeaf, path: str, operator: Operator, root: type) -> Predicate | None:
        field_path = self._resolver.resolve(root, path)

        def build(ref: FieldRef) -> Predicate | None:
            member = ref.member
            if member.is_collection:
                return self._compare_length(Length(ref, of_collection=True), operator, leaf.values or ())
            if member.type is str:
                return self._compare_length(Length(ref), operator, leaf.values or ())
            logger.debug("length_unsupported", field=ref.path, type=getattr(member.type, "__name__", str(member.type)))
            return None

        return self._on_path(field_path, build)

    # ------------------------------------------------------------------
    # Comparisons
    # ------------------------------------------------------------------

    def _on_path(self, field_path: FieldPath, build: LeafBuilder) -> Predicate | None:
        """Apply *build* at the end of *field_path*, wrapping collection hops in ANY."""
        members: list[MemberInfo] = []
        for segment in field_path.segments:
            if isinstance(segment, AnyElement):
                inner = self._on_path(segment.rest, build)
                if inner is None:
                    return None
                return ExistentialAny(FieldRef((*members, segment.member)), segment.element_type, inner)
            members.append(segment.member)
        return build(FieldRef(tuple(members)))

    def _compare_member(self, ref: FieldRef, operator: Operator, values: Sequence[Any]) -> Predicate | None:
        member = ref.member
        if member.is_collection:
            return self._element_membership(ref, operator, values)
        if member.is_json:
            raise CompileFailureException(
                f"Field '{ref.path}' holds a JSON document; filter it with a JSON path",
                context={"path": ref.path},
            )
        return self._compare_operand(ref, member.type, member.nullable, operator, values)

    def _compare_operand(
        self,
        operand: FieldRef | JsonValue,
        target: Any,
        nullable: bool,
        operator: Operator,
        values: Sequence[Any],
    ) -> Predicate | None:
        comparison = operator.comparison
        if comparison.is_text and target not in (str, object):
            raise CompileFailureException(
                f"Operator '{operator.token}' requires a text field, '{operand}' is not one",
                context={"path": str(operand), "operator": operator.token},
            )
        ignore_case = operator.ignore_case and target in (str, object)

        parts: list[Predicate] = []
        for raw in values:
            value = coerce_value(raw, target)
            if value is None and (not nullable or comparison.is_ordering or comparison.is_text):
                continue
            node: Predicate = Compare(operand, comparison, value, ignore_case=ignore_case)
            parts.append(Not(node) if operator.negated else node)
        return all_of(parts) if operator.combine_with_and else any_of(parts)

    def _element_membership(self, ref: FieldRef, operator: Operator, values: Sequence[Any]) -> Predicate | None:
        member = ref.member
        if operator.comparison is not Comparison.CONTAINS or member.is_relationship:
            raise CompileFailureException(
                f"Operator '{operator.token}' cannot be applied to collection field '{ref.path}'",
                context={"path": ref.path, "operator": operator.token},
            )
        ignore_case = operator.ignore_case and member.element_type in (str, object)
        parts: list[Predicate] = []
        for raw in values:
            value = coerce_value(raw, member.element_type)
            if value is None:
                continue
            node: Predicate = ElementContains(ref, value, ignore_case=ignore_case)
            parts.append(Not(node) if operator.negated else node)
        return any_of(parts)

    @staticmethod
    def _compare_length(operand: Length, operator: Operator, values: Sequence[Any]) -> Predicate | None:
        if not values:
            return None
        count = coerce_value(values[0], int)
        if count is None:
            return None
        return Compare(operand, operator.comparison, count)

    def _vector_language(self, root: type, path: str, member: MemberInfo) -> str:
        for config in (self._registry.get(root, path), self._registry.get(member.owner, member.name)):
            if config is not None and config.vector_language:
                return config.vector_language
        return self._properties.default_vector_language
