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
"""Backend-neutral predicate tree produced by the filter compiler.

Nodes compose with ``&`` (AND), ``|`` (OR) and ``~`` (NOT) and are consumed
by visitors: the in-memory evaluator and the SQLAlchemy translator each
implement one ``visit_<kind>`` method per node type.

Operands name *what* is compared:

* :class:`FieldRef` -- a member chain relative to the current scope
  (the root entity, or a collection element inside :class:`ExistentialAny`).
* :class:`JsonValue` -- text extracted from a JSON document by key path.
* :class:`Length` -- string length or collection cardinality of an operand.
"""

from __future__ import annotations

from abc import ABC
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, ClassVar, Protocol, TypeVar

from pysieve.data.operators import Comparison
from pysieve.data.schema import MemberInfo

R = TypeVar("R")


# =============================================================================
# Operands
# =============================================================================


@dataclass(frozen=True)
class FieldRef:
    """A chain of member accesses, e.g. ``(author, name)`` for ``author.name``."""

    members: tuple[MemberInfo, ...]

    @property
    def member(self) -> MemberInfo:
        return self.members[-1]

    @property
    def path(self) -> str:
        return ".".join(m.name for m in self.members)

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True)
class JsonValue:
    """The text found at ``keys`` inside the JSON document held by ``document``."""

    document: FieldRef
    keys: tuple[str, ...]

    def __str__(self) -> str:
        return f"{self.document}->{'.'.join(self.keys)}"


@dataclass(frozen=True)
class Length:
    """Character count of a text operand or element count of a collection."""

    target: FieldRef | JsonValue
    of_collection: bool = False

    def __str__(self) -> str:
        return f"len({self.target})"


Operand = FieldRef | JsonValue | Length


# =============================================================================
# Visitor
# =============================================================================


class PredicateVisitor(Protocol[R]):
    def visit_compare(self, node: Compare) -> R: ...

    def visit_and(self, node: And) -> R: ...

    def visit_or(self, node: Or) -> R: ...

    def visit_not(self, node: Not) -> R: ...

    def visit_element_contains(self, node: ElementContains) -> R: ...

    def visit_existential_any(self, node: ExistentialAny) -> R: ...

    def visit_vector_match(self, node: VectorMatch) -> R: ...

    def visit_custom(self, node: CustomPredicate) -> R: ...


# =============================================================================
# Nodes
# =============================================================================


class Predicate(ABC):
    """Base class of all predicate nodes."""

    kind: ClassVar[str]

    def accept(self, visitor: PredicateVisitor[R]) -> R:
        return getattr(visitor, f"visit_{self.kind}")(self)

    def __and__(self, other: Predicate) -> Predicate:
        return And.of(self, other)

    def __or__(self, other: Predicate) -> Predicate:
        return Or.of(self, other)

    def __invert__(self) -> Predicate:
        return Not(self)


@dataclass(frozen=True)
class Compare(Predicate):
    """``left <comparison> value``, with optional case folding of both sides."""

    kind: ClassVar[str] = "compare"

    left: Operand
    comparison: Comparison
    value: Any
    ignore_case: bool = False

    def __str__(self) -> str:
        suffix = "*" if self.ignore_case else ""
        return f"{self.left} {self.comparison.value}{suffix} {self.value!r}"


@dataclass(frozen=True)
class And(Predicate):
    kind: ClassVar[str] = "and"

    children: tuple[Predicate, ...]

    @classmethod
    def of(cls, *predicates: Predicate) -> Predicate:
        """Conjunction of *predicates*, flattening nested ANDs."""
        flat: list[Predicate] = []
        for p in predicates:
            flat.extend(p.children if isinstance(p, And) else (p,))
        return flat[0] if len(flat) == 1 else cls(tuple(flat))

    def __str__(self) -> str:
        return "(" + " AND ".join(str(c) for c in self.children) + ")"


@dataclass(frozen=True)
class Or(Predicate):
    kind: ClassVar[str] = "or"

    children: tuple[Predicate, ...]

    @classmethod
    def of(cls, *predicates: Predicate) -> Predicate:
        """Disjunction of *predicates*, flattening nested ORs."""
        flat: list[Predicate] = []
        for p in predicates:
            flat.extend(p.children if isinstance(p, Or) else (p,))
        return flat[0] if len(flat) == 1 else cls(tuple(flat))

    def __str__(self) -> str:
        return "(" + " OR ".join(str(c) for c in self.children) + ")"


@dataclass(frozen=True)
class Not(Predicate):
    kind: ClassVar[str] = "not"

    child: Predicate

    def __str__(self) -> str:
        return f"NOT {self.child}"


@dataclass(frozen=True)
class ElementContains(Predicate):
    """The scalar collection ``collection`` has an element equal to ``value``."""

    kind: ClassVar[str] = "element_contains"

    collection: FieldRef
    value: Any
    ignore_case: bool = False

    def __str__(self) -> str:
        return f"{self.value!r} IN {self.collection}"


@dataclass(frozen=True)
class ExistentialAny(Predicate):
    """Some element of ``collection`` satisfies ``inner`` (evaluated on the element)."""

    kind: ClassVar[str] = "existential_any"

    collection: FieldRef
    element_type: Any
    inner: Predicate

    def __str__(self) -> str:
        return f"ANY({self.collection}: {self.inner})"


@dataclass(frozen=True)
class VectorMatch(Predicate):
    """Full-text match of ``term`` against ``field`` using ``language``."""

    kind: ClassVar[str] = "vector_match"

    field: FieldRef
    language: str
    term: str

    def __str__(self) -> str:
        return f"{self.field} @@ to_tsquery({self.language!r}, {self.term!r})"


@dataclass(frozen=True)
class CustomPredicate(Predicate):
    """A registered filter; ``func`` receives the record or the mapped class."""

    kind: ClassVar[str] = "custom"

    name: str
    func: Callable[[Any], Any]

    def __str__(self) -> str:
        return f"custom({self.name})"


def all_of(predicates: Iterable[Predicate | None]) -> Predicate | None:
    """AND of the non-``None`` predicates; ``None`` when there are none."""
    parts = [p for p in predicates if p is not None]
    return And.of(*parts) if parts else None


def any_of(predicates: Iterable[Predicate | None]) -> Predicate | None:
    """OR of the non-``None`` predicates; ``None`` when there are none."""
    parts = [p for p in predicates if p is not None]
    return Or.of(*parts) if parts else None
