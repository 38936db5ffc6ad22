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
"""Dotted field path resolution against a schema.

``FieldResolver.resolve(User, "comments.post.title")`` walks the path one
segment at a time, matching names case-insensitively. When a segment before
the last one is a collection (``comments``), the rest of the path is
resolved against the element type and wrapped in :class:`AnyElement`: a
predicate built on that remainder holds for the record iff it holds for at
least one element.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pysieve.data.schema import MemberInfo, SchemaProvider
from pysieve.kernel.exceptions import FieldNotFoundException


@dataclass(frozen=True)
class MemberAccess:
    """Plain member access on the current type."""

    member: MemberInfo


@dataclass(frozen=True)
class AnyElement:
    """Existential step: the remainder applies to some element of ``member``."""

    member: MemberInfo
    element_type: Any
    rest: FieldPath


Segment = MemberAccess | AnyElement


@dataclass(frozen=True)
class FieldPath:
    """A dotted path resolved against ``root``.

    An :class:`AnyElement` segment, when present, is always the last segment
    of its level; the members after it live in ``AnyElement.rest``.
    """

    root: Any
    path: str
    segments: tuple[Segment, ...]

    @property
    def crosses_collection(self) -> bool:
        """Whether resolution passed through a collection-valued segment."""
        return any(isinstance(s, AnyElement) for s in self.segments)

    @property
    def terminal(self) -> MemberInfo:
        """The member the path finally lands on."""
        last = self.segments[-1]
        if isinstance(last, AnyElement):
            return last.rest.terminal
        return last.member

    @property
    def members(self) -> tuple[MemberInfo, ...]:
        """Members accessed on ``root`` before any existential step (inclusive)."""
        return tuple(s.member for s in self.segments)


class FieldResolver:
    """Resolve dotted paths into :class:`FieldPath` values using a schema provider."""

    def __init__(self, schema: SchemaProvider) -> None:
        self._schema = schema

    def resolve(self, root: Any, path: str) -> FieldPath:
        """Resolve *path* against *root*.

        Raises:
            FieldNotFoundException: For the first segment that does not exist,
                carrying the segment name and the type it was looked up on.
        """
        parts = path.split(".")
        current = root
        segments: list[Segment] = []
        for index, part in enumerate(parts):
            member = self.resolve_member(current, part)
            remaining = parts[index + 1 :]
            if member.is_collection and remaining:
                rest = self.resolve(member.element_type, ".".join(remaining))
                segments.append(AnyElement(member, member.element_type, rest))
                break
            segments.append(MemberAccess(member))
            current = member.type
        return FieldPath(root=root, path=path, segments=tuple(segments))

    def resolve_member(self, entity_type: Any, name: str) -> MemberInfo:
        """Resolve a single member name on *entity_type*."""
        member = self._schema.find_member(entity_type, name.strip()) if name.strip() else None
        if member is None:
            raise FieldNotFoundException(name, entity_type if isinstance(entity_type, type) else type(entity_type))
        return member
