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
"""Query engine over in-memory sequences."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, TypeVar

from pysieve.data.memory.evaluator import PredicateEvaluator
from pysieve.data.predicate import Predicate
from pysieve.data.sort import SortChain

T = TypeVar("T")


class MemoryQueryEngine:
    """:class:`~pysieve.data.ports.outbound.QueryEnginePort` for lists of records.

    Any iterable is accepted as a source; every step materializes a new list.
    :meth:`count` consumes its source, so a one-shot iterator must be turned
    into a list before it is both counted and fetched.
    """

    def __init__(self, evaluator: PredicateEvaluator | None = None) -> None:
        self._evaluator = evaluator or PredicateEvaluator()

    def where(self, source: Iterable[T], predicate: Predicate, entity: type) -> list[T]:
        return [record for record in source if self._evaluator.matches(predicate, record)]

    def order_by(self, source: Iterable[T], chain: SortChain, entity: type) -> list[T]:
        return chain.sort(source, self._evaluator.read_key)

    def slice(self, source: Iterable[T], offset: int, limit: int) -> list[T]:
        return list(source)[offset : offset + limit]

    async def count(self, source: Iterable[Any]) -> int:
        return len(list(source))

    async def fetch(self, source: Iterable[T]) -> list[T]:
        return list(source)
