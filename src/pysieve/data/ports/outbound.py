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
"""Outbound port: the query backend a processor drives."""

from __future__ import annotations

from typing import Any, Protocol, TypeVar, runtime_checkable

from pysieve.data.predicate import Predicate
from pysieve.data.sort import SortChain

S = TypeVar("S")


@runtime_checkable
class QueryEnginePort(Protocol[S]):
    """Applies compiled predicates, sort chains, and slices to a query source.

    ``S`` is the backend's query representation: a list of records for the
    in-memory engine, a ``sqlalchemy.Select`` for the relational one.
    Every method returns a new source and leaves its input untouched.
    """

    def where(self, source: S, predicate: Predicate, entity: type) -> S: ...

    def order_by(self, source: S, chain: SortChain, entity: type) -> S: ...

    def slice(self, source: S, offset: int, limit: int) -> S: ...

    async def count(self, source: S) -> int: ...

    async def fetch(self, source: S) -> list[Any]: ...
