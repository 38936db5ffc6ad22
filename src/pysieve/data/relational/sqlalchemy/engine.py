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
"""Query engine over SQLAlchemy ``Select`` statements."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pysieve.data.predicate import Predicate
from pysieve.data.relational.sqlalchemy.translator import PredicateTranslator, SortTranslator
from pysieve.data.sort import SortChain


class SqlAlchemyQueryEngine:
    """:class:`~pysieve.data.ports.outbound.QueryEnginePort` for ``Select`` statements.

    Building statements needs no session; :meth:`count` and :meth:`fetch`
    execute through the :class:`AsyncSession` given at construction::

        async with session_factory() as session:
            engine = SqlAlchemyQueryEngine(session)
            page = await processor.apply_async(select(User), query, User, engine=engine)
    """

    def __init__(self, session: AsyncSession | None = None) -> None:
        self._session = session

    def where(self, source: Select[Any], predicate: Predicate, entity: type) -> Select[Any]:
        return source.where(PredicateTranslator(entity).translate(predicate))

    def order_by(self, source: Select[Any], chain: SortChain, entity: type) -> Select[Any]:
        if not chain:
            return source
        return source.order_by(*SortTranslator(entity).translate(chain))

    def slice(self, source: Select[Any], offset: int, limit: int) -> Select[Any]:
        return source.offset(offset).limit(limit)

    async def count(self, source: Select[Any]) -> int:
        stmt = select(func.count()).select_from(source.order_by(None).subquery())
        result = await self._require_session().execute(stmt)
        return result.scalar_one()

    async def fetch(self, source: Select[Any]) -> list[Any]:
        result = await self._require_session().execute(source)
        return list(result.scalars().all())

    def _require_session(self) -> AsyncSession:
        if self._session is None:
            raise RuntimeError("SqlAlchemyQueryEngine needs an AsyncSession to execute statements")
        return self._session
