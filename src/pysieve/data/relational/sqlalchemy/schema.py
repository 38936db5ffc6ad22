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
"""Schema provider backed by SQLAlchemy mapper metadata.

Column attributes map to scalar members typed by the column's Python type;
``ARRAY`` columns are scalar collections, ``JSON`` columns are documents,
and relationships are navigable members (collections when ``uselist``).
"""

from __future__ import annotations

import threading
from typing import Any

from sqlalchemy import ARRAY, JSON, Enum, inspect
from sqlalchemy.orm import Mapper
from sqlalchemy.types import TypeEngine

from pysieve.data.schema import MemberInfo


def python_type(sa_type: TypeEngine[Any]) -> Any:
    """Python type of a SQLAlchemy column type, ``object`` when unknown."""
    if isinstance(sa_type, Enum) and sa_type.enum_class is not None:
        return sa_type.enum_class
    try:
        return sa_type.python_type
    except NotImplementedError:
        return object


class SqlAlchemySchema:
    """Field tables derived from ``sqlalchemy.inspect(entity)``."""

    def __init__(self) -> None:
        self._tables: dict[Any, dict[str, MemberInfo]] = {}
        self._lock = threading.Lock()

    def find_member(self, entity_type: Any, name: str) -> MemberInfo | None:
        return self.members(entity_type).get(name.lower())

    def members(self, entity_type: Any) -> dict[str, MemberInfo]:
        table = self._tables.get(entity_type)
        if table is None:
            with self._lock:
                table = self._tables.get(entity_type)
                if table is None:
                    table = self._build_table(entity_type)
                    self._tables[entity_type] = table
        return table

    @staticmethod
    def _build_table(entity_type: Any) -> dict[str, MemberInfo]:
        mapper = inspect(entity_type, raiseerr=False)
        if not isinstance(mapper, Mapper):
            return {}

        table: dict[str, MemberInfo] = {}
        for prop in mapper.column_attrs:
            column = prop.columns[0]
            table[prop.key.lower()] = _describe_column(entity_type, prop.key, column)

        for rel in mapper.relationships:
            target = rel.mapper.class_
            if rel.uselist:
                member = MemberInfo(
                    name=rel.key,
                    owner=entity_type,
                    type=list,
                    is_collection=True,
                    element_type=target,
                    is_relationship=True,
                )
            else:
                member = MemberInfo(name=rel.key, owner=entity_type, type=target, nullable=True, is_relationship=True)
            table[rel.key.lower()] = member
        return table


def _describe_column(owner: type, key: str, column: Any) -> MemberInfo:
    sa_type = column.type
    nullable = bool(getattr(column, "nullable", True))
    if isinstance(sa_type, ARRAY):
        return MemberInfo(
            name=key,
            owner=owner,
            type=list,
            nullable=nullable,
            is_collection=True,
            element_type=python_type(sa_type.item_type),
        )
    if isinstance(sa_type, JSON):
        return MemberInfo(name=key, owner=owner, type=dict, nullable=nullable, is_json=True)
    return MemberInfo(name=key, owner=owner, type=python_type(sa_type), nullable=nullable)
