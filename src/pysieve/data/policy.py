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
"""Filterable / sortable checks for dotted field paths."""

from __future__ import annotations

from typing import Any

from pysieve.data.registry import Registry
from pysieve.data.schema import SchemaProvider
from pysieve.kernel.exceptions import FieldNotFilterableException, FieldNotSortableException


class FieldPolicy:
    """Enforces ``ignore()`` registrations along a whole path.

    A path is allowed iff no registration restricts it: neither an entry for
    the full path on the root entity nor an entry for any segment on the
    type that owns that segment. Unregistered fields are allowed.
    """

    def __init__(self, schema: SchemaProvider, registry: Registry) -> None:
        self._schema = schema
        self._registry = registry

    def require_filterable(self, root: Any, path: str) -> None:
        if not self._allowed(root, path, "filterable"):
            raise FieldNotFilterableException(path)

    def require_sortable(self, root: Any, path: str) -> None:
        if not self._allowed(root, path, "sortable"):
            raise FieldNotSortableException(path)

    def _allowed(self, root: Any, path: str, attribute: str) -> bool:
        config = self._registry.get(root, path)
        if config is not None and not getattr(config, attribute):
            return False

        current = root
        for part in path.split("."):
            config = self._registry.get(current, part)
            if config is not None and not getattr(config, attribute):
                return False
            member = self._schema.find_member(current, part)
            if member is None:
                # Unknown segments are reported by the resolver.
                return True
            current = member.element_type if member.is_collection else member.type
        return True
