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
"""Paged query results."""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from pysieve.data.pageable import PageRequest

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of records plus the size of the whole filtered set.

    Attributes:
        items: Records on this page, in sort order.
        total: Number of records matching the filters, before pagination.
        page: 1-based page number.
        size: Page size the records were sliced with.
    """

    items: Sequence[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    size: int = 10

    @classmethod
    def of(cls, items: Sequence[T], total: int, request: PageRequest) -> Page[T]:
        return cls(items=list(items), total=total, page=request.page, size=request.size)

    @property
    def total_pages(self) -> int:
        """``ceil(total / size)``; zero when the size is not positive."""
        if self.size <= 0:
            return 0
        return math.ceil(self.total / self.size)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    def map(self, func: Callable[[T], U]) -> Page[U]:
        """Apply *func* to every record, keeping the paging metadata."""
        return Page(items=[func(item) for item in self.items], total=self.total, page=self.page, size=self.size)
