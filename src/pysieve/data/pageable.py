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
"""Normalized pagination request."""

from __future__ import annotations

from dataclasses import dataclass

from pysieve.config.properties.query import QueryProperties


@dataclass(frozen=True)
class PageRequest:
    """A 1-based page number and a page size, both already clamped."""

    page: int = 1
    size: int = 10

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.size < 1:
            raise ValueError(f"size must be >= 1, got {self.size}")

    @staticmethod
    def of(page: int | None, size: int | None, properties: QueryProperties) -> PageRequest:
        """Normalize a requested page/size pair.

        A missing or non-positive page becomes 1. The size defaults to
        ``default_page_size``, is capped at ``max_page_size``, and falls back
        to the default when the result is below 1.
        """
        number = page if page is not None and page >= 1 else 1
        wanted = size if size is not None else properties.default_page_size
        wanted = min(wanted, properties.max_page_size)
        if wanted < 1:
            wanted = properties.default_page_size
        return PageRequest(page=number, size=wanted)

    @property
    def offset(self) -> int:
        """Number of records skipped before this page."""
        return (self.page - 1) * self.size

    def next(self) -> PageRequest:
        return PageRequest(page=self.page + 1, size=self.size)

    def previous(self) -> PageRequest:
        return PageRequest(page=max(1, self.page - 1), size=self.size)
