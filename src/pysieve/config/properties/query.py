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
"""Query processing configuration properties."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from pysieve.core.config import config_properties


@config_properties(prefix="pysieve.query")
class QueryProperties(BaseModel):
    """Global options for descriptor compilation and pagination (pysieve.query.*).

    Attributes:
        default_page_size: Page size used when a query does not request one.
        max_page_size: Upper bound applied to every requested page size.
        default_vector_language: Full-text language for vector fields
            without their own language.
        throw_on_invalid_fields: Strict mode. When ``True`` invalid or
            restricted fields abort compilation with a typed error; when
            ``False`` the offending descriptor is ignored.
    """

    model_config = {"frozen": True}

    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)
    default_vector_language: str = Field(default="english", min_length=1)
    throw_on_invalid_fields: bool = False

    @model_validator(mode="after")
    def _check_page_bounds(self) -> QueryProperties:
        if self.default_page_size > self.max_page_size:
            raise ValueError(
                f"default_page_size ({self.default_page_size}) exceeds max_page_size ({self.max_page_size})"
            )
        return self
