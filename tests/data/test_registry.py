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
"""Tests for the field configuration registry and its builders."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from pysieve.data.policy import FieldPolicy
from pysieve.data.registry import FieldConfig, Registry, RegistryBuilder
from pysieve.data.schema import TypeHintSchema
from pysieve.kernel.exceptions import FieldNotFilterableException, FieldNotSortableException


@dataclass
class Line:
    sku: str
    cost: float


@dataclass
class Order:
    reference: str
    note: str = ""
    total: float = 0.0
    lines: list[Line] = field(default_factory=list)


@pytest.fixture
def schema() -> TypeHintSchema:
    return TypeHintSchema()


class TestEntityConfigurationBuilder:
    def test_ignore_both_by_default(self, schema):
        builder = RegistryBuilder(schema)
        builder.entity(Order).ignore("note")
        config = builder.build().get(Order, "NOTE")
        assert config == FieldConfig(name="note", sortable=False, filterable=False)

    def test_ignore_sorting_only(self, schema):
        builder = RegistryBuilder(schema)
        builder.entity(Order).ignore("total", sorts=True, filter=False)
        config = builder.build().get(Order, "total")
        assert not config.sortable
        assert config.filterable

    def test_ignore_accumulates(self, schema):
        builder = RegistryBuilder(schema)
        builder.entity(Order).ignore("total", sorts=True, filter=False).ignore("total", sorts=False, filter=True)
        config = builder.build().get(Order, "total")
        assert not config.sortable
        assert not config.filterable

    def test_as_vector_and_alias(self, schema):
        builder = RegistryBuilder(schema)
        builder.entity(Order).as_vector("Note", "simple").has_alias("note", "comment")
        config = builder.build().get(Order, "note")
        assert config.is_vector
        assert config.vector_language == "simple"
        assert config.alias == "comment"
        assert config.sortable and config.filterable

    def test_as_vector_without_language_uses_global_default(self, schema):
        builder = RegistryBuilder(schema)
        builder.entity(Order).as_vector("note")
        assert builder.build().get(Order, "note").vector_language is None

    def test_dotted_paths_are_validated(self, schema):
        builder = RegistryBuilder(schema)
        builder.entity(Order).ignore("lines.cost")
        assert builder.build().get(Order, "Lines.Cost").name == "lines.cost"

    def test_unknown_field_is_value_error(self, schema):
        builder = RegistryBuilder(schema)
        with pytest.raises(ValueError, match="customer"):
            builder.entity(Order).ignore("customer")

    def test_custom_keys_are_case_insensitive(self, schema):
        builder = RegistryBuilder(schema)
        big = lambda o: o.total > 100  # noqa: E731
        builder.entity(Order).add_filter("IsBig", big).add_sort("Lines", lambda o: len(o.lines))
        registry = builder.build()
        assert registry.get_custom_filter(Order, "isbig") is big
        assert registry.get_custom_sort(Order, "LINES") is not None

    def test_blank_custom_key(self, schema):
        with pytest.raises(ValueError):
            RegistryBuilder(schema).entity(Order).add_filter(" ", lambda o: True)

    def test_entity_builder_is_reused(self, schema):
        builder = RegistryBuilder(schema)
        assert builder.entity(Order) is builder.entity(Order)


class TestRegistry:
    def test_unregistered_lookups(self):
        registry = Registry()
        assert registry.get(Order, "note") is None
        assert registry.get_custom_filter(Order, "x") is None
        assert registry.get_custom_sort(Order, "x") is None
        assert registry.entity(Order) is None

    def test_snapshot_is_read_only(self, schema):
        builder = RegistryBuilder(schema)
        builder.entity(Order).ignore("note")
        registry = builder.build()
        with pytest.raises(TypeError):
            registry.entity(Order).fields["total"] = FieldConfig("total")  # type: ignore[index]

    def test_building_again_does_not_change_snapshot(self, schema):
        builder = RegistryBuilder(schema)
        builder.entity(Order).ignore("note")
        first = builder.build()
        builder.entity(Order).ignore("total")
        assert first.get(Order, "total") is None


class TestFieldPolicy:
    @pytest.fixture
    def policy(self, schema) -> FieldPolicy:
        builder = RegistryBuilder(schema)
        builder.entity(Order).ignore("note").ignore("lines.sku", sorts=False, filter=True)
        builder.entity(Line).ignore("cost", sorts=True, filter=False)
        return FieldPolicy(schema, builder.build())

    def test_root_field(self, policy):
        with pytest.raises(FieldNotFilterableException):
            policy.require_filterable(Order, "note")
        with pytest.raises(FieldNotSortableException):
            policy.require_sortable(Order, "note")

    def test_full_path_registration(self, policy):
        with pytest.raises(FieldNotFilterableException):
            policy.require_filterable(Order, "lines.sku")

    def test_segment_registration_on_owner(self, policy):
        with pytest.raises(FieldNotSortableException):
            policy.require_sortable(Order, "lines.cost")
        policy.require_filterable(Order, "lines.cost")

    def test_unregistered_fields_are_allowed(self, policy):
        policy.require_filterable(Order, "reference")
        policy.require_sortable(Order, "total")
        policy.require_filterable(Order, "does.not.exist")
