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
"""Tests for SortCompiler and SortChain ordering in memory."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from pysieve.config.properties.query import QueryProperties
from pysieve.data.descriptor import SortDescriptor
from pysieve.data.memory import MemoryQueryEngine
from pysieve.data.predicate import FieldRef, JsonValue
from pysieve.data.registry import RegistryBuilder
from pysieve.data.schema import TypeHintSchema
from pysieve.data.sort import CustomKey, SortChain, compare_values
from pysieve.data.sort_compiler import SortCompiler
from pysieve.kernel.exceptions import (
    FieldNotFoundException,
    FieldNotSortableException,
    InvalidJsonPathException,
)

# ---------------------------------------------------------------------------
# Test entities
# ---------------------------------------------------------------------------


@dataclass
class Team:
    name: str


@dataclass
class Player:
    name: str
    score: int
    level: int | None = None
    team: Team | None = None
    meta: dict = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    secret: str = ""


def _players() -> list[Player]:
    return [
        Player("dora", 10, 2, Team("red"), {"rank": "b"}),
        Player("abe", 20, None, Team("blue"), {"rank": "a"}),
        Player("cleo", 10, 1, None, {}),
        Player("bea", 20, 3, Team("green"), {"rank": "c"}),
        Player("ed", 5, None, Team("amber")),
    ]


@pytest.fixture
def schema() -> TypeHintSchema:
    return TypeHintSchema()


@pytest.fixture
def compiler(schema) -> SortCompiler:
    registry = RegistryBuilder(schema)
    (
        registry.entity(Player)
        .ignore("secret", sorts=True, filter=False)
        .add_sort("name_length", lambda p: len(p.name))
    )
    return SortCompiler(schema, registry.build(), QueryProperties())


def _order(compiler: SortCompiler, *sorts: SortDescriptor, strict: bool | None = None) -> list[str]:
    chain = compiler.compile(list(sorts), Player, strict=strict)
    return [p.name for p in MemoryQueryEngine().order_by(_players(), chain, Player)]


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestSortOrdering:
    def test_ascending(self, compiler):
        assert _order(compiler, SortDescriptor("name")) == ["abe", "bea", "cleo", "dora", "ed"]

    def test_descending_any_case(self, compiler):
        assert _order(compiler, SortDescriptor("name", "DESC")) == ["ed", "dora", "cleo", "bea", "abe"]

    def test_unknown_direction_is_ascending(self, compiler):
        assert _order(compiler, SortDescriptor("score", "sideways"))[:1] == ["ed"]

    def test_secondary_key_only_breaks_ties(self, compiler):
        result = _order(compiler, SortDescriptor("score", "desc"), SortDescriptor("name", "asc"))
        assert result == ["abe", "bea", "cleo", "dora", "ed"]

    def test_secondary_key_direction(self, compiler):
        result = _order(compiler, SortDescriptor("score"), SortDescriptor("name", "desc"))
        assert result == ["ed", "dora", "cleo", "bea", "abe"]

    def test_ties_keep_input_order(self, compiler):
        assert _order(compiler, SortDescriptor("score")) == ["ed", "dora", "cleo", "abe", "bea"]

    def test_none_sorts_last_ascending_first_descending(self, compiler):
        assert _order(compiler, SortDescriptor("level"))[-2:] == ["abe", "ed"]
        assert _order(compiler, SortDescriptor("level", "desc"))[:2] == ["abe", "ed"]

    def test_nested_scalar_path(self, compiler):
        assert _order(compiler, SortDescriptor("team.name")) == ["ed", "abe", "bea", "dora", "cleo"]

    def test_json_path(self, compiler):
        chain = compiler.compile([SortDescriptor("meta.rank", json=True)], Player)
        assert isinstance(chain.keys[0].key, JsonValue)
        assert _order(compiler, SortDescriptor("meta.rank", json=True)) == ["abe", "dora", "bea", "cleo", "ed"]

    def test_custom_sort_key(self, compiler):
        chain = compiler.compile([SortDescriptor("Name_Length")], Player)
        assert isinstance(chain.keys[0].key, CustomKey)
        result = _order(compiler, SortDescriptor("name_length"), SortDescriptor("name"))
        assert result == ["ed", "abe", "bea", "cleo", "dora"]

    def test_no_sorts_keeps_order(self, compiler):
        assert _order(compiler) == ["dora", "abe", "cleo", "bea", "ed"]
        assert not compiler.compile(None, Player)


class TestSortErrors:
    def test_not_sortable_strict(self, compiler):
        with pytest.raises(FieldNotSortableException):
            compiler.compile([SortDescriptor("secret")], Player, strict=True)

    def test_not_sortable_lenient_is_skipped(self, compiler):
        chain = compiler.compile([SortDescriptor("secret"), SortDescriptor("name")], Player, strict=False)
        assert len(chain) == 1
        assert isinstance(chain.keys[0].key, FieldRef)

    def test_unknown_field(self, compiler):
        with pytest.raises(FieldNotFoundException):
            compiler.compile([SortDescriptor("nope")], Player, strict=True)
        assert not compiler.compile([SortDescriptor("nope")], Player, strict=False)

    def test_collection_is_not_sortable(self, compiler):
        with pytest.raises(FieldNotFoundException):
            compiler.compile([SortDescriptor("tags")], Player, strict=True)

    def test_single_segment_json_path_always_raises(self, compiler):
        with pytest.raises(InvalidJsonPathException):
            compiler.compile([SortDescriptor("meta", json=True)], Player, strict=False)


class TestSortChain:
    def test_compare_values_places_none_last(self):
        assert compare_values(None, 1) == 1
        assert compare_values(1, None) == -1
        assert compare_values(None, None) == 0

    def test_compare_values_mixed_types_is_deterministic(self):
        assert compare_values(1, "a") == -compare_values("a", 1)

    def test_empty_chain_is_falsy(self):
        assert not SortChain()
        assert SortChain().sort([3, 1, 2], lambda key, item: item) == [3, 1, 2]
