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
"""pysieve data layer: descriptors, compilers, and query backends."""

from pysieve.data.descriptor import Filter, FilterLeaf, OrGroup, SieveQuery, SortDescriptor
from pysieve.data.filter_compiler import PredicateCompiler
from pysieve.data.memory import MemoryQueryEngine, PredicateEvaluator
from pysieve.data.operators import Comparison, FilterOperator, Operator, parse_operator
from pysieve.data.page import Page
from pysieve.data.pageable import PageRequest
from pysieve.data.ports.outbound import QueryEnginePort
from pysieve.data.predicate import Predicate
from pysieve.data.registry import (
    EntityConfiguration,
    EntityConfigurationBuilder,
    FieldConfig,
    Registry,
    RegistryBuilder,
)
from pysieve.data.resolver import FieldPath, FieldResolver
from pysieve.data.schema import MemberInfo, SchemaProvider, TypeHintSchema
from pysieve.data.sort import SortChain, SortKey
from pysieve.data.sort_compiler import SortCompiler

__all__ = [
    "Comparison",
    "EntityConfiguration",
    "EntityConfigurationBuilder",
    "FieldConfig",
    "FieldPath",
    "FieldResolver",
    "Filter",
    "FilterLeaf",
    "FilterOperator",
    "MemberInfo",
    "MemoryQueryEngine",
    "Operator",
    "OrGroup",
    "Page",
    "PageRequest",
    "Predicate",
    "PredicateCompiler",
    "PredicateEvaluator",
    "QueryEnginePort",
    "Registry",
    "RegistryBuilder",
    "SchemaProvider",
    "SieveQuery",
    "SortChain",
    "SortCompiler",
    "SortDescriptor",
    "SortKey",
    "TypeHintSchema",
    "parse_operator",
]
