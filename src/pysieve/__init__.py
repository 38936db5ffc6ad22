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
"""pysieve: filtering, sorting, and pagination descriptors compiled into safe queries."""

from pysieve.builder import SieveBuilder
from pysieve.config.properties.query import QueryProperties
from pysieve.data.descriptor import FilterLeaf, OrGroup, SieveQuery, SortDescriptor
from pysieve.data.page import Page
from pysieve.data.schema import Json, TypeHintSchema
from pysieve.kernel.exceptions import SieveException
from pysieve.processor import SieveProcessor

__version__ = "0.1.0"

__all__ = [
    "FilterLeaf",
    "Json",
    "OrGroup",
    "Page",
    "QueryProperties",
    "SieveBuilder",
    "SieveException",
    "SieveProcessor",
    "SieveQuery",
    "SortDescriptor",
    "TypeHintSchema",
    "__version__",
]
