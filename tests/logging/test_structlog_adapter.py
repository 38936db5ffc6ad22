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
"""Tests for StructlogAdapter — default LoggingPort implementation."""

import io
import json
import logging
from dataclasses import dataclass

from pysieve.builder import SieveBuilder
from pysieve.core.config import Config
from pysieve.data.descriptor import FilterLeaf
from pysieve.logging.port import LoggingPort
from pysieve.logging.structlog_adapter import COMPILER_LOGGER, StructlogAdapter


@dataclass
class Item:
    name: str


class TestStructlogAdapterConformance:
    def test_implements_logging_port(self):
        assert isinstance(StructlogAdapter(), LoggingPort)


class TestStructlogAdapterConfigure:
    def test_configure_with_defaults(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        assert adapter._root_level == "INFO"
        assert adapter._format == "console"
        assert adapter._module_levels == {}

    def test_configure_from_packaged_defaults(self):
        adapter = StructlogAdapter()
        adapter.configure(Config.defaults())
        assert adapter._root_level == "INFO"

    def test_configure_reads_root_level(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({"pysieve": {"logging": {"level": {"root": "debug"}}}}))
        assert adapter._root_level == "DEBUG"

    def test_configure_reads_format(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({"pysieve": {"logging": {"format": "JSON"}}}))
        assert adapter._format == "json"

    def test_configure_reads_per_module_levels(self):
        adapter = StructlogAdapter()
        config = Config({"pysieve": {"logging": {"level": {"root": "INFO", "pysieve.data.compiler": "debug"}}}})
        adapter.configure(config)
        assert adapter._module_levels == {"pysieve.data.compiler": "DEBUG"}
        assert logging.getLogger("pysieve.data.compiler").level == logging.DEBUG


class TestStructlogAdapterLoggers:
    def test_get_logger_returns_bound_logger(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        logger = adapter.get_logger("pysieve.data.compiler")
        assert callable(getattr(logger, "info", None))
        assert callable(getattr(logger, "debug", None))

    def test_set_level_updates_module_level(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        adapter.set_level("pysieve.test.adapter", "WARNING")
        assert logging.getLogger("pysieve.test.adapter").level == logging.WARNING


class TestStructlogAdapterOutput:
    def test_json_rendering(self):
        stream = io.StringIO()
        adapter = StructlogAdapter(stream=stream)
        adapter.configure(Config({"pysieve": {"logging": {"format": "json"}}}))
        adapter.get_logger("pysieve.test.output").info("page_served", page=2)

        record = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert record["event"] == "page_served"
        assert record["page"] == 2
        assert record["level"] == "info"
        assert record["logger"] == "pysieve.test.output"

    def test_compiler_events_need_debug_level(self):
        stream = io.StringIO()
        adapter = StructlogAdapter(stream=stream)
        levels = {"root": "INFO", COMPILER_LOGGER: "DEBUG"}
        adapter.configure(Config({"pysieve": {"logging": {"format": "json", "level": levels}}}))

        SieveBuilder().build().compile_filters([FilterLeaf("nickname", "==", ["x"])], Item)

        events = [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]
        skipped = [e for e in events if e["event"] == "filter_skipped"]
        assert skipped and skipped[0]["field"] == "nickname"
        assert skipped[0]["code"] == "SIEVE_FIELD_NOT_FOUND"
