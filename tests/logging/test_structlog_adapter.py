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

import pytest
import structlog

from pyfusion.core.config import Config
from pyfusion.logging.port import LoggingPort
from pyfusion.logging.structlog_adapter import StructlogAdapter


@pytest.fixture(autouse=True)
def restore_structlog():
    yield
    structlog.reset_defaults()
    logging.getLogger("pyfusion.proxy.cache").setLevel(logging.NOTSET)
    logging.getLogger("myapp.services").setLevel(logging.NOTSET)


class TestStructlogAdapterConformance:
    def test_implements_logging_port(self) -> None:
        adapter = StructlogAdapter()
        assert isinstance(adapter, LoggingPort)


class TestStructlogAdapterConfigure:
    def test_configure_with_defaults(self) -> None:
        adapter = StructlogAdapter()
        config = Config({})
        adapter.configure(config)

    def test_configure_reads_root_level(self) -> None:
        adapter = StructlogAdapter()
        config = Config({"fusion": {"logging": {"level": {"root": "debug"}}}})
        adapter.configure(config)
        assert adapter._root_level == "DEBUG"

    def test_configure_reads_format(self) -> None:
        adapter = StructlogAdapter()
        config = Config({"fusion": {"logging": {"format": "json"}}})
        adapter.configure(config)
        assert adapter._format == "json"
        assert adapter.format == "json"

    def test_configure_defaults_console_format(self) -> None:
        adapter = StructlogAdapter()
        config = Config({})
        adapter.configure(config)
        assert adapter._format == "console"

    def test_configure_reads_per_module_levels(self) -> None:
        adapter = StructlogAdapter()
        config = Config({"fusion": {"logging": {"level": {"root": "INFO", "pyfusion.proxy.cache": "DEBUG"}}}})
        adapter.configure(config)
        assert adapter._module_levels == {"pyfusion.proxy.cache": "DEBUG"}
        assert logging.getLogger("pyfusion.proxy.cache").level == logging.DEBUG

    def test_unknown_format_rejected(self) -> None:
        adapter = StructlogAdapter()
        with pytest.raises(ValueError, match="Unknown log format"):
            adapter.configure(Config({"fusion": {"logging": {"format": "xml"}}}))


class TestStructlogAdapterOutput:
    def test_engine_events_rendered_as_json(self) -> None:
        stream = io.StringIO()
        adapter = StructlogAdapter(stream=stream)
        adapter.configure(Config({"fusion": {"logging": {"format": "json"}}}))

        adapter.get_logger("pyfusion.proxy.enhancer").info("proxy_class_generated", class_name="a.B")

        record = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert record["event"] == "proxy_class_generated"
        assert record["class_name"] == "a.B"
        assert record["logger"] == "pyfusion.proxy.enhancer"
        assert record["level"] == "info"

    def test_root_level_filters_debug(self) -> None:
        stream = io.StringIO()
        adapter = StructlogAdapter(stream=stream)
        adapter.configure(Config({"fusion": {"logging": {"level": {"root": "INFO"}}}}))

        adapter.get_logger("pyfusion.proxy.cache").debug("proxy_cache_hit")
        assert "proxy_cache_hit" not in stream.getvalue()


class TestStructlogAdapterGetLogger:
    def test_get_logger_returns_bound_logger(self) -> None:
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        logger = adapter.get_logger("pyfusion.proxy.test")
        assert logger is not None
        assert callable(getattr(logger, "info", None))
        assert callable(getattr(logger, "debug", None))


class TestStructlogAdapterSetLevel:
    def test_set_level_updates_module_level(self) -> None:
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        adapter.set_level("myapp.services", "DEBUG")
        assert logging.getLogger("myapp.services").level == logging.DEBUG
