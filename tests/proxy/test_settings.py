"""Tests for proxy engine settings binding."""

from __future__ import annotations

import io
import json
import logging

import pytest
import structlog
from pydantic import ValidationError

from pyfusion.core.config import Config
from pyfusion.logging import StructlogAdapter
from pyfusion.proxy import ProxyProperties, settings


@pytest.fixture(autouse=True)
def fresh_settings():
    settings.reset()
    yield
    settings.reset()


class TestProxyProperties:
    def test_framework_defaults(self, tmp_path) -> None:
        properties = settings.configure(Config.from_sources(tmp_path))
        assert properties == ProxyProperties()
        assert properties.use_cache is True
        assert properties.debug_location is None
        assert properties.stress_hash_codes is False
        assert properties.intercept_during_construction is True

    def test_kebab_case_keys_bind(self) -> None:
        config = Config({"fusion": {"proxy": {"use-cache": False, "debug-location": "/tmp/dump"}}})
        properties = settings.configure(config)
        assert properties.use_cache is False
        assert properties.debug_location == "/tmp/dump"

    def test_env_overrides_file_values(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("FUSION_PROXY_STRESS_HASH_CODES", "true")
        properties = settings.configure(Config.from_sources(tmp_path))
        assert properties.stress_hash_codes is True

    def test_project_file_overrides_defaults(self, tmp_path) -> None:
        (tmp_path / "fusion.yaml").write_text("fusion:\n  proxy:\n    intercept-during-construction: false\n")
        properties = settings.configure(Config.from_sources(tmp_path))
        assert properties.intercept_during_construction is False

    def test_invalid_value_fails_fast(self) -> None:
        config = Config({"fusion": {"proxy": {"use-cache": "sometimes"}}})
        with pytest.raises(ValueError, match="ProxyProperties"):
            settings.configure(config)

    def test_current_binds_lazily_and_is_reused(self, tmp_path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        first = settings.current()
        assert settings.current() is first
        settings.reset()
        assert settings.current() is not first

    def test_properties_are_frozen(self) -> None:
        properties = ProxyProperties()
        with pytest.raises(ValidationError):
            properties.use_cache = False  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


class TestLoggingConfiguration:
    @pytest.fixture(autouse=True)
    def restore_structlog(self):
        yield
        structlog.reset_defaults()
        logging.getLogger("pyfusion.proxy.settings").setLevel(logging.NOTSET)

    def test_logging_port_configured_from_same_config(self) -> None:
        stream = io.StringIO()
        adapter = StructlogAdapter(stream=stream)
        config = Config(
            {
                "fusion": {
                    "logging": {"format": "json", "level": {"root": "INFO", "pyfusion.proxy.settings": "DEBUG"}},
                    "proxy": {"use-cache": False},
                }
            }
        )
        properties = settings.configure(config, logging_port=adapter)
        assert properties.use_cache is False
        assert adapter.format == "json"
        assert logging.getLogger("pyfusion.proxy.settings").level == logging.DEBUG
        event = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert event["event"] == "proxy_settings_configured"
        assert event["use_cache"] is False

