"""Tests for configuration system."""

import os
from dataclasses import dataclass
from pathlib import Path

import pytest
from pydantic import BaseModel

from pyfusion.core.config import Config, config_properties


class TestConfig:
    def test_load_from_dict(self) -> None:
        config = Config({"fusion": {"proxy": {"use-cache": False}}})
        assert config.get("fusion.proxy.use-cache") is False

    def test_get_with_default(self) -> None:
        config = Config({})
        assert config.get("missing.key", "default") == "default"

    def test_get_nested_value(self) -> None:
        config = Config({"fusion": {"logging": {"level": {"root": "WARNING"}}}})
        assert config.get("fusion.logging.level.root") == "WARNING"

    def test_load_from_yaml_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "fusion.yaml"
        config_file.write_text("fusion:\n  proxy:\n    debug-location: /tmp/proxies\n")
        config = Config.from_file(config_file)
        assert config.get("fusion.proxy.debug-location") == "/tmp/proxies"
        assert str(config_file) in config.loaded_sources

    def test_load_from_toml_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "fusion.toml"
        config_file.write_text("[fusion.proxy]\nstress-hash-codes = true\n")
        config = Config.from_file(config_file, load_defaults=False)
        assert config.get("fusion.proxy.stress-hash-codes") is True

    def test_framework_defaults_loaded(self, tmp_path: Path) -> None:
        config = Config.from_file(tmp_path / "absent.yaml")
        assert config.get("fusion.proxy.use-cache") is True
        assert config.get("fusion.logging.format") == "console"

    def test_env_var_override(self) -> None:
        os.environ["FUSION_PROXY_DEBUG_LOCATION"] = "/from/env"
        try:
            config = Config({"fusion": {"proxy": {"debug-location": "/from/file"}}})
            assert config.get("fusion.proxy.debug-location") == "/from/env"
        finally:
            del os.environ["FUSION_PROXY_DEBUG_LOCATION"]

    def test_env_key_mapping(self) -> None:
        assert Config.env_key("fusion.proxy.stress-hash-codes") == "FUSION_PROXY_STRESS_HASH_CODES"

    def test_get_section_normalizes_keys(self, monkeypatch) -> None:
        monkeypatch.setenv("FUSION_PROXY_USE_CACHE", "false")
        config = Config({"fusion": {"proxy": {"use-cache": True, "debug-location": None}}})
        assert config.get_section("fusion.proxy") == {"use_cache": "false", "debug_location": None}

    def test_missing_section_is_empty(self) -> None:
        assert Config({}).get_section("fusion.proxy") == {}


class TestConfigProperties:
    def test_bind_to_dataclass(self) -> None:
        @config_properties(prefix="fusion.sink")
        @dataclass
        class SinkConfig:
            location: str = "/tmp"
            depth: int = 5

        config = Config({"fusion": {"sink": {"location": "/var/dump", "depth": "20"}}})
        sink = config.bind(SinkConfig)
        assert sink.location == "/var/dump"
        assert sink.depth == 20

    def test_bind_uses_defaults(self) -> None:
        @config_properties(prefix="fusion.sink")
        @dataclass
        class SinkConfig:
            location: str = "/tmp"
            depth: int = 5

        sink = Config({}).bind(SinkConfig)
        assert sink.location == "/tmp"
        assert sink.depth == 5

    def test_bind_to_pydantic_model(self) -> None:
        @config_properties(prefix="fusion.sink")
        class SinkModel(BaseModel):
            enabled: bool = False
            depth: int = 1

        config = Config({"fusion": {"sink": {"enabled": "yes", "depth": "3"}}})
        sink = config.bind(SinkModel)
        assert sink.enabled is True
        assert sink.depth == 3

    def test_bind_undecorated_class_rejected(self) -> None:
        class Plain(BaseModel):
            value: int = 0

        with pytest.raises(ValueError, match="config_properties"):
            Config({}).bind(Plain)


class TestProfileConfigMerging:
    def test_project_file_overrides_defaults(self, tmp_path) -> None:
        (tmp_path / "fusion.yaml").write_text("fusion:\n  proxy:\n    use-cache: false\n")
        config = Config.from_sources(tmp_path)
        assert config.get("fusion.proxy.use-cache") is False
        assert config.get("fusion.proxy.intercept-during-construction") is True

    def test_config_subdirectory_is_read_first(self, tmp_path) -> None:
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "fusion.yaml").write_text("fusion:\n  logging:\n    format: json\n")
        (tmp_path / "fusion.yaml").write_text("fusion:\n  logging:\n    format: logfmt\n")
        config = Config.from_sources(tmp_path)
        assert config.get("fusion.logging.format") == "logfmt"

    def test_profile_overlay_wins(self, tmp_path) -> None:
        (tmp_path / "fusion.yaml").write_text("fusion:\n  proxy:\n    debug-location: base\n")
        (tmp_path / "fusion-dev.yaml").write_text("fusion:\n  proxy:\n    debug-location: dev\n")
        config = Config.from_sources(tmp_path, active_profiles=["dev"])
        assert config.get("fusion.proxy.debug-location") == "dev"

    def test_missing_profile_file_is_skipped(self, tmp_path) -> None:
        (tmp_path / "fusion.yaml").write_text("fusion:\n  proxy:\n    debug-location: base\n")
        config = Config.from_sources(tmp_path, active_profiles=["nonexistent"])
        assert config.get("fusion.proxy.debug-location") == "base"

    def test_env_vars_still_win(self, tmp_path, monkeypatch) -> None:
        (tmp_path / "fusion-dev.yaml").write_text("fusion:\n  proxy:\n    debug-location: dev\n")
        monkeypatch.setenv("FUSION_PROXY_DEBUG_LOCATION", "env-wins")
        config = Config.from_sources(tmp_path, active_profiles=["dev"])
        assert config.get("fusion.proxy.debug-location") == "env-wins"
