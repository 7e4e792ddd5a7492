"""Tests for the default naming policy."""

from __future__ import annotations

import pytest

from pyfusion.proxy import settings
from pyfusion.proxy.core.naming import DEFAULT_NAMING_POLICY, DefaultNamingPolicy, NamingPolicy

SOURCE = "pyfusion.proxy.Enhancer"


def nothing_taken(name: str) -> bool:
    return False


@pytest.fixture(autouse=True)
def fresh_settings():
    settings.reset()
    yield
    settings.reset()


class TestDefaultNamingPolicy:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(DEFAULT_NAMING_POLICY, NamingPolicy)

    def test_name_shape(self) -> None:
        policy = DefaultNamingPolicy(stress_hash_codes=False)
        name = policy.get_class_name("shop.Basket", SOURCE, ("key",), nothing_taken)
        prefix, source, digest = name.split("$$")
        assert prefix == "shop.Basket"
        assert source == "EnhancerByFusion"
        assert digest == f"{hash(('key',)) & 0xFFFFFFFF:x}"

    def test_missing_prefix_uses_empty_object(self) -> None:
        policy = DefaultNamingPolicy(stress_hash_codes=True)
        name = policy.get_class_name(None, SOURCE, "k", nothing_taken)
        assert name == "pyfusion.empty.Object$$EnhancerByFusion$$0"

    def test_reserved_namespace_is_escaped(self) -> None:
        policy = DefaultNamingPolicy(stress_hash_codes=True)
        assert policy.get_class_name("builtins.dict", SOURCE, "k", nothing_taken).startswith("_builtins.dict$$")
        assert policy.get_class_name("builtinsx.dict", SOURCE, "k", nothing_taken).startswith("builtinsx.dict$$")

    def test_collisions_take_numeric_suffixes(self) -> None:
        policy = DefaultNamingPolicy(stress_hash_codes=True)
        base = "shop.Basket$$EnhancerByFusion$$0"
        taken = {base, f"{base}_2"}
        assert policy.get_class_name("shop.Basket", SOURCE, "k", taken.__contains__) == f"{base}_3"

    def test_stress_flag_read_from_settings(self, monkeypatch) -> None:
        monkeypatch.setenv("FUSION_PROXY_STRESS_HASH_CODES", "true")
        settings.reset()
        policy = DefaultNamingPolicy()
        assert policy.stress_hash_codes is True
        assert policy.get_class_name("a.B", SOURCE, "k", nothing_taken).endswith("$$0")

    def test_policies_with_same_tag_are_equal(self) -> None:
        assert DefaultNamingPolicy() == DEFAULT_NAMING_POLICY
        assert hash(DefaultNamingPolicy(stress_hash_codes=True)) == hash(DEFAULT_NAMING_POLICY)
        assert DefaultNamingPolicy() != object()

    def test_custom_tag(self) -> None:
        class Tagged(DefaultNamingPolicy):
            @property
            def tag(self) -> str:
                return "ByAudit"

        policy = Tagged(stress_hash_codes=True)
        assert policy != DEFAULT_NAMING_POLICY
        assert "$$EnhancerByAudit$$" in policy.get_class_name("a.B", SOURCE, "k", nothing_taken)
