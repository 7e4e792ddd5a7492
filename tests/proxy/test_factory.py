"""Tests for the Factory mixin and MethodProxy handles."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from pyfusion.proxy import NO_OP, Enhancer, Factory, MethodProxy, NoOp, ProxyConfigurationError
from pyfusion.proxy.core.cache import ProxyCache
from pyfusion.proxy.core.signature import Signature, parse_signature


class Inventory:
    def __init__(self, size: int = 1) -> None:
        self.size = size

    def count(self) -> int:
        return self.size

    def label(self, prefix: str) -> str:
        return f"{prefix}{self.size}"


class Constant:
    def __init__(self, value) -> None:
        self.value = value

    def intercept(self, caller, proxy, method, args, method_proxy):
        return self.value


class PassThrough:
    def intercept(self, caller, proxy, method, args, method_proxy):
        return method_proxy.invoke_super(proxy, args)


@dataclass(frozen=True)
class LabelToNoOp:
    def accept(self, method) -> int:
        return 1 if method.name == "label" else 0


def proxy_of(*callbacks, callback_filter=None, **kwargs):
    enhancer = Enhancer()
    enhancer.set_superclass(Inventory)
    enhancer.set_callbacks(callbacks)
    enhancer.set_callback_filter(callback_filter)
    enhancer.set_cache(ProxyCache())
    return enhancer.create(**kwargs)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


class TestFactory:
    def test_generated_class_is_a_factory(self) -> None:
        assert isinstance(proxy_of(Constant(1)), Factory)

    def test_factory_mixin_can_be_disabled(self) -> None:
        enhancer = Enhancer()
        enhancer.set_superclass(Inventory)
        enhancer.set_callback(Constant(1))
        enhancer.set_use_factory(False)
        enhancer.set_cache(ProxyCache())
        assert not isinstance(enhancer.create(), Factory)

    def test_new_instance_with_single_callback(self) -> None:
        proxy = proxy_of(Constant(1), size=4)
        sibling = proxy.new_instance(Constant(2), size=9)
        assert type(sibling) is type(proxy)
        assert sibling.count() == 2
        assert sibling.size == 9
        assert proxy.count() == 1

    def test_new_instance_with_callback_list(self) -> None:
        proxy = proxy_of(Constant(1))
        sibling = proxy.new_instance([PassThrough()], 5)
        assert sibling.count() == 5

    def test_bare_callback_rejected_for_several_slots(self) -> None:
        proxy = proxy_of(Constant(1), NO_OP, callback_filter=LabelToNoOp())
        with pytest.raises(ProxyConfigurationError):
            proxy.new_instance(Constant(2))

    def test_get_and_set_callback(self) -> None:
        first = Constant(1)
        proxy = proxy_of(first)
        assert proxy.get_callback(0) is first
        replacement = Constant(2)
        proxy.set_callback(0, replacement)
        assert proxy.get_callback(0) is replacement
        assert proxy.count() == 2

    def test_set_callback_none_restores_original(self) -> None:
        proxy = proxy_of(Constant(1), size=3)
        proxy.set_callback(0, None)
        assert proxy.count() == 3

    def test_callback_index_out_of_range(self) -> None:
        proxy = proxy_of(Constant(1))
        with pytest.raises(IndexError):
            proxy.get_callback(1)
        with pytest.raises(IndexError):
            proxy.set_callback(-1, Constant(2))

    def test_set_callback_checks_kind(self) -> None:
        proxy = proxy_of(Constant(1), NO_OP, callback_filter=LabelToNoOp())
        with pytest.raises(ProxyConfigurationError):
            proxy.set_callback(1, Constant(2))
        proxy.set_callback(1, NoOp())

    def test_get_and_set_callbacks(self) -> None:
        proxy = proxy_of(Constant(1), NO_OP, callback_filter=LabelToNoOp())
        assert proxy.get_callbacks()[1] is NO_OP
        replacement = Constant(7)
        proxy.set_callbacks([replacement, NO_OP])
        assert proxy.get_callbacks() == (replacement, NO_OP)
        assert proxy.count() == 7
        assert proxy.label("#") == "#1"

    def test_set_callbacks_checks_arity(self) -> None:
        proxy = proxy_of(Constant(1))
        with pytest.raises(ProxyConfigurationError):
            proxy.set_callbacks([Constant(1), Constant(2)])

    def test_user_subclass_keeps_factory_behaviour(self) -> None:
        generated = type(proxy_of(Constant(1)))

        class Special(generated):
            pass

        special = Special()
        special.set_callback(0, Constant(5))
        assert special.count() == 5


# ---------------------------------------------------------------------------
# MethodProxy
# ---------------------------------------------------------------------------


class TestMethodProxy:
    def test_find_by_signature(self) -> None:
        generated = type(proxy_of(Constant(1)))
        signature = parse_signature("int count()")
        method_proxy = MethodProxy.find(generated, signature)
        assert method_proxy.signature == signature
        assert method_proxy.super_name.startswith("_fusion_access_")
        assert method_proxy.method.name == "count"

    def test_find_unknown_signature(self) -> None:
        generated = type(proxy_of(Constant(1)))
        assert MethodProxy.find(generated, Signature("count", "()Lbuiltins/str;")) is None

    def test_find_on_plain_class_raises(self) -> None:
        with pytest.raises(ProxyConfigurationError):
            MethodProxy.find(Inventory, parse_signature("int count()"))

    def test_invoke_super_bypasses_callback(self) -> None:
        proxy = proxy_of(Constant(99), size=2)
        method_proxy = MethodProxy.find(type(proxy), parse_signature("str label(str)"))
        assert method_proxy.invoke_super(proxy, ("n=",)) == "n=2"
        assert method_proxy.invoke_super(proxy, ("again=",)) == "again=2"

    def test_invoke_goes_through_override(self) -> None:
        proxy = proxy_of(Constant("intercepted"))
        method_proxy = MethodProxy.find(type(proxy), parse_signature("str label(str)"))
        assert method_proxy.invoke(proxy, ("x",)) == "intercepted"
        assert method_proxy.invoke(Inventory(3), ("x",)) == "x3"
