"""Tests for bridge method resolution."""

from __future__ import annotations

from pyfusion.proxy import BridgeMethodResolver, bridge
from pyfusion.proxy.core.signature import Signature


class Source:
    def value(self) -> str:
        return "source"

    def count(self) -> int:
        return 1


class Widened(Source):
    @bridge
    def value_any(self) -> object:
        return super().value()


class SelfForwarding(Source):
    @bridge
    def value(self) -> str:
        return super().value()


class Qualified(Source):
    @bridge
    def value_any(self) -> object:
        return Source.value(self)


class FirstCallWins(Source):
    @bridge
    def either(self) -> object:
        log = str(self)
        first = super().count()
        return first, super().value()


class TwoBridges(Source):
    @bridge
    def value_any(self) -> object:
        return super().value()

    @bridge
    def count_any(self) -> object:
        return Source.count(self)


class NotForwarding(Source):
    @bridge
    def plain(self) -> object:
        return len("abc")


def signature_of(owner: type, name: str) -> Signature:
    return Signature.from_function(name, vars(owner)[name])


def resolve(owner: type, *names: str) -> dict[Signature, Signature]:
    bridges = {signature_of(owner, name) for name in names}
    return BridgeMethodResolver({owner: bridges}).resolve_all()


class TestBridgeMethodResolver:
    def test_super_call_resolves_to_target(self) -> None:
        resolved = resolve(Widened, "value_any")
        assert resolved == {signature_of(Widened, "value_any"): signature_of(Source, "value")}

    def test_qualified_call_resolves_to_target(self) -> None:
        resolved = resolve(Qualified, "value_any")
        assert resolved[signature_of(Qualified, "value_any")] == Signature("value", "()Lbuiltins/str;")

    def test_bridge_forwarding_to_identical_signature_is_not_mapped(self) -> None:
        assert resolve(SelfForwarding, "value") == {}

    def test_first_forwarding_call_wins(self) -> None:
        resolved = resolve(FirstCallWins, "either")
        assert resolved[signature_of(FirstCallWins, "either")] == signature_of(Source, "count")

    def test_bridge_without_forwarding_call_is_unresolved(self) -> None:
        assert resolve(NotForwarding, "plain") == {}

    def test_only_eligible_methods_are_mapped(self) -> None:
        resolver = BridgeMethodResolver({Widened: set()})
        assert resolver.resolve_all() == {}

    def test_bridges_sharing_an_owner_each_map_once(self) -> None:
        resolved = resolve(TwoBridges, "value_any", "count_any")
        assert resolved == {
            signature_of(TwoBridges, "value_any"): signature_of(Source, "value"),
            signature_of(TwoBridges, "count_any"): signature_of(Source, "count"),
        }
        assert len(set(resolved.values())) == 2

    def test_ineligible_bridge_on_shared_owner_is_left_out(self) -> None:
        resolved = resolve(TwoBridges, "count_any")
        assert resolved == {signature_of(TwoBridges, "count_any"): signature_of(Source, "count")}

    def test_unreadable_owner_is_skipped(self) -> None:
        dynamic = type("DynamicBridge", (Source,), {"value_any": bridge(lambda self: Source.value(self))})
        resolver = BridgeMethodResolver(
            {
                dynamic: {signature_of(dynamic, "value_any")},
                Widened: {signature_of(Widened, "value_any")},
            }
        )
        resolved = resolver.resolve_all()
        assert list(resolved) == [signature_of(Widened, "value_any")]
