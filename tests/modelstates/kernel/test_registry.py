"""Tests for state registration, short names and identifier resolution."""

from __future__ import annotations

import pytest
from dummy.model_states import ModelState, StateA, StateB, StateC, StateD
from dummy.payment_states import PaymentState

from modelstates import State, StateConfig
from modelstates.kernel import registry
from modelstates.kernel.config import ModelStatesConfig, set_config
from modelstates.kernel.exceptions import (
    ConfigurationError,
    DuplicateStateNameError,
    NoStatesDeclaredError,
    UnresolvedStateError,
)
from modelstates.kernel.registry import (
    all_states,
    clear_state_cache,
    derive_short_name,
    get_state_mapping,
    resolve_state_class,
    short_name_of,
)


def _named(name: str) -> type:
    return type(name, (), {})


class Door(State):
    @classmethod
    def config(cls) -> StateConfig:
        return StateConfig(cls).register_state(Closed, f"{__name__}.Opened")


class Closed(Door):
    pass


class Opened(Door):
    pass


# ---------------------------------------------------------------------------
# Short names
# ---------------------------------------------------------------------------


class TestDeriveShortName:
    """Tests for default short-name derivation."""

    @pytest.mark.parametrize(
        ("class_name", "family_name", "expected"),
        [
            ("PaidState", "PaymentState", "paid"),
            ("Pending", "PaymentState", "pending"),
            ("PartiallyRefunded", "PaymentState", "partially_refunded"),
            ("OnHoldOrder", "OrderStatus", "on_hold_order"),
            ("HTTPRedirectStatus", "OrderStatus", "http_redirect"),
            ("State", "PaymentState", "state"),
        ],
    )
    def test_derivation(self, class_name: str, family_name: str, expected: str) -> None:
        assert derive_short_name(_named(class_name), _named(family_name)) == expected

    def test_is_deterministic(self) -> None:
        cls, family = _named("ShippedState"), _named("OrderState")
        assert derive_short_name(cls, family) == derive_short_name(cls, family)

    def test_explicit_name_wins(self) -> None:
        assert short_name_of(StateC, ModelState) == "C"

    def test_inherited_name_is_not_reused(self) -> None:
        class Express(StateB):
            pass

        assert short_name_of(Express, ModelState) == "express"


# ---------------------------------------------------------------------------
# State mapping
# ---------------------------------------------------------------------------


class TestExplicitMapping:
    """Tests for families that register their states explicitly."""

    def test_mapping_follows_registration_order(self) -> None:
        mapping = get_state_mapping(ModelState)
        assert list(mapping) == ["A", "B", "C", "D"]
        assert list(mapping.values()) == [StateA, StateB, StateC, StateD]

    def test_mapping_is_read_only(self) -> None:
        mapping = get_state_mapping(ModelState)
        with pytest.raises(TypeError):
            mapping["E"] = StateA  # type: ignore[index]

    def test_all_is_the_same_mapping(self) -> None:
        assert all_states(ModelState) is get_state_mapping(ModelState)
        assert StateA.all() is get_state_mapping(ModelState)

    def test_mapping_is_cached_until_cleared(self) -> None:
        first = get_state_mapping(ModelState)
        assert get_state_mapping(ModelState) is first

        clear_state_cache(ModelState)
        rebuilt = get_state_mapping(ModelState)
        assert rebuilt is not first
        assert dict(rebuilt) == dict(first)

    def test_registration_by_dotted_path(self) -> None:
        assert list(get_state_mapping(Door)) == ["closed", "opened"]
        assert resolve_state_class("opened", Door) is Opened

    def test_registered_non_member_is_rejected(self) -> None:
        class Lamp(State):
            @classmethod
            def config(cls) -> StateConfig:
                return StateConfig(cls).register_state(StateA)

        with pytest.raises(UnresolvedStateError):
            get_state_mapping(Lamp)


class TestDiscoveredMapping:
    """Tests for families whose states are discovered alongside them."""

    def test_sibling_modules_are_discovered(self) -> None:
        mapping = get_state_mapping(PaymentState)
        assert sorted(mapping) == ["failed", "paid", "pending"]

    def test_abstract_states_are_excluded(self) -> None:
        mapping = get_state_mapping(PaymentState)
        assert all(cls.__name__ != "SettledPaymentState" for cls in mapping.values())

    def test_states_defined_in_family_module(self) -> None:
        class Light(State):
            pass

        class RedLight(Light):
            pass

        class Green(Light):
            pass

        assert list(get_state_mapping(Light)) == ["red", "green"]

    def test_no_states_raises(self) -> None:
        class Empty(State):
            pass

        with pytest.raises(NoStatesDeclaredError, match="Empty"):
            get_state_mapping(Empty)

    def test_duplicate_short_names_raise(self) -> None:
        class Fruit(State):
            pass

        class Apple(Fruit):
            pass

        class AppleFruit(Fruit):
            pass

        with pytest.raises(DuplicateStateNameError, match="'apple'"):
            get_state_mapping(Fruit)

    def test_discovery_can_be_disabled(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fail(module_name: str) -> list[str]:
            raise AssertionError(f"unexpected discovery of {module_name}")

        monkeypatch.setattr(registry, "discover_sibling_modules", fail)
        set_config(ModelStatesConfig(auto_discover_modules=False))

        class Valve(State):
            pass

        class Shut(Valve):
            pass

        assert list(get_state_mapping(Valve)) == ["shut"]


class TestFamilyConfig:
    def test_config_must_describe_its_family(self) -> None:
        class Mismatched(State):
            @classmethod
            def config(cls) -> StateConfig:
                return StateConfig(ModelState)

        with pytest.raises(ConfigurationError, match="Mismatched"):
            registry.get_family_config(Mismatched)

    def test_config_is_cached(self) -> None:
        assert registry.get_family_config(ModelState) is registry.get_family_config(ModelState)


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


class TestResolveStateClass:
    """Tests for resolve_state_class."""

    def test_concrete_class_is_returned_unchanged(self) -> None:
        assert resolve_state_class(StateC, ModelState) is StateC

    def test_instance_resolves_to_its_class(self) -> None:
        assert resolve_state_class(StateB(None), ModelState) is StateB

    def test_short_name(self) -> None:
        assert resolve_state_class("C", ModelState) is StateC

    def test_ordinal_is_one_based(self) -> None:
        assert resolve_state_class(1, ModelState) is StateA
        assert resolve_state_class(3, ModelState) is StateC

    def test_dotted_path(self) -> None:
        assert resolve_state_class("dummy.model_states.StateD", ModelState) is StateD

    def test_dotted_path_is_imported(self) -> None:
        resolved = resolve_state_class("dummy.payment_states.paid.PaidState", PaymentState)
        assert resolved.__name__ == "PaidState"

    @pytest.mark.parametrize("identifier", ["E", "a", 0, 5, -1, True, 2.0, None, object()])
    def test_unknown_identifiers_raise(self, identifier: object) -> None:
        with pytest.raises(UnresolvedStateError) as exc_info:
            resolve_state_class(identifier, ModelState)
        assert exc_info.value.identifier is identifier
        assert exc_info.value.family is ModelState

    def test_error_lists_available_names(self) -> None:
        with pytest.raises(UnresolvedStateError, match="Available: A, B, C, D"):
            resolve_state_class("shipped", ModelState)

    def test_class_of_another_family_raises(self) -> None:
        with pytest.raises(UnresolvedStateError):
            resolve_state_class(StateA, PaymentState)

    def test_family_itself_is_not_a_state(self) -> None:
        with pytest.raises(UnresolvedStateError):
            resolve_state_class(ModelState, ModelState)

    def test_dotted_path_outside_family_raises(self) -> None:
        with pytest.raises(UnresolvedStateError):
            resolve_state_class("dummy.payment_states.pending.Pending", ModelState)

    def test_unimportable_path_raises(self) -> None:
        with pytest.raises(UnresolvedStateError):
            resolve_state_class("dummy.nowhere.Missing", ModelState)

    def test_import_paths_can_be_disabled(self) -> None:
        set_config(ModelStatesConfig(allow_import_paths=False))
        with pytest.raises(UnresolvedStateError):
            resolve_state_class("dummy.models.TestModel", ModelState)
        # Paths of mapped states still match without importing anything
        assert resolve_state_class("dummy.model_states.StateB", ModelState) is StateB

    def test_resolution_round_trips(self) -> None:
        for cls in get_state_mapping(ModelState).values():
            assert resolve_state_class(cls.short_name(), ModelState) is cls
            assert resolve_state_class(cls, ModelState) is cls
            assert resolve_state_class(cls.ordinal(), ModelState) is cls
