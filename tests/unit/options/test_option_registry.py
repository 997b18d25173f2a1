"""
Tests for the Option Provider Registry.
"""

import logging

import pytest

from eventrelay.core.exceptions import DuplicateOptionTypeError, RegistryFrozenError
from eventrelay.core.types import OptionDescriptor
from eventrelay.options.registry import OptionType, OptionTypeRegistry, flatten_facts


def test_flatten_facts():
    data = {"id": 1, "billing": {"email": "a@b.com", "address": {"city": "X"}}, "tags": ["a"]}

    assert flatten_facts(data) == {
        "id": 1,
        "billing.email": "a@b.com",
        "billing.address.city": "X",
        "tags": ["a"],
    }


class TestRegistration:
    """Tests for registering option types."""

    def test_register_parts(self):
        registry = OptionTypeRegistry()

        option_type = registry.register("order", lambda i: {"id": i}, name="Orders")

        assert "order" in registry
        assert registry.get("order") is option_type
        assert option_type.label == "Orders"

    def test_register_ready_option_type(self):
        registry = OptionTypeRegistry()

        registry.register(OptionType("user", lambda _: {}, is_global=True))

        assert registry.is_global("user")

    def test_label_defaults_to_title_case(self):
        assert OptionType("product_variation", lambda _: {}).label == "Product Variation"

    def test_duplicate_raises(self):
        registry = OptionTypeRegistry()
        registry.register("order", lambda _: {})

        with pytest.raises(DuplicateOptionTypeError):
            registry.register("order", lambda _: {})

    def test_missing_resolver_raises(self):
        with pytest.raises(ValueError, match="needs a resolver"):
            OptionTypeRegistry().register("order")

    def test_register_after_freeze_raises(self):
        registry = OptionTypeRegistry()
        registry.freeze()

        with pytest.raises(RegistryFrozenError):
            registry.register("order", lambda _: {})

    def test_global_types_in_registration_order(self):
        registry = OptionTypeRegistry()
        registry.register("site", lambda _: {}, is_global=True)
        registry.register("order", lambda _: {})
        registry.register("user", lambda _: {}, is_global=True)

        assert registry.global_types() == ["site", "user"]
        assert registry.type_ids() == ["site", "order", "user"]

    def test_mark_global_before_register(self):
        registry = OptionTypeRegistry()
        registry.mark_global("user")
        registry.register("order", lambda _: {})
        registry.register("user", lambda _: {})

        assert registry.is_global("user")
        assert registry.global_types() == ["user"]

    def test_mark_global_after_register(self):
        registry = OptionTypeRegistry()
        registry.register("user", lambda _: {})

        registry.mark_global("user")

        assert registry.global_types() == ["user"]

    def test_marked_but_unregistered_type_is_not_global(self):
        registry = OptionTypeRegistry()
        registry.mark_global("user")

        assert not registry.is_global("user")
        assert registry.global_types() == []

    def test_mark_global_after_freeze_raises(self):
        registry = OptionTypeRegistry()
        registry.freeze()

        with pytest.raises(RegistryFrozenError):
            registry.mark_global("user")

    def test_clear(self):
        registry = OptionTypeRegistry()
        registry.register("order", lambda _: {})
        registry.freeze()

        registry.clear()

        assert registry.type_ids() == []
        assert registry.is_frozen is False

    def test_clear_forgets_marked_globals(self):
        registry = OptionTypeRegistry()
        registry.mark_global("user")

        registry.clear()
        registry.register("user", lambda _: {})

        assert registry.global_types() == []


class TestResolve:
    """Tests for OptionTypeRegistry.resolve()."""

    def test_resolve_flattens(self):
        registry = OptionTypeRegistry()
        registry.register("order", lambda i: {"id": i, "billing": {"email": "a@b.com"}})

        assert registry.resolve("order", 42) == {"id": 42, "billing.email": "a@b.com"}

    def test_resolver_receives_none_for_ambient_context(self):
        seen = []
        registry = OptionTypeRegistry()
        registry.register("user", lambda i: seen.append(i) or {"email": "a@b.com"})

        registry.resolve("user")

        assert seen == [None]

    def test_unknown_type_is_empty(self):
        assert OptionTypeRegistry().resolve("missing", 1) == {}

    def test_none_result_is_empty(self):
        registry = OptionTypeRegistry()
        registry.register("order", lambda _: None)

        assert registry.resolve("order", 1) == {}

    def test_non_mapping_result_is_empty(self, caplog):
        registry = OptionTypeRegistry()
        registry.register("order", lambda _: ["not", "a", "map"])

        with caplog.at_level(logging.WARNING, logger="eventrelay"):
            assert registry.resolve("order", 1) == {}

        assert "expected a mapping" in caplog.text

    def test_raising_resolver_is_empty_and_logged(self, caplog):
        def broken(_identifier):
            msg = "database down"
            raise RuntimeError(msg)

        registry = OptionTypeRegistry()
        registry.register("order", broken)

        with caplog.at_level(logging.WARNING, logger="eventrelay"):
            assert registry.resolve("order", 1) == {}

        assert "database down" in caplog.text


class TestDescribe:
    """Tests for declared options and authoring previews."""

    @pytest.fixture
    def registry(self):
        registry = OptionTypeRegistry()
        registry.register(
            "order",
            lambda i: {"total": "19.99", "status": ""} if i == 42 else None,
            lambda: [
                OptionDescriptor("total", "Order total", "10.00"),
                OptionDescriptor("status", "Order status", "pending"),
                OptionDescriptor("coupon", "Coupon code", "SAVE10"),
            ],
        )
        return registry

    def test_declared(self, registry):
        assert [d.key for d in registry.declared("order")] == ["total", "status", "coupon"]

    def test_declared_unknown_type(self, registry):
        assert registry.declared("missing") == []

    def test_describe_without_identifier_uses_examples(self, registry):
        group = registry.describe("order")

        assert group.name == "Order"
        assert [o.preview for o in group.options] == ["10.00", "pending", "SAVE10"]
        assert group.tags() == ["{order:total}", "{order:status}", "{order:coupon}"]

    def test_describe_fills_live_previews(self, registry):
        group = registry.describe("order", 42)

        # Empty live values fall back to the example
        assert [o.preview for o in group.options] == ["19.99", "pending", "SAVE10"]

    def test_failing_declared_options_are_empty(self):
        registry = OptionTypeRegistry()
        registry.register("order", lambda _: {}, lambda: 1 / 0)

        assert registry.declared("order") == []
