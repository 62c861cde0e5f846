"""Tests for TypeBuilder registration checks and descriptor lookups."""

from __future__ import annotations

import logging

import pytest

from writeguard.domain import (
    ConfigurationError,
    PropertyDescriptor,
    SemanticType,
    TypeBuilder,
    custom,
    length,
    one_of,
    present,
    value_range,
)


class TestTypeBuilder:
    def test_builds_descriptor(self) -> None:
        descriptor = (
            TypeBuilder("orders", key=("id",))
            .property("id", SemanticType.INTEGER, nullable=False)
            .property("state")
            .rule("state", one_of(["started", "accepted"]))
            .build()
        )
        assert descriptor.name == "orders"
        assert descriptor.table_name == "orders"
        assert descriptor.key == ("id",)
        assert [p.name for p in descriptor.properties] == ["id", "state"]
        assert descriptor.rule_set.rule_count == 1

    def test_rules_are_bound_to_their_property(self) -> None:
        descriptor = TypeBuilder("t").property("p").rule("p", present()).build()
        (rule,) = descriptor.rule_set.rules_for("p")
        assert rule.target == "p"

    def test_declared_type_from_string(self) -> None:
        descriptor = TypeBuilder("t").property("n", "integer").build()
        assert descriptor.get_property("n").declared_type is SemanticType.INTEGER

    def test_table_name_override(self) -> None:
        assert TypeBuilder("Order", table_name="orders").build().table_name == "orders"

    def test_initial_properties(self) -> None:
        descriptor = TypeBuilder("t", [PropertyDescriptor("a"), PropertyDescriptor("b")]).build()
        assert [p.name for p in descriptor.properties] == ["a", "b"]

    def test_unknown_property_is_config_error(self) -> None:
        builder = TypeBuilder("t").property("a").rule("missing", present())
        with pytest.raises(ConfigurationError, match="unknown property t.missing"):
            builder.build()

    def test_incompatible_builtin(self) -> None:
        builder = TypeBuilder("t").property("n", SemanticType.INTEGER).rule("n", length(max=3))
        with pytest.raises(ConfigurationError):
            builder.build()

    def test_custom_value_type_mismatch(self) -> None:
        rule = custom(lambda *a: True, name="positive", value_type=SemanticType.INTEGER)
        builder = TypeBuilder("t").property("s").rule("s", rule)
        with pytest.raises(ConfigurationError, match="positive"):
            builder.build()

    def test_custom_value_type_match(self) -> None:
        rule = custom(lambda *a: True, name="positive", value_type="integer")
        TypeBuilder("t").property("n", "integer").rule("n", rule).build()

    def test_non_persistent_rules_dropped(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="writeguard.domain.descriptors"):
            descriptor = (
                TypeBuilder("t")
                .property("confirm", persistent=False)
                .rule("confirm", length(max=1))
                .build()
            )
        assert descriptor.rule_set.rules_for("confirm") == ()
        assert "Ignoring length(at most 1) on non-persistent property t.confirm" in caplog.text

    def test_incompatible_rule_on_non_persistent_is_ignored(self) -> None:
        descriptor = (
            TypeBuilder("t")
            .property("n", SemanticType.INTEGER, persistent=False)
            .rule("n", length(max=1))
            .build()
        )
        assert descriptor.rule_set.rule_count == 0

    def test_not_a_rule(self) -> None:
        with pytest.raises(ConfigurationError, match="Expected a Rule"):
            TypeBuilder("t").property("p").rule("p", "length")  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        "builder",
        [
            lambda: TypeBuilder("  "),
            lambda: TypeBuilder("t").property(""),
            lambda: TypeBuilder("t").property("a").property("a"),
            lambda: TypeBuilder("t", key=("id",)).property("a"),
            lambda: TypeBuilder("t", key=("id",)).property("id", persistent=False),
        ],
        ids=["empty-name", "empty-property", "duplicate", "missing-key", "transient-key"],
    )
    def test_invalid_registrations(self, builder) -> None:
        with pytest.raises(ConfigurationError):
            builder().build()

    def test_bad_semantic_type(self) -> None:
        with pytest.raises(ValueError):
            TypeBuilder("t").property("x", "decimal")


class TestTypeDescriptor:
    @pytest.fixture
    def descriptor(self):
        return (
            TypeBuilder("t")
            .property("a")
            .property("b", SemanticType.INTEGER)
            .property("c", persistent=False)
            .rule("b", value_range(min=0))
            .rule("a", present())
            .build()
        )

    def test_get_property(self, descriptor) -> None:
        assert descriptor.get_property("b").declared_type is SemanticType.INTEGER

    def test_get_unknown_property(self, descriptor) -> None:
        with pytest.raises(KeyError, match="no property 'zz'"):
            descriptor.get_property("zz")

    def test_has_property(self, descriptor) -> None:
        assert descriptor.has_property("c")
        assert not descriptor.has_property("zz")

    def test_persistent_names(self, descriptor) -> None:
        assert descriptor.persistent_names == ("a", "b")

    def test_rule_set_iterates_in_declaration_order(self, descriptor) -> None:
        assert [prop.name for prop, _ in descriptor.rule_set] == ["a", "b"]

    def test_rule_set_is_read_only(self, descriptor) -> None:
        with pytest.raises(TypeError):
            descriptor.rule_set.rules["a"] = ()  # type: ignore[index]
