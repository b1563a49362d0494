"""
Tests for Join Resolver.

Tests that join plans are correctly generated from report field references.
"""

import pytest

from reportql.core.errors import UnknownField, UnknownRelationship, UnknownTable
from reportql.core.schema_registry.registry import (
    JoinType,
    Relationship,
    SchemaRegistry,
    TableMeta,
    get_default_registry,
)
from reportql.core.sql_ast.join_resolver import (
    JoinPlan,
    JoinResolver,
    resolve_field,
    split_field,
)


# -----------------------------
# Fixtures
# -----------------------------


@pytest.fixture
def resolver() -> JoinResolver:
    """Create a resolver with the default registry."""
    return JoinResolver(registry=get_default_registry())


@pytest.fixture
def chained_registry() -> SchemaRegistry:
    """A registry with a two-level requires chain: c -> b -> a."""
    tables = {
        "root": TableMeta(name="root", fields=("id", "a_id")),
        "t_a": TableMeta(name="t_a", fields=("id", "b_id", "label"), reportable=False),
        "t_b": TableMeta(name="t_b", fields=("id", "c_id", "label"), reportable=False),
        "t_c": TableMeta(name="t_c", fields=("id", "label"), reportable=False),
    }
    relationships = [
        Relationship("root", "c", "t_c", "t_c", "t_c.id = t_b.c_id", requires="b"),
        Relationship("root", "a", "t_a", "t_a", "t_a.id = root.a_id"),
        Relationship("root", "b", "t_b", "t_b", "t_b.id = t_a.b_id", requires="a"),
    ]
    return SchemaRegistry(tables=tables, relationships=relationships)


# -----------------------------
# Field Splitting
# -----------------------------


class TestSplitField:
    """Tests for separating relationship keys from columns."""

    def test_bare_field(self) -> None:
        assert split_field("status") == (None, "status")

    def test_related_field(self) -> None:
        assert split_field("agency.name") == ("agency", "name")

    @pytest.mark.parametrize("field_name", ["a.b.c", ".name", "agency."])
    def test_malformed_reference(self, field_name: str) -> None:
        with pytest.raises(UnknownField):
            split_field(field_name)


# -----------------------------
# Field Resolution
# -----------------------------


class TestResolveField:
    """Tests for resolving a single field reference."""

    def test_main_table_field(self) -> None:
        resolved = resolve_field(get_default_registry(), "orders", "total_points")

        assert resolved.relationship_key is None
        assert resolved.table_ref == "orders"
        assert resolved.qualified == "orders.total_points"
        assert resolved.numeric is True

    def test_related_field_uses_alias_allow_list(self) -> None:
        """`agency.name` is checked against agencies, not orders."""
        resolved = resolve_field(get_default_registry(), "orders", "agency.name")

        assert resolved.relationship_key == "agency"
        assert resolved.table_ref == "agencies"
        assert resolved.column == "name"
        assert resolved.numeric is False

    def test_related_numeric_field(self) -> None:
        resolved = resolve_field(get_default_registry(), "orders", "items.quantity")
        assert resolved.numeric is True

    def test_main_field_not_on_table(self) -> None:
        """`name` exists on agencies but is not an orders column."""
        with pytest.raises(UnknownField) as exc_info:
            resolve_field(get_default_registry(), "orders", "name")
        assert exc_info.value.field == "name"

    def test_related_field_not_allowed(self) -> None:
        with pytest.raises(UnknownField) as exc_info:
            resolve_field(get_default_registry(), "orders", "agency.password")
        assert "agencies" in str(exc_info.value)

    def test_unknown_relationship_lists_available(self) -> None:
        with pytest.raises(UnknownRelationship) as exc_info:
            resolve_field(get_default_registry(), "orders", "customer.name")
        assert "agency, items, product" in str(exc_info.value)

    def test_no_plural_guessing(self) -> None:
        """Relationship keys are exact: `agencies` is not `agency`."""
        with pytest.raises(UnknownRelationship):
            resolve_field(get_default_registry(), "orders", "agencies.name")

    def test_unknown_table(self) -> None:
        with pytest.raises(UnknownTable):
            resolve_field(get_default_registry(), "invoices", "id")


# -----------------------------
# Single Table Tests
# -----------------------------


class TestSingleTableReports:
    """Tests for reports that only need the main table."""

    def test_no_joins(self, resolver: JoinResolver) -> None:
        plan = resolver.resolve("orders", ["status", "total_points"])

        assert plan == JoinPlan(base_table="orders", joins=())

    def test_empty_field_list(self, resolver: JoinResolver) -> None:
        plan = resolver.resolve("agencies", [])
        assert plan.joins == ()

    def test_join_only_table_is_not_a_source(self, resolver: JoinResolver) -> None:
        with pytest.raises(UnknownTable):
            resolver.resolve("products", ["name"])


# -----------------------------
# Join Tests
# -----------------------------


class TestJoins:
    """Tests for reports requiring joins."""

    def test_orders_to_agency(self, resolver: JoinResolver) -> None:
        plan = resolver.resolve("orders", ["agency.name"])

        assert plan.keys == ("agency",)
        rel = plan.joins[0].relationship
        assert rel.table == "agencies"
        assert rel.alias == "agencies"
        assert rel.on == "agencies.id = orders.agency_id"
        assert rel.join_type == JoinType.LEFT

    def test_same_relationship_joined_once(self, resolver: JoinResolver) -> None:
        plan = resolver.resolve("orders", ["agency.name", "agency.branch", "agency.name"])
        assert plan.keys == ("agency",)

    def test_requires_joined_first(self, resolver: JoinResolver) -> None:
        """`product` on orders needs `items` earlier in FROM."""
        plan = resolver.resolve("orders", ["product.name"])
        assert plan.keys == ("items", "product")

    def test_requires_not_duplicated(self, resolver: JoinResolver) -> None:
        plan = resolver.resolve("orders", ["product.name", "items.quantity"])
        assert plan.keys == ("items", "product")

    def test_order_independent_of_field_order(self, resolver: JoinResolver) -> None:
        fields = ["product.name", "agency.name", "items.quantity"]
        forward = resolver.resolve("orders", fields)
        backward = resolver.resolve("orders", list(reversed(fields)))

        assert forward == backward
        assert forward.keys == ("agency", "items", "product")

    def test_same_key_differs_per_source_table(self, resolver: JoinResolver) -> None:
        """`agency` on the ledger joins via agency_id, on imports via cnpj."""
        ledger = resolver.resolve("agency_points_ledger", ["agency.name"])
        imports = resolver.resolve("agency_points_import_items", ["agency.name"])

        assert ledger.joins[0].relationship.on == "agencies.id = agency_points_ledger.agency_id"
        assert imports.joins[0].relationship.on == "agencies.cnpj = agency_points_import_items.cnpj"

    def test_order_items_product_has_no_requirement(self, resolver: JoinResolver) -> None:
        plan = resolver.resolve("order_items", ["product.name", "order.status"])
        assert plan.keys == ("order", "product")

    def test_deep_requires_chain(self, chained_registry: SchemaRegistry) -> None:
        plan = JoinResolver(chained_registry).resolve("root", ["c.label"])
        assert plan.keys == ("a", "b", "c")

    def test_every_requires_edge_satisfied(self, chained_registry: SchemaRegistry) -> None:
        plan = JoinResolver(chained_registry).resolve("root", ["b.label", "c.label", "a.label"])

        positions = {key: i for i, key in enumerate(plan.keys)}
        for step in plan.joins:
            if step.relationship.requires:
                assert positions[step.relationship.requires] < positions[step.key]
        assert len(set(plan.keys)) == len(plan.keys)


# -----------------------------
# Error Cases
# -----------------------------


class TestJoinErrors:
    """Tests for join resolution failures."""

    def test_unknown_relationship(self, resolver: JoinResolver) -> None:
        with pytest.raises(UnknownRelationship) as exc_info:
            resolver.resolve("agencies", ["orders.status"])
        assert exc_info.value.field == "orders.status"

    def test_unknown_field_on_related(self, resolver: JoinResolver) -> None:
        with pytest.raises(UnknownField):
            resolver.resolve("orders", ["items.price"])

    def test_unknown_source_table(self, resolver: JoinResolver) -> None:
        with pytest.raises(UnknownTable):
            resolver.resolve("users", ["id"])
