"""
Tests for the available-fields catalog.
"""

import pytest

from reportql.core.errors import UnknownTable
from reportql.core.reporting.catalog import get_available_fields


class TestAvailableFields:
    """Tests for per-table field listings."""

    def test_orders(self) -> None:
        available = get_available_fields("orders")

        assert available.table == "orders"
        assert available.dimensions == [
            "id", "agency_id", "total_points", "status", "created_at", "updated_at",
        ]
        assert available.metrics == ["total_points"]
        assert [r.key for r in available.related_tables] == ["agency", "items", "product"]

    def test_related_fields_come_from_target_table(self) -> None:
        available = get_available_fields("order_items")
        product = next(r for r in available.related_tables if r.key == "product")

        assert product.table == "products"
        assert product.alias == "products"
        assert "name" in product.fields

    def test_table_without_relationships(self) -> None:
        available = get_available_fields("agencies")
        assert available.related_tables == []
        assert available.metrics == []

    @pytest.mark.parametrize("table", ["invoices", "products"])
    def test_not_a_source_table(self, table: str) -> None:
        with pytest.raises(UnknownTable):
            get_available_fields(table)
