"""
Schema Registry for ReportQL.

This module defines:
- Which tables can be reported on
- Which fields of each table are allow-listed (and which are numeric)
- Which relationships each source table may join through

This is the SINGLE source of truth for report compilation. It is static,
load-once configuration: there is no mutation API.
"""

import re
from dataclasses import dataclass
from enum import Enum

from reportql.core.errors import RegistryConfigurationError


# Join predicates are rendered as SQL text: column references and equalities only.
_JOIN_PREDICATE_RE = re.compile(r"^[A-Za-z0-9_.=\s]+$")


class JoinType(str, Enum):
    """Supported SQL join kinds."""

    LEFT = "LEFT"
    INNER = "INNER"


# -----------------------------
# Table & Relationship Metadata
# -----------------------------


@dataclass(frozen=True)
class TableMeta:
    """Metadata for a database table."""

    name: str
    fields: tuple[str, ...]  # allow-listed columns, in display order
    numeric_fields: frozenset[str] = frozenset()  # columns usable in SUM
    description: str = ""
    reportable: bool = True  # False for join-only tables


@dataclass(frozen=True)
class Relationship:
    """Outbound join from a source table, looked up by (source_table, key)."""

    source_table: str
    key: str
    table: str  # target table
    alias: str  # alias used in FROM and in field references
    on: str  # pre-vetted join predicate, never user input
    join_type: JoinType = JoinType.LEFT
    requires: str | None = None  # key on the same source table joined first


# -----------------------------
# Schema Registry Class
# -----------------------------


class SchemaRegistry:
    """
    Read-only lookup surface over tables and relationships.

    Lookups return None/False for unknown names; callers are responsible
    for turning that into a validation error.
    """

    def __init__(
        self,
        tables: dict[str, TableMeta],
        relationships: list[Relationship],
    ):
        self._tables = tables
        self._relationships: dict[tuple[str, str], Relationship] = {}
        self._alias_index: dict[str, str] = {}

        for rel in relationships:
            if rel.source_table not in tables:
                raise RegistryConfigurationError(
                    f"Relationship '{rel.key}' declared on unknown table '{rel.source_table}'"
                )
            if rel.table not in tables:
                raise RegistryConfigurationError(
                    f"Relationship '{rel.source_table}.{rel.key}' targets unknown table '{rel.table}'"
                )
            if not _JOIN_PREDICATE_RE.match(rel.on):
                raise RegistryConfigurationError(
                    f"Relationship '{rel.source_table}.{rel.key}' has an invalid join predicate: {rel.on!r}"
                )
            if (rel.source_table, rel.key) in self._relationships:
                raise RegistryConfigurationError(
                    f"Duplicate relationship '{rel.source_table}.{rel.key}'"
                )
            bound = self._alias_index.setdefault(rel.alias, rel.table)
            if bound != rel.table:
                raise RegistryConfigurationError(
                    f"Alias '{rel.alias}' is bound to both '{bound}' and '{rel.table}'"
                )
            # Aliases share the FROM clause namespace with the source table
            # and with every sibling join.
            if rel.alias == rel.source_table or any(
                other.alias == rel.alias
                for (source, _), other in self._relationships.items()
                if source == rel.source_table
            ):
                raise RegistryConfigurationError(
                    f"Alias '{rel.alias}' collides within table '{rel.source_table}'"
                )
            self._relationships[(rel.source_table, rel.key)] = rel

        self._check_requires_graph()

    def _check_requires_graph(self) -> None:
        """Reject dangling or cyclic `requires` chains."""
        for (source, key), rel in self._relationships.items():
            seen = {key}
            current = rel
            while current.requires is not None:
                nxt = self._relationships.get((source, current.requires))
                if nxt is None:
                    raise RegistryConfigurationError(
                        f"Relationship '{source}.{current.key}' requires unknown "
                        f"relationship '{current.requires}'"
                    )
                if nxt.key in seen:
                    raise RegistryConfigurationError(
                        f"Cycle in requires chain starting at '{source}.{key}'"
                    )
                seen.add(nxt.key)
                current = nxt

    # -------------------------
    # Lookup Methods
    # -------------------------

    def get_table(self, table_name: str) -> TableMeta | None:
        """Get table metadata by name."""
        return self._tables.get(table_name)

    def is_reportable(self, table_name: str) -> bool:
        """Check if a table may be used as a report's source table."""
        table = self._tables.get(table_name)
        return table is not None and table.reportable

    def allowed_fields(self, table_name: str) -> frozenset[str] | None:
        """Allow-listed fields of a table, or None if the table is unknown."""
        table = self._tables.get(table_name)
        return frozenset(table.fields) if table else None

    def is_numeric(self, table_name: str, field_name: str) -> bool:
        table = self._tables.get(table_name)
        return table is not None and field_name in table.numeric_fields

    def relationship(self, table_name: str, key: str) -> Relationship | None:
        """Get a relationship by its exact declared key."""
        return self._relationships.get((table_name, key))

    def relationships_of(self, table_name: str) -> list[Relationship]:
        """All relationships declared on a source table, in declaration order."""
        return [rel for (source, _), rel in self._relationships.items() if source == table_name]

    def fields_of(self, related_alias: str) -> frozenset[str] | None:
        """Allow-listed fields on the far side of a join, by alias."""
        table_name = self._alias_index.get(related_alias)
        return self.allowed_fields(table_name) if table_name else None

    def numeric_fields_of(self, related_alias: str) -> frozenset[str]:
        table_name = self._alias_index.get(related_alias)
        table = self._tables.get(table_name) if table_name else None
        return table.numeric_fields if table else frozenset()

    def list_tables(self, reportable_only: bool = True) -> list[str]:
        """List table names (source tables only by default)."""
        return [
            name
            for name, table in self._tables.items()
            if table.reportable or not reportable_only
        ]


# -----------------------------
# Default Registry Definition
# -----------------------------

_AGENCY_FIELDS = (
    "id", "cnpj", "name", "email", "phone", "address", "active",
    "branch", "executive_name", "created_at", "updated_at",
)

_DEFAULT_TABLES: dict[str, TableMeta] = {
    "agency_points_import_items": TableMeta(
        name="agency_points_import_items",
        description="Rows of imported agency sales spreadsheets",
        fields=(
            "id", "import_id", "sale_id", "sale_date", "cnpj", "agency_name",
            "branch", "store", "executive_name", "supplier", "product_name",
            "company", "points",
        ),
        numeric_fields=frozenset({"points"}),
    ),
    "agencies": TableMeta(
        name="agencies",
        description="Registered travel agencies",
        fields=_AGENCY_FIELDS,
    ),
    "agency_points_ledger": TableMeta(
        name="agency_points_ledger",
        description="Points credits and debits per agency",
        fields=(
            "id", "agency_id", "source_type", "source_id", "points",
            "description", "created_at",
        ),
        numeric_fields=frozenset({"points"}),
    ),
    "orders": TableMeta(
        name="orders",
        description="Reward orders placed by agencies",
        fields=("id", "agency_id", "total_points", "status", "created_at", "updated_at"),
        numeric_fields=frozenset({"total_points"}),
    ),
    "order_items": TableMeta(
        name="order_items",
        description="Line items of reward orders",
        fields=("id", "order_id", "product_id", "quantity", "points_per_unit"),
        numeric_fields=frozenset({"quantity", "points_per_unit"}),
    ),
    "products": TableMeta(
        name="products",
        description="Reward catalog products",
        fields=(
            "id", "category_id", "name", "description", "quantity", "active",
            "created_at", "updated_at",
        ),
        numeric_fields=frozenset({"quantity"}),
        reportable=False,
    ),
}

_DEFAULT_RELATIONSHIPS: list[Relationship] = [
    Relationship(
        source_table="agency_points_import_items",
        key="agency",
        table="agencies",
        alias="agencies",
        on="agencies.cnpj = agency_points_import_items.cnpj",
    ),
    Relationship(
        source_table="agency_points_ledger",
        key="agency",
        table="agencies",
        alias="agencies",
        on="agencies.id = agency_points_ledger.agency_id",
    ),
    Relationship(
        source_table="orders",
        key="agency",
        table="agencies",
        alias="agencies",
        on="agencies.id = orders.agency_id",
    ),
    Relationship(
        source_table="orders",
        key="items",
        table="order_items",
        alias="order_items",
        on="order_items.order_id = orders.id",
    ),
    Relationship(
        source_table="orders",
        key="product",
        table="products",
        alias="products",
        on="products.id = order_items.product_id",
        requires="items",
    ),
    Relationship(
        source_table="order_items",
        key="order",
        table="orders",
        alias="orders",
        on="orders.id = order_items.order_id",
    ),
    Relationship(
        source_table="order_items",
        key="product",
        table="products",
        alias="products",
        on="products.id = order_items.product_id",
    ),
]


def get_default_registry() -> SchemaRegistry:
    """Get the default schema registry instance."""
    return SchemaRegistry(
        tables=_DEFAULT_TABLES,
        relationships=_DEFAULT_RELATIONSHIPS,
    )
