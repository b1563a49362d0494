"""
Join Resolver for ReportQL.

Resolves "relationshipKey.field" references against the schema registry
and determines the dependency-ordered joins a report needs.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from reportql.core.errors import UnknownField, UnknownRelationship, UnknownTable
from reportql.core.schema_registry.registry import (
    Relationship,
    SchemaRegistry,
    get_default_registry,
)

FIELD_SEPARATOR = "."


# -----------------------------
# Data structures
# -----------------------------


@dataclass(frozen=True)
class ResolvedField:
    """A field reference checked against the registry."""

    field: str  # as written in the config
    relationship_key: str | None  # None for main-table fields
    table_ref: str  # main table name or join alias
    column: str
    numeric: bool

    @property
    def qualified(self) -> str:
        return f"{self.table_ref}{FIELD_SEPARATOR}{self.column}"


@dataclass(frozen=True)
class JoinStep:
    """A single join, identified by its relationship key."""

    key: str
    relationship: Relationship


@dataclass(frozen=True)
class JoinPlan:
    """
    Complete join plan for a report.

    Contains the base table and ordered list of joins to emit.
    """

    base_table: str
    joins: tuple[JoinStep, ...]  # Use tuple for immutability

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(step.key for step in self.joins)


# -----------------------------
# Field resolution
# -----------------------------


def split_field(field_name: str) -> tuple[str | None, str]:
    """Split "key.column" into (key, column); bare names give (None, column)."""
    parts = field_name.split(FIELD_SEPARATOR)
    if len(parts) == 1:
        return None, parts[0]
    if len(parts) == 2 and all(parts):
        return parts[0], parts[1]
    raise UnknownField(
        f"Field '{field_name}' must be 'column' or 'relationship.column'",
        field=field_name,
    )


def resolve_field(
    registry: SchemaRegistry, table: str, field_name: str
) -> ResolvedField:
    """
    Resolve a field reference for a report on `table`.

    Raises:
        UnknownTable: If `table` is not in the registry.
        UnknownRelationship: If the relationship key is not declared on `table`.
        UnknownField: If the column is not allow-listed where it lives.
    """
    key, column = split_field(field_name)

    if key is None:
        allowed = registry.allowed_fields(table)
        if allowed is None:
            raise UnknownTable(f"Unknown source table '{table}'", field=field_name)
        if column not in allowed:
            raise UnknownField(
                f"Field '{column}' is not allowed on table '{table}'",
                field=field_name,
            )
        return ResolvedField(
            field=field_name,
            relationship_key=None,
            table_ref=table,
            column=column,
            numeric=registry.is_numeric(table, column),
        )

    relationship = registry.relationship(table, key)
    if relationship is None:
        available = ", ".join(r.key for r in registry.relationships_of(table)) or "none"
        raise UnknownRelationship(
            f"Relationship '{key}' not found for table '{table}' "
            f"(available: {available})",
            field=field_name,
        )

    allowed = registry.fields_of(relationship.alias) or frozenset()
    if column not in allowed:
        raise UnknownField(
            f"Field '{column}' is not allowed on related table '{relationship.alias}'",
            field=field_name,
        )
    return ResolvedField(
        field=field_name,
        relationship_key=key,
        table_ref=relationship.alias,
        column=column,
        numeric=column in registry.numeric_fields_of(relationship.alias),
    )


# -----------------------------
# Resolver
# -----------------------------


class JoinResolver:
    """
    Resolves the joins required by a report's field references.

    Relationship keys are visited in sorted order and each `requires`
    dependency is emitted before its dependent, so the plan depends only
    on which relationships are referenced.
    """

    def __init__(self, registry: SchemaRegistry | None = None):
        """
        Initialize the resolver.

        Args:
            registry: Schema registry to use for lookups.
                     Uses default registry if not provided.
        """
        self._registry = registry or get_default_registry()

    def resolve(self, table: str, fields: Iterable[str]) -> JoinPlan:
        """
        Determine the join steps needed to satisfy every field reference.

        Args:
            table: The report's main table.
            fields: Every filter/dimension/metric field of the report.

        Returns:
            JoinPlan with the base table and dependency-ordered joins.

        Raises:
            UnknownTable, UnknownRelationship, UnknownField
        """
        if not self._registry.is_reportable(table):
            raise UnknownTable(f"Unknown source table '{table}'")

        referenced: set[str] = set()
        for field_name in fields:
            resolved = resolve_field(self._registry, table, field_name)
            if resolved.relationship_key is not None:
                referenced.add(resolved.relationship_key)

        joins: list[JoinStep] = []
        visited: set[str] = set()
        for key in sorted(referenced):
            self._add_with_requirements(table, key, joins, visited)

        return JoinPlan(base_table=table, joins=tuple(joins))

    # -------------------------
    # Helpers
    # -------------------------

    def _add_with_requirements(
        self,
        table: str,
        key: str,
        joins: list[JoinStep],
        visited: set[str],
    ) -> None:
        """Append `key` after everything it requires, at most once."""
        if key in visited:
            return

        relationship = self._registry.relationship(table, key)
        if relationship is None:
            raise UnknownRelationship(
                f"Relationship '{key}' not found for table '{table}'"
            )

        # Marked before recursing so a malformed cycle terminates.
        visited.add(key)
        if relationship.requires is not None:
            self._add_with_requirements(table, relationship.requires, joins, visited)

        joins.append(JoinStep(key=key, relationship=relationship))
