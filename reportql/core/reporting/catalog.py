"""Available-fields catalog used by report builder UIs."""

from pydantic import BaseModel

from reportql.core.errors import UnknownTable
from reportql.core.schema_registry.registry import (
    SchemaRegistry,
    get_default_registry,
)


class RelatedTableFields(BaseModel):
    """Fields reachable through one relationship, referenced as `key.field`."""

    key: str
    table: str
    alias: str
    fields: list[str]


class AvailableFields(BaseModel):
    """What a report on `table` may reference."""

    table: str
    dimensions: list[str]
    metrics: list[str]  # numeric fields, usable in SUM
    related_tables: list[RelatedTableFields]


def get_available_fields(
    table: str, registry: SchemaRegistry | None = None
) -> AvailableFields:
    """
    List the dimension, metric and related fields for a source table.

    Raises:
        UnknownTable: If `table` is not a reportable table.
    """
    registry = registry or get_default_registry()
    meta = registry.get_table(table)
    if meta is None or not meta.reportable:
        raise UnknownTable(f"Unknown source table '{table}'")

    related = []
    for rel in registry.relationships_of(table):
        target = registry.get_table(rel.table)
        related.append(
            RelatedTableFields(
                key=rel.key,
                table=rel.table,
                alias=rel.alias,
                fields=list(target.fields) if target else [],
            )
        )

    return AvailableFields(
        table=table,
        dimensions=list(meta.fields),
        metrics=[f for f in meta.fields if f in meta.numeric_fields],
        related_tables=related,
    )
