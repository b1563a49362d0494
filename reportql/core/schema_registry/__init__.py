"""Schema Registry for ReportQL - defines tables, allow-listed fields, and relationships."""

from .registry import (
    JoinType,
    Relationship,
    SchemaRegistry,
    TableMeta,
    get_default_registry,
)

__all__ = [
    "JoinType",
    "Relationship",
    "SchemaRegistry",
    "TableMeta",
    "get_default_registry",
]
