"""SQL AST models, join resolution and clause building for ReportQL."""

from .clauses import (
    MAX_LIMIT,
    ReportSources,
    build_from_clause,
    build_group_by_clause,
    build_limit_clause,
    build_order_by_clause,
    build_select_clause,
    build_statement,
    build_where_clause,
    default_dialect,
    escape_identifier,
    render_statement,
)
from .join_resolver import JoinPlan, JoinResolver, JoinStep, resolve_field
from .models import (
    AggregateOperation,
    CompiledQuery,
    Dimension,
    Filter,
    FilterOperator,
    Metric,
    ReportConfig,
    SortDirection,
    SortSpec,
)

__all__ = [
    "MAX_LIMIT",
    "AggregateOperation",
    "CompiledQuery",
    "Dimension",
    "Filter",
    "FilterOperator",
    "JoinPlan",
    "JoinResolver",
    "JoinStep",
    "Metric",
    "ReportConfig",
    "ReportSources",
    "SortDirection",
    "SortSpec",
    "build_from_clause",
    "build_group_by_clause",
    "build_limit_clause",
    "build_order_by_clause",
    "build_select_clause",
    "build_statement",
    "build_where_clause",
    "default_dialect",
    "escape_identifier",
    "render_statement",
    "resolve_field",
]
