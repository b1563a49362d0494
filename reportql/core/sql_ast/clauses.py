"""
Clause Builder for ReportQL.

Builds each part of a report query as SQLAlchemy Core expressions over
lightweight table clauses. Every name is vetted by `escape_identifier`
before it becomes a table or column; quoting is left to the dialect's
identifier preparer. Every value is a bound parameter.
"""

import operator
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import column, func, literal, literal_column, select, table, text
from sqlalchemy.engine import Dialect
from sqlalchemy.engine.default import DefaultDialect
from sqlalchemy.sql import Select
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.sql.selectable import FromClause

from reportql.core.errors import (
    EmptyReport,
    InvalidFilterValue,
    InvalidIdentifier,
    InvalidSortField,
    NonNumericAggregation,
    UnsupportedFilterOperator,
    UnsupportedOperation,
)
from reportql.core.schema_registry.registry import JoinType, SchemaRegistry
from reportql.core.sql_ast.join_resolver import JoinPlan, resolve_field, split_field
from reportql.core.sql_ast.models import (
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

PLACEHOLDER = "?"
MAX_LIMIT = 10_000

_IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9_.]+$")
# Output aliases are single names and must not look like ordinals.
_ALIAS_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_SCALAR_TYPES = (str, int, float, bool, Decimal, date)

_COMPARISONS: dict[str, Callable[[Any, Any], ColumnElement]] = {
    FilterOperator.EQ.value: operator.eq,
    FilterOperator.NOT_EQ.value: operator.ne,
    FilterOperator.GT.value: operator.gt,
    FilterOperator.LT.value: operator.lt,
    FilterOperator.GTE.value: operator.ge,
    FilterOperator.LTE.value: operator.le,
}
_LIST_OPERATORS = {FilterOperator.IN.value, FilterOperator.NOT_IN.value}
_NULL_OPERATORS = {FilterOperator.IS_NULL.value, FilterOperator.IS_NOT_NULL.value}

_AGGREGATES = {
    AggregateOperation.SUM.value: func.sum,
    AggregateOperation.COUNT.value: func.count,
}
_AGGREGATE_PREFIX = {
    AggregateOperation.SUM.value: "total",
    AggregateOperation.COUNT.value: "count",
}


# -----------------------------
# Identifiers
# -----------------------------


def escape_identifier(identifier: str) -> str:
    """
    Vet a table/column name before it reaches a SQL construct.

    Identifiers cannot be bound as parameters, so this allow-list runs in
    front of the dialect's quoting.

    Raises:
        InvalidIdentifier: If the name has anything beyond [A-Za-z0-9_.].
    """
    if not isinstance(identifier, str) or not _IDENTIFIER_RE.match(identifier):
        raise InvalidIdentifier(f"Invalid identifier: {identifier!r}", field=identifier)
    return identifier


def escape_alias(alias: str) -> str:
    """Vet an output column alias (no dots, no leading digit)."""
    escape_identifier(alias)
    if not _ALIAS_RE.match(alias):
        raise InvalidIdentifier(f"Invalid alias: {alias!r}", field=alias)
    return alias


# -----------------------------
# FROM / JOIN
# -----------------------------


@dataclass(frozen=True)
class ReportSources:
    """
    The FROM clause of one report and the table clauses it is built from.

    `refs` maps a table reference (the main table name or a join alias)
    to the clause its columns are taken from.
    """

    registry: SchemaRegistry
    table: str
    from_clause: FromClause
    refs: dict[str, FromClause]

    def column(self, field_name: str) -> ColumnElement:
        resolved = resolve_field(self.registry, self.table, field_name)
        return self.refs[resolved.table_ref].c[escape_identifier(resolved.column)]


def _table_clause(registry: SchemaRegistry, name: str) -> FromClause:
    meta = registry.get_table(name)
    fields = meta.fields if meta else ()
    return table(
        escape_identifier(name),
        *(column(escape_identifier(f)) for f in fields),
    )


def build_from_clause(registry: SchemaRegistry, plan: JoinPlan) -> ReportSources:
    """Main table, then one join per plan step in plan order."""
    base = _table_clause(registry, plan.base_table)
    refs: dict[str, FromClause] = {plan.base_table: base}
    from_clause: FromClause = base

    for step in plan.joins:
        rel = step.relationship
        target = _table_clause(registry, rel.table)
        if rel.alias != rel.table:
            target = target.alias(escape_identifier(rel.alias))
        refs[rel.alias] = target
        from_clause = from_clause.join(
            target,
            text(rel.on),
            isouter=rel.join_type == JoinType.LEFT,
        )

    return ReportSources(
        registry=registry,
        table=plan.base_table,
        from_clause=from_clause,
        refs=refs,
    )


# -----------------------------
# SELECT
# -----------------------------


def metric_alias(metric: Metric) -> str:
    """Explicit alias, or `total_<field>` / `count_<field>`."""
    if metric.alias:
        return metric.alias
    prefix = _AGGREGATE_PREFIX.get(metric.operation)
    if prefix is None:
        raise UnsupportedOperation(
            f"Operation '{metric.operation}' is not supported (use SUM or COUNT)",
            field=metric.field,
        )
    return f"{prefix}_{metric.field.replace('.', '_')}"


def output_name(item: Dimension | Metric) -> str:
    """The column name a SELECT entry produces in the result rows."""
    if isinstance(item, Metric):
        return metric_alias(item)
    if item.alias:
        return item.alias
    return split_field(item.field)[1]


def render_dimension(sources: ReportSources, dim: Dimension) -> ColumnElement:
    col = sources.column(dim.field)
    return col.label(escape_alias(dim.alias)) if dim.alias else col


def render_metric(sources: ReportSources, metric: Metric) -> ColumnElement:
    resolved = resolve_field(sources.registry, sources.table, metric.field)
    alias = metric_alias(metric)
    if metric.operation == AggregateOperation.SUM.value and not resolved.numeric:
        raise NonNumericAggregation(
            f"Field '{metric.field}' cannot be used in SUM",
            field=metric.field,
        )
    aggregate = _AGGREGATES[metric.operation]
    return aggregate(sources.column(metric.field)).label(escape_alias(alias))


def build_select_clause(
    sources: ReportSources,
    dimensions: list[Dimension],
    metrics: list[Metric],
) -> list[ColumnElement]:
    """Dimensions first, then metrics, in declaration order."""
    columns = [render_dimension(sources, d) for d in dimensions]
    columns += [render_metric(sources, m) for m in metrics]
    if not columns:
        raise EmptyReport("A report needs at least one dimension or metric")
    return columns


# -----------------------------
# WHERE
# -----------------------------


def _is_scalar(value: Any) -> bool:
    return isinstance(value, _SCALAR_TYPES)


def bind_filter_values(filter_: Filter) -> tuple[Any, ...]:
    """
    Check a filter's value against its operator and return what it binds.

    Raises:
        UnsupportedFilterOperator: Unknown operator.
        InvalidFilterValue: Value shape does not fit the operator.
    """
    op = filter_.operator
    value = filter_.value

    if op in _NULL_OPERATORS:
        return ()

    if op in _LIST_OPERATORS:
        if not isinstance(value, (list, tuple)):
            raise InvalidFilterValue(
                f"{op} on '{filter_.field}' requires a list of values",
                field=filter_.field,
            )
        if not value:
            raise InvalidFilterValue(
                f"{op} on '{filter_.field}' requires at least one value",
                field=filter_.field,
            )
        if not all(_is_scalar(v) for v in value):
            raise InvalidFilterValue(
                f"{op} on '{filter_.field}' accepts only scalar values",
                field=filter_.field,
            )
        return tuple(value)

    if op in _COMPARISONS or op == FilterOperator.LIKE.value:
        if not _is_scalar(value):
            raise InvalidFilterValue(
                f"Operator '{op}' on '{filter_.field}' requires a single scalar value",
                field=filter_.field,
            )
        if op == FilterOperator.LIKE.value:
            return (f"%{value}%",)
        return (value,)

    raise UnsupportedFilterOperator(
        f"Operator '{op}' is not allowed",
        field=filter_.field,
    )


def render_condition(col: ColumnElement, filter_: Filter) -> ColumnElement:
    params = bind_filter_values(filter_)
    op = filter_.operator

    if op == FilterOperator.IS_NULL.value:
        return col.is_(None)
    if op == FilterOperator.IS_NOT_NULL.value:
        return col.is_not(None)
    if op in _LIST_OPERATORS:
        # One bound parameter per item, rendered as (?, ?, ...)
        values = [literal(v) for v in params]
        return col.in_(values) if op == FilterOperator.IN.value else col.not_in(values)
    if op == FilterOperator.LIKE.value:
        return col.like(literal(params[0]))
    return _COMPARISONS[op](col, literal(params[0]))


def build_where_clause(
    sources: ReportSources, filters: list[Filter]
) -> list[ColumnElement]:
    """One condition per filter; the statement ANDs them together."""
    return [render_condition(sources.column(f.field), f) for f in filters]


# -----------------------------
# GROUP BY
# -----------------------------


def build_group_by_clause(
    sources: ReportSources, dimensions: list[Dimension]
) -> list[ColumnElement]:
    return [sources.column(d.field) for d in dimensions]


# -----------------------------
# ORDER BY
# -----------------------------


@dataclass(frozen=True)
class SortTarget:
    """The SELECT entry a sort field refers to."""

    position: int  # 1-based ordinal in the SELECT list
    alias: str | None  # explicit alias only
    is_metric: bool


def find_sort_target(config: ReportConfig, field_name: str) -> SortTarget | None:
    """
    Match a sort field to the report's own dimensions, then metrics.

    A field matches an entry's `field` or its explicit `alias`.
    """
    position = 1
    for dim in config.dimensions:
        if field_name == dim.field or (dim.alias and field_name == dim.alias):
            return SortTarget(position=position, alias=dim.alias, is_metric=False)
        position += 1
    for metric in config.metrics:
        if field_name == metric.field or (metric.alias and field_name == metric.alias):
            return SortTarget(position=position, alias=metric.alias, is_metric=True)
        position += 1
    return None


def _directed(expr: ColumnElement, direction: SortDirection) -> ColumnElement:
    return expr.desc() if direction == SortDirection.DESC else expr.asc()


def build_order_by_clause(
    sources: ReportSources,
    config: ReportConfig,
    select_columns: list[ColumnElement],
    has_group_by: bool,
) -> list[ColumnElement]:
    """
    Build ORDER BY entries.

    Grouped queries may only sort by their own dimensions/metrics: by
    alias when one was given, otherwise by SELECT ordinal, since an
    unaliased aggregate cannot be repeated in ORDER BY.
    """
    return [
        _directed(_sort_expression(sources, config, spec, select_columns, has_group_by), spec.direction)
        for spec in config.sort
    ]


def _sort_expression(
    sources: ReportSources,
    config: ReportConfig,
    spec: SortSpec,
    select_columns: list[ColumnElement],
    has_group_by: bool,
) -> ColumnElement:
    if has_group_by:
        target = find_sort_target(config, spec.field)
        if target is None:
            raise InvalidSortField(
                f"Field '{spec.field}' cannot be used in ORDER BY on a grouped "
                "report; use one of the configured dimensions or metrics",
                field=spec.field,
            )
        if target.alias:
            # A labeled SELECT entry renders as its label name in ORDER BY.
            return select_columns[target.position - 1]
        return literal_column(str(target.position))

    allowed = sources.registry.allowed_fields(sources.table) or frozenset()
    if spec.field not in allowed:
        raise InvalidSortField(
            f"Field '{spec.field}' is not allowed for sorting on table '{sources.table}'",
            field=spec.field,
        )
    return sources.refs[sources.table].c[escape_identifier(spec.field)]


# -----------------------------
# LIMIT
# -----------------------------


def build_limit_clause(limit: int | None) -> int | None:
    """None when absent or <= 0, otherwise clamped to MAX_LIMIT."""
    if limit is None or limit <= 0:
        return None
    return min(limit, MAX_LIMIT)


# -----------------------------
# Statement
# -----------------------------


def default_dialect() -> Dialect:
    """Generic dialect with `?` placeholders and ANSI identifier quoting."""
    return DefaultDialect(paramstyle="qmark")


def build_statement(
    sources: ReportSources,
    columns: list[ColumnElement],
    conditions: list[ColumnElement] | None = None,
    group_by: list[ColumnElement] | None = None,
    order_by: list[ColumnElement] | None = None,
    limit: int | None = None,
) -> Select:
    """Assemble the report's SELECT statement."""
    query = select(*columns).select_from(sources.from_clause)
    if conditions:
        query = query.where(*conditions)
    if group_by:
        query = query.group_by(*group_by)
    if order_by:
        query = query.order_by(*order_by)
    if limit is not None:
        query = query.limit(limit)
    return query


def render_statement(query: Select, dialect: Dialect | None = None) -> CompiledQuery:
    """
    Compile a statement to single-line SQL text and positional parameters.

    Parameters are collected in the order their placeholders appear.
    """
    compiled = query.compile(dialect=dialect or default_dialect())
    values = compiled.params
    params = tuple(values[name] for name in compiled.positiontup or ())
    return CompiledQuery(sql=" ".join(str(compiled).split()), params=params)
