"""
Report Config Validator for ReportQL.

Enforces report-level business rules before compilation is attempted.
Rules run in a fixed order and the first violation is raised.
"""

from reportql.core.errors import (
    DuplicateOutputColumn,
    EmptyReport,
    InvalidLimitRange,
    InvalidSortField,
    MissingGroupingForAggregate,
    MissingLimitForAggregateSort,
    NonNumericAggregation,
    UnknownTable,
    UnsupportedOperation,
)
from reportql.core.schema_registry.registry import (
    SchemaRegistry,
    get_default_registry,
)
from reportql.core.sql_ast.clauses import (
    MAX_LIMIT,
    bind_filter_values,
    escape_alias,
    find_sort_target,
    output_name,
)
from reportql.core.sql_ast.join_resolver import JoinResolver, resolve_field
from reportql.core.sql_ast.models import (
    AggregateOperation,
    Filter,
    Metric,
    ReportConfig,
)

SUPPORTED_OPERATIONS = {op.value for op in AggregateOperation}


# -----------------------------
# Validator
# -----------------------------


class ReportConfigValidator:
    """
    Validates ReportConfig objects against the schema registry.

    Ensures the report is well formed, every field is allow-listed where
    it lives, aggregates are legal, and sorting stays within the report's
    own output columns.
    """

    def __init__(self, registry: SchemaRegistry | None = None):
        """
        Initialize the validator.

        Args:
            registry: Schema registry to validate against.
                     Uses default registry if not provided.
        """
        self._registry = registry or get_default_registry()
        self._resolver = JoinResolver(self._registry)

    def validate(self, table: str, config: ReportConfig) -> None:
        """
        Validate a report configuration for a source table.

        Args:
            table: The report's main table.
            config: The ReportConfig to validate.

        Raises:
            ReportConfigError: The first rule the config violates.
        """
        self._validate_table(table)
        self._validate_not_empty(config)
        self._validate_grouping(config)
        self._validate_fields(table, config)
        self._validate_metrics(table, config.metrics)
        self._validate_sort(config)
        self._validate_limit_for_aggregate_sort(config)
        self._validate_limit(config.limit)
        self._validate_filters(config.filters)
        self._validate_aliases(config)
        self._validate_output_names(config)

    # -------------------------
    # Validation Methods
    # -------------------------

    def _validate_table(self, table: str) -> None:
        if not self._registry.is_reportable(table):
            available = ", ".join(self._registry.list_tables())
            raise UnknownTable(
                f"Unknown source table '{table}' (available: {available})"
            )

    def _validate_not_empty(self, config: ReportConfig) -> None:
        if not config.dimensions and not config.metrics:
            raise EmptyReport("A report needs at least one dimension or metric")

    def _validate_grouping(self, config: ReportConfig) -> None:
        """Aggregates require explicit grouping."""
        if config.metrics and not config.dimensions:
            raise MissingGroupingForAggregate(
                "Metrics require at least one dimension to group by",
                field=config.metrics[0].field,
            )

    def _validate_fields(self, table: str, config: ReportConfig) -> None:
        """Every dimension/filter/metric field resolves, joins included."""
        self._resolver.resolve(table, config.referenced_fields())

    def _validate_metrics(self, table: str, metrics: list[Metric]) -> None:
        for metric in metrics:
            if metric.operation not in SUPPORTED_OPERATIONS:
                raise UnsupportedOperation(
                    f"Operation '{metric.operation}' is not supported (use SUM or COUNT)",
                    field=metric.field,
                )

            if metric.operation == AggregateOperation.SUM.value:
                resolved = resolve_field(self._registry, table, metric.field)
                if not resolved.numeric:
                    raise NonNumericAggregation(
                        f"Field '{metric.field}' is not numeric and cannot be used in SUM",
                        field=metric.field,
                    )

    def _validate_sort(self, config: ReportConfig) -> None:
        """Sort fields must be the report's own dimensions or metrics."""
        for spec in config.sort:
            if find_sort_target(config, spec.field) is None:
                raise InvalidSortField(
                    f"Sort field '{spec.field}' must be one of the report's "
                    "dimensions or metrics",
                    field=spec.field,
                )

    def _validate_limit_for_aggregate_sort(self, config: ReportConfig) -> None:
        """Sorting by an aggregate needs a bounded result."""
        if config.limit is not None and config.limit > 0:
            return
        for spec in config.sort:
            target = find_sort_target(config, spec.field)
            if target is not None and target.is_metric:
                raise MissingLimitForAggregateSort(
                    f"Sorting by metric '{spec.field}' requires a positive limit",
                    field=spec.field,
                )

    def _validate_limit(self, limit: int | None) -> None:
        """Validate limit is within bounds."""
        if limit is None:
            return
        if limit < 0 or limit > MAX_LIMIT:
            raise InvalidLimitRange(
                f"Limit {limit} must be between 0 and {MAX_LIMIT}"
            )

    def _validate_filters(self, filters: list[Filter]) -> None:
        """Operators are supported and values fit them."""
        for filter_ in filters:
            bind_filter_values(filter_)

    def _validate_aliases(self, config: ReportConfig) -> None:
        for item in [*config.dimensions, *config.metrics]:
            if item.alias is not None:
                escape_alias(item.alias)

    def _validate_output_names(self, config: ReportConfig) -> None:
        """Result rows are keyed by column name; names must not repeat."""
        seen: dict[str, str] = {}
        for item in [*config.dimensions, *config.metrics]:
            name = output_name(item)
            if name in seen:
                raise DuplicateOutputColumn(
                    f"Fields '{seen[name]}' and '{item.field}' both produce the "
                    f"output column '{name}'; give one of them an alias",
                    field=item.field,
                )
            seen[name] = item.field
