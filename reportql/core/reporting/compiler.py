"""
Query Compiler for ReportQL.

Transforms a validated ReportConfig into a SQLAlchemy Select and renders
it as SQL text plus positional parameters.
"""

import logging
from typing import Any

from sqlalchemy.engine import Dialect
from sqlalchemy.sql import Select

from reportql.core.safety.validator import ReportConfigValidator
from reportql.core.schema_registry.registry import (
    SchemaRegistry,
    get_default_registry,
)
from reportql.core.sql_ast.clauses import (
    build_from_clause,
    build_group_by_clause,
    build_limit_clause,
    build_order_by_clause,
    build_select_clause,
    build_statement,
    build_where_clause,
    default_dialect,
    render_statement,
)
from reportql.core.sql_ast.join_resolver import JoinResolver
from reportql.core.sql_ast.models import CompiledQuery, ReportConfig

logger = logging.getLogger(__name__)


class QueryCompiler:
    """
    Compiles a report configuration for a source table into a CompiledQuery.

    Stateless between calls: the same (table, config) always yields
    byte-identical SQL and parameters.
    """

    def __init__(
        self,
        registry: SchemaRegistry | None = None,
        dialect: Dialect | None = None,
    ):
        """
        Initialize the compiler.

        Args:
            registry: Schema registry for field lookups.
                     Uses default registry if not provided.
            dialect: SQLAlchemy dialect used for quoting and placeholders.
                     Must use the "qmark" paramstyle. Defaults to a
                     generic ANSI dialect.
        """
        self._registry = registry or get_default_registry()
        self._dialect = dialect or default_dialect()
        self._validator = ReportConfigValidator(self._registry)
        self._resolver = JoinResolver(self._registry)

    @property
    def registry(self) -> SchemaRegistry:
        return self._registry

    def build(self, table: str, config: ReportConfig | dict[str, Any]) -> Select:
        """
        Validate a report and build its SQLAlchemy Select.

        Raises:
            ReportConfigError: If the configuration is rejected.
        """
        config = ReportConfig.parse(config)

        # 1. Business rules
        self._validator.validate(table, config)

        # 2. Joins for every referenced relationship
        join_plan = self._resolver.resolve(table, config.referenced_fields())
        sources = build_from_clause(self._registry, join_plan)

        # 3. Clauses
        has_group_by = bool(config.dimensions)
        columns = build_select_clause(sources, config.dimensions, config.metrics)
        return build_statement(
            sources,
            columns,
            conditions=build_where_clause(sources, config.filters),
            group_by=build_group_by_clause(sources, config.dimensions),
            order_by=build_order_by_clause(sources, config, columns, has_group_by),
            limit=build_limit_clause(config.limit),
        )

    def compile(
        self, table: str, config: ReportConfig | dict[str, Any]
    ) -> CompiledQuery:
        """
        Validate and compile a report.

        Args:
            table: The report's main table.
            config: A ReportConfig, or JSON-shaped data for one.

        Returns:
            CompiledQuery with SQL and bound parameters.

        Raises:
            ReportConfigError: If the configuration is rejected.
        """
        compiled = render_statement(self.build(table, config), self._dialect)

        logger.debug(
            "Compiled report on '%s' (%d params): %s",
            table,
            len(compiled.params),
            compiled.sql,
        )
        return compiled
