"""Report execution layer."""

import logging
from collections.abc import Sequence
from typing import Any, Protocol

from reportql.core.reporting.compiler import QueryCompiler
from reportql.core.reporting.store import ReportNotFoundError, ReportStore
from reportql.core.sql_ast.models import CompiledQuery, ReportConfig

logger = logging.getLogger(__name__)

Row = dict[str, Any]


class QueryRunner(Protocol):
    """The data layer's `run(sql, params) -> rows` capability."""

    def run(self, sql: str, params: Sequence[Any]) -> list[Row]: ...


class ReportExecutor:
    """
    Runs compiled reports through an injected QueryRunner.

    This is a thin execution layer with no business logic. Errors raised
    by the runner are storage/connectivity errors and propagate unchanged.
    """

    def __init__(
        self,
        runner: QueryRunner,
        store: ReportStore | None = None,
        compiler: QueryCompiler | None = None,
    ):
        self._runner = runner
        self._store = store
        self._compiler = compiler or QueryCompiler()

    def preview(
        self, table: str, config: ReportConfig | dict[str, Any]
    ) -> CompiledQuery:
        """Compile without running."""
        return self._compiler.compile(table, config)

    def execute(
        self, table: str, config: ReportConfig | dict[str, Any]
    ) -> list[Row]:
        """
        Compile a report and return its rows verbatim.

        Raises:
            ReportConfigError: If the configuration is rejected.
        """
        compiled = self._compiler.compile(table, config)

        logger.info(
            "Executing report on '%s' with %d params", table, len(compiled.params)
        )
        try:
            rows = self._runner.run(compiled.sql, compiled.params)
        except Exception:
            logger.exception("Report query on '%s' failed", table)
            raise

        logger.info("Report on '%s' returned %d rows", table, len(rows))
        return rows

    def execute_stored(self, report_id: int) -> list[Row]:
        """
        Load a persisted report definition and execute it.

        Raises:
            ReportNotFoundError: If no report has this id.
        """
        if self._store is None:
            raise RuntimeError("ReportExecutor has no report store configured")

        report = self._store.get_report(report_id)
        if report is None:
            raise ReportNotFoundError(report_id)

        logger.info("Executing stored report %d (%s)", report.id, report.name)
        return self.execute(report.source_table, report.config)
