"""
Stored report definitions.

The persistence layer itself lives outside the core; this module only
defines what the executor needs from it and how a persisted config blob
is read back.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from pydantic import BaseModel

from reportql.core.sql_ast.models import ReportConfig


class VisualizationType(str, Enum):
    """How a report is rendered on the dashboard."""

    TABLE = "table"
    BAR = "bar"
    LINE = "line"
    PIE = "pie"
    AREA = "area"


class StoredReport(BaseModel):
    """A persisted report definition."""

    id: int
    name: str
    source_table: str
    visualization_type: VisualizationType = VisualizationType.TABLE
    config: ReportConfig
    created_by: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# -----------------------------
# Errors
# -----------------------------


class ReportNotFoundError(Exception):
    """Raised when a stored report does not exist."""

    def __init__(self, report_id: int):
        super().__init__(f"Report {report_id} not found")
        self.report_id = report_id


class ReportConfigParseError(Exception):
    """Raised when a persisted config blob cannot be read."""

    pass


# -----------------------------
# Store protocol
# -----------------------------


class ReportStore(Protocol):
    """Read access to persisted report definitions."""

    def get_report(self, report_id: int) -> StoredReport | None: ...


def parse_config_json(raw: Any) -> ReportConfig:
    """
    Read a persisted config that may be stored as JSON text or already parsed.

    Raises:
        ReportConfigParseError: If the blob is not JSON / not an object.
        MalformedReportConfig: If the object does not fit ReportConfig.
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ReportConfigParseError(f"Invalid report config JSON: {e}") from e

    if not isinstance(raw, dict):
        raise ReportConfigParseError(
            f"Unexpected type for report config: {type(raw).__name__}"
        )
    return ReportConfig.parse(raw)
