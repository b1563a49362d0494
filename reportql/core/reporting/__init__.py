"""Report compilation, execution, stored-report loading and result caching."""

from .cache import ResultCache, cache_key
from .catalog import AvailableFields, RelatedTableFields, get_available_fields
from .compiler import QueryCompiler
from .executor import QueryRunner, ReportExecutor
from .store import (
    ReportConfigParseError,
    ReportNotFoundError,
    ReportStore,
    StoredReport,
    VisualizationType,
    parse_config_json,
)

__all__ = [
    "AvailableFields",
    "QueryCompiler",
    "QueryRunner",
    "RelatedTableFields",
    "ReportConfigParseError",
    "ReportExecutor",
    "ReportNotFoundError",
    "ReportStore",
    "ResultCache",
    "StoredReport",
    "VisualizationType",
    "cache_key",
    "get_available_fields",
    "parse_config_json",
]
