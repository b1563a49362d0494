"""Safety module for ReportQL - report configuration validation and error taxonomy."""

from reportql.core.errors import (
    DuplicateOutputColumn,
    EmptyReport,
    InvalidFilterValue,
    InvalidIdentifier,
    InvalidLimitRange,
    InvalidSortField,
    MalformedReportConfig,
    MissingGroupingForAggregate,
    MissingLimitForAggregateSort,
    NonNumericAggregation,
    RegistryConfigurationError,
    ReportConfigError,
    UnknownField,
    UnknownRelationship,
    UnknownTable,
    UnsupportedFilterOperator,
    UnsupportedOperation,
)
from .validator import ReportConfigValidator

__all__ = [
    "DuplicateOutputColumn",
    "EmptyReport",
    "InvalidFilterValue",
    "InvalidIdentifier",
    "InvalidLimitRange",
    "InvalidSortField",
    "MalformedReportConfig",
    "MissingGroupingForAggregate",
    "MissingLimitForAggregateSort",
    "NonNumericAggregation",
    "RegistryConfigurationError",
    "ReportConfigError",
    "ReportConfigValidator",
    "UnknownField",
    "UnknownRelationship",
    "UnknownTable",
    "UnsupportedFilterOperator",
    "UnsupportedOperation",
]
