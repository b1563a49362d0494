"""
Report configuration models for ReportQL.

These models define the ONLY structured format a report definition may
take, whether it comes from stored report metadata or from an inline
preview request.

They represent reporting intent, NOT SQL syntax.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError, field_validator

from reportql.core.errors import MalformedReportConfig


# -----------------------------
# Enums
# -----------------------------


class AggregateOperation(str, Enum):
    """Supported aggregate operations for metrics."""

    SUM = "SUM"
    COUNT = "COUNT"


class FilterOperator(str, Enum):
    """Supported filter operators for WHERE clauses."""

    EQ = "="
    NOT_EQ = "!="
    GT = ">"
    LT = "<"
    GTE = ">="
    LTE = "<="
    LIKE = "LIKE"
    IN = "IN"
    NOT_IN = "NOT IN"
    IS_NULL = "IS NULL"
    IS_NOT_NULL = "IS NOT NULL"


class SortDirection(str, Enum):
    """Sort direction for ORDER BY clauses."""

    ASC = "ASC"
    DESC = "DESC"


def _normalize_keyword(value: Any) -> Any:
    """Upper-case a keyword and collapse inner whitespace ("not  in" -> "NOT IN")."""
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, str):
        return " ".join(value.split()).upper()
    return value


# -----------------------------
# Report Config Nodes
# -----------------------------


class Dimension(BaseModel):
    """
    A selected (and grouped) column.

    Examples:
        status
        agency.name
    """

    field: str
    alias: str | None = None


class Metric(BaseModel):
    """
    An aggregated value.

    `operation` is kept as a normalized string so that unsupported
    operations are reported by the validator rather than the model layer.

    Examples:
        SUM(total_points)
        COUNT(id)
    """

    field: str
    operation: str
    alias: str | None = None

    @field_validator("operation", mode="before")
    @classmethod
    def normalize_operation(cls, v: Any) -> Any:
        return _normalize_keyword(v)


class Filter(BaseModel):
    """
    A WHERE clause condition.

    Examples:
        status = 'PENDING'
        status IN ('PENDING', 'CONFIRMED')
        agency.branch IS NULL
    """

    field: str
    operator: str
    value: Any = None  # scalar, list (IN / NOT IN), or absent (IS NULL)

    @field_validator("operator", mode="before")
    @classmethod
    def normalize_operator(cls, v: Any) -> Any:
        return _normalize_keyword(v)


class SortSpec(BaseModel):
    """An ORDER BY entry."""

    field: str
    direction: SortDirection = SortDirection.ASC

    @field_validator("direction", mode="before")
    @classmethod
    def normalize_direction(cls, v: Any) -> Any:
        return _normalize_keyword(v)


# -----------------------------
# Root Report Config
# -----------------------------


class ReportConfig(BaseModel):
    """
    Root object describing a report.

    Produced by callers (stored report or preview request) and consumed
    by the validator and the query compiler.
    """

    dimensions: list[Dimension] = Field(
        default_factory=list,
        description="Columns to select and group by",
    )

    metrics: list[Metric] = Field(
        default_factory=list,
        description="Aggregates to compute",
    )

    filters: list[Filter] = Field(
        default_factory=list,
        description="Filter conditions, AND-ed together",
    )

    sort: list[SortSpec] = Field(
        default_factory=list,
        description="Ordering instructions",
    )

    limit: StrictInt | None = Field(
        default=None,
        description="Maximum number of rows to return (JSON integers only)",
    )

    @field_validator("dimensions", "metrics", "filters", "sort", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @classmethod
    def parse(cls, data: "ReportConfig | dict[str, Any]") -> "ReportConfig":
        """Build a config from JSON-shaped data, as a ReportConfigError on bad shape."""
        if isinstance(data, cls):
            return data
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise MalformedReportConfig(
                f"Malformed report configuration: {e.error_count()} error(s): "
                + "; ".join(
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                    for err in e.errors()
                )
            ) from e

    def referenced_fields(self) -> list[str]:
        """Fields that may need joins: dimensions, filters, then metrics."""
        return (
            [d.field for d in self.dimensions]
            + [f.field for f in self.filters]
            + [m.field for m in self.metrics]
        )


# -----------------------------
# Compiled Output
# -----------------------------


class CompiledQuery(BaseModel):
    """SQL text plus positional parameters. Immutable once produced."""

    model_config = ConfigDict(frozen=True)

    sql: str
    params: tuple[Any, ...] = ()
