"""
Error taxonomy for ReportQL.

Every rejected report configuration raises a subclass of
ReportConfigError. No SQL is ever produced for a configuration that
fails one of these checks.
"""


class ReportConfigError(Exception):
    """Base class for rejected report configurations."""

    code: str = "ReportConfigError"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        """Structured form for API error payloads."""
        return {"code": self.code, "field": self.field, "message": self.message}


class MalformedReportConfig(ReportConfigError):
    code = "MalformedReportConfig"


class EmptyReport(ReportConfigError):
    code = "EmptyReport"


class MissingGroupingForAggregate(ReportConfigError):
    code = "MissingGroupingForAggregate"


class UnknownTable(ReportConfigError):
    code = "UnknownTable"


class UnknownField(ReportConfigError):
    code = "UnknownField"


class UnknownRelationship(ReportConfigError):
    code = "UnknownRelationship"


class NonNumericAggregation(ReportConfigError):
    code = "NonNumericAggregation"


class UnsupportedOperation(ReportConfigError):
    code = "UnsupportedOperation"


class UnsupportedFilterOperator(ReportConfigError):
    code = "UnsupportedFilterOperator"


class InvalidSortField(ReportConfigError):
    code = "InvalidSortField"


class MissingLimitForAggregateSort(ReportConfigError):
    code = "MissingLimitForAggregateSort"


class InvalidLimitRange(ReportConfigError):
    code = "InvalidLimitRange"


class InvalidIdentifier(ReportConfigError):
    code = "InvalidIdentifier"


class InvalidFilterValue(ReportConfigError):
    code = "InvalidFilterValue"


class DuplicateOutputColumn(ReportConfigError):
    code = "DuplicateOutputColumn"


# -----------------------------
# Registry authoring errors
# -----------------------------


class RegistryConfigurationError(Exception):
    """Raised when the static schema registry is malformed."""

    pass
