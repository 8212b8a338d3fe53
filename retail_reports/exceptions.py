"""
Errors raised while loading tables and running reports.

Division by zero, empty results and out-of-range bucket values are not
errors; they are resolved inside the operators.
"""


class ReportError(Exception):
    """Base class for every error raised by retail_reports."""


class ReferentialIntegrityError(ReportError, ValueError):
    """A foreign key does not resolve to a row of the referenced table."""

    def __init__(self, table: str, column: str, referenced: str, missing_keys):
        self.table = table
        self.column = column
        self.referenced = referenced
        self.missing_keys = list(missing_keys)
        sample = ", ".join(str(k) for k in self.missing_keys[:5])
        super().__init__(
            f"{len(self.missing_keys)} value(s) of {table}.{column} "
            f"do not resolve in {referenced}: {sample}"
        )


class InvalidTableError(ReportError, ValueError):
    """Input table failed schema validation."""

    def __init__(self, table: str, failure_cases=None):
        self.table = table
        self.failure_cases = failure_cases
        count = 0 if failure_cases is None else len(failure_cases)
        super().__init__(f"Table '{table}' failed validation with {count} issue(s)")


class UnknownTableError(ReportError, KeyError):
    pass


class UnknownReportError(ReportError, KeyError):
    pass


class ReportExecutionError(ReportError, RuntimeError):
    """Unexpected failure while evaluating a report."""


class InvalidReportError(ReportError, ValueError):
    """Report result violates its output schema."""

    def __init__(self, report: str, failure_cases=None):
        self.report = report
        self.failure_cases = failure_cases
        count = 0 if failure_cases is None else len(failure_cases)
        super().__init__(f"Report '{report}' failed output validation with {count} issue(s)")
