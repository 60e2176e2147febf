class AnalyzerError(Exception):
    """Base exception for attendance ingestion and reporting failures."""


class DateParseError(AnalyzerError):
    """Raised when a raw date cell cannot be resolved to a calendar day."""

    def __init__(self, value: object, reason: str = "unrecognized date encoding") -> None:
        self.value = value
        self.reason = reason
        super().__init__(f"{reason}: {value!r}")


class DuplicatePartitionError(AnalyzerError):
    """Raised when a month already holds data and override was not requested."""

    def __init__(self, month_label: str, existing_count: int) -> None:
        self.month_label = month_label
        self.existing_count = existing_count
        super().__init__(
            f"Attendance data for {month_label} already exists "
            f"({existing_count} records). Use override to replace it."
        )


class EmptyBatchError(AnalyzerError):
    """Raised when no row of an upload survives validation."""

    def __init__(self, rows_seen: int, rows_accepted: int = 0) -> None:
        self.rows_seen = rows_seen
        self.rows_accepted = rows_accepted
        super().__init__(
            f"No valid attendance rows: {rows_accepted} accepted out of {rows_seen} seen"
        )


class InvalidRangeError(AnalyzerError):
    """Raised when a query asks for a year or month outside sane bounds."""
