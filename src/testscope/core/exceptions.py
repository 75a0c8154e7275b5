"""Shared exceptions for the testscope package.

The normalization core never raises for malformed report content. These
errors belong to the loading side: the report file is missing or is not
JSON at all.
"""


class ReportError(Exception):
    """Base class for errors raised while loading a report."""


class ReportNotFoundError(ReportError):
    """Raised when the JSON report file does not exist."""

    def __init__(self, path: object) -> None:
        self.path = path
        super().__init__(f"JSON report file not found at {path}")


class InvalidReportError(ReportError):
    """Raised when the report file cannot be decoded as JSON."""

    def __init__(self, path: object, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid JSON in report file {path}: {reason}")
