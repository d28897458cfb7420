"""Exceptions raised by the reporting layer."""


class InvalidReportArgument(ValueError):
    """Raised when a report parameter is malformed or out of range."""
