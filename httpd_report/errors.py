"""Exception types raised at the source and configuration boundaries."""


class ReportError(Exception):
    """Base exception for httpd-hit-report."""


class ConfigError(ReportError):
    """Raised when configuration values are invalid."""


class SourceReadFailure(ReportError):
    """Raised when a logical input source (file or stream) cannot be read."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason
