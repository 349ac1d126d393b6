"""
Custom exception types for Increment.

Every exception carries a machine-readable code so callers can
handle specific failure modes programmatically.
"""


class IncrementError(Exception):
    """Base exception for all Increment errors."""

    def __init__(self, message: str, code: str = "INCREMENT_ERROR"):
        self.code = code
        super().__init__(message)


class ParseError(IncrementError):
    """Raised when an upload is not valid JSON or delimited text."""

    def __init__(self, message: str, source: str = ""):
        self.source = source
        super().__init__(message, code="PARSE_ERROR")


class UploadError(IncrementError):
    """Raised when an upload source cannot be read at all."""

    def __init__(self, message: str, source: str = ""):
        self.source = source
        super().__init__(message, code="UPLOAD_ERROR")


class DatasetNotReadyError(IncrementError):
    """Raised when a view is requested before MMM and attribution are loaded."""

    def __init__(self, missing: list[str] | None = None):
        self.missing = missing or []
        msg = "Dataset is not ready"
        if self.missing:
            msg += f": missing {', '.join(self.missing)} upload"
        super().__init__(msg, code="DATASET_NOT_READY")
