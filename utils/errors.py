"""
Exception hierarchy for LeetCurve.

Core code (store and engine) raises these; the HTTP routes and the message
dispatcher turn them into structured results.
"""


class LeetCurveError(Exception):
    """Base exception for all LeetCurve errors."""
    kind = "Error"


class InvalidInputError(LeetCurveError):
    """Raised when a required field is missing or a payload is malformed."""
    kind = "InvalidInput"


class NotFoundError(LeetCurveError):
    """Raised when an operation targets a slug that is not tracked."""
    kind = "NotFound"


class StorageError(LeetCurveError):
    """Raised when the underlying SQLite store cannot be read or written."""
    kind = "StorageFailure"
