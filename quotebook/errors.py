"""Error taxonomy shared by the store, the cascade engine and the service."""
from __future__ import annotations


class QuotebookError(Exception):
    """Base class for every failure reported across the operation boundary."""

    code = "QuotebookError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class ValidationError(QuotebookError):
    """A required field is missing or malformed."""

    code = "ValidationError"


class DuplicateName(QuotebookError):
    code = "DuplicateName"


class UnknownAuthor(QuotebookError):
    code = "UnknownAuthor"


class UnknownQuote(QuotebookError):
    code = "UnknownQuote"


class Unauthorized(QuotebookError):
    """Ownership or credential mismatch."""

    code = "Unauthorized"


class NotFound(QuotebookError):
    code = "NotFound"


class EmptyResult(QuotebookError):
    code = "EmptyResult"


class NoComments(QuotebookError):
    code = "NoComments"


class Mismatch(QuotebookError):
    """A cross-reference between two records does not hold."""

    code = "Mismatch"


class StorageFault(QuotebookError):
    """A record exceeds its size bound or the underlying store failed."""

    code = "StorageFault"


__all__ = [
    "QuotebookError",
    "ValidationError",
    "DuplicateName",
    "UnknownAuthor",
    "UnknownQuote",
    "Unauthorized",
    "NotFound",
    "EmptyResult",
    "NoComments",
    "Mismatch",
    "StorageFault",
]
