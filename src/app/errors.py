"""Ledger error taxonomy

Services raise LedgerError subclasses; use cases turn them into
``libs.result.Error`` values carrying a stable ``kind`` and ``code``.
"""

from enum import Enum
from typing import Optional
from libs.result import Error


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    VALIDATION_FAILURE = "validation_failure"
    EXTERNAL_PROCESSOR_FAILURE = "external_processor_failure"
    CONCURRENCY_CONFLICT = "concurrency_conflict"


class LedgerError(Exception):
    kind: ErrorKind = ErrorKind.VALIDATION_FAILURE

    def __init__(self, code: str, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.reason = reason

    def to_error(self) -> Error:
        return Error(
            code=self.code,
            message=self.message,
            reason=self.reason,
            kind=self.kind.value,
        )


class NotFoundError(LedgerError):
    kind = ErrorKind.NOT_FOUND


class InvalidStateError(LedgerError):
    kind = ErrorKind.INVALID_STATE


class ValidationFailureError(LedgerError):
    kind = ErrorKind.VALIDATION_FAILURE


class ExternalProcessorError(LedgerError):
    kind = ErrorKind.EXTERNAL_PROCESSOR_FAILURE


class ConcurrencyConflictError(LedgerError):
    kind = ErrorKind.CONCURRENCY_CONFLICT


def unexpected_error(code: str, message: str, exc: Exception) -> Error:
    """Error for failures outside the taxonomy (database down, bugs)"""
    return Error(code=code, message=message, reason=str(exc))
