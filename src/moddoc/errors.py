from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    MODULE_NOT_FOUND = "MODULE_NOT_FOUND"
    INVALID_MODULE = "INVALID_MODULE"
    INVALID_INPUT = "INVALID_INPUT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_STATUS_CODES: dict[ErrorCode, int] = {
    ErrorCode.MODULE_NOT_FOUND: 404,
    ErrorCode.INVALID_MODULE: 400,
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.INTERNAL_ERROR: 500,
}


class ModDocError(Exception):
    """Raised for all expected failure conditions of a documentation request.

    Caught by server.py and serialised into the JSON error response.
    Never catch this inside business logic; let it propagate to the
    request boundary so the client receives a structured error with a suggestion.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self.code]

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }


class InvariantViolation(AssertionError):
    """A documentation graph broke a structural guarantee.

    Programmer error, not user error: never caught below the request boundary,
    where it is reported as an internal failure.
    """
