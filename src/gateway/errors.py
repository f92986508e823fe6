"""
Gateway error taxonomy

Every failure inside the gateway resolves to exactly one ErrorKind before it
reaches the transport. GatewayError carries the kind, a human readable message
and, for upstream failures, the HTTP status code.
"""

from enum import Enum
from typing import Dict, Any, Optional


class ErrorKind(str, Enum):
    """Tagged error kinds surfaced to callers."""
    INVALID_ARGUMENT = "InvalidArgument"
    SESSION_NOT_FOUND = "SessionNotFound"
    UNAUTHORIZED = "Unauthorized"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"
    RATE_LIMITED = "RateLimited"
    UPSTREAM_UNAVAILABLE = "UpstreamUnavailable"
    UPSTREAM_ERROR = "UpstreamError"
    MALFORMED_UPSTREAM_RESPONSE = "MalformedUpstreamResponse"


RETRYABLE_KINDS = frozenset({ErrorKind.RATE_LIMITED, ErrorKind.UPSTREAM_UNAVAILABLE})


class GatewayError(Exception):
    """Structured gateway failure."""

    def __init__(self, kind: ErrorKind, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.kind = ErrorKind(kind)
        self.message = message
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS

    def to_dict(self) -> Dict[str, Any]:
        error = {
            "kind": self.kind.value,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.status_code is not None:
            error["status_code"] = self.status_code
        return error

    def __repr__(self) -> str:
        return f"GatewayError(kind={self.kind.value!r}, message={self.message!r}, status_code={self.status_code!r})"


def kind_for_status(status_code: int) -> ErrorKind:
    """
    Map an upstream HTTP status code to an error kind.

    Args:
        status_code: HTTP status returned (or reported) by the upstream service

    Returns:
        The matching ErrorKind
    """
    if status_code == 401:
        return ErrorKind.UNAUTHORIZED
    if status_code == 403:
        return ErrorKind.FORBIDDEN
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    if status_code == 429:
        return ErrorKind.RATE_LIMITED
    if status_code >= 500:
        return ErrorKind.UPSTREAM_UNAVAILABLE
    return ErrorKind.UPSTREAM_ERROR


def invalid_argument(message: str) -> GatewayError:
    return GatewayError(ErrorKind.INVALID_ARGUMENT, message)


def session_not_found(session_id: str) -> GatewayError:
    return GatewayError(
        ErrorKind.SESSION_NOT_FOUND,
        f"Session {session_id} is closed, expired or unknown. Open a new session and retry."
    )


def malformed_response(message: str) -> GatewayError:
    return GatewayError(ErrorKind.MALFORMED_UPSTREAM_RESPONSE, message)
