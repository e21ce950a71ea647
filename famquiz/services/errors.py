"""Error kinds raised by the service layer."""

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of failure kinds a service may report."""
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INSUFFICIENT_POINTS = "INSUFFICIENT_POINTS"


class ServiceError(Exception):
    """A business-rule failure with a kind the HTTP layer maps to a status code."""

    def __init__(self, kind: ErrorKind, message: str, field: str = "general"):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.field = field

    def __repr__(self) -> str:
        return f"ServiceError({self.kind.value}, {self.message!r})"


def bad_request(message: str, field: str = "general") -> ServiceError:
    return ServiceError(ErrorKind.BAD_REQUEST, message, field)


def not_in_group() -> ServiceError:
    return bad_request("You are not a member of any group.")
