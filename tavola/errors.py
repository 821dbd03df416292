"""Error types shared by the menu, order and notification services."""

from __future__ import annotations

from enum import IntEnum


class DomainError(Exception):
    """Base class for business-rule errors."""

    default_message = "domain error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class InternalError(DomainError):
    """A failure inside the service or one of its backends."""

    default_message = "internal error"


class InvalidArgumentError(DomainError):
    """The caller supplied an argument that cannot be used."""

    default_message = "invalid argument"


class InvalidUUIDError(InvalidArgumentError):
    """An identifier could not be parsed as a UUID."""

    default_message = "invalid argument: invalid uuid"


class EmptyDishListError(DomainError):
    """An order was requested without any dishes."""

    default_message = "empty dish list"


class InvalidStatusError(DomainError):
    """An order status value is not one of the known statuses."""

    default_message = "invalid status"


class InvalidStatusTransitionError(DomainError):
    """An order cannot move from its current status to the requested one."""

    default_message = "invalid status transition"


class StatusCode(IntEnum):
    """Status codes reported by the RPC layer."""

    OK = 0
    CANCELLED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    FAILED_PRECONDITION = 9
    ABORTED = 10
    OUT_OF_RANGE = 11
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    DATA_LOSS = 15
    UNAUTHENTICATED = 16


class ApiError(Exception):
    """An error returned to an RPC caller, carrying a status code."""

    def __init__(self, code: StatusCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return self.message