"""Domain exceptions raised by the household services.

Each exception carries the HTTP status the API layer answers with; the
exception handlers in ``main`` translate them into JSON responses.
"""

from __future__ import annotations

from http import HTTPStatus


class FamilyHubError(Exception):
    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidArgumentError(FamilyHubError, ValueError):
    status_code = HTTPStatus.BAD_REQUEST


class UnsupportedProblemTypeError(InvalidArgumentError):
    pass


class AuthenticationError(FamilyHubError):
    status_code = HTTPStatus.UNAUTHORIZED


class PermissionDeniedError(FamilyHubError, PermissionError):
    status_code = HTTPStatus.FORBIDDEN


class NotFoundError(FamilyHubError, LookupError):
    status_code = HTTPStatus.NOT_FOUND


class ConflictError(FamilyHubError):
    status_code = HTTPStatus.CONFLICT


class InsufficientPointsError(ConflictError):
    pass


__all__ = [
    "AuthenticationError",
    "ConflictError",
    "FamilyHubError",
    "InsufficientPointsError",
    "InvalidArgumentError",
    "NotFoundError",
    "PermissionDeniedError",
    "UnsupportedProblemTypeError",
]
