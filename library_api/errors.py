"""
Error taxonomy shared by services and route handlers.

Every error carries the HTTP status it maps to at the request boundary, where
a single flask-restx error handler renders it as ``{"message": ...}``.
"""
from http import HTTPStatus


class LibraryError(Exception):
    """Base class for all application errors."""

    code = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


class ValidationError(LibraryError):
    """Malformed or missing input."""

    code = HTTPStatus.BAD_REQUEST


class AuthenticationError(LibraryError):
    """Missing or invalid credentials."""

    code = HTTPStatus.UNAUTHORIZED


class ForbiddenError(LibraryError):
    """You are not allowed to perform this action."""

    code = HTTPStatus.FORBIDDEN


class NotFoundError(LibraryError):
    """Resource not found."""

    code = HTTPStatus.NOT_FOUND


class ConflictError(LibraryError):
    """Resource already exists."""

    code = HTTPStatus.CONFLICT


class ProviderError(LibraryError):
    """Payment provider request failed."""

    code = HTTPStatus.INTERNAL_SERVER_ERROR


class PersistenceError(LibraryError):
    """Database request failed."""

    code = HTTPStatus.INTERNAL_SERVER_ERROR
