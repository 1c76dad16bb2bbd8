"""Error taxonomy shared by the association store and the HTTP layer.

Every error carries a human-readable message and the HTTP status it maps to.
Routers convert them with :func:`to_http_exception`; the response body is
always ``{"detail": message}``.
"""
from __future__ import annotations

from fastapi import HTTPException


class CharacterManagerError(Exception):
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(CharacterManagerError):
    """Missing or empty required field, or a body of the wrong shape."""
    status_code = 400


class ForbiddenError(CharacterManagerError):
    status_code = 403


class NotFoundError(CharacterManagerError):
    status_code = 404


class ConflictError(CharacterManagerError):
    """A tag or category with the same name already exists."""
    status_code = 409


class StoreError(CharacterManagerError):
    """The underlying database failed."""
    status_code = 500


def to_http_exception(exc: CharacterManagerError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)
